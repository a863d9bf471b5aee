"""Database connection management."""

import os
import threading
from contextlib import contextmanager
from typing import Any, Dict, Generator

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

_pools: Dict[str, ConnectionPool] = {}
_pools_lock = threading.Lock()


def connection_string(config: Dict[str, Any]) -> str:
    """
    Build a libpq connection string from a postgres config dict.

    A password_env entry takes precedence over a literal password.
    """
    password = config.get("password") or ""
    if config.get("password_env"):
        password = os.environ.get(config["password_env"], "")

    return make_conninfo(
        host=config.get("host", "localhost"),
        port=config.get("port", 5432),
        dbname=config.get("database", "syndication"),
        user=config.get("user", "syndication"),
        password=password,
    )


def get_connection_pool(config: Dict[str, Any]) -> ConnectionPool:
    """Get or create the pool for a database; one pool per connection string."""
    conninfo = connection_string(config)
    with _pools_lock:
        pool = _pools.get(conninfo)
        if pool is None:
            pool = ConnectionPool(
                conninfo,
                min_size=1,
                max_size=10,
                kwargs={"row_factory": dict_row},
                open=True,
            )
            _pools[conninfo] = pool
    return pool


def close_connection_pool() -> None:
    """Close every open pool."""
    with _pools_lock:
        pools = list(_pools.values())
        _pools.clear()
    for pool in pools:
        pool.close()


@contextmanager
def get_connection(config: Dict[str, Any]) -> Generator[psycopg.Connection, None, None]:
    """Get a database connection from the pool."""
    pool = get_connection_pool(config)
    with pool.connection() as conn:
        yield conn
