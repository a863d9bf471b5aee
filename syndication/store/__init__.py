"""Storage: contracts, in-memory implementation and Postgres implementation."""

from .base import ContentStore, EndpointStore, JobScheduler, LeaseStore, ScheduledJob
from .connection import close_connection_pool, get_connection, get_connection_pool
from .content import PostgresContentStore
from .endpoints import PostgresEndpointStore
from .init import SCHEMA_SQL, init_database, validate_connection
from .jobs import PostgresJobScheduler
from .leases import PostgresLeaseStore
from .memory import MemoryScheduler, MemoryStore

__all__ = [
    "ContentStore",
    "EndpointStore",
    "JobScheduler",
    "LeaseStore",
    "MemoryScheduler",
    "MemoryStore",
    "PostgresContentStore",
    "PostgresEndpointStore",
    "PostgresJobScheduler",
    "PostgresLeaseStore",
    "SCHEMA_SQL",
    "ScheduledJob",
    "close_connection_pool",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]
