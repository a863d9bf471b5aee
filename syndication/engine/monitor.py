"""Failure monitor and auto-retry for pull endpoints."""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

import pendulum
from pydantic import BaseModel, Field

from ..config import PullConfig
from ..models import Endpoint
from ..notify import Notifier
from ..store.base import EndpointStore, JobScheduler

logger = logging.getLogger(__name__)

PULL_JOB = "pull_content"


class FailureOutcome(BaseModel):
    """What the monitor did about one failed pull."""

    failures: int = Field(0, description="Consecutive failures after this one")
    disabled: bool = Field(False, description="Whether this failure disabled the endpoint")
    retry_at: Optional[datetime] = Field(None, description="When the auto-retry runs, if one was scheduled")
    retry_number: Optional[int] = Field(None, description="Which auto-retry was scheduled")


class FailureMonitor:
    """
    Count consecutive pull failures per endpoint.

    With max_attempts configured, an endpoint that reaches the threshold is
    disabled and its counters reset. Below the threshold a limited number of
    short-delay retries are scheduled.
    """

    def __init__(
        self,
        endpoints: EndpointStore,
        scheduler: JobScheduler,
        notifier: Notifier,
        max_attempts: int = 0,
        auto_retry_limit: int = 3,
        auto_retry_delay_seconds: int = 60,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.endpoints = endpoints
        self.scheduler = scheduler
        self.notifier = notifier
        self.max_attempts = max_attempts
        self.auto_retry_limit = auto_retry_limit
        self.auto_retry_delay_seconds = auto_retry_delay_seconds
        self.clock = clock or (lambda: pendulum.now("UTC"))

    @classmethod
    def from_config(
        cls,
        config: PullConfig,
        endpoints: EndpointStore,
        scheduler: JobScheduler,
        notifier: Notifier,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "FailureMonitor":
        return cls(
            endpoints,
            scheduler,
            notifier,
            max_attempts=config.max_attempts,
            auto_retry_limit=config.auto_retry_limit,
            auto_retry_delay_seconds=config.auto_retry_delay_seconds,
            clock=clock,
        )

    def record_failure(self, endpoint: Endpoint, error: str) -> FailureOutcome:
        """Count a failed pull and disable or retry as configured."""
        failures = self.endpoints.record_pull_failure(endpoint.id)
        outcome = FailureOutcome(failures=failures)
        logger.info("Pull from endpoint '%s' failed (%d in a row): %s", endpoint.name, failures, error)

        if not self.max_attempts:
            return outcome

        if failures >= self.max_attempts:
            if self.endpoints.disable_endpoint(endpoint.id):
                outcome.disabled = True
                self.notifier.endpoint_disabled(endpoint.id, endpoint.name, failures)
            return outcome

        retry_number = self.endpoints.claim_auto_retry(endpoint.id, self.auto_retry_limit)
        if retry_number is None:
            logger.warning(
                "Failed %d times to reconnect to endpoint '%s'; retry counter reset, waiting for the next scheduled pull",
                self.auto_retry_limit,
                endpoint.name,
            )
            return outcome

        retry_at = self.clock() + timedelta(seconds=self.auto_retry_delay_seconds)
        self.scheduler.schedule_once(PULL_JOB, retry_at, {"endpoint_ids": [endpoint.id]})
        logger.info(
            "Connection retry %d of %d to endpoint '%s' scheduled for %s",
            retry_number,
            self.auto_retry_limit,
            endpoint.name,
            retry_at.isoformat(),
        )
        outcome.retry_at = retry_at
        outcome.retry_number = retry_number
        return outcome

    def record_success(self, endpoint: Endpoint) -> None:
        """Reset the counters after a successful pull."""
        if endpoint.consecutive_failures or endpoint.auto_retry_count:
            logger.info("Endpoint '%s' recovered after %d failure(s)", endpoint.name, endpoint.consecutive_failures)
        self.endpoints.record_pull_success(endpoint.id)
