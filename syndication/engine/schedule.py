"""Debounced refresh of the recurring pull jobs."""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import pendulum

from ..config import ConfigModel
from ..store.base import EndpointStore, JobScheduler, LeaseStore
from .monitor import PULL_JOB
from .selection import select_pull_endpoints

logger = logging.getLogger(__name__)

REFRESH_JOB = "refresh_pull_jobs"
REFRESH_MARKER = "pull-jobs-refresh-pending"


class ScheduleRefresher:
    """Rebuild the per-endpoint pull schedule, coalescing bursts of requests."""

    def __init__(
        self,
        endpoints: EndpointStore,
        leases: LeaseStore,
        scheduler: JobScheduler,
        config: ConfigModel,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.endpoints = endpoints
        self.leases = leases
        self.scheduler = scheduler
        self.config = config
        self.clock = clock or (lambda: pendulum.now("UTC"))

    def request_refresh(self) -> bool:
        """
        Ask for a schedule refresh.

        Returns:
            True if a refresh was scheduled, False if one is already pending
        """
        if self.leases.acquire(REFRESH_MARKER, self.config.schedule.refresh_marker_ttl_seconds) is None:
            logger.debug("Pull schedule refresh already pending")
            return False

        self.scheduler.clear(REFRESH_JOB)
        run_at = self.clock() + timedelta(seconds=self.config.schedule.refresh_delay_seconds)
        self.scheduler.schedule_once(REFRESH_JOB, run_at)
        logger.info("Pull schedule refresh scheduled for %s", run_at.isoformat())
        return True

    def refresh(self) -> List[int]:
        """
        Replace every pull job with one recurring job per selected endpoint.

        Returns:
            IDs of the endpoints that now have a pull job
        """
        removed = self.scheduler.clear(PULL_JOB)
        selected = select_pull_endpoints(self.endpoints, self.config.pull.selected_groups)

        for endpoint in selected:
            self.scheduler.schedule_recurring(
                PULL_JOB,
                self.config.pull.interval_seconds,
                {"endpoint_ids": [endpoint.id]},
            )

        logger.info("Pull schedule refreshed: %d job(s) removed, %d scheduled", removed, len(selected))
        return [endpoint.id for endpoint in selected]
