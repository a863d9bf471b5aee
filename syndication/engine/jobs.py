"""Job runner: dispatches due scheduled jobs to the engine."""

import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from .monitor import PULL_JOB
from .schedule import REFRESH_JOB

logger = logging.getLogger(__name__)

PUSH_JOB = "push_content"
DELETE_JOB = "delete_content"


class JobRun(BaseModel):
    """Outcome of running one job."""

    job_id: Optional[int] = Field(None, description="Scheduled job ID")
    name: str = Field(..., description="Job name")
    success: bool = Field(False, description="Whether the job ran without raising")
    error: Optional[str] = Field(None, description="Error message if failed")


class JobRunner:
    """Claim due jobs from the engine's scheduler and run them."""

    def __init__(self, engine: Any) -> None:
        """
        Initialize job runner.

        Args:
            engine: SyncEngine whose scheduler and operations are used
        """
        self.engine = engine
        self.handlers: Dict[str, Callable[..., Any]] = {
            PULL_JOB: lambda endpoint_ids=None: engine.run_pull_cycle(endpoint_ids),
            REFRESH_JOB: lambda: engine.refresh_schedules(),
            PUSH_JOB: lambda content_id, selected_endpoint_ids=(), removed_endpoint_ids=(): engine.push_content(
                content_id, selected_endpoint_ids, removed_endpoint_ids
            ),
            DELETE_JOB: lambda content_id: engine.delete_content_everywhere(content_id),
        }

    def run_due(self) -> List[JobRun]:
        """Run every job due at the engine's current time."""
        runs = []
        for job in self.engine.scheduler.claim_due(self.engine.clock()):
            run = JobRun(job_id=job.id, name=job.name)
            handler = self.handlers.get(job.name)
            if handler is None:
                logger.warning("No handler for scheduled job '%s'; dropped", job.name)
                run.error = "unknown job"
                runs.append(run)
                continue

            logger.debug("Running job %s %s", job.name, job.args)
            try:
                handler(**job.args)
                run.success = True
            except Exception as e:
                # One broken job must not stop the others
                logger.exception("Job '%s' failed", job.name)
                run.error = str(e)
            runs.append(run)
        return runs
