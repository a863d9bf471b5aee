"""Sync engine: push/pull orchestration, failure monitor and scheduling."""

from .bootstrap import build_encryptor, build_engine
from .engine import SyncEngine
from .jobs import DELETE_JOB, PUSH_JOB, JobRun, JobRunner
from .monitor import PULL_JOB, FailureMonitor, FailureOutcome
from .reports import EndpointPullResult, EndpointPushResult, PullReport, PushReport
from .schedule import REFRESH_JOB, REFRESH_MARKER, ScheduleRefresher
from .selection import resolve_push_targets, select_pull_endpoints
from .states import after_delete, after_push, after_update, has_remote_copy, resolve_state

__all__ = [
    "DELETE_JOB",
    "EndpointPullResult",
    "EndpointPushResult",
    "FailureMonitor",
    "FailureOutcome",
    "JobRun",
    "JobRunner",
    "PULL_JOB",
    "PUSH_JOB",
    "PullReport",
    "PushReport",
    "REFRESH_JOB",
    "REFRESH_MARKER",
    "ScheduleRefresher",
    "SyncEngine",
    "after_delete",
    "after_push",
    "after_update",
    "build_encryptor",
    "build_engine",
    "has_remote_copy",
    "resolve_push_targets",
    "resolve_state",
    "select_pull_endpoints",
]
