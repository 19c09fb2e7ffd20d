from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Set

from dapi_backend.db.models import JobStatus

_ALLOWED: Dict[JobStatus, Set[JobStatus]] = {
    JobStatus.CREATED: {
        JobStatus.DEPLOYING_SAAS3_DRUNTIME,
        JobStatus.DEPLOYING_SAAS3_TRANSACTOR,
        JobStatus.CONFIGURING_SAAS3_DRUNTIME,
        JobStatus.DONE,
    },
    JobStatus.DEPLOYING_SAAS3_DRUNTIME: {
        JobStatus.DEPLOYING_SAAS3_TRANSACTOR,
        JobStatus.CONFIGURING_SAAS3_DRUNTIME,
        JobStatus.DONE,
    },
    JobStatus.DEPLOYING_SAAS3_TRANSACTOR: {JobStatus.CONFIGURING_SAAS3_DRUNTIME, JobStatus.DONE},
    JobStatus.CONFIGURING_SAAS3_DRUNTIME: {JobStatus.DONE},
    JobStatus.DONE: set(),
}

@dataclass(frozen=True)
class TransitionError(Exception):
    from_status: JobStatus
    to_status: JobStatus
    def __str__(self) -> str:
        return f"invalid transition: {self.from_status.name} -> {self.to_status.name}"

def ensure_transition_allowed(from_status: JobStatus, to_status: JobStatus) -> None:
    allowed = _ALLOWED.get(from_status, set())
    if to_status not in allowed:
        raise TransitionError(from_status=from_status, to_status=to_status)

def is_reached(current: int, target: JobStatus) -> bool:
    """True when a job at `current` has already passed or sits at `target`."""
    return JobStatus(current) >= target
