from __future__ import annotations


class DapiError(Exception):
    pass


class ChainNotSupportedError(DapiError):
    def __init__(self, message: str = "This chain is not supported.") -> None:
        super().__init__(message)


class JobNotFoundError(DapiError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"dapi not found: {job_id}")
        self.job_id = job_id


class StatusUpdateError(DapiError):
    """Persisting a status change affected no row."""

    def __init__(self, job_id: str, status: int) -> None:
        super().__init__(f"status update failed for {job_id} (status={status})")
        self.job_id = job_id
        self.status = status


class UnsupportedWorkflowError(DapiError):
    pass


class ArtifactError(DapiError):
    pass


class DeploymentError(DapiError):
    pass
