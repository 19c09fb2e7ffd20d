from pydantic import BaseModel
from dapi_backend.db.models import JobStatus

class StatusEventData(BaseModel):
    jobId: str
    status: str
    progress: int

class StatusEventResponse(BaseModel):
    event: str
    data: StatusEventData
    timestamp: str

class StatusNameResponse(BaseModel):
    value: JobStatus
    name: str
