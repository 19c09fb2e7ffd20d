from pydantic import BaseModel
from dapi_backend.db.models import ChainType


class ChainCreateRequest(BaseModel):
    chain_id: int
    name: str
    type: ChainType
    http_provider: str | None = None
    ws_provider: str | None = None
    cluster_id: str | None = None
    pruntime: str | None = None


class ChainResponse(ChainCreateRequest):
    id: str
