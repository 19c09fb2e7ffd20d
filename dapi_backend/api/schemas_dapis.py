from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from dapi_backend.db.models import JobStatus


class Web2InfoIn(BaseModel):
    uri: str
    method: str = "get"
    auth_type: str | None = None


class OracleInfoIn(BaseModel):
    source_chain_id: int
    target_chain_id: int
    web2_info: Web2InfoIn


class DapiCreateRequest(BaseModel):
    name: str
    description: str | None = None
    wallet_address: str
    user_id: str | None = None
    oracle_info: OracleInfoIn


class Web2InfoResponse(BaseModel):
    id: str
    uri: str
    method: str
    auth_type: str | None = None


class OracleInfoResponse(BaseModel):
    id: str
    source_chain_id: int
    target_chain_id: int
    address: str | None = None
    anchor: str | None = None
    web2_info: Web2InfoResponse


class DapiResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    wallet_address: str
    status: JobStatus
    workflow: str | None = None
    user_id: str | None = None
    oracle_info: OracleInfoResponse
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DapiPage(BaseModel):
    size: int
    page: int
    count: int
    list: List[DapiResponse] = Field(default_factory=list)
    total: int
    all: int
