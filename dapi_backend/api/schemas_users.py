from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from dapi_backend.db.models import JobStatus


class UserCreateRequest(BaseModel):
    name: str | None = None
    wallets: list[str] = Field(default_factory=list)


class UserUpdateRequest(BaseModel):
    name: str | None = None


class WalletResponse(BaseModel):
    id: str
    address: str


class DapiBrief(BaseModel):
    id: str
    name: str
    status: JobStatus


class UserResponse(BaseModel):
    id: str
    name: str | None = None
    wallets: list[WalletResponse] = Field(default_factory=list)
    dapis: list[DapiBrief] = Field(default_factory=list)
    created_at: datetime | None = None


class UserPage(BaseModel):
    size: int
    page: int
    count: int
    list: List[UserResponse] = Field(default_factory=list)
    total: int
    all: int
