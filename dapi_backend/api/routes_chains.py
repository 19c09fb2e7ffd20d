from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from dapi_backend.api.schemas_chains import ChainCreateRequest, ChainResponse
from dapi_backend.db.models import Chain
from dapi_backend.db.session import get_session
from dapi_backend.repositories.chain_repository import ChainRepository


router = APIRouter(prefix="/chains", tags=["chains"])


@router.get("", response_model=list[ChainResponse])
async def list_chains(session: AsyncSession = Depends(get_session)):
    chains = await ChainRepository(session).find_all()
    return [ChainResponse.model_validate(c, from_attributes=True) for c in chains]


@router.post("", response_model=ChainResponse, status_code=201)
async def register_chain(req: ChainCreateRequest, session: AsyncSession = Depends(get_session)):
    repo = ChainRepository(session)
    if await repo.find_by_chain_id(req.chain_id):
        raise HTTPException(status_code=409, detail=f"chain already registered: {req.chain_id}")
    chain = await repo.save(Chain(id=str(uuid.uuid4()), **req.model_dump()))
    return ChainResponse.model_validate(chain, from_attributes=True)
