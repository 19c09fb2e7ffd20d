from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dapi_backend.api.schemas_users import UserCreateRequest, UserPage, UserResponse, UserUpdateRequest
from dapi_backend.db.models import User, Wallet
from dapi_backend.db.session import get_session
from dapi_backend.repositories.user_repository import UserRepository


router = APIRouter(prefix="/users", tags=["users"])


def get_user_repository(session: AsyncSession = Depends(get_session)) -> UserRepository:
    return UserRepository(session)


async def _require_user(repo: UserRepository, user_id: str) -> User:
    user = await repo.find(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="user not found")
    return user


@router.get("", response_model=UserPage)
async def page_users(
    index: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    repo: UserRepository = Depends(get_user_repository),
):
    page = await repo.page(index, size)
    page["list"] = [UserResponse.model_validate(u, from_attributes=True) for u in page["list"]]
    return UserPage(**page)


@router.get("/all", response_model=list[UserResponse])
async def list_users(repo: UserRepository = Depends(get_user_repository)):
    return [UserResponse.model_validate(u, from_attributes=True) for u in await repo.find_all()]


@router.get("/count")
async def count_users(repo: UserRepository = Depends(get_user_repository)):
    return {"count": await repo.count()}


@router.get("/address/{address}", response_model=UserResponse)
async def get_user_by_address(address: str, repo: UserRepository = Depends(get_user_repository)):
    user = await repo.find_by_address(address)
    if not user:
        raise HTTPException(status_code=404, detail="user not found")
    return UserResponse.model_validate(user, from_attributes=True)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, repo: UserRepository = Depends(get_user_repository)):
    user = await _require_user(repo, user_id)
    return UserResponse.model_validate(user, from_attributes=True)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(req: UserCreateRequest, repo: UserRepository = Depends(get_user_repository)):
    for address in req.wallets:
        if await repo.find_by_address(address):
            raise HTTPException(status_code=409, detail=f"wallet already registered: {address}")

    user = User(
        id=str(uuid.uuid4()),
        name=req.name,
        wallets=[Wallet(id=str(uuid.uuid4()), address=a) for a in req.wallets],
        dapis=[],
    )
    user = await repo.save(user)
    return UserResponse.model_validate(user, from_attributes=True)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(user_id: str, req: UserUpdateRequest, repo: UserRepository = Depends(get_user_repository)):
    user = await _require_user(repo, user_id)
    user.name = req.name
    user = await repo.update(user)
    return UserResponse.model_validate(user, from_attributes=True)


@router.delete("/{user_id}")
async def delete_user(user_id: str, repo: UserRepository = Depends(get_user_repository)):
    if not await repo.delete_by_id(user_id):
        raise HTTPException(status_code=404, detail="user not found")
    return {"deleted": user_id}
