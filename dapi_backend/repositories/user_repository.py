from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dapi_backend.db.models import Dapi, User, Wallet
from dapi_backend.repositories.pagination import build_page, check_page_args


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def page(self, index: int, size: int) -> Dict[str, Any]:
        check_page_args(index, size)
        res = await self.session.execute(
            select(User).order_by(User.created_at.desc()).limit(size).offset((index - 1) * size)
        )
        items = res.scalars().all()
        total = await self.session.scalar(select(func.count()).select_from(User))
        return build_page(index=index, size=size, items=items, total=total or 0)

    async def find_all(self) -> Sequence[User]:
        res = await self.session.execute(select(User).order_by(User.created_at.desc()))
        return res.scalars().all()

    async def count(self) -> int:
        return await self.session.scalar(select(func.count()).select_from(User)) or 0

    async def find_by_address(self, address: str) -> User | None:
        res = await self.session.execute(
            select(User).join(User.wallets).where(Wallet.address == address)
        )
        return res.scalars().first()

    async def find(self, id: str) -> User | None:
        res = await self.session.execute(select(User).where(User.id == id))
        return res.scalar_one_or_none()

    async def update(self, entity: User) -> User:
        entity.updated_at = datetime.now(timezone.utc)
        merged = await self.session.merge(entity)
        await self.session.commit()
        return merged

    async def save(self, entity: User) -> User:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def delete_by_id(self, id: str) -> int:
        """Deletes the user and its wallets; its dapis are kept and detached."""
        await self.session.execute(update(Dapi).where(Dapi.user_id == id).values(user_id=None))
        await self.session.execute(delete(Wallet).where(Wallet.user_id == id))
        res = await self.session.execute(delete(User).where(User.id == id))
        await self.session.commit()
        return res.rowcount or 0
