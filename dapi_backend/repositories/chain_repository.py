from __future__ import annotations

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dapi_backend.db.models import Chain


class ChainRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_chain_id(self, chain_id: int) -> Chain | None:
        res = await self.session.execute(select(Chain).where(Chain.chain_id == chain_id))
        return res.scalar_one_or_none()

    async def find_all(self) -> Sequence[Chain]:
        res = await self.session.execute(select(Chain).order_by(Chain.chain_id.asc()))
        return res.scalars().all()

    async def save(self, entity: Chain) -> Chain:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity
