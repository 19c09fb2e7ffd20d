from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dapi_backend.db.models import Dapi, JobStatus
from dapi_backend.repositories.pagination import build_page, check_page_args

logger = logging.getLogger(__name__)


class DapiRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def page(self, index: int, size: int) -> Dict[str, Any]:
        """Finished dapis only, newest first."""
        check_page_args(index, size)
        res = await self.session.execute(
            select(Dapi)
            .where(Dapi.status == JobStatus.DONE)
            .order_by(Dapi.created_at.desc())
            .limit(size)
            .offset((index - 1) * size)
        )
        items = res.scalars().all()

        total = await self.session.scalar(
            select(func.count()).select_from(Dapi).where(Dapi.status == JobStatus.DONE)
        )
        return build_page(index=index, size=size, items=items, total=total or 0)

    async def find_all(self) -> Sequence[Dapi]:
        res = await self.session.execute(select(Dapi).order_by(Dapi.created_at.desc()))
        return res.scalars().all()

    async def count(self) -> int:
        return await self.session.scalar(select(func.count()).select_from(Dapi)) or 0

    async def find(self, id: str, *, fresh: bool = False) -> Dapi | None:
        """`fresh` overwrites an already loaded instance with the stored row."""
        stmt = select(Dapi).where(Dapi.id == id)
        if fresh:
            stmt = stmt.execution_options(populate_existing=True)
        res = await self.session.execute(stmt)
        return res.scalar_one_or_none()

    async def update(self, entity: Dapi) -> Dapi:
        entity.updated_at = datetime.now(timezone.utc)
        merged = await self.session.merge(entity)
        await self.session.commit()
        return merged

    async def save(self, entity: Dapi) -> Dapi:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def update_status(self, id: str, status: int) -> bool:
        """Forward only: a row already at or past `status` is left alone."""
        res = await self.session.execute(
            update(Dapi)
            .where(Dapi.id == id, Dapi.status < int(status))
            .values(status=int(status), updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session="evaluate")
        )
        await self.session.commit()
        if res.rowcount:
            logger.info("update status success: dapi=%s status=%s", id, JobStatus(status).name)
            return True
        logger.warning("update status failed: dapi=%s status=%s", id, int(status))
        return False

    async def delete_by_id(self, id: str) -> int:
        res = await self.session.execute(delete(Dapi).where(Dapi.id == id))
        await self.session.commit()
        return res.rowcount or 0
