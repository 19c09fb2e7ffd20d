"""
Tests for the dapi / user repositories and the pagination helpers.
"""
import asyncio
import math
import uuid

import pytest

from dapi_backend.db.models import JobStatus, User, Wallet
from dapi_backend.db.session import AsyncSessionLocal
from dapi_backend.repositories.dapi_repository import DapiRepository
from dapi_backend.repositories.pagination import build_page, check_page_args, page_count
from dapi_backend.repositories.user_repository import UserRepository


async def _reload(dapi_id):
    async with AsyncSessionLocal() as s:
        return await DapiRepository(s).find(dapi_id)


class TestPagination:

    @pytest.mark.parametrize("total,size", [(0, 5), (1, 5), (5, 5), (6, 5), (7, 3), (100, 7), (3, 1)])
    def test_page_count_is_ceil(self, total, size):
        assert page_count(total, size) == math.ceil(total / size)

    def test_build_page_shape(self):
        page = build_page(index=2, size=3, items=["a", "b"], total=5)
        assert page == {"size": 3, "page": 2, "count": 2, "list": ["a", "b"], "total": 5, "all": 2}

    @pytest.mark.parametrize("index,size", [(0, 10), (1, 0), (-1, 5)])
    def test_rejects_bad_args(self, index, size):
        with pytest.raises(ValueError):
            check_page_args(index, size)


class TestDapiRepository:

    @pytest.mark.asyncio
    async def test_page_lists_done_only(self, service, make_dapi):
        for i in range(7):
            await make_dapi(status=JobStatus.DONE, name=f"done-{i}")
        await make_dapi(name="pending")
        await make_dapi(status=JobStatus.CONFIGURING_SAAS3_DRUNTIME, name="configuring")

        first = await service.dapis.page(1, 3)
        assert first["total"] == 7
        assert first["all"] == 3
        assert first["count"] == 3

        counts = [(await service.dapis.page(i, 3))["count"] for i in (1, 2, 3)]
        assert counts == [3, 3, 1]
        assert sum(counts) == 7

        beyond = await service.dapis.page(4, 3)
        assert beyond["count"] == 0
        assert beyond["list"] == []

        names = set()
        for i in (1, 2, 3):
            names |= {d.name for d in (await service.dapis.page(i, 3))["list"]}
        assert "pending" not in names and "configuring" not in names
        assert len(names) == 7

    @pytest.mark.asyncio
    async def test_find_count_find_all(self, service, make_dapi):
        a = await make_dapi(name="a")
        await make_dapi(name="b")

        assert await service.dapis.count() == 2
        assert len(await service.dapis.find_all()) == 2
        assert (await service.dapis.find(a.id)).name == "a"
        assert await service.dapis.find("nope") is None

    @pytest.mark.asyncio
    async def test_update_status(self, service, make_dapi):
        dapi = await make_dapi()
        before = dapi.updated_at

        assert await service.dapis.update_status(dapi.id, JobStatus.DEPLOYING_SAAS3_DRUNTIME) is True
        assert dapi.status == JobStatus.DEPLOYING_SAAS3_DRUNTIME

        stored = await _reload(dapi.id)
        assert stored.status == JobStatus.DEPLOYING_SAAS3_DRUNTIME
        assert stored.updated_at >= before

    @pytest.mark.asyncio
    async def test_update_status_never_moves_backwards(self, service, make_dapi):
        dapi = await make_dapi(status=JobStatus.DONE)

        assert await service.dapis.update_status(dapi.id, JobStatus.CONFIGURING_SAAS3_DRUNTIME) is False
        assert await service.dapis.update_status(dapi.id, JobStatus.DONE) is False
        assert (await _reload(dapi.id)).status == JobStatus.DONE

    @pytest.mark.asyncio
    async def test_update_status_missing_row_logs_and_returns_false(self, service, chains, caplog):
        with caplog.at_level("WARNING"):
            assert await service.dapis.update_status("missing", JobStatus.DONE) is False
        assert "update status failed" in caplog.text

    @pytest.mark.asyncio
    async def test_update_stamps_updated_at(self, service, make_dapi):
        dapi = await make_dapi()
        before = dapi.updated_at
        await asyncio.sleep(0.01)

        dapi.description = "changed"
        updated = await service.dapis.update(dapi)

        assert updated.description == "changed"
        stored = await _reload(dapi.id)
        assert stored.description == "changed"
        assert stored.updated_at > before

    @pytest.mark.asyncio
    async def test_delete_by_id(self, service, make_dapi):
        dapi = await make_dapi()

        assert await service.dapis.delete_by_id(dapi.id) == 1
        assert await service.dapis.find(dapi.id) is None
        assert await service.dapis.delete_by_id(dapi.id) == 0


def _user(name, *addresses):
    return User(
        id=str(uuid.uuid4()),
        name=name,
        wallets=[Wallet(id=str(uuid.uuid4()), address=a) for a in addresses],
        dapis=[],
    )


class TestUserRepository:

    @pytest.mark.asyncio
    async def test_save_and_find(self, session):
        repo = UserRepository(session)
        user = await repo.save(_user("alice", "0xa1", "0xa2"))

        found = await repo.find(user.id)
        assert found.name == "alice"
        assert {w.address for w in found.wallets} == {"0xa1", "0xa2"}
        assert found.dapis == []

    @pytest.mark.asyncio
    async def test_find_by_address(self, session):
        repo = UserRepository(session)
        await repo.save(_user("alice", "0xa1"))
        bob = await repo.save(_user("bob", "0xb1"))

        assert (await repo.find_by_address("0xb1")).id == bob.id
        assert await repo.find_by_address("0xzz") is None

    @pytest.mark.asyncio
    async def test_page_and_count(self, session):
        repo = UserRepository(session)
        for i in range(5):
            await repo.save(_user(f"user-{i}", f"0x{i}"))

        assert await repo.count() == 5
        page = await repo.page(2, 2)
        assert page["total"] == 5
        assert page["all"] == 3
        assert page["count"] == 2
        assert (await repo.page(3, 2))["count"] == 1

    @pytest.mark.asyncio
    async def test_update_and_delete(self, session):
        repo = UserRepository(session)
        user = await repo.save(_user("alice", "0xa1"))

        user.name = "alice2"
        await repo.update(user)
        assert (await repo.find(user.id)).name == "alice2"

        assert await repo.delete_by_id(user.id) == 1
        assert await repo.find(user.id) is None
        assert await repo.find_by_address("0xa1") is None

    @pytest.mark.asyncio
    async def test_delete_keeps_dapis_detached(self, session, service, make_dapi):
        repo = UserRepository(session)
        user = await repo.save(_user("alice", "0xa1"))
        dapi = await make_dapi()
        dapi.user_id = user.id
        await service.dapis.update(dapi)

        assert await repo.delete_by_id(user.id) == 1

        stored = await _reload(dapi.id)
        assert stored is not None
        assert stored.user_id is None
