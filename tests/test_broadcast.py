import asyncio

import pytest

from dapi_backend.core.broadcast import STATUS_EVENT, StatusBroadcaster


def test_emit_without_subscribers_is_kept_in_recent():
    b = StatusBroadcaster()
    assert b.emit(STATUS_EVENT, {"jobId": "j1"}) == 0
    assert [r["data"] for r in b.recent()] == [{"jobId": "j1"}]


@pytest.mark.asyncio
async def test_every_subscriber_gets_the_event():
    b = StatusBroadcaster()
    q1, q2 = b.subscribe(), b.subscribe()

    assert b.emit(STATUS_EVENT, {"jobId": "j1", "status": "DONE", "progress": 90}) == 2

    for q in (q1, q2):
        record = await asyncio.wait_for(q.get(), timeout=1)
        assert record["event"] == "status"
        assert record["data"]["progress"] == 90


@pytest.mark.asyncio
async def test_unsubscribed_queue_gets_nothing():
    b = StatusBroadcaster()
    q = b.subscribe()
    b.unsubscribe(q)

    b.emit(STATUS_EVENT, {"jobId": "j1"})

    assert q.empty()
    assert b.subscriber_count == 0


@pytest.mark.asyncio
async def test_full_queue_drops_instead_of_blocking():
    b = StatusBroadcaster(queue_size=1)
    slow = b.subscribe()
    fast = b.subscribe()

    b.emit(STATUS_EVENT, {"n": 1})
    fast.get_nowait()
    delivered = b.emit(STATUS_EVENT, {"n": 2})

    assert delivered == 1
    assert slow.qsize() == 1
    assert slow.get_nowait()["data"] == {"n": 1}


def test_recent_is_bounded():
    b = StatusBroadcaster(max_recent=3)
    for n in range(5):
        b.emit(STATUS_EVENT, {"n": n})

    assert [r["data"]["n"] for r in b.recent()] == [2, 3, 4]
    assert [r["data"]["n"] for r in b.recent(limit=1)] == [4]
