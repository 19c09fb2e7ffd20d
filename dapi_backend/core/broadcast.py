"""In-process fan-out of job status events.

Delivery is best-effort: every connected subscriber gets its own bounded
queue, and a subscriber that stops draining simply loses messages. The last
events are kept in memory so they can be inspected without a live socket.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

STATUS_EVENT = "status"


class StatusBroadcaster:
    def __init__(self, *, queue_size: int = 100, max_recent: int = 100) -> None:
        self._subscribers: set[asyncio.Queue] = set()
        self._queue_size = queue_size
        self._recent: List[Dict[str, Any]] = []
        self._max_recent = max_recent

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def recent(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        if limit is None:
            return list(self._recent)
        return self._recent[-limit:]

    def emit(self, event: str, data: Dict[str, Any]) -> int:
        """Push one event to every subscriber; returns how many received it."""
        record = {
            "event": event,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        self._recent.append(record)
        if len(self._recent) > self._max_recent:
            self._recent = self._recent[-self._max_recent:]

        delivered = 0
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(record)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("subscriber queue full, dropping %s event", event)
        return delivered


_broadcaster: StatusBroadcaster | None = None


def get_broadcaster() -> StatusBroadcaster:
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = StatusBroadcaster()
    return _broadcaster
