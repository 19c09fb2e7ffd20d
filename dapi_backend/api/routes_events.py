from __future__ import annotations

import asyncio
import contextlib

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from dapi_backend.api.deps import get_broadcaster
from dapi_backend.api.schemas_events import StatusEventResponse
from dapi_backend.core.broadcast import StatusBroadcaster

router = APIRouter(tags=["events"])


@router.get("/events/recent", response_model=list[StatusEventResponse])
async def recent_events(
    limit: int = Query(50, ge=1, le=100),
    broadcaster: StatusBroadcaster = Depends(get_broadcaster),
):
    return broadcaster.recent(limit)


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    try:
        while True:
            record = await queue.get()
            await websocket.send_json({"event": record["event"], "data": record["data"]})
    except WebSocketDisconnect:
        return


@router.websocket("/ws")
async def status_socket(websocket: WebSocket, broadcaster: StatusBroadcaster = Depends(get_broadcaster)):
    # subscribe before accepting so nothing emitted after the handshake is missed
    queue = broadcaster.subscribe()
    sender: asyncio.Task | None = None
    try:
        await websocket.accept()
        sender = asyncio.create_task(_forward(websocket, queue))
        while True:
            # inbound messages are ignored; this only waits for the disconnect
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.unsubscribe(queue)
        if sender is not None:
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sender
