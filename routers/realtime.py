import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from core.errors import TransportError
from services.backend import BackendClient
from services.memories import list_memories
from services.notes import load_note_forest
from services.realtime import LiveList
from services.uploads import list_photos

router = APIRouter(tags=["realtime"])
logger = logging.getLogger("uvicorn.error")

SNAPSHOTS: Dict[str, Callable[[BackendClient], Awaitable[Any]]] = {
    "photos": list_photos,
    "memories": list_memories,
    "notes": load_note_forest,
}


async def _pump(websocket: WebSocket, outbox: asyncio.Queue, table: str) -> None:
    while True:
        snapshot = await outbox.get()
        await websocket.send_json({"table": table, "data": jsonable_encoder(snapshot)})


async def _wait_for_close(websocket: WebSocket) -> None:
    # Client messages carry nothing; only the disconnect matters
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/realtime/{table}")
async def realtime(websocket: WebSocket, table: str):
    """
    Streams a full snapshot of the table on connect and again after every change.
    """
    loader = SNAPSHOTS.get(table)
    if loader is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    backend: BackendClient = websocket.app.state.backend
    await websocket.accept()

    outbox: asyncio.Queue = asyncio.Queue()

    async def push(snapshot: Any) -> None:
        outbox.put_nowait(snapshot)

    live = LiveList(backend.feed, table, lambda: loader(backend), listener=push)
    try:
        await live.open()
    except TransportError as exc:
        live.close()
        logger.exception("Realtime %s: initial load failed: %s", table, exc)
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    logger.info("Realtime %s: client connected", table)
    tasks = [
        asyncio.create_task(_pump(websocket, outbox, table)),
        asyncio.create_task(_wait_for_close(websocket)),
    ]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Realtime %s: stream stopped: %s", table, exc, exc_info=exc)
    finally:
        for task in tasks:
            task.cancel()
        live.close()
        logger.info("Realtime %s: client disconnected", table)
