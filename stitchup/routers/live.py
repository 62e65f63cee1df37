from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from stitchup.core.database import get_db
from stitchup.deps import authenticate_token
from stitchup.models.user import User
from stitchup.services.enquiries import get_conversation, list_enquiries_for
from stitchup.services.live import enquiries_channel, enquiry_channel, orders_channel, session_channel, snapshot_hub
from stitchup.services.orders import list_orders_for, serialize_order
from stitchup.services.presence import set_currently_chatting
from stitchup.services.session import build_session_context, serialize_session
from stitchup.services.threads import thread_key_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["live"])

# Application close codes sent before the socket is accepted.
CLOSE_UNAUTHORIZED = 4401
CLOSE_BAD_REQUEST = 4400


def _envelope(kind: str, data: Any) -> dict:
    return {"type": kind, "data": data}


async def _stream(
    websocket: WebSocket,
    channel: str,
    initial: Any,
    on_close: Optional[Callable[[], None]] = None,
) -> None:
    """Send ``initial`` then every snapshot published on ``channel`` until the client leaves."""
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def _on_snapshot(snapshot: Any) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, snapshot)

    unsubscribe = snapshot_hub.subscribe(channel, _on_snapshot)

    async def _pump() -> None:
        while True:
            snapshot = await queue.get()
            await websocket.send_json(_envelope("snapshot", snapshot))

    pump: asyncio.Task | None = None
    try:
        await websocket.send_json(_envelope("snapshot", initial))
        pump = asyncio.create_task(_pump())
        while True:
            text = await websocket.receive_text()
            if text.strip() == "ping":
                await websocket.send_json(_envelope("pong", {}))
    except WebSocketDisconnect:
        logger.debug("Live subscriber left %s", channel)
    finally:
        unsubscribe()
        if pump is not None:
            pump.cancel()
        if on_close is not None:
            on_close()


async def _authenticate(websocket: WebSocket, token: str | None, db: Session) -> User | None:
    user = authenticate_token(token, db)
    if not user:
        await websocket.close(code=CLOSE_UNAUTHORIZED)
        return None
    return user


@router.websocket("/enquiries")
async def enquiry_list_stream(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    user = await _authenticate(websocket, token, db)
    if not user:
        return
    await websocket.accept()
    await _stream(websocket, enquiries_channel(user.role, user.id), list_enquiries_for(db, user))


@router.websocket("/enquiries/{counterpart_id}")
async def enquiry_stream(
    websocket: WebSocket,
    counterpart_id: str,
    token: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    user = await _authenticate(websocket, token, db)
    if not user:
        return
    try:
        key = thread_key_for(user, counterpart_id)
    except ValueError:
        await websocket.close(code=CLOSE_BAD_REQUEST)
        return

    await websocket.accept()
    on_close = None
    if user.role == "tailor":
        tailor_id = user.id
        set_currently_chatting(db, tailor_id, True)

        def on_close() -> None:
            set_currently_chatting(db, tailor_id, False)

    await _stream(websocket, enquiry_channel(key), get_conversation(db, key), on_close)


@router.websocket("/orders")
async def order_stream(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    user = await _authenticate(websocket, token, db)
    if not user:
        return
    await websocket.accept()
    initial = [serialize_order(order) for order in list_orders_for(db, user)]
    await _stream(websocket, orders_channel(user.role, user.id), initial)


@router.websocket("/session")
async def session_stream(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    user = await _authenticate(websocket, token, db)
    if not user:
        return
    await websocket.accept()
    await _stream(websocket, session_channel(user.id), serialize_session(build_session_context(db, user)))
