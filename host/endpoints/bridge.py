"""
WebSocket endpoint that acts as the UI surface of the message bridge.
"""
import asyncio
import logging
import secrets
from typing import Optional, Sequence

from fastapi import APIRouter, WebSocket, status
from starlette.websockets import WebSocketDisconnect

from bridge.surface import WebSocketSurface

logger = logging.getLogger(__name__)

router = APIRouter()

BRIDGE_KEY_PARAM = "key"


def origin_allowed(origin: Optional[str], allowed_origins: Sequence[str]) -> bool:
    """Non-browser clients send no Origin; browsers must be on the allowlist"""
    return origin is None or origin in allowed_origins


def key_matches(presented: Optional[str], expected: str) -> bool:
    if not presented:
        return False
    return secrets.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))


@router.websocket("/bridge")
async def bridge_socket(websocket: WebSocket):
    """Attach the client as the UI surface and feed its messages to the sidebar

    The handshake is refused with 1008 (policy violation) for a foreign
    browser origin or a missing/wrong bridge key. Each inbound message runs
    in its own task so a pending OAuth login does not block other commands.
    """
    services = websocket.app.state.services

    origin = websocket.headers.get("origin")
    if not origin_allowed(origin, services.allowed_origins):
        logger.warning(f"[Bridge] Refused connection from origin {origin}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    if not key_matches(websocket.query_params.get(BRIDGE_KEY_PARAM), services.bridge_key):
        logger.warning("[Bridge] Refused connection without a valid bridge key")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    sidebar = services.sidebar
    await websocket.accept()

    surface = WebSocketSurface(websocket)
    surface.start()
    await sidebar.attach(surface)
    logger.info("[Bridge] UI surface attached")

    handlers = set()
    try:
        while True:
            message = await websocket.receive_text()
            task = asyncio.create_task(sidebar.receive(message))
            handlers.add(task)
            task.add_done_callback(handlers.discard)
    except WebSocketDisconnect:
        logger.info("[Bridge] UI surface disconnected")
    finally:
        sidebar.detach(surface)
        await surface.close()
