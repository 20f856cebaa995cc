"""UI surface backed by a FastAPI WebSocket"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

logger = logging.getLogger(__name__)


class WebSocketSurface:
    """Ordered outbox in front of a WebSocket

    ``post_message`` never blocks; a single sender task drains the outbox so
    messages reach the client in posting order.
    """

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self._outbox: "asyncio.Queue[Optional[Dict[str, Any]]]" = asyncio.Queue()
        self._sender: Optional[asyncio.Task] = None

    def start(self):
        if self._sender is None:
            self._sender = asyncio.create_task(self._drain())

    def post_message(self, message: Dict[str, Any]):
        self._outbox.put_nowait(message)

    async def _drain(self):
        while True:
            message = await self._outbox.get()
            if message is None:
                return
            try:
                await self.websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.info(f"[Bridge] UI surface went away: {e}")
                return

    async def close(self):
        """Stop the sender after everything already posted has been sent"""
        if self._sender is None:
            return
        self._outbox.put_nowait(None)
        await asyncio.gather(self._sender, return_exceptions=True)
        self._sender = None
