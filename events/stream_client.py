"""
Realtime project event stream (Server-Sent Events) with exponential backoff reconnect.
"""
import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import quote, urlencode

import httpx
from pydantic import ValidationError

from errors import ParseError, StreamError
from oauth import SessionManager
from settings import (
    API_URL,
    API_VERSION_PREFIX,
    CONNECT_TIMEOUT,
    STREAM_MAX_RECONNECT_ATTEMPTS,
    STREAM_RECONNECT_BASE_DELAY,
)
from utils.redact import redact_url
from .models import EVENT_MODELS, WILDCARD, StreamEventBase, stream_event_adapter
from .registry import SubscriptionRegistry, Unsubscribe
from .sse_parser import SSEFrame, SSEParser

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class EventStreamClient:
    """One streaming connection per selected project, fanned out to subscribers

    Connection lifecycle:
    - ``connect`` tears down any previous connection and resets the attempt counter
    - a transport error, non-200 answer or end of stream schedules a reconnect
      after ``base_delay * 2**attempts`` while attempts stay below the cap
    - a successful open resets the counter
    - ``disconnect`` cancels the reader and any pending reconnect
    """

    def __init__(
        self,
        session: SessionManager,
        base_url: str = API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_attempts: int = STREAM_MAX_RECONNECT_ATTEMPTS,
        base_delay: float = STREAM_RECONNECT_BASE_DELAY,
        sleep: Sleep = asyncio.sleep,
    ):
        self.session = session
        self.transport = transport
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.registry = SubscriptionRegistry()
        self._sleep = sleep

        self._project_id: Optional[str] = None
        self._attempts = 0
        self._connected = False
        self._reader: Optional[asyncio.Task] = None
        self._reconnect: Optional[asyncio.Task] = None

    # Subscriptions
    def on(self, event_type: str, callback: Callable[[StreamEventBase], Any]) -> Unsubscribe:
        """Subscribe to one event type (or ``*``); returns the disposer"""
        return self.registry.add(event_type, callback)

    def on_any(self, callback: Callable[[StreamEventBase], Any]) -> Unsubscribe:
        return self.on(WILDCARD, callback)

    # Connection state
    @property
    def current_project_id(self) -> Optional[str]:
        return self._project_id

    @property
    def reconnect_attempts(self) -> int:
        return self._attempts

    def is_connected(self) -> bool:
        return self._connected

    def is_reconnect_pending(self) -> bool:
        return self._reconnect is not None and not self._reconnect.done()

    async def connect(self, project_id: str):
        """Open the event stream for ``project_id``

        Without a stored access token the connection is skipped (logged, no
        error raised).
        """
        self.disconnect()

        if not self.session.get_access_token():
            logger.error("[EventService] Cannot connect: not authenticated")
            return

        self._project_id = project_id
        self._start_reader()

    def disconnect(self):
        """Cancel reader and pending reconnect; forget the project. Idempotent."""
        if self._reconnect is not None:
            self._reconnect.cancel()
            self._reconnect = None

        if self._reader is not None:
            self._reader.cancel()
            self._reader = None
            logger.info("[EventService] SSE connection closed")

        self._connected = False
        self._project_id = None
        self._attempts = 0

    async def aclose(self):
        """Disconnect and wait for the cancelled tasks to finish"""
        tasks = [t for t in (self._reader, self._reconnect) if t is not None]
        self.disconnect()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def set_base_url(self, url: str):
        """Switch service base; an open connection is re-established on it"""
        self.base_url = url.rstrip("/")
        if self._project_id:
            await self.connect(self._project_id)

    def stream_url(self, project_id: str, access_token: str) -> str:
        """Event endpoint for a project. Contains the token: log only via redact_url."""
        query = urlencode({"token": access_token})
        return f"{self.base_url}{API_VERSION_PREFIX}/projects/{quote(project_id, safe='')}/events?{query}"

    # Internals
    def _start_reader(self):
        self._reader = asyncio.create_task(self._read_stream(self._project_id))

    async def _read_stream(self, project_id: str):
        access_token = self.session.get_access_token()
        if not access_token:
            logger.error("[EventService] Cannot reconnect: not authenticated")
            self._reader = None
            return

        url = self.stream_url(project_id, access_token)
        logger.debug(f"[EventService] Opening {redact_url(url)}")

        try:
            await self._consume(url)
            raise StreamError("Event stream closed by server")
        except (httpx.HTTPError, StreamError) as e:
            logger.error(f"[EventService] SSE error: {e}")
        finally:
            if self._reader is asyncio.current_task():
                self._connected = False

        self._handle_error()

    async def _consume(self, url: str):
        timeout = httpx.Timeout(None, connect=CONNECT_TIMEOUT)
        async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
            async with client.stream("GET", url, headers={"Accept": "text/event-stream"}) as response:
                if response.status_code != 200:
                    raise StreamError(f"Event stream returned status {response.status_code}")

                logger.info("[EventService] SSE connection opened")
                self._connected = True
                self._attempts = 0

                parser = SSEParser()
                async for chunk in response.aiter_text():
                    for frame in parser.feed(chunk):
                        self._dispatch(frame)
                parser.flush()

    def _handle_error(self):
        self._reader = None

        if self._attempts < self.max_attempts and self._project_id:
            delay = self.base_delay * (2 ** self._attempts)
            self._attempts += 1
            logger.info(
                f"[EventService] Reconnecting in {delay}s "
                f"(attempt {self._attempts}/{self.max_attempts})"
            )
            self._reconnect = asyncio.create_task(self._reconnect_after(delay))
        else:
            logger.error("[EventService] Max reconnect attempts reached")

    async def _reconnect_after(self, delay: float):
        await self._sleep(delay)
        self._reconnect = None
        if self._project_id:
            self._start_reader()

    def _decode(self, frame: SSEFrame) -> StreamEventBase:
        """Turn one frame into a typed event

        Raises:
            ParseError: Invalid JSON or a payload not matching the event shape
        """
        try:
            payload = json.loads(frame.data)
        except json.JSONDecodeError as e:
            raise ParseError(f"Failed to parse {frame.name} event: {e}")

        try:
            if frame.name == "message":
                return stream_event_adapter.validate_python(payload)
            if isinstance(payload, dict):
                payload.setdefault("type", frame.name)
            return EVENT_MODELS[frame.name].model_validate(payload)
        except ValidationError as e:
            raise ParseError(f"Invalid {frame.name} event: {e.error_count()} validation error(s)")

    def _dispatch(self, frame: SSEFrame):
        if frame.name != "message" and frame.name not in EVENT_MODELS:
            logger.debug(f"[EventService] Ignoring unknown event '{frame.name}'")
            return

        try:
            event = self._decode(frame)
        except ParseError as e:
            logger.error(f"[EventService] {e.message}")
            return

        self.registry.notify(event.type, event)
