import asyncio
import json
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest

from api import ApiClient
from oauth import SessionManager
from utils.storage import SecretStore, StateStore

API_BASE = "https://api.specmanager.test"

Handler = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeSpecManagerService:
    """Routes httpx requests to canned responses by (method, path)"""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[Handler]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, *responses: Handler) -> None:
        """Queue responses for a route; the last one repeats once the queue is drained"""
        self.routes.setdefault((method.upper(), path), []).extend(responses)

    def json(self, method: str, path: str, body: Any, status_code: int = 200) -> None:
        self.add(method, path, httpx.Response(status_code, json=body))

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": f"No route for {request.method} {request.url.path}"})
        handler = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(handler):
            return handler(request)
        # Fresh response per request; a streamed body can only be consumed once
        return httpx.Response(handler.status_code, headers=handler.headers, content=handler.content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content.decode())


@pytest.fixture
def service() -> FakeSpecManagerService:
    return FakeSpecManagerService()


@pytest.fixture
def secrets(tmp_path) -> SecretStore:
    return SecretStore(str(tmp_path / "secrets.json"))


@pytest.fixture
def state_store(tmp_path) -> StateStore:
    return StateStore(str(tmp_path / "state.json"))


@pytest.fixture
def opened_urls() -> List[str]:
    return []


@pytest.fixture
def session(secrets, state_store, service, opened_urls) -> SessionManager:
    def open_url(url: str) -> bool:
        opened_urls.append(url)
        return True

    return SessionManager(secrets, state_store, transport=service.transport, open_url=open_url)


@pytest.fixture
def api(session, service) -> ApiClient:
    return ApiClient(session, base_url=API_BASE, transport=service.transport)


class RecordingSurface:
    """UI surface that keeps every delivered message"""

    def __init__(self) -> None:
        self.messages: List[Dict[str, Any]] = []

    def post_message(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)

    def of_type(self, message_type: str) -> List[Dict[str, Any]]:
        return [m for m in self.messages if m["type"] == message_type]

    @property
    def types(self) -> List[str]:
        return [m["type"] for m in self.messages]


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


async def never_wake(delay: float) -> None:
    """Reconnect sleep that never returns, so a test sees exactly one connection"""
    await asyncio.Event().wait()


async def wait_until(predicate: Callable[[], Any], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)
