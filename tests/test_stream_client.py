import asyncio
import json
import logging

import httpx
import pytest

from conftest import API_BASE, never_wake, wait_until
from events import EventStreamClient, TaskCompletedEvent
from utils.redact import install_log_redaction


def sse(*frames: str) -> httpx.Response:
    body = "".join(frames)
    return httpx.Response(200, headers={"Content-Type": "text/event-stream"}, content=body.encode())


def frame(event, payload) -> str:
    data = payload if isinstance(payload, str) else json.dumps(payload)
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {data}\n\n"


EVENTS_PATH = "/api/v1/projects/p1/events"


@pytest.fixture
def delays():
    return []


@pytest.fixture
def recording_sleep(delays):
    async def sleep(delay: float):
        delays.append(delay)
    return sleep


def make_client(session, service, sleep):
    return EventStreamClient(session, base_url=API_BASE, transport=service.transport, sleep=sleep)


@pytest.mark.asyncio
async def test_connect_without_token_is_skipped(session, service, recording_sleep):
    client = make_client(session, service, recording_sleep)

    await client.connect("p1")
    await asyncio.sleep(0.05)

    assert service.requests == []
    assert client.current_project_id is None
    assert not client.is_connected()


@pytest.mark.asyncio
async def test_stream_url_carries_project_and_token(session, service):
    session.store_tokens("tok en")
    service.add("GET", EVENTS_PATH, sse())
    client = make_client(session, service, never_wake)

    await client.connect("p1")
    await wait_until(lambda: len(service.requests) == 1)
    await client.aclose()

    request = service.requests[0]
    assert request.url.params["token"] == "tok en"
    assert request.headers["Accept"] == "text/event-stream"


@pytest.mark.asyncio
async def test_backoff_sequence_then_gives_up(session, service, recording_sleep, delays):
    session.store_tokens("access")
    service.add("GET", EVENTS_PATH, httpx.Response(500))
    client = make_client(session, service, recording_sleep)

    await client.connect("p1")
    await wait_until(lambda: len(service.requests) == 6 and not client.is_reconnect_pending())
    await asyncio.sleep(0.05)

    assert delays == [1.0, 2.0, 4.0, 8.0, 16.0]
    assert len(service.requests) == 6
    assert not client.is_reconnect_pending()
    assert client.current_project_id == "p1"


@pytest.mark.asyncio
async def test_successful_open_resets_attempts(session, service, recording_sleep, delays):
    session.store_tokens("access")
    service.add("GET", EVENTS_PATH, httpx.Response(500), sse(), httpx.Response(500))
    client = make_client(session, service, recording_sleep)

    await client.connect("p1")
    await wait_until(lambda: len(service.requests) == 7 and not client.is_reconnect_pending())

    # 500 -> 1s, open then end of stream -> 1s again, then 2, 4, 8, 16
    assert delays == [1.0, 1.0, 2.0, 4.0, 8.0, 16.0]


@pytest.mark.asyncio
async def test_explicit_connect_resets_counter(session, service, recording_sleep, delays):
    session.store_tokens("access")
    service.add("GET", EVENTS_PATH, httpx.Response(503))
    client = make_client(session, service, recording_sleep)

    await client.connect("p1")
    await wait_until(lambda: len(service.requests) == 6 and not client.is_reconnect_pending())

    await client.connect("p1")
    await wait_until(lambda: len(service.requests) == 12 and not client.is_reconnect_pending())

    assert delays == [1.0, 2.0, 4.0, 8.0, 16.0] * 2


@pytest.mark.asyncio
async def test_malformed_event_is_dropped_and_stream_continues(session, service):
    session.store_tokens("access")
    completed_payload = {"type": "task-completed", "specId": "s1", "taskId": "t1", "summary": "done"}
    service.add("GET", EVENTS_PATH, sse(
        frame("task-progress", "{not json"),
        frame("task-completed", completed_payload),
    ))
    client = make_client(session, service, never_wake)
    progress, completed = [], []
    client.on("task-progress", progress.append)
    client.on("task-completed", completed.append)

    await client.connect("p1")
    await wait_until(lambda: completed)
    await client.aclose()

    assert progress == []
    assert isinstance(completed[0], TaskCompletedEvent)
    assert completed[0].summary == "done"
    assert completed[0].to_wire() == completed_payload


@pytest.mark.asyncio
async def test_payload_with_wrong_shape_is_dropped(session, service):
    session.store_tokens("access")
    service.add("GET", EVENTS_PATH, sse(
        frame("approval-created", {"approvalId": "a1"}),
        frame("approval-created", {"approvalId": "a2", "specId": "s1", "title": "Review"}),
    ))
    client = make_client(session, service, never_wake)
    received = []
    client.on("approval-created", received.append)

    await client.connect("p1")
    await wait_until(lambda: received)
    await client.aclose()

    assert [e.approval_id for e in received] == ["a2"]
    assert received[0].type == "approval-created"


@pytest.mark.asyncio
async def test_unnamed_frames_dispatch_on_type_and_wildcard_sees_all(session, service):
    session.store_tokens("access")
    service.add("GET", EVENTS_PATH, sse(
        frame(None, {"type": "task-started", "specId": "s1", "taskId": "t1", "taskTitle": "Build"}),
        frame("unknown-event", {"type": "whatever"}),
        frame("task-progress", {"specId": "s1", "taskId": "t1", "message": "half", "percent": 50}),
    ))
    client = make_client(session, service, never_wake)
    started, everything = [], []
    client.on("task-started", started.append)
    client.on_any(everything.append)

    await client.connect("p1")
    await wait_until(lambda: len(everything) == 2)
    await client.aclose()

    assert [e.task_title for e in started] == ["Build"]
    assert [e.type for e in everything] == ["task-started", "task-progress"]
    assert everything[1].percent == 50


@pytest.mark.asyncio
async def test_unsubscribe_removes_only_that_registration(session, service):
    session.store_tokens("access")
    payload = {"approvalId": "a1", "status": "approved"}
    service.add("GET", EVENTS_PATH, sse(frame("approval-responded", payload)))
    client = make_client(session, service, never_wake)
    first, second = [], []
    unsubscribe = client.on("approval-responded", first.append)
    client.on("approval-responded", second.append)

    unsubscribe()
    unsubscribe()

    await client.connect("p1")
    await wait_until(lambda: second)
    await client.aclose()

    assert first == []
    assert second[0].status == "approved"


@pytest.mark.asyncio
async def test_disconnect_cancels_pending_reconnect(session, service):
    session.store_tokens("access")
    service.add("GET", EVENTS_PATH, httpx.Response(500))
    client = make_client(session, service, never_wake)

    await client.connect("p1")
    await wait_until(client.is_reconnect_pending)

    client.disconnect()
    client.disconnect()

    assert not client.is_reconnect_pending()
    assert client.current_project_id is None
    assert client.reconnect_attempts == 0
    await asyncio.sleep(0.05)
    assert len(service.requests) == 1


@pytest.mark.asyncio
async def test_set_base_url_reconnects_on_new_base(session, service):
    session.store_tokens("access")
    service.add("GET", EVENTS_PATH, sse())
    client = make_client(session, service, never_wake)

    await client.set_base_url("https://first.test/")
    assert service.requests == []

    await client.connect("p1")
    await wait_until(lambda: len(service.requests) == 1)

    await client.set_base_url("https://second.test")
    await wait_until(lambda: len(service.requests) == 2)
    await client.aclose()

    assert service.requests[0].url.host == "first.test"
    assert service.requests[1].url.host == "second.test"


@pytest.mark.asyncio
async def test_stream_token_never_reaches_log_records(session, service, caplog):
    install_log_redaction()
    caplog.set_level(logging.DEBUG)
    session.store_tokens("SECRET-ACCESS")
    service.add("GET", EVENTS_PATH, sse())
    client = make_client(session, service, never_wake)

    await client.connect("p1")
    await wait_until(lambda: any(r.name == "httpx" for r in caplog.records))
    await client.aclose()

    httpx_lines = [r.getMessage() for r in caplog.records if r.name == "httpx"]
    assert any("token=[REDACTED]" in line for line in httpx_lines)
    assert all("SECRET-ACCESS" not in r.getMessage() for r in caplog.records)
