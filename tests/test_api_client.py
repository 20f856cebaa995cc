import httpx
import pytest

from conftest import request_json
from errors import AuthError, ParseError, RequestError


@pytest.mark.asyncio
async def test_request_without_token_raises_auth_error(api, service):
    with pytest.raises(AuthError, match="Not authenticated"):
        await api.request("GET", "/projects")
    assert service.requests == []


@pytest.mark.asyncio
async def test_request_sends_bearer_and_returns_json(api, session, service):
    session.store_tokens("access", "refresh")
    service.json("GET", "/api/v1/projects", {"projects": [{"id": "p1"}]})

    assert await api.request("GET", "/projects") == {"projects": [{"id": "p1"}]}

    request = service.requests[0]
    assert request.headers["Authorization"] == "Bearer access"
    assert request.headers["Content-Type"] == "application/json"
    assert request.content == b""


@pytest.mark.asyncio
async def test_401_refreshes_once_and_retries_once(api, session, service):
    session.store_tokens("stale", "refresh")
    service.add(
        "GET", "/api/v1/projects",
        httpx.Response(401, json={"message": "expired"}),
        httpx.Response(200, json={"projects": []}),
    )
    service.json("POST", "/api/auth/refresh", {"accessToken": "fresh", "refreshToken": "refresh-2"})

    assert await api.request("GET", "/projects") == {"projects": []}

    attempts = service.calls("GET", "/api/v1/projects")
    assert len(attempts) == 2
    assert len(service.calls("POST", "/api/auth/refresh")) == 1
    assert attempts[0].headers["Authorization"] == "Bearer stale"
    assert attempts[1].headers["Authorization"] == "Bearer fresh"


@pytest.mark.asyncio
async def test_failed_refresh_surfaces_original_401(api, session, service):
    session.store_tokens("stale", "refresh")
    service.json("GET", "/api/v1/projects", {"message": "Token expired"}, status_code=401)
    service.json("POST", "/api/auth/refresh", {"message": "invalid"}, status_code=401)

    with pytest.raises(RequestError) as excinfo:
        await api.request("GET", "/projects")

    assert excinfo.value.status_code == 401
    assert excinfo.value.message == "Token expired"
    assert len(service.calls("GET", "/api/v1/projects")) == 1
    assert not session.is_authenticated()


@pytest.mark.asyncio
async def test_error_message_falls_back_to_error_field_then_status(api, session, service):
    session.store_tokens("access")
    service.json("GET", "/api/v1/specs/s1", {"error": "Spec not found"}, status_code=404)
    service.add("GET", "/api/v1/tasks/t1", httpx.Response(500, text="<html>boom</html>"))

    with pytest.raises(RequestError, match="Spec not found"):
        await api.get_spec("s1")
    with pytest.raises(RequestError, match="Request failed: 500"):
        await api.get_task("t1")


@pytest.mark.asyncio
async def test_transport_failure_becomes_request_error(api, session, service):
    session.store_tokens("access")

    def fail(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    service.add("GET", "/api/v1/projects", fail)

    with pytest.raises(RequestError):
        await api.list_projects()


@pytest.mark.asyncio
async def test_invalid_json_body_becomes_parse_error(api, session, service):
    session.store_tokens("access")
    service.add("GET", "/api/v1/projects", httpx.Response(200, text="not json"))

    with pytest.raises(ParseError):
        await api.list_projects()


@pytest.mark.asyncio
async def test_missing_envelope_key_becomes_parse_error(api, session, service):
    session.store_tokens("access")
    service.json("GET", "/api/v1/me", {"id": "u1"})

    with pytest.raises(ParseError, match="user"):
        await api.get_me()


@pytest.mark.asyncio
async def test_status_filter_is_omitted_for_all(api, session, service):
    session.store_tokens("access")
    service.json("GET", "/api/v1/projects/p1/tasks", {"tasks": []})

    await api.list_tasks("p1", "all")
    await api.list_tasks("p1", "in_progress")

    first, second = service.calls("GET", "/api/v1/projects/p1/tasks")
    assert first.url.query == b""
    assert second.url.params["status"] == "in_progress"


@pytest.mark.asyncio
async def test_respond_to_approval_sends_json_body(api, session, service):
    session.store_tokens("access")
    service.json("PATCH", "/api/v1/approvals/a1/respond", {"approval": {"id": "a1", "status": "approved"}})

    result = await api.respond_to_approval("a1", "approved", "looks good")

    assert result == {"id": "a1", "status": "approved"}
    assert request_json(service.requests[0]) == {"status": "approved", "response": "looks good"}


@pytest.mark.asyncio
async def test_set_base_url_strips_trailing_slash(api, session, service):
    session.store_tokens("access")
    service.json("GET", "/api/v1/me", {"user": {"id": "u1"}})

    api.set_base_url("https://other.specmanager.test/")
    await api.get_me()

    assert str(service.requests[0].url) == "https://other.specmanager.test/api/v1/me"


@pytest.mark.asyncio
async def test_task_lifecycle_endpoints(api, session, service):
    session.store_tokens("access")
    service.json("PATCH", "/api/v1/tasks/t1/start", {"task": {"id": "t1", "status": "in_progress"}})
    service.json("POST", "/api/v1/tasks/t1/progress", {"ok": True})
    service.json("PATCH", "/api/v1/tasks/t1/complete", {"task": {"id": "t1", "status": "done"}})

    assert (await api.start_task("t1"))["status"] == "in_progress"
    await api.report_progress("t1", "halfway", 50)
    done = await api.complete_task("t1", "Added parser", ["parser.py"])

    assert done == {"id": "t1", "status": "done"}
    progress, complete = service.requests[1], service.requests[2]
    assert request_json(progress) == {"message": "halfway", "percent": 50}
    assert request_json(complete) == {
        "summary": "Added parser",
        "filesModified": ["parser.py"],
        "implementation": None,
    }


@pytest.mark.asyncio
async def test_get_project_by_repo_encodes_full_name(api, session, service):
    session.store_tokens("access")
    service.json("GET", "/api/v1/projects/by-repo", {"project": {"id": "p1"}})

    assert await api.get_project_by_repo("octo/widgets") == {"id": "p1"}
    assert service.requests[0].url.params["repo"] == "octo/widgets"


@pytest.mark.asyncio
async def test_respond_to_approval_rejects_unknown_status(api, session, service):
    session.store_tokens("access")

    with pytest.raises(ValueError):
        await api.respond_to_approval("a1", "maybe")
    assert service.requests == []
