"""REST client with bearer authentication and one silent refresh-and-retry"""

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

import httpx

from errors import AuthError, ParseError, RequestError
from oauth import SessionManager
from settings import API_URL, API_VERSION_PREFIX
from utils.http import bearer_headers, default_timeout, error_message_from_response
from utils.redact import redact_headers

logger = logging.getLogger(__name__)

APPROVAL_STATUSES = ("approved", "rejected", "needs-revision")


def _status_query(status: Optional[str]) -> str:
    if not status or status == "all":
        return ""
    return f"?{urlencode({'status': status})}"


def _unwrap(data: Any, key: str) -> Any:
    """Pull the payload out of the service envelope (e.g. {"projects": [...]})"""
    if not isinstance(data, dict) or key not in data:
        raise ParseError(f"Unexpected response shape: missing '{key}'")
    return data[key]


class ApiClient:
    """Generic authenticated client plus thin wrappers for the business endpoints

    Results are returned as parsed JSON; no schema validation is performed.
    """

    def __init__(
        self,
        session: SessionManager,
        base_url: str = API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self.transport = transport
        self.base_url = base_url.rstrip("/")

    def set_base_url(self, url: str):
        """Use a new service base for all subsequent calls"""
        self.base_url = url.rstrip("/")

    async def request(self, method: str, path: str, body: Any = None) -> Any:
        """Send an authenticated request

        On a 401 the access token is refreshed once and the request retried
        once with the new token.

        Raises:
            AuthError: No stored access token
            RequestError: Non-2xx response, or transport failure
        """
        access_token = self.session.get_access_token()
        if not access_token:
            raise AuthError("Not authenticated")

        method = method.upper()
        url = f"{self.base_url}{API_VERSION_PREFIX}{path}"
        content = None
        if body is not None and method != "GET":
            content = json.dumps(body)

        logger.debug(f"[Api] {method} {url} headers={redact_headers(bearer_headers(access_token))}")

        try:
            async with httpx.AsyncClient(timeout=default_timeout(), transport=self.transport) as client:
                response = await client.request(method, url, content=content, headers=bearer_headers(access_token))

                if response.status_code == 401:
                    logger.info(f"[Api] {method} {path} unauthorized, refreshing token")
                    new_token = await self.session.refresh(self.base_url)
                    if new_token:
                        response = await client.request(method, url, content=content, headers=bearer_headers(new_token))
        except httpx.HTTPError as e:
            logger.error(f"[Api] {method} {path} failed: {e}")
            raise RequestError(f"Request failed: {e}") from e

        if not response.is_success:
            message = error_message_from_response(response, "message", "error")
            logger.warning(f"[Api] {method} {path} - {response.status_code}")
            raise RequestError(message or f"Request failed: {response.status_code}", response.status_code)

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ParseError(f"Invalid JSON in response to {method} {path}") from e

    # ============ User ============

    async def get_me(self) -> Dict[str, Any]:
        data = await self.request("GET", "/me")
        return _unwrap(data, "user")

    # ============ Projects ============

    async def list_projects(self) -> List[Dict[str, Any]]:
        data = await self.request("GET", "/projects")
        return _unwrap(data, "projects")

    async def get_project(self, project_id: str) -> Dict[str, Any]:
        data = await self.request("GET", f"/projects/{quote(project_id, safe='')}")
        return _unwrap(data, "project")

    async def get_project_by_repo(self, repo_full_name: str) -> Dict[str, Any]:
        """Look up a project by GitHub repository full name (owner/repo)"""
        data = await self.request("GET", f"/projects/by-repo?{urlencode({'repo': repo_full_name})}")
        return _unwrap(data, "project")

    # ============ Specs ============

    async def list_specs(self, project_id: str) -> List[Dict[str, Any]]:
        data = await self.request("GET", f"/projects/{quote(project_id, safe='')}/specs")
        return _unwrap(data, "specs")

    async def get_spec(self, spec_id: str) -> Dict[str, Any]:
        data = await self.request("GET", f"/specs/{quote(spec_id, safe='')}")
        return _unwrap(data, "spec")

    # ============ Tasks ============

    async def list_tasks(self, project_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        data = await self.request("GET", f"/projects/{quote(project_id, safe='')}/tasks{_status_query(status)}")
        return _unwrap(data, "tasks")

    async def list_spec_tasks(self, spec_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        data = await self.request("GET", f"/specs/{quote(spec_id, safe='')}/tasks{_status_query(status)}")
        return _unwrap(data, "tasks")

    async def get_task(self, task_id: str) -> Dict[str, Any]:
        """Task with its spec context"""
        data = await self.request("GET", f"/tasks/{quote(task_id, safe='')}")
        return _unwrap(data, "task")

    async def start_task(self, task_id: str) -> Dict[str, Any]:
        data = await self.request("PATCH", f"/tasks/{quote(task_id, safe='')}/start")
        return _unwrap(data, "task")

    async def complete_task(
        self,
        task_id: str,
        summary: str,
        files_modified: List[str],
        implementation: Optional[str] = None,
    ) -> Dict[str, Any]:
        data = await self.request("PATCH", f"/tasks/{quote(task_id, safe='')}/complete", {
            "summary": summary,
            "filesModified": files_modified,
            "implementation": implementation,
        })
        return _unwrap(data, "task")

    async def report_progress(self, task_id: str, message: str, percent: Optional[float] = None):
        await self.request("POST", f"/tasks/{quote(task_id, safe='')}/progress", {
            "message": message,
            "percent": percent,
        })

    # ============ Approvals ============

    async def list_approvals(self, project_id: str) -> List[Dict[str, Any]]:
        data = await self.request("GET", f"/projects/{quote(project_id, safe='')}/approvals")
        return _unwrap(data, "approvals")

    async def respond_to_approval(
        self,
        approval_id: str,
        status: str,
        response: Optional[str] = None,
    ) -> Dict[str, Any]:
        if status not in APPROVAL_STATUSES:
            raise ValueError(f"Unsupported approval status: {status}")
        data = await self.request("PATCH", f"/approvals/{quote(approval_id, safe='')}/respond", {
            "status": status,
            "response": response,
        })
        return _unwrap(data, "approval")
