"""
Sidebar host: turns UI commands into session, REST and stream calls and
posts the results back over the message bridge.
"""
import asyncio
import functools
import logging
import webbrowser
from typing import Any, Callable, Dict, List, Optional, Set
from urllib.parse import urlsplit

from api import ApiClient
from bridge.message_bridge import MessageBridge, UISurface
from bridge.messages import (
    CheckAuth,
    GetApprovals,
    GetConfig,
    GetLanguage,
    GetProjectDetails,
    GetProjects,
    GetSpec,
    GetSpecs,
    GetSpecTasks,
    GetTask,
    GetTasks,
    HostMessageType,
    LoginCredentials,
    LoginGitHub,
    Logout,
    OpenExternalUrl,
    RefreshAll,
    RespondApproval,
    SelectProject,
    SetConfig,
    SetLanguage,
    parse_command,
)
from errors import ParseError, SpecManagerError
from events import (
    APPROVAL_CREATED,
    APPROVAL_RESPONDED,
    EVENT_TYPES,
    TASK_COMPLETED,
    TASK_STARTED,
    ApprovalCreatedEvent,
    EventStreamClient,
    StreamEventBase,
    TaskCompletedEvent,
)
from oauth import SessionManager
from .preferences import HostPreferences

logger = logging.getLogger(__name__)


class SidebarHost:
    """Host side of the sidebar UI

    Every inbound command is decoded into one member of the closed command
    union and dispatched to exactly one handler. Handler failures are posted
    to the UI as ``error`` notifications; nothing escapes ``receive``.
    """

    def __init__(
        self,
        session: SessionManager,
        api: ApiClient,
        stream: EventStreamClient,
        bridge: MessageBridge,
        preferences: HostPreferences,
        open_url: Callable[[str], bool] = webbrowser.open,
    ):
        self.session = session
        self.api = api
        self.stream = stream
        self.bridge = bridge
        self.preferences = preferences
        self.open_url = open_url

        self._current_project_id: Optional[str] = None
        self._event_unsubscribes: List[Callable[[], None]] = []
        self._background: Set[asyncio.Task] = set()

    @property
    def current_project_id(self) -> Optional[str]:
        return self._current_project_id

    # ============ Surface lifecycle ============

    async def attach(self, surface: UISurface):
        """UI surface is ready: flush queued messages, then report auth status"""
        self.bridge.attach(surface)
        await self.check_auth_status()

    def detach(self, surface: Optional[UISurface] = None):
        self.bridge.detach(surface)

    async def receive(self, raw: Any):
        """Entry point for one message from the UI (dict or JSON text)"""
        try:
            command = parse_command(raw)
        except ParseError as e:
            logger.warning(f"[Sidebar] Rejected message: {e.message}")
            self.send_error(e.message)
            return

        logger.debug(f"[Sidebar] Handling {command.type}")
        try:
            await self.handle(command)
        except SpecManagerError as e:
            self.send_error(e.message)
        except Exception as e:
            logger.exception(f"[Sidebar] Error handling message {command.type}")
            self.send_error(str(e))

    async def shutdown(self):
        """Stop the stream and wait for background refreshes"""
        self._drop_event_listeners()
        await self.stream.aclose()
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ============ Dispatch ============

    @functools.singledispatchmethod
    async def handle(self, command):
        raise ParseError(f"Unsupported message type: {getattr(command, 'type', type(command).__name__)}")

    @handle.register
    async def _on_check_auth(self, command: CheckAuth):
        await self.check_auth_status()

    @handle.register
    async def _on_login_credentials(self, command: LoginCredentials):
        await self.login_with_credentials(command.data.email, command.data.password)

    @handle.register
    async def _on_login_github(self, command: LoginGitHub):
        await self.login_with_github()

    @handle.register
    async def _on_logout(self, command: Logout):
        await self.logout()

    @handle.register
    async def _on_get_projects(self, command: GetProjects):
        await self.send_projects()

    @handle.register
    async def _on_select_project(self, command: SelectProject):
        await self.select_project(command.data.project_id)

    @handle.register
    async def _on_get_project_details(self, command: GetProjectDetails):
        await self.send_project_details(command.data.project_id)

    @handle.register
    async def _on_get_specs(self, command: GetSpecs):
        await self.send_specs(command.data.project_id)

    @handle.register
    async def _on_get_spec(self, command: GetSpec):
        await self.send_spec(command.data.spec_id)

    @handle.register
    async def _on_get_tasks(self, command: GetTasks):
        await self.send_tasks(command.data.project_id, command.data.status)

    @handle.register
    async def _on_get_spec_tasks(self, command: GetSpecTasks):
        await self.send_spec_tasks(command.data.spec_id, command.data.status)

    @handle.register
    async def _on_get_task(self, command: GetTask):
        await self.send_task(command.data.task_id)

    @handle.register
    async def _on_get_approvals(self, command: GetApprovals):
        await self.send_approvals(command.data.project_id)

    @handle.register
    async def _on_respond_approval(self, command: RespondApproval):
        data = command.data
        await self.respond_to_approval(data.approval_id, data.status, data.response)

    @handle.register
    async def _on_set_language(self, command: SetLanguage):
        self.set_language(command.data.language)

    @handle.register
    async def _on_get_language(self, command: GetLanguage):
        self.send_language()

    @handle.register
    async def _on_get_config(self, command: GetConfig):
        self.send_config()

    @handle.register
    async def _on_set_config(self, command: SetConfig):
        await self.set_config(command.data.model_dump(by_alias=True, exclude_none=True))

    @handle.register
    async def _on_open_external_url(self, command: OpenExternalUrl):
        self.open_external_url(command.data.url)

    @handle.register
    async def _on_refresh_all(self, command: RefreshAll):
        await self.refresh_all()

    # ============ Auth ============

    async def check_auth_status(self):
        """Validate the stored session and post ``auth-status``

        An invalid token clears the session. Failing to load the user after a
        successful validation reports unauthenticated without clearing it.
        """
        authenticated = self.session.is_authenticated()
        user = None

        if authenticated:
            if await self.session.validate(self.preferences.api_url):
                try:
                    user = await self.api.get_me()
                except SpecManagerError as e:
                    logger.error(f"[Sidebar] Failed to get user info: {e.message}")
            else:
                logger.info("[Sidebar] Stored session is no longer valid, clearing it")
                self.session.logout()

        self.bridge.send(HostMessageType.AUTH_STATUS, {
            "authenticated": authenticated and user is not None,
            "user": user,
        })

    async def notify_auth_success(self):
        """Called after the OAuth redirect stored a new session"""
        await self.check_auth_status()

    async def login_with_credentials(self, email: str, password: str):
        try:
            await self.session.login_with_credentials(self.preferences.api_url, email, password)
            user = await self.api.get_me()
        except SpecManagerError as e:
            self.bridge.send(HostMessageType.AUTH_ERROR, {"message": e.message})
            return

        self.bridge.send(HostMessageType.AUTH_STATUS, {"authenticated": True, "user": user})
        self.send_notification("Successfully logged in", "success")

    async def login_with_github(self):
        try:
            await self.session.login_with_external_provider(self.preferences.api_url)
            user = await self.api.get_me()
        except SpecManagerError as e:
            self.bridge.send(HostMessageType.AUTH_ERROR, {"message": e.message})
            return

        self.bridge.send(HostMessageType.AUTH_STATUS, {"authenticated": True, "user": user})
        self.send_notification("Successfully logged in with GitHub", "success")

    async def logout(self):
        self._drop_event_listeners()
        self.stream.disconnect()

        self._current_project_id = None
        self.preferences.selected_project_id = None
        self.session.logout()

        self.bridge.send(HostMessageType.AUTH_STATUS, {"authenticated": False, "user": None})

    # ============ Projects ============

    async def send_projects(self):
        try:
            projects = await self.api.list_projects()
        except SpecManagerError as e:
            self.send_error(f"Failed to load projects: {e.message}")
            return
        self.bridge.send(HostMessageType.PROJECTS_UPDATED, projects)

    async def select_project(self, project_id: str):
        self._current_project_id = project_id
        self.preferences.selected_project_id = project_id

        await self._setup_event_listeners(project_id)

        self.bridge.send(HostMessageType.PROJECT_SELECTED, {"projectId": project_id})
        await self._load_project_data(project_id)

    async def send_project_details(self, project_id: str):
        try:
            project = await self.api.get_project(project_id)
        except SpecManagerError as e:
            self.send_error(f"Failed to load project details: {e.message}")
            return
        self.bridge.send(HostMessageType.PROJECT_DETAILS_UPDATED, project)

    # ============ Specs ============

    async def send_specs(self, project_id: str):
        try:
            specs = await self.api.list_specs(project_id)
        except SpecManagerError as e:
            self.send_error(f"Failed to load specs: {e.message}")
            return
        self.bridge.send(HostMessageType.SPECS_UPDATED, specs)

    async def send_spec(self, spec_id: str):
        try:
            spec = await self.api.get_spec(spec_id)
        except SpecManagerError as e:
            self.send_error(f"Failed to load spec: {e.message}")
            return
        self.bridge.send(HostMessageType.SPEC_UPDATED, spec)

    # ============ Tasks ============

    async def send_tasks(self, project_id: str, status: Optional[str] = None):
        try:
            tasks = await self.api.list_tasks(project_id, status)
        except SpecManagerError as e:
            self.send_error(f"Failed to load tasks: {e.message}")
            return
        self.bridge.send(HostMessageType.TASKS_UPDATED, tasks)

    async def send_spec_tasks(self, spec_id: str, status: Optional[str] = None):
        try:
            tasks = await self.api.list_spec_tasks(spec_id, status)
        except SpecManagerError as e:
            self.send_error(f"Failed to load spec tasks: {e.message}")
            return
        self.bridge.send(HostMessageType.SPEC_TASKS_UPDATED, {"specId": spec_id, "tasks": tasks})

    async def send_task(self, task_id: str):
        try:
            task = await self.api.get_task(task_id)
        except SpecManagerError as e:
            self.send_error(f"Failed to load task: {e.message}")
            return
        self.bridge.send(HostMessageType.TASK_UPDATED, task)

    # ============ Approvals ============

    async def send_approvals(self, project_id: str):
        """Approvals may not be available for every project: any failure posts an empty list"""
        try:
            approvals = await self.api.list_approvals(project_id)
        except Exception as e:
            logger.error(f"[Sidebar] Failed to load approvals: {e}")
            approvals = []
        self.bridge.send(HostMessageType.APPROVALS_UPDATED, approvals)

    async def respond_to_approval(self, approval_id: str, status: str, response: Optional[str] = None):
        try:
            await self.api.respond_to_approval(approval_id, status, response)
        except SpecManagerError as e:
            self.send_error(f"Failed to respond to approval: {e.message}")
            return

        self.send_notification("Approval response submitted", "success")
        if self._current_project_id:
            await self.send_approvals(self._current_project_id)

    # ============ Config ============

    def set_language(self, language: str):
        self.preferences.language = language
        self.send_language()

    def send_language(self):
        self.bridge.send(HostMessageType.LANGUAGE_UPDATED, self.preferences.language)

    def send_config(self):
        self.bridge.send(HostMessageType.CONFIG_UPDATED, self.preferences.get_config())

    async def set_config(self, changes: Dict[str, Any]):
        """Persist config overrides; a new apiUrl is pushed into the REST and stream clients"""
        changed = self.preferences.update(changes)

        if "apiUrl" in changed:
            api_url = self.preferences.api_url
            logger.info(f"[Sidebar] API URL changed to {api_url}")
            self.api.set_base_url(api_url)
            await self.stream.set_base_url(api_url)

        if "language" in changed:
            self.send_language()
        self.send_config()

    # ============ Navigation ============

    def open_external_url(self, url: str):
        if urlsplit(url).scheme not in ("http", "https"):
            self.send_error(f"Refusing to open non-web URL: {url}")
            return
        if not self.open_url(url):
            logger.warning(f"[Sidebar] Could not open browser for {url}")

    # ============ Refresh ============

    async def refresh_all(self):
        await self.check_auth_status()

        stored_project_id = self.preferences.selected_project_id
        await self.send_projects()

        if stored_project_id:
            self._current_project_id = stored_project_id
            await self._load_project_data(stored_project_id)

        self.send_config()
        self.send_language()

    # ============ Stream events ============

    async def _setup_event_listeners(self, project_id: str):
        self._drop_event_listeners()
        await self.stream.connect(project_id)

        relay = functools.partial(self._on_stream_event, project_id)
        for event_type in EVENT_TYPES:
            self._event_unsubscribes.append(self.stream.on(event_type, relay))

    def _drop_event_listeners(self):
        unsubscribes, self._event_unsubscribes = self._event_unsubscribes, []
        for unsubscribe in unsubscribes:
            unsubscribe()

    def _on_stream_event(self, project_id: str, event: StreamEventBase):
        self.bridge.send(HostMessageType(event.type), event.to_wire())

        if event.type in (TASK_STARTED, TASK_COMPLETED):
            self._spawn(self.send_tasks(project_id))
        elif event.type in (APPROVAL_CREATED, APPROVAL_RESPONDED):
            self._spawn(self.send_approvals(project_id))

        if isinstance(event, TaskCompletedEvent):
            self.send_notification(f"Task completed: {event.summary}", "info")
        elif isinstance(event, ApprovalCreatedEvent):
            self.send_notification(f"New approval request: {event.title}", "info")

    def _spawn(self, coro):
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ============ Utility ============

    async def _load_project_data(self, project_id: str):
        await self.send_project_details(project_id)
        await self.send_specs(project_id)
        await self.send_tasks(project_id)
        await self.send_approvals(project_id)

    def send_error(self, message: str):
        self.bridge.send(HostMessageType.ERROR, {"message": message})

    def send_notification(self, message: str, level: str = "info"):
        self.bridge.send(HostMessageType.NOTIFICATION, {"message": message, "level": level})
