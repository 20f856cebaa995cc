"""
Typed envelopes exchanged between the UI surface and the host.

Inbound commands form a closed union discriminated on ``type``; every
command carries its payload under ``data``. Outbound notifications are
``{type, data}`` with ``type`` taken from ``HostMessageType``.
"""
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Type, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from errors import ParseError


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class NoData(_Payload):
    model_config = ConfigDict(extra="ignore")


class Credentials(_Payload):
    email: str
    password: str


class ProjectRef(_Payload):
    project_id: str = Field(alias="projectId")


class SpecRef(_Payload):
    spec_id: str = Field(alias="specId")


class TaskRef(_Payload):
    task_id: str = Field(alias="taskId")


class ProjectTasksQuery(ProjectRef):
    status: Optional[str] = None


class SpecTasksQuery(SpecRef):
    status: Optional[str] = None


class ApprovalResponse(_Payload):
    approval_id: str = Field(alias="approvalId")
    status: Literal["approved", "rejected", "needs-revision"]
    response: Optional[str] = None


class LanguageChoice(_Payload):
    language: str


class ConfigChanges(_Payload):
    """Partial host configuration; unset fields are left unchanged"""
    api_url: Optional[str] = Field(default=None, alias="apiUrl")
    sounds_enabled: Optional[bool] = Field(default=None, alias="soundsEnabled")
    sounds_volume: Optional[float] = Field(default=None, alias="soundsVolume", ge=0.0, le=1.0)
    language: Optional[str] = None


class ExternalUrl(_Payload):
    url: str


class _Command(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Auth
class CheckAuth(_Command):
    type: Literal["check-auth"]
    data: Optional[NoData] = None


class LoginCredentials(_Command):
    type: Literal["login-credentials"]
    data: Credentials


class LoginGitHub(_Command):
    type: Literal["login-github"]
    data: Optional[NoData] = None


class Logout(_Command):
    type: Literal["logout"]
    data: Optional[NoData] = None


# Projects
class GetProjects(_Command):
    type: Literal["get-projects"]
    data: Optional[NoData] = None


class SelectProject(_Command):
    type: Literal["select-project"]
    data: ProjectRef


class GetProjectDetails(_Command):
    type: Literal["get-project-details"]
    data: ProjectRef


# Specs
class GetSpecs(_Command):
    type: Literal["get-specs"]
    data: ProjectRef


class GetSpec(_Command):
    type: Literal["get-spec"]
    data: SpecRef


# Tasks
class GetTasks(_Command):
    type: Literal["get-tasks"]
    data: ProjectTasksQuery


class GetSpecTasks(_Command):
    type: Literal["get-spec-tasks"]
    data: SpecTasksQuery


class GetTask(_Command):
    type: Literal["get-task"]
    data: TaskRef


# Approvals
class GetApprovals(_Command):
    type: Literal["get-approvals"]
    data: ProjectRef


class RespondApproval(_Command):
    type: Literal["respond-approval"]
    data: ApprovalResponse


# Config
class SetLanguage(_Command):
    type: Literal["set-language"]
    data: LanguageChoice


class GetLanguage(_Command):
    type: Literal["get-language"]
    data: Optional[NoData] = None


class GetConfig(_Command):
    type: Literal["get-config"]
    data: Optional[NoData] = None


class SetConfig(_Command):
    type: Literal["set-config"]
    data: ConfigChanges


# Navigation
class OpenExternalUrl(_Command):
    type: Literal["open-external-url"]
    data: ExternalUrl


# Refresh
class RefreshAll(_Command):
    type: Literal["refresh-all"]
    data: Optional[NoData] = None


Command = Annotated[
    Union[
        CheckAuth,
        LoginCredentials,
        LoginGitHub,
        Logout,
        GetProjects,
        SelectProject,
        GetProjectDetails,
        GetSpecs,
        GetSpec,
        GetTasks,
        GetSpecTasks,
        GetTask,
        GetApprovals,
        RespondApproval,
        SetLanguage,
        GetLanguage,
        GetConfig,
        SetConfig,
        OpenExternalUrl,
        RefreshAll,
    ],
    Field(discriminator="type"),
]

COMMAND_TYPES: Tuple[Type[_Command], ...] = get_args(get_args(Command)[0])

command_adapter: TypeAdapter = TypeAdapter(Command)


def parse_command(raw: Any) -> _Command:
    """Decode one inbound message (dict or JSON text)

    Raises:
        ParseError: Invalid JSON, unknown ``type`` or a payload of the wrong shape
    """
    try:
        if isinstance(raw, (str, bytes)):
            return command_adapter.validate_json(raw)
        return command_adapter.validate_python(raw)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        detail = first.get("msg", "invalid message")
        raise ParseError(f"Invalid message{f' at {location}' if location else ''}: {detail}")


class HostMessageType(str, Enum):
    """Notifications the host posts to the UI surface"""
    AUTH_STATUS = "auth-status"
    AUTH_ERROR = "auth-error"
    PROJECTS_UPDATED = "projects-updated"
    PROJECT_SELECTED = "project-selected"
    PROJECT_DETAILS_UPDATED = "project-details-updated"
    SPECS_UPDATED = "specs-updated"
    SPEC_UPDATED = "spec-updated"
    TASKS_UPDATED = "tasks-updated"
    SPEC_TASKS_UPDATED = "spec-tasks-updated"
    TASK_UPDATED = "task-updated"
    APPROVALS_UPDATED = "approvals-updated"
    TASK_STARTED = "task-started"
    TASK_PROGRESS = "task-progress"
    TASK_COMPLETED = "task-completed"
    APPROVAL_CREATED = "approval-created"
    APPROVAL_RESPONDED = "approval-responded"
    LANGUAGE_UPDATED = "language-updated"
    CONFIG_UPDATED = "config-updated"
    ERROR = "error"
    NOTIFICATION = "notification"


class HostMessage(BaseModel):
    type: HostMessageType
    data: Any = None

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type.value, "data": self.data}
