"""
Pydantic models for the realtime events pushed by the SpecManager service.
"""
from typing import Annotated, Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

TASK_STARTED = "task-started"
TASK_PROGRESS = "task-progress"
TASK_COMPLETED = "task-completed"
APPROVAL_CREATED = "approval-created"
APPROVAL_RESPONDED = "approval-responded"

EVENT_TYPES = (
    TASK_STARTED,
    TASK_PROGRESS,
    TASK_COMPLETED,
    APPROVAL_CREATED,
    APPROVAL_RESPONDED,
)

# Subscribe to every event type
WILDCARD = "*"


class StreamEventBase(BaseModel):
    """Common config: camelCase on the wire, unknown fields kept verbatim"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_wire(self) -> dict:
        """Payload as received (camelCase keys)"""
        return self.model_dump(by_alias=True, exclude_none=True)


class TaskStartedEvent(StreamEventBase):
    type: Literal["task-started"] = TASK_STARTED
    spec_id: str = Field(alias="specId")
    task_id: str = Field(alias="taskId")
    task_title: str = Field(alias="taskTitle")


class TaskProgressEvent(StreamEventBase):
    type: Literal["task-progress"] = TASK_PROGRESS
    spec_id: str = Field(alias="specId")
    task_id: str = Field(alias="taskId")
    message: str
    percent: Optional[float] = None


class TaskCompletedEvent(StreamEventBase):
    type: Literal["task-completed"] = TASK_COMPLETED
    spec_id: str = Field(alias="specId")
    task_id: str = Field(alias="taskId")
    summary: str


class ApprovalCreatedEvent(StreamEventBase):
    type: Literal["approval-created"] = APPROVAL_CREATED
    approval_id: str = Field(alias="approvalId")
    spec_id: str = Field(alias="specId")
    title: str


class ApprovalRespondedEvent(StreamEventBase):
    type: Literal["approval-responded"] = APPROVAL_RESPONDED
    approval_id: str = Field(alias="approvalId")
    status: str


StreamEvent = Annotated[
    Union[
        TaskStartedEvent,
        TaskProgressEvent,
        TaskCompletedEvent,
        ApprovalCreatedEvent,
        ApprovalRespondedEvent,
    ],
    Field(discriminator="type"),
]

EVENT_MODELS: Dict[str, Type[StreamEventBase]] = {
    TASK_STARTED: TaskStartedEvent,
    TASK_PROGRESS: TaskProgressEvent,
    TASK_COMPLETED: TaskCompletedEvent,
    APPROVAL_CREATED: ApprovalCreatedEvent,
    APPROVAL_RESPONDED: ApprovalRespondedEvent,
}

stream_event_adapter: TypeAdapter = TypeAdapter(StreamEvent)
