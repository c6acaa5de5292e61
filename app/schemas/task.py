# app/schemas/task.py
from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional, List

from app.models.task import TaskStatus, TaskPriority
from app.models.user import Department
from app.schemas.base import CamelModel
from app.schemas.user import UserBasic
from app.utils.dates import to_naive_utc

ASSIGNED_TO_MESSAGE = "assignedTo must be an array of user IDs"


def _require_id_list(value):
    if value is not None and not isinstance(value, list):
        raise ValueError(ASSIGNED_TO_MESSAGE)
    return value


class TodoItemIn(CamelModel):
    text: str = Field(min_length=1)
    completed: bool = False


class TodoItemOut(CamelModel):
    text: str
    completed: bool


class TaskCreate(CamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime
    assigned_to: List[int]
    todo_checklist: List[TodoItemIn] = []
    attachments: List[str] = []

    @field_validator("assigned_to", mode="before")
    @classmethod
    def assigned_to_is_list(cls, v):
        return _require_id_list(v)

    @field_validator("due_date")
    @classmethod
    def normalise_due_date(cls, v):
        return to_naive_utc(v)


class TaskUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    assigned_to: Optional[List[int]] = None
    todo_checklist: Optional[List[TodoItemIn]] = None
    attachments: Optional[List[str]] = None

    @field_validator("assigned_to", mode="before")
    @classmethod
    def assigned_to_is_list(cls, v):
        return _require_id_list(v)

    @field_validator("due_date")
    @classmethod
    def normalise_due_date(cls, v):
        return to_naive_utc(v)


class TaskStatusUpdate(CamelModel):
    status: TaskStatus


class TaskChecklistUpdate(CamelModel):
    todo_checklist: List[TodoItemIn]


class TaskOut(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    priority: TaskPriority
    status: TaskStatus
    progress: int
    due_date: datetime
    department: Optional[Department] = None
    assigned_to: List[int] = []
    assignees: List[UserBasic] = []
    created_by: Optional[int] = None
    todo_checklist: List[TodoItemOut] = []
    attachments: List[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class TaskListItem(TaskOut):
    completed_todo_count: int = 0


class StatusSummary(CamelModel):
    all: int
    pending: int
    in_progress: int
    completed: int


class TaskListResponse(CamelModel):
    tasks: List[TaskListItem]
    status_summary: StatusSummary


class TaskMessageResponse(CamelModel):
    message: str
    task: TaskOut
