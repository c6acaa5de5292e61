from .user import RegisterRequest, LoginRequest, UserBasic, UserOut, UserWithTaskCounts, UserUpdate, ProfileUpdate
from .tokens import AuthResponse
from .task import (
    TodoItemIn, TodoItemOut, TaskCreate, TaskUpdate, TaskStatusUpdate, TaskChecklistUpdate,
    TaskOut, TaskListItem, StatusSummary, TaskListResponse, TaskMessageResponse,
)
