from .user import User, Role, Department, IasPosition, MANAGER_ROLES
from .task import Task, TodoItem, TaskStatus, TaskPriority, task_assignees
