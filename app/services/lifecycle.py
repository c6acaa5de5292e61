# app/services/lifecycle.py
"""
Checklist driven progress and status for tasks.

``progress`` is the rounded percentage of completed checklist items and the
status follows it: 0 is Pending, 100 is Completed, anything between is
In Progress. The functions here only change the in-memory Task; callers
commit once afterwards.
"""

from typing import Iterable, List, Union

from app.models.task import Task, TaskStatus, TodoItem


def _is_completed(item) -> bool:
    if isinstance(item, dict):
        return bool(item.get("completed"))
    return bool(item.completed)


def _text(item) -> str:
    if isinstance(item, dict):
        return item["text"]
    return item.text


def compute_progress(items: Iterable) -> int:
    items = list(items)
    if not items:
        return 0
    completed = sum(1 for item in items if _is_completed(item))
    # halves round up
    return int(100 * completed / len(items) + 0.5)


def status_for_progress(progress: int) -> TaskStatus:
    if progress >= 100:
        return TaskStatus.COMPLETED
    if progress > 0:
        return TaskStatus.IN_PROGRESS
    return TaskStatus.PENDING


def build_checklist(items: Iterable) -> List[TodoItem]:
    return [
        TodoItem(position=index, text=_text(item), completed=_is_completed(item))
        for index, item in enumerate(items)
    ]


def update_checklist(task: Task, items: Iterable) -> Task:
    """Replace the whole checklist and re-derive progress and status"""
    task.todo_checklist = build_checklist(items)
    task.progress = compute_progress(task.todo_checklist)
    task.status = status_for_progress(task.progress)
    return task


def update_status(task: Task, new_status: Union[TaskStatus, str]) -> Task:
    """Set the status directly.

    Completing a task checks every item. Moving to Pending or In Progress keeps
    the items as they are and puts progress back in the band of the new status.
    """
    new_status = TaskStatus(new_status)

    if new_status is TaskStatus.COMPLETED:
        for item in task.todo_checklist:
            item.completed = True
        task.progress = 100
    elif new_status is TaskStatus.PENDING:
        task.progress = 0
    elif new_status is TaskStatus.IN_PROGRESS:
        task.progress = min(max(compute_progress(task.todo_checklist), 1), 99)
    else:
        raise ValueError(f"Unhandled status: {new_status!r}")

    task.status = new_status
    return task


def initialise(task: Task, items: Iterable) -> Task:
    """State of a freshly created task: Pending with zero progress"""
    task.todo_checklist = build_checklist(items)
    task.progress = 0
    task.status = TaskStatus.PENDING
    return task
