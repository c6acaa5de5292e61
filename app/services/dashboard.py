# app/services/dashboard.py
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.task import Task, TaskStatus, TaskPriority, task_assignees
from app.utils.dates import utcnow

RECENT_TASK_LIMIT = 10


def _chart_key(status: TaskStatus) -> str:
    return status.value.replace(" ", "")


def build_dashboard(db: Session, scope) -> dict:
    """Statistics, chart counts and the newest tasks for the tasks matching ``scope``"""
    base = db.query(Task).filter(scope)

    total_tasks = base.count()
    overdue_tasks = base.filter(
        Task.status != TaskStatus.COMPLETED,
        Task.due_date < utcnow(),
    ).count()

    status_counts = dict(
        db.query(Task.status, func.count(Task.id)).filter(scope).group_by(Task.status).all()
    )
    priority_counts = dict(
        db.query(Task.priority, func.count(Task.id)).filter(scope).group_by(Task.priority).all()
    )

    task_distribution = {_chart_key(status): status_counts.get(status, 0) for status in TaskStatus}
    task_distribution["All"] = total_tasks

    task_priority_levels = {priority.value: priority_counts.get(priority, 0) for priority in TaskPriority}

    recent_tasks = base.order_by(Task.created_at.desc(), Task.id.desc()).limit(RECENT_TASK_LIMIT).all()

    return {
        "statistics": {
            "totalTasks": total_tasks,
            "pendingTasks": status_counts.get(TaskStatus.PENDING, 0),
            "completedTasks": status_counts.get(TaskStatus.COMPLETED, 0),
            "overdueTasks": overdue_tasks,
        },
        "charts": {
            "taskDistribution": task_distribution,
            "taskPriorityLevels": task_priority_levels,
        },
        "recentTasks": [
            {
                "id": task.id,
                "title": task.title,
                "status": task.status.value,
                "priority": task.priority.value,
                "dueDate": task.due_date.isoformat() if task.due_date else None,
                "createdAt": task.created_at.isoformat() if task.created_at else None,
            }
            for task in recent_tasks
        ],
    }


def task_counts_by_user(db: Session, user_ids) -> dict:
    """{user id: {pending_tasks, in_progress_tasks, completed_tasks}} over assigned tasks"""
    counts = {
        user_id: {"pending_tasks": 0, "in_progress_tasks": 0, "completed_tasks": 0}
        for user_id in user_ids
    }
    if not counts:
        return counts

    rows = (
        db.query(task_assignees.c.user_id, Task.status, func.count(Task.id))
        .join(Task, Task.id == task_assignees.c.task_id)
        .filter(task_assignees.c.user_id.in_(list(counts)))
        .group_by(task_assignees.c.user_id, Task.status)
        .all()
    )
    keys = {
        TaskStatus.PENDING: "pending_tasks",
        TaskStatus.IN_PROGRESS: "in_progress_tasks",
        TaskStatus.COMPLETED: "completed_tasks",
    }
    for user_id, status, count in rows:
        counts[user_id][keys[status]] = count
    return counts
