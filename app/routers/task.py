# app/routers/task.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import true
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import AuthorizationError, InternalError, NotFoundError, ValidationError
from app.models.task import Task, TaskStatus
from app.models.user import User, Role
from app.schemas.task import (
    TaskChecklistUpdate,
    TaskCreate,
    TaskListItem,
    TaskListResponse,
    TaskMessageResponse,
    TaskOut,
    TaskStatusUpdate,
    TaskUpdate,
)
from app.services import lifecycle
from app.services.dashboard import build_dashboard
from app.utils.auth import Identity, get_current_identity, require_roles
from app.utils.scope import ScopeResolver

router = APIRouter(prefix="/tasks", tags=["tasks"])
logger = logging.getLogger(__name__)

ASSIGN_OUTSIDE_DEPARTMENT = "Not authorized to assign tasks to users outside your department"


def _get_task_or_404(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise NotFoundError("Task not found")
    return task


def _load_assignees(db: Session, user_ids: List[int]) -> List[User]:
    unique_ids = list(dict.fromkeys(user_ids))
    if not unique_ids:
        return []
    users = db.query(User).filter(User.id.in_(unique_ids)).all()
    if len(users) != len(unique_ids):
        missing = sorted(set(unique_ids) - {user.id for user in users})
        raise ValidationError(f"Assigned user not found: {', '.join(str(i) for i in missing)}")
    by_id = {user.id: user for user in users}
    return [by_id[user_id] for user_id in unique_ids]


def _save(db: Session, task: Task, action: str) -> Task:
    """Commit the pending changes of ``task`` in a single write"""
    task_id = task.id
    try:
        db.commit()
        db.refresh(task)
    except Exception as e:
        db.rollback()
        logger.error(f"Error {action} task {task_id}: {e}")
        raise InternalError(f"Error {action} task: {str(e)}")
    return task


def _message(message: str, task: Task) -> TaskMessageResponse:
    return TaskMessageResponse(message=message, task=TaskOut.model_validate(task))


# Dashboards

@router.get("/dashboard-data")
def get_dashboard_data(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_roles(Role.ADMIN)),
):
    """Statistics over every task"""
    return build_dashboard(db, true())


@router.get("/department-dashboard-data")
def get_department_dashboard_data(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_roles(Role.VP, Role.HEAD)),
):
    """Statistics over the tasks of the caller's department; empty without one"""
    return build_dashboard(db, ScopeResolver(db).resolve_task_scope(identity))


@router.get("/user-dashboard-data")
def get_user_dashboard_data(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Statistics over the tasks assigned to the caller"""
    return build_dashboard(db, ScopeResolver(db).personal_task_scope(identity))


# Tasks

@router.get("", response_model=TaskListResponse)
def get_tasks(
    status: Optional[TaskStatus] = None,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Get tasks with role-based access control

    Role-based task visibility:
    - admin: every task
    - vp / head: tasks with an assignee in their department, plus tasks they created
    - member: tasks assigned to them
    """
    scope = ScopeResolver(db).resolve_task_scope(identity)

    query = db.query(Task).filter(scope)
    if status:
        query = query.filter(Task.status == status)
    tasks = query.order_by(Task.created_at.desc(), Task.id.desc()).all()

    base = db.query(Task).filter(scope)
    status_summary = {
        "all": base.count(),
        "pending": base.filter(Task.status == TaskStatus.PENDING).count(),
        "in_progress": base.filter(Task.status == TaskStatus.IN_PROGRESS).count(),
        "completed": base.filter(Task.status == TaskStatus.COMPLETED).count(),
    }

    return TaskListResponse(
        tasks=[TaskListItem.model_validate(task) for task in tasks],
        status_summary=status_summary,
    )


@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Get a specific task by ID with role-based access control"""
    task = _get_task_or_404(db, task_id)
    if not ScopeResolver(db).can_view_task(identity, task):
        raise AuthorizationError("Not authorized to view this task")
    return task


@router.post("", response_model=TaskMessageResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_roles(Role.ADMIN, Role.VP, Role.HEAD)),
):
    """Create a task; VP and Head may only assign within their department"""
    if not ScopeResolver(db).authorize_assignment(identity, payload.assigned_to):
        raise AuthorizationError(ASSIGN_OUTSIDE_DEPARTMENT)

    assignees = _load_assignees(db, payload.assigned_to)

    try:
        task = Task(
            title=payload.title,
            description=payload.description,
            priority=payload.priority,
            due_date=payload.due_date,
            attachments=list(payload.attachments),
            created_by=identity.id,
            department=identity.department if identity.role is not Role.ADMIN else None,
        )
        task.assignees = assignees
        lifecycle.initialise(task, payload.todo_checklist)

        db.add(task)
        db.commit()
        db.refresh(task)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating task: {e}")
        raise InternalError(f"Error creating task: {str(e)}")

    logger.info(f"Task {task.id} created by user {identity.id}")
    return _message("Task created successfully", task)


@router.put("/{task_id}", response_model=TaskMessageResponse)
def update_task(
    task_id: int,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Update task details"""
    scope = ScopeResolver(db)
    task = _get_task_or_404(db, task_id)
    if not scope.authorize_task_mutation(identity, task):
        raise AuthorizationError("Not authorized to update this task")

    assignees = None
    if payload.assigned_to is not None:
        if not scope.authorize_assignment(identity, payload.assigned_to):
            raise AuthorizationError(ASSIGN_OUTSIDE_DEPARTMENT)
        assignees = _load_assignees(db, payload.assigned_to)

    changes = payload.model_dump(exclude_unset=True, exclude={"assigned_to", "todo_checklist"})
    for field, value in changes.items():
        if value is not None:
            setattr(task, field, value)
    if assignees is not None:
        task.assignees = assignees
    if payload.todo_checklist is not None:
        lifecycle.update_checklist(task, payload.todo_checklist)

    _save(db, task, "updating")
    return _message("Task updated successfully", task)


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_roles(Role.ADMIN, Role.VP, Role.HEAD)),
):
    task = _get_task_or_404(db, task_id)
    if not ScopeResolver(db).authorize_task_deletion(identity, task):
        raise AuthorizationError("Not authorized to delete this task")

    try:
        db.delete(task)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting task {task_id}: {e}")
        raise InternalError(f"Error deleting task: {str(e)}")

    logger.info(f"Task {task_id} deleted by user {identity.id}")
    return {"message": "Task deleted successfully"}


@router.put("/{task_id}/status", response_model=TaskMessageResponse)
def update_task_status(
    task_id: int,
    payload: TaskStatusUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Set the status; completing a task checks its whole checklist"""
    task = _get_task_or_404(db, task_id)
    if not ScopeResolver(db).authorize_task_mutation(identity, task):
        raise AuthorizationError("Not authorized to update this task status")

    lifecycle.update_status(task, payload.status)
    _save(db, task, "updating status of")
    return _message("Task status updated successfully", task)


@router.put("/{task_id}/todo", response_model=TaskMessageResponse)
def update_task_checklist(
    task_id: int,
    payload: TaskChecklistUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Replace the checklist; progress and status follow from it"""
    task = _get_task_or_404(db, task_id)
    if not ScopeResolver(db).authorize_task_mutation(identity, task):
        raise AuthorizationError("Not authorized to update checklist")

    lifecycle.update_checklist(task, payload.todo_checklist)
    _save(db, task, "updating checklist of")
    return _message("Task checklist updated", task)
