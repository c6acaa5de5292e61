# app/routers/user.py
import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import AuthorizationError, ConflictError, InternalError, NotFoundError, ValidationError
from app.models.user import User, Role, MANAGER_ROLES
from app.schemas.user import UserOut, UserUpdate, UserWithTaskCounts
from app.services.dashboard import task_counts_by_user
from app.utils.auth import Identity, get_current_identity, require_roles
from app.utils.scope import ScopeResolver
from app.utils.security import hash_password

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def _with_task_counts(db: Session, users: List[User]) -> List[UserWithTaskCounts]:
    counts = task_counts_by_user(db, [user.id for user in users])
    return [
        UserWithTaskCounts.model_validate(user).model_copy(update=counts[user.id])
        for user in users
    ]


@router.get("", response_model=List[UserWithTaskCounts])
def get_users(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_roles(Role.ADMIN, Role.VP, Role.HEAD)),
):
    """Admin sees every user, VP and Head the users of their department"""
    scope = ScopeResolver(db).resolve_user_scope(identity)
    users = db.query(User).filter(scope).order_by(User.name).all()
    return _with_task_counts(db, users)


@router.get("/department-users", response_model=List[UserWithTaskCounts])
def get_department_users(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_roles(Role.VP, Role.HEAD)),
):
    """Department colleagues of the caller, without the caller"""
    scope = ScopeResolver(db).resolve_user_scope(identity, include_self=False)
    users = db.query(User).filter(scope).order_by(User.name).all()
    return _with_task_counts(db, users)


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    user = _get_user_or_404(db, user_id)
    if not ScopeResolver(db).can_view_user(identity, user):
        raise AuthorizationError("Not authorized to view this user")
    return user


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Update a profile. Only an admin may change role or department."""
    user = _get_user_or_404(db, user_id)
    if not ScopeResolver(db).can_update_user(identity, user):
        raise AuthorizationError("Not authorized to update this user")

    if identity.role is not Role.ADMIN:
        if payload.role is not None and payload.role != user.role:
            raise AuthorizationError("Not authorized to change user role")
        if payload.department is not None and payload.department != user.department:
            raise AuthorizationError("Not authorized to change user department")

    if payload.email and payload.email != user.email:
        taken = db.query(User).filter(User.email == payload.email, User.id != user.id).first()
        if taken:
            raise ConflictError("Email already registered")

    new_role = payload.role or user.role
    new_department = payload.department or user.department
    if new_role in MANAGER_ROLES and new_department is None:
        raise ValidationError(f"A {new_role.value} must belong to a department")

    for field in ("name", "email", "birthday", "ias_position", "profile_image_url"):
        value = getattr(payload, field)
        if value is not None:
            setattr(user, field, value)
    user.role = new_role
    user.department = new_department
    if payload.password:
        user.hashed_password = hash_password(payload.password)

    try:
        db.commit()
        db.refresh(user)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating user {user_id}: {e}")
        raise InternalError(f"Error updating user: {str(e)}")

    logger.info(f"User {user_id} updated by user {identity.id}")
    return user


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_roles(Role.ADMIN, Role.VP, Role.HEAD)),
):
    user = _get_user_or_404(db, user_id)
    if not ScopeResolver(db).can_delete_user(identity, user):
        raise AuthorizationError("Not authorized to delete this user")

    try:
        db.delete(user)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting user {user_id}: {e}")
        raise InternalError(f"Error deleting user: {str(e)}")

    logger.info(f"User {user_id} removed by user {identity.id}")
    return {"message": "User removed"}
