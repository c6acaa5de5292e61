import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.config.invites import InviteGrant, InviteRegistry, get_invite_registry
from app.database import get_db
from app.errors import ConflictError, InternalError, NotFoundError, ValidationError
from app.models.user import User, Role, Department
from app.schemas.tokens import AuthResponse
from app.schemas.user import RegisterRequest, LoginRequest, ProfileUpdate, UserOut
from app.utils.auth import Identity, get_current_identity
from app.utils.security import hash_password, verify_password, create_user_token

router = APIRouter()
logger = logging.getLogger(__name__)


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        department=user.department,
        profile_image_url=user.profile_image_url,
        token=create_user_token(user.id),
    )


def _department_key_grant(invites: InviteRegistry, key: str, role: Role, department, label: str) -> InviteGrant:
    # The key must be the one issued for this role in the named department
    grant = invites.resolve(key)
    if grant is None or grant.role is not role or department is None or grant.department is not department:
        raise ValidationError(f"Invalid {label} key or department")
    return grant


def _resolve_registration_grant(payload: RegisterRequest, invites: InviteRegistry) -> Tuple[Role, Optional[Department]]:
    """Role and department for a new user; no credential means a plain member"""
    if payload.admin_invite_token:
        grant = invites.resolve(payload.admin_invite_token)
        if grant is None or grant.role is not Role.ADMIN:
            raise ValidationError("Invalid admin invite token")
    elif payload.vp_key:
        grant = _department_key_grant(invites, payload.vp_key, Role.VP, payload.department, "VP")
    elif payload.head_key:
        grant = _department_key_grant(invites, payload.head_key, Role.HEAD, payload.department, "Head")
    elif payload.invite_token:
        grant = invites.resolve(payload.invite_token)
        if grant is None:
            raise ValidationError("Invalid invite token")
    else:
        return Role.MEMBER, None
    return grant.role, grant.department


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    invites: InviteRegistry = Depends(get_invite_registry),
):
    """Create a user; an invite token or a VP/Head department key decides role and department"""
    existing_user = db.query(User).filter(User.email == payload.email).first()
    if existing_user:
        raise ConflictError("User already exists")

    role, department = _resolve_registration_grant(payload, invites)

    new_user = User(
        name=payload.name,
        email=payload.email,
        hashed_password=hash_password(payload.password),
        profile_image_url=payload.profile_image_url,
        role=role,
        department=department,
        birthday=payload.birthday,
        ias_position=payload.ias_position,
    )

    try:
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
    except Exception as e:
        db.rollback()
        logger.error(f"Error registering {payload.email}: {e}")
        raise InternalError(f"Error registering user: {str(e)}")

    logger.info(f"Registered user {new_user.id} as {role.value}")
    return _auth_response(new_user)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.email == payload.email).first()
    if not db_user or not verify_password(payload.password, db_user.hashed_password):
        raise ValidationError("Invalid email or password")
    return _auth_response(db_user)


@router.get("/profile", response_model=UserOut)
def get_profile(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Get current user information"""
    user = db.query(User).filter(User.id == identity.id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


@router.put("/profile", response_model=AuthResponse)
def update_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Update the caller's own profile and hand back a fresh token"""
    user = db.query(User).filter(User.id == identity.id).first()
    if not user:
        raise NotFoundError("User not found")

    if payload.email and payload.email != user.email:
        taken = db.query(User).filter(User.email == payload.email, User.id != user.id).first()
        if taken:
            raise ConflictError("Email already registered")

    for field in ("name", "email", "birthday", "ias_position", "profile_image_url"):
        value = getattr(payload, field)
        if value is not None:
            setattr(user, field, value)
    if payload.password:
        user.hashed_password = hash_password(payload.password)

    try:
        db.commit()
        db.refresh(user)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating profile of user {identity.id}: {e}")
        raise InternalError(f"Error updating profile: {str(e)}")

    return _auth_response(user)
