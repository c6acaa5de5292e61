# app/utils/auth.py
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.database import get_db
from app.errors import AuthenticationError, AuthorizationError
from app.models.user import User, Role, Department

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The authenticated principal of one request"""

    id: int
    role: Role
    department: Optional[Department] = None

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(id=user.id, role=Role(user.role), department=user.department)


def authenticate(db: Session, token: str) -> Identity:
    """Resolve a bearer token to the Identity of a persisted user"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            raise AuthenticationError("Token failed")
        user_id = int(subject)
    except (JWTError, ValueError):
        raise AuthenticationError("Token failed")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise AuthenticationError("Token failed")
    return Identity.from_user(user)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthenticationError("Not authorized, no token")
    return authenticate(db, credentials.credentials)


def authorize(identity: Identity, required_roles: Iterable[Role]) -> bool:
    return identity.role in set(required_roles)


def require_roles(*roles: Role):
    """Dependency that lets the request through only for the given roles"""

    def checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if not authorize(identity, roles):
            raise AuthorizationError(f"User role {identity.role.value} is not authorized")
        return identity

    return checker
