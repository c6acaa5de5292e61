# app/schemas/tokens.py
from typing import Optional

from app.models.user import Role, Department
from app.schemas.base import CamelModel


class AuthResponse(CamelModel):
    id: int
    name: str
    email: str
    role: Role
    department: Optional[Department] = None
    profile_image_url: Optional[str] = None
    token: str
