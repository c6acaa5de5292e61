from pydantic import EmailStr, Field
from typing import Optional
from datetime import date, datetime

from app.models.user import Role, Department, IasPosition
from app.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    invite_token: Optional[str] = None
    admin_invite_token: Optional[str] = None
    vp_key: Optional[str] = None
    head_key: Optional[str] = None
    department: Optional[Department] = None
    birthday: Optional[date] = None
    ias_position: Optional[IasPosition] = None
    profile_image_url: Optional[str] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UserBasic(CamelModel):
    id: int
    name: str
    email: str
    profile_image_url: Optional[str] = None


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    role: Role
    department: Optional[Department] = None
    birthday: Optional[date] = None
    ias_position: Optional[IasPosition] = None
    profile_image_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserWithTaskCounts(UserOut):
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    completed_tasks: int = 0


class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)
    birthday: Optional[date] = None
    ias_position: Optional[IasPosition] = None
    profile_image_url: Optional[str] = None
    role: Optional[Role] = None
    department: Optional[Department] = None


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)
    birthday: Optional[date] = None
    ias_position: Optional[IasPosition] = None
    profile_image_url: Optional[str] = None
