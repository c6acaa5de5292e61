# app/models/user.py
from sqlalchemy import Column, Integer, String, Date, DateTime, Enum
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.dates import utcnow
import enum


class Role(str, enum.Enum):
    ADMIN = "admin"
    VP = "vp"
    HEAD = "head"
    MEMBER = "member"


# Roles whose visibility is limited to their own department
MANAGER_ROLES = (Role.VP, Role.HEAD)


class Department(str, enum.Enum):
    TECH = "TECH"
    FINANCE = "FINANCE"
    COMMUNICATION = "COMMUNICATION"
    DESIGN_AND_MEDIA = "DESIGN AND MEDIA"
    HOSPITALITY = "HOSPITALITY"


class IasPosition(str, enum.Enum):
    COMMUNICATION = "COMMUNICATION"
    FINANCE = "FINANCE"
    DESIGN_AND_MEDIA = "DESIGN AND MEDIA"
    TECH = "TECH"
    HOSPITALITY = "HOSPITALITY"
    OTHER = "Other"


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    profile_image_url = Column(String, nullable=True)

    role = Column(Enum(Role, values_callable=enum_values), default=Role.MEMBER, nullable=False, index=True)
    department = Column(Enum(Department, values_callable=enum_values), nullable=True, index=True)

    birthday = Column(Date, nullable=True, index=True)
    ias_position = Column(Enum(IasPosition, values_callable=enum_values), nullable=True)
    last_birthday_reminder_year = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    created_tasks = relationship("Task", back_populates="creator", foreign_keys="Task.created_by")
    assigned_tasks = relationship("Task", secondary="task_assignees", back_populates="assignees")
