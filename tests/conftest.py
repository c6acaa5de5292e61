"""
Test configuration and fixtures
"""
import os
from datetime import date, timedelta
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment before the app reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["ENABLE_SCHEDULER"] = "false"

from main import app
from app.database import Base, get_db
from app.models.task import Task, TaskPriority
from app.models.user import User, Role, Department
from app.services import lifecycle
from app.utils.dates import utcnow
from app.utils.security import hash_password, create_user_token

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)

PASSWORD = "secret123"
# Hashing is slow on purpose, do it once
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture()
def session_factory():
    return TestSessionLocal


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    """Fresh schema and session for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session: Session):
    counter = {"n": 0}

    def _make_user(role=Role.MEMBER, department=None, name=None, email=None, birthday=None) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"User {n}",
            email=email or f"user{n}@acme.org",
            hashed_password=PASSWORD_HASH,
            role=role,
            department=department,
            birthday=birthday,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_task(db_session: Session):
    def _make_task(creator: User, assignees=(), title="Task", checklist=(), department=None,
                   priority=TaskPriority.MEDIUM, due_in_days=7) -> Task:
        task = Task(
            title=title,
            description=f"{title} description",
            priority=priority,
            due_date=utcnow() + timedelta(days=due_in_days),
            created_by=creator.id,
            department=department,
            attachments=[],
        )
        task.assignees = list(assignees)
        lifecycle.initialise(task, [{"text": text, "completed": done} for text, done in checklist])
        db_session.add(task)
        db_session.commit()
        db_session.refresh(task)
        return task

    return _make_task


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user.id)}"}


@pytest.fixture()
def org(make_user):
    """A small organisation: one admin, a VP/Head/member in TECH and FINANCE"""
    return {
        "admin": make_user(Role.ADMIN, name="Ada Admin"),
        "tech_vp": make_user(Role.VP, Department.TECH, name="Tara Tech VP"),
        "tech_head": make_user(Role.HEAD, Department.TECH, name="Tom Tech Head"),
        "tech_member": make_user(Role.MEMBER, Department.TECH, name="Tim Tech"),
        "finance_vp": make_user(Role.VP, Department.FINANCE, name="Fay Finance VP"),
        "finance_member": make_user(Role.MEMBER, Department.FINANCE, name="Fred Finance"),
        "loose_member": make_user(Role.MEMBER, None, name="Lou Loose"),
    }


@pytest.fixture()
def today() -> date:
    return date(2026, 10, 19)
