from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Text, Boolean, JSON, Table
from sqlalchemy.orm import relationship
from sqlalchemy.ext.orderinglist import ordering_list
from app.database import Base
from app.models.user import Department, enum_values
from app.utils.dates import utcnow
import enum


class TaskStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class TaskPriority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# Tasks reference their assignees, they never own them
task_assignees = Table(
    "task_assignees",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)

    priority = Column(Enum(TaskPriority, values_callable=enum_values), default=TaskPriority.MEDIUM, nullable=False)
    status = Column(Enum(TaskStatus, values_callable=enum_values), default=TaskStatus.PENDING, nullable=False, index=True)
    progress = Column(Integer, default=0, nullable=False)

    due_date = Column(DateTime, nullable=False)
    department = Column(Enum(Department, values_callable=enum_values), nullable=True, index=True)
    attachments = Column(JSON, default=list, nullable=False)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # System dates
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    creator = relationship("User", foreign_keys=[created_by], back_populates="created_tasks")
    assignees = relationship("User", secondary=task_assignees, back_populates="assigned_tasks", lazy="selectin")
    todo_checklist = relationship(
        "TodoItem",
        back_populates="task",
        order_by="TodoItem.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def assigned_to(self):
        return [user.id for user in self.assignees]

    @property
    def completed_todo_count(self) -> int:
        return sum(1 for item in self.todo_checklist if item.completed)


class TodoItem(Base):
    __tablename__ = "task_todo_items"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    text = Column(String, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)

    task = relationship("Task", back_populates="todo_checklist")
