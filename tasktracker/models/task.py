from sqlalchemy import Column, Integer, String, DateTime, Enum, Index
from sqlalchemy.orm import relationship
import enum
from tasktracker.core.timeutils import utcnow
from tasktracker.db.base import Base


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Rank order used when sorting by priority or status
PRIORITY_RANK = {TaskPriority.LOW: 0, TaskPriority.MEDIUM: 1, TaskPriority.HIGH: 2}
STATUS_RANK = {TaskStatus.PENDING: 0, TaskStatus.IN_PROGRESS: 1, TaskStatus.COMPLETED: 2}


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_created_by_status", "created_by", "status"),
        Index("ix_tasks_assigned_to_status", "assigned_to", "status"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False, index=True)
    description = Column(String(500))
    status = Column(Enum(TaskStatus), default=TaskStatus.PENDING, nullable=False, index=True)
    priority = Column(Enum(TaskPriority), default=TaskPriority.MEDIUM, nullable=False, index=True)
    due_date = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Principal back-references, never ownership
    created_by = Column(Integer, nullable=False)
    assigned_to = Column(Integer, nullable=True)

    # Resolve to None once the principal is deleted
    creator = relationship(
        "User",
        primaryjoin="foreign(Task.created_by) == User.id",
        viewonly=True,
        lazy="selectin",
    )
    assignee = relationship(
        "User",
        primaryjoin="foreign(Task.assigned_to) == User.id",
        viewonly=True,
        lazy="selectin",
    )
