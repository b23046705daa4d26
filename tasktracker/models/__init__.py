from tasktracker.models.user import User, UserRole
from tasktracker.models.task import (
    Task,
    TaskStatus,
    TaskPriority,
    PRIORITY_RANK,
    STATUS_RANK,
)
from tasktracker.models.revoked_token import RevokedToken

__all__ = [
    "User",
    "UserRole",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "PRIORITY_RANK",
    "STATUS_RANK",
    "RevokedToken",
]
