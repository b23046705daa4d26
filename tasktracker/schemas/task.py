from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional, List

from tasktracker.core.timeutils import to_naive_utc, utcnow
from tasktracker.models.task import TaskStatus, TaskPriority
from tasktracker.schemas.common import APIModel, Pagination, RequestModel
from tasktracker.schemas.user import UserSummary


def _future_due_date(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    value = to_naive_utc(value)
    if value <= utcnow():
        raise ValueError("Due date must be in the future")
    return value


class TaskCreate(RequestModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    due_date: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING

    check_due_date = field_validator("due_date")(_future_due_date)


class TaskUpdate(RequestModel):
    title: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    due_date: Optional[datetime] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None

    check_due_date = field_validator("due_date")(_future_due_date)

    def changes(self) -> dict:
        """Fields present in the request; null and empty strings mean no change."""
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None and value != ""
        }


class TaskAssign(RequestModel):
    user_id: int


class TaskResponse(APIModel):
    id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: TaskPriority
    status: TaskStatus
    created_by: int
    assigned_to: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    # Null when the principal no longer exists
    creator: Optional[UserSummary] = None
    assignee: Optional[UserSummary] = None


class TaskData(APIModel):
    task: TaskResponse


class TaskListData(APIModel):
    tasks: List[TaskResponse]
    pagination: Pagination


class TaskCollectionData(APIModel):
    tasks: List[TaskResponse]
    count: int
