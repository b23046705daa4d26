"""Persistence of tasks with filtered, sorted and paginated queries."""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import and_, case
from sqlalchemy.orm import Session

from tasktracker.core.timeutils import utcnow
from tasktracker.models.task import (
    PRIORITY_RANK,
    STATUS_RANK,
    Task,
    TaskPriority,
    TaskStatus,
)

_priority_order = case(
    *[(Task.priority == priority, rank) for priority, rank in PRIORITY_RANK.items()],
    else_=len(PRIORITY_RANK),
)
_status_order = case(
    *[(Task.status == status, rank) for status, rank in STATUS_RANK.items()],
    else_=len(STATUS_RANK),
)

SORT_COLUMNS = {
    "dueDate": Task.due_date,
    "priority": _priority_order,
    "createdAt": Task.created_at,
    "status": _status_order,
}


@dataclass
class TaskQuery:
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    sort_by: Optional[str] = None
    order: Optional[str] = None
    page: int = 1
    limit: int = 10

    def ordering(self):
        """Resolve the sort field and direction.

        No field means newest first; a field without an order sorts ascending.
        """
        column = SORT_COLUMNS[self.sort_by or "createdAt"]
        direction = self.order or ("asc" if self.sort_by else "desc")
        if direction == "desc":
            return [column.desc(), Task.id.desc()]
        return [column.asc(), Task.id.asc()]


class TaskStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, task_id: int) -> Optional[Task]:
        return self.db.get(Task, task_id)

    def create(self, **fields) -> Task:
        task = Task(**fields)
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def save(self, task: Task) -> Task:
        task.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(task)
        return task

    def delete(self, task: Task) -> None:
        self.db.delete(task)
        self.db.commit()

    def query(self, params: TaskQuery, predicate=None) -> Tuple[List[Task], int]:
        """Return one page of tasks matching ``predicate`` and the filters,
        together with the total number of matching tasks."""
        conditions = []
        if predicate is not None:
            conditions.append(predicate)
        if params.status is not None:
            conditions.append(Task.status == params.status)
        if params.priority is not None:
            conditions.append(Task.priority == params.priority)

        query = self.db.query(Task)
        if conditions:
            query = query.filter(and_(*conditions))

        total = query.count()
        tasks = (
            query.order_by(*params.ordering())
            .offset((params.page - 1) * params.limit)
            .limit(params.limit)
            .all()
        )
        return tasks, total

    def list_assigned_to(self, user_id: int, predicate=None) -> List[Task]:
        query = self.db.query(Task).filter(Task.assigned_to == user_id)
        if predicate is not None:
            query = query.filter(predicate)
        return query.order_by(Task.created_at.desc(), Task.id.desc()).all()
