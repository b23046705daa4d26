from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Literal, Optional
from tasktracker.db.base import get_db
from tasktracker.core.deps import get_current_user, get_notifier, require_role
from tasktracker.models.user import User, UserRole
from tasktracker.models.task import TaskStatus, TaskPriority
from tasktracker.schemas.common import ApiResponse, Pagination
from tasktracker.schemas.task import (
    TaskCreate, TaskUpdate, TaskAssign, TaskResponse,
    TaskData, TaskListData, TaskCollectionData
)
from tasktracker.services.notifications import Notifier
from tasktracker.services.task_service import TaskService
from tasktracker.stores.tasks import TaskQuery

router = APIRouter(prefix="/tasks", tags=["Tasks"])

SortField = Literal["dueDate", "priority", "createdAt", "status"]


def _task_data(task) -> TaskData:
    return TaskData(task=TaskResponse.model_validate(task))


def _collection(tasks) -> TaskCollectionData:
    return TaskCollectionData(
        tasks=[TaskResponse.model_validate(task) for task in tasks],
        count=len(tasks)
    )


# Fixed paths come before /{task_id}
@router.get("/assigned/me", response_model=ApiResponse[TaskCollectionData])
def get_my_assigned_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    tasks = TaskService(db).list_assigned_to_me(current_user)
    return ApiResponse(data=_collection(tasks))


@router.get("/assigned/user/{user_id}", response_model=ApiResponse[TaskCollectionData])
def get_user_assigned_tasks(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.ADMIN, UserRole.MANAGER]))
):
    tasks = TaskService(db).list_assigned_to_user(current_user, user_id)
    return ApiResponse(data=_collection(tasks))


@router.post("", response_model=ApiResponse[TaskData], status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = TaskService(db).create_task(current_user, task_data)
    return ApiResponse(message="Task created successfully", data=_task_data(task))


@router.get("", response_model=ApiResponse[TaskListData])
def list_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    sort_by: Optional[SortField] = Query(None, alias="sortBy"),
    order: Optional[Literal["asc", "desc"]] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    params = TaskQuery(
        status=status_filter,
        priority=priority,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit
    )
    tasks, total = TaskService(db).list_tasks(current_user, params)
    return ApiResponse(
        data=TaskListData(
            tasks=[TaskResponse.model_validate(task) for task in tasks],
            pagination=Pagination.build(total, page, limit)
        )
    )


@router.get("/{task_id}", response_model=ApiResponse[TaskData])
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = TaskService(db).get_task(current_user, task_id)
    return ApiResponse(data=_task_data(task))


@router.put("/{task_id}", response_model=ApiResponse[TaskData])
def update_task(
    task_id: int,
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = TaskService(db).update_task(current_user, task_id, task_data)
    return ApiResponse(message="Task updated successfully", data=_task_data(task))


@router.delete("/{task_id}", response_model=ApiResponse)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    TaskService(db).delete_task(current_user, task_id)
    return ApiResponse(message="Task deleted successfully")


# Open to every role; users may only assign to themselves
@router.post("/{task_id}/assign", response_model=ApiResponse[TaskData])
def assign_task(
    task_id: int,
    assignment: TaskAssign,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    current_user: User = Depends(get_current_user)
):
    task = TaskService(db, notifier).assign_task(current_user, task_id, assignment.user_id)
    return ApiResponse(message="Task assigned successfully", data=_task_data(task))
