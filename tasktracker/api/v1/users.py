from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from tasktracker.db.base import get_db
from tasktracker.core.deps import require_role
from tasktracker.models.user import User, UserRole
from tasktracker.schemas.common import ApiResponse, Pagination
from tasktracker.schemas.user import (
    UserCreate, RoleUpdate, ManagerAssignment, ManagerUnassignment,
    UserResponse, UserSummary, UserData, UserListData, ManagerListData,
    TeamData, ManagerAssignmentData
)
from tasktracker.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

admin_only = require_role([UserRole.ADMIN])
manager_or_admin = require_role([UserRole.ADMIN, UserRole.MANAGER])


def _user_data(user) -> UserData:
    return UserData(user=UserResponse.model_validate(user))


@router.post("/create", response_model=ApiResponse[UserData], status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    user = UserService(db).create_user(current_user, user_data)
    return ApiResponse(
        message=f"{user.role.value.capitalize()} created successfully",
        data=_user_data(user)
    )


@router.get("", response_model=ApiResponse[UserListData])
def list_users(
    role: Optional[UserRole] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    users, total = UserService(db).list_users(current_user, role, page, limit)
    return ApiResponse(
        data=UserListData(
            users=[UserResponse.model_validate(user) for user in users],
            pagination=Pagination.build(total, page, limit)
        )
    )


@router.get("/managers", response_model=ApiResponse[ManagerListData])
def list_managers(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    managers = UserService(db).list_managers(current_user)
    return ApiResponse(
        data=ManagerListData(
            managers=[UserResponse.model_validate(manager) for manager in managers],
            count=len(managers)
        )
    )


@router.get("/team", response_model=ApiResponse[TeamData])
def list_team(
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_or_admin)
):
    members = UserService(db).list_team(current_user)
    return ApiResponse(
        data=TeamData(
            team_members=[UserResponse.model_validate(member) for member in members],
            count=len(members)
        )
    )


@router.get("/profile/{user_id}", response_model=ApiResponse[UserData])
def get_user_profile(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_or_admin)
):
    user = UserService(db).get_profile(current_user, user_id)
    return ApiResponse(data=_user_data(user))


@router.post("/assign-to-manager", response_model=ApiResponse[ManagerAssignmentData])
def assign_user_to_manager(
    assignment: ManagerAssignment,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    user, manager = UserService(db).assign_to_manager(
        current_user, assignment.user_id, assignment.manager_id
    )
    return ApiResponse(
        message="User assigned to manager successfully",
        data=ManagerAssignmentData(
            user=UserResponse.model_validate(user),
            manager=UserSummary.model_validate(manager)
        )
    )


@router.post("/unassign-from-manager", response_model=ApiResponse[UserData])
def unassign_user_from_manager(
    unassignment: ManagerUnassignment,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    user = UserService(db).unassign_from_manager(current_user, unassignment.user_id)
    return ApiResponse(message="User unassigned from manager successfully", data=_user_data(user))


@router.put("/{user_id}/role", response_model=ApiResponse[UserData])
def update_user_role(
    user_id: int,
    role_update: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    user = UserService(db).change_role(current_user, user_id, role_update.role)
    return ApiResponse(
        message=f"User role updated to {user.role.value} successfully",
        data=_user_data(user)
    )


@router.delete("/{user_id}", response_model=ApiResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    UserService(db).delete_user(current_user, user_id)
    return ApiResponse(message="User deleted successfully")
