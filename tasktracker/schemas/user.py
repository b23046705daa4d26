import re
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from tasktracker.models.user import UserRole
from tasktracker.schemas.common import APIModel, Pagination, RequestModel

PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")
USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"


class UserCredentials(RequestModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if not PASSWORD_RE.match(value):
            raise ValueError(
                "Password must contain uppercase, lowercase, number and special character"
            )
        return value


class RegisterRequest(UserCredentials):
    pass


class UserCreate(UserCredentials):
    role: UserRole = UserRole.USER


class LoginRequest(RequestModel):
    identifier: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RoleUpdate(RequestModel):
    role: UserRole


class ManagerAssignment(RequestModel):
    user_id: int
    manager_id: int


class ManagerUnassignment(RequestModel):
    user_id: int


class UserSummary(APIModel):
    id: int
    username: str
    email: str
    role: UserRole


class UserResponse(UserSummary):
    manager_id: Optional[int] = None
    email_confirmed: bool
    created_at: datetime


class UserData(APIModel):
    user: UserResponse


class LoginData(APIModel):
    token: str
    user: UserSummary


class UserListData(APIModel):
    users: List[UserResponse]
    pagination: Pagination


class ManagerListData(APIModel):
    managers: List[UserResponse]
    count: int


class TeamData(APIModel):
    team_members: List[UserResponse]
    count: int


class ManagerAssignmentData(APIModel):
    user: UserResponse
    manager: UserSummary


class SeedCredentials(APIModel):
    email: str
    password: str
    note: str


class SeedData(APIModel):
    user: UserSummary
    credentials: SeedCredentials
