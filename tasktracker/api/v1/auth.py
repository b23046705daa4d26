from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from tasktracker.db.base import get_db
from tasktracker.core.deps import AuthContext, get_auth_context, get_notifier, get_token_vault
from tasktracker.core.rate_limit import login_rate_limit
from tasktracker.core.tokens import TokenVault
from tasktracker.schemas.common import ApiResponse
from tasktracker.schemas.user import (
    RegisterRequest, LoginRequest, UserResponse, UserSummary, UserData, LoginData
)
from tasktracker.services.auth_service import AuthService
from tasktracker.services.notifications import Notifier
from tasktracker.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=ApiResponse[UserData], status_code=status.HTTP_201_CREATED)
def register(
    user_data: RegisterRequest,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    user = UserService(db, notifier).register(user_data)
    return ApiResponse(
        message="User registered successfully",
        data=UserData(user=UserResponse.model_validate(user))
    )


@router.post("/login", response_model=ApiResponse[LoginData], dependencies=[Depends(login_rate_limit)])
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    vault: TokenVault = Depends(get_token_vault)
):
    token, user = AuthService(db, vault).login(credentials.identifier, credentials.password)
    return ApiResponse(
        message="Login successful",
        data=LoginData(token=token, user=UserSummary.model_validate(user))
    )


@router.post("/logout", response_model=ApiResponse)
def logout(
    context: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
    vault: TokenVault = Depends(get_token_vault)
):
    AuthService(db, vault).logout(context.user, context.token)
    return ApiResponse(message="Logout successful")


@router.get("/profile", response_model=ApiResponse[UserData])
def get_profile(context: AuthContext = Depends(get_auth_context)):
    return ApiResponse(data=UserData(user=UserResponse.model_validate(context.user)))
