from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from tasktracker.db.base import get_db
from tasktracker.schemas.common import ApiResponse
from tasktracker.schemas.user import SeedData, SeedCredentials, UserSummary
from tasktracker.services.user_service import (
    UserService, SEED_ADMIN_EMAIL, SEED_ADMIN_PASSWORD
)

router = APIRouter(prefix="/seed", tags=["Seed"])


@router.post("/admin", response_model=ApiResponse[SeedData], status_code=status.HTTP_201_CREATED)
def seed_admin(db: Session = Depends(get_db)):
    """Create the first administrator; only works on an empty user store."""
    admin = UserService(db).seed_admin()
    return ApiResponse(
        message="Admin user created successfully",
        data=SeedData(
            user=UserSummary.model_validate(admin),
            credentials=SeedCredentials(
                email=SEED_ADMIN_EMAIL,
                password=SEED_ADMIN_PASSWORD,
                note="Please login with these credentials and change password"
            )
        )
    )
