from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user, rate_limit_check
from ...services.auth_service import AuthService
from ...schemas.auth import (
    UserSignup, UserLogin, TokenResponse, UserResponse,
    ChangePassword, MessageResponse
)
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: UserSignup,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a patient or doctor account."""
    auth_service = AuthService(db)
    return auth_service.register_user(user_data)

@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return an access token."""
    auth_service = AuthService(db)
    return auth_service.authenticate_user(login_data)

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return UserResponse.model_validate(current_user)

@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    password_data: ChangePassword,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change user password."""
    auth_service = AuthService(db)
    auth_service.change_password(current_user, password_data)

    return MessageResponse(message="Password changed successfully")
