from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
import uuid

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_admin_user
from ...services.admin_service import AdminService
from ...services.article_service import HealthArticleService
from ...schemas.auth import UserResponse, MessageResponse
from ...schemas.admin import SystemStats, PendingDoctorResponse, UserActionResponse
from ...schemas.health_article import (
    HealthArticleCreate, HealthArticleUpdate, HealthArticleResponse, HealthArticleActionResponse
)
from ...models.user import User

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(get_admin_user)]
)

@router.get("/stats", response_model=SystemStats)
async def get_stats(db: Session = Depends(get_db)):
    return AdminService(db).get_stats()

@router.get("/users", response_model=List[UserResponse])
async def list_users(
    role: Optional[UserRole] = None,
    db: Session = Depends(get_db)
):
    """List users, newest first, optionally by role."""
    return AdminService(db).list_users(role)

@router.get("/doctors/pending", response_model=List[PendingDoctorResponse])
async def list_pending_doctors(db: Session = Depends(get_db)):
    return AdminService(db).list_pending_doctors()

@router.post("/doctors/{doctor_id}/approve", response_model=UserActionResponse)
async def approve_doctor(
    doctor_id: uuid.UUID,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    doctor = AdminService(db).approve_doctor(doctor_id, current_user)
    return UserActionResponse(
        message="Doctor approved successfully",
        user=UserResponse.model_validate(doctor),
    )

@router.post("/users/{user_id}/deactivate", response_model=UserActionResponse)
async def deactivate_user(
    user_id: uuid.UUID,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    user = AdminService(db).set_active(user_id, current_user, is_active=False)
    return UserActionResponse(
        message="User deactivated successfully",
        user=UserResponse.model_validate(user),
    )

@router.post("/users/{user_id}/activate", response_model=UserActionResponse)
async def activate_user(
    user_id: uuid.UUID,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    user = AdminService(db).set_active(user_id, current_user, is_active=True)
    return UserActionResponse(
        message="User activated successfully",
        user=UserResponse.model_validate(user),
    )

# Health articles, drafts included

@router.get("/health-articles", response_model=List[HealthArticleResponse])
async def list_articles(db: Session = Depends(get_db)):
    return HealthArticleService(db).list_articles(published_only=False)

@router.post(
    "/health-articles",
    response_model=HealthArticleActionResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_article(
    article_data: HealthArticleCreate,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    article = HealthArticleService(db).create_article(current_user, article_data)
    return HealthArticleActionResponse(message="Health article created successfully", article=article)

@router.put("/health-articles/{article_id}", response_model=HealthArticleActionResponse)
async def update_article(
    article_id: uuid.UUID,
    article_data: HealthArticleUpdate,
    db: Session = Depends(get_db)
):
    """Update an article; omitted fields are left unchanged."""
    article = HealthArticleService(db).update_article(article_id, article_data)
    return HealthArticleActionResponse(message="Health article updated successfully", article=article)

@router.delete("/health-articles/{article_id}", response_model=MessageResponse)
async def delete_article(
    article_id: uuid.UUID,
    db: Session = Depends(get_db)
):
    HealthArticleService(db).delete_article(article_id)
    return MessageResponse(message="Health article deleted successfully")
