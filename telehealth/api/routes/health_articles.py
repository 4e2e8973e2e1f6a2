from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
import uuid

from ...core.database import get_db
from ...services.article_service import HealthArticleService
from ...schemas.health_article import HealthArticleResponse

router = APIRouter(prefix="/health-articles", tags=["Health Articles"])

@router.get("/", response_model=List[HealthArticleResponse])
async def list_articles(
    category: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List published articles, newest first."""
    return HealthArticleService(db).list_articles(category=category)

@router.get("/{article_id}", response_model=HealthArticleResponse)
async def get_article(
    article_id: uuid.UUID,
    db: Session = Depends(get_db)
):
    return HealthArticleService(db).get_article(article_id)
