from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
import logging
import uuid

from ..core.exceptions import NotFoundError
from ..models.user import User
from ..models.health_article import HealthArticle
from ..schemas.health_article import (
    HealthArticleCreate, HealthArticleUpdate, HealthArticleResponse
)

logger = logging.getLogger(__name__)


def article_response(article: HealthArticle) -> HealthArticleResponse:
    author = article.author
    return HealthArticleResponse(
        id=article.id,
        title=article.title,
        content=article.content,
        category=article.category,
        is_published=article.is_published,
        author_id=article.author_id,
        first_name=author.first_name if author else None,
        last_name=author.last_name if author else None,
        created_at=article.created_at,
        updated_at=article.updated_at,
    )


class HealthArticleService:
    """Public reading and admin editing of health articles."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(HealthArticle).options(joinedload(HealthArticle.author))

    def list_articles(
        self, category: Optional[str] = None, published_only: bool = True
    ) -> List[HealthArticleResponse]:
        query = self._query()
        if published_only:
            query = query.filter(HealthArticle.is_published.is_(True))
        if category:
            query = query.filter(HealthArticle.category == category)

        articles = query.order_by(HealthArticle.created_at.desc()).all()
        return [article_response(article) for article in articles]

    def get_article(self, article_id: uuid.UUID, published_only: bool = True) -> HealthArticleResponse:
        return article_response(self._get(article_id, published_only))

    def _get(self, article_id: uuid.UUID, published_only: bool = False) -> HealthArticle:
        query = self._query().filter(HealthArticle.id == article_id)
        if published_only:
            query = query.filter(HealthArticle.is_published.is_(True))
        article = query.first()
        if not article:
            raise NotFoundError("Article not found")
        return article

    def create_article(self, author: User, data: HealthArticleCreate) -> HealthArticleResponse:
        article = HealthArticle(
            title=data.title,
            content=data.content,
            category=data.category,
            is_published=data.is_published,
            author_id=author.id,
        )
        self.db.add(article)
        self.db.commit()
        self.db.refresh(article)

        logger.info(f"Admin {author.id} created article {article.id}")
        return article_response(article)

    def update_article(self, article_id: uuid.UUID, data: HealthArticleUpdate) -> HealthArticleResponse:
        article = self._get(article_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(article, field, value)

        self.db.commit()
        self.db.refresh(article)
        return article_response(article)

    def delete_article(self, article_id: uuid.UUID) -> None:
        article = self._get(article_id)
        self.db.delete(article)
        self.db.commit()
        logger.info(f"Deleted article {article_id}")
