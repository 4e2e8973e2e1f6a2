import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class HealthArticleCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    category: Optional[str] = Field(default=None, max_length=100)
    is_published: bool = False


class HealthArticleUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, max_length=100)
    is_published: Optional[bool] = None


class HealthArticleResponse(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    category: Optional[str] = None
    is_published: bool
    author_id: Optional[uuid.UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class HealthArticleActionResponse(BaseModel):
    message: str
    article: HealthArticleResponse
