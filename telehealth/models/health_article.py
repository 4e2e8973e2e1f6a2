import uuid

from sqlalchemy import Column, String, ForeignKey, DateTime, Boolean, Text, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class HealthArticle(Base):
    __tablename__ = "health_articles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    category = Column(String(100), nullable=True, index=True)
    author_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_published = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    author = relationship("User")

    def __repr__(self):
        return f"<HealthArticle(id={self.id}, title='{self.title}')>"
