"""Knowledge base models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Article(BaseModel):
    """Help-center article used to ground replies."""

    id: str
    category: str
    title: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SourceCitation(BaseModel):
    """Article reference returned with a reply for transparency."""

    article_id: str
    article_title: str
    relevance_score: float
    excerpt: str
