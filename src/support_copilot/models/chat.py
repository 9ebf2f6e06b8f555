"""Request/response contract of the conversation pipeline."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from support_copilot.models.analysis import (
    QuickAction,
    ResolutionSuggestion,
    SentimentAnalysis,
)
from support_copilot.models.conversation import Message
from support_copilot.models.customer import CustomerContext, ProactiveAlert
from support_copilot.models.knowledge import Article, SourceCitation


class ChatRequest(BaseModel):
    """Inbound customer message."""

    message: str
    conversation_id: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    model_id: Optional[str] = None

    @field_validator("message")
    @classmethod
    def validate_message(cls, value: str) -> str:
        """Reject empty messages before any model call is spent on them."""
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("message is required")
        return cleaned


class RequestConfig(BaseModel):
    """Per-request settings threaded through the pipeline."""

    model_id: str


class GeneratedReply(BaseModel):
    content: str
    confidence_score: float = Field(ge=0.1, le=0.95)
    suggested_responses: List[str] = Field(default_factory=list)
    articles: List[Article] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """Bundle returned for one processed customer message."""

    conversation_id: str
    message: Message
    suggested_responses: List[str] = Field(default_factory=list)
    should_escalate: bool = False
    escalation_reason: Optional[str] = None
    customer_context: Optional[CustomerContext] = None
    sentiment: SentimentAnalysis
    quick_actions: List[QuickAction] = Field(default_factory=list)
    resolution_suggestion: Optional[ResolutionSuggestion] = None
    proactive_alerts: List[ProactiveAlert] = Field(default_factory=list)
    source_citations: List[SourceCitation] = Field(default_factory=list)
