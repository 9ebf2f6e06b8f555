"""Conversation, message and ticket records."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ConversationStatus(str, Enum):
    """Lifecycle of a conversation. Nothing leaves RESOLVED."""

    OPEN = "open"
    ESCALATED = "escalated"
    RESOLVED = "resolved"


class MessageRole(str, Enum):
    CUSTOMER = "customer"
    AI = "ai"
    AGENT = "agent"
    SYSTEM = "system"


class Priority(str, Enum):
    """Priority levels shared by tickets, triggers and alerts."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class Conversation(BaseModel):
    """One customer support session."""

    id: str
    customer_id: str
    customer_name: str
    customer_email: Optional[str] = None
    status: ConversationStatus = ConversationStatus.OPEN
    category: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Message(BaseModel):
    """Immutable conversation turn; confidence_score is only set for AI replies."""

    id: str
    conversation_id: str
    role: MessageRole
    content: str
    confidence_score: Optional[float] = Field(default=None, ge=0, le=1)
    created_at: datetime


class Ticket(BaseModel):
    """Human-handled escalation attached to a conversation."""

    id: str
    ticket_id: str = Field(description="Human readable id such as TKT-2847")
    conversation_id: str
    customer: str
    category: str
    priority: Priority
    escalation_reason: str
    assigned_agent: Optional[str] = None
    status: TicketStatus = TicketStatus.OPEN
    created_at: datetime
    updated_at: datetime


class ConversationDetail(BaseModel):
    """Conversation plus its ordered messages."""

    conversation: Conversation
    messages: List[Message] = Field(default_factory=list)


class TicketStats(BaseModel):
    open: int = 0
    in_progress: int = 0
    resolved: int = 0
    avg_wait_minutes: float = 0.0
