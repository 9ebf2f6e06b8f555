"""Dashboard statistics."""

from typing import List

from pydantic import BaseModel, Field


class IssueCount(BaseModel):
    issue: str
    count: int


class AnalyticsStats(BaseModel):
    total_conversations: int = 0
    active_conversations: int = 0
    escalated_conversations: int = 0
    resolved_conversations: int = 0
    escalation_rate: float = Field(0.0, description="Percent of conversations that got a ticket")
    deflection_rate: float = Field(0.0, description="Percent of conversations handled without a ticket")
    messages_processed: int = 0
    intent_signals_captured: int = 0
    top_issues: List[IssueCount] = Field(default_factory=list)


class BreakdownItem(BaseModel):
    """One slice of a dashboard breakdown; ``value`` is a whole percent."""

    name: str
    value: int
