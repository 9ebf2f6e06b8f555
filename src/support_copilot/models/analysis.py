"""Value objects produced by the analyzers: sentiment, actions, escalation."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from support_copilot.models.conversation import Priority


class SentimentLevel(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    CONCERNED = "concerned"
    FRUSTRATED = "frustrated"
    ANGRY = "angry"


class SentimentTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class EscalationRisk(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SentimentAnalysis(BaseModel):
    """Emotional read of the latest customer message in context."""

    level: SentimentLevel
    score: float = Field(ge=-1, le=1)
    indicators: List[str] = Field(default_factory=list)
    trend: SentimentTrend = SentimentTrend.STABLE
    empathy_needed: bool = False

    primary_emotion: Optional[str] = None
    secondary_emotions: Optional[List[str]] = None
    escalation_risk: Optional[EscalationRisk] = None
    contextual_insights: Optional[str] = None
    recommended_tone: Optional[str] = None

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        """Models occasionally overshoot the range; clamp instead of rejecting."""
        if value is None:
            return 0.0
        return max(-1.0, min(1.0, float(value)))


class ActionType(str, Enum):
    REFUND = "refund"
    DISCOUNT = "discount"
    REPLACEMENT = "replacement"
    EXPEDITE_SHIPPING = "expedite_shipping"
    CALLBACK = "callback"
    MANUAL_REVIEW = "manual_review"


class QuickAction(BaseModel):
    """A remediation proposed to the agent or customer, already rule-checked."""

    id: str
    type: ActionType
    label: str
    description: str
    eligible: bool
    reason: Optional[str] = None
    estimated_value: Optional[float] = None
    auto_approved: bool


class ActionCandidate(BaseModel):
    """Raw recommendation as returned by the model, before business rules."""

    type: ActionType
    confidence: float = Field(ge=0, le=1)
    reason: Optional[str] = None
    priority: int = 99


class ResolutionSuggestion(BaseModel):
    primary_action: QuickAction
    alternative_actions: List[QuickAction] = Field(default_factory=list)
    confidence: float = Field(ge=0, le=1)
    reasoning: str


class EscalationType(str, Enum):
    LOW_CONFIDENCE = "low_confidence"
    CUSTOMER_REQUEST = "customer_request"
    SENSITIVE_TOPIC = "sensitive_topic"
    REPEATED_QUESTION = "repeated_question"
    NEGATIVE_SENTIMENT = "negative_sentiment"
    POLICY_EXCEPTION = "policy_exception"


class EscalationTrigger(BaseModel):
    type: EscalationType
    reason: str
    priority: Priority


class IntentSignal(BaseModel):
    category: str
    intent: str
    confidence: float = Field(default=0.0, ge=0, le=1)
    urgency: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)


class IntentExtraction(BaseModel):
    """Commercial intent and zero-party data captured for analytics."""

    intent_signals: List[IntentSignal] = Field(default_factory=list)
    zero_party_data: dict = Field(default_factory=dict)
    conversation_outcome: Optional[str] = None
