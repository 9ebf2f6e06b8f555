"""
Escalation decision engine and ticket categorization.

Both are ordered rule lists evaluated by ``utils.rules.first_match``; the list
order is the precedence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from support_copilot.models import (
    EscalationTrigger,
    EscalationType,
    Priority,
    SentimentAnalysis,
    SentimentLevel,
    SentimentTrend,
)
from support_copilot.utils.logging_config import get_logger
from support_copilot.utils.rules import Rule, first_match
from support_copilot.utils.text import Lexicon, dollar_amounts

logger = get_logger(__name__)

HIGH_VALUE_THRESHOLD = 100
LOW_CONFIDENCE_THRESHOLD = 0.5

HUMAN_REQUEST = Lexicon(
    [
        "speak to human", "talk to human", "human agent", "real person",
        "speak to someone", "talk to someone", "manager", "supervisor",
        "representative", "speak to agent", "connect me with",
    ]
)
FRUSTRATION = Lexicon(
    [
        "ridiculous", "unacceptable", "terrible", "worst", "awful",
        "angry", "frustrated", "furious", "sue", "lawyer", "legal",
        "scam", "fraud", "stealing", "never again", "disgusted",
    ]
)
SENSITIVE_TOPICS = Lexicon(
    [
        "refund", "chargeback", "dispute", "compensation",
        "lost package", "never received", "damaged", "broken",
        "not what i ordered", "wrong item",
    ],
    patterns=[r"\b(?:want|get) my (?:\$\s*[\d,.]+|money) back\b"],
)
REPLY_UNCERTAINTY = Lexicon(
    [
        "connect you with", "human agent", "specialist", "escalate",
        "not sure", "cannot help with", "beyond my capabilities",
    ]
)

PROACTIVE_REASON = "Customer sentiment is angry and declining - proactive escalation"


@dataclass(frozen=True)
class EscalationInput:
    message: str
    reply: str
    confidence_score: float


def _trigger(kind: EscalationType, reason: str, priority: Priority) -> EscalationTrigger:
    return EscalationTrigger(type=kind, reason=reason, priority=priority)


def _high_value(message: str) -> bool:
    return any(amount > HIGH_VALUE_THRESHOLD for amount in dollar_amounts(message))


ESCALATION_RULES: List[Rule[EscalationInput, EscalationTrigger]] = [
    Rule(
        "human_request",
        lambda s: HUMAN_REQUEST.matches(s.message),
        _trigger(EscalationType.CUSTOMER_REQUEST, "Customer requested to speak with a human agent", Priority.HIGH),
    ),
    Rule(
        "frustration",
        lambda s: FRUSTRATION.matches(s.message),
        _trigger(EscalationType.NEGATIVE_SENTIMENT, "Customer expressing frustration or negative sentiment", Priority.HIGH),
    ),
    Rule(
        "high_value_sensitive",
        lambda s: SENSITIVE_TOPICS.matches(s.message) and _high_value(s.message),
        _trigger(EscalationType.SENSITIVE_TOPIC, "High-value issue requiring human review", Priority.HIGH),
    ),
    Rule(
        "sensitive",
        lambda s: SENSITIVE_TOPICS.matches(s.message),
        _trigger(EscalationType.SENSITIVE_TOPIC, "Sensitive issue that may require human intervention", Priority.MEDIUM),
    ),
    Rule(
        "low_confidence",
        lambda s: s.confidence_score < LOW_CONFIDENCE_THRESHOLD,
        _trigger(EscalationType.LOW_CONFIDENCE, "AI confidence is low for this query", Priority.MEDIUM),
    ),
    Rule(
        "reply_uncertainty",
        lambda s: REPLY_UNCERTAINTY.matches(s.reply),
        _trigger(EscalationType.LOW_CONFIDENCE, "AI indicated need for human assistance", Priority.MEDIUM),
    ),
]


def _mentions(*words: str):
    return lambda text: any(word in text.lower() for word in words)


CATEGORY_RULES: List[Rule[str, str]] = [
    Rule("returns", _mentions("return", "refund"), "Returns"),
    Rule("billing", _mentions("payment", "billing", "charge"), "Billing"),
    Rule("orders", _mentions("order", "track"), "Orders"),
    Rule("shipping", _mentions("shipping", "delivery", "package"), "Shipping"),
    Rule("account", _mentions("account", "password", "login"), "Account"),
    Rule("product", _mentions("product", "item", "quality"), "Product"),
]

DEFAULT_CATEGORY = "General"


def decide(
    message: str,
    reply: str,
    confidence_score: float,
    sentiment: Optional[SentimentAnalysis] = None,
) -> Optional[EscalationTrigger]:
    """Return the first matching escalation trigger, or None."""
    subject = EscalationInput(message=message, reply=reply, confidence_score=confidence_score)
    rule_name, trigger = first_match(ESCALATION_RULES, subject)
    if trigger is not None:
        logger.info(
            "Escalation rule matched",
            extra={
                "rule": rule_name,
                "escalation_type": trigger.type.value,
                "priority": trigger.priority.value,
                "sentiment": sentiment.level.value if sentiment else None,
            },
        )
    return trigger


def proactive_trigger(sentiment: Optional[SentimentAnalysis]) -> Optional[EscalationTrigger]:
    """Angry and getting worse warrants a human even when no rule fired."""
    if (
        sentiment is not None
        and sentiment.level == SentimentLevel.ANGRY
        and sentiment.trend == SentimentTrend.DECLINING
    ):
        return _trigger(EscalationType.NEGATIVE_SENTIMENT, PROACTIVE_REASON, Priority.HIGH)
    return None


def categorize(message: str) -> str:
    _, category = first_match(CATEGORY_RULES, message, DEFAULT_CATEGORY)
    return category
