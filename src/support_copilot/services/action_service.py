"""
Quick action recommendation service.

Recommends remediation actions (refund, discount, replacement, ...) for the
current turn. Candidates come from the model when it answers with a valid
JSON array and from keyword triggers otherwise; both paths pass through the
same business-rule validator, so refund limits hold no matter who proposed
the action.
"""

from __future__ import annotations

import time
import uuid
from typing import Callable, List, Optional, Sequence, Tuple

from support_copilot.models import (
    ActionCandidate,
    ActionType,
    CustomerContext,
    Message,
    QuickAction,
    ResolutionSuggestion,
    SentimentAnalysis,
    SentimentLevel,
)
from support_copilot.services.llm_gateway import LanguageModelGateway
from support_copilot.utils.error_handling import GatewayError
from support_copilot.utils.logging_config import get_logger
from support_copilot.utils.structured_output import ParseError, decode_json_block
from support_copilot.utils.text import Lexicon, format_history

logger = get_logger(__name__)

MIN_CANDIDATE_CONFIDENCE = 0.5
MAX_ACTIONS = 3

ACTION_LABELS = {
    ActionType.REFUND: "Process Refund",
    ActionType.DISCOUNT: "Offer Discount Code",
    ActionType.REPLACEMENT: "Send Replacement",
    ActionType.EXPEDITE_SHIPPING: "Expedite Shipping",
    ActionType.CALLBACK: "Schedule Callback",
    ActionType.MANUAL_REVIEW: "Flag for Review",
}

DEFAULT_DESCRIPTIONS = {
    ActionType.REPLACEMENT: "Ship a replacement item with expedited delivery",
    ActionType.EXPEDITE_SHIPPING: "Upgrade to express shipping at no extra cost",
    ActionType.CALLBACK: "Have a support specialist call within 30 minutes",
    ActionType.MANUAL_REVIEW: "Escalate to supervisor for policy review",
}

REFUND_TRIGGERS = Lexicon(
    ["refund", "money back", "return"],
    patterns=[r"\b(?:want|get) my (?:\$\s*[\d,.]+|money) back\b"],
)
DISCOUNT_TRIGGERS = Lexicon(["disappointed", "unhappy"])
REPLACEMENT_TRIGGERS = Lexicon(["damaged", "broken", "wrong item", "defective", "garbage", "junk"])
EXPEDITE_TRIGGERS = Lexicon(["delay", "where is my order", "taking too long"], patterns=[r"\blate\b"])
CALLBACK_TRIGGERS = Lexicon(["speak to", "call me"])
REVIEW_TRIGGERS = Lexicon(["manager", "supervisor"])

_UPSET = (SentimentLevel.FRUSTRATED, SentimentLevel.ANGRY)

ActionTrigger = Callable[[str, Optional[SentimentAnalysis]], bool]

# Heuristic triggers in output order; every matching trigger contributes one action.
FALLBACK_TRIGGERS: Tuple[Tuple[ActionType, ActionTrigger], ...] = (
    (ActionType.REFUND, lambda text, s: REFUND_TRIGGERS.matches(text)),
    (
        ActionType.DISCOUNT,
        lambda text, s: (s is not None and s.level in _UPSET) or DISCOUNT_TRIGGERS.matches(text),
    ),
    (ActionType.REPLACEMENT, lambda text, s: REPLACEMENT_TRIGGERS.matches(text)),
    (ActionType.EXPEDITE_SHIPPING, lambda text, s: EXPEDITE_TRIGGERS.matches(text)),
    (
        ActionType.CALLBACK,
        lambda text, s: (s is not None and s.level == SentimentLevel.ANGRY) or CALLBACK_TRIGGERS.matches(text),
    ),
    (ActionType.MANUAL_REVIEW, lambda text, s: REVIEW_TRIGGERS.matches(text)),
)


class ActionService:
    """Recommend and rule-check quick actions."""

    def __init__(
        self,
        gateway: LanguageModelGateway,
        refund_auto_approval_limit: float = 100.0,
        history_window: int = 4,
    ):
        self.gateway = gateway
        self.refund_auto_approval_limit = refund_auto_approval_limit
        self.history_window = history_window

    async def recommend(
        self,
        message: str,
        history: Sequence[Message],
        model_id: str,
        customer_context: Optional[CustomerContext] = None,
        sentiment: Optional[SentimentAnalysis] = None,
    ) -> List[QuickAction]:
        start = time.perf_counter()
        prompt = self._build_prompt(message, history, customer_context, sentiment)
        try:
            output = await self.gateway.generate(prompt, model_id)
        except GatewayError as exc:
            logger.warning(
                "Action model call failed; falling back to heuristic",
                extra={"error": str(exc)},
            )
            return self.recommend_basic(message, customer_context, sentiment)

        result = decode_json_block(output, List[ActionCandidate], shape="array")
        if isinstance(result, ParseError):
            logger.warning(
                "Action output unparseable; falling back to heuristic",
                extra={"reason": result.reason, "excerpt": result.raw_excerpt},
            )
            return self.recommend_basic(message, customer_context, sentiment)

        candidates = [c for c in result.value if c.confidence >= MIN_CANDIDATE_CONFIDENCE]
        candidates.sort(key=lambda c: c.priority)

        actions: List[QuickAction] = []
        for candidate in candidates:
            if any(a.type == candidate.type for a in actions):
                continue
            actions.append(self.validate(candidate.type, customer_context, sentiment, candidate.reason))
            if len(actions) == MAX_ACTIONS:
                break

        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "Actions recommended",
            extra={"count": len(actions), "duration_ms": duration_ms, "source": "model"},
        )
        return actions

    def recommend_basic(
        self,
        message: str,
        customer_context: Optional[CustomerContext] = None,
        sentiment: Optional[SentimentAnalysis] = None,
    ) -> List[QuickAction]:
        """Keyword triggers; the same business rules apply as on the model path."""
        actions = [
            self.validate(action_type, customer_context, sentiment)
            for action_type, trigger in FALLBACK_TRIGGERS
            if trigger(message, sentiment)
        ]
        return actions[:MAX_ACTIONS]

    def validate(
        self,
        action_type: ActionType,
        customer_context: Optional[CustomerContext] = None,
        sentiment: Optional[SentimentAnalysis] = None,
        reason: Optional[str] = None,
    ) -> QuickAction:
        """Apply eligibility and auto-approval rules to one proposed action."""
        action_id = f"action-{action_type.value}-{uuid.uuid4().hex[:8]}"
        label = ACTION_LABELS[action_type]

        if action_type == ActionType.REFUND:
            order = customer_context.latest_order if customer_context else None
            if order is None:
                return QuickAction(
                    id=action_id,
                    type=action_type,
                    label=label,
                    description=reason or "Process a full refund for this order",
                    eligible=False,
                    reason="No order on file",
                    auto_approved=False,
                )
            within_limit = order.amount <= self.refund_auto_approval_limit
            return QuickAction(
                id=action_id,
                type=action_type,
                label=label,
                description=f"Refund ${order.amount:.2f} for order {order.id}",
                eligible=within_limit,
                reason=None
                if within_limit
                else f"Amount exceeds ${self.refund_auto_approval_limit:g} auto-approval limit",
                estimated_value=order.amount,
                auto_approved=within_limit,
            )

        if action_type == ActionType.DISCOUNT:
            percent = 20 if sentiment is not None and sentiment.level == SentimentLevel.ANGRY else 15
            return QuickAction(
                id=action_id,
                type=action_type,
                label=label,
                description=reason or f"Generate a {percent}% discount code for next purchase",
                eligible=True,
                estimated_value=percent,
                auto_approved=True,
            )

        return QuickAction(
            id=action_id,
            type=action_type,
            label=label,
            description=reason or DEFAULT_DESCRIPTIONS[action_type],
            eligible=True,
            auto_approved=action_type != ActionType.MANUAL_REVIEW,
        )

    @staticmethod
    def suggest_resolution(
        actions: Sequence[QuickAction], sentiment: Optional[SentimentAnalysis] = None
    ) -> Optional[ResolutionSuggestion]:
        """Pick a primary action: auto-approved first, callback first for angry customers."""
        if not actions:
            return None

        angry = sentiment is not None and sentiment.level == SentimentLevel.ANGRY
        ranked = sorted(
            actions,
            key=lambda a: (not a.auto_approved, not (angry and a.type == ActionType.CALLBACK)),
        )
        primary = ranked[0]
        empathy = sentiment is not None and sentiment.empathy_needed

        reasoning = "Based on the customer's message"
        if empathy:
            reasoning += f" and their {sentiment.level.value} sentiment"
        reasoning += f", {primary.label.lower()} is recommended."

        return ResolutionSuggestion(
            primary_action=primary,
            alternative_actions=ranked[1:],
            confidence=0.9 if empathy else 0.75,
            reasoning=reasoning,
        )

    def _build_prompt(
        self,
        message: str,
        history: Sequence[Message],
        customer_context: Optional[CustomerContext],
        sentiment: Optional[SentimentAnalysis],
    ) -> str:
        if customer_context and customer_context.recent_orders:
            orders = "CUSTOMER ORDERS:\n" + "\n".join(
                f"- Order {o.id}: {o.status.value}, ${o.amount:.2f}" for o in customer_context.recent_orders
            )
        else:
            orders = "No order history available."
        mood = (
            f"{sentiment.level.value} ({sentiment.primary_emotion or 'not analyzed'})"
            if sentiment
            else "unknown"
        )
        return (
            "You are a smart action recommendation engine for customer support.\n\n"
            f"CONVERSATION:\n{format_history(history, self.history_window) or '(none)'}\n\n"
            f'LATEST MESSAGE: "{message}"\n'
            f"{orders}\n\n"
            f"CUSTOMER SENTIMENT: {mood}\n\n"
            "AVAILABLE ACTIONS:\n"
            "1. refund - customer wants money back, a return or reimbursement\n"
            "2. discount - retention or apology for frustrated customers\n"
            "3. replacement - damaged, defective or wrong items\n"
            "4. expedite_shipping - delays or slow delivery\n"
            "5. callback - complex issues, angry customers, customer wants to talk\n"
            "6. manual_review - edge cases, policy exceptions, high-value issues\n\n"
            "Respond with ONLY a JSON array (no markdown, no explanation):\n"
            '[{"type": "<action>", "confidence": <0.0-1.0>, "reason": "<why>", "priority": <1 = highest>}]\n'
            "Return [] if no action is appropriate. Maximum 3 actions."
        )
