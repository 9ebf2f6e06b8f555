"""
Pydantic model validation tests.

Ensures models validate correctly and reject invalid data.
No AWS connection required.

Run with: pytest tests/unit/test_models.py -v
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from support_copilot.models import (
    ActionCandidate,
    ChatRequest,
    CustomerContext,
    CustomerProfile,
    GeneratedReply,
    Message,
    MessageRole,
    Order,
    SentimentAnalysis,
    SentimentLevel,
    SentimentTrend,
)

NOW = datetime(2025, 1, 10, tzinfo=timezone.utc)


class TestChatRequest:
    """Test ChatRequest validation."""

    def test_valid_request(self):
        request = ChatRequest(message="  Where is my order?  ", customer_id="cust-001")
        assert request.message == "Where is my order?"
        assert request.conversation_id is None

    def test_empty_message_rejected(self):
        """Blank messages never reach the pipeline."""
        with pytest.raises(ValidationError) as exc_info:
            ChatRequest(message="   ")
        assert exc_info.value.error_count() == 1

    def test_message_required(self):
        with pytest.raises(ValidationError):
            ChatRequest.model_validate({"customer_id": "cust-001"})


class TestSentimentAnalysis:
    """Test SentimentAnalysis validation."""

    def test_score_is_clamped(self):
        analysis = SentimentAnalysis(level="angry", score=-3.5)
        assert analysis.score == -1.0
        assert analysis.level == SentimentLevel.ANGRY

    def test_trend_defaults_to_stable(self):
        analysis = SentimentAnalysis(level="neutral", score=0)
        assert analysis.trend == SentimentTrend.STABLE
        assert analysis.empathy_needed is False

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError):
            SentimentAnalysis(level="ecstatic", score=0.9)


class TestMessage:
    def test_confidence_must_be_probability(self):
        with pytest.raises(ValidationError):
            Message(
                id="m1",
                conversation_id="c1",
                role=MessageRole.AI,
                content="Hi",
                confidence_score=1.4,
                created_at=NOW,
            )


class TestGeneratedReply:
    def test_confidence_bounds(self):
        """Reply confidence lives in [0.1, 0.95]."""
        with pytest.raises(ValidationError):
            GeneratedReply(content="x", confidence_score=0.99)
        assert GeneratedReply(content="x", confidence_score=0.1).confidence_score == 0.1


class TestActionCandidate:
    def test_unknown_action_type_rejected(self):
        with pytest.raises(ValidationError):
            ActionCandidate(type="free_puppy", confidence=0.9)

    def test_priority_defaults_last(self):
        assert ActionCandidate(type="refund", confidence=0.8).priority == 99


class TestCustomerContext:
    def test_latest_order(self):
        order = Order(id="#1", customer_id="c", status="in_transit", amount=10, created_at=NOW)
        context = CustomerContext(customer=CustomerProfile(id="c", name="Ann"), recent_orders=[order])
        assert context.latest_order.id == "#1"

    def test_no_orders(self):
        context = CustomerContext(customer=CustomerProfile(id="c", name="Ann"))
        assert context.latest_order is None

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            Order(id="#1", customer_id="c", status="pending", amount=-5, created_at=NOW)
