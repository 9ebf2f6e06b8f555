"""
ActionService tests: business-rule validation, model path and keyword fallback.

Run with: pytest tests/unit/test_action_service.py -v
"""

import json
from datetime import datetime, timezone

import pytest

from conftest import HAIKU, FailingGateway, ScriptedGateway
from support_copilot.models import (
    ActionType,
    CustomerContext,
    CustomerProfile,
    Order,
    SentimentAnalysis,
)
from support_copilot.services.action_service import ActionService

NOW = datetime(2025, 1, 10, tzinfo=timezone.utc)
ANGRY = SentimentAnalysis(level="angry", score=-0.9, empathy_needed=True)
NEUTRAL = SentimentAnalysis(level="neutral", score=0.0)


def context_with_order(amount: float) -> CustomerContext:
    return CustomerContext(
        customer=CustomerProfile(id="cust-x", name="Pat"),
        recent_orders=[Order(id="#900", customer_id="cust-x", status="delivered", amount=amount, created_at=NOW)],
    )


@pytest.fixture
def service():
    return ActionService(FailingGateway())


class TestValidate:
    """One business-rule validator shared by both recommendation paths."""

    def test_small_refund_is_auto_approved(self, service):
        action = service.validate(ActionType.REFUND, context_with_order(89.99))
        assert action.eligible is True
        assert action.auto_approved is True
        assert action.estimated_value == 89.99
        assert action.description == "Refund $89.99 for order #900"
        assert action.label == "Process Refund"

    def test_refund_at_limit_is_auto_approved(self, service):
        assert service.validate(ActionType.REFUND, context_with_order(100)).auto_approved is True

    def test_refund_one_cent_over_limit_needs_review(self, service):
        action = service.validate(ActionType.REFUND, context_with_order(100.01))
        assert action.eligible is False
        assert action.auto_approved is False
        assert action.reason == "Amount exceeds $100 auto-approval limit"

    def test_large_refund_needs_review(self, service):
        action = service.validate(ActionType.REFUND, context_with_order(250))
        assert action.eligible is False
        assert action.auto_approved is False
        assert action.reason == "Amount exceeds $100 auto-approval limit"
        assert action.estimated_value == 250

    def test_refund_without_order(self, service):
        action = service.validate(ActionType.REFUND, None)
        assert action.eligible is False
        assert action.auto_approved is False
        assert action.reason == "No order on file"

    def test_limit_is_configurable(self):
        service = ActionService(FailingGateway(), refund_auto_approval_limit=500)
        assert service.validate(ActionType.REFUND, context_with_order(250)).auto_approved is True

    def test_discount_depends_on_anger(self, service):
        assert service.validate(ActionType.DISCOUNT, sentiment=ANGRY).estimated_value == 20
        assert service.validate(ActionType.DISCOUNT, sentiment=NEUTRAL).estimated_value == 15

    def test_manual_review_never_auto_approved(self, service):
        action = service.validate(ActionType.MANUAL_REVIEW)
        assert action.eligible is True
        assert action.auto_approved is False

    @pytest.mark.parametrize(
        "action_type", [ActionType.REPLACEMENT, ActionType.EXPEDITE_SHIPPING, ActionType.CALLBACK]
    )
    def test_simple_actions_auto_approved(self, service, action_type):
        action = service.validate(action_type)
        assert action.eligible and action.auto_approved
        assert action.id.startswith(f"action-{action_type.value}-")


class TestFallback:
    @pytest.mark.asyncio
    async def test_manager_request(self, service):
        actions = await service.recommend("I want to speak to a manager", [], HAIKU)
        assert [a.type for a in actions] == [ActionType.CALLBACK, ActionType.MANUAL_REVIEW]

    @pytest.mark.asyncio
    async def test_money_back_with_large_order(self, service):
        actions = await service.recommend(
            "This is garbage, I want my $250 back now", [], HAIKU, context_with_order(250)
        )
        refund = next(a for a in actions if a.type == ActionType.REFUND)
        assert refund.eligible is False
        assert refund.auto_approved is False
        assert "limit" in refund.reason

    @pytest.mark.asyncio
    async def test_angry_customer_gets_discount_and_callback(self, service):
        actions = await service.recommend("Nothing works", [], HAIKU, sentiment=ANGRY)
        assert [a.type for a in actions] == [ActionType.DISCOUNT, ActionType.CALLBACK]

    def test_late_is_a_whole_word(self, service):
        assert service.recommend_basic("I'll check later") == []
        assert service.recommend_basic("My parcel is late")[0].type == ActionType.EXPEDITE_SHIPPING

    def test_capped_at_three(self, service):
        actions = service.recommend_basic(
            "refund please, it arrived damaged and late, call me, I'm disappointed"
        )
        assert len(actions) == 3


class TestModelPath:
    @pytest.mark.asyncio
    async def test_filters_sorts_and_caps(self):
        candidates = [
            {"type": "callback", "confidence": 0.9, "reason": "wants to talk", "priority": 3},
            {"type": "refund", "confidence": 0.8, "reason": "money back", "priority": 1},
            {"type": "discount", "confidence": 0.4, "reason": "weak", "priority": 0},
            {"type": "replacement", "confidence": 0.5, "reason": "broken", "priority": 2},
            {"type": "manual_review", "confidence": 0.95, "reason": "edge", "priority": 4},
        ]
        gateway = ScriptedGateway(actions="Here you go: " + json.dumps(candidates))
        service = ActionService(gateway)
        actions = await service.recommend("help", [], HAIKU, context_with_order(40))

        assert [a.type for a in actions] == [ActionType.REFUND, ActionType.REPLACEMENT, ActionType.CALLBACK]
        assert actions[0].auto_approved is True
        assert actions[1].description == "broken"

    @pytest.mark.asyncio
    async def test_model_refund_still_limited(self):
        gateway = ScriptedGateway(actions='[{"type": "refund", "confidence": 0.99, "priority": 1}]')
        actions = await ActionService(gateway).recommend("refund", [], HAIKU, context_with_order(999))
        assert actions[0].auto_approved is False

    @pytest.mark.asyncio
    async def test_unknown_type_falls_back(self):
        gateway = ScriptedGateway(actions='[{"type": "free_upgrade", "confidence": 0.9, "priority": 1}]')
        actions = await ActionService(gateway).recommend("I want a refund", [], HAIKU)
        assert [a.type for a in actions] == [ActionType.REFUND]

    @pytest.mark.asyncio
    async def test_empty_array_means_no_actions(self):
        gateway = ScriptedGateway(actions="[]")
        assert await ActionService(gateway).recommend("I want a refund", [], HAIKU) == []


class TestSuggestResolution:
    def test_none_without_actions(self, service):
        assert service.suggest_resolution([], NEUTRAL) is None

    def test_auto_approved_first(self, service):
        review = service.validate(ActionType.MANUAL_REVIEW)
        replacement = service.validate(ActionType.REPLACEMENT)
        suggestion = service.suggest_resolution([review, replacement], NEUTRAL)
        assert suggestion.primary_action.type == ActionType.REPLACEMENT
        assert suggestion.confidence == 0.75
        assert suggestion.reasoning == "Based on the customer's message, send replacement is recommended."

    def test_callback_first_for_angry(self, service):
        discount = service.validate(ActionType.DISCOUNT, sentiment=ANGRY)
        callback = service.validate(ActionType.CALLBACK)
        suggestion = service.suggest_resolution([discount, callback], ANGRY)
        assert suggestion.primary_action.type == ActionType.CALLBACK
        assert suggestion.confidence == 0.9
        assert "their angry sentiment" in suggestion.reasoning
