"""
ResponseService tests: confidence scoring, follow-ups, prompt grounding and fallback.

Run with: pytest tests/unit/test_response_service.py -v
"""

import pytest

from conftest import HAIKU, FailingGateway, ScriptedGateway
from support_copilot.models import Article, SentimentAnalysis
from support_copilot.services.knowledge_service import KnowledgeService
from support_copilot.services.response_service import (
    FALLBACK_REPLY,
    HUMAN_AGENT_SUGGESTION,
    ResponseService,
    score_confidence,
    suggest_follow_ups,
)

ARTICLE = Article(id="a1", category="Returns", title="Returns", content="30 days")


class TestScoreConfidence:
    def test_base_score(self):
        assert score_confidence("Your order ships tomorrow.", "Where is it?", []) == 0.7

    def test_article_boost(self):
        assert score_confidence("Your order ships tomorrow.", "Where is it?", [ARTICLE]) == 0.8

    def test_each_uncertainty_phrase_counts_once(self):
        reply = "I'm not sure, it might possibly arrive. It might."
        assert score_confidence(reply, "Where?", []) == 0.4

    def test_long_message_penalty(self):
        assert score_confidence("Done.", "x" * 201, []) == 0.6

    def test_handoff_penalty(self):
        assert score_confidence("A specialist will reach out.", "Help", []) == 0.55

    def test_clamped(self):
        reply = "not sure, might, possibly, I think it may not work; a human specialist will call"
        assert score_confidence(reply, "x" * 300, []) == 0.1


class TestSuggestFollowUps:
    def test_order_questions(self):
        assert suggest_follow_ups("Can you track my order?") == [
            "Where is my order now?",
            "Send me the tracking link",
            HUMAN_AGENT_SUGGESTION,
        ]

    def test_returns_questions(self):
        assert suggest_follow_ups("I need a refund")[:2] == [
            "How do I start a return?",
            "What's your refund policy?",
        ]

    def test_generic(self):
        suggestions = suggest_follow_ups("Hello")
        assert suggestions == [
            "Is there anything else I can help with?",
            "Thank you for your help!",
            HUMAN_AGENT_SUGGESTION,
        ]

    def test_capped_at_three(self):
        assert len(suggest_follow_ups("return my order")) == 3


class TestGenerate:
    @pytest.mark.asyncio
    async def test_reply_is_grounded_in_articles(self, store):
        gateway = ScriptedGateway(reply="You can return items within 30 days.")
        service = ResponseService(gateway, KnowledgeService(store))
        reply = await service.generate("How do I return an item?", [], HAIKU)

        assert reply.content == "You can return items within 30 days."
        assert reply.articles
        assert reply.confidence_score == 0.8
        prompt = gateway.prompts("reply")[0]
        assert "How to return an item" in prompt
        assert "Customer: How do I return an item?" in prompt

    @pytest.mark.asyncio
    async def test_prompt_includes_tone_hint(self, store):
        gateway = ScriptedGateway(reply="Sorry about that.")
        service = ResponseService(gateway, KnowledgeService(store))
        sentiment = SentimentAnalysis(level="frustrated", score=-0.6, empathy_needed=True)
        await service.generate("Hello", [], HAIKU, sentiment=sentiment)
        assert "Customer sentiment: frustrated. Tone: empathetic." in gateway.prompts("reply")[0]

    @pytest.mark.asyncio
    async def test_gateway_failure_returns_safe_reply(self, store):
        service = ResponseService(FailingGateway(), KnowledgeService(store))
        reply = await service.generate("Where is my order?", [], HAIKU)
        assert reply.content == FALLBACK_REPLY
        assert reply.confidence_score == 0.3
        assert reply.suggested_responses == [HUMAN_AGENT_SUGGESTION]
