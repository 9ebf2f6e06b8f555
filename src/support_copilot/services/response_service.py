"""
Response generation service.

Builds a grounded prompt (customer profile, recent orders, help-center
articles, recent turns), asks the model for a reply and scores how much the
reply can be trusted. Gateway failures produce a safe apology that steers the
customer towards a human agent.
"""

from __future__ import annotations

import time
from typing import List, Optional, Sequence

from support_copilot.models import (
    Article,
    CustomerContext,
    GeneratedReply,
    Message,
    SentimentAnalysis,
)
from support_copilot.services.knowledge_service import KnowledgeService
from support_copilot.services.llm_gateway import LanguageModelGateway
from support_copilot.utils.error_handling import GatewayError
from support_copilot.utils.logging_config import get_logger
from support_copilot.utils.text import Lexicon, format_history

logger = get_logger(__name__)

HUMAN_AGENT_SUGGESTION = "Connect me with a human agent"
FALLBACK_REPLY = (
    "I apologize, but I'm experiencing technical difficulties. "
    "Let me connect you with a human agent who can assist you right away."
)
FALLBACK_CONFIDENCE = 0.3

UNCERTAINTY_PHRASES = Lexicon(["not sure", "might", "possibly", "i think", "may not"])
HANDOFF_WORDS = Lexicon(["human", "specialist"])

SYSTEM_PROMPT = """You are an empathetic and intelligent customer support assistant for an e-commerce store.

CORE CAPABILITIES:
1. Help customers with orders, returns, payments and account questions
2. Detect and respond to emotional cues with appropriate empathy
3. Suggest concrete resolutions, not just information

GUIDELINES:
- If the customer is frustrated or angry: acknowledge their feelings first, then solve
- If the customer is confused: be patient and give step-by-step guidance
- If the customer is happy: match their energy and thank them
- Keep responses concise (2-4 sentences)
- Never promise anything the store policy below does not support"""


def score_confidence(reply: str, message: str, articles: Sequence[Article]) -> float:
    """Heuristic trust score for a model reply, clamped to [0.1, 0.95]."""
    score = 0.7
    if articles:
        score += 0.1
    score -= 0.1 * len(UNCERTAINTY_PHRASES.found(reply))
    if len(message) > 200:
        score -= 0.1
    if HANDOFF_WORDS.matches(reply):
        score -= 0.15
    return round(max(0.1, min(0.95, score)), 2)


def suggest_follow_ups(message: str) -> List[str]:
    """Up to three follow-up prompts for the customer; the human handoff is always offered."""
    lowered = message.lower()
    suggestions: List[str] = []
    if "order" in lowered or "track" in lowered:
        suggestions += ["Where is my order now?", "Send me the tracking link"]
    if "return" in lowered or "refund" in lowered:
        suggestions += ["How do I start a return?", "What's your refund policy?"]
    if not suggestions:
        suggestions += ["Is there anything else I can help with?", "Thank you for your help!"]
    suggestions.append(HUMAN_AGENT_SUGGESTION)
    return suggestions[:3]


class ResponseService:
    """Generate the customer-facing reply for one turn."""

    def __init__(
        self,
        gateway: LanguageModelGateway,
        knowledge: KnowledgeService,
        history_window: int = 6,
        max_articles: int = 3,
    ) -> None:
        self.gateway = gateway
        self.knowledge = knowledge
        self.history_window = history_window
        self.max_articles = max_articles

    async def generate(
        self,
        message: str,
        history: Sequence[Message],
        model_id: str,
        customer_context: Optional[CustomerContext] = None,
        sentiment: Optional[SentimentAnalysis] = None,
    ) -> GeneratedReply:
        """Call the model and score the reply; never raises on gateway failure."""
        start = time.perf_counter()
        articles = await self.knowledge.search(message, self.max_articles)
        prompt = self._build_prompt(message, history, articles, customer_context, sentiment)

        try:
            text = await self.gateway.generate(prompt, model_id)
        except GatewayError as exc:
            logger.warning(
                "Model generation failed; providing safe fallback",
                extra={"error": str(exc)},
            )
            return GeneratedReply(
                content=FALLBACK_REPLY,
                confidence_score=FALLBACK_CONFIDENCE,
                suggested_responses=[HUMAN_AGENT_SUGGESTION],
                articles=articles,
            )

        confidence = score_confidence(text, message, articles)
        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "Generation complete",
            extra={
                "duration_ms": duration_ms,
                "model_id": model_id,
                "confidence_score": confidence,
                "articles": len(articles),
            },
        )
        return GeneratedReply(
            content=text,
            confidence_score=confidence,
            suggested_responses=suggest_follow_ups(message),
            articles=articles,
        )

    def _build_prompt(
        self,
        message: str,
        history: Sequence[Message],
        articles: Sequence[Article],
        customer_context: Optional[CustomerContext],
        sentiment: Optional[SentimentAnalysis],
    ) -> str:
        """Construct a concise prompt to minimize tokens."""
        sections = [SYSTEM_PROMPT]

        if customer_context:
            customer = customer_context.customer
            lines = [
                "Customer Information:",
                f"- Name: {customer.name}",
                f"- Email: {customer.email or 'Not provided'}",
            ]
            if customer_context.recent_orders:
                lines.append("- Recent Orders:")
                for order in customer_context.recent_orders:
                    lines.append(f"  * Order {order.id}: {order.status.value} (${order.amount:.2f})")
            sections.append("\n".join(lines))

        if articles:
            sections.append(
                "Relevant Knowledge Base Articles:\n"
                + "\n".join(f"- {a.title}: {a.content}" for a in articles)
            )

        if sentiment:
            tone = sentiment.recommended_tone or ("empathetic" if sentiment.empathy_needed else "friendly")
            sections.append(f"Customer sentiment: {sentiment.level.value}. Tone: {tone}.")

        sections.append(
            f"Previous conversation:\n{format_history(history, self.history_window) or '(none)'}"
        )
        sections.append(
            f"Customer: {message}\n\n"
            "Respond helpfully and concisely. If the issue requires human intervention "
            "(complex disputes, large refunds or frustrated customers), say that you will "
            "connect them with a specialist."
        )
        return "\n\n".join(sections)
