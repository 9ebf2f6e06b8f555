"""
Sentiment analysis service.

Asks the model for a structured emotional read of the latest customer message
and falls back to a keyword heuristic whenever the model is unavailable or its
output does not validate.
"""

from __future__ import annotations

import time
from typing import Sequence

from support_copilot.models import Message, SentimentAnalysis, SentimentLevel, SentimentTrend
from support_copilot.services.llm_gateway import LanguageModelGateway
from support_copilot.utils.error_handling import GatewayError
from support_copilot.utils.logging_config import get_logger
from support_copilot.utils.structured_output import ParseError, decode_json_block
from support_copilot.utils.text import Lexicon, format_history

logger = get_logger(__name__)

POSITIVE_WORDS = Lexicon(
    ["thank", "thanks", "great", "awesome", "perfect", "excellent", "happy", "love", "appreciate"]
)
NEGATIVE_WORDS = Lexicon(
    ["frustrated", "angry", "upset", "terrible", "awful", "worst", "hate", "disappointed", "garbage", "junk"]
)

# (lower bound, level), checked top to bottom
_LEVEL_BANDS = (
    (0.3, SentimentLevel.POSITIVE),
    (-0.1, SentimentLevel.NEUTRAL),
    (-0.4, SentimentLevel.CONCERNED),
    (-0.7, SentimentLevel.FRUSTRATED),
)


def level_for_score(score: float) -> SentimentLevel:
    for bound, level in _LEVEL_BANDS:
        if score >= bound:
            return level
    return SentimentLevel.ANGRY


class SentimentService:
    """Classify the customer's emotional state for the current turn."""

    def __init__(self, gateway: LanguageModelGateway, history_window: int = 6):
        self.gateway = gateway
        self.history_window = history_window

    async def analyze(
        self, message: str, history: Sequence[Message], model_id: str
    ) -> SentimentAnalysis:
        """Never raises; model or parse failures degrade to the keyword heuristic."""
        start = time.perf_counter()
        prompt = self._build_prompt(message, history)
        try:
            output = await self.gateway.generate(prompt, model_id)
        except GatewayError as exc:
            logger.warning(
                "Sentiment model call failed; falling back to heuristic",
                extra={"error": str(exc)},
            )
            return self.analyze_basic(message)

        result = decode_json_block(output, SentimentAnalysis)
        if isinstance(result, ParseError):
            logger.warning(
                "Sentiment output unparseable; falling back to heuristic",
                extra={"reason": result.reason, "excerpt": result.raw_excerpt},
            )
            return self.analyze_basic(message)

        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "Sentiment analyzed",
            extra={"level": result.value.level.value, "duration_ms": duration_ms},
        )
        return result.value

    @staticmethod
    def analyze_basic(message: str) -> SentimentAnalysis:
        """Keyword heuristic: +0.3 per positive term, -0.4 per negative term."""
        positives = POSITIVE_WORDS.found(message)
        negatives = NEGATIVE_WORDS.found(message)
        score = 0.3 * len(positives) - 0.4 * len(negatives)
        score = round(max(-1.0, min(1.0, score)), 2)
        return SentimentAnalysis(
            level=level_for_score(score),
            score=score,
            indicators=positives + negatives,
            trend=SentimentTrend.STABLE,
            empathy_needed=score < -0.2,
        )

    def _build_prompt(self, message: str, history: Sequence[Message]) -> str:
        return (
            "You are an expert emotional intelligence analyzer for customer support conversations.\n"
            "Analyze the conversation and the latest customer message.\n\n"
            f"CONVERSATION HISTORY:\n{format_history(history, self.history_window) or '(none)'}\n\n"
            f'LATEST CUSTOMER MESSAGE:\n"{message}"\n\n'
            "Respond with ONLY a JSON object (no markdown, no explanation):\n"
            "{\n"
            '  "level": "positive" | "neutral" | "concerned" | "frustrated" | "angry",\n'
            '  "score": <number from -1.0 to 1.0>,\n'
            '  "primary_emotion": "<main emotion>",\n'
            '  "secondary_emotions": ["<other emotions>"],\n'
            '  "indicators": ["<phrases that signal the emotion>"],\n'
            '  "trend": "improving" | "stable" | "declining",\n'
            '  "empathy_needed": <boolean>,\n'
            '  "escalation_risk": "low" | "medium" | "high",\n'
            '  "contextual_insights": "<why the customer feels this way>",\n'
            '  "recommended_tone": "<warm, professional, apologetic, reassuring, celebratory>"\n'
            "}\n"
            "Consider sarcasm, negation and frustration building across turns."
        )
