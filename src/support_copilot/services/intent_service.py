"""
Intent signal extraction.

Pulls commercial intent and zero-party data (stated preferences, budget,
timeline) out of a conversation and stores it as an ``intent_signal``
analytics event. Runs off the response path on a bounded background queue:
a slow or failing extraction never delays or breaks a customer reply.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import List, Optional

from support_copilot.models import IntentExtraction, Message
from support_copilot.repositories.base import ConversationStore
from support_copilot.services.llm_gateway import LanguageModelGateway
from support_copilot.utils.error_handling import GatewayError
from support_copilot.utils.logging_config import get_logger
from support_copilot.utils.structured_output import ParseError, decode_json_block
from support_copilot.utils.text import format_history

logger = get_logger(__name__)

INTENT_EVENT = "intent_signal"


@dataclass
class IntentJob:
    conversation_id: str
    message: str
    model_id: str
    history: List[Message] = field(default_factory=list)


class IntentSignalExtractor:
    def __init__(self, gateway: LanguageModelGateway, store: ConversationStore, history_window: int = 6):
        self.gateway = gateway
        self.store = store
        self.history_window = history_window

    async def extract(self, job: IntentJob) -> Optional[IntentExtraction]:
        """Extract and persist signals; returns None when the model gave nothing usable."""
        start = time.perf_counter()
        try:
            output = await self.gateway.generate(self._build_prompt(job), job.model_id)
        except GatewayError as exc:
            logger.warning(
                "Intent extraction model call failed",
                extra={"conversation_id": job.conversation_id, "error": str(exc)},
            )
            return None

        result = decode_json_block(output, IntentExtraction)
        if isinstance(result, ParseError):
            logger.warning(
                "Intent output unparseable",
                extra={"conversation_id": job.conversation_id, "reason": result.reason},
            )
            return None

        extraction = result.value
        await self.store.record_analytics_event(
            INTENT_EVENT,
            conversation_id=job.conversation_id,
            payload=extraction.model_dump(mode="json"),
        )
        logger.info(
            "Intent signals captured",
            extra={
                "conversation_id": job.conversation_id,
                "signals": len(extraction.intent_signals),
                "outcome": extraction.conversation_outcome,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return extraction

    def _build_prompt(self, job: IntentJob) -> str:
        return (
            "You are an intent signal extraction engine. Analyze this customer support conversation "
            "and extract commercial intent signals and zero-party data.\n\n"
            f"CONVERSATION:\n{format_history(job.history, self.history_window) or '(none)'}\n\n"
            f'LATEST MESSAGE: "{job.message}"\n\n'
            "Respond with ONLY a JSON object (no markdown):\n"
            "{\n"
            '  "intent_signals": [{"category": "product_interest" | "purchase_intent" | "comparison" | '
            '"price_sensitivity" | "support_issue", "intent": "<specific intent>", "confidence": <0.0-1.0>, '
            '"urgency": "high" | "medium" | "low", "keywords": ["<keywords>"]}],\n'
            '  "zero_party_data": {"preferences": {}, "demographics": {}, "purchase_intent": {}},\n'
            '  "conversation_outcome": "purchase_likely" | "browsing" | "support_only" | "churn_risk"\n'
            "}\n"
            "Only include fields with actual data."
        )


class IntentSignalQueue:
    """
    Bounded asyncio queue with a single background consumer.

    ``submit`` never blocks: when the queue is full the job is dropped and a
    warning is logged. ``drain`` waits (bounded) for queued jobs
    and is only used at container shutdown.
    """

    def __init__(self, extractor: IntentSignalExtractor, maxsize: int = 100):
        self.extractor = extractor
        self.queue: "asyncio.Queue[IntentJob]" = asyncio.Queue(maxsize=maxsize)
        self._worker: Optional[asyncio.Task] = None
        self.dropped = 0

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())

    def submit(self, job: IntentJob) -> bool:
        self.start()
        try:
            self.queue.put_nowait(job)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "Intent queue full; dropping job",
                extra={"conversation_id": job.conversation_id, "dropped": self.dropped},
            )
            return False
        return True

    async def drain(self, timeout: float = 5.0) -> bool:
        """Wait for queued jobs to finish; False when the timeout hit first."""
        try:
            await asyncio.wait_for(self.queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Intent queue drain timed out", extra={"pending": self.queue.qsize()})
            return False
        return True

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def _run(self) -> None:
        while True:
            job = await self.queue.get()
            try:
                await self.extractor.extract(job)
            except Exception as exc:
                logger.error(
                    "Intent extraction failed",
                    extra={"conversation_id": job.conversation_id, "error": str(exc)},
                )
            finally:
                self.queue.task_done()
