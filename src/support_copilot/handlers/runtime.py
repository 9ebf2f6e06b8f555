"""
Application container shared by every handler in a warm Lambda.

Wires the store, the Bedrock gateway and the services once per process, and
keeps one event loop running on a daemon thread across invocations. Handlers
submit coroutines to it and wait only for their own result, so the intent
worker keeps going after a response has been returned.
"""

from __future__ import annotations

import asyncio
import json
import threading
from typing import Any, Coroutine, Dict, List, Optional, TypeVar

from support_copilot.config import ModelSelection, Settings
from support_copilot.repositories.seed_data import SEED_ARTICLES, SEED_CUSTOMERS, SEED_ORDERS
from support_copilot.repositories.sql_store import SqlConversationStore
from support_copilot.services.action_service import ActionService
from support_copilot.services.analytics_service import AnalyticsService
from support_copilot.services.customer_service import CustomerService
from support_copilot.services.intent_service import IntentSignalExtractor, IntentSignalQueue
from support_copilot.services.knowledge_service import KnowledgeService
from support_copilot.services.llm_gateway import BedrockGateway, LanguageModelGateway
from support_copilot.services.orchestration_service import ConversationOrchestrator
from support_copilot.services.response_service import ResponseService
from support_copilot.services.sentiment_service import SentimentService
from support_copilot.services.ticket_service import TicketService
from support_copilot.utils.cache_service import LRUCache
from support_copilot.utils.error_handling import ValidationError
from support_copilot.utils.locks import KeyedLock
from support_copilot.utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class AppContainer:
    """Holds the wired services for one process."""

    def __init__(
        self,
        settings: Settings,
        store: Optional[SqlConversationStore] = None,
        gateway: Optional[LanguageModelGateway] = None,
    ):
        self.settings = settings
        self.loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(
            target=self.loop.run_forever, name="support-copilot-loop", daemon=True
        )
        self._loop_thread.start()

        if store is None:
            store = SqlConversationStore.from_url(settings.database_url)
            if settings.seed_demo_data:
                store.load_seed_data(SEED_ARTICLES, SEED_CUSTOMERS, SEED_ORDERS)
        self.store = store

        self.gateway = gateway or BedrockGateway(
            region=settings.aws_region,
            timeout_seconds=settings.gateway_timeout_seconds,
            max_tokens=settings.max_tokens,
        )
        self.model_selection = ModelSelection.from_settings(settings)

        self.knowledge = KnowledgeService(
            store, LRUCache(max_size=settings.cache_max_size, ttl_seconds=settings.cache_ttl_seconds)
        )
        self.customers = CustomerService(
            store, LRUCache(max_size=settings.cache_max_size, ttl_seconds=settings.cache_ttl_seconds)
        )
        self.intent_queue = IntentSignalQueue(
            IntentSignalExtractor(self.gateway, store, settings.history_window),
            maxsize=settings.intent_queue_size,
        )
        self.locks = KeyedLock()
        self.orchestrator = ConversationOrchestrator(
            store=store,
            sentiment=SentimentService(self.gateway, settings.history_window),
            responder=ResponseService(
                self.gateway, self.knowledge, settings.history_window, settings.max_articles
            ),
            actions=ActionService(self.gateway, settings.refund_auto_approval_limit),
            customers=self.customers,
            knowledge=self.knowledge,
            intent_queue=self.intent_queue,
            locks=self.locks,
        )
        self.tickets = TicketService(store, locks=self.locks)
        self.analytics = AnalyticsService(store)

    @classmethod
    def from_environment(cls) -> "AppContainer":
        settings = Settings.from_environment()
        logger.info(
            "Container initialised",
            extra={"environment": settings.environment, "model_id": settings.model_id},
        )
        return cls(settings)

    def run(self, awaitable: Coroutine[Any, Any, T]) -> T:
        """Run a coroutine on the container loop and wait for its result."""
        return asyncio.run_coroutine_threadsafe(awaitable, self.loop).result()

    def drain_background(self) -> bool:
        """Wait (bounded) for queued intent jobs. Used at shutdown, never on a response path."""
        return self.run(self.intent_queue.drain(self.settings.intent_drain_timeout_seconds))

    def close(self) -> None:
        if self.loop.is_closed():
            return
        self.drain_background()
        self.run(self.intent_queue.stop())
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._loop_thread.join()
        self.loop.close()


_container: Optional[AppContainer] = None


def get_container() -> AppContainer:
    """Lazy-load the container on first use."""
    global _container
    if _container is None:
        _container = AppContainer.from_environment()
    return _container


def set_container(container: Optional[AppContainer]) -> None:
    """Install a prepared container (tests, local runs)."""
    global _container
    _container = container


def json_response(status: int, body: Any) -> Dict:
    """Format a JSON API Gateway HTTP API response."""
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": body if isinstance(body, str) else json.dumps(body),
    }


def parse_body(event: Dict) -> Dict:
    body = event.get("body")
    if not body:
        return {}
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ValidationError("Request body must be valid JSON") from exc
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def path_segments(event: Dict) -> List[str]:
    path = event.get("requestContext", {}).get("http", {}).get("path") or event.get("rawPath", "")
    return [segment for segment in path.split("/") if segment]


def query_params(event: Dict) -> Dict[str, str]:
    return event.get("queryStringParameters") or {}
