"""
Shared pytest fixtures.

Tests run fully offline: an in-memory SQLite store stands in for the
database and a scripted gateway stands in for Bedrock.
"""

import json
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import boto3
import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

# Ensure boto3 has offline-friendly defaults so tests do not require AWS access.
os.environ.setdefault("AWS_REGION", "eu-west-2")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-2")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("BEDROCK_REGION", "eu-west-2")
os.environ.setdefault("MODEL_ID", "anthropic.claude-3-haiku-20240307-v1:0")

boto3.setup_default_session(region_name="eu-west-2")

from support_copilot.config import Settings  # noqa: E402
from support_copilot.handlers.runtime import AppContainer, set_container  # noqa: E402
from support_copilot.repositories.seed_data import (  # noqa: E402
    SEED_ARTICLES,
    SEED_CUSTOMERS,
    SEED_ORDERS,
)
from support_copilot.repositories.sql_store import SqlConversationStore, get_db_engine  # noqa: E402
from support_copilot.services.action_service import ActionService  # noqa: E402
from support_copilot.services.customer_service import CustomerService  # noqa: E402
from support_copilot.services.knowledge_service import KnowledgeService  # noqa: E402
from support_copilot.services.orchestration_service import ConversationOrchestrator  # noqa: E402
from support_copilot.services.response_service import ResponseService  # noqa: E402
from support_copilot.services.sentiment_service import SentimentService  # noqa: E402
from support_copilot.utils.error_handling import GatewayError  # noqa: E402

HAIKU = "anthropic.claude-3-haiku-20240307-v1:0"
CLEAN_REPLY = "You're very welcome! Have a wonderful day."


class ScriptedGateway:
    """
    Offline gateway that answers by prompt type.

    A ``None`` answer raises GatewayError, which drives the caller onto its
    heuristic path.
    """

    def __init__(
        self,
        reply: Optional[str] = CLEAN_REPLY,
        sentiment: Optional[str] = None,
        actions: Optional[str] = None,
        intent: Optional[str] = None,
    ):
        self.answers = {"reply": reply, "sentiment": sentiment, "actions": actions, "intent": intent}
        self.calls: List[Tuple[str, str, str]] = []

    @staticmethod
    def kind(prompt: str) -> str:
        if "emotional intelligence analyzer" in prompt:
            return "sentiment"
        if "action recommendation engine" in prompt:
            return "actions"
        if "intent signal extraction engine" in prompt:
            return "intent"
        return "reply"

    async def generate(self, prompt: str, model_id: str) -> str:
        kind = self.kind(prompt)
        self.calls.append((kind, model_id, prompt))
        answer = self.answers[kind]
        if answer is None:
            raise GatewayError(f"no scripted answer for {kind}")
        return answer

    def prompts(self, kind: str) -> List[str]:
        return [prompt for k, _, prompt in self.calls if k == kind]


class FailingGateway:
    async def generate(self, prompt: str, model_id: str) -> str:
        raise GatewayError("bedrock unavailable")


def make_store(seed: bool = True) -> SqlConversationStore:
    store = SqlConversationStore(get_db_engine("sqlite+pysqlite:///:memory:"))
    store.create_schema()
    if seed:
        store.load_seed_data(SEED_ARTICLES, SEED_CUSTOMERS, SEED_ORDERS)
    return store


def make_orchestrator(store, gateway, intent_queue=None) -> ConversationOrchestrator:
    knowledge = KnowledgeService(store)
    return ConversationOrchestrator(
        store=store,
        sentiment=SentimentService(gateway),
        responder=ResponseService(gateway, knowledge),
        actions=ActionService(gateway),
        customers=CustomerService(store),
        knowledge=knowledge,
        intent_queue=intent_queue,
    )


def sentiment_json(level="neutral", score=0.0, trend="stable", empathy=False) -> str:
    return json.dumps(
        {
            "level": level,
            "score": score,
            "indicators": [],
            "trend": trend,
            "empathy_needed": empathy,
        }
    )


@pytest.fixture
def store():
    return make_store()


@pytest.fixture
def gateway():
    return ScriptedGateway()


@pytest.fixture
def orchestrator(store, gateway):
    return make_orchestrator(store, gateway)


@pytest.fixture
def settings():
    return Settings(seed_demo_data=False, intent_drain_timeout_seconds=1.0)


@pytest.fixture
def container(settings):
    """Installed AppContainer over a seeded store and a scripted gateway."""
    app = AppContainer(settings, store=make_store(), gateway=ScriptedGateway())
    set_container(app)
    yield app
    set_container(None)
    app.close()


def api_event(method: str, path: str, body=None, query=None) -> dict:
    """Minimal API Gateway HTTP API (payload v2) event."""
    event = {"requestContext": {"http": {"method": method, "path": path}}, "rawPath": path}
    if body is not None:
        event["body"] = json.dumps(body)
    if query is not None:
        event["queryStringParameters"] = query
    return event
