"""
Environment-specific configuration settings.

Defaults target local development against an in-memory SQLite store and the
Haiku model; production overrides lengthen timeouts and enlarge caches.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from threading import Lock
from typing import Optional, Tuple

HAIKU_MODEL_ID = "anthropic.claude-3-haiku-20240307-v1:0"
SONNET_MODEL_ID = "anthropic.claude-3-5-sonnet-20240620-v1:0"


@dataclass
class Settings:
    """Application settings."""

    # Environment
    environment: str = "dev"
    aws_region: str = "eu-west-2"

    # Bedrock configuration
    model_id: str = HAIKU_MODEL_ID
    available_models: Tuple[str, ...] = (HAIKU_MODEL_ID, SONNET_MODEL_ID)
    gateway_timeout_seconds: float = 20.0
    max_tokens: int = 600

    # Storage
    database_url: str = "sqlite+pysqlite:///:memory:"
    seed_demo_data: bool = True

    # Cache configuration
    cache_ttl_seconds: int = 300
    cache_max_size: int = 100

    # Pipeline
    history_window: int = 6
    max_articles: int = 3
    refund_auto_approval_limit: float = 100.0

    # Intent signal side channel
    intent_queue_size: int = 100
    intent_drain_timeout_seconds: float = 5.0

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        region = os.environ.get("BEDROCK_REGION") or os.environ.get("AWS_REGION") or "eu-west-2"
        models = tuple(
            m.strip()
            for m in os.environ.get("AVAILABLE_MODELS", f"{HAIKU_MODEL_ID},{SONNET_MODEL_ID}").split(",")
            if m.strip()
        )
        model_id = os.environ.get("MODEL_ID", HAIKU_MODEL_ID)
        if model_id not in models:
            models = models + (model_id,)

        common = dict(
            environment=env,
            aws_region=region,
            model_id=model_id,
            available_models=models,
            database_url=os.environ.get("DATABASE_URL", "sqlite+pysqlite:///:memory:"),
            seed_demo_data=os.environ.get("SEED_DEMO_DATA", "true").lower() == "true",
            refund_auto_approval_limit=float(os.environ.get("REFUND_AUTO_APPROVAL_LIMIT", "100")),
            intent_queue_size=int(os.environ.get("INTENT_QUEUE_SIZE", "100")),
            intent_drain_timeout_seconds=float(os.environ.get("INTENT_DRAIN_TIMEOUT_SECONDS", "5")),
        )

        # Production overrides
        if env == "prod":
            return cls(
                gateway_timeout_seconds=float(os.environ.get("GATEWAY_TIMEOUT_SECONDS", "30")),
                cache_ttl_seconds=int(os.environ.get("CACHE_TTL_SECONDS", "600")),
                cache_max_size=int(os.environ.get("CACHE_MAX_SIZE", "500")),
                **common,
            )

        return cls(
            gateway_timeout_seconds=float(os.environ.get("GATEWAY_TIMEOUT_SECONDS", "20")),
            cache_ttl_seconds=int(os.environ.get("CACHE_TTL_SECONDS", "300")),
            cache_max_size=int(os.environ.get("CACHE_MAX_SIZE", "100")),
            **common,
        )


@dataclass
class ModelSelection:
    """
    The switchable default model.

    Owned by the application container and read once per request into a
    ``RequestConfig``, so a switch never changes the model of a request that
    is already running.
    """

    current: str
    available: Tuple[str, ...]
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModelSelection":
        return cls(current=settings.model_id, available=settings.available_models)

    def get(self) -> str:
        with self._lock:
            return self.current

    def set(self, model_id: str) -> str:
        if model_id not in self.available:
            raise ValueError(f"Unknown model: {model_id}")
        with self._lock:
            self.current = model_id
        return model_id

    def resolve(self, requested: Optional[str]) -> str:
        """Return the requested model when allowed, else the current default."""
        if requested is None:
            return self.get()
        if requested not in self.available:
            raise ValueError(f"Unknown model: {requested}")
        return requested
