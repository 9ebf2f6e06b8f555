"""
Language model gateway backed by Amazon Bedrock.

The boto3 client is blocking, so each call runs on a worker thread under an
asyncio timeout. Every failure mode surfaces as ``GatewayError``; callers own
the recovery.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Optional, Protocol

import boto3

from support_copilot.utils.error_handling import GatewayError
from support_copilot.utils.logging_config import get_logger

logger = get_logger(__name__)


class LanguageModelGateway(Protocol):
    async def generate(self, prompt: str, model_id: str) -> str: ...


class BedrockGateway:
    """Anthropic messages API on bedrock-runtime ``invoke_model``."""

    def __init__(
        self,
        region: str = "eu-west-2",
        timeout_seconds: float = 20.0,
        max_tokens: int = 600,
        temperature: float = 0.4,
        client=None,
    ):
        self.client = client or boto3.client("bedrock-runtime", region_name=region)
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def generate(self, prompt: str, model_id: str) -> str:
        start = time.perf_counter()
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(self._invoke, prompt, model_id),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Model call timed out",
                extra={"model_id": model_id, "timeout_seconds": self.timeout_seconds},
            )
            raise GatewayError(f"Model call timed out after {self.timeout_seconds}s") from exc
        except GatewayError:
            raise
        except Exception as exc:
            logger.warning("Model call failed", extra={"model_id": model_id, "error": str(exc)})
            raise GatewayError(str(exc)) from exc

        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "Model call complete",
            extra={"model_id": model_id, "duration_ms": duration_ms, "output_chars": len(text)},
        )
        return text

    def _invoke(self, prompt: str, model_id: str) -> str:
        response = self.client.invoke_model(
            modelId=model_id,
            contentType="application/json",
            accept="application/json",
            body=json.dumps(
                {
                    "anthropic_version": "bedrock-2023-05-31",
                    "messages": [
                        {"role": "user", "content": [{"type": "text", "text": prompt}]}
                    ],
                    "max_tokens": self.max_tokens,
                    "temperature": self.temperature,
                }
            ),
        )
        payload = json.loads(response["body"].read())
        text = self._extract_text(payload)
        if not text:
            raise GatewayError("Model returned no text content")
        return text

    @staticmethod
    def _extract_text(payload: dict) -> Optional[str]:
        """Read text from either the messages shape or the legacy ``output`` wrapper."""
        content = payload.get("content")
        if content is None:
            content = payload.get("output", {}).get("content")
        if not content:
            return None
        parts = [block.get("text", "") for block in content if block.get("type", "text") == "text"]
        return "".join(parts).strip() or None
