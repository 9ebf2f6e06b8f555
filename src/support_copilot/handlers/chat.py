"""
Chat handlers.

POST /chat/message runs the conversation pipeline; the /chat/conversations
routes expose history plus manual escalate and resolve.
"""

from __future__ import annotations

import time
import uuid
from typing import Dict

from pydantic import ValidationError as PydanticValidationError

from support_copilot.handlers.runtime import get_container, json_response, parse_body, path_segments
from support_copilot.models import ChatRequest, RequestConfig
from support_copilot.services.response_service import FALLBACK_REPLY, HUMAN_AGENT_SUGGESTION
from support_copilot.utils.error_handling import AppError, NotFoundError, ValidationError, to_response
from support_copilot.utils.logging_config import get_logger

logger = get_logger(__name__)


def _safe_failure(correlation_id: str) -> Dict:
    return json_response(
        500,
        {
            "message": FALLBACK_REPLY,
            "status": "error",
            "suggested_responses": [HUMAN_AGENT_SUGGESTION],
            "correlation_id": correlation_id,
        },
    )


def message_handler(event, context) -> Dict:
    """Handle POST /chat/message."""
    start = time.perf_counter()
    correlation_id = str(uuid.uuid4())

    try:
        container = get_container()
        request = ChatRequest.model_validate(parse_body(event))
        try:
            model_id = container.model_selection.resolve(request.model_id)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        result = container.run(
            container.orchestrator.process_message(request, RequestConfig(model_id=model_id))
        )
    except PydanticValidationError as exc:
        return to_response(
            ValidationError(exc.errors()[0]["msg"]), {"correlation_id": correlation_id}
        )
    except ValidationError as exc:
        return to_response(exc, {"correlation_id": correlation_id})
    except Exception:
        logger.exception("Chat message failed", extra={"correlation_id": correlation_id})
        return _safe_failure(correlation_id)

    logger.info(
        "Chat message served",
        extra={
            "correlation_id": correlation_id,
            "conversation_id": result.conversation_id,
            "should_escalate": result.should_escalate,
            "duration_ms": int((time.perf_counter() - start) * 1000),
        },
    )
    return json_response(200, result.model_dump_json())


def list_handler(event, context) -> Dict:
    """Handle GET /chat/conversations."""
    container = get_container()
    try:
        conversations = container.run(container.orchestrator.list_conversations())
    except AppError as exc:
        return to_response(exc)
    return json_response(
        200, {"conversations": [c.model_dump(mode="json") for c in conversations]}
    )


def detail_handler(event, context) -> Dict:
    """Handle GET /chat/conversations/{id}."""
    conversation_id = path_segments(event)[2]
    container = get_container()
    try:
        detail = container.run(container.orchestrator.get_conversation(conversation_id))
        if detail is None:
            raise NotFoundError("Conversation not found")
    except AppError as exc:
        return to_response(exc)
    return json_response(200, detail.model_dump_json())


def conversation_action_handler(event, context) -> Dict:
    """Handle POST /chat/conversations/{id}/escalate and /resolve."""
    segments = path_segments(event)
    if len(segments) != 4:
        return json_response(404, {"message": "Route not found"})
    conversation_id, action = segments[2], segments[3]
    container = get_container()

    try:
        if action == "escalate":
            reason = parse_body(event).get("reason")
            ticket = container.run(container.orchestrator.escalate(conversation_id, reason))
            if ticket is None:
                raise NotFoundError("Conversation not found")
            logger.info(
                "Manual escalation",
                extra={"conversation_id": conversation_id, "ticket_id": ticket.ticket_id},
            )
            return json_response(200, ticket.model_dump_json())

        if action == "resolve":
            conversation = container.run(container.orchestrator.resolve(conversation_id))
            if conversation is None:
                raise NotFoundError("Conversation not found")
            return json_response(200, conversation.model_dump_json())
    except AppError as exc:
        return to_response(exc)

    return json_response(404, {"message": "Route not found"})
