"""
Single entrypoint Lambda that routes HTTP API requests to thin handler modules.

One function keeps the container (store connection, caches, event loop) warm
across every route.
"""

from typing import Callable, Tuple

from support_copilot.handlers import analytics, chat, escalations, health_check, settings
from support_copilot.handlers.runtime import json_response

# Checked in order with startswith, so more specific prefixes come first.
ROUTE_TABLE: Tuple[Tuple[str, Callable], ...] = (
    ("GET /health", health_check.lambda_handler),
    ("POST /chat/message", chat.message_handler),
    ("GET /chat/conversations/", chat.detail_handler),
    ("GET /chat/conversations", chat.list_handler),
    ("POST /chat/conversations/", chat.conversation_action_handler),
    ("GET /escalations/stats", escalations.stats_handler),
    ("GET /escalations/", escalations.detail_handler),
    ("GET /escalations", escalations.list_handler),
    ("PUT /escalations/", escalations.update_handler),
    ("GET /settings/model", settings.get_model_handler),
    ("PUT /settings/model", settings.set_model_handler),
    ("GET /analytics/stats", analytics.lambda_handler),
    ("GET /analytics/escalation-reasons", analytics.escalation_reasons_handler),
    ("GET /analytics/ai-vs-human", analytics.resolution_split_handler),
)


def lambda_handler(event, context):
    """Entry point invoked by API Gateway HTTP API."""
    method = event.get("requestContext", {}).get("http", {}).get("method", "")
    path = event.get("requestContext", {}).get("http", {}).get("path", "")
    route_key = f"{method.upper()} {path.rstrip('/') or '/'}"

    for prefix, handler in ROUTE_TABLE:
        if route_key.startswith(prefix):
            return handler(event, context)

    return json_response(404, {"message": "Route not found", "route": route_key})
