"""Handlers for the /analytics dashboard routes."""

from support_copilot.handlers.runtime import get_container, json_response
from support_copilot.utils.error_handling import AppError, to_response


def lambda_handler(event, context):
    """Handle GET /analytics/stats."""
    container = get_container()
    try:
        stats = container.run(container.analytics.get_stats())
    except AppError as exc:
        return to_response(exc)
    return json_response(200, stats.model_dump_json())


def escalation_reasons_handler(event, context):
    """Handle GET /analytics/escalation-reasons."""
    container = get_container()
    try:
        items = container.run(container.analytics.escalation_reasons())
    except AppError as exc:
        return to_response(exc)
    return json_response(200, {"reasons": [item.model_dump() for item in items]})


def resolution_split_handler(event, context):
    """Handle GET /analytics/ai-vs-human."""
    container = get_container()
    try:
        items = container.run(container.analytics.resolution_split())
    except AppError as exc:
        return to_response(exc)
    return json_response(200, {"resolution": [item.model_dump() for item in items]})
