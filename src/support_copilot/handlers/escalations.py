"""Handlers for the agent escalation queue under /escalations."""

from __future__ import annotations

from typing import Dict

from support_copilot.handlers.runtime import (
    get_container,
    json_response,
    parse_body,
    path_segments,
    query_params,
)
from support_copilot.utils.error_handling import AppError, NotFoundError, to_response
from support_copilot.utils.logging_config import get_logger

logger = get_logger(__name__)


def list_handler(event, context) -> Dict:
    """Handle GET /escalations?priority=&category=&status=."""
    params = query_params(event)
    container = get_container()
    try:
        tickets = container.run(
            container.tickets.list_escalations(
                priority=params.get("priority"),
                category=params.get("category"),
                status=params.get("status"),
            )
        )
    except AppError as exc:
        return to_response(exc)
    return json_response(200, {"tickets": [t.model_dump(mode="json") for t in tickets]})


def stats_handler(event, context) -> Dict:
    """Handle GET /escalations/stats."""
    container = get_container()
    try:
        stats = container.run(container.tickets.get_stats())
    except AppError as exc:
        return to_response(exc)
    return json_response(200, stats.model_dump_json())


def detail_handler(event, context) -> Dict:
    """Handle GET /escalations/{ticketId}."""
    ticket_id = path_segments(event)[1]
    container = get_container()
    try:
        ticket = container.run(container.tickets.get_ticket(ticket_id))
        if ticket is None:
            raise NotFoundError("Ticket not found")
    except AppError as exc:
        return to_response(exc)
    return json_response(200, ticket.model_dump_json())


def update_handler(event, context) -> Dict:
    """Handle PUT /escalations/{ticketId}/assign|resolve|priority."""
    segments = path_segments(event)
    if len(segments) != 3:
        return json_response(404, {"message": "Route not found"})
    ticket_id, action = segments[1], segments[2]
    container = get_container()

    try:
        body = parse_body(event)
        if action == "assign":
            ticket = container.run(container.tickets.assign_ticket(ticket_id, body.get("agent_name")))
        elif action == "resolve":
            ticket = container.run(container.tickets.resolve_ticket(ticket_id))
        elif action == "priority":
            ticket = container.run(container.tickets.update_priority(ticket_id, body.get("priority")))
        else:
            return json_response(404, {"message": "Route not found"})

        if ticket is None:
            raise NotFoundError("Ticket not found")
    except AppError as exc:
        return to_response(exc)

    logger.info("Ticket updated", extra={"ticket_id": ticket_id, "action": action})
    return json_response(200, ticket.model_dump_json())
