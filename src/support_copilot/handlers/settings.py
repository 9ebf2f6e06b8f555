"""Handlers for GET/PUT /settings/model (the switchable default model)."""

from typing import Dict

from support_copilot.handlers.runtime import get_container, json_response, parse_body
from support_copilot.utils.error_handling import AppError, ValidationError, to_response
from support_copilot.utils.logging_config import get_logger
from support_copilot.utils.validators import ensure_present

logger = get_logger(__name__)


def _model_payload(selection) -> Dict:
    return {"current_model": selection.get(), "available_models": list(selection.available)}


def get_model_handler(event, context) -> Dict:
    return json_response(200, _model_payload(get_container().model_selection))


def set_model_handler(event, context) -> Dict:
    """Switch the default model for requests that start after this call."""
    selection = get_container().model_selection
    try:
        model_id = ensure_present(parse_body(event).get("model_id"), "model_id")
        try:
            selection.set(model_id)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
    except AppError as exc:
        return to_response(exc)

    logger.info("Default model switched", extra={"model_id": model_id})
    return json_response(200, _model_payload(selection))
