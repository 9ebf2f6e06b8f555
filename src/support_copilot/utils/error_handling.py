"""Custom exceptions and helpers for consistent error responses."""

import json
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(AppError):
    """Raised at the HTTP edge when a requested resource is missing."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ValidationError(AppError):
    """Raised when input validation or a state transition check fails."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status_code=422)


class PersistenceError(AppError):
    """Raised when the record store cannot apply a read or write."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message, status_code=500)


class GatewayError(Exception):
    """
    Raised by the language model gateway on timeout, transport or payload errors.

    Never surfaced to API callers: every consumer recovers with its heuristic path.
    """


def to_response(error: AppError, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Convert an AppError into a Lambda proxy integration response."""
    body: Dict[str, Any] = {"message": str(error), "status": "error"}
    if extra:
        body.update(extra)
    return {
        "statusCode": error.status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }
