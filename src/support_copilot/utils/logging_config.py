"""Structured logger setup shared across handlers and services."""

import logging
import os

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "support-copilot"


def get_logger(name: str) -> logging.Logger:
    """
    Configure a JSON logger once per module name and reuse it.

    Every record carries its context through ``extra`` so log queries can filter
    on conversation ids, ticket ids, latencies and fallback reasons. Service and
    environment are stamped on every line.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            static_fields={
                "service": SERVICE_NAME,
                "environment": os.environ.get("ENVIRONMENT", "dev"),
            },
        )
    )
    logger.addHandler(handler)
    logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
    logger.propagate = False
    return logger
