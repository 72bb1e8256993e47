"""Logging configuration for the Storefront domain."""

import logging
import os

import structlog

logger = structlog.get_logger(__name__)

# Suppress noisy library loggers
logging.getLogger("protean").setLevel(logging.WARNING)


def configure_logging(level=logging.INFO, json_output=None):
    """Configure structlog for the API server and the management CLI.

    Console rendering is used unless ``STOREFRONT_LOG_FORMAT=json`` is set
    (or ``json_output`` is passed explicitly).
    """
    if json_output is None:
        json_output = os.environ.get("STOREFRONT_LOG_FORMAT", "console") == "json"

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
