"""Centralized structlog configuration for the slot panel scripts."""

import logging

import structlog

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with the project-standard processor chain.

    Events below ``level`` are dropped; an unknown level name falls back to
    INFO. Safe to call multiple times; only the first call takes effect.
    """
    global _configured
    if _configured:
        return
    min_level = logging.getLevelName(level.upper())
    if not isinstance(min_level, int):
        min_level = logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
    )
    _configured = True
