"""Structured logging configuration for tenancy fixtures.

Configures structlog for JSON-formatted (or console) logging with every entry
tagged by the parallel worker it came from. Library modules log through the
stdlib ``logging`` module with ``extra=`` fields; those fields are folded into
the structured event by the same pipeline.

Usage::

    from tenancy_fixtures.observability import configure_logging, get_logger

    configure_logging(worker_id=3)  # Call once at process startup
    logger = get_logger()
    logger.info("fixture_ready", org="CATS-ORG-3-...")
"""

from __future__ import annotations

import logging
import os
import sys
from contextvars import ContextVar
from typing import TextIO

import structlog

from ..redaction import RedactingFilter, SecretRedactor, default_redactor

# Worker number of the current process, stamped onto every log entry.
worker_id_ctx: ContextVar[int | None] = ContextVar("worker_id", default=None)

_configured = False
_handler: logging.Handler | None = None


def _add_worker_id(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    wid = worker_id_ctx.get()
    if wid is not None:
        event_dict["worker_id"] = wid
    return event_dict


def _redact_event_values(redactor: SecretRedactor):
    """Processor masking secrets in every event field, including ``extra=``."""

    def processor(
        logger: logging.Logger,
        method_name: str,
        event_dict: dict,
    ) -> dict:
        for key in list(event_dict):
            if not key.startswith("_"):
                event_dict[key] = redactor.redact_value(event_dict[key])
        return event_dict

    return processor


def configure_logging(
    *,
    level: str | None = None,
    json_output: bool | None = None,
    worker_id: int | None = None,
    redactor: SecretRedactor | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        level: Log level name. Defaults to LOG_LEVEL env var or INFO.
        json_output: Emit JSON lines (True) or console output (False).
            Defaults to LOG_FORMAT env var == "json".
        worker_id: Parallel worker number to tag entries with.
        redactor: Redactor applied to every record. Defaults to the
            process-wide redactor the command runner registers secrets with.
        stream: Destination stream. Defaults to stdout.
    """
    global _configured, _handler
    if worker_id is not None:
        worker_id_ctx.set(worker_id)
    if _configured:
        return
    _configured = True

    level = level or os.environ.get("LOG_LEVEL", "INFO")
    if json_output is None:
        json_output = os.environ.get("LOG_FORMAT", "json") == "json"
    redactor = redactor or default_redactor

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        _add_worker_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        _redact_event_values(redactor),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.ExtraAdder(),
            *shared_processors,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(RedactingFilter(redactor))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    _handler = handler
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the given name."""
    return structlog.get_logger(name)


def _reset_for_tests() -> None:
    global _configured, _handler
    _configured = False
    if _handler is not None:
        logging.getLogger().removeHandler(_handler)
        _handler = None
    worker_id_ctx.set(None)
    structlog.reset_defaults()
