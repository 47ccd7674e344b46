"""Structured logging configuration for bot provisioning.

Configures structlog for JSON-formatted, run-ID-correlated logging. Library
modules keep using ``logging.getLogger(__name__)`` with ``extra=`` fields;
the ProcessorFormatter installed here renders them through structlog.

Usage::

    from bot_provisioning.logging import configure_logging, bind_run_id

    configure_logging()  # Call once at startup
    with bind_run_id('run-123'):
        await workflow.run(spec, package)
"""

from __future__ import annotations

import logging
import os
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

import structlog

# Context variable for the current workflow run.
run_id_ctx: ContextVar[str | None] = ContextVar('run_id', default=None)

_configured = False

_REDACTED_KEYS = frozenset({'password', 'app_password', 'authorization', 'bot_password'})

# Attributes every stdlib LogRecord carries; anything else came from ``extra=``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord('', 0, '', 0, '', (), None)).keys()
) | {'message', 'asctime'}


def _add_run_id(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    """Inject the current run_id from context into every log entry."""
    rid = run_id_ctx.get()
    if rid is not None:
        event_dict['run_id'] = rid
    return event_dict


def _add_record_extras(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    """Lift stdlib ``extra=`` fields onto the structured event."""
    record = event_dict.get('_record')
    if record is None:
        return event_dict
    for key, value in vars(record).items():
        if key not in _RECORD_ATTRS and not key.startswith('_'):
            event_dict.setdefault(key, value)
    return event_dict


def _redact_secrets(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    for key in list(event_dict):
        if key.lower() in _REDACTED_KEYS:
            event_dict[key] = '[REDACTED]'
    return event_dict


def configure_logging(
    *,
    level: str | None = None,
    json_output: bool | None = None,
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
            Defaults to LOG_LEVEL env var or INFO.
        json_output: If True, emit JSON lines. If False, emit
            human-readable console output. Defaults to LOG_FORMAT
            env var == "json".
    """
    global _configured
    if _configured:
        return
    _configured = True

    level = level or os.environ.get('LOG_LEVEL', 'INFO')
    if json_output is None:
        json_output = os.environ.get('LOG_FORMAT', 'json') == 'json'

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        _add_run_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
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
        foreign_pre_chain=[*shared_processors, _add_record_extras],
        processors=[
            _redact_secrets,
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Quiet noisy libraries.
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)


def new_run_id() -> str:
    return f'run_{uuid.uuid4().hex[:12]}'


@contextmanager
def bind_run_id(run_id: str | None = None) -> Iterator[str]:
    """Set the run_id context variable for the duration of a workflow run."""
    rid = run_id or new_run_id()
    token = run_id_ctx.set(rid)
    try:
        yield rid
    finally:
        run_id_ctx.reset(token)


def _reset_for_tests() -> None:
    global _configured
    _configured = False
    structlog.reset_defaults()
