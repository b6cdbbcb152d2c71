"""Structured logging setup using structlog.

The same shared processor chain (context vars, log level, timestamps, stack
info) feeds either a coloured ConsoleRenderer for local development or a
JSONRenderer for production.  ``APP_ENV=production`` or ``json_output=True``
selects JSON.

Standard-library ``logging`` is routed through the same formatter so uvicorn
and httpx records look like ours.  Request-scoped values (the transaction id)
are bound with :func:`bind_transaction_id` and merged into every event logged
while the request is being handled.
"""

import logging
import os
import secrets
import sys

import structlog

TRANSACTION_ID_HEADER = "X-Request-Id"


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output. When False, JSON is still used when
                     APP_ENV is "production".

    Returns:
        A configured structlog BoundLogger.
    """
    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # httpx logs one INFO line per outbound call; the backend provider
    # already logs what matters.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structlog logger, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)


# ---------------------------------------------------------------------------
# Transaction ids
# ---------------------------------------------------------------------------


def new_transaction_id() -> str:
    """Return a fresh transaction id of the form ``tid_<10 random chars>``."""
    return "tid_" + secrets.token_urlsafe(8)[:10]


def bind_transaction_id(transaction_id: str | None) -> str:
    """Bind *transaction_id* (or a new one) into the structlog context.

    Returns the id actually bound so callers can echo it back.
    """
    tid = transaction_id.strip() if transaction_id else ""
    if not tid:
        tid = new_transaction_id()
    structlog.contextvars.bind_contextvars(transaction_id=tid)
    return tid


def clear_transaction_id() -> None:
    structlog.contextvars.unbind_contextvars("transaction_id")
