"""
Structured logging for the SchoolHub backend.

Request-scoped fields (``request_id``, ``actor_id``) are bound with
``structlog.contextvars`` and merged into every event logged while the
request is being handled.
"""

import logging
import sys
import uuid

import structlog


def configure_logging(debug: bool = False) -> None:
    """Route structlog through stdlib logging on stdout.

    ``debug`` switches to coloured console output at DEBUG level; otherwise
    events are rendered as JSON at INFO level.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        stream=sys.stdout,
        format="%(message)s",
        force=True,
    )

    renderer = (
        structlog.dev.ConsoleRenderer(colors=True)
        if debug
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request(request_id: str | None = None) -> str:
    """Start a fresh logging scope for one request and return its id.

    A caller-supplied ``X-Request-ID`` is kept so logs can be joined across
    services.
    """
    structlog.contextvars.clear_contextvars()
    request_id = request_id or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(request_id=request_id)
    return request_id


def bind_actor(actor_id: uuid.UUID | str) -> None:
    structlog.contextvars.bind_contextvars(actor_id=str(actor_id))


def clear_request() -> None:
    structlog.contextvars.clear_contextvars()
