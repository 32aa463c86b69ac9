"""Logging configuration using structlog."""

import logging
import sys
from uuid import UUID

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars


def setup_logging(debug: bool = False) -> None:
    """Configure structlog for structured logging.

    Args:
        debug: If True, use colored console output. If False, use JSON for production.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    shared_processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Provider SDK and driver chatter
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("temporalio").setLevel(logging.INFO)
    logging.getLogger("anthropic").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)


def bind_request_context(request_id: str | None) -> None:
    """Bind the correlation ID of the current request to all subsequent log calls."""
    if request_id:
        bind_contextvars(request_id=request_id)


def bind_user_context(user_id: UUID, tenant_id: UUID, role: str | None = None) -> None:
    """Bind the caller identity to all subsequent log calls.

    Args:
        user_id: The authenticated user's ID.
        tenant_id: The tenant the request is scoped to.
        role: Optional role claim from the token.
    """
    bind_contextvars(
        user_id=str(user_id),
        tenant_id=str(tenant_id),
    )
    if role:
        bind_contextvars(user_role=role)


def bind_execution_context(
    *,
    tenant_id: UUID | None = None,
    workflow_execution_id: UUID | None = None,
    agent_execution_id: UUID | None = None,
    agent_role: str | None = None,
) -> None:
    """Bind orchestration identifiers so agent logs can be correlated with records.

    Only non-None values are bound. Values already bound by an enclosing
    workflow run are kept.
    """
    values = {
        "tenant_id": tenant_id,
        "workflow_execution_id": workflow_execution_id,
        "agent_execution_id": agent_execution_id,
        "agent_role": agent_role,
    }
    bind_contextvars(**{key: str(value) for key, value in values.items() if value is not None})


def clear_request_context() -> None:
    """Clear all request-scoped context."""
    clear_contextvars()
