"""Orchestration error taxonomy and exception handlers with request_id in responses."""

from typing import Any, ClassVar

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.sitegen.core.logging import get_logger

logger = get_logger(__name__)


class OrchestrationError(Exception):
    """Base class for errors raised by agents, the execution store and the orchestrator.

    Each subclass carries a stable machine-readable ``code`` and the HTTP
    status it maps to when it reaches the API boundary.
    """

    code: ClassVar[str] = "orchestration_error"
    status_code: ClassVar[int] = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable: ClassVar[bool] = False

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(OrchestrationError):
    """Input does not match the agent's schema or a domain precondition."""

    code = "validation_error"
    status_code = 422


class ProviderError(OrchestrationError):
    """LLM provider call failed (timeout, rate limit, malformed response)."""

    code = "provider_error"
    status_code = status.HTTP_502_BAD_GATEWAY
    retryable = True


class ParseError(OrchestrationError):
    """Provider output could not be extracted or did not match the output schema."""

    code = "parse_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class BusinessRuleError(OrchestrationError):
    """Output is structurally valid but violates a domain invariant."""

    code = "business_rule_error"
    status_code = 422


class InvalidTransitionError(OrchestrationError):
    """Requested status is not reachable from the record's current status."""

    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, entity: str, entity_id: Any, current: str, requested: str) -> None:
        super().__init__(
            f"{entity} {entity_id} cannot transition from {current} to {requested}",
            details={"current": current, "requested": requested},
        )
        self.current = current
        self.requested = requested


class PreconditionError(OrchestrationError):
    """Operation is not allowed in the record's current state."""

    code = "precondition_failed"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(OrchestrationError):
    """Tenant-scoped lookup miss. Never reveals whether the record exists elsewhere."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity} {entity_id} not found")


class AgentTimeoutError(OrchestrationError):
    """Agent exceeded its layer timeout."""

    code = "timeout"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT


def error_classification(exc: BaseException) -> str:
    """Name recorded in execution metadata for a failed agent."""
    if isinstance(exc, AgentTimeoutError | TimeoutError):
        return "TimeoutError"
    return type(exc).__name__


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(OrchestrationError)
    async def orchestration_exception_handler(
        request: Request, exc: OrchestrationError
    ) -> JSONResponse:
        if isinstance(exc, InvalidTransitionError):
            logger.error(
                "Invalid transition at API boundary",
                path=request.url.path,
                current=exc.current,
                requested=exc.requested,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.message,
                "code": exc.code,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
