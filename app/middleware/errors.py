"""Error handling middleware."""

from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.status import HTTP_422_UNPROCESSABLE_ENTITY, HTTP_500_INTERNAL_SERVER_ERROR
from starlette.types import ASGIApp

from app.core.exceptions import (
    CanonicalMismatchError,
    SchemaServiceError,
    UpstreamTimeout,
    ValidationError,
)
from app.core.logging import get_logger

logger = get_logger()


def _correlation_id(request: Request) -> str | None:
    correlation_id = getattr(request.state, "correlation_id", None)
    return str(correlation_id) if correlation_id is not None else None


def error_response(
    request: Request,
    error_type: str,
    detail: str,
    status_code: int,
    **extra: Any,
) -> JSONResponse:
    """
    Create a JSON error response and log it.

    Args:
    ----
        request: The request that failed
        error_type: Name of the error
        detail: Human readable message
        status_code: HTTP status code
        extra: Additional fields for the response body

    Returns:
    -------
        A JSON response with error details
    """
    correlation_id = _correlation_id(request)
    log = logger.error if status_code >= HTTP_500_INTERNAL_SERVER_ERROR else logger.warning
    log(
        "request_error",
        error_type=error_type,
        error_message=detail,
        status_code=status_code,
        path=request.url.path,
        method=request.method,
        correlation_id=correlation_id,
    )

    response = JSONResponse(
        status_code=status_code,
        content={
            "error": error_type,
            "message": detail,
            "status_code": status_code,
            "correlation_id": correlation_id if correlation_id else "unknown",
            **extra,
        },
        media_type="application/json",
    )
    if correlation_id:
        response.headers["X-Request-ID"] = correlation_id
    return response


async def handle_service_error(request: Request, exc: Exception) -> JSONResponse:
    """Answer a service error with the status code it carries."""
    status_code = getattr(exc, "status_code", HTTP_500_INTERNAL_SERVER_ERROR)
    extra: dict[str, Any] = {}
    if isinstance(exc, ValidationError) and exc.missing_fields:
        extra["missing_fields"] = exc.missing_fields
    if isinstance(exc, CanonicalMismatchError) and exc.canonical_url:
        extra["canonical_url"] = exc.canonical_url
    if isinstance(exc, UpstreamTimeout):
        extra["attempts"] = exc.attempts
    return error_response(
        request, exc.__class__.__name__, str(exc), status_code, **extra
    )


async def handle_http_exception(request: Request, exc: Exception) -> Response:
    """Answer framework HTTP errors (404 routes, 405 methods) in the same shape."""
    if not isinstance(exc, HTTPException):
        raise exc
    if exc.status_code < 400:
        return Response(status_code=exc.status_code, headers=exc.headers)
    response = error_response(
        request, "HTTPException", str(exc.detail), exc.status_code
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def handle_validation_error(request: Request, exc: Exception) -> JSONResponse:
    """Answer request validation failures with 422."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    return error_response(
        request,
        "RequestValidationError",
        "Request validation failed",
        HTTP_422_UNPROCESSABLE_ENTITY,
        errors=[
            {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
            for error in errors
        ],
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on an application."""
    app.add_exception_handler(SchemaServiceError, handle_service_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns exceptions that escape the route handlers into JSON 500 responses."""

    def __init__(self, app: ASGIApp) -> None:
        """
        Initialize middleware.

        Args:
        ----
            app: The ASGI application
        """
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Process the request/response cycle and handle errors.

        Args:
        ----
            request: The incoming request
            call_next: The next handler in the middleware chain

        Returns:
        -------
            The response from downstream handlers or error response
        """
        try:
            return await call_next(request)
        except SchemaServiceError as exc:
            return await handle_service_error(request, exc)
        except Exception as exc:
            logger.exception(
                "unhandled_exception",
                error_type=exc.__class__.__name__,
                path=request.url.path,
            )
            return error_response(
                request,
                exc.__class__.__name__,
                "Internal server error",
                HTTP_500_INTERNAL_SERVER_ERROR,
            )
