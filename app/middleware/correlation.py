"""Correlation ID middleware for request tracking."""

import re
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp
from structlog.contextvars import bind_contextvars, clear_contextvars

from app.core.logging import get_logger

logger = get_logger()

CORRELATION_HEADER = "X-Request-ID"

# Opaque ids from proxies and CMS webhooks are accepted if they are short and safe
_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle request correlation IDs.

    Assigns a correlation ID to each request and adds it to:
    - Request state
    - Response headers
    - Structured logging context, together with method and path
    """

    def __init__(self, app: ASGIApp, header_name: str = CORRELATION_HEADER) -> None:
        """
        Initialize middleware.

        Args:
        ----
            app: The ASGI application
            header_name: Header carrying the correlation ID
        """
        super().__init__(app)
        self.header_name = header_name

    @staticmethod
    def _validate_correlation_id(value: str | None) -> bool:
        """
        Validate if a string is usable as a correlation ID.

        Args:
        ----
            value: The string to validate

        Returns:
        -------
            True if a UUID or a short token of safe characters
        """
        if not value:
            return False

        try:
            uuid.UUID(value)
            return True
        except (ValueError, AttributeError, TypeError):
            return bool(_SAFE_ID.match(value))

    def _get_correlation_id(self, request: Request) -> str:
        header_value = request.headers.get(self.header_name, "")
        if self._validate_correlation_id(header_value):
            return header_value
        return str(uuid.uuid4())

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Process the request/response cycle.

        Args:
        ----
            request: The incoming request
            call_next: The next handler in the middleware chain

        Returns:
        -------
            The response from downstream handlers
        """
        clear_contextvars()

        correlation_id = self._get_correlation_id(request)
        bind_contextvars(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        )
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers[self.header_name] = correlation_id
        return response
