"""Security headers middleware."""

from fastapi import Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.types import ASGIApp


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses.

    HSTS is only sent when the site is served over https. Headers already
    set by a handler are left alone.
    """

    def __init__(self, app: ASGIApp, hsts: bool = True) -> None:
        """
        Initialize middleware.

        Args:
        ----
            app: The ASGI application
            hsts: Whether to send Strict-Transport-Security
        """
        super().__init__(app)
        self.security_headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Referrer-Policy": "strict-origin-when-cross-origin",
        }
        if hsts:
            self.security_headers["Strict-Transport-Security"] = "max-age=31536000"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        for header_name, header_value in self.security_headers.items():
            response.headers.setdefault(header_name, header_value)

        return response
