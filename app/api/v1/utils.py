"""Utility functions and dependencies for API endpoints."""

import secrets

from fastapi import Header, Request

from app.core.events import AppState
from app.core.exceptions import AuthenticationError


def get_app_state(request: Request) -> AppState:
    """
    Get the application state wired at startup.

    Args:
        request: FastAPI request object

    Returns:
        Shared application state
    """
    return request.app.state.schema


def verify_webhook_token(
    request: Request,
    x_webhook_token: str | None = Header(default=None),
) -> None:
    """
    Check the webhook token when one is configured.

    Raises:
        AuthenticationError: If the token is missing or wrong
    """
    expected = get_app_state(request).settings.WEBHOOK_TOKEN
    if not expected:
        return
    if x_webhook_token is None or not secrets.compare_digest(
        x_webhook_token.encode(), expected.encode()
    ):
        raise AuthenticationError("Invalid or missing webhook token")


def etag_matches(if_none_match: str | None, etag: str) -> bool:
    """
    Whether an If-None-Match header value matches an entity tag.

    Weak comparison is used, as for GET conditional requests.
    """
    if not if_none_match:
        return False
    if if_none_match.strip() == "*":
        return True
    candidates = [tag.strip() for tag in if_none_match.split(",")]
    return any(tag.removeprefix("W/") == etag.removeprefix("W/") for tag in candidates)
