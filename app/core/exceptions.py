"""Service exceptions.

Every exception raised across a component boundary derives from
``SchemaServiceError`` and carries the HTTP status code the error-handling
middleware answers with.
"""

from collections.abc import Sequence

from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_504_GATEWAY_TIMEOUT,
)


class SchemaServiceError(Exception):
    """Base class for all service errors."""

    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR


class ValidationError(SchemaServiceError):
    """Raised when a content entity is missing required fields."""

    status_code = HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(
        self,
        message: str,
        entity_key: str | None = None,
        missing_fields: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.entity_key = entity_key
        self.missing_fields = list(missing_fields)


class UnsupportedTypeError(ValidationError):
    """Raised when an entity type has no schema.org vocabulary mapping."""


class CanonicalMismatchError(SchemaServiceError):
    """Raised when a canonical URL is off-origin or points at a schema endpoint."""

    status_code = HTTP_409_CONFLICT

    def __init__(self, message: str, canonical_url: str | None = None) -> None:
        super().__init__(message)
        self.canonical_url = canonical_url


class NotFoundError(SchemaServiceError):
    """Raised for unmapped entities, types or paths."""

    status_code = HTTP_404_NOT_FOUND


class UpstreamTimeout(SchemaServiceError):  # noqa: N818
    """Raised when the content source stays unavailable after all retries."""

    status_code = HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, message: str, attempts: int = 0) -> None:
        super().__init__(message)
        self.attempts = attempts


class UpstreamError(SchemaServiceError):
    """Raised when the content source answers with an unusable response."""

    status_code = HTTP_502_BAD_GATEWAY


class AuthenticationError(SchemaServiceError):
    """Raised when a webhook call carries a missing or wrong token."""

    status_code = HTTP_401_UNAUTHORIZED
