"""Tests for service exceptions."""

import pytest

from app.core.exceptions import (
    AuthenticationError,
    CanonicalMismatchError,
    NotFoundError,
    SchemaServiceError,
    UnsupportedTypeError,
    UpstreamError,
    UpstreamTimeout,
    ValidationError,
)


@pytest.mark.parametrize(
    ("exc", "status_code"),
    [
        (ValidationError("bad"), 422),
        (UnsupportedTypeError("Widget"), 422),
        (CanonicalMismatchError("off origin"), 409),
        (NotFoundError("missing"), 404),
        (UpstreamTimeout("down"), 504),
        (UpstreamError("garbage"), 502),
        (AuthenticationError("token"), 401),
    ],
)
def test_status_codes(exc: SchemaServiceError, status_code: int) -> None:
    assert isinstance(exc, SchemaServiceError)
    assert exc.status_code == status_code


def test_validation_error_keeps_missing_fields() -> None:
    exc = ValidationError("missing", entity_key="Course:c1", missing_fields=("name", "url"))

    assert exc.entity_key == "Course:c1"
    assert exc.missing_fields == ["name", "url"]
    assert str(exc) == "missing"


def test_unsupported_type_is_a_validation_error() -> None:
    with pytest.raises(ValidationError):
        raise UnsupportedTypeError("No schema.org mapping for type: Widget")


def test_upstream_timeout_counts_attempts() -> None:
    assert UpstreamTimeout("down", attempts=3).attempts == 3
    assert UpstreamTimeout("down").attempts == 0


def test_canonical_mismatch_keeps_url() -> None:
    exc = CanonicalMismatchError("off origin", canonical_url="https://other.example/")

    assert exc.canonical_url == "https://other.example/"
