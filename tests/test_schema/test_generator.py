"""Tests for schema generation."""

import pytest
from structlog.testing import capture_logs

from app.core.exceptions import UnsupportedTypeError, ValidationError
from app.models.content import ContentEntity
from app.schema.generator import SchemaGenerator
from tests.fixtures.content import FakeClock, make_entity


@pytest.fixture
def generator(clock: FakeClock) -> SchemaGenerator:
    return SchemaGenerator(clock=clock)


def test_generate_course(generator: SchemaGenerator, clock: FakeClock) -> None:
    """A valid course becomes a Course document of the same version."""
    document = generator.generate(make_entity())

    assert document.data["@context"] == "https://schema.org"
    assert document.data["@type"] == "Course"
    assert document.data["name"] == "Intro to Python"
    assert document.entity_key == "Course:course-1"
    assert document.version == 2
    assert document.generated_at == clock.now


def test_generated_document_is_unlinked(generator: SchemaGenerator) -> None:
    """Canonical properties are only set by the linker."""
    document = generator.generate(make_entity())

    assert document.canonical_url is None
    assert "@id" not in document.data
    assert "url" not in document.data
    assert "mainEntityOfPage" not in document.data


def test_missing_required_fields(generator: SchemaGenerator) -> None:
    """All missing required fields are reported at once."""
    entity = ContentEntity(id="e1", type="Event", version=1, fields={"name": "Meetup"})

    with pytest.raises(ValidationError) as exc_info:
        generator.generate(entity)

    assert exc_info.value.missing_fields == ["start_date", "location"]
    assert exc_info.value.entity_key == "Event:e1"
    assert exc_info.value.status_code == 422


def test_blank_required_field_counts_as_missing(generator: SchemaGenerator) -> None:
    """Whitespace-only values do not satisfy a required field."""
    entity = make_entity(description="   ")

    assert generator.missing_fields(entity) == ["description"]
    with pytest.raises(ValidationError, match="description"):
        generator.generate(entity)


def test_faq_page_without_usable_questions(generator: SchemaGenerator) -> None:
    """Malformed entries do not satisfy the questions field."""
    entity = ContentEntity(
        id="faq-1", type="FAQPage", version=1, fields={"questions": ["What?"]}
    )

    with pytest.raises(ValidationError) as exc_info:
        generator.generate(entity)

    assert exc_info.value.missing_fields == ["questions"]


def test_unsupported_type(generator: SchemaGenerator) -> None:
    """Unknown types are rejected."""
    entity = ContentEntity(id="w1", type="Widget", version=1, fields={"name": "W"})

    with pytest.raises(UnsupportedTypeError):
        generator.generate(entity)


def test_missing_recommended_fields_are_logged(generator: SchemaGenerator) -> None:
    """Recommended fields only produce a warning."""
    entity = ContentEntity(
        id="course-9",
        type="Course",
        version=1,
        fields={"name": "Intro", "description": "Basics"},
    )

    with capture_logs() as logs:
        document = generator.generate(entity)

    assert document.data["@type"] == "Course"
    warnings = [log for log in logs if log["event"] == "schema_recommended_fields_missing"]
    assert warnings and warnings[0]["fields"] == ["provider"]


def test_generation_is_deterministic(generator: SchemaGenerator) -> None:
    """The same entity version always yields the same document."""
    entity = make_entity()

    assert generator.generate(entity) == generator.generate(entity)
