"""Tests for the schema.org vocabulary."""

from datetime import date

import pytest

from app.core.exceptions import NotFoundError, UnsupportedTypeError
from app.schema.vocabulary import (
    VOCABULARY,
    compact,
    get_type_spec,
    is_blank,
    spec_for_segment,
    spec_for_slug,
)


def test_supported_types() -> None:
    """Every documented type is registered."""
    assert set(VOCABULARY) == {
        "Course",
        "Product",
        "Article",
        "Event",
        "Organization",
        "Person",
        "Recipe",
        "JobPosting",
        "LocalBusiness",
        "FAQPage",
    }


def test_slugs_and_segments_are_unique() -> None:
    """Slugs and content segments each identify one type."""
    specs = list(VOCABULARY.values())
    assert len({spec.slug for spec in specs}) == len(specs)
    assert len({spec.path_segment for spec in specs}) == len(specs)


def test_lookups() -> None:
    """Types are found by name, slug and segment."""
    assert get_type_spec("JobPosting").slug == "job-posting"
    assert spec_for_slug("local-business").name == "LocalBusiness"
    assert spec_for_segment("people").name == "Person"


def test_unknown_type_is_unsupported() -> None:
    """Unknown names raise UnsupportedTypeError."""
    with pytest.raises(UnsupportedTypeError, match="Unsupported schema type: Widget"):
        get_type_spec("Widget")


@pytest.mark.parametrize("lookup", [spec_for_slug, spec_for_segment])
def test_unknown_slug_or_segment_is_not_found(lookup) -> None:
    """Unknown slugs and segments raise NotFoundError."""
    with pytest.raises(NotFoundError):
        lookup("widgets")


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, True),
        ("", True),
        ("   ", True),
        ([], True),
        ({}, True),
        (0, False),
        (False, False),
        ("x", False),
        (["x"], False),
    ],
)
def test_is_blank(value, expected) -> None:
    """Zero and False are values; empty strings and containers are not."""
    assert is_blank(value) is expected


def test_compact_drops_blank_properties() -> None:
    """Blank properties are removed, falsy scalars kept."""
    assert compact({"a": None, "b": "", "c": 0, "d": "x"}) == {"c": 0, "d": "x"}


def test_course_builder() -> None:
    """Course fields map to schema.org properties."""
    data = get_type_spec("Course").build(
        {
            "name": "Intro",
            "description": "Basics",
            "provider": {"name": "Academy", "url": "https://academy.example"},
            "price": 0,
        }
    )
    assert data == {
        "name": "Intro",
        "description": "Basics",
        "provider": {
            "@type": "Organization",
            "name": "Academy",
            "url": "https://academy.example",
        },
        "offers": {"@type": "Offer", "price": 0, "priceCurrency": "USD"},
    }


def test_product_offer_and_rating() -> None:
    """Product offers carry currency and a schema.org availability URL."""
    data = get_type_spec("Product").build(
        {
            "name": "Shoe",
            "image": "https://example.com/shoe.jpg",
            "brand": "Stride",
            "price": "89.00",
            "currency": "EUR",
            "availability": "InStock",
            "rating_value": 4.5,
            "review_count": 12,
        }
    )
    assert data["brand"] == {"@type": "Brand", "name": "Stride"}
    assert data["offers"] == {
        "@type": "Offer",
        "price": "89.00",
        "priceCurrency": "EUR",
        "availability": "https://schema.org/InStock",
    }
    assert data["aggregateRating"] == {
        "@type": "AggregateRating",
        "ratingValue": 4.5,
        "reviewCount": 12,
    }


def test_article_dates_are_iso_formatted() -> None:
    """Dates given as date objects are serialized."""
    data = get_type_spec("Article").build(
        {"headline": "News", "author": "Ada", "published_at": date(2024, 3, 1)}
    )
    assert data["author"] == {"@type": "Person", "name": "Ada"}
    assert data["datePublished"] == "2024-03-01"
    assert "dateModified" not in data


def test_event_locations() -> None:
    """Physical locations become Place, online ones VirtualLocation."""
    build = get_type_spec("Event").build
    physical = build(
        {
            "name": "Meetup",
            "start_date": "2024-05-01T18:00:00",
            "location": {"name": "Hall", "address": {"city": "Berlin", "country": "DE"}},
        }
    )
    assert physical["location"] == {
        "@type": "Place",
        "name": "Hall",
        "address": {
            "@type": "PostalAddress",
            "addressLocality": "Berlin",
            "addressCountry": "DE",
        },
    }

    online = build(
        {
            "name": "Webinar",
            "start_date": "2024-05-01",
            "location": {"url": "https://meet.example/room"},
        }
    )
    assert online["location"] == {
        "@type": "VirtualLocation",
        "url": "https://meet.example/room",
    }


def test_recipe_instructions_are_numbered_steps() -> None:
    """Instructions become HowToStep items in order."""
    data = get_type_spec("Recipe").build(
        {
            "name": "Pancakes",
            "ingredients": ["flour", "milk", ""],
            "instructions": ["Mix", "Fry"],
        }
    )
    assert data["recipeIngredient"] == ["flour", "milk"]
    assert data["recipeInstructions"] == [
        {"@type": "HowToStep", "position": 1, "text": "Mix"},
        {"@type": "HowToStep", "position": 2, "text": "Fry"},
    ]


def test_local_business_geo() -> None:
    """Coordinates are only emitted when both are present."""
    build = get_type_spec("LocalBusiness").build
    with_geo = build(
        {"name": "Cafe", "address": "1 Main St", "latitude": 52.5, "longitude": 13.4}
    )
    assert with_geo["geo"] == {
        "@type": "GeoCoordinates",
        "latitude": 52.5,
        "longitude": 13.4,
    }
    assert with_geo["address"] == {"@type": "PostalAddress", "streetAddress": "1 Main St"}

    without_geo = build({"name": "Cafe", "address": "1 Main St", "latitude": 52.5})
    assert "geo" not in without_geo


def test_faq_page_skips_incomplete_questions() -> None:
    """Only entries with a question become Question entities."""
    data = get_type_spec("FAQPage").build(
        {
            "questions": [
                {"question": "Open on Sunday?", "answer": "No."},
                {"answer": "orphan"},
                "not a mapping",
            ]
        }
    )
    assert data["mainEntity"] == [
        {
            "@type": "Question",
            "name": "Open on Sunday?",
            "acceptedAnswer": {"@type": "Answer", "text": "No."},
        }
    ]


def test_builders_never_set_linking_properties() -> None:
    """@id, url and mainEntityOfPage are left to the canonical linker."""
    data = get_type_spec("Organization").build(
        {"name": "Example Inc", "same_as": ["https://x.example/ex"], "url": "ignored"}
    )
    assert data == {"name": "Example Inc", "sameAs": ["https://x.example/ex"]}


@pytest.mark.parametrize(
    ("questions", "usable"),
    [
        ([{"question": "Open on Sunday?", "answer": "No."}], True),
        ([{"answer": "orphan"}, {"question": "  "}], False),
        (["What?"], False),
        ([], False),
    ],
)
def test_faq_questions_must_hold_a_question(questions: list, usable: bool) -> None:
    """A questions list without one well-formed entry cannot describe the page."""
    spec = get_type_spec("FAQPage")

    assert spec.is_usable("questions", questions) is usable


def test_fields_without_checks_only_need_a_value() -> None:
    spec = get_type_spec("Course")

    assert spec.is_usable("name", "Intro")
    assert not spec.is_usable("name", "")
