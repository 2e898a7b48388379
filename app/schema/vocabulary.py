"""schema.org vocabulary for the supported content types.

Each supported type is described by a ``TypeSpec``: its schema.org name, the
slug used in centralized schema URLs, the path segment of its content pages,
the CMS fields it cannot do without, and a builder turning CMS fields into
JSON-LD properties. Builders never set ``@context``, ``@type``, ``url`` or
``mainEntityOfPage``; the generator and the canonical linker own those keys.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from app.core.exceptions import NotFoundError, UnsupportedTypeError

SCHEMA_CONTEXT = "https://schema.org"

Builder = Callable[[Mapping[str, Any]], dict[str, Any]]
FieldCheck = Callable[[Any], bool]


@dataclass(frozen=True)
class TypeSpec:
    """Vocabulary entry for one schema.org type."""

    name: str
    slug: str
    path_segment: str
    required: tuple[str, ...]
    recommended: tuple[str, ...]
    build: Builder
    checks: Mapping[str, FieldCheck] = field(default_factory=dict)

    def is_usable(self, name: str, value: Any) -> bool:
        """Whether a required field value can populate the document."""
        if is_blank(value):
            return False
        check = self.checks.get(name)
        return check is None or check(value)


VOCABULARY: dict[str, TypeSpec] = {}


def register_type(
    name: str,
    slug: str,
    path_segment: str,
    required: Iterable[str],
    recommended: Iterable[str] = (),
    checks: Mapping[str, FieldCheck] | None = None,
) -> Callable[[Builder], Builder]:
    """Register a builder for a schema.org type."""

    def decorator(build: Builder) -> Builder:
        VOCABULARY[name] = TypeSpec(
            name=name,
            slug=slug,
            path_segment=path_segment,
            required=tuple(required),
            recommended=tuple(recommended),
            build=build,
            checks=dict(checks or {}),
        )
        return build

    return decorator


def get_type_spec(name: str) -> TypeSpec:
    """Look up a type by its schema.org name.

    Raises:
        UnsupportedTypeError: If the type has no vocabulary entry
    """
    spec = VOCABULARY.get(name)
    if spec is None:
        raise UnsupportedTypeError(f"Unsupported schema type: {name}")
    return spec


def spec_for_slug(slug: str) -> TypeSpec:
    """Look up a type by the slug used in centralized schema URLs."""
    for spec in VOCABULARY.values():
        if spec.slug == slug:
            return spec
    raise NotFoundError(f"No schema type for slug '{slug}'")


def spec_for_segment(segment: str) -> TypeSpec:
    """Look up a type by the first path segment of its content pages."""
    for spec in VOCABULARY.values():
        if spec.path_segment == segment:
            return spec
    raise NotFoundError(f"No schema type for path segment '{segment}'")


def is_blank(value: Any) -> bool:
    """True for values that cannot populate a property."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def compact(properties: Mapping[str, Any]) -> dict[str, Any]:
    """Drop properties without a usable value."""
    return {key: value for key, value in properties.items() if not is_blank(value)}


def _date(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _list(value: Any) -> list[Any]:
    if is_blank(value):
        return []
    if isinstance(value, (list, tuple)):
        return [item for item in value if not is_blank(item)]
    return [value]


def _named(value: Any, default_type: str) -> dict[str, Any] | None:
    """Person, Organization or Brand reference from a name or a mapping."""
    if is_blank(value):
        return None
    if isinstance(value, Mapping):
        return compact(
            {
                "@type": value.get("type", default_type),
                "name": value.get("name"),
                "url": value.get("url"),
                "logo": value.get("logo"),
            }
        )
    return {"@type": default_type, "name": str(value)}


def _address(value: Any) -> dict[str, Any] | None:
    if is_blank(value):
        return None
    if isinstance(value, Mapping):
        return compact(
            {
                "@type": "PostalAddress",
                "streetAddress": value.get("street"),
                "addressLocality": value.get("city"),
                "addressRegion": value.get("region"),
                "postalCode": value.get("postal_code"),
                "addressCountry": value.get("country"),
            }
        )
    return {"@type": "PostalAddress", "streetAddress": str(value)}


def _place(value: Any) -> dict[str, Any] | None:
    if is_blank(value):
        return None
    if isinstance(value, Mapping):
        if value.get("url") and not value.get("address"):
            return compact({"@type": "VirtualLocation", "url": value.get("url")})
        return compact(
            {
                "@type": "Place",
                "name": value.get("name"),
                "address": _address(value.get("address")),
            }
        )
    return {"@type": "Place", "name": str(value)}


def _offer(fields: Mapping[str, Any]) -> dict[str, Any] | None:
    if is_blank(fields.get("price")):
        return None
    availability = fields.get("availability")
    if availability and not str(availability).startswith("http"):
        availability = f"{SCHEMA_CONTEXT}/{availability}"
    return compact(
        {
            "@type": "Offer",
            "price": fields.get("price"),
            "priceCurrency": fields.get("currency", "USD"),
            "availability": availability,
        }
    )


def _rating(fields: Mapping[str, Any]) -> dict[str, Any] | None:
    if is_blank(fields.get("rating_value")):
        return None
    return compact(
        {
            "@type": "AggregateRating",
            "ratingValue": fields.get("rating_value"),
            "reviewCount": fields.get("review_count"),
        }
    )


@register_type(
    "Course",
    slug="course",
    path_segment="courses",
    required=("name", "description"),
    recommended=("provider",),
)
def build_course(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Course: name, description and the providing organization."""
    return compact(
        {
            "name": fields.get("name"),
            "description": fields.get("description"),
            "provider": _named(fields.get("provider"), "Organization"),
            "courseCode": fields.get("course_code"),
            "inLanguage": fields.get("language"),
            "image": fields.get("image"),
            "offers": _offer(fields),
        }
    )


@register_type(
    "Product",
    slug="product",
    path_segment="products",
    required=("name", "image"),
    recommended=("price", "description", "brand"),
)
def build_product(fields: Mapping[str, Any]) -> dict[str, Any]:
    return compact(
        {
            "name": fields.get("name"),
            "image": fields.get("image"),
            "description": fields.get("description"),
            "sku": fields.get("sku"),
            "brand": _named(fields.get("brand"), "Brand"),
            "offers": _offer(fields),
            "aggregateRating": _rating(fields),
        }
    )


@register_type(
    "Article",
    slug="article",
    path_segment="articles",
    required=("headline", "author"),
    recommended=("published_at", "modified_at", "image", "publisher"),
)
def build_article(fields: Mapping[str, Any]) -> dict[str, Any]:
    return compact(
        {
            "headline": fields.get("headline"),
            "description": fields.get("description"),
            "author": _named(fields.get("author"), "Person"),
            "publisher": _named(fields.get("publisher"), "Organization"),
            "datePublished": _date(fields.get("published_at")),
            "dateModified": _date(fields.get("modified_at")),
            "image": fields.get("image"),
        }
    )


@register_type(
    "Event",
    slug="event",
    path_segment="events",
    required=("name", "start_date", "location"),
    recommended=("end_date", "description", "image"),
)
def build_event(fields: Mapping[str, Any]) -> dict[str, Any]:
    return compact(
        {
            "name": fields.get("name"),
            "startDate": _date(fields.get("start_date")),
            "endDate": _date(fields.get("end_date")),
            "location": _place(fields.get("location")),
            "description": fields.get("description"),
            "image": fields.get("image"),
            "organizer": _named(fields.get("organizer"), "Organization"),
            "offers": _offer(fields),
        }
    )


@register_type(
    "Organization",
    slug="organization",
    path_segment="organizations",
    required=("name",),
    recommended=("logo", "same_as"),
)
def build_organization(fields: Mapping[str, Any]) -> dict[str, Any]:
    return compact(
        {
            "name": fields.get("name"),
            "description": fields.get("description"),
            "logo": fields.get("logo"),
            "email": fields.get("email"),
            "telephone": fields.get("telephone"),
            "sameAs": _list(fields.get("same_as")),
        }
    )


@register_type(
    "Person",
    slug="person",
    path_segment="people",
    required=("name",),
)
def build_person(fields: Mapping[str, Any]) -> dict[str, Any]:
    return compact(
        {
            "name": fields.get("name"),
            "jobTitle": fields.get("job_title"),
            "description": fields.get("description"),
            "image": fields.get("image"),
            "affiliation": _named(fields.get("affiliation"), "Organization"),
            "sameAs": _list(fields.get("same_as")),
        }
    )


@register_type(
    "Recipe",
    slug="recipe",
    path_segment="recipes",
    required=("name", "ingredients", "instructions"),
    recommended=("image", "author", "total_time"),
)
def build_recipe(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Recipe: instructions become ordered HowToStep items."""
    steps = [
        {"@type": "HowToStep", "position": position, "text": str(text)}
        for position, text in enumerate(_list(fields.get("instructions")), start=1)
    ]
    return compact(
        {
            "name": fields.get("name"),
            "description": fields.get("description"),
            "image": fields.get("image"),
            "author": _named(fields.get("author"), "Person"),
            "recipeIngredient": _list(fields.get("ingredients")),
            "recipeInstructions": steps,
            "prepTime": fields.get("prep_time"),
            "cookTime": fields.get("cook_time"),
            "totalTime": fields.get("total_time"),
            "recipeYield": fields.get("recipe_yield"),
        }
    )


@register_type(
    "JobPosting",
    slug="job-posting",
    path_segment="jobs",
    required=("title", "description", "date_posted", "hiring_organization"),
    recommended=("valid_through", "employment_type", "job_location"),
)
def build_job_posting(fields: Mapping[str, Any]) -> dict[str, Any]:
    return compact(
        {
            "title": fields.get("title"),
            "description": fields.get("description"),
            "datePosted": _date(fields.get("date_posted")),
            "validThrough": _date(fields.get("valid_through")),
            "employmentType": fields.get("employment_type"),
            "hiringOrganization": _named(
                fields.get("hiring_organization"), "Organization"
            ),
            "jobLocation": _place(fields.get("job_location")),
        }
    )


@register_type(
    "LocalBusiness",
    slug="local-business",
    path_segment="locations",
    required=("name", "address"),
    recommended=("telephone", "opening_hours"),
)
def build_local_business(fields: Mapping[str, Any]) -> dict[str, Any]:
    geo = None
    if not is_blank(fields.get("latitude")) and not is_blank(fields.get("longitude")):
        geo = {
            "@type": "GeoCoordinates",
            "latitude": fields["latitude"],
            "longitude": fields["longitude"],
        }
    return compact(
        {
            "name": fields.get("name"),
            "address": _address(fields.get("address")),
            "telephone": fields.get("telephone"),
            "openingHours": _list(fields.get("opening_hours")),
            "priceRange": fields.get("price_range"),
            "image": fields.get("image"),
            "geo": geo,
        }
    )


def _questions(value: Any) -> list[dict[str, Any]]:
    """Question entities for the well-formed question/answer pairs."""
    return [
        {
            "@type": "Question",
            "name": item["question"],
            "acceptedAnswer": {"@type": "Answer", "text": item.get("answer", "")},
        }
        for item in _list(value)
        if isinstance(item, Mapping) and not is_blank(item.get("question"))
    ]


@register_type(
    "FAQPage",
    slug="faq-page",
    path_segment="faq",
    required=("questions",),
    checks={"questions": lambda value: bool(_questions(value))},
)
def build_faq_page(fields: Mapping[str, Any]) -> dict[str, Any]:
    """FAQPage: each question/answer pair becomes a Question entity."""
    return compact({"mainEntity": _questions(fields.get("questions"))})
