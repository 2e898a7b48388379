"""Endpoint routing between content URLs and schema URLs.

Schema endpoints live under a single path prefix (``/schema/``) in one of two
layouts:

- ``centralized``: ``/schema/{type-slug}/{id}``, e.g. ``/schema/course/course-1``
- ``parallel``: ``/schema/{content-segment}/{id}``, mirroring the content page
  ``/courses/course-1`` as ``/schema/courses/course-1``

Every path outside the prefix is a content path ``/{content-segment}/{id}``.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Literal
from urllib.parse import quote, unquote, urlsplit

from app.core.exceptions import (
    CanonicalMismatchError,
    NotFoundError,
    UnsupportedTypeError,
)
from app.core.logging import get_logger
from app.models.schema import EndpointMapping
from app.schema.linker import SCHEMA_PATH_PREFIX, origin_of
from app.schema.vocabulary import (
    TypeSpec,
    get_type_spec,
    spec_for_segment,
    spec_for_slug,
)

logger = get_logger(__name__)

Layout = Literal["centralized", "parallel"]


class Representation(str, Enum):
    """What an inbound path asks for."""

    CONTENT = "content"
    SCHEMA = "schema"


@dataclass(frozen=True)
class Route:
    """A resolved inbound path."""

    representation: Representation
    entity_type: str
    entity_id: str


class EndpointRouter:
    """Maps content URLs to schema URLs and resolves inbound paths.

    Registered mappings are one-to-one: an entity has exactly one content URL
    and one schema URL, and a content URL belongs to exactly one entity.
    """

    def __init__(
        self,
        site_url: str,
        layout: Layout = "centralized",
        schema_prefix: str = SCHEMA_PATH_PREFIX,
    ) -> None:
        if layout not in ("centralized", "parallel"):
            raise ValueError(f"Unknown schema layout: {layout}")
        self.site_url = site_url.rstrip("/")
        self.layout = layout
        self.schema_prefix = "/" + schema_prefix.strip("/") + "/"
        self._by_entity: dict[tuple[str, str], EndpointMapping] = {}
        self._by_content_url: dict[str, tuple[str, str]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _spec(entity_type: str) -> TypeSpec:
        try:
            return get_type_spec(entity_type)
        except UnsupportedTypeError as e:
            raise NotFoundError(str(e)) from e

    def content_path(self, entity_type: str, entity_id: str) -> str:
        """Conventional content page path of an entity."""
        spec = self._spec(entity_type)
        return f"/{spec.path_segment}/{quote(entity_id, safe='')}"

    def content_url(self, entity_type: str, entity_id: str) -> str:
        """Conventional content page URL of an entity."""
        return self.site_url + self.content_path(entity_type, entity_id)

    def schema_path(self, entity_type: str, entity_id: str) -> str:
        """Schema endpoint path of an entity under the configured layout."""
        spec = self._spec(entity_type)
        first = spec.slug if self.layout == "centralized" else spec.path_segment
        return f"{self.schema_prefix}{first}/{quote(entity_id, safe='')}"

    def schema_url(self, entity_type: str, entity_id: str) -> str:
        """Absolute schema endpoint URL of an entity."""
        return self.site_url + self.schema_path(entity_type, entity_id)

    def is_schema_path(self, path: str) -> bool:
        """Whether a path falls under the schema prefix."""
        return path.startswith(self.schema_prefix) or path == self.schema_prefix.rstrip("/")

    def resolve(self, path: str) -> Route:
        """
        Resolve an inbound path to the content or schema representation.

        Args:
            path: Request path or absolute URL

        Returns:
            The resolved route

        Raises:
            NotFoundError: If the path is off-site or follows neither convention
        """
        parts = urlsplit(path)
        if parts.netloc and origin_of(path) != origin_of(self.site_url):
            raise NotFoundError(f"{path} is not on site {self.site_url}")
        path = parts.path or "/"
        if self.is_schema_path(path):
            entity_type, entity_id = self.resolve_schema(path)
            return Route(Representation.SCHEMA, entity_type, entity_id)

        with self._lock:
            registered = self._by_content_url.get(self.site_url + path.rstrip("/"))
        if registered is not None:
            return Route(Representation.CONTENT, *registered)

        segment, entity_id = self._split(path)
        spec = spec_for_segment(segment)
        return Route(Representation.CONTENT, spec.name, entity_id)

    def resolve_schema(self, path: str) -> tuple[str, str]:
        """
        Resolve a schema endpoint path to an entity type and id.

        Raises:
            NotFoundError: If the path is not a schema path of this layout
        """
        path = urlsplit(path).path
        if not self.is_schema_path(path):
            raise NotFoundError(f"Not a schema path: {path}")
        first, entity_id = self._split(path[len(self.schema_prefix) - 1 :])
        if self.layout == "centralized":
            spec = spec_for_slug(first)
        else:
            spec = spec_for_segment(first)
        return spec.name, entity_id

    @staticmethod
    def _split(path: str) -> tuple[str, str]:
        parts = [part for part in path.strip("/").split("/") if part]
        if len(parts) != 2:
            raise NotFoundError(f"No mapping for path: {path}")
        return parts[0], unquote(parts[1])

    def register(
        self, entity_type: str, entity_id: str, content_url: str
    ) -> EndpointMapping:
        """
        Record the mapping of an entity's content URL to its schema URL.

        Re-registering an entity replaces its previous content URL.

        Raises:
            NotFoundError: If the entity type is unsupported
            CanonicalMismatchError: If another entity already owns the content URL
        """
        mapping = EndpointMapping(
            entity_type=entity_type,
            entity_id=entity_id,
            content_url=content_url,
            schema_url=self.schema_url(entity_type, entity_id),
        )
        key = (entity_type, entity_id)
        normalized = content_url.rstrip("/")

        with self._lock:
            owner = self._by_content_url.get(normalized)
            if owner is not None and owner != key:
                raise CanonicalMismatchError(
                    f"Content URL {content_url} is already mapped to "
                    f"{owner[0]} '{owner[1]}'",
                    canonical_url=content_url,
                )
            previous = self._by_entity.get(key)
            if previous is not None:
                self._by_content_url.pop(previous.content_url.rstrip("/"), None)
            self._by_entity[key] = mapping
            self._by_content_url[normalized] = key

        logger.debug(
            "endpoint_mapping_registered",
            content_url=mapping.content_url,
            schema_url=mapping.schema_url,
        )
        return mapping

    def unregister(self, entity_type: str, entity_id: str) -> bool:
        """Remove an entity's mapping. Returns True if one existed."""
        with self._lock:
            mapping = self._by_entity.pop((entity_type, entity_id), None)
            if mapping is not None:
                self._by_content_url.pop(mapping.content_url.rstrip("/"), None)
        return mapping is not None

    def mapping_for(self, entity_type: str, entity_id: str) -> EndpointMapping:
        """
        Get the registered mapping of an entity.

        Raises:
            NotFoundError: If the entity is not mapped
        """
        with self._lock:
            mapping = self._by_entity.get((entity_type, entity_id))
        if mapping is None:
            raise NotFoundError(f"No mapping for {entity_type} '{entity_id}'")
        return mapping

    def mapping_for_content_url(self, content_url: str) -> EndpointMapping:
        """
        Get the registered mapping owning a content URL.

        Raises:
            NotFoundError: If no entity owns the URL
        """
        with self._lock:
            key = self._by_content_url.get(content_url.rstrip("/"))
            mapping = self._by_entity.get(key) if key is not None else None
        if mapping is None:
            raise NotFoundError(f"No mapping for content URL {content_url}")
        return mapping

    def mappings(self) -> list[EndpointMapping]:
        """All registered mappings, ordered by content URL."""
        with self._lock:
            return sorted(self._by_entity.values(), key=lambda m: m.content_url)
