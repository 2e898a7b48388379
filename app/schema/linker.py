"""Canonical linking of schema documents to their live content pages."""

from typing import NoReturn
from urllib.parse import urlsplit

from app.core.exceptions import CanonicalMismatchError
from app.core.logging import get_logger
from app.models.schema import SchemaDocument
from app.schema.metrics import CANONICAL_REJECTIONS

logger = get_logger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}

SCHEMA_PATH_PREFIX = "/schema/"


def origin_of(url: str) -> tuple[str, str, int] | None:
    """Scheme, host and effective port of an absolute http(s) URL."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS or not parts.hostname:
        return None
    return scheme, parts.hostname.lower(), port or DEFAULT_PORTS[scheme]


class CanonicalLinker:
    """Attaches a canonical content URL to schema documents.

    Args:
        site_url: Origin every canonical URL must belong to
        schema_prefix: Path prefix of schema endpoints, never a valid canonical
    """

    def __init__(self, site_url: str, schema_prefix: str = SCHEMA_PATH_PREFIX) -> None:
        site_origin = origin_of(site_url)
        if site_origin is None:
            raise ValueError(f"Site URL is not an absolute http(s) URL: {site_url}")
        self.site_url = site_url.rstrip("/")
        self.site_origin = site_origin
        self.schema_prefix = "/" + schema_prefix.strip("/") + "/"

    def check(self, content_url: str) -> None:
        """Validate a canonical URL candidate.

        Raises:
            CanonicalMismatchError: If the URL is off-origin or a schema endpoint
        """
        origin = origin_of(content_url)
        if origin is None:
            self._reject(content_url, "Canonical URL must be an absolute http(s) URL")
        if origin != self.site_origin:
            self._reject(
                content_url,
                f"Canonical URL does not belong to site origin {self.site_url}",
            )
        path = urlsplit(content_url).path or "/"
        if path.startswith(self.schema_prefix) or path == self.schema_prefix.rstrip("/"):
            self._reject(content_url, "Canonical URL must not point at a schema endpoint")

    def link(self, document: SchemaDocument, content_url: str) -> SchemaDocument:
        """Return a copy of the document pointing at its content page.

        Args:
            document: Generated schema document
            content_url: URL of the live content page

        Returns:
            Linked copy of the document

        Raises:
            CanonicalMismatchError: If the URL cannot be the canonical URL
        """
        self.check(content_url)

        data = dict(document.data)
        data["@id"] = f"{content_url}#{document.entity_type.lower()}"
        data["url"] = content_url
        data["mainEntityOfPage"] = {"@type": "WebPage", "@id": content_url}

        return document.model_copy(update={"data": data, "canonical_url": content_url})

    def _reject(self, content_url: str, message: str) -> NoReturn:
        CANONICAL_REJECTIONS.inc()
        logger.warning("canonical_rejected", canonical_url=content_url, reason=message)
        raise CanonicalMismatchError(message, canonical_url=content_url)
