"""Audit of the canonical markup on live content pages."""

from types import TracebackType
from urllib.parse import urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel, Field

from app.core.exceptions import UpstreamError, UpstreamTimeout
from app.core.logging import get_logger
from app.schema.linker import SCHEMA_PATH_PREFIX, origin_of
from app.schema.markup import JSON_LD_MEDIA_TYPE

logger = get_logger(__name__)


class AuditReport(BaseModel):
    """What a content page tells crawlers about its canonical URL."""

    url: str = Field(..., description="Audited page URL")
    status_code: int = Field(..., description="HTTP status of the page")
    canonical_url: str | None = Field(
        default=None, description="Resolved href of <link rel='canonical'>"
    )
    schema_url: str | None = Field(
        default=None, description="Resolved href of the JSON-LD alternate link"
    )
    issues: list[str] = Field(default_factory=list)

    @property
    def has_canonical(self) -> bool:
        return self.canonical_url is not None

    @property
    def ok(self) -> bool:
        return not self.issues


def _normalize(url: str) -> tuple[tuple[str, str, int] | None, str, str]:
    parts = urlsplit(url)
    return origin_of(url), parts.path.rstrip("/") or "/", parts.query


def _link_href(soup: BeautifulSoup, page_url: str, **attrs: str) -> list[str]:
    hrefs = []
    for tag in soup.find_all("link", href=True):
        rel = tag.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if attrs["rel"] not in [r.lower() for r in rel]:
            continue
        media_type = attrs.get("type")
        if media_type and (tag.get("type") or "").lower() != media_type:
            continue
        hrefs.append(urljoin(page_url, str(tag["href"]).strip()))
    return hrefs


class CanonicalAuditor:
    """Fetches content pages and checks their canonical and alternate links."""

    def __init__(
        self,
        timeout: float = 10.0,
        schema_prefix: str = SCHEMA_PATH_PREFIX,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.schema_prefix = "/" + schema_prefix.strip("/") + "/"
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=timeout / 3),
            follow_redirects=True,
            headers={"Accept": "text/html"},
            transport=transport,
        )

    async def __aenter__(self) -> "CanonicalAuditor":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def inspect(self, url: str, html: str, status_code: int = 200) -> AuditReport:
        """Check already fetched page markup."""
        soup = BeautifulSoup(html, "html.parser")
        issues: list[str] = []

        canonicals = _link_href(soup, url, rel="canonical")
        canonical_url = canonicals[0] if canonicals else None
        if canonical_url is None:
            issues.append("missing canonical link")
        else:
            if len(set(canonicals)) > 1:
                issues.append("conflicting canonical links")
            if urlsplit(canonical_url).path.startswith(self.schema_prefix):
                issues.append("canonical points at a schema endpoint")
            elif _normalize(canonical_url) != _normalize(url):
                issues.append("canonical is not self-referencing")

        alternates = _link_href(soup, url, rel="alternate", type=JSON_LD_MEDIA_TYPE)
        schema_url = alternates[0] if alternates else None
        if schema_url is None:
            issues.append("missing JSON-LD alternate link")

        if status_code >= 400:
            issues.append(f"page answered {status_code}")

        return AuditReport(
            url=url,
            status_code=status_code,
            canonical_url=canonical_url,
            schema_url=schema_url,
            issues=issues,
        )

    async def audit(self, url: str) -> AuditReport:
        """
        Fetch a content page and check its canonical markup.

        Raises:
            UpstreamTimeout: If the page does not answer in time
            UpstreamError: If the page cannot be fetched
        """
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(f"Timed out fetching {url}", attempts=1) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Failed to fetch {url}: {e}") from e

        report = self.inspect(str(response.url), response.text, response.status_code)
        logger.info(
            "canonical_audit",
            url=report.url,
            canonical_url=report.canonical_url,
            issues=report.issues,
        )
        return report
