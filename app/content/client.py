"""Client for the content-management system read API."""

import asyncio
from types import TracebackType
from typing import Protocol
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.content.retry import Sleep, with_retry
from app.core.exceptions import NotFoundError, UpstreamError, UpstreamTimeout
from app.core.logging import get_logger
from app.models.content import ContentEntity
from app.schema.metrics import UPSTREAM_REQUESTS

logger = get_logger(__name__)


class ContentSource(Protocol):
    """Anything that can hand out the current revision of an entity."""

    async def fetch_entity(self, entity_type: str, entity_id: str) -> ContentEntity: ...


class TransientUpstreamError(Exception):
    """A content source failure worth retrying (5xx, 429)."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Content source answered {status_code}")
        self.status_code = status_code


RETRYABLE = (httpx.TimeoutException, httpx.TransportError, TransientUpstreamError)


class ContentSourceClient:
    """
    Reads entities from the CMS over HTTP.

    Every request is bounded by a timeout; timeouts, transport errors and
    5xx/429 answers are retried with exponential backoff. When retries are
    exhausted the failure surfaces as ``UpstreamTimeout``.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 5.0,
        retries: int = 3,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """
        Initialize the content source client.

        Args:
            base_url: Base URL of the CMS read API
            token: Optional bearer token
            timeout: Per-request timeout in seconds
            retries: Retry attempts after the first request
            backoff_base: Delay before the first retry in seconds
            backoff_max: Upper bound for any retry delay in seconds
            transport: Optional httpx transport (used by tests)
            sleep: Awaitable sleep between retries
        """
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.base_url = base_url.rstrip("/")
        self.retries = retries
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._get_with_retry = with_retry(
            max_retries=retries,
            base_delay=backoff_base,
            max_delay=backoff_max,
            retry_on=RETRYABLE,
            sleep=sleep,
            on_retry=self._log_retry,
        )(self._get_once)

    async def __aenter__(self) -> "ContentSourceClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _log_retry(self, attempt: int, exc: BaseException, delay: float) -> None:
        UPSTREAM_REQUESTS.labels(status="retry").inc()
        logger.warning(
            "content_source_retry",
            attempt=attempt,
            max_attempts=self.retries + 1,
            error=repr(exc),
            delay=round(delay, 3),
        )

    async def _get_once(self, path: str) -> httpx.Response:
        response = await self._client.get(path)
        if response.status_code >= 500 or response.status_code == 429:
            raise TransientUpstreamError(response.status_code)
        return response

    async def fetch_entity(self, entity_type: str, entity_id: str) -> ContentEntity:
        """
        Fetch the current revision of an entity.

        Args:
            entity_type: schema.org type name
            entity_id: Entity identifier

        Returns:
            The entity as stored in the CMS

        Raises:
            NotFoundError: If the CMS does not know the entity
            UpstreamTimeout: If the CMS stays unavailable after all retries
            UpstreamError: If the CMS answers with an unusable response
        """
        path = f"/entities/{quote(entity_type, safe='')}/{quote(entity_id, safe='')}"
        try:
            response = await self._get_with_retry(path)
        except RETRYABLE as e:
            UPSTREAM_REQUESTS.labels(status="failed").inc()
            logger.error(
                "content_source_unavailable",
                entity_type=entity_type,
                entity_id=entity_id,
                attempts=self.retries + 1,
                error=repr(e),
            )
            raise UpstreamTimeout(
                f"Content source unavailable for {entity_type} '{entity_id}'",
                attempts=self.retries + 1,
            ) from e

        if response.status_code == 404:
            UPSTREAM_REQUESTS.labels(status="not_found").inc()
            raise NotFoundError(f"Content source has no {entity_type} '{entity_id}'")
        if response.status_code >= 400:
            UPSTREAM_REQUESTS.labels(status="failed").inc()
            raise UpstreamError(
                f"Content source answered {response.status_code} "
                f"for {entity_type} '{entity_id}'"
            )

        try:
            entity = ContentEntity.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            UPSTREAM_REQUESTS.labels(status="failed").inc()
            raise UpstreamError(
                f"Content source returned an invalid entity for "
                f"{entity_type} '{entity_id}': {e}"
            ) from e

        if entity.type != entity_type or entity.id != entity_id:
            UPSTREAM_REQUESTS.labels(status="failed").inc()
            raise UpstreamError(
                f"Content source returned {entity.key} for {entity_type}:{entity_id}"
            )

        UPSTREAM_REQUESTS.labels(status="ok").inc()
        return entity
