"""Application state, startup and shutdown."""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from fastapi import FastAPI
from prometheus_client import Counter

from app.content.client import ContentSource, ContentSourceClient
from app.core.config import Settings
from app.core.logging import get_logger
from app.schema.cache import SchemaCache
from app.schema.endpoints import EndpointRouter
from app.schema.generator import Clock, SchemaGenerator, utc_now
from app.schema.linker import CanonicalLinker
from app.schema.service import SchemaService

# Prometheus metrics
REQUESTS_TOTAL = Counter(
    "app_http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "path"],
)

RESPONSES_TOTAL = Counter(
    "app_http_responses_total",
    "Total number of HTTP responses",
    labelnames=["status_code"],
)

logger = get_logger(__name__)


@dataclass
class AppState:
    """Components shared by the request handlers."""

    settings: Settings
    service: SchemaService
    closers: list[Callable[[], Awaitable[None]]] = field(default_factory=list)

    @property
    def router(self) -> EndpointRouter:
        return self.service.router

    @property
    def cache(self) -> SchemaCache:
        return self.service.cache

    def health_check(self) -> dict[str, Any]:
        """Summarize the state of the in-process components.

        Returns:
            Dict containing health status of all components
        """
        return {
            "status": "healthy",
            "components": {
                "cache": True,
                "router": True,
            },
            "details": {
                "cache": {"entries": len(self.cache)},
                "router": {
                    "layout": self.router.layout,
                    "mappings": len(self.router.mappings()),
                },
            },
        }


def build_state(
    settings: Settings,
    content_source: ContentSource | None = None,
    clock: Clock = utc_now,
) -> AppState:
    """Wire the schema components from settings.

    Args:
        settings: Application settings
        content_source: Content source to use instead of the HTTP client
        clock: Clock shared by the generator and the cache

    Returns:
        Fully wired application state
    """
    closers: list[Callable[[], Awaitable[None]]] = []
    if content_source is None:
        client = ContentSourceClient(
            base_url=settings.CONTENT_API_URL,
            token=settings.CONTENT_API_TOKEN,
            timeout=settings.CONTENT_API_TIMEOUT,
            retries=settings.CONTENT_API_RETRIES,
            backoff_base=settings.CONTENT_API_BACKOFF_BASE,
            backoff_max=settings.CONTENT_API_BACKOFF_MAX,
        )
        closers.append(client.aclose)
        content_source = client

    service = SchemaService(
        generator=SchemaGenerator(clock=clock),
        linker=CanonicalLinker(settings.SITE_URL),
        cache=SchemaCache(clock=clock, max_age_seconds=settings.CACHE_MAX_AGE_SECONDS),
        router=EndpointRouter(settings.SITE_URL, layout=settings.SCHEMA_LAYOUT),
        source=content_source,
    )
    return AppState(settings=settings, service=service, closers=closers)


def create_lifespan(
    settings: Settings,
    content_source: ContentSource | None = None,
    clock: Clock = utc_now,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Create the application lifespan handler.

    Args:
        settings: Application settings
        content_source: Optional content source override
        clock: Optional clock override

    Returns:
        Lifespan context manager factory
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state = build_state(settings, content_source=content_source, clock=clock)
        app.state.schema = state
        logger.info(
            "application_started",
            site_url=settings.SITE_URL,
            layout=settings.SCHEMA_LAYOUT,
            content_api_url=settings.CONTENT_API_URL,
            cache_max_age_seconds=settings.CACHE_MAX_AGE_SECONDS,
        )
        try:
            yield
        finally:
            for close in state.closers:
                await close()
            logger.info("application_stopped")

    return lifespan
