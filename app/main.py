"""Main FastAPI application module."""

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette import status

from app.api.schema import router as schema_router
from app.api.v1.router import router as v1_router
from app.content.client import ContentSource
from app.core.config import Settings
from app.core.events import create_lifespan
from app.core.logging import configure_logging
from app.middleware.correlation import CorrelationMiddleware
from app.middleware.errors import ErrorHandlingMiddleware, register_exception_handlers
from app.middleware.metrics import MetricsMiddleware
from app.middleware.security import SecurityHeadersMiddleware
from app.schema.generator import Clock, utc_now


def create_app(
    settings: Settings | None = None,
    content_source: ContentSource | None = None,
    clock: Clock = utc_now,
    setup_logging: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Application settings, loaded from the environment when omitted
        content_source: Content source replacing the CMS HTTP client
        clock: Clock shared by generation and caching
        setup_logging: Whether to configure structlog from the settings

    Returns:
        Configured application
    """
    settings = settings or Settings()
    if setup_logging:
        configure_logging(
            testing=settings.TESTING,
            level=settings.LOG_LEVEL,
            json_logs=settings.JSON_LOGS,
        )

    app = FastAPI(
        title=settings.app_name,
        description="schema.org JSON-LD generation with canonical linking",
        version=settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=JSONResponse,
        lifespan=create_lifespan(settings, content_source=content_source, clock=clock),
    )

    # Middleware added last runs first, so the order below is inside -> out:
    # 1. Error handling (innermost, turns escaped exceptions into JSON)
    # 2. Metrics (sees the final status code)
    # 3. Correlation (request ID for logs and error bodies)
    # 4. Security headers
    # 5. CORS (outermost)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        SecurityHeadersMiddleware, hsts=settings.SITE_URL.startswith("https://")
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*", "Content-Type", "X-Request-ID", "X-Webhook-Token"],
        expose_headers=["X-Request-ID", "ETag", "Link"],
        max_age=600,
    )
    register_exception_handlers(app)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose Prometheus metrics."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/", include_in_schema=False)
    async def root_redirect() -> Response:
        """Redirect root path to docs."""
        return RedirectResponse(
            url="/docs", status_code=status.HTTP_307_TEMPORARY_REDIRECT
        )

    app.include_router(schema_router)
    app.include_router(v1_router, prefix=settings.api_prefix)
    return app


app = create_app()
