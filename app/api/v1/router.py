"""API v1 router module."""

from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.status import HTTP_202_ACCEPTED

from app.api.v1.utils import get_app_state, verify_webhook_token
from app.core.events import AppState
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.models.content import ContentEvent
from app.models.schema import EndpointMapping, HeadLinks
from app.schema.endpoints import Representation
from app.schema.markup import head_links

logger = get_logger(__name__)

router = APIRouter(default_response_class=JSONResponse)


class HeadLinksResponse(BaseModel):
    """Head tags for a content page."""

    content_url: str
    schema_url: str
    canonical: str
    alternate: str
    html: str

    @classmethod
    def from_links(cls, links: HeadLinks) -> "HeadLinksResponse":
        return cls(**links.model_dump(), html=links.html)


class ContentEventResult(BaseModel):
    """Outcome of a processed content event."""

    event: str
    entity_type: str
    entity_id: str
    version: int | None = None
    schema_url: str | None = None
    removed: bool | None = None


class MappingList(BaseModel):
    """Registered endpoint mappings."""

    count: int = Field(..., ge=0)
    mappings: list[EndpointMapping]


@router.get("/")
async def get_api_metadata(state: AppState = Depends(get_app_state)) -> dict[str, str]:
    """Get API metadata."""
    return {
        "version": state.settings.version,
        "site_url": state.settings.SITE_URL,
        "schema_layout": state.settings.SCHEMA_LAYOUT,
        "api_status": "healthy",
    }


@router.get("/health")
async def health_check(
    request: Request, state: AppState = Depends(get_app_state)
) -> dict[str, Any]:
    """
    Health check endpoint.

    Returns
    -------
        Dict containing health status information
    """
    return {
        **state.health_check(),
        "version": state.settings.version,
        "correlation_id": request.state.correlation_id,
    }


@router.get("/links", response_model=HeadLinksResponse)
async def get_head_links(
    url: str = Query(..., description="Content page URL or path"),
    state: AppState = Depends(get_app_state),
) -> HeadLinksResponse:
    """
    Get the canonical and alternate link tags a content page should embed.

    The page is matched against registered mappings first and then against
    the content path convention of the supported types.
    """
    route = state.router.resolve(url)
    if route.representation is Representation.SCHEMA:
        raise NotFoundError(f"{url} is a schema endpoint, not a content page")

    try:
        mapping = state.router.mapping_for(route.entity_type, route.entity_id)
    except NotFoundError:
        mapping = EndpointMapping(
            entity_type=route.entity_type,
            entity_id=route.entity_id,
            content_url=state.router.content_url(route.entity_type, route.entity_id),
            schema_url=state.router.schema_url(route.entity_type, route.entity_id),
        )
    return HeadLinksResponse.from_links(head_links(mapping))


@router.get("/mappings", response_model=MappingList)
async def list_mappings(state: AppState = Depends(get_app_state)) -> MappingList:
    """List registered content URL to schema URL mappings."""
    mappings = state.router.mappings()
    return MappingList(count=len(mappings), mappings=mappings)


@router.get("/cache/stats")
async def cache_stats(state: AppState = Depends(get_app_state)) -> dict[str, Any]:
    """Get schema cache statistics."""
    return state.cache.stats()


@router.post(
    "/content-events",
    status_code=HTTP_202_ACCEPTED,
    response_model=ContentEventResult,
    dependencies=[Depends(verify_webhook_token)],
)
async def content_event(
    event: ContentEvent, state: AppState = Depends(get_app_state)
) -> ContentEventResult:
    """
    Receive a change notification from the CMS.

    ``updated`` regenerates the entity from the inline payload when one is
    given, otherwise from the CMS read API. ``deleted`` drops the cached
    document and the endpoint mapping.
    """
    logger.info(
        "content_event_received",
        content_event=event.event,
        entity_type=event.entity_type,
        entity_id=event.entity_id,
    )

    if event.event == "deleted":
        removed = await state.service.remove(event.entity_type, event.entity_id)
        return ContentEventResult(
            event=event.event,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            removed=removed,
        )

    if event.entity is not None:
        if (event.entity.type, event.entity.id) != (event.entity_type, event.entity_id):
            raise ValidationError(
                f"Inline entity {event.entity.key} does not match "
                f"{event.entity_type}:{event.entity_id}",
                entity_key=event.entity.key,
            )
        document = await state.service.apply(event.entity)
    else:
        document = await state.service.regenerate(
            event.entity_type, event.entity_id, force=True
        )

    return ContentEventResult(
        event=event.event,
        entity_type=event.entity_type,
        entity_id=event.entity_id,
        version=document.version,
        schema_url=state.router.schema_url(event.entity_type, event.entity_id),
    )
