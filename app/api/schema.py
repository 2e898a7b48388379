"""Crawler-facing routes: schema endpoints and the sitemap."""

import json

from fastapi import APIRouter, Depends, Header, Response
from starlette.status import HTTP_304_NOT_MODIFIED

from app.api.v1.utils import etag_matches, get_app_state
from app.core.events import AppState
from app.schema.markup import JSON_LD_MEDIA_TYPE, build_sitemap, link_header

router = APIRouter(tags=["schema"])

SCHEMA_CACHE_CONTROL = "public, max-age=300"


@router.get(
    "/schema/{path:path}",
    response_class=Response,
    responses={
        200: {"content": {JSON_LD_MEDIA_TYPE: {}}},
        304: {"description": "Document unchanged"},
        404: {"description": "No such type or entity"},
        504: {"description": "Content source unavailable and nothing cached"},
    },
)
async def get_schema(
    path: str,
    if_none_match: str | None = Header(default=None),
    state: AppState = Depends(get_app_state),
) -> Response:
    """
    Serve the JSON-LD document of an entity.

    The ``Link`` header names the content page as canonical, so the
    endpoint never competes with it in search results.
    """
    schema_path = state.router.schema_prefix + path
    entity_type, entity_id = state.router.resolve_schema(schema_path)
    document = await state.service.get_document(entity_type, entity_id)

    headers = {
        "ETag": document.etag,
        "Cache-Control": SCHEMA_CACHE_CONTROL,
    }
    if document.canonical_url:
        headers["Link"] = link_header(document.canonical_url)

    if etag_matches(if_none_match, document.etag):
        return Response(status_code=HTTP_304_NOT_MODIFIED, headers=headers)

    return Response(
        content=json.dumps(document.data, ensure_ascii=False),
        media_type=JSON_LD_MEDIA_TYPE,
        headers=headers,
    )


@router.get("/sitemap.xml", response_class=Response)
async def sitemap(state: AppState = Depends(get_app_state)) -> Response:
    """Sitemap of content URLs; schema endpoints are never listed."""
    return Response(
        content=build_sitemap(state.router.mappings()),
        media_type="application/xml",
    )
