"""Tests for the crawler-facing schema routes."""

import json
from xml.etree import ElementTree as ET

import pytest
from httpx import AsyncClient
from starlette.testclient import TestClient

from app.schema.markup import SITEMAP_NAMESPACE
from tests.fixtures.content import FakeClock, FakeContentSource, make_entity


def test_schema_endpoint_serves_json_ld(
    test_app_client: TestClient, content_source: FakeContentSource
) -> None:
    """The course example is served as linked JSON-LD."""
    content_source.add(make_entity("course-1", "Course", 2))

    response = test_app_client.get("/schema/course/course-1")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/ld+json"
    data = json.loads(response.content)
    assert data["@type"] == "Course"
    assert data["url"] == "https://example.com/courses/course-1"
    assert data["mainEntityOfPage"]["@id"] == "https://example.com/courses/course-1"
    assert response.headers["link"] == (
        '<https://example.com/courses/course-1>; rel="canonical"'
    )
    assert response.headers["etag"] == '"Course:course-1@2"'
    assert "x-robots-tag" not in response.headers


def test_non_ascii_entity_id(
    test_app_client: TestClient, content_source: FakeContentSource
) -> None:
    """Ids outside latin-1 are percent-encoded in URLs and headers."""
    content_source.add(make_entity("课程-1"))

    response = test_app_client.get("/schema/course/%E8%AF%BE%E7%A8%8B-1")

    assert response.status_code == 200
    assert response.headers["etag"] == '"Course:%E8%AF%BE%E7%A8%8B-1@2"'
    assert response.headers["link"] == (
        '<https://example.com/courses/%E8%AF%BE%E7%A8%8B-1>; rel="canonical"'
    )
    revalidated = test_app_client.get(
        "/schema/course/%E8%AF%BE%E7%A8%8B-1",
        headers={"If-None-Match": response.headers["etag"]},
    )
    assert revalidated.status_code == 304


def test_non_ascii_content_url_in_link_header(
    test_app_client: TestClient, content_source: FakeContentSource
) -> None:
    content_source.add(make_entity(url="https://example.com/kurse/über-python"))

    response = test_app_client.get("/schema/course/course-1")

    assert response.status_code == 200
    assert response.headers["link"] == (
        '<https://example.com/kurse/%C3%BCber-python>; rel="canonical"'
    )


def test_conditional_request(
    test_app_client: TestClient, content_source: FakeContentSource
) -> None:
    """A matching If-None-Match answers 304 without a body."""
    content_source.add(make_entity())
    etag = test_app_client.get("/schema/course/course-1").headers["etag"]

    response = test_app_client.get(
        "/schema/course/course-1", headers={"If-None-Match": etag}
    )

    assert response.status_code == 304
    assert response.content == b""
    assert response.headers["etag"] == etag


def test_stale_etag_gets_new_document(
    test_app_client: TestClient, content_source: FakeContentSource
) -> None:
    content_source.add(make_entity(version=2))

    response = test_app_client.get(
        "/schema/course/course-1", headers={"If-None-Match": '"Course:course-1@1"'}
    )

    assert response.status_code == 200


@pytest.mark.parametrize(
    "path",
    ["/schema/widget/w1", "/schema/course", "/schema/courses/course-1"],
)
def test_unmapped_schema_paths(test_app_client: TestClient, path: str) -> None:
    """Unknown slugs and malformed paths answer 404."""
    response = test_app_client.get(path)

    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


def test_unknown_entity(test_app_client: TestClient) -> None:
    response = test_app_client.get("/schema/course/missing")

    assert response.status_code == 404
    assert response.json()["status_code"] == 404


def test_missing_required_fields(
    test_app_client: TestClient, content_source: FakeContentSource
) -> None:
    """Invalid CMS content answers 422 and names the missing fields."""
    content_source.add(make_entity(description=""))

    response = test_app_client.get("/schema/course/course-1")

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "ValidationError"
    assert body["missing_fields"] == ["description"]


def test_cross_origin_canonical(
    test_app_client: TestClient, content_source: FakeContentSource
) -> None:
    content_source.add(make_entity(url="https://elsewhere.example/courses/course-1"))

    response = test_app_client.get("/schema/course/course-1")

    assert response.status_code == 409
    assert response.json()["canonical_url"] == "https://elsewhere.example/courses/course-1"


def test_upstream_timeout_without_cache(
    test_app_client: TestClient, content_source: FakeContentSource, upstream_timeout
) -> None:
    content_source.fail_with = upstream_timeout

    response = test_app_client.get("/schema/course/course-1")

    assert response.status_code == 504
    assert response.json()["attempts"] == 4


def test_stale_document_served_on_timeout(
    test_app_client: TestClient,
    content_source: FakeContentSource,
    clock: FakeClock,
    upstream_timeout,
) -> None:
    content_source.add(make_entity(version=2))
    assert test_app_client.get("/schema/course/course-1").status_code == 200
    content_source.fail_with = upstream_timeout
    clock.advance(7200)

    response = test_app_client.get("/schema/course/course-1")

    assert response.status_code == 200
    assert response.headers["etag"] == '"Course:course-1@2"'


def test_sitemap_lists_content_urls(
    test_app_client: TestClient, content_source: FakeContentSource
) -> None:
    """Served entities appear in the sitemap by content URL only."""
    content_source.add(make_entity("course-1"))
    content_source.add(make_entity("course-2"))
    test_app_client.get("/schema/course/course-1")
    test_app_client.get("/schema/course/course-2")

    response = test_app_client.get("/sitemap.xml")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    root = ET.fromstring(response.content)
    locs = [loc.text for loc in root.iter(f"{{{SITEMAP_NAMESPACE}}}loc")]
    assert locs == [
        "https://example.com/courses/course-1",
        "https://example.com/courses/course-2",
    ]


@pytest.mark.asyncio
async def test_schema_endpoint_async(
    test_app_async_client: AsyncClient, content_source: FakeContentSource
) -> None:
    """Concurrent requests for one entity are answered from one fetch."""
    content_source.add(make_entity())

    responses = [
        await test_app_async_client.get("/schema/course/course-1") for _ in range(3)
    ]

    assert {response.status_code for response in responses} == {200}
    assert content_source.calls == [("Course", "course-1")]
