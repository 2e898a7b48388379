"""Tests for the canonical audit."""

import httpx
import pytest

from app.content.audit import CanonicalAuditor
from app.core.exceptions import UpstreamError, UpstreamTimeout

PAGE_URL = "https://example.com/courses/course-1"

GOOD_PAGE = """
<html><head>
  <title>Intro to Python</title>
  <link rel="canonical" href="https://example.com/courses/course-1">
  <link rel="alternate" type="application/ld+json"
        href="https://example.com/schema/course/course-1">
</head><body></body></html>
"""


@pytest.fixture
def auditor() -> CanonicalAuditor:
    return CanonicalAuditor()


def test_self_referencing_canonical(auditor: CanonicalAuditor) -> None:
    report = auditor.inspect(PAGE_URL, GOOD_PAGE)

    assert report.ok
    assert report.has_canonical
    assert report.canonical_url == PAGE_URL
    assert report.schema_url == "https://example.com/schema/course/course-1"


def test_trailing_slash_is_still_self_referencing(auditor: CanonicalAuditor) -> None:
    report = auditor.inspect(PAGE_URL + "/", GOOD_PAGE)

    assert report.ok


def test_relative_hrefs_are_resolved(auditor: CanonicalAuditor) -> None:
    html = (
        '<link rel="canonical" href="/courses/course-1">'
        '<link rel="alternate" type="application/ld+json" href="/schema/course/course-1">'
    )

    report = auditor.inspect(PAGE_URL, html)

    assert report.canonical_url == PAGE_URL
    assert report.ok


def test_missing_links(auditor: CanonicalAuditor) -> None:
    report = auditor.inspect(PAGE_URL, "<html><head></head></html>")

    assert not report.has_canonical
    assert report.issues == ["missing canonical link", "missing JSON-LD alternate link"]


def test_canonical_pointing_elsewhere(auditor: CanonicalAuditor) -> None:
    html = GOOD_PAGE.replace(
        'href="https://example.com/courses/course-1"',
        'href="https://example.com/courses/course-2"',
    )

    report = auditor.inspect(PAGE_URL, html)

    assert report.issues == ["canonical is not self-referencing"]


def test_canonical_pointing_at_schema_endpoint(auditor: CanonicalAuditor) -> None:
    html = GOOD_PAGE.replace(
        'rel="canonical" href="https://example.com/courses/course-1"',
        'rel="canonical" href="https://example.com/schema/course/course-1"',
    )

    report = auditor.inspect(PAGE_URL, html)

    assert report.issues == ["canonical points at a schema endpoint"]


def test_conflicting_canonicals(auditor: CanonicalAuditor) -> None:
    html = GOOD_PAGE + '<link rel="canonical" href="https://example.com/other">'

    report = auditor.inspect(PAGE_URL, html)

    assert "conflicting canonical links" in report.issues


def test_error_status_is_reported(auditor: CanonicalAuditor) -> None:
    report = auditor.inspect(PAGE_URL, GOOD_PAGE, status_code=500)

    assert report.issues == ["page answered 500"]


@pytest.mark.asyncio
async def test_audit_fetches_page() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=GOOD_PAGE)

    async with CanonicalAuditor(transport=httpx.MockTransport(handler)) as auditor:
        report = await auditor.audit(PAGE_URL)

    assert report.ok
    assert report.url == PAGE_URL


@pytest.mark.asyncio
async def test_audit_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    async with CanonicalAuditor(transport=httpx.MockTransport(handler)) as auditor:
        with pytest.raises(UpstreamTimeout):
            await auditor.audit(PAGE_URL)


@pytest.mark.asyncio
async def test_audit_connection_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with CanonicalAuditor(transport=httpx.MockTransport(handler)) as auditor:
        with pytest.raises(UpstreamError):
            await auditor.audit(PAGE_URL)
