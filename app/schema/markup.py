"""Markup that ties content pages and schema endpoints together for crawlers."""

from collections.abc import Iterable
from html import escape
from urllib.parse import quote
from xml.etree import ElementTree as ET

from app.models.schema import EndpointMapping, HeadLinks

JSON_LD_MEDIA_TYPE = "application/ld+json"
SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
URI_SAFE = ":/?#[]@!$&'()*+,;=%"


def head_links(mapping: EndpointMapping) -> HeadLinks:
    """Link tags for the ``<head>`` of a content page.

    The canonical link is self-referencing; the alternate link advertises the
    schema endpoint without competing for indexing.
    """
    content_url = escape(mapping.content_url, quote=True)
    schema_url = escape(mapping.schema_url, quote=True)
    return HeadLinks(
        content_url=mapping.content_url,
        schema_url=mapping.schema_url,
        canonical=f'<link rel="canonical" href="{content_url}">',
        alternate=(
            f'<link rel="alternate" type="{JSON_LD_MEDIA_TYPE}" href="{schema_url}">'
        ),
    )


def link_header(url: str, rel: str = "canonical") -> str:
    """HTTP ``Link`` header value pointing at a URL.

    Characters outside the URI syntax are percent-encoded; existing escapes
    are kept as they are.
    """
    return f'<{quote(url, safe=URI_SAFE)}>; rel="{rel}"'


def build_sitemap(mappings: Iterable[EndpointMapping]) -> bytes:
    """
    Render a sitemap listing content URLs.

    Schema endpoints are never listed; they are discovered through the
    alternate links of their content pages.
    """
    ET.register_namespace("", SITEMAP_NAMESPACE)
    urlset = ET.Element(f"{{{SITEMAP_NAMESPACE}}}urlset")
    seen: set[str] = set()
    for mapping in sorted(mappings, key=lambda m: m.content_url):
        if mapping.content_url in seen:
            continue
        seen.add(mapping.content_url)
        url = ET.SubElement(urlset, f"{{{SITEMAP_NAMESPACE}}}url")
        ET.SubElement(url, f"{{{SITEMAP_NAMESPACE}}}loc").text = mapping.content_url

    return ET.tostring(urlset, encoding="utf-8", xml_declaration=True)
