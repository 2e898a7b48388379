"""Schema document and endpoint mapping models."""

from datetime import datetime
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field


class SchemaDocument(BaseModel):
    """A generated JSON-LD document owned by one content entity."""

    model_config = ConfigDict(frozen=True)

    data: dict[str, Any] = Field(
        ...,
        title="JSON-LD",
        description="The JSON-LD object served to crawlers",
    )
    entity_id: str = Field(..., title="Entity ID")
    entity_type: str = Field(..., title="Entity Type")
    version: int = Field(..., ge=0, title="Entity Version")
    canonical_url: str | None = Field(
        default=None,
        title="Canonical URL",
        description="URL of the live content page; never the schema endpoint",
    )
    generated_at: datetime = Field(..., title="Generated At")

    @property
    def entity_key(self) -> str:
        """Key of the owning entity."""
        return f"{self.entity_type}:{self.entity_id}"

    @property
    def etag(self) -> str:
        """Strong validator derived from entity key and version.

        The key is percent-encoded so the tag stays within the latin-1 range
        of HTTP header values.
        """
        return f'"{quote(self.entity_key, safe=":")}@{self.version}"'


class EndpointMapping(BaseModel):
    """One-to-one pairing of a content URL with its schema URL."""

    model_config = ConfigDict(frozen=True)

    entity_type: str = Field(..., title="Entity Type")
    entity_id: str = Field(..., title="Entity ID")
    content_url: str = Field(
        ...,
        title="Content URL",
        examples=["https://example.com/courses/course-1"],
    )
    schema_url: str = Field(
        ...,
        title="Schema URL",
        examples=["https://example.com/schema/course/course-1"],
    )


class HeadLinks(BaseModel):
    """Link tags a content page embeds to cross-reference its schema."""

    content_url: str
    schema_url: str
    canonical: str
    alternate: str

    @property
    def html(self) -> str:
        """Both tags, one per line."""
        return f"{self.canonical}\n{self.alternate}"
