"""Content entity models as delivered by the content-management system."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ContentEntity(BaseModel):
    """A versioned piece of content whose fields populate a schema document."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "course-1",
                "type": "Course",
                "version": 2,
                "fields": {
                    "name": "Intro to Python",
                    "description": "Learn the basics.",
                },
            }
        },
    )

    id: str = Field(
        ...,
        min_length=1,
        title="Identifier",
        description="Identifier of the entity in the content-management system",
        examples=["course-1"],
    )
    type: str = Field(
        ...,
        min_length=1,
        title="Type",
        description="schema.org type name of the entity",
        examples=["Course"],
    )
    version: int = Field(
        ...,
        ge=0,
        title="Version",
        description="Monotonically increasing revision number of the entity",
        examples=[2],
    )
    updated_at: datetime | None = Field(
        default=None,
        title="Updated At",
        description="When the entity was last changed in the CMS",
    )
    url: str | None = Field(
        default=None,
        title="Content URL",
        description="Public URL of the live content page, when the CMS chooses one",
        examples=["https://example.com/courses/course-1"],
    )
    fields: dict[str, Any] = Field(
        default_factory=dict,
        title="Fields",
        description="Field values used to populate the schema document",
    )

    @property
    def key(self) -> str:
        """Cache and lock key, unique across types."""
        return f"{self.type}:{self.id}"


class ContentEvent(BaseModel):
    """Change notification pushed by the CMS webhook."""

    event: Literal["updated", "deleted"] = Field(
        ...,
        title="Event",
        description="Kind of change",
    )
    entity_type: str = Field(..., min_length=1, title="Entity Type")
    entity_id: str = Field(..., min_length=1, title="Entity ID")
    entity: ContentEntity | None = Field(
        default=None,
        title="Entity",
        description="Inline entity payload; fetched from the CMS when omitted",
    )
