"""Content and schema models package."""

from .content import ContentEntity, ContentEvent
from .schema import EndpointMapping, HeadLinks, SchemaDocument

__all__ = [
    "ContentEntity",
    "ContentEvent",
    "EndpointMapping",
    "HeadLinks",
    "SchemaDocument",
]
