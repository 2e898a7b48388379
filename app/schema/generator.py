"""Schema generation: content entity to schema.org JSON-LD."""

from collections.abc import Callable
from datetime import datetime, timezone

from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.models.content import ContentEntity
from app.models.schema import SchemaDocument
from app.schema.metrics import SCHEMA_GENERATIONS
from app.schema.vocabulary import SCHEMA_CONTEXT, get_type_spec, is_blank

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


class SchemaGenerator:
    """Turns content entities into schema documents.

    Generation is a pure transformation: nothing is cached or registered here.
    The returned document has no canonical URL; the canonical linker sets it.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self.clock = clock

    def missing_fields(self, entity: ContentEntity) -> list[str]:
        """Required fields of the entity's type that are absent or empty."""
        spec = get_type_spec(entity.type)
        return [
            name
            for name in spec.required
            if not spec.is_usable(name, entity.fields.get(name))
        ]

    def generate(self, entity: ContentEntity) -> SchemaDocument:
        """Generate the schema document for an entity.

        Args:
            entity: Content entity to describe

        Returns:
            Unlinked schema document

        Raises:
            ValidationError: If required fields are missing or the type is unsupported
        """
        try:
            spec = get_type_spec(entity.type)
        except ValidationError:
            SCHEMA_GENERATIONS.labels(entity_type=entity.type, outcome="unsupported").inc()
            raise

        missing = self.missing_fields(entity)
        if missing:
            SCHEMA_GENERATIONS.labels(entity_type=entity.type, outcome="invalid").inc()
            raise ValidationError(
                f"{entity.type} '{entity.id}' is missing required fields: "
                f"{', '.join(missing)}",
                entity_key=entity.key,
                missing_fields=missing,
            )

        absent = [name for name in spec.recommended if is_blank(entity.fields.get(name))]
        if absent:
            logger.warning(
                "schema_recommended_fields_missing",
                entity_key=entity.key,
                fields=absent,
            )

        data = {"@context": SCHEMA_CONTEXT, "@type": spec.name, **spec.build(entity.fields)}

        SCHEMA_GENERATIONS.labels(entity_type=entity.type, outcome="generated").inc()
        return SchemaDocument(
            data=data,
            entity_id=entity.id,
            entity_type=entity.type,
            version=entity.version,
            generated_at=self.clock(),
        )
