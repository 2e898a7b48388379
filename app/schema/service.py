"""Schema service: generation, linking, caching and endpoint mapping in one place."""

import asyncio
import weakref

from app.content.client import ContentSource
from app.core.exceptions import NotFoundError, UpstreamTimeout
from app.core.logging import get_logger
from app.models.content import ContentEntity
from app.models.schema import EndpointMapping, SchemaDocument
from app.schema.cache import SchemaCache
from app.schema.endpoints import EndpointRouter
from app.schema.generator import SchemaGenerator
from app.schema.linker import CanonicalLinker
from app.schema.metrics import CACHE_LOOKUPS, STALE_SERVED

logger = get_logger(__name__)


def entity_key(entity_type: str, entity_id: str) -> str:
    """Key shared by the cache and the per-entity locks."""
    return f"{entity_type}:{entity_id}"


class SchemaService:
    """
    Keeps the schema document of every known entity current.

    Regeneration of one entity is serialized by a per-entity lock; distinct
    entities regenerate concurrently. Readers of the cache never wait on
    those locks.
    """

    def __init__(
        self,
        generator: SchemaGenerator,
        linker: CanonicalLinker,
        cache: SchemaCache,
        router: EndpointRouter,
        source: ContentSource,
    ) -> None:
        self.generator = generator
        self.linker = linker
        self.cache = cache
        self.router = router
        self.source = source
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def content_url_for(self, entity: ContentEntity) -> str:
        """The CMS-provided URL, or the conventional content URL of the entity."""
        return entity.url or self.router.content_url(entity.type, entity.id)

    def build(self, entity: ContentEntity) -> SchemaDocument:
        """
        Generate and link a document without caching or registering it.

        Raises:
            ValidationError: If the entity cannot be described
            CanonicalMismatchError: If the content URL cannot be canonical
        """
        document = self.generator.generate(entity)
        return self.linker.link(document, self.content_url_for(entity))

    async def apply(self, entity: ContentEntity) -> SchemaDocument:
        """
        Bring the cached document of an entity up to the given revision.

        Applying a revision that is already cached, or older than the cached
        one, changes nothing and returns the cached document.
        """
        async with self._lock_for(entity.key):
            return self._apply_locked(entity)

    def _apply_locked(self, entity: ContentEntity) -> SchemaDocument:
        entry = self.cache.latest(entity.key)
        if entry is not None and entry.version >= entity.version:
            if entry.version > entity.version:
                logger.info(
                    "schema_stale_revision_ignored",
                    entity_key=entity.key,
                    version=entity.version,
                    cached_version=entry.version,
                )
            else:
                # Same revision confirmed by the source; restart the max-age window
                self.cache.put(entity.key, entry.version, entry.document)
            return entry.document

        document = self.build(entity)
        self.router.register(entity.type, entity.id, document.canonical_url or "")
        self.cache.put(entity.key, entity.version, document)

        logger.info(
            "schema_regenerated",
            entity_key=entity.key,
            version=entity.version,
            previous_version=entry.version if entry is not None else None,
            canonical_url=document.canonical_url,
        )
        return document

    async def regenerate(
        self, entity_type: str, entity_id: str, force: bool = False
    ) -> SchemaDocument:
        """
        Fetch the current revision of an entity and regenerate its document.

        Concurrent callers for the same entity queue up behind one another;
        a caller that finds a fresh document once it gets the lock returns it
        without asking the source again, unless ``force`` is set.

        Raises:
            NotFoundError: If the type is unsupported or the source has no such entity
            UpstreamTimeout: If the source stays unavailable
        """
        self.router.schema_path(entity_type, entity_id)
        key = entity_key(entity_type, entity_id)

        async with self._lock_for(key):
            entry = self.cache.latest(key)
            if not force and entry is not None and not self.cache.is_expired(entry):
                return entry.document

            try:
                entity = await self.source.fetch_entity(entity_type, entity_id)
            except NotFoundError:
                if self.cache.evict(key):
                    self.router.unregister(entity_type, entity_id)
                    logger.info("schema_removed_upstream", entity_key=key)
                raise
            return self._apply_locked(entity)

    async def get_document(self, entity_type: str, entity_id: str) -> SchemaDocument:
        """
        Document to serve for an entity.

        A fresh cache entry is returned as is. Otherwise the entity is
        regenerated; if the source is unavailable, a previously generated
        document is served instead of failing.
        """
        self.router.schema_path(entity_type, entity_id)
        key = entity_key(entity_type, entity_id)

        entry = self.cache.latest(key)
        if entry is not None and not self.cache.is_expired(entry):
            CACHE_LOOKUPS.labels(result="hit").inc()
            return entry.document
        CACHE_LOOKUPS.labels(result="miss" if entry is None else "expired").inc()

        try:
            return await self.regenerate(entity_type, entity_id)
        except UpstreamTimeout:
            entry = self.cache.latest(key)
            if entry is None:
                raise
            STALE_SERVED.inc()
            logger.warning(
                "schema_served_stale",
                entity_key=key,
                version=entry.version,
                stored_at=entry.stored_at.isoformat(),
            )
            return entry.document

    async def remove(self, entity_type: str, entity_id: str) -> bool:
        """
        Drop the document and mapping of a deleted entity.

        Returns:
            True if anything was removed

        Raises:
            NotFoundError: If the type is unsupported
        """
        self.router.schema_path(entity_type, entity_id)
        key = entity_key(entity_type, entity_id)
        async with self._lock_for(key):
            evicted = self.cache.evict(key)
            unregistered = self.router.unregister(entity_type, entity_id)

        if evicted or unregistered:
            logger.info("schema_removed", entity_key=key)
        return evicted or unregistered

    def mapping_for(self, entity_type: str, entity_id: str) -> EndpointMapping:
        """Registered endpoint mapping of an entity."""
        return self.router.mapping_for(entity_type, entity_id)
