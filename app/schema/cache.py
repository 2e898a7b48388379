"""Version-keyed cache of generated schema documents."""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from app.core.logging import get_logger
from app.models.schema import SchemaDocument
from app.schema.generator import utc_now
from app.schema.metrics import CACHE_ENTRIES

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """The single document held for an entity."""

    version: int
    document: SchemaDocument
    stored_at: datetime

    def is_expired(self, now: datetime, max_age_seconds: int) -> bool:
        """Check if this entry is older than the allowed age (0 never expires)."""
        if max_age_seconds <= 0:
            return False
        return now - self.stored_at > timedelta(seconds=max_age_seconds)


class SchemaCache:
    """
    Holds at most one document per entity, the one with the highest version.

    Writers are serialized by a lock and publish an immutable ``CacheEntry``
    with a single dict assignment. Readers never take the lock: they see
    either the previous entry or the newly committed one.

    The cache is an explicit object handed to the components that need it;
    the clock is injected so expiry is testable.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        max_age_seconds: int = 0,
    ) -> None:
        """
        Initialize the cache.

        Args:
            clock: Source of the current time
            max_age_seconds: Age after which an entry counts as expired (0 disables)
        """
        self.clock = clock
        self.max_age_seconds = max_age_seconds
        self._entries: dict[str, CacheEntry] = {}
        self._write_lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._refused = 0

    def put(self, entity_id: str, version: int, document: SchemaDocument) -> bool:
        """
        Store a document for an entity version.

        A newer version evicts the stored one, the same version replaces it,
        and an older version is refused.

        Args:
            entity_id: Entity key
            version: Version the document was generated from
            document: Linked schema document

        Returns:
            True if the document was stored, False if a newer version is held

        Raises:
            ValueError: If the document belongs to another version
        """
        if document.version != version:
            raise ValueError(
                f"Document version {document.version} does not match {version}"
            )

        with self._write_lock:
            current = self._entries.get(entity_id)
            if current is not None and current.version > version:
                self._refused += 1
                logger.info(
                    "schema_cache_put_refused",
                    entity_id=entity_id,
                    version=version,
                    cached_version=current.version,
                )
                return False

            self._entries[entity_id] = CacheEntry(
                version=version, document=document, stored_at=self.clock()
            )
            CACHE_ENTRIES.set(len(self._entries))

        if current is not None and current.version < version:
            logger.debug(
                "schema_cache_evicted",
                entity_id=entity_id,
                evicted_version=current.version,
                version=version,
            )
        return True

    def get(self, entity_id: str, version: int) -> SchemaDocument | None:
        """
        Retrieve the document for an exact entity version.

        Args:
            entity_id: Entity key
            version: Requested version

        Returns:
            Cached document or None if that version is not held
        """
        entry = self._entries.get(entity_id)
        if entry is None or entry.version != version:
            self._misses += 1
            return None
        self._hits += 1
        return entry.document

    def latest(self, entity_id: str) -> CacheEntry | None:
        """Return the entry currently held for an entity, expired or not."""
        return self._entries.get(entity_id)

    def is_expired(self, entry: CacheEntry) -> bool:
        """Check an entry against the injected clock."""
        return entry.is_expired(self.clock(), self.max_age_seconds)

    def evict(self, entity_id: str) -> bool:
        """
        Invalidate the document held for an entity.

        Returns:
            True if an entry was removed
        """
        with self._write_lock:
            removed = self._entries.pop(entity_id, None)
            CACHE_ENTRIES.set(len(self._entries))
        return removed is not None

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._write_lock:
            self._entries = {}
            CACHE_ENTRIES.set(0)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entries

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        entries = list(self._entries.values())
        now = self.clock()
        return {
            "entry_count": len(entries),
            "expired_count": sum(
                1 for entry in entries if entry.is_expired(now, self.max_age_seconds)
            ),
            "max_age_seconds": self.max_age_seconds,
            "hits": self._hits,
            "misses": self._misses,
            "refused_writes": self._refused,
        }
