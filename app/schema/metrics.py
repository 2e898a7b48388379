"""Prometheus metrics for schema generation and serving."""

from prometheus_client import Counter, Gauge

# Generation outcomes: generated, invalid, unsupported
SCHEMA_GENERATIONS = Counter(
    "schema_generations_total",
    "Total number of schema generation attempts",
    ["entity_type", "outcome"],
)

CANONICAL_REJECTIONS = Counter(
    "schema_canonical_rejections_total",
    "Total number of canonical URLs refused by the linker",
)

# Cache lookups: hit, miss, expired
CACHE_LOOKUPS = Counter(
    "schema_cache_lookups_total",
    "Total number of schema cache lookups",
    ["result"],
)

CACHE_ENTRIES = Gauge(
    "schema_cache_entries",
    "Number of documents currently held in the schema cache",
)

UPSTREAM_REQUESTS = Counter(
    "schema_upstream_requests_total",
    "Total number of content source requests",
    ["status"],  # ok, not_found, retry, failed
)

STALE_SERVED = Counter(
    "schema_stale_documents_served_total",
    "Documents served from cache because the content source was unavailable",
)
