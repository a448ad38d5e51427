from prometheus_client import CollectorRegistry, Counter, generate_latest


registry = CollectorRegistry()


sessions_generated_total = Counter(
    'sessions_generated_total',
    'Generated sessions written to the session store',
    ['plan_type'],
    registry=registry
)

override_warnings_total = Counter(
    'override_warnings_total',
    'Overrides skipped during session generation',
    ['reason'],
    registry=registry
)

stats_cache_hits = Counter(
    'stats_cache_hits_total',
    'Stats cache hits',
    ['metric'],
    registry=registry
)

stats_cache_misses = Counter(
    'stats_cache_misses_total',
    'Stats cache misses (absent or stale)',
    ['metric'],
    registry=registry
)

stats_cache_errors = Counter(
    'stats_cache_errors_total',
    'Stats cache read/write failures that fell back to direct computation',
    ['operation'],
    registry=registry
)


def get_metrics() -> bytes:
    return generate_latest(registry)
