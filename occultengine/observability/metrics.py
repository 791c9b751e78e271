"""Prometheus metric definitions for occultation searches."""

from __future__ import annotations

from collections.abc import Iterable

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

__all__ = [
    "CONVERGENCE_FAILURES",
    "GEOMETRY_EVALUATIONS",
    "PROVIDER_CACHE_HITS",
    "PROVIDER_CACHE_MISSES",
    "REFINE_ITERATIONS",
    "SEARCH_DURATION",
    "ensure_metrics_registered",
]


GEOMETRY_EVALUATIONS = Counter(
    "occultengine_evaluations_total",
    "Occultation state evaluations grouped by phase and outcome.",
    ("phase", "state"),
    registry=None,
)

REFINE_ITERATIONS = Counter(
    "occultengine_refine_iterations_total",
    "Bracket refinement iterations executed.",
    registry=None,
)

CONVERGENCE_FAILURES = Counter(
    "occultengine_convergence_failures_total",
    "Brackets that exhausted the refinement budget.",
    ("reason",),
    registry=None,
)

SEARCH_DURATION = Histogram(
    "occultengine_search_duration_seconds",
    "Wall-clock duration of complete occultation searches.",
    ("status",),
    registry=None,
)

PROVIDER_CACHE_HITS = Counter(
    "occultengine_provider_cache_hits_total",
    "Position lookups served from the per-search cache.",
    ("call",),
    registry=None,
)

PROVIDER_CACHE_MISSES = Counter(
    "occultengine_provider_cache_misses_total",
    "Position lookups forwarded to the wrapped provider.",
    ("call",),
    registry=None,
)


def _iter_metrics() -> Iterable[Counter | Histogram]:
    yield GEOMETRY_EVALUATIONS
    yield REFINE_ITERATIONS
    yield CONVERGENCE_FAILURES
    yield SEARCH_DURATION
    yield PROVIDER_CACHE_HITS
    yield PROVIDER_CACHE_MISSES


def ensure_metrics_registered(
    registry: CollectorRegistry | None = None,
) -> None:
    """Register the search metrics with ``registry`` if not already present."""

    target = registry or REGISTRY
    for metric in _iter_metrics():
        try:
            target.register(metric)
        except ValueError:
            # Prometheus raises on duplicate metric names.
            continue
