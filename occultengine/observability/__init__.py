"""Runtime observability primitives for OccultEngine."""

from __future__ import annotations

from .metrics import (
    CONVERGENCE_FAILURES,
    GEOMETRY_EVALUATIONS,
    PROVIDER_CACHE_HITS,
    PROVIDER_CACHE_MISSES,
    REFINE_ITERATIONS,
    SEARCH_DURATION,
    ensure_metrics_registered,
)

__all__ = [
    "CONVERGENCE_FAILURES",
    "GEOMETRY_EVALUATIONS",
    "PROVIDER_CACHE_HITS",
    "PROVIDER_CACHE_MISSES",
    "REFINE_ITERATIONS",
    "SEARCH_DURATION",
    "ensure_metrics_registered",
]
