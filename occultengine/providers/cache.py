"""Per-search memoisation of provider lookups."""

from __future__ import annotations

import threading
from collections.abc import Hashable
from typing import Any

import numpy as np

from ..core.vectors import Vector3
from ..observability.metrics import PROVIDER_CACHE_HITS, PROVIDER_CACHE_MISSES
from . import EphemerisProvider

__all__ = ["CachingProvider"]


class CachingProvider:
    """Memoize ``position`` and ``radii`` calls for a single search session.

    The refiner revisits the same epochs for the observer, occulter and
    target, so one wrapped provider is created per search and dropped with
    it.  Cached vectors are copied on the way out so callers may mutate them.
    """

    __slots__ = ("_provider", "_positions", "_radii", "_lock")

    def __init__(self, provider: EphemerisProvider) -> None:
        self._provider = provider
        self._positions: dict[Hashable, tuple[Vector3, float]] = {}
        self._radii: dict[str, tuple[float, float, float]] = {}
        self._lock = threading.Lock()

    @property
    def wrapped(self) -> EphemerisProvider:
        return self._provider

    def position(
        self,
        body_id: int,
        epoch: float,
        frame: str,
        aberration_correction: str,
        relative_to: int,
    ) -> tuple[Vector3, float]:
        key = (int(body_id), float(epoch), frame, aberration_correction, int(relative_to))
        with self._lock:
            cached = self._positions.get(key)
        if cached is None:
            PROVIDER_CACHE_MISSES.labels(call="position").inc()
            vec, light_time = self._provider.position(
                body_id, epoch, frame, aberration_correction, relative_to
            )
            cached = (np.array(vec, dtype=np.float64), float(light_time))
            with self._lock:
                self._positions[key] = cached
        else:
            PROVIDER_CACHE_HITS.labels(call="position").inc()
        return cached[0].copy(), cached[1]

    def radii(self, body_name: str) -> tuple[float, float, float]:
        with self._lock:
            cached = self._radii.get(body_name)
        if cached is None:
            PROVIDER_CACHE_MISSES.labels(call="radii").inc()
            cached = tuple(float(value) for value in self._provider.radii(body_name))
            with self._lock:
                self._radii[body_name] = cached
        else:
            PROVIDER_CACHE_HITS.labels(call="radii").inc()
        return cached

    def clear(self) -> None:
        with self._lock:
            self._positions.clear()
            self._radii.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._positions)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._provider, name)
