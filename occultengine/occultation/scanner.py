"""Uniform-grid sampling of the occultation state and bracket detection."""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol

from ..observability.metrics import GEOMETRY_EVALUATIONS
from .events import Bracket, Sample
from .geometry import Evaluator
from .refine import SearchCancelled

LOG = logging.getLogger(__name__)

__all__ = [
    "ScanResult",
    "ScanWindow",
    "build_grid",
    "find_brackets",
    "iter_samples",
    "scan",
]


class ScanWindow(Protocol):
    lower_epoch: float
    upper_epoch: float
    step_size: float


@dataclass(frozen=True)
class ScanResult:
    """Samples in epoch order and the brackets derived from them."""

    samples: tuple[Sample, ...]
    brackets: tuple[Bracket, ...]

    @property
    def initial_state(self) -> bool:
        return self.samples[0].state if self.samples else False

    @property
    def final_state(self) -> bool:
        return self.samples[-1].state if self.samples else False

    def __len__(self) -> int:
        return len(self.samples)


def build_grid(lower: float, upper: float, step: float) -> list[float]:
    """Return ``lower, lower + step, ...`` closed with the exact ``upper``.

    The final interval may be shorter than ``step``.
    """

    if not step > 0.0:
        raise ValueError("step must be positive")
    if not lower < upper:
        raise ValueError("lower bound must be strictly before upper bound")
    count = int(math.floor((upper - lower) / step)) + 1
    grid = [lower + index * step for index in range(count)]
    while grid and grid[-1] > upper:
        grid.pop()
    if not grid or grid[-1] != upper:
        grid.append(upper)
    return grid


def _checked(evaluator: Evaluator, cancel: threading.Event | None):
    def _evaluate(epoch: float) -> Sample:
        if cancel is not None and cancel.is_set():
            raise SearchCancelled(f"scan cancelled at epoch {epoch!r}")
        state = bool(evaluator(epoch))
        GEOMETRY_EVALUATIONS.labels(phase="scan", state=str(state).lower()).inc()
        return Sample(epoch, state)

    return _evaluate


def iter_samples(
    grid: Iterable[float],
    evaluator: Evaluator,
    *,
    cancel: threading.Event | None = None,
) -> Iterator[Sample]:
    """Lazily evaluate ``evaluator`` over ``grid`` in order."""

    evaluate = _checked(evaluator, cancel)
    for epoch in grid:
        yield evaluate(epoch)


def find_brackets(samples: Iterable[Sample]) -> list[Bracket]:
    """Return one bracket per adjacent pair of samples with differing states."""

    brackets: list[Bracket] = []
    previous: Sample | None = None
    for sample in samples:
        if previous is not None and sample.state != previous.state:
            brackets.append(Bracket(previous, sample))
        previous = sample
    return brackets


def _sample_parallel(
    grid: Sequence[float],
    evaluator: Evaluator,
    workers: int,
    cancel: threading.Event | None,
) -> list[Sample]:
    evaluate = _checked(evaluator, cancel)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="occult-scan") as pool:
        # ``map`` yields in submission order, so samples stay epoch-sorted.
        return list(pool.map(evaluate, grid))


def scan(
    window: ScanWindow,
    evaluator: Evaluator,
    *,
    workers: int = 1,
    cancel: threading.Event | None = None,
) -> ScanResult:
    """Sample ``evaluator`` over ``window`` and derive state-change brackets.

    An empty bracket list is a valid outcome.
    """

    grid = build_grid(window.lower_epoch, window.upper_epoch, window.step_size)
    if workers > 1 and len(grid) > 1:
        samples = _sample_parallel(grid, evaluator, workers, cancel)
    else:
        samples = list(iter_samples(grid, evaluator, cancel=cancel))
    brackets = find_brackets(samples)
    LOG.info(
        "scan complete",
        extra={"samples": len(samples), "brackets": len(brackets), "workers": workers},
    )
    return ScanResult(tuple(samples), tuple(brackets))
