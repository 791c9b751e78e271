"""Search orchestration: scan the span, refine every bracket, assemble windows."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from ..config.settings import EngineSettings, SearchConfig
from ..core.time import format_epoch
from ..observability.metrics import SEARCH_DURATION
from ..providers import EphemerisProvider
from ..providers.cache import CachingProvider
from .events import INGRESS, Bracket, EventInterval, OccultationWindow
from .geometry import Evaluator, GeometryError, OccultationEvaluator
from .refine import ConvergenceError, SearchCancelled, refine
from .scanner import scan

LOG = logging.getLogger(__name__)

__all__ = ["OccultationSearch", "SearchResult", "run_search"]


@dataclass(frozen=True)
class SearchResult:
    """Outcome of one search.

    ``transitions`` holds the refined state changes in epoch order and
    ``failures`` the brackets that could not be refined.  An empty result
    with no failures means no occultation occurs inside the span.
    """

    config: SearchConfig
    samples_evaluated: int
    brackets: tuple[Bracket, ...]
    transitions: list[EventInterval] = field(default_factory=list)
    failures: list[ConvergenceError] = field(default_factory=list)
    initial_state: bool = False
    final_state: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures

    def windows(self) -> list[OccultationWindow]:
        """Occulted spans between ingress and egress transitions.

        Spans already occulted at the lower bound, or still occulted at the
        upper bound, are clipped to the search bounds.  A failed bracket
        contributes the midpoint of its last bounds as an inexact edge.
        """

        edges: list[tuple[float, str, bool]] = [
            (event.epoch, event.kind, True) for event in self.transitions
        ]
        edges.extend(
            (failure.estimate, failure.kind or "", False)
            for failure in self.failures
            if failure.kind is not None
        )
        edges.sort(key=lambda item: item[0])

        windows: list[OccultationWindow] = []
        open_at: float | None = None
        open_exact = False
        if self.initial_state:
            open_at, open_exact = self.config.lower_epoch, False
        for epoch, kind, exact in edges:
            if kind == INGRESS:
                if open_at is None:
                    open_at, open_exact = epoch, exact
            elif open_at is not None:
                windows.append(OccultationWindow(open_at, epoch, open_exact, exact))
                open_at = None
        if open_at is not None:
            windows.append(OccultationWindow(open_at, self.config.upper_epoch, open_exact, False))
        return windows

    def as_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.as_dict(),
            "samples_evaluated": self.samples_evaluated,
            "brackets": len(self.brackets),
            "initial_state": self.initial_state,
            "final_state": self.final_state,
            "transitions": [event.as_dict() for event in self.transitions],
            "windows": [window.as_dict() for window in self.windows()],
            "failures": [failure.as_dict() for failure in self.failures],
        }


class OccultationSearch:
    """Run occultation searches against one provider with fixed settings."""

    def __init__(
        self,
        provider: EphemerisProvider,
        settings: EngineSettings | None = None,
    ) -> None:
        self.provider = provider
        self.settings = settings or EngineSettings()

    def _evaluator(self, config: SearchConfig) -> OccultationEvaluator:
        provider: EphemerisProvider = self.provider
        if self.settings.cache_positions:
            provider = CachingProvider(provider)
        return OccultationEvaluator.from_config(provider, config, self.settings)

    def _refine_all(
        self,
        brackets: tuple[Bracket, ...],
        evaluator: Evaluator,
        config: SearchConfig,
        cancel: threading.Event | None,
    ) -> tuple[list[EventInterval], list[ConvergenceError]]:
        base_step = min(self.settings.refine_step, config.step_size / 2.0)

        def _one(bracket: Bracket) -> EventInterval | ConvergenceError:
            try:
                return refine(
                    bracket,
                    evaluator,
                    tolerance=config.tolerance,
                    base_step=base_step,
                    iteration_limit=self.settings.iteration_limit,
                    cancel=cancel,
                )
            except ConvergenceError as exc:
                LOG.warning(
                    "unable to find the transition between %s and %s",
                    format_epoch(exc.left),
                    format_epoch(exc.right),
                    extra={
                        "err_code": "REFINE_NO_CONVERGENCE",
                        "iterations": exc.iterations,
                        "reason": exc.reason,
                    },
                )
                return exc

        workers = self.settings.workers
        if workers > 1 and len(brackets) > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="occult-refine") as pool:
                outcomes = list(pool.map(_one, brackets))
        else:
            outcomes = [_one(bracket) for bracket in brackets]

        transitions = [item for item in outcomes if isinstance(item, EventInterval)]
        failures = [item for item in outcomes if isinstance(item, ConvergenceError)]
        return transitions, failures

    def run(self, config: SearchConfig, *, cancel: threading.Event | None = None) -> SearchResult:
        """Search ``config``'s span and refine every detected transition.

        Raises
        ------
        NotFoundError
            If a body or frame cannot be resolved; raised before scanning.
        GeometryError
            If the observer is inside the target at a sampled epoch.
        SearchCancelled
            If ``cancel`` is set while the search runs.
        """

        started = time.perf_counter()
        status = "error"
        try:
            evaluator = self._evaluator(config)
            scanned = scan(config, evaluator, workers=self.settings.workers, cancel=cancel)
            transitions, failures = self._refine_all(scanned.brackets, evaluator, config, cancel)
            result = SearchResult(
                config=config,
                samples_evaluated=len(scanned),
                brackets=scanned.brackets,
                transitions=transitions,
                failures=failures,
                initial_state=scanned.initial_state,
                final_state=scanned.final_state,
            )
            status = "ok" if result.ok else "partial"
        except SearchCancelled:
            status = "cancelled"
            LOG.info("search cancelled", extra={"err_code": "SEARCH_CANCELLED"})
            raise
        except GeometryError:
            LOG.error(
                "search aborted on degenerate geometry",
                extra={"err_code": "SEARCH_GEOMETRY"},
            )
            raise
        finally:
            SEARCH_DURATION.labels(status=status).observe(time.perf_counter() - started)

        if not transitions and not failures:
            LOG.info("no occultation events were detected", extra={"samples": len(scanned)})
        else:
            LOG.info(
                "search complete",
                extra={"transitions": len(transitions), "failures": len(failures)},
            )
        return result


def run_search(
    config: SearchConfig,
    provider: EphemerisProvider,
    *,
    settings: EngineSettings | None = None,
    cancel: threading.Event | None = None,
) -> SearchResult:
    """Convenience wrapper around :meth:`OccultationSearch.run`."""

    return OccultationSearch(provider, settings).run(config, cancel=cancel)
