"""Narrowing of a state-change bracket down to the requested tolerance.

Each iteration bisects the bracket, then takes one ``step`` forward from the
left edge.  Landing past the transition moves the right edge there and
halves the step; otherwise the left edge advances.  The walk speeds up
convergence when the transition sits near the left edge, and the iteration
budget bounds the worst case where the state flickers near the boundary.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Final

from ..observability.metrics import CONVERGENCE_FAILURES, GEOMETRY_EVALUATIONS, REFINE_ITERATIONS
from .events import Bracket, EventInterval

LOG = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_BASE_STEP",
    "DEFAULT_ITERATION_LIMIT",
    "ConvergenceError",
    "SearchCancelled",
    "refine",
]

DEFAULT_ITERATION_LIMIT: Final[int] = 4000
DEFAULT_BASE_STEP: Final[float] = 1.0


class ConvergenceError(RuntimeError):
    """A bracket could not be narrowed to the tolerance.

    ``left``/``right`` are the last bounds reached, kept for diagnostics and
    for an approximate transition epoch.
    """

    def __init__(
        self,
        left: float,
        right: float,
        iterations: int,
        *,
        bracket: Bracket | None = None,
        reason: str = "iteration_limit",
    ) -> None:
        super().__init__(
            f"unable to isolate the transition between {left!r} and {right!r} "
            f"after {iterations} iterations ({reason})"
        )
        self.left = left
        self.right = right
        self.iterations = iterations
        self.bracket = bracket
        self.reason = reason

    @property
    def kind(self) -> str | None:
        return self.bracket.kind if self.bracket is not None else None

    @property
    def estimate(self) -> float:
        return 0.5 * (self.left + self.right)

    def as_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind,
            "left": self.left,
            "right": self.right,
            "iterations": self.iterations,
            "reason": self.reason,
        }


class SearchCancelled(RuntimeError):
    """The caller's cancellation token was set during a search."""


def refine(
    bracket: Bracket,
    evaluator: Callable[[float], bool],
    *,
    tolerance: float,
    base_step: float = DEFAULT_BASE_STEP,
    iteration_limit: int = DEFAULT_ITERATION_LIMIT,
    cancel: threading.Event | None = None,
) -> EventInterval:
    """Return the converged bounds of the transition inside ``bracket``.

    Raises
    ------
    ConvergenceError
        When ``iteration_limit`` iterations pass without the bounds coming
        within ``tolerance``, or when the walk leaves the bracket.
    SearchCancelled
        When ``cancel`` is set; checked once per iteration.
    """

    if not tolerance > 0.0:
        raise ValueError("tolerance must be positive")
    if not base_step > 0.0:
        raise ValueError("base_step must be positive")
    if iteration_limit < 1:
        raise ValueError("iteration_limit must be at least 1")

    left = bracket.left.epoch
    right = bracket.right.epoch
    left_state = bracket.left.state
    right_state = bracket.right.state
    step = base_step
    iterations = 0

    def _state(epoch: float) -> bool:
        state = bool(evaluator(epoch))
        GEOMETRY_EVALUATIONS.labels(phase="refine", state=str(state).lower()).inc()
        return state

    while left < right and abs(right - left) > tolerance and iterations < iteration_limit:
        if cancel is not None and cancel.is_set():
            REFINE_ITERATIONS.inc(iterations)
            raise SearchCancelled(f"refinement cancelled between {left!r} and {right!r}")
        iterations += 1

        midpoint = 0.5 * (left + right)
        mid_state = _state(midpoint)
        if mid_state == left_state:
            left = midpoint
        elif mid_state == right_state:
            right = midpoint

        working = left + step
        working_state = _state(working)
        if working_state != left_state:
            right = working
            right_state = working_state
            step /= 2.0
        else:
            left = working
            left_state = working_state

    REFINE_ITERATIONS.inc(iterations)

    if left < right and right - left <= tolerance:
        LOG.debug(
            "bracket converged",
            extra={"left": left, "right": right, "iterations": iterations},
        )
        return EventInterval(start=left, end=right, kind=bracket.kind, iterations=iterations)

    reason = "bracket_escape" if left >= right else "iteration_limit"
    CONVERGENCE_FAILURES.labels(reason=reason).inc()
    raise ConvergenceError(left, right, iterations, bracket=bracket, reason=reason)
