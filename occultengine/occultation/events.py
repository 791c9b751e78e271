"""Value types flowing between the scanner, the refiner and the engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..core.time import epoch_to_iso, format_epoch

__all__ = [
    "EGRESS",
    "INGRESS",
    "Bracket",
    "EventInterval",
    "OccultationWindow",
    "Sample",
    "transition_kind",
]

INGRESS = "ingress"
EGRESS = "egress"


def transition_kind(left_state: bool, right_state: bool) -> str:
    """Return ``"ingress"`` for a false→true change and ``"egress"`` otherwise."""

    return INGRESS if (not left_state and right_state) else EGRESS


@dataclass(frozen=True, slots=True)
class Sample:
    epoch: float
    state: bool


@dataclass(frozen=True, slots=True)
class Bracket:
    """Adjacent scan samples whose occultation states differ."""

    left: Sample
    right: Sample

    def __post_init__(self) -> None:
        if self.left.state == self.right.state:
            raise ValueError("bracket samples must have differing states")
        if not self.left.epoch < self.right.epoch:
            raise ValueError("bracket epochs must be strictly increasing")

    @property
    def kind(self) -> str:
        return transition_kind(self.left.state, self.right.state)

    @property
    def width(self) -> float:
        return self.right.epoch - self.left.epoch


@dataclass(frozen=True, slots=True)
class EventInterval:
    """Converged bounds around one state transition.

    Attributes
    ----------
    start, end:
        Final ``left``/``right`` bounds of the refinement, TDB seconds past
        J2000.  ``end - start`` never exceeds the requested tolerance.
    kind:
        ``"ingress"`` (not occulted → occulted) or ``"egress"``.
    iterations:
        Refinement iterations spent on this transition.
    """

    start: float
    end: float
    kind: str
    iterations: int = 0

    @property
    def epoch(self) -> float:
        """Reported transition epoch: the midpoint of the converged bounds."""

        return 0.5 * (self.start + self.end)

    @property
    def width(self) -> float:
        return self.end - self.start

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "epoch": self.epoch,
            "iso": epoch_to_iso(self.epoch),
            "time": format_epoch(self.epoch),
            "start": self.start,
            "end": self.end,
            "width": self.width,
            "iterations": self.iterations,
        }


@dataclass(frozen=True, slots=True)
class OccultationWindow:
    """A continuous occulted span.

    ``start_exact``/``end_exact`` are ``False`` where the bound is the search
    confinement edge or the estimate of a bracket that failed to converge.
    """

    start: float
    end: float
    start_exact: bool = True
    end_exact: bool = True

    @property
    def duration(self) -> float:
        return self.end - self.start

    def as_dict(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "start_time": format_epoch(self.start),
            "end_time": format_epoch(self.end),
            "start_exact": self.start_exact,
            "end_exact": self.end_exact,
            "duration": self.duration,
        }
