from __future__ import annotations

import pytest

from occultengine.occultation.events import Bracket, Sample
from occultengine.occultation.refine import refine
from occultengine.occultation.scanner import build_grid, find_brackets, iter_samples

hypothesis = pytest.importorskip("hypothesis")
given = hypothesis.given
st = hypothesis.strategies
settings = hypothesis.settings

LOWER = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)
SPAN = st.floats(min_value=1.0, max_value=1e5, allow_nan=False, allow_infinity=False)
STEPS_PER_SPAN = st.floats(min_value=0.5, max_value=300.0, allow_nan=False, allow_infinity=False)
FRACTION = st.floats(min_value=0.001, max_value=1.0, allow_nan=False, allow_infinity=False)
TOLERANCE = st.floats(min_value=1e-6, max_value=1.0, allow_nan=False, allow_infinity=False)


@settings(deadline=None)
@given(lower=LOWER, span=SPAN, steps=STEPS_PER_SPAN)
def test_grid_is_closed_and_increasing(lower: float, span: float, steps: float) -> None:
    upper = lower + span
    step = span / steps
    grid = build_grid(lower, upper, step)

    assert grid[0] == lower
    assert grid[-1] == upper
    assert len(grid) >= 2
    for a, b in zip(grid, grid[1:]):
        assert a < b
        assert b - a <= step * (1.0 + 1e-9) + 1e-6


@settings(deadline=None)
@given(span=SPAN, fraction=FRACTION, tolerance=TOLERANCE, ingress=st.booleans())
def test_refined_bounds_straddle_threshold(span: float, fraction: float, tolerance: float, ingress: bool) -> None:
    threshold = span * fraction

    def evaluator(t: float) -> bool:
        after = t >= threshold
        return after if ingress else not after

    bracket = Bracket(Sample(0.0, evaluator(0.0)), Sample(span, evaluator(span)))
    event = refine(bracket, evaluator, tolerance=tolerance)

    assert event.start < event.end
    assert event.width <= tolerance
    assert event.start < threshold <= event.end
    assert evaluator(event.start) == bracket.left.state
    assert evaluator(event.end) == bracket.right.state


@settings(deadline=None)
@given(
    states=st.lists(st.booleans(), min_size=2, max_size=60),
)
def test_brackets_match_state_changes(states: list[bool]) -> None:
    grid = [float(index) for index in range(len(states))]
    samples = list(iter_samples(grid, lambda t: states[int(t)]))
    brackets = find_brackets(samples)

    changes = sum(1 for a, b in zip(states, states[1:]) if a != b)
    assert len(brackets) == changes
    for bracket in brackets:
        assert bracket.right.epoch - bracket.left.epoch == 1.0
        assert bracket.left.state != bracket.right.state
