"""Shared fixtures for the OccultEngine test-suite."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Union

import numpy as np
import pytest

from occultengine.core.vectors import as_vector
from occultengine.providers import BodyNotFoundError, FrameNotFoundError

PositionSpec = Union[Sequence[float], Callable[[float], Sequence[float]]]


class StaticProvider:
    """Provider with scripted positions and an identity body-fixed frame.

    ``positions`` maps body names to a fixed vector or a callable of the
    epoch; every position is reported relative to ``relative_to`` by plain
    subtraction.  Frames named ``IAU_<BODY>`` for known bodies and ``J2000``
    resolve; everything else raises :class:`FrameNotFoundError`.
    """

    provider_id = "static"

    def __init__(
        self,
        positions: Mapping[str, PositionSpec],
        radii: Mapping[str, tuple[float, float, float]],
        *,
        rotation: np.ndarray | None = None,
    ) -> None:
        self._positions = {name.upper(): spec for name, spec in positions.items()}
        self._radii = {name.upper(): tuple(values) for name, values in radii.items()}
        self._ids = {name: index for index, name in enumerate(self._positions, start=1)}
        self._names = {index: name for name, index in self._ids.items()}
        self._rotation = np.eye(3) if rotation is None else np.asarray(rotation, dtype=float)
        self.position_calls: list[tuple[int, float, str, str, int]] = []
        self.radii_calls: list[str] = []

    def resolve_id(self, name: str) -> int:
        try:
            return self._ids[name.strip().upper()]
        except KeyError:
            raise BodyNotFoundError(name, provider_id=self.provider_id) from None

    def resolve_frame(self, name: str) -> int:
        key = name.strip().upper()
        if key == "J2000":
            return 1
        if key.startswith("IAU_") and key[4:] in self._ids:
            return 10_000 + self._ids[key[4:]]
        raise FrameNotFoundError(name, provider_id=self.provider_id)

    def _state(self, body_id: int, epoch: float) -> np.ndarray:
        spec = self._positions[self._names[body_id]]
        value = spec(epoch) if callable(spec) else spec
        return as_vector(value)

    def position(self, body_id, epoch, frame, aberration_correction, relative_to):
        self.position_calls.append((body_id, epoch, frame, aberration_correction, relative_to))
        rel = self._state(body_id, epoch) - self._state(relative_to, epoch)
        return rel, float(np.linalg.norm(rel)) / 299_792.458

    def rotation_matrix(self, from_frame, to_frame, epoch):
        if from_frame.upper() == to_frame.upper():
            return np.eye(3)
        return self._rotation

    def radii(self, body_name: str):
        self.radii_calls.append(body_name)
        return self._radii[body_name.strip().upper()]


@pytest.fixture
def static_provider_factory() -> Callable[..., StaticProvider]:
    return StaticProvider


@pytest.fixture
def eclipse_provider() -> StaticProvider:
    """Observer at the reference origin with occulter and target on +x."""

    return StaticProvider(
        positions={
            "EARTH": (0.0, 0.0, 0.0),
            "OCCULTER": (1_000.0, 0.0, 0.0),
            "TARGET": (100_000.0, 0.0, 0.0),
        },
        radii={
            "EARTH": (10.0, 10.0, 10.0),
            "OCCULTER": (20.0, 20.0, 20.0),
            "TARGET": (100.0, 100.0, 100.0),
        },
    )
