"""Inertial and IAU body-fixed reference frames.

Body-fixed ``IAU_<BODY>`` orientations follow the WGCCRE 2009 rotational
elements: pole right ascension ``α0`` and declination ``δ0`` plus the prime
meridian angle ``W``, evaluated at TDB seconds past J2000.  The matrix taking
J2000 vectors into the body frame is ``[W]3 [90° - δ0]1 [90° + α0]3``.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Final

import numpy as np

from ..core.time import SECONDS_PER_DAY

__all__ = [
    "ECLIPTIC_OBLIQUITY_DEG",
    "FRAME_IDS",
    "INERTIAL_FRAMES",
    "RotationElements",
    "axis_rotation",
    "body_fixed_elements",
    "j2000_to_frame",
    "normalize_frame",
]

DAYS_PER_CENTURY: Final[float] = 36525.0
ECLIPTIC_OBLIQUITY_DEG: Final[float] = 84381.448 / 3600.0

# (alpha0, delta0, W) in degrees.
RotationElements = tuple[float, float, float]

FRAME_IDS: Final[Mapping[str, int]] = MappingProxyType(
    {
        "J2000": 1,
        "ICRF": 1,
        "ECLIPJ2000": 17,
        "IAU_SUN": 10010,
        "IAU_MERCURY": 10011,
        "IAU_VENUS": 10012,
        "IAU_EARTH": 10013,
        "IAU_MARS": 10014,
        "IAU_JUPITER": 10015,
        "IAU_SATURN": 10016,
        "IAU_URANUS": 10017,
        "IAU_NEPTUNE": 10018,
        "IAU_PLUTO": 10019,
        "IAU_MOON": 10020,
    }
)

INERTIAL_FRAMES: Final[frozenset[str]] = frozenset({"J2000", "ICRF", "ECLIPJ2000"})


def normalize_frame(name: str) -> str:
    return str(name).strip().upper()


def axis_rotation(axis: int, angle: float) -> np.ndarray:
    """Frame rotation ``[angle]axis`` (radians) about coordinate ``axis`` (0, 1, 2)."""

    c = math.cos(angle)
    s = math.sin(angle)
    i = (axis + 1) % 3
    j = (axis + 2) % 3
    mat = np.eye(3, dtype=np.float64)
    mat[i, i] = c
    mat[j, j] = c
    mat[i, j] = s
    mat[j, i] = -s
    return mat


def _linear(d: float, t: float, a0: float, at: float, d0: float, dt: float, w0: float, wd: float) -> RotationElements:
    return a0 + at * t, d0 + dt * t, w0 + wd * d


def _sun(d: float, t: float) -> RotationElements:
    return _linear(d, t, 286.13, 0.0, 63.87, 0.0, 84.176, 14.1844000)


def _mercury(d: float, t: float) -> RotationElements:
    return _linear(d, t, 281.0097, -0.0328, 61.4143, -0.0049, 329.5469, 6.1385025)


def _venus(d: float, t: float) -> RotationElements:
    return _linear(d, t, 272.76, 0.0, 67.16, 0.0, 160.20, -1.4813688)


def _earth(d: float, t: float) -> RotationElements:
    return _linear(d, t, 0.0, -0.641, 90.0, -0.557, 190.147, 360.9856235)


def _mars(d: float, t: float) -> RotationElements:
    return _linear(d, t, 317.68143, -0.1061, 52.88650, -0.0609, 176.630, 350.89198226)


def _jupiter(d: float, t: float) -> RotationElements:
    return _linear(d, t, 268.056595, -0.006499, 64.495303, 0.002413, 284.95, 870.5360000)


def _saturn(d: float, t: float) -> RotationElements:
    return _linear(d, t, 40.589, -0.036, 83.537, -0.004, 38.90, 810.7939024)


def _uranus(d: float, t: float) -> RotationElements:
    return _linear(d, t, 257.311, 0.0, -15.175, 0.0, 203.81, -501.1600928)


def _neptune(d: float, t: float) -> RotationElements:
    n = math.radians(357.85 + 52.316 * t)
    alpha, delta, w = _linear(d, t, 299.36, 0.0, 43.46, 0.0, 253.18, 536.3128492)
    return alpha + 0.70 * math.sin(n), delta - 0.51 * math.cos(n), w - 0.48 * math.sin(n)


def _pluto(d: float, t: float) -> RotationElements:
    return _linear(d, t, 132.993, 0.0, -6.163, 0.0, 302.695, 56.3625225)


_MOON_ARGS: Final[tuple[tuple[float, float], ...]] = (
    (125.045, -0.0529921),
    (250.089, -0.1059842),
    (260.008, 13.0120009),
    (176.625, 13.3407154),
    (357.529, 0.9856003),
    (311.589, 26.4057084),
    (134.963, 13.0649930),
    (276.617, 0.3287146),
    (34.226, 1.7484877),
    (15.134, -0.1589763),
    (119.743, 0.0036096),
    (239.961, 0.1643573),
    (25.053, 12.9590088),
)

_MOON_ALPHA: Final[tuple[float, ...]] = (
    -3.8787, -0.1204, 0.0700, -0.0172, 0.0, 0.0072, 0.0, 0.0, 0.0, -0.0052, 0.0, 0.0, 0.0043,
)
_MOON_DELTA: Final[tuple[float, ...]] = (
    1.5419, 0.0239, -0.0278, 0.0068, 0.0, -0.0029, 0.0009, 0.0, 0.0, 0.0008, 0.0, 0.0, -0.0009,
)
_MOON_W: Final[tuple[float, ...]] = (
    3.5610, 0.1208, -0.0642, 0.0158, 0.0252, -0.0066, -0.0047, -0.0046, 0.0028, 0.0052, 0.0040, 0.0019, -0.0044,
)


def _moon(d: float, t: float) -> RotationElements:
    args = [math.radians(base + rate * d) for base, rate in _MOON_ARGS]
    alpha = 269.9949 + 0.0031 * t + sum(k * math.sin(e) for k, e in zip(_MOON_ALPHA, args))
    delta = 66.5392 + 0.0130 * t + sum(k * math.cos(e) for k, e in zip(_MOON_DELTA, args))
    w = 38.3213 + 13.17635815 * d - 1.4e-12 * d * d + sum(k * math.sin(e) for k, e in zip(_MOON_W, args))
    return alpha, delta, w


_ELEMENTS: Final[Mapping[str, Callable[[float, float], RotationElements]]] = MappingProxyType(
    {
        "IAU_SUN": _sun,
        "IAU_MERCURY": _mercury,
        "IAU_VENUS": _venus,
        "IAU_EARTH": _earth,
        "IAU_MOON": _moon,
        "IAU_MARS": _mars,
        "IAU_JUPITER": _jupiter,
        "IAU_SATURN": _saturn,
        "IAU_URANUS": _uranus,
        "IAU_NEPTUNE": _neptune,
        "IAU_PLUTO": _pluto,
    }
)


def body_fixed_elements(frame: str, epoch: float) -> RotationElements:
    """Return ``(α0, δ0, W)`` in degrees for ``frame`` at ``epoch``.

    Raises ``KeyError`` for frames without tabulated elements.
    """

    model = _ELEMENTS[normalize_frame(frame)]
    days = float(epoch) / SECONDS_PER_DAY
    return model(days, days / DAYS_PER_CENTURY)


def j2000_to_frame(frame: str, epoch: float) -> np.ndarray:
    """Matrix rotating J2000 vectors into ``frame`` at ``epoch``."""

    key = normalize_frame(frame)
    if key in ("J2000", "ICRF"):
        return np.eye(3, dtype=np.float64)
    if key == "ECLIPJ2000":
        return axis_rotation(0, math.radians(ECLIPTIC_OBLIQUITY_DEG))
    alpha, delta, w = body_fixed_elements(key, epoch)
    return (
        axis_rotation(2, math.radians(w))
        @ axis_rotation(0, math.radians(90.0 - delta))
        @ axis_rotation(2, math.radians(90.0 + alpha))
    )
