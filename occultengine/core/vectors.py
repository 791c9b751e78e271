"""Three-component vector helpers used by the occultation geometry.

Every helper accepts any sequence of three floats and returns ``float64``
arrays so the evaluator never mixes precisions across an epoch.  The
separation angle follows the plain ``acos(dot / (|a| |b|))`` definition;
the cosine is clipped to ``[-1, 1]`` to absorb rounding on parallel
vectors.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Final, Union

import numpy as np

__all__ = [
    "Vector3",
    "as_vector",
    "as_matrix",
    "norm",
    "rotate",
    "scale_axis",
    "separation_angle",
]

Vector3 = np.ndarray
VectorLike = Union[Sequence[float], np.ndarray]

ZERO_NORM: Final[float] = 0.0


def as_vector(value: VectorLike) -> Vector3:
    """Return ``value`` as a ``float64`` array of shape ``(3,)``."""

    vec = np.asarray(value, dtype=np.float64)
    if vec.shape != (3,):
        raise ValueError(f"expected a 3-vector, got shape {vec.shape}")
    return vec


def as_matrix(value: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Return ``value`` as a ``float64`` 3×3 matrix."""

    mat = np.asarray(value, dtype=np.float64)
    if mat.shape != (3, 3):
        raise ValueError(f"expected a 3x3 matrix, got shape {mat.shape}")
    return mat


def norm(vec: VectorLike) -> float:
    return float(np.linalg.norm(as_vector(vec)))


def rotate(matrix: np.ndarray, vec: VectorLike) -> Vector3:
    """Apply ``matrix`` to ``vec`` (``matrix @ vec``)."""

    return as_matrix(matrix) @ as_vector(vec)


def scale_axis(vec: VectorLike, axis: int, factor: float) -> Vector3:
    """Return a copy of ``vec`` with component ``axis`` multiplied by ``factor``."""

    out = np.array(as_vector(vec), dtype=np.float64, copy=True)
    out[axis] *= float(factor)
    return out


def separation_angle(a: VectorLike, b: VectorLike) -> float:
    """Angle in radians between ``a`` and ``b``.

    A zero-length operand has no direction; the separation is reported as
    ``0.0`` in that case.
    """

    va = as_vector(a)
    vb = as_vector(b)
    na = float(np.linalg.norm(va))
    nb = float(np.linalg.norm(vb))
    if na == ZERO_NORM or nb == ZERO_NORM:
        return 0.0
    cosine = float(np.dot(va, vb)) / (na * nb)
    return math.acos(max(-1.0, min(1.0, cosine)))
