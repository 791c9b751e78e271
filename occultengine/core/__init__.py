"""Core value types and numeric helpers for OccultEngine."""

from __future__ import annotations

from .bodies import BodyDescriptor, OcclusionKind, ShapeKind, TargetRadiusMode
from .time import EpochFormatError, epoch_to_iso, format_epoch, parse_epoch
from .vectors import Vector3, as_vector, norm, separation_angle

__all__ = [
    "BodyDescriptor",
    "EpochFormatError",
    "OcclusionKind",
    "ShapeKind",
    "TargetRadiusMode",
    "Vector3",
    "as_vector",
    "epoch_to_iso",
    "format_epoch",
    "norm",
    "parse_epoch",
    "separation_angle",
]
