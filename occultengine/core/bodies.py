"""Body descriptors and the closed vocabularies used by occultation searches."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "BodyDescriptor",
    "OcclusionKind",
    "ShapeKind",
    "TargetRadiusMode",
]


class _ParsableEnum(str, Enum):
    @classmethod
    def parse(cls, value: object) -> "_ParsableEnum":
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper()
        try:
            return cls(key)
        except ValueError:
            options = ", ".join(member.value for member in cls)
            raise ValueError(f"'{value}' is not a valid option (expected one of: {options})") from None


class ShapeKind(_ParsableEnum):
    """Shape model used for a participating body."""

    ELLIPSOID = "ELLIPSOID"
    POINT = "POINT"


class OcclusionKind(_ParsableEnum):
    """Occultation geometry being searched for."""

    FULL = "FULL"
    ANNULAR = "ANNULAR"
    PARTIAL = "PARTIAL"
    ANY = "ANY"


class TargetRadiusMode(_ParsableEnum):
    """How the target's equatorial radius enters the spherized geometry.

    ``OCCULTER_FLATTENING`` multiplies the target radius by the occulter's
    equatorial/polar ratio (legacy behaviour).  ``UNSCALED`` keeps the
    target's own equatorial radius.
    """

    OCCULTER_FLATTENING = "OCCULTER_FLATTENING"
    UNSCALED = "UNSCALED"


@dataclass(frozen=True)
class BodyDescriptor:
    """Name, shape and body-fixed frame of an occulter or target."""

    name: str
    shape: ShapeKind = ShapeKind.ELLIPSOID
    frame: str = ""

    def __post_init__(self) -> None:
        name = str(self.name).strip()
        if not name:
            raise ValueError("body name must not be empty")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "shape", ShapeKind.parse(self.shape))
        frame = str(self.frame or "").strip() or f"IAU_{name.upper()}"
        object.__setattr__(self, "frame", frame)

    @property
    def is_point(self) -> bool:
        return self.shape is ShapeKind.POINT

    def as_dict(self) -> dict[str, str]:
        return {"name": self.name, "shape": self.shape.value, "frame": self.frame}
