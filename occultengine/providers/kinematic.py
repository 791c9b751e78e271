"""Analytic provider moving bodies on circular or linear inertial paths.

Used by ``occultengine scan-mock`` and throughout the test-suite where JPL
kernels are unavailable.  Every body carries its own ``IAU_<NAME>`` frame
spinning uniformly about the inertial z axis.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Final

import numpy as np

from ..core.time import SECONDS_PER_DAY
from ..core.vectors import Vector3, as_vector
from . import (
    BodyNotFoundError,
    FrameNotFoundError,
    ProviderError,
    ProviderMetadata,
    register_provider,
)
from .constants import BODY_RADII, SPEED_OF_LIGHT_KM_S, normalize_name
from .frames import FRAME_IDS, INERTIAL_FRAMES, axis_rotation, j2000_to_frame, normalize_frame

LOG = logging.getLogger(__name__)

__all__ = ["KinematicBody", "KinematicProvider", "default_bodies"]

AU_KM: Final[float] = 149_597_870.7
_LIGHT_TIME_ITERATIONS: Final[int] = 3
_BODY_FRAME_BASE: Final[int] = 1_000_000


@dataclass(frozen=True)
class KinematicBody:
    """Trajectory and shape of one analytic body.

    ``position`` (km) and ``velocity`` (km/s) describe straight-line motion
    from epoch 0.  A positive ``orbit_radius`` adds a circular orbit of that
    radius around the moving ``position``, with period ``orbit_period``
    seconds, starting at ``orbit_phase_deg`` and tilted about x by
    ``orbit_inclination_deg``.
    """

    name: str
    naif_id: int
    radii: tuple[float, float, float] | None = None
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    velocity: tuple[float, float, float] = (0.0, 0.0, 0.0)
    orbit_radius: float = 0.0
    orbit_period: float = 0.0
    orbit_phase_deg: float = 0.0
    orbit_inclination_deg: float = 0.0
    spin_deg_per_day: float = 0.0
    prime_meridian_deg: float = 0.0
    aliases: Sequence[str] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", normalize_name(self.name))
        if self.orbit_radius > 0.0 and self.orbit_period <= 0.0:
            raise ValueError(f"{self.name}: orbit_period must be positive for a circular orbit")
        if self.radii is not None:
            radii = tuple(float(value) for value in self.radii)
            if len(radii) != 3 or any(value <= 0.0 for value in radii):
                raise ValueError(f"{self.name}: radii must be three positive lengths")
            object.__setattr__(self, "radii", radii)

    @property
    def frame(self) -> str:
        return f"IAU_{self.name.replace(' ', '_')}"

    def state(self, epoch: float) -> Vector3:
        """Inertial position in kilometres at ``epoch``."""

        pos = as_vector(self.position) + as_vector(self.velocity) * epoch
        if self.orbit_radius > 0.0:
            theta = math.radians(self.orbit_phase_deg) + 2.0 * math.pi * epoch / self.orbit_period
            incl = math.radians(self.orbit_inclination_deg)
            pos = pos + self.orbit_radius * np.array(
                [math.cos(theta), math.sin(theta) * math.cos(incl), math.sin(theta) * math.sin(incl)]
            )
        return pos

    def spin_angle(self, epoch: float) -> float:
        """Prime meridian angle in radians at ``epoch``."""

        return math.radians(self.prime_meridian_deg + self.spin_deg_per_day * epoch / SECONDS_PER_DAY)


def default_bodies(
    *,
    moon_phase_deg: float = -5.0,
    moon_inclination_deg: float = 0.0,
) -> tuple[KinematicBody, ...]:
    """Earth at the origin, a fixed Sun one AU along +x and a circular Moon.

    With the default phase the Moon crosses the solar disc a few hours after
    epoch 0 and again every sidereal month.
    """

    return (
        KinematicBody("EARTH", 399, BODY_RADII["EARTH"], spin_deg_per_day=360.9856235),
        KinematicBody("SUN", 10, BODY_RADII["SUN"], position=(AU_KM, 0.0, 0.0), spin_deg_per_day=14.1844),
        KinematicBody(
            "MOON",
            301,
            BODY_RADII["MOON"],
            orbit_radius=384_400.0,
            orbit_period=27.321661 * SECONDS_PER_DAY,
            orbit_phase_deg=moon_phase_deg,
            orbit_inclination_deg=moon_inclination_deg,
            spin_deg_per_day=13.17635815,
        ),
    )


class KinematicProvider:
    """Ephemeris provider backed by :class:`KinematicBody` trajectories."""

    provider_id = "kinematic"

    def __init__(self, bodies: Iterable[KinematicBody] | None = None) -> None:
        self._bodies: dict[int, KinematicBody] = {}
        self._names: dict[str, int] = {}
        for body in bodies if bodies is not None else default_bodies():
            if body.naif_id in self._bodies:
                raise ValueError(f"duplicate body id {body.naif_id}")
            self._bodies[body.naif_id] = body
            for alias in (body.name, *body.aliases):
                self._names[normalize_name(alias)] = body.naif_id
        self._frames: dict[str, KinematicBody] = {
            body.frame: body for body in self._bodies.values()
        }
        LOG.debug("kinematic provider ready", extra={"bodies": sorted(self._names)})

    @property
    def bodies(self) -> tuple[KinematicBody, ...]:
        return tuple(self._bodies.values())

    def _body(self, body_id: int) -> KinematicBody:
        try:
            return self._bodies[int(body_id)]
        except KeyError:
            raise BodyNotFoundError(str(body_id), provider_id=self.provider_id) from None

    def _body_by_name(self, name: str) -> KinematicBody:
        return self._bodies[self.resolve_id(name)]

    def resolve_id(self, name: str) -> int:
        key = normalize_name(name)
        if key in self._names:
            return self._names[key]
        try:
            candidate = int(key)
        except ValueError:
            candidate = None
        if candidate is not None and candidate in self._bodies:
            return candidate
        raise BodyNotFoundError(name, provider_id=self.provider_id)

    def resolve_frame(self, name: str) -> int:
        key = normalize_frame(name)
        if key in self._frames:
            return FRAME_IDS.get(key, _BODY_FRAME_BASE + self._frames[key].naif_id)
        if key in INERTIAL_FRAMES:
            return FRAME_IDS[key]
        raise FrameNotFoundError(name, provider_id=self.provider_id)

    def _from_j2000(self, frame: str, epoch: float) -> np.ndarray:
        key = normalize_frame(frame)
        body = self._frames.get(key)
        if body is not None:
            return axis_rotation(2, body.spin_angle(epoch))
        if key in INERTIAL_FRAMES:
            return j2000_to_frame(key, epoch)
        raise FrameNotFoundError(frame, provider_id=self.provider_id)

    def rotation_matrix(self, from_frame: str, to_frame: str, epoch: float) -> np.ndarray:
        return self._from_j2000(to_frame, epoch) @ self._from_j2000(from_frame, epoch).T

    def position(
        self,
        body_id: int,
        epoch: float,
        frame: str,
        aberration_correction: str,
        relative_to: int,
    ) -> tuple[Vector3, float]:
        body = self._body(body_id)
        origin = self._body(relative_to)
        observer = origin.state(epoch)
        rel = body.state(epoch) - observer

        correction = aberration_correction.strip().upper()
        if correction == "LT":
            # Converged light-time: body position at the emission epoch.
            for _ in range(_LIGHT_TIME_ITERATIONS):
                lt = float(np.linalg.norm(rel)) / SPEED_OF_LIGHT_KM_S
                rel = body.state(epoch - lt) - observer
        elif correction != "NONE":
            raise ProviderError(
                f"unsupported aberration correction '{aberration_correction}'",
                provider_id=self.provider_id,
                error_code="ABCORR_UNSUPPORTED",
                context={"aberration_correction": aberration_correction},
            )

        light_time = float(np.linalg.norm(rel)) / SPEED_OF_LIGHT_KM_S
        rotation = self._from_j2000(frame, epoch)
        return rotation @ rel, light_time

    def radii(self, body_name: str) -> tuple[float, float, float]:
        body = self._body_by_name(body_name)
        if body.radii is None:
            raise ProviderError(
                f"no radii tabulated for '{body.name}'",
                provider_id=self.provider_id,
                error_code="RADII_MISSING",
                context={"body": body.name},
            )
        return body.radii


def _metadata() -> ProviderMetadata:
    return ProviderMetadata(
        provider_id="kinematic",
        version=None,
        supported_bodies=tuple(body.name for body in default_bodies()),
        supported_frames=("J2000", "ECLIPJ2000", "IAU_<BODY>"),
        supports_light_time=True,
        description="Analytic circular/linear trajectories for demonstrations and tests.",
        module=__name__,
    )


register_provider("kinematic", KinematicProvider, metadata=_metadata(), aliases=("mock",))
