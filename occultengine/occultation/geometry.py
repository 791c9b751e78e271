"""Occultation state of a target behind an occulter at a single epoch.

Both bodies are reduced to spheres in the occulter's body-fixed frame: the
z components of the occulter→observer and occulter→target vectors are
stretched by the occulter's equatorial/polar ratio, which turns the
occulter's spheroid into a sphere of its equatorial radius.  Angular
half-sizes are then compared with the centre separation seen from the
observer.

The predicates follow the eclipse contact definitions: bodies overlap when
``separation < r_target + r_occulter``; the target is fully hidden when the
occulter is at least as large and ``separation <= r_occulter - r_target``;
an annulus remains when the occulter is smaller and
``separation <= r_target - r_occulter``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..core.bodies import BodyDescriptor, OcclusionKind, ShapeKind, TargetRadiusMode
from ..core.vectors import Vector3, norm, rotate, scale_axis, separation_angle
from ..providers import EphemerisProvider
from ..providers.constants import EARTH_ID

if TYPE_CHECKING:
    from ..config.settings import EngineSettings, SearchConfig

LOG = logging.getLogger(__name__)

__all__ = [
    "Evaluator",
    "GeometryError",
    "OccultationEvaluator",
    "OcclusionGeometry",
    "classify",
    "evaluate",
    "measure",
]

INERTIAL_FRAME = "J2000"
_POLAR_AXIS = 2

Evaluator = Callable[[float], bool]


class GeometryError(RuntimeError):
    """The configuration is degenerate at an epoch (observer inside the target)."""

    def __init__(self, message: str, *, epoch: float, distance: float, radius: float) -> None:
        super().__init__(message)
        self.epoch = epoch
        self.distance = distance
        self.radius = radius


@dataclass(frozen=True, slots=True)
class OcclusionGeometry:
    """Intermediate quantities of one evaluation.

    Angles are radians.  When ``occulter_behind`` is true the occulter is
    farther than the target and no angles are computed.
    """

    epoch: float
    distance: float
    occulter_range: float
    target_radius: float
    occulter_radius: float
    occulter_behind: bool
    target_half_angle: float | None = None
    occulter_half_angle: float | None = None
    separation: float | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "epoch": self.epoch,
            "distance": self.distance,
            "occulter_range": self.occulter_range,
            "target_radius": self.target_radius,
            "occulter_radius": self.occulter_radius,
            "occulter_behind": self.occulter_behind,
            "target_half_angle": self.target_half_angle,
            "occulter_half_angle": self.occulter_half_angle,
            "separation": self.separation,
        }


def _half_angle(radius: float, distance: float) -> float:
    if radius <= 0.0:
        return 0.0
    if distance < radius:
        return math.pi / 2.0
    return math.asin(radius / distance)


def measure(
    provider: EphemerisProvider,
    target_id: int,
    occulter_id: int,
    observer_id: int,
    epoch: float,
    occulter_frame: str,
    occulter_name: str,
    target_frame: str,
    target_name: str,
    *,
    occulter_shape: ShapeKind = ShapeKind.ELLIPSOID,
    target_shape: ShapeKind = ShapeKind.ELLIPSOID,
    aberration_correction: str = "LT",
    reference_id: int = EARTH_ID,
    inertial_frame: str = INERTIAL_FRAME,
    radius_mode: TargetRadiusMode = TargetRadiusMode.OCCULTER_FLATTENING,
) -> OcclusionGeometry:
    """Compute the spherized occultation geometry at ``epoch``.

    ``target_frame`` is accepted for symmetry with the occulter; the target
    is spherized in the occulter's frame.

    Raises
    ------
    GeometryError
        If the observer lies within the target's (scaled) equatorial radius.
    """

    def _pos(body_id: int) -> Vector3:
        vec, _ = provider.position(body_id, epoch, inertial_frame, aberration_correction, reference_id)
        return vec

    observer = _pos(observer_id)
    occulter = _pos(occulter_id)
    target = _pos(target_id)

    occ_to_obs = observer - occulter
    occ_to_tgt = target - occulter

    if occulter_shape is ShapeKind.POINT:
        scale = 1.0
        occulter_radius = 0.0
    else:
        occ_radii = provider.radii(occulter_name)
        occulter_radius = float(occ_radii[0])
        scale = occulter_radius / float(occ_radii[_POLAR_AXIS])
        rotation = provider.rotation_matrix(inertial_frame, occulter_frame, epoch)
        occ_to_obs = scale_axis(rotate(rotation, occ_to_obs), _POLAR_AXIS, scale)
        occ_to_tgt = scale_axis(rotate(rotation, occ_to_tgt), _POLAR_AXIS, scale)

    if target_shape is ShapeKind.POINT:
        target_radius = 0.0
    else:
        target_radius = float(provider.radii(target_name)[0])
        if radius_mode is TargetRadiusMode.OCCULTER_FLATTENING:
            target_radius *= scale

    obs_to_occ = -occ_to_obs
    obs_to_tgt = occ_to_tgt + obs_to_occ

    distance = norm(obs_to_tgt)
    occulter_range = norm(occ_to_obs)
    if distance < target_radius:
        LOG.error(
            "observer inside target",
            extra={
                "err_code": "GEOMETRY_OBSERVER_INSIDE_TARGET",
                "epoch": epoch,
                "target": target_name,
                "distance_km": distance,
                "radius_km": target_radius,
            },
        )
        raise GeometryError(
            f"observer lies within {target_name} at epoch {epoch!r} "
            f"(distance {distance:.3f} km < radius {target_radius:.3f} km)",
            epoch=epoch,
            distance=distance,
            radius=target_radius,
        )

    if norm(obs_to_occ) > distance:
        return OcclusionGeometry(
            epoch=epoch,
            distance=distance,
            occulter_range=occulter_range,
            target_radius=target_radius,
            occulter_radius=occulter_radius,
            occulter_behind=True,
        )

    return OcclusionGeometry(
        epoch=epoch,
        distance=distance,
        occulter_range=occulter_range,
        target_radius=target_radius,
        occulter_radius=occulter_radius,
        occulter_behind=False,
        target_half_angle=_half_angle(target_radius, distance),
        occulter_half_angle=_half_angle(occulter_radius, occulter_range),
        separation=separation_angle(obs_to_tgt, obs_to_occ),
    )


def classify(geometry: OcclusionGeometry, kind: OcclusionKind = OcclusionKind.ANY) -> bool:
    """Return whether ``geometry`` is an occultation of type ``kind``."""

    if geometry.occulter_behind:
        return False
    rt = geometry.target_half_angle or 0.0
    ro = geometry.occulter_half_angle or 0.0
    sep = geometry.separation or 0.0

    overlap = sep < rt + ro
    full = ro >= rt and sep <= ro - rt
    annular = ro < rt and sep <= rt - ro

    if kind is OcclusionKind.ANY:
        return overlap
    if kind is OcclusionKind.FULL:
        return full
    if kind is OcclusionKind.ANNULAR:
        return annular
    return overlap and not (full or annular)


def evaluate(
    provider: EphemerisProvider,
    target_id: int,
    occulter_id: int,
    observer_id: int,
    epoch: float,
    occulter_frame: str,
    occulter_name: str,
    target_frame: str,
    target_name: str,
    *,
    kind: OcclusionKind = OcclusionKind.ANY,
    **options: Any,
) -> bool:
    """Return the occultation state at ``epoch``; see :func:`measure`."""

    geometry = measure(
        provider,
        target_id,
        occulter_id,
        observer_id,
        epoch,
        occulter_frame,
        occulter_name,
        target_frame,
        target_name,
        **options,
    )
    return classify(geometry, kind)


class OccultationEvaluator:
    """State function of one search, with every name resolved up front.

    Construction resolves the bodies and frames through the provider, so
    unknown names fail with :class:`~occultengine.providers.NotFoundError`
    before any epoch is evaluated.  Instances are callable as
    ``evaluator(epoch) -> bool`` and hold no mutable state.
    """

    def __init__(
        self,
        provider: EphemerisProvider,
        *,
        occulter: BodyDescriptor,
        target: BodyDescriptor,
        observer: str,
        kind: OcclusionKind = OcclusionKind.ANY,
        aberration_correction: str = "LT",
        radius_mode: TargetRadiusMode = TargetRadiusMode.OCCULTER_FLATTENING,
        reference_body: str = "EARTH",
        inertial_frame: str = INERTIAL_FRAME,
    ) -> None:
        self.provider = provider
        self.occulter = occulter
        self.target = target
        self.kind = kind
        self.aberration_correction = aberration_correction
        self.radius_mode = radius_mode
        self.inertial_frame = inertial_frame

        self.target_id = provider.resolve_id(target.name)
        self.occulter_id = provider.resolve_id(occulter.name)
        self.observer_id = provider.resolve_id(observer)
        self.reference_id = provider.resolve_id(reference_body)
        provider.resolve_frame(inertial_frame)
        if not occulter.is_point:
            provider.resolve_frame(occulter.frame)
        if not target.is_point:
            provider.resolve_frame(target.frame)

    @classmethod
    def from_config(
        cls,
        provider: EphemerisProvider,
        config: SearchConfig,
        settings: EngineSettings | None = None,
    ) -> "OccultationEvaluator":
        reference = settings.reference_body if settings is not None else "EARTH"
        frame = settings.inertial_frame if settings is not None else INERTIAL_FRAME
        return cls(
            provider,
            occulter=config.occulter,
            target=config.target,
            observer=config.observer,
            kind=config.occultation_type,
            aberration_correction=config.aberration_correction,
            radius_mode=config.target_radius_mode,
            reference_body=reference,
            inertial_frame=frame,
        )

    def measure(self, epoch: float) -> OcclusionGeometry:
        return measure(
            self.provider,
            self.target_id,
            self.occulter_id,
            self.observer_id,
            float(epoch),
            self.occulter.frame,
            self.occulter.name,
            self.target.frame,
            self.target.name,
            occulter_shape=self.occulter.shape,
            target_shape=self.target.shape,
            aberration_correction=self.aberration_correction,
            reference_id=self.reference_id,
            inertial_frame=self.inertial_frame,
            radius_mode=self.radius_mode,
        )

    def __call__(self, epoch: float) -> bool:
        return classify(self.measure(epoch), self.kind)
