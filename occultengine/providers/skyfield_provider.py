"""JPL DE ephemerides through Skyfield.

Positions come from the first loadable SPK kernel; Skyfield's ICRF axes are
used as J2000.  Body-fixed orientation uses the IAU rotational elements in
:mod:`occultengine.providers.frames` and radii come from the IAU table in
:mod:`occultengine.providers.constants`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from importlib import metadata as importlib_metadata
from typing import Any

import numpy as np
from skyfield.api import load

from ..core.time import SECONDS_PER_DAY
from ..core.vectors import Vector3, as_vector
from . import (
    BodyNotFoundError,
    FrameNotFoundError,
    ProviderError,
    ProviderMetadata,
    register_provider,
)
from .constants import BODY_IDS, BODY_RADII, SPEED_OF_LIGHT_KM_S, body_name, normalize_name
from .frames import FRAME_IDS, j2000_to_frame, normalize_frame

LOG = logging.getLogger(__name__)

__all__ = ["DEFAULT_KERNELS", "SkyfieldProvider"]

DEFAULT_KERNELS: tuple[str, ...] = ("de440s.bsp", "de421.bsp")
_SPK_SUFFIX = ".bsp"


def _planet_barycenter(code: int) -> int | None:
    """Return the barycenter id of a planet centre id (``499`` -> ``4``)."""

    system, centre = divmod(int(code), 100)
    if centre == 99 and 1 <= system <= 9:
        return system
    return None


def _package_version(name: str) -> str | None:
    try:
        return importlib_metadata.version(name)
    except importlib_metadata.PackageNotFoundError:
        return None


class SkyfieldProvider:
    """Ephemeris provider reading SPK kernels with Skyfield's loader.

    ``kernels`` lists candidate file names or paths tried in order; the
    first that loads is used.  Non-SPK entries (for example a ``.tpc``
    constants kernel from a legacy configuration) are ignored because the
    orientation and radii tables are built in.

    Kernels such as ``de440s.bsp`` and ``de421.bsp`` only carry the centres of
    Mercury, Venus, Earth and the Moon.  Other planets resolve to their system
    barycenter when the centre is absent, which offsets Jupiter and Saturn
    by up to a few hundred kilometres.
    """

    provider_id = "skyfield"

    def __init__(self, kernels: Sequence[str] | None = None) -> None:
        candidates = list(kernels or DEFAULT_KERNELS)
        self.kernel: Any = None
        self.kernel_name: str | None = None
        for name in candidates:
            if not str(name).lower().endswith(_SPK_SUFFIX):
                LOG.info(
                    "ignoring non-SPK kernel",
                    extra={"err_code": "SKYFIELD_KERNEL_SKIPPED", "kernel": name},
                )
                continue
            try:
                self.kernel = load(str(name))
            except (OSError, ValueError, RuntimeError):
                LOG.warning(
                    "skyfield kernel unavailable",
                    extra={"err_code": "SKYFIELD_KERNEL_MISSING", "kernel": name},
                    exc_info=True,
                )
                continue
            self.kernel_name = str(name)
            break
        if self.kernel is None:
            LOG.error(
                "no skyfield kernel could be loaded",
                extra={"err_code": "SKYFIELD_KERNEL_NOT_FOUND", "kernels": candidates},
            )
            raise FileNotFoundError(f"No loadable JPL kernel among {candidates}")
        try:
            self.ts = load.timescale()
        except (OSError, ValueError, RuntimeError) as exc:
            LOG.error(
                "failed to initialize skyfield timescale",
                extra={"err_code": "SKYFIELD_TIMESCALE"},
                exc_info=True,
            )
            raise RuntimeError("Failed to initialize skyfield timescale") from exc

    def _time(self, epoch: float):
        return self.ts.tdb(2000, 1, 1, 12, 0, float(epoch))

    def _segment(self, body_id: int):
        try:
            return self.kernel[int(body_id)]
        except KeyError:
            raise BodyNotFoundError(body_name(body_id) or str(body_id), provider_id=self.provider_id) from None

    def resolve_id(self, name: str) -> int:
        key = normalize_name(name)
        code = BODY_IDS.get(key)
        if code is None:
            try:
                code = int(key)
            except ValueError:
                raise BodyNotFoundError(name, provider_id=self.provider_id) from None
        if code not in self.kernel.codes:
            barycenter = _planet_barycenter(code)
            if barycenter is not None and barycenter in self.kernel.codes:
                LOG.info(
                    "planet centre missing from kernel; using its barycenter",
                    extra={
                        "err_code": "SKYFIELD_BARYCENTER_FALLBACK",
                        "body": name,
                        "barycenter": barycenter,
                        "kernel": self.kernel_name,
                    },
                )
                return barycenter
            LOG.warning(
                "body missing from kernel",
                extra={"err_code": "SKYFIELD_BODY_MISSING", "body": name, "kernel": self.kernel_name},
            )
            raise BodyNotFoundError(name, provider_id=self.provider_id)
        return code

    def resolve_frame(self, name: str) -> int:
        try:
            return FRAME_IDS[normalize_frame(name)]
        except KeyError:
            raise FrameNotFoundError(name, provider_id=self.provider_id) from None

    def rotation_matrix(self, from_frame: str, to_frame: str, epoch: float) -> np.ndarray:
        try:
            target = j2000_to_frame(to_frame, epoch)
        except KeyError:
            raise FrameNotFoundError(to_frame, provider_id=self.provider_id) from None
        try:
            source = j2000_to_frame(from_frame, epoch)
        except KeyError:
            raise FrameNotFoundError(from_frame, provider_id=self.provider_id) from None
        return target @ source.T

    def position(
        self,
        body_id: int,
        epoch: float,
        frame: str,
        aberration_correction: str,
        relative_to: int,
    ) -> tuple[Vector3, float]:
        t = self._time(epoch)
        body = self._segment(body_id)
        origin = self._segment(relative_to)

        correction = aberration_correction.strip().upper()
        if correction == "LT":
            astrometric = origin.at(t).observe(body)
            vec = as_vector(astrometric.position.km)
            light_time = float(astrometric.light_time) * SECONDS_PER_DAY
        elif correction == "NONE":
            vec = as_vector((body - origin).at(t).position.km)
            light_time = float(np.linalg.norm(vec)) / SPEED_OF_LIGHT_KM_S
        else:
            raise ProviderError(
                f"unsupported aberration correction '{aberration_correction}'",
                provider_id=self.provider_id,
                error_code="ABCORR_UNSUPPORTED",
                context={"aberration_correction": aberration_correction},
            )

        if normalize_frame(frame) not in ("J2000", "ICRF"):
            vec = self.rotation_matrix("J2000", frame, epoch) @ vec
        return vec, light_time

    def radii(self, body_name: str) -> tuple[float, float, float]:
        key = normalize_name(body_name)
        try:
            return BODY_RADII[key]
        except KeyError:
            raise ProviderError(
                f"no radii tabulated for '{body_name}'",
                provider_id=self.provider_id,
                error_code="RADII_MISSING",
                context={"body": body_name},
            ) from None


def _metadata() -> ProviderMetadata:
    return ProviderMetadata(
        provider_id="skyfield",
        version=_package_version("skyfield"),
        supported_bodies=tuple(sorted(BODY_RADII)),
        supported_frames=tuple(sorted(FRAME_IDS)),
        supports_light_time=True,
        extras_required=("skyfield", "jplephem"),
        description="Skyfield DE ephemeris provider with IAU orientation models.",
        module=__name__,
    )


register_provider("skyfield", SkyfieldProvider, metadata=_metadata(), aliases=("de",))
