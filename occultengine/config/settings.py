"""Search configuration models and YAML loading helpers."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    InstanceOf,
    ValidationError,
    field_validator,
    model_validator,
)

from ..core.bodies import BodyDescriptor, OcclusionKind, ShapeKind, TargetRadiusMode
from ..core.time import epoch_to_iso, parse_epoch

LOG = logging.getLogger(__name__)

__all__ = [
    "ConfigError",
    "EngineSettings",
    "LEGACY_KEYS",
    "SearchConfig",
    "load_engine_settings",
    "load_search_config",
]

_ABERRATION_CORRECTIONS = ("NONE", "LT")
_ENGINE_SECTION = "engine"
_KERNEL_KEYS = ("PConstants", "Timespan", "PlanetaryEphemerides")

# Keys of the line-oriented ``Key: value`` search files.
LEGACY_KEYS: dict[str, tuple[str, str | None]] = {
    "LowerBoundEpoch": ("lower_epoch", None),
    "UpperBoundEpoch": ("upper_epoch", None),
    "StepSize": ("step_size", None),
    "OccultationType": ("occultation_type", None),
    "OccultingBody": ("occulter", "name"),
    "OccultingBodyShape": ("occulter", "shape"),
    "OccultingBodyFrame": ("occulter", "frame"),
    "TargetBody": ("target", "name"),
    "TargetBodyShape": ("target", "shape"),
    "TargetBodyFrame": ("target", "frame"),
    "ObservingBody": ("observer", None),
    "Tolerance": ("tolerance", None),
}


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or validated."""


def _coerce_body(value: object) -> object:
    if isinstance(value, BodyDescriptor):
        return value
    if isinstance(value, str):
        return BodyDescriptor(name=value)
    if isinstance(value, Mapping):
        return BodyDescriptor(
            name=value.get("name", ""),
            shape=value.get("shape") or ShapeKind.ELLIPSOID,
            frame=value.get("frame") or "",
        )
    return value


class SearchConfig(BaseModel):
    """One occultation search: span, sampling, participants and tolerances.

    Epochs accept TDB seconds past J2000 or calendar strings (see
    :func:`occultengine.core.time.parse_epoch`).  Bodies accept a name, a
    mapping with ``name``/``shape``/``frame`` or a :class:`BodyDescriptor`.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    lower_epoch: float
    upper_epoch: float
    step_size: float = Field(gt=0.0)
    occultation_type: OcclusionKind = OcclusionKind.ANY
    occulter: InstanceOf[BodyDescriptor]
    target: InstanceOf[BodyDescriptor]
    observer: str
    tolerance: float = Field(gt=0.0)
    aberration_correction: str = "LT"
    target_radius_mode: TargetRadiusMode = TargetRadiusMode.OCCULTER_FLATTENING
    kernels: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _alias_legacy_fields(cls, values: Any) -> Any:
        """Accept the keys of legacy ``Key: value`` files alongside field names."""

        if not isinstance(values, Mapping) or not any(
            key in values for key in (*LEGACY_KEYS, *_KERNEL_KEYS)
        ):
            return values

        data: dict[str, Any] = {}
        bodies: dict[str, dict[str, Any]] = {}
        kernels: list[str] = list(values.get("kernels") or ())
        for key, value in values.items():
            if key in _KERNEL_KEYS:
                if value:
                    kernels.append(str(value))
                continue
            mapped = LEGACY_KEYS.get(key)
            if mapped is None:
                if key != "kernels":
                    data[key] = value
                continue
            field, part = mapped
            if part is None:
                data[field] = value
            else:
                bodies.setdefault(field, {})[part] = value
        for field, parts in bodies.items():
            data.setdefault(field, parts)
        if kernels:
            data["kernels"] = tuple(kernels)
        return data

    @field_validator("lower_epoch", "upper_epoch", mode="before")
    @classmethod
    def _parse_epoch(cls, value: object) -> float:
        return parse_epoch(value)  # type: ignore[arg-type]

    @field_validator("occultation_type", mode="before")
    @classmethod
    def _parse_kind(cls, value: object) -> OcclusionKind:
        return OcclusionKind.parse(value)  # type: ignore[return-value]

    @field_validator("target_radius_mode", mode="before")
    @classmethod
    def _parse_radius_mode(cls, value: object) -> TargetRadiusMode:
        return TargetRadiusMode.parse(value)  # type: ignore[return-value]

    @field_validator("occulter", "target", mode="before")
    @classmethod
    def _parse_body(cls, value: object) -> object:
        return _coerce_body(value)

    @field_validator("observer", mode="before")
    @classmethod
    def _strip_observer(cls, value: object) -> str:
        name = str(value).strip() if value is not None else ""
        if not name:
            raise ValueError("observer name must not be empty")
        return name

    @field_validator("aberration_correction")
    @classmethod
    def _check_correction(cls, value: str) -> str:
        correction = value.strip().upper()
        if correction not in _ABERRATION_CORRECTIONS:
            raise ValueError(
                f"Unsupported aberration correction '{value}'. Valid values: {list(_ABERRATION_CORRECTIONS)}"
            )
        return correction

    @field_validator("kernels", mode="before")
    @classmethod
    def _coerce_kernels(cls, value: object) -> object:
        if isinstance(value, str):
            return (value,)
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> "SearchConfig":
        if not self.lower_epoch < self.upper_epoch:
            raise ValueError("lower_epoch must be strictly before upper_epoch")
        if self.occulter.is_point and self.target.is_point:
            raise ValueError("occulter and target cannot both be POINT bodies")
        if (self.occulter.is_point or self.target.is_point) and (
            self.occultation_type is not OcclusionKind.ANY
        ):
            raise ValueError("only the ANY occultation type is defined when a POINT body is involved")
        return self

    @property
    def span(self) -> float:
        return self.upper_epoch - self.lower_epoch

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable summary of the configuration."""

        return {
            "lower_epoch": self.lower_epoch,
            "upper_epoch": self.upper_epoch,
            "lower_iso": epoch_to_iso(self.lower_epoch),
            "upper_iso": epoch_to_iso(self.upper_epoch),
            "step_size": self.step_size,
            "occultation_type": self.occultation_type.value,
            "occulter": self.occulter.as_dict(),
            "target": self.target.as_dict(),
            "observer": self.observer,
            "tolerance": self.tolerance,
            "aberration_correction": self.aberration_correction,
            "target_radius_mode": self.target_radius_mode.value,
            "kernels": list(self.kernels),
        }


class EngineSettings(BaseModel):
    """Tuning shared by every search run by one engine instance."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    iteration_limit: int = Field(default=4000, ge=1)
    refine_step: float = Field(default=1.0, gt=0.0)
    workers: int = 1
    cache_positions: bool = True
    reference_body: str = "EARTH"
    inertial_frame: str = "J2000"

    @field_validator("workers", mode="before")
    @classmethod
    def _cap_workers(cls, value: int) -> int:
        return max(1, min(32, int(value)))

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> "EngineSettings":
        """Build settings from ``OCCULTENGINE_*`` variables and ``overrides``.

        Explicit overrides that are ``None`` are ignored.
        """

        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        for field, var in (
            ("workers", "OCCULTENGINE_WORKERS"),
            ("iteration_limit", "OCCULTENGINE_ITERATION_LIMIT"),
        ):
            raw = env.get(var)
            if raw:
                data[field] = raw
        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)


def _parse_key_value(text: str) -> dict[str, str]:
    """Parse legacy ``Key:value`` lines, splitting each on its first colon.

    Lines whose key is not a legacy search or kernel key are skipped.
    """

    known = {*LEGACY_KEYS, *_KERNEL_KEYS}
    values: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        key = key.strip()
        if sep and key in known:
            values[key] = value.strip()
    return values


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        LOG.error(
            "cannot read configuration file",
            extra={"err_code": "CONFIG_READ", "path": str(path)},
        )
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        legacy = _parse_key_value(text)
        if legacy:
            return legacy
        LOG.error(
            "malformed configuration file",
            extra={"err_code": "CONFIG_PARSE", "path": str(path)},
        )
        raise ConfigError(f"Malformed configuration file {path}: {exc}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        # ``Key:value`` without a space after the colon is a YAML scalar.
        legacy = _parse_key_value(text)
        if legacy:
            return legacy
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return raw


def load_search_config(path: str | Path) -> SearchConfig:
    """Load a :class:`SearchConfig` from a YAML (or legacy ``Key: value``) file.

    An optional ``engine`` section is ignored here; see
    :func:`load_engine_settings`.
    """

    source = Path(path)
    payload = _read_yaml(source)
    payload.pop(_ENGINE_SECTION, None)
    try:
        config = SearchConfig.model_validate(payload)
    except ValidationError as exc:
        LOG.error(
            "invalid search configuration",
            extra={"err_code": "CONFIG_INVALID", "path": str(source)},
        )
        raise ConfigError(f"Invalid search configuration in {source}: {exc}") from exc
    LOG.debug("loaded search configuration", extra={"path": str(source)})
    return config


def load_engine_settings(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> EngineSettings:
    """Return engine settings from the ``engine`` section of ``path``.

    Environment variables take precedence over the file and ``overrides``
    take precedence over both.
    """

    file_values: dict[str, Any] = {}
    if path is not None:
        section = _read_yaml(Path(path)).get(_ENGINE_SECTION) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"'{_ENGINE_SECTION}' section of {path} must be a mapping")
        file_values = section
    try:
        env_values = EngineSettings.from_env(environ).model_dump(exclude_unset=True)
        merged = {**file_values, **env_values}
        merged.update({key: value for key, value in overrides.items() if value is not None})
        return EngineSettings(**merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid engine settings: {exc}") from exc
