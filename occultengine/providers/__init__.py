"""Ephemeris provider contract, structured errors and the provider registry."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np

from ..core.vectors import Vector3

LOG = logging.getLogger(__name__)

__all__ = [
    "BodyNotFoundError",
    "EphemerisProvider",
    "FrameNotFoundError",
    "NotFoundError",
    "ProviderError",
    "ProviderFactory",
    "ProviderMetadata",
    "get_provider",
    "get_provider_metadata",
    "list_provider_metadata",
    "list_providers",
    "register_provider",
    "register_provider_metadata",
]


class ProviderError(RuntimeError):
    """Structured error raised when a provider cannot satisfy a request."""

    def __init__(
        self,
        message: str,
        *,
        provider_id: str | None = None,
        error_code: str | None = None,
        retriable: bool = False,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.provider_id = provider_id
        self.error_code = error_code
        self.retriable = retriable
        self.context = dict(context or {})


class NotFoundError(ProviderError, LookupError):
    """A body or frame name is unknown to the provider."""

    def __init__(self, name: str, *, kind: str, provider_id: str | None = None) -> None:
        super().__init__(
            f"{kind} '{name}' not found",
            provider_id=provider_id,
            error_code=f"{kind.upper()}_NOT_FOUND",
            context={"name": name},
        )
        self.name = name
        self.kind = kind


class BodyNotFoundError(NotFoundError):
    def __init__(self, name: str, *, provider_id: str | None = None) -> None:
        super().__init__(name, kind="body", provider_id=provider_id)


class FrameNotFoundError(NotFoundError):
    def __init__(self, name: str, *, provider_id: str | None = None) -> None:
        super().__init__(name, kind="frame", provider_id=provider_id)


@dataclass(frozen=True)
class ProviderMetadata:
    """Describes the provenance and capabilities of an ephemeris provider."""

    provider_id: str
    version: str | None
    supported_bodies: Sequence[str]
    supported_frames: Sequence[str]
    supports_light_time: bool
    extras_required: Sequence[str] = ()
    description: str | None = None
    module: str | None = None
    available: bool = True

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable copy of the metadata."""

        return {
            "provider_id": self.provider_id,
            "version": self.version,
            "supported_bodies": list(self.supported_bodies),
            "supported_frames": list(self.supported_frames),
            "supports_light_time": self.supports_light_time,
            "extras_required": list(self.extras_required),
            "description": self.description,
            "module": self.module,
            "available": self.available,
        }


class EphemerisProvider(Protocol):
    """Astronomical lookups consumed by the occultation geometry.

    Epochs are TDB seconds past J2000.  Positions are in kilometres and
    radii are the ``(a, b, c)`` triaxial semi-axes, also in kilometres.
    """

    def resolve_id(self, name: str) -> int:
        """Return the integer identifier of ``name`` or raise :class:`BodyNotFoundError`."""

        ...

    def position(
        self,
        body_id: int,
        epoch: float,
        frame: str,
        aberration_correction: str,
        relative_to: int,
    ) -> tuple[Vector3, float]:
        """Return ``(position, light_time)`` of ``body_id`` seen from ``relative_to``."""

        ...

    def rotation_matrix(self, from_frame: str, to_frame: str, epoch: float) -> np.ndarray:
        """Return the 3×3 matrix rotating vectors from ``from_frame`` into ``to_frame``."""

        ...

    def radii(self, body_name: str) -> tuple[float, float, float]:
        ...

    def resolve_frame(self, name: str) -> int:
        """Return the frame identifier of ``name`` or raise :class:`FrameNotFoundError`."""

        ...


ProviderFactory = Callable[..., EphemerisProvider]

_REGISTRY: dict[str, ProviderFactory] = {}
_METADATA_REGISTRY: dict[str, ProviderMetadata] = {}
_NAME_TO_PROVIDER_ID: dict[str, str] = {}
_BUILTIN_MODULES = ("kinematic", "skyfield_provider")
_builtins_loaded = False


def _normalize_metadata(
    metadata: ProviderMetadata | Mapping[str, Any] | None,
) -> ProviderMetadata | None:
    if metadata is None:
        return None
    if isinstance(metadata, ProviderMetadata):
        return metadata
    if isinstance(metadata, Mapping):
        return ProviderMetadata(**metadata)
    raise TypeError("metadata must be ProviderMetadata or mapping")


def register_provider_metadata(
    metadata: ProviderMetadata,
    *,
    overwrite: bool = False,
) -> None:
    provider_id = metadata.provider_id
    if not overwrite and provider_id in _METADATA_REGISTRY:
        raise ValueError(f"metadata for provider '{provider_id}' already registered")
    _METADATA_REGISTRY[provider_id] = metadata


def register_provider(
    name: str,
    factory: ProviderFactory,
    *,
    metadata: ProviderMetadata | Mapping[str, Any] | None = None,
    aliases: Sequence[str] = (),
    overwrite: bool = False,
) -> None:
    """Register ``factory`` under ``name`` and optional ``aliases``.

    Providers are built on demand by :func:`get_provider` because some of
    them load kernel files when constructed.
    """

    keys = [name, *aliases]
    if not overwrite:
        duplicates = [key for key in keys if key in _REGISTRY]
        if duplicates:
            raise ValueError(f"provider name(s) already registered: {duplicates}")

    for key in keys:
        _REGISTRY[key] = factory

    meta_obj = _normalize_metadata(metadata)
    if meta_obj is not None:
        register_provider_metadata(meta_obj, overwrite=True)
        for key in keys:
            _NAME_TO_PROVIDER_ID[key] = meta_obj.provider_id


def _load_builtin_providers() -> None:
    global _builtins_loaded
    if _builtins_loaded:
        return
    _builtins_loaded = True
    for module in _BUILTIN_MODULES:
        try:
            importlib.import_module(f"{__name__}.{module}")
        except ImportError:
            LOG.info(
                "%s provider unavailable",
                module,
                extra={"err_code": "PROVIDER_IMPORT", "provider": module},
                exc_info=True,
            )


def get_provider(name: str = "skyfield", /, **options: Any) -> EphemerisProvider:
    """Instantiate the provider registered as ``name`` with ``options``."""

    _load_builtin_providers()
    try:
        factory = _REGISTRY[name]
    except KeyError as exc:
        raise KeyError(
            f"provider '{name}' not registered; available={sorted(_REGISTRY)}"
        ) from exc
    return factory(**options)


def list_providers() -> Iterable[str]:
    _load_builtin_providers()
    return sorted(_REGISTRY)


def get_provider_metadata(name: str) -> ProviderMetadata:
    """Return metadata for a provider id or registered name."""

    _load_builtin_providers()
    provider_id = _NAME_TO_PROVIDER_ID.get(name, name)
    try:
        return _METADATA_REGISTRY[provider_id]
    except KeyError as exc:
        raise KeyError(f"metadata for provider '{name}' not registered") from exc


def list_provider_metadata() -> Iterable[str]:
    _load_builtin_providers()
    return sorted(_METADATA_REGISTRY)
