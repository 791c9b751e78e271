"""OccultEngine: geometric occultation search over a time span."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _get_version

try:
    __version__ = _get_version("occultengine")
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = "0.0.0"


def get_version() -> str:
    """Return the resolved OccultEngine package version."""

    return __version__


from .config import ConfigError, EngineSettings, SearchConfig, load_search_config  # noqa: E402
from .core import BodyDescriptor, OcclusionKind, ShapeKind, TargetRadiusMode  # noqa: E402
from .occultation import (  # noqa: E402
    ConvergenceError,
    EventInterval,
    GeometryError,
    OccultationSearch,
    OccultationWindow,
    SearchCancelled,
    SearchResult,
    run_search,
)
from .providers import (  # noqa: E402
    BodyNotFoundError,
    FrameNotFoundError,
    NotFoundError,
    get_provider,
)

__all__ = [
    "BodyDescriptor",
    "BodyNotFoundError",
    "ConfigError",
    "ConvergenceError",
    "EngineSettings",
    "EventInterval",
    "FrameNotFoundError",
    "GeometryError",
    "NotFoundError",
    "OccultationSearch",
    "OccultationWindow",
    "OcclusionKind",
    "SearchCancelled",
    "SearchConfig",
    "SearchResult",
    "ShapeKind",
    "TargetRadiusMode",
    "__version__",
    "get_provider",
    "get_version",
    "load_search_config",
    "run_search",
]
