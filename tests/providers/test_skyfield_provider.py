"""Tests for the Skyfield ephemeris provider using stubbed loaders."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from types import SimpleNamespace

import numpy as np
import pytest

from occultengine.providers import BodyNotFoundError, FrameNotFoundError, ProviderError
from occultengine.providers import skyfield_provider


@dataclass
class DummyTimescale:
    """Timescale stub that records TDB conversions."""

    tdb_calls: list[tuple[int, int, int, int, int, float]] = field(default_factory=list)

    def tdb(self, year: int, month: int, day: int, hour: int, minute: int, seconds: float):
        call = (year, month, day, hour, minute, seconds)
        self.tdb_calls.append(call)
        return ("tdb", seconds)


class DummySegment:
    """Straight-line body whose position is ``origin + velocity * seconds``."""

    def __init__(self, origin, velocity=(0.0, 0.0, 0.0)) -> None:
        self.origin = np.asarray(origin, dtype=float)
        self.velocity = np.asarray(velocity, dtype=float)

    def _km(self, t) -> np.ndarray:
        return self.origin + self.velocity * t[1]

    def __sub__(self, other: "DummySegment") -> "DummySegment":
        return DummySegment(self.origin - other.origin, self.velocity - other.velocity)

    def at(self, t):
        here = self._km(t)
        segment = self

        class _Observation:
            position = SimpleNamespace(km=here)

            def observe(self, body: DummySegment):
                rel = body._km(t) - segment._km(t)
                return SimpleNamespace(
                    position=SimpleNamespace(km=rel),
                    light_time=float(np.linalg.norm(rel)) / 299_792.458 / 86_400.0,
                )

        return _Observation()


class DummyKernel:
    def __init__(self, segments: dict[int, DummySegment]) -> None:
        self.segments = segments
        self.codes = set(segments)

    def __getitem__(self, code: int) -> DummySegment:
        return self.segments[code]


class DummyLoader:
    """Callable replacement for :func:`skyfield.api.load`."""

    def __init__(
        self,
        kernels: dict[str, object | Exception],
        timescale_factory: Callable[[], DummyTimescale | Exception],
    ) -> None:
        self.kernels = kernels
        self.timescale_factory = timescale_factory
        self.calls: list[str] = []
        self.timescale_calls = 0

    def __call__(self, name: str):
        self.calls.append(name)
        value = self.kernels.get(name)
        if value is None:
            raise OSError(f"kernel {name} missing")
        if isinstance(value, Exception):
            raise value
        return value

    def timescale(self):
        self.timescale_calls += 1
        result = self.timescale_factory()
        if isinstance(result, Exception):
            raise result
        return result


def _earth_moon_kernel() -> DummyKernel:
    return DummyKernel(
        {
            399: DummySegment((0.0, 0.0, 0.0)),
            301: DummySegment((384_400.0, 0.0, 0.0), velocity=(0.0, 1.0, 0.0)),
            10: DummySegment((149_597_870.7, 0.0, 0.0)),
        }
    )


@pytest.fixture
def provider(monkeypatch: pytest.MonkeyPatch) -> skyfield_provider.SkyfieldProvider:
    loader = DummyLoader(kernels={"de440s.bsp": _earth_moon_kernel()}, timescale_factory=DummyTimescale)
    monkeypatch.setattr(skyfield_provider, "load", loader)
    return skyfield_provider.SkyfieldProvider()


def test_provider_initialization_with_kernel_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    kernel = _earth_moon_kernel()
    loader = DummyLoader(
        kernels={
            "de440s.bsp": OSError("missing"),
            "de421.bsp": kernel,
        },
        timescale_factory=DummyTimescale,
    )
    monkeypatch.setattr(skyfield_provider, "load", loader)

    provider = skyfield_provider.SkyfieldProvider()

    assert provider.kernel is kernel
    assert provider.kernel_name == "de421.bsp"
    assert loader.calls == ["de440s.bsp", "de421.bsp"]
    assert loader.timescale_calls == 1
    assert isinstance(provider.ts, DummyTimescale)


def test_provider_skips_non_spk_kernels(monkeypatch: pytest.MonkeyPatch) -> None:
    loader = DummyLoader(kernels={"de421.bsp": _earth_moon_kernel()}, timescale_factory=DummyTimescale)
    monkeypatch.setattr(skyfield_provider, "load", loader)

    provider = skyfield_provider.SkyfieldProvider(["pck00010.tpc", "naif0012.tls", "de421.bsp"])

    assert loader.calls == ["de421.bsp"]
    assert provider.kernel_name == "de421.bsp"


def test_provider_timescale_initialization_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    loader = DummyLoader(
        kernels={"de440s.bsp": _earth_moon_kernel()},
        timescale_factory=lambda: RuntimeError("timescale unavailable"),
    )
    monkeypatch.setattr(skyfield_provider, "load", loader)

    with pytest.raises(RuntimeError) as excinfo:
        skyfield_provider.SkyfieldProvider()

    assert "Failed to initialize skyfield timescale" in str(excinfo.value)
    assert loader.calls == ["de440s.bsp"]


def test_provider_raises_when_no_kernel_found(monkeypatch: pytest.MonkeyPatch) -> None:
    loader = DummyLoader(
        kernels={name: OSError("missing") for name in ("de440s.bsp", "de421.bsp")},
        timescale_factory=DummyTimescale,
    )
    monkeypatch.setattr(skyfield_provider, "load", loader)

    with pytest.raises(FileNotFoundError):
        skyfield_provider.SkyfieldProvider()

    assert loader.calls == ["de440s.bsp", "de421.bsp"]


def test_resolve_id_checks_kernel_coverage(provider) -> None:
    assert provider.resolve_id("moon") == 301
    assert provider.resolve_id("399") == 399
    with pytest.raises(BodyNotFoundError):
        provider.resolve_id("MARS")
    with pytest.raises(BodyNotFoundError):
        provider.resolve_id("VULCAN")


def test_resolve_id_falls_back_to_planet_barycenter(monkeypatch: pytest.MonkeyPatch) -> None:
    kernel = _earth_moon_kernel()
    kernel.segments[4] = DummySegment((2.0e8, 0.0, 0.0))
    kernel.codes.add(4)
    loader = DummyLoader(kernels={"de440s.bsp": kernel}, timescale_factory=DummyTimescale)
    monkeypatch.setattr(skyfield_provider, "load", loader)
    provider = skyfield_provider.SkyfieldProvider()

    assert provider.resolve_id("MARS") == 4
    assert provider.resolve_id("499") == 4
    assert provider.resolve_id("EARTH") == 399
    with pytest.raises(BodyNotFoundError):
        provider.resolve_id("JUPITER")


def test_resolve_frame(provider) -> None:
    assert provider.resolve_frame("j2000") == 1
    assert provider.resolve_frame("IAU_MOON") == 10020
    with pytest.raises(FrameNotFoundError):
        provider.resolve_frame("IAU_VULCAN")


def test_position_epochs_are_tdb_seconds_past_j2000(provider) -> None:
    vec, light_time = provider.position(301, 120.0, "J2000", "NONE", 399)

    assert provider.ts.tdb_calls == [(2000, 1, 1, 12, 0, 120.0)]
    assert vec.tolist() == pytest.approx([384_400.0, 120.0, 0.0])
    assert light_time == pytest.approx(np.linalg.norm(vec) / 299_792.458)


def test_light_time_position_uses_observe(provider) -> None:
    vec, light_time = provider.position(301, 0.0, "J2000", "lt", 399)
    assert vec.tolist() == pytest.approx([384_400.0, 0.0, 0.0])
    assert light_time == pytest.approx(384_400.0 / 299_792.458)


def test_position_rotates_into_requested_frame(provider) -> None:
    vec, _ = provider.position(301, 0.0, "ECLIPJ2000", "NONE", 399)
    assert vec.tolist() == pytest.approx([384_400.0, 0.0, 0.0])
    vec, _ = provider.position(10, 0.0, "IAU_EARTH", "NONE", 399)
    assert np.linalg.norm(vec) == pytest.approx(149_597_870.7)


def test_unsupported_correction_and_missing_radii(provider) -> None:
    with pytest.raises(ProviderError) as excinfo:
        provider.position(301, 0.0, "J2000", "CN+S", 399)
    assert excinfo.value.error_code == "ABCORR_UNSUPPORTED"
    assert provider.radii("moon") == (1737.4, 1737.4, 1737.4)
    with pytest.raises(ProviderError) as excinfo:
        provider.radii("VULCAN")
    assert excinfo.value.error_code == "RADII_MISSING"


def test_rotation_matrix_rejects_unknown_frames(provider) -> None:
    with pytest.raises(FrameNotFoundError):
        provider.rotation_matrix("J2000", "IAU_VULCAN", 0.0)
