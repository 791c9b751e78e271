from __future__ import annotations

import math

import numpy as np
import pytest

from occultengine.providers import BodyNotFoundError, FrameNotFoundError, ProviderError
from occultengine.providers.constants import SPEED_OF_LIGHT_KM_S
from occultengine.providers.kinematic import KinematicBody, KinematicProvider


@pytest.fixture
def provider() -> KinematicProvider:
    return KinematicProvider(
        [
            KinematicBody("EARTH", 399, (10.0, 10.0, 8.0)),
            KinematicBody("ORBITER", -10, position=(3_000.0, 0.0, 0.0), velocity=(0.0, 2.0, 0.0), aliases=("craft",)),
            KinematicBody(
                "SATELLITE",
                1001,
                (5.0, 5.0, 5.0),
                orbit_radius=1_000.0,
                orbit_period=4_000.0,
                spin_deg_per_day=360.0,
            ),
        ]
    )


def test_resolves_names_aliases_and_ids(provider) -> None:
    assert provider.resolve_id("earth") == 399
    assert provider.resolve_id("CRAFT") == -10
    assert provider.resolve_id("1001") == 1001
    with pytest.raises(BodyNotFoundError) as excinfo:
        provider.resolve_id("MOON")
    assert excinfo.value.error_code == "BODY_NOT_FOUND"


def test_geometric_position_follows_trajectory(provider) -> None:
    vec, light_time = provider.position(-10, 50.0, "J2000", "NONE", 399)
    assert vec.tolist() == pytest.approx([3_000.0, 100.0, 0.0])
    assert light_time == pytest.approx(np.linalg.norm(vec) / SPEED_OF_LIGHT_KM_S)


def test_light_time_uses_retarded_position(provider) -> None:
    geometric, _ = provider.position(-10, 50.0, "J2000", "NONE", 399)
    corrected, light_time = provider.position(-10, 50.0, "J2000", "LT", 399)
    assert corrected[1] == pytest.approx(2.0 * (50.0 - light_time))
    assert corrected[1] < geometric[1]


def test_circular_orbit(provider) -> None:
    quarter, _ = provider.position(1001, 1_000.0, "J2000", "NONE", 399)
    assert quarter.tolist() == pytest.approx([0.0, 1_000.0, 0.0], abs=1e-9)


def test_body_frame_spins_about_z(provider) -> None:
    quarter_day = 86_400.0 / 4.0
    matrix = provider.rotation_matrix("J2000", "IAU_SATELLITE", quarter_day)
    assert (matrix @ np.array([0.0, 1.0, 0.0])).tolist() == pytest.approx([1.0, 0.0, 0.0], abs=1e-12)
    round_trip = provider.rotation_matrix("IAU_SATELLITE", "J2000", quarter_day) @ matrix
    assert np.allclose(round_trip, np.eye(3))


def test_frames_resolve(provider) -> None:
    assert provider.resolve_frame("iau_earth") == 10013
    assert provider.resolve_frame("IAU_ORBITER") > 0
    assert provider.resolve_frame("ECLIPJ2000") == 17
    with pytest.raises(FrameNotFoundError):
        provider.resolve_frame("IAU_MOON")
    with pytest.raises(FrameNotFoundError):
        provider.position(-10, 0.0, "IAU_MOON", "NONE", 399)


def test_errors_for_corrections_and_radii(provider) -> None:
    with pytest.raises(ProviderError) as excinfo:
        provider.position(-10, 0.0, "J2000", "LT+S", 399)
    assert excinfo.value.error_code == "ABCORR_UNSUPPORTED"
    assert provider.radii("earth") == (10.0, 10.0, 8.0)
    with pytest.raises(ProviderError) as excinfo:
        provider.radii("ORBITER")
    assert excinfo.value.error_code == "RADII_MISSING"


def test_body_validation() -> None:
    with pytest.raises(ValueError):
        KinematicBody("BAD", 1, orbit_radius=10.0)
    with pytest.raises(ValueError):
        KinematicBody("BAD", 1, radii=(1.0, 0.0, 1.0))
    with pytest.raises(ValueError):
        KinematicProvider([KinematicBody("A", 1), KinematicBody("B", 1)])


def test_default_bodies_put_sun_on_x_axis() -> None:
    provider = KinematicProvider()
    sun, _ = provider.position(10, 0.0, "J2000", "NONE", 399)
    moon, _ = provider.position(301, 0.0, "J2000", "NONE", 399)
    assert sun[0] == pytest.approx(149_597_870.7)
    assert math.degrees(math.atan2(moon[1], moon[0])) == pytest.approx(-5.0)
