from __future__ import annotations

import pytest

from occultengine.providers.cache import CachingProvider


def test_positions_are_memoized_per_request(eclipse_provider) -> None:
    cached = CachingProvider(eclipse_provider)
    occulter = eclipse_provider.resolve_id("OCCULTER")
    earth = eclipse_provider.resolve_id("EARTH")

    first, lt_first = cached.position(occulter, 10.0, "J2000", "LT", earth)
    second, lt_second = cached.position(occulter, 10.0, "J2000", "LT", earth)
    cached.position(occulter, 11.0, "J2000", "LT", earth)

    assert len(eclipse_provider.position_calls) == 2
    assert len(cached) == 2
    assert first.tolist() == second.tolist()
    assert lt_first == lt_second


def test_cached_vectors_are_copies(eclipse_provider) -> None:
    cached = CachingProvider(eclipse_provider)
    body = eclipse_provider.resolve_id("TARGET")
    vec, _ = cached.position(body, 0.0, "J2000", "LT", body)
    vec[0] = 42.0
    again, _ = cached.position(body, 0.0, "J2000", "LT", body)
    assert again[0] == 0.0


def test_radii_memoized_and_other_calls_delegated(eclipse_provider) -> None:
    cached = CachingProvider(eclipse_provider)
    assert cached.radii("TARGET") == (100.0, 100.0, 100.0)
    assert cached.radii("TARGET") == (100.0, 100.0, 100.0)
    assert eclipse_provider.radii_calls == ["TARGET"]

    assert cached.resolve_id("OCCULTER") == eclipse_provider.resolve_id("OCCULTER")
    assert cached.wrapped is eclipse_provider
    assert cached.provider_id == "static"


def test_clear_drops_entries(eclipse_provider) -> None:
    cached = CachingProvider(eclipse_provider)
    body = eclipse_provider.resolve_id("OCCULTER")
    cached.position(body, 0.0, "J2000", "LT", body)
    cached.clear()
    assert len(cached) == 0
    cached.position(body, 0.0, "J2000", "LT", body)
    assert len(eclipse_provider.position_calls) == 2


def test_errors_are_not_cached(static_provider_factory) -> None:
    provider = static_provider_factory(positions={"EARTH": (0, 0, 0)}, radii={})
    cached = CachingProvider(provider)
    with pytest.raises(KeyError):
        cached.radii("MOON")
    with pytest.raises(KeyError):
        cached.radii("MOON")
    assert provider.radii_calls == ["MOON", "MOON"]
