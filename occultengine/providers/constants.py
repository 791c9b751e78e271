"""NAIF identifiers and IAU reference radii for solar-system bodies.

Radii are the ``(a, b, c)`` semi-axes in kilometres from the IAU WGCCRE
2009 report as distributed in the ``pck00010.tpc`` text kernel.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

__all__ = [
    "BODY_IDS",
    "BODY_RADII",
    "EARTH_ID",
    "SPEED_OF_LIGHT_KM_S",
    "body_name",
    "normalize_name",
]

EARTH_ID: Final[int] = 399
SPEED_OF_LIGHT_KM_S: Final[float] = 299_792.458

BODY_IDS: Final[Mapping[str, int]] = MappingProxyType(
    {
        "SOLAR SYSTEM BARYCENTER": 0,
        "SSB": 0,
        "MERCURY BARYCENTER": 1,
        "VENUS BARYCENTER": 2,
        "EARTH BARYCENTER": 3,
        "EARTH-MOON BARYCENTER": 3,
        "EMB": 3,
        "MARS BARYCENTER": 4,
        "JUPITER BARYCENTER": 5,
        "SATURN BARYCENTER": 6,
        "URANUS BARYCENTER": 7,
        "NEPTUNE BARYCENTER": 8,
        "PLUTO BARYCENTER": 9,
        "SUN": 10,
        "MERCURY": 199,
        "VENUS": 299,
        "MOON": 301,
        "EARTH": 399,
        "MARS": 499,
        "PHOBOS": 401,
        "DEIMOS": 402,
        "JUPITER": 599,
        "IO": 501,
        "EUROPA": 502,
        "GANYMEDE": 503,
        "CALLISTO": 504,
        "SATURN": 699,
        "TITAN": 606,
        "URANUS": 799,
        "NEPTUNE": 899,
        "TRITON": 801,
        "PLUTO": 999,
        "CHARON": 901,
    }
)

BODY_RADII: Final[Mapping[str, tuple[float, float, float]]] = MappingProxyType(
    {
        "SUN": (696000.0, 696000.0, 696000.0),
        "MERCURY": (2439.7, 2439.7, 2439.7),
        "VENUS": (6051.8, 6051.8, 6051.8),
        "EARTH": (6378.1366, 6378.1366, 6356.7519),
        "MOON": (1737.4, 1737.4, 1737.4),
        "MARS": (3396.19, 3396.19, 3376.20),
        "PHOBOS": (13.0, 11.4, 9.1),
        "DEIMOS": (7.8, 6.0, 5.1),
        "JUPITER": (71492.0, 71492.0, 66854.0),
        "IO": (1829.4, 1819.4, 1815.7),
        "EUROPA": (1562.6, 1560.3, 1559.5),
        "GANYMEDE": (2631.2, 2631.2, 2631.2),
        "CALLISTO": (2410.3, 2410.3, 2410.3),
        "SATURN": (60268.0, 60268.0, 54364.0),
        "TITAN": (2575.15, 2574.78, 2574.47),
        "URANUS": (25559.0, 25559.0, 24973.0),
        "NEPTUNE": (24764.0, 24764.0, 24341.0),
        "TRITON": (1352.6, 1352.6, 1352.6),
        "PLUTO": (1195.0, 1195.0, 1195.0),
        "CHARON": (605.0, 605.0, 605.0),
    }
)

_ID_TO_NAME: Final[Mapping[int, str]] = MappingProxyType(
    {code: name for name, code in reversed(list(BODY_IDS.items()))}
)


def normalize_name(name: str) -> str:
    """Upper-case ``name`` and collapse runs of whitespace and underscores."""

    return " ".join(str(name).replace("_", " ").split()).upper()


def body_name(body_id: int) -> str | None:
    """Return the canonical name for ``body_id`` if it is tabulated."""

    return _ID_TO_NAME.get(int(body_id))
