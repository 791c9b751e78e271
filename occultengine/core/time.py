"""Epoch parsing and formatting helpers.

Every epoch handled by the search engine is a ``float`` counting TDB seconds
past J2000 (2000-01-01 12:00:00 TDB).  Calendar strings are interpreted on
the TDB scale, either in the ``YYYY MON DD HH:MM:SS[ TDB]`` layout used by
legacy configuration files or as ISO-8601 timestamps.  No leap-second or
ΔT model is applied: callers supplying UTC should convert beforehand.
"""

from __future__ import annotations

import calendar
import datetime as _dt
import math
import re
from typing import Final

__all__ = [
    "EpochFormatError",
    "J2000",
    "SECONDS_PER_DAY",
    "epoch_to_datetime",
    "epoch_to_iso",
    "format_epoch",
    "parse_epoch",
]


SECONDS_PER_DAY: Final[float] = 86_400.0
J2000: Final[_dt.datetime] = _dt.datetime(2000, 1, 1, 12, 0, 0)

MONTHS: Final[tuple[str, ...]] = (
    "JAN",
    "FEB",
    "MAR",
    "APR",
    "MAY",
    "JUN",
    "JUL",
    "AUG",
    "SEP",
    "OCT",
    "NOV",
    "DEC",
)

_CALENDAR_RE = re.compile(
    r"^(?P<year>[0-9]{4}) (?P<month>[A-Z]{3}) (?P<day>[0-9]{2}) "
    r"(?P<hour>[0-9]{2}):(?P<minute>[0-9]{2}):(?P<second>[0-9]{2})"
    r"(?P<fraction>\.[0-9]{1,6})?(?: TDB)?$"
)


class EpochFormatError(ValueError):
    """Raised when an epoch string cannot be interpreted."""


def _check_range(label: str, value: int, upper: int, text: str) -> None:
    if value < 0 or value > upper:
        raise EpochFormatError(f"input {label} '{value:02d}' is not valid in '{text}'")


def _parse_calendar(text: str) -> _dt.datetime:
    match = _CALENDAR_RE.match(text)
    if match is None:
        raise EpochFormatError(f"input epoch '{text}' does not match the required format")

    month_name = match.group("month")
    if month_name not in MONTHS:
        raise EpochFormatError(f"input month '{month_name}' does not correspond to a valid month")
    year = int(match.group("year"))
    month = MONTHS.index(month_name) + 1
    day = int(match.group("day"))
    max_day = calendar.monthrange(year, month)[1]
    if day < 1 or day > max_day:
        raise EpochFormatError(
            f"input day '{day:02d}' does not correspond to a valid day number "
            f"for the month of '{month_name}'"
        )

    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    second = int(match.group("second"))
    _check_range("hour", hour, 23, text)
    _check_range("minute", minute, 59, text)
    _check_range("second", second, 59, text)

    fraction = match.group("fraction")
    micro = int(round(float(fraction) * 1_000_000)) if fraction else 0
    return _dt.datetime(year, month, day, hour, minute, second) + _dt.timedelta(
        microseconds=micro
    )


def _parse_iso(text: str) -> _dt.datetime:
    candidate = text.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1]
    for suffix in (" TDB", "TDB"):
        if candidate.endswith(suffix):
            candidate = candidate[: -len(suffix)].rstrip()
    try:
        moment = _dt.datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise EpochFormatError(f"input epoch '{text}' does not match the required format") from exc
    if moment.tzinfo is not None:
        moment = moment.astimezone(_dt.timezone.utc).replace(tzinfo=None)
    return moment


def parse_epoch(value: str | float | int) -> float:
    """Return TDB seconds past J2000 for ``value``.

    Numeric inputs are returned unchanged as ``float``.  Strings are tried
    against the legacy calendar layout first and ISO-8601 second.
    """

    if isinstance(value, bool):
        raise EpochFormatError("boolean values are not epochs")
    if isinstance(value, (int, float)):
        epoch = float(value)
        if not math.isfinite(epoch):
            raise EpochFormatError(f"epoch {value!r} is not finite")
        return epoch
    text = str(value).strip().upper()
    if _CALENDAR_RE.match(text):
        moment = _parse_calendar(text)
    else:
        moment = _parse_iso(str(value))
    return (moment - J2000).total_seconds()


def epoch_to_datetime(epoch: float) -> _dt.datetime:
    """Return the naive TDB calendar datetime for ``epoch``."""

    return J2000 + _dt.timedelta(seconds=float(epoch))


def format_epoch(epoch: float) -> str:
    """Render ``epoch`` as ``YYYY MON DD HR:MN:SC.###### (TDB)``."""

    moment = epoch_to_datetime(epoch)
    return (
        f"{moment.year:04d} {MONTHS[moment.month - 1]} {moment.day:02d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}."
        f"{moment.microsecond:06d} (TDB)"
    )


def epoch_to_iso(epoch: float) -> str:
    """Render ``epoch`` as an ISO-8601 timestamp on the TDB scale."""

    return epoch_to_datetime(epoch).isoformat(timespec="microseconds")
