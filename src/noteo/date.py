"""Absolute and relative date grammar used by tags, predicates and output.

Every value returned by this module is timezone-aware. "Now" comes from
:func:`now`, which tests replace through :func:`set_now`.

Absolute formats, tried in this order (first match wins)
--------------------------------------------------------
- ``Thu, 15 Oct 2020 16:30:10 +0200``   RFC 2822 (as printed by ``git log``)
- ``2020-10-15 16:30:10 +0200``         ISO 8601-like, space separated
- ``2020-10-15T16:30:10+02:00``         strict ISO 8601 / RFC 3339
- ``2020-10-15``                        bare date, local midnight
- ``Thu Oct 15 16:30:10 CEST 2020``     Unix ``date`` output

Relative formats
----------------
``now``, ``today``, ``yesterday``, ``tomorrow`` and ``<N> <unit> ago``.
"""

from __future__ import annotations

import re
import time
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Callable

from noteo.errors import ParseError, UnsupportedDateFormatError

#: Stand-in for a missing date; sorts before every real date.
MIN = datetime.min.replace(tzinfo=timezone.utc)

_RFC2822_LAYOUT = "%a, %d %b %Y %H:%M:%S %z"
_ISO8601_LAYOUT = "%Y-%m-%d %H:%M:%S %z"
_BARE_DATE_LAYOUT = "%Y-%m-%d"
_UNIX_DATE_LAYOUT = "%a %b %d %H:%M:%S %Y"

_RFC3339_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|z|[+-]\d{2}:\d{2})$")
_BARE_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# Mon Jan _2 15:04:05 MST 2006
_UNIX_DATE_RE = re.compile(r"^(\w{3}) (\w{3}) +(\d{1,2}) (\d{2}:\d{2}:\d{2}) (\S+) (\d{4})$")
_AGO_RE = re.compile(r"^([+-]?\d+)\s+(\S+)\s+ago$")

_UNITS = {
    "second": timedelta(seconds=1),
    "minute": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}


def _system_now() -> datetime:
    return datetime.now().astimezone()


_now: Callable[[], datetime] = _system_now


def now() -> datetime:
    return _now()


def set_now(func: Callable[[], datetime] | None) -> None:
    """Replace the clock. ``None`` restores the system clock."""
    global _now
    _now = func if func is not None else _system_now


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _strptime(value: str, layout: str) -> datetime | None:
    try:
        return datetime.strptime(value, layout)
    except ValueError:
        return None


def _parse_rfc3339(value: str) -> datetime | None:
    if not _RFC3339_RE.match(value):
        return None
    try:
        return datetime.fromisoformat(value.upper())
    except ValueError:
        return None


def _parse_bare_date(value: str) -> datetime | None:
    if not _BARE_DATE_RE.match(value):
        return None
    parsed = _strptime(value, _BARE_DATE_LAYOUT)
    return parsed.astimezone() if parsed else None


def _zone_for(abbreviation: str) -> tzinfo | None:
    """Map a zone abbreviation to a tzinfo; ``None`` means the local zone."""
    if abbreviation in ("UTC", "GMT"):
        return timezone.utc
    if abbreviation in time.tzname:
        return None
    return timezone(timedelta(0), abbreviation)


def _parse_unix_date(value: str) -> datetime | None:
    match = _UNIX_DATE_RE.match(value)
    if not match:
        return None
    weekday, month, day, clock, zone, year = match.groups()
    parsed = _strptime(f"{weekday} {month} {day} {clock} {year}", _UNIX_DATE_LAYOUT)
    if parsed is None:
        return None
    tz = _zone_for(zone)
    return parsed.astimezone() if tz is None else parsed.replace(tzinfo=tz)


def parse_absolute(value: str) -> datetime:
    """Parse *value* with the absolute grammar or raise :class:`ParseError`."""
    for parse in (
        lambda v: _strptime(v, _RFC2822_LAYOUT),
        lambda v: _strptime(v, _ISO8601_LAYOUT),
        _parse_rfc3339,
        _parse_bare_date,
        _parse_unix_date,
    ):
        parsed = parse(value)
        if parsed is not None:
            return parsed
    raise ParseError(value, f"cannot parse date {value!r}")


def midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def parse(value: str) -> datetime:
    """Parse an absolute date, a keyword or ``<N> <unit> ago``."""
    try:
        return parse_absolute(value)
    except ParseError:
        pass

    current = now()
    if value == "now":
        return current
    if value == "today":
        return midnight(current)
    if value == "yesterday":
        return midnight(current - timedelta(days=1))
    if value == "tomorrow":
        return midnight(current + timedelta(days=1))

    match = _AGO_RE.match(value)
    if match:
        amount, unit = int(match.group(1)), match.group(2).lower()
        step = _UNITS.get(unit.removesuffix("s"))
        if step is not None:
            try:
                return current - step * amount
            except (OverflowError, ValueError) as exc:
                raise ParseError(value, f"date out of range: {value}") from exc

    raise UnsupportedDateFormatError(value)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class DateFormat(str, Enum):
    RFC2822 = "rfc2822"
    ISO8601 = "iso8601"
    RELATIVE = "relative"


def format_iso8601(moment: datetime) -> str:
    """ISO 8601-like format, the same one ``git log --date=iso`` prints."""
    return moment.strftime(_ISO8601_LAYOUT)


def format_rfc2822(moment: datetime) -> str:
    """RFC 2822 format, often found in e-mail headers."""
    return moment.strftime(_RFC2822_LAYOUT)


def format_rfc3339(moment: datetime) -> str:
    moment = moment.replace(microsecond=0)
    if moment.utcoffset() == timedelta(0):
        return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
    return moment.isoformat(timespec="seconds")


def format_relative(moment: datetime) -> str:
    passed = now() - moment
    seconds = int(passed.total_seconds())
    minutes = seconds // 60
    hours = int(passed.total_seconds() / 3600 + 0.5)
    if seconds < 1:
        return "Less than a second ago"
    if seconds == 1:
        return "1 second ago"
    if seconds < 60:
        return f"{seconds} seconds ago"
    if minutes == 1:
        return "About a minute ago"
    if minutes < 60:
        return f"{minutes} minutes ago"
    if hours == 1:
        return "About an hour ago"
    if hours < 48:
        return f"{hours} hours ago"
    if hours < 24 * 7 * 2:
        return f"{hours // 24} days ago"
    if hours < 24 * 30 * 2:
        return f"{hours // 24 // 7} weeks ago"
    if hours < 24 * 365 * 2:
        return f"{hours // 24 // 30} months ago"
    return f"{seconds // 3600 // 24 // 365} years ago"


def format_with(moment: datetime, date_format: DateFormat) -> str:
    if date_format is DateFormat.RFC2822:
        return format_rfc2822(moment)
    if date_format is DateFormat.ISO8601:
        return format_iso8601(moment)
    return format_relative(moment)
