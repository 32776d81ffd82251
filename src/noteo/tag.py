"""Tag value type: ``name`` or ``name:value``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time

from noteo import date
from noteo.errors import InvalidTagError, NoValueError, ParseError

_WHITESPACE_RE = re.compile(r"\s")
_NUMBER_RE = re.compile(r"^[+-]?\d+$")
_MIDNIGHT = time()


@dataclass(frozen=True)
class Tag:
    """An immutable tag. Two tags are equal iff their string forms are."""

    name: str
    raw_value: str | None = None

    @classmethod
    def parse(cls, text: str) -> "Tag":
        """Validate *text* and split it on the first colon."""
        candidate = text.strip(" ")
        if not candidate or _WHITESPACE_RE.search(candidate):
            raise InvalidTagError(text)
        name, sep, value = candidate.partition(":")
        if not name:
            raise InvalidTagError(text)
        return cls(name, value if sep else None)

    def __str__(self) -> str:
        return self.name if self.raw_value is None else f"{self.name}:{self.raw_value}"

    @property
    def value(self) -> str:
        if self.raw_value is None:
            raise NoValueError(str(self))
        return self.raw_value

    @property
    def has_value(self) -> bool:
        return self.raw_value is not None

    def number(self) -> int:
        value = self.value
        if not _NUMBER_RE.match(value):
            raise ParseError(value, f"cannot parse number {value!r}")
        return int(value)

    def absolute_date(self) -> datetime:
        return date.parse_absolute(self.value)

    def relative_date(self) -> datetime:
        return date.parse(self.value)

    def make_date_absolute(self) -> "Tag":
        """Resolve a relative date value into an absolute ISO date.

        Midnight renders as ``YYYY-MM-DD``, anything else as RFC 3339.
        """
        moment = self.relative_date()
        if moment.time() == _MIDNIGHT:
            rendered = moment.strftime("%Y-%m-%d")
        else:
            rendered = date.format_rfc3339(moment)
        return Tag(self.name, rendered)
