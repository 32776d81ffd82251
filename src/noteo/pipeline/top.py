"""Top-N stage: collect every note, sort with a strict ordering, keep the first N.

Comparators are "less" functions ``(first, second) -> bool`` and may raise.
A failed comparison counts as "not less" and is reported as a
:class:`ComparisonError` naming both notes.
"""

from __future__ import annotations

import logging
from datetime import datetime
from functools import cmp_to_key
from typing import Callable

from noteo import date
from noteo.errors import ComparisonError
from noteo.note import Note
from noteo.stream import Channel, Context

logger = logging.getLogger(__name__)

Less = Callable[[Note, Note], bool]


def top(
    ctx: Context, limit: int, notes: Channel[Note], less: Less
) -> tuple[Channel[Note], Channel[BaseException]]:
    """Emit at most *limit* notes ordered by *less*.

    Nothing is emitted before the input channel is closed. Notes that
    compare equal keep their input order.
    """
    if limit < 0:
        raise ValueError(f"limit must not be negative, got {limit}")
    out: Channel[Note] = Channel()
    errors: Channel[BaseException] = Channel()
    ctx.spawn(_top(limit, notes, less, out, errors), out, errors)
    return out, errors


async def _top(
    limit: int,
    notes: Channel[Note],
    less: Less,
    out: Channel[Note],
    errors: Channel[BaseException],
) -> None:
    collected = await notes.collect()
    failures: list[ComparisonError] = []
    ordered = sort_notes(collected, less, failures)
    logger.debug("sorted %d notes, %d comparison errors", len(ordered), len(failures))
    for failure in failures:
        await errors.send(failure)
    for note in ordered[:limit]:
        await out.send(note)


def sort_notes(notes: list[Note], less: Less, failures: list[ComparisonError]) -> list[Note]:
    """Stable sort; comparison errors are appended to *failures*."""

    def is_less(first: Note, second: Note) -> bool:
        try:
            return less(first, second)
        except Exception as exc:  # noqa: BLE001
            failures.append(ComparisonError(first.path, second.path, exc))
            return False

    def compare(first: Note, second: Note) -> int:
        if is_less(first, second):
            return -1
        if is_less(second, first):
            return 1
        return 0

    return sorted(notes, key=cmp_to_key(compare))


# ---------------------------------------------------------------------------
# Comparators
# ---------------------------------------------------------------------------


def modified_asc(first: Note, second: Note) -> bool:
    return first.modified < second.modified


def modified_desc(first: Note, second: Note) -> bool:
    return first.modified > second.modified


def created_asc(first: Note, second: Note) -> bool:
    return (first.created or date.MIN) < (second.created or date.MIN)


def created_desc(first: Note, second: Note) -> bool:
    return (first.created or date.MIN) > (second.created or date.MIN)


def _by_tag(name: str, value: Callable, before: Callable) -> Less:
    # notes without the tag sort after every note that has it
    def less(first: Note, second: Note) -> bool:
        first_tag = first.find_tag(name)
        if first_tag is None:
            return False
        second_tag = second.find_tag(name)
        if second_tag is None:
            return True
        return before(value(first_tag), value(second_tag))

    return less


def _lt(a: datetime | int, b: datetime | int) -> bool:
    return a < b


def _gt(a: datetime | int, b: datetime | int) -> bool:
    return a > b


def tag_date_asc(name: str) -> Less:
    return _by_tag(name, lambda t: t.absolute_date(), _lt)


def tag_date_desc(name: str) -> Less:
    return _by_tag(name, lambda t: t.absolute_date(), _gt)


def tag_number_asc(name: str) -> Less:
    return _by_tag(name, lambda t: t.number(), _lt)


def tag_number_desc(name: str) -> Less:
    return _by_tag(name, lambda t: t.number(), _gt)
