"""Predicate filter stage and the predicate families used by ``noteo ls``.

A predicate is a callable ``Note -> bool`` that may raise. Parametrized
constructors (``tag_greater("priority:1")``, ``grep("TODO")``, ...) check
their argument immediately, so a malformed tag, number, date or regular
expression fails before any note is streamed.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable

from noteo import date
from noteo.errors import NoValueError, ParseError, PredicateError
from noteo.note import Note
from noteo.stream import Channel, Context
from noteo.tag import Tag

logger = logging.getLogger(__name__)

Predicate = Callable[[Note], bool]


# ---------------------------------------------------------------------------
# Stage
# ---------------------------------------------------------------------------


def filter_notes(
    ctx: Context, notes: Channel[Note], *predicates: Predicate
) -> tuple[Channel[Note], Channel[BaseException]]:
    """Forward only the notes matching every predicate, in input order.

    A predicate that raises drops the note and reports a
    :class:`PredicateError` on the error channel; the stage keeps going.
    """
    out: Channel[Note] = Channel()
    errors: Channel[BaseException] = Channel()
    ctx.spawn(_filter_loop(notes, predicates, out, errors), out, errors)
    return out, errors


async def _filter_loop(
    notes: Channel[Note],
    predicates: tuple[Predicate, ...],
    out: Channel[Note],
    errors: Channel[BaseException],
) -> None:
    async for note in notes:
        if await _matches(note, predicates, errors):
            await out.send(note)


async def _matches(note: Note, predicates: tuple[Predicate, ...], errors: Channel[BaseException]) -> bool:
    for predicate in predicates:
        try:
            if not predicate(note):
                return False
        except Exception as exc:  # noqa: BLE001
            logger.debug("predicate failed for %s: %s", note.path, exc)
            await errors.send(PredicateError(note.path, exc))
            return False
    return True


# ---------------------------------------------------------------------------
# Tag predicates
# ---------------------------------------------------------------------------


def tag(expected: str) -> Predicate:
    """Note has a tag whose string form is exactly *expected*."""

    def predicate(note: Note) -> bool:
        return any(str(t) == expected for t in note.tags)

    return predicate


def no_tag(unexpected: str) -> Predicate:
    def predicate(note: Note) -> bool:
        return all(str(t) != unexpected for t in note.tags)

    return predicate


def tag_grep(expr: str | re.Pattern[str]) -> Predicate:
    """Note has a tag matching the regular expression."""
    regex = re.compile(expr) if isinstance(expr, str) else expr

    def predicate(note: Note) -> bool:
        return any(regex.search(str(t)) for t in note.tags)

    return predicate


def no_tags() -> Predicate:
    def predicate(note: Note) -> bool:
        return not note.tags

    return predicate


def _tag_number(name_value: str, compare: Callable[[int, int], bool]) -> Predicate:
    reference = Tag.parse(name_value)
    number = reference.number()

    def predicate(note: Note) -> bool:
        found = note.find_tag(reference.name)
        if found is None:
            return False
        try:
            return compare(found.number(), number)
        except (NoValueError, ParseError) as exc:
            raise ParseError(str(found), f'error getting number from tag "{found}": {exc}') from exc

    return predicate


def tag_greater(name_value: str) -> Predicate:
    """``priority:1`` matches notes tagged ``priority`` with a number above 1."""
    return _tag_number(name_value, lambda found, number: found > number)


def tag_lower(name_value: str) -> Predicate:
    return _tag_number(name_value, lambda found, number: found < number)


def _tag_date(name_value: str, compare: Callable[[datetime, datetime], bool]) -> Predicate:
    reference = Tag.parse(name_value)
    moment = reference.relative_date()

    def predicate(note: Note) -> bool:
        found = note.find_tag(reference.name)
        if found is None:
            return False
        try:
            return compare(found.absolute_date(), moment)
        except (NoValueError, ParseError) as exc:
            raise ParseError(str(found), f'error getting date from tag "{found}": {exc}') from exc

    return predicate


def tag_after(name_value: str) -> Predicate:
    """``deadline:today`` matches notes whose ``deadline`` date is later."""
    return _tag_date(name_value, lambda found, moment: found > moment)


def tag_before(name_value: str) -> Predicate:
    return _tag_date(name_value, lambda found, moment: found < moment)


# ---------------------------------------------------------------------------
# Date and body predicates
# ---------------------------------------------------------------------------


def modified_after(value: str) -> Predicate:
    moment = date.parse(value)
    return lambda note: note.modified > moment


def modified_before(value: str) -> Predicate:
    moment = date.parse(value)
    return lambda note: note.modified < moment


def created_after(value: str) -> Predicate:
    moment = date.parse(value)
    return lambda note: (note.created or date.MIN) > moment


def created_before(value: str) -> Predicate:
    moment = date.parse(value)
    return lambda note: (note.created or date.MIN) < moment


def grep(expr: str) -> Predicate:
    """Note body matches the regular expression."""
    regex = re.compile(expr)
    return lambda note: regex.search(note.body) is not None
