"""Output formatters for ``noteo ls``.

Every formatter exposes ``header()``, ``note(note)`` and ``footer()``, each
returning the text to print. The table formatter collects its rows into a
:mod:`polars` DataFrame, sizes the columns from it and renders it in
``footer()``.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime
from typing import Any, Iterable, Protocol

import polars as pl
import yaml

from noteo.date import DateFormat, format_rfc3339, format_with
from noteo.errors import NoteoError
from noteo.note import Note

COLUMNS = ("file", "beginning", "modified", "created", "tags")
DEFAULT_OUTPUT = "table=file,beginning,modified,tags"

_BEGINNING_WIDTH = 34


class Formatter(Protocol):
    def header(self) -> str: ...

    def note(self, note: Note) -> str: ...

    def footer(self) -> str: ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def beginning(text: str) -> str:
    """First line of *text* without markdown heading or bullet markers."""
    line = text.strip("\n").split("\n", 1)[0]
    line = line.replace("\t", " ")
    for _ in range(5):
        line = line.removeprefix("#")
    line = line.removeprefix("*")
    return line.replace("\r", "").strip(" ")


def _shorten(text: str, limit: int) -> str:
    if len(text) > limit:
        text = text[: limit - 1] + "…"
    return text


def _pad(cells: Iterable[str], widths: list[int]) -> str:
    return "  ".join(cell.ljust(width) for cell, width in zip(cells, widths)).rstrip()


def _record(note: Note) -> dict[str, Any]:
    record = note.to_dict()
    record["modified"] = format_rfc3339(record["modified"])
    if record["created"] is not None:
        record["created"] = format_rfc3339(record["created"])
    return record


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class QuietFormatter:
    """File names only."""

    def header(self) -> str:
        return ""

    def note(self, note: Note) -> str:
        return note.path + "\n"

    def footer(self) -> str:
        return ""


class JsonFormatter:
    """One JSON object per line."""

    def header(self) -> str:
        return ""

    def note(self, note: Note) -> str:
        return json.dumps(_record(note), ensure_ascii=False) + "\n"

    def footer(self) -> str:
        return ""


class YamlFormatter:
    """One YAML document per note."""

    def header(self) -> str:
        return ""

    def note(self, note: Note) -> str:
        document = yaml.safe_dump(
            _record(note),
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
            explicit_start=True,
            width=sys.maxsize,
        )
        return document

    def footer(self) -> str:
        return ""


class TableFormatter:
    """Aligned columns chosen from :data:`COLUMNS`."""

    def __init__(self, columns: list[str], date_format: DateFormat = DateFormat.RELATIVE) -> None:
        normalized = [c.strip().lower() for c in columns]
        for column in normalized:
            if column not in COLUMNS:
                raise ValueError(f"unsupported output column: {column.upper()}")
        self.columns = normalized
        self.date_format = date_format
        self._rows: list[dict[str, str]] = []

    def header(self) -> str:
        return ""

    def note(self, note: Note) -> str:
        self._rows.append({column.upper(): self._cell(note, column) for column in self.columns})
        return ""

    def _cell(self, note: Note, column: str) -> str:
        try:
            if column == "file":
                return note.path
            if column == "beginning":
                return _shorten(beginning(note.body), _BEGINNING_WIDTH)
            if column == "modified":
                return self._date(note.modified)
            if column == "created":
                return self._date(note.created)
            return " ".join(str(t) for t in note.tags)
        except NoteoError as exc:
            return " ".join(str(exc).split())

    def _date(self, moment: datetime | None) -> str:
        if moment is None:
            return ""
        return format_with(moment, self.date_format)

    def footer(self) -> str:
        df = pl.DataFrame(self._rows, schema={column.upper(): pl.Utf8 for column in self.columns})
        self._rows = []
        widths = [max(len(name), df[name].str.len_chars().max() or 0) for name in df.columns]
        lines = [_pad(df.columns, widths)]
        lines += [_pad(row, widths) for row in df.iter_rows()]
        return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def parse_date_format(value: str | None) -> DateFormat:
    """Accepts ``rfc``/``rfc2822``, ``iso``/``iso8601`` and ``relative``."""
    key = (value or "").lower()
    if key in ("", "relative"):
        return DateFormat.RELATIVE
    if key in ("rfc", "rfc2822"):
        return DateFormat.RFC2822
    if key in ("iso", "iso8601"):
        return DateFormat.ISO8601
    raise ValueError(
        f"unsupported date format: {value}. "
        "Supported formats are: rfc2822 (or rfc), iso8601 (or iso), relative"
    )


def make_formatter(
    output: str = DEFAULT_OUTPUT,
    quiet: bool = False,
    date_format: DateFormat = DateFormat.RELATIVE,
) -> Formatter:
    """Pick a formatter from the ``--output`` syntax: ``table=col,...``, ``wide``, ``json`` or ``yaml``."""
    if quiet:
        return QuietFormatter()
    selected = output.lower()
    if selected == "wide":
        return TableFormatter(list(COLUMNS), date_format)
    if selected.startswith("table="):
        return TableFormatter(selected.removeprefix("table=").split(","), date_format)
    if selected == "json":
        return JsonFormatter()
    if selected == "yaml":
        return YamlFormatter()
    raise ValueError(f"unsupported output format in --output flag: {output}")
