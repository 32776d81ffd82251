"""Unit tests for noteo.output."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from noteo.date import DateFormat
from noteo.note import Note
from noteo.output import (
    JsonFormatter,
    QuietFormatter,
    TableFormatter,
    YamlFormatter,
    beginning,
    make_formatter,
    parse_date_format,
)

MODIFIED = datetime(2020, 9, 10, 14, 30, 11, tzinfo=timezone.utc)


def _note(directory: Path, name: str, content: str) -> Note:
    (directory / name).write_text(content, encoding="utf-8")
    return Note(name, modified=MODIFIED, workdir=directory)


def _render(formatter, notes) -> str:
    return formatter.header() + "".join(formatter.note(n) for n in notes) + formatter.footer()


class TestBeginning:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Hello world\nsecond line", "Hello world"),
            ("\n\n# Heading\nbody", "Heading"),
            ("### Deep heading", "Deep heading"),
            ("* bullet", "bullet"),
            ("tab\tseparated\r\n", "tab separated"),
            ("", ""),
        ],
    )
    def test_first_line(self, text, expected):
        assert beginning(text) == expected


class TestFormatters:
    def test_quiet(self, tmp_path):
        notes = [_note(tmp_path, "a.md", "A"), _note(tmp_path, "b.md", "B")]
        assert _render(QuietFormatter(), notes) == "a.md\nb.md\n"

    def test_json(self, tmp_path):
        note = _note(tmp_path, "a.md", "---\nCreated: 2020-09-01T10:00:00Z\nTags: x p:1\n---\nBody\n")
        lines = _render(JsonFormatter(), [note]).splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0]) == {
            "file": "a.md",
            "modified": "2020-09-10T14:30:11Z",
            "created": "2020-09-01T10:00:00Z",
            "tags": ["x", "p:1"],
            "text": "Body\n",
        }

    def test_json_without_created(self, tmp_path):
        note = _note(tmp_path, "a.md", "Body")
        assert json.loads(JsonFormatter().note(note))["created"] is None

    def test_yaml(self, tmp_path):
        notes = [_note(tmp_path, "a.md", "---\nTags: x\n---\nA"), _note(tmp_path, "b.md", "B")]
        documents = list(yaml.safe_load_all(_render(YamlFormatter(), notes)))
        assert [d["file"] for d in documents] == ["a.md", "b.md"]
        assert documents[0]["tags"] == ["x"]
        assert documents[0]["modified"] == "2020-09-10T14:30:11Z"
        assert documents[1]["text"] == "B"

    def test_table(self, tmp_path):
        notes = [_note(tmp_path, "a.md", "---\nTags: x y\n---\n# Shopping\nmilk"), _note(tmp_path, "b.md", "B")]
        formatter = TableFormatter(["file", "beginning", "tags"])
        out = _render(formatter, notes)
        lines = out.splitlines()
        assert "FILE" in lines[0] and "BEGINNING" in lines[0] and "TAGS" in lines[0]
        assert "a.md" in out and "Shopping" in out and "x y" in out
        assert "b.md" in out

    def test_table_dates(self, tmp_path):
        note = _note(tmp_path, "a.md", "---\nCreated: 2020-09-01T10:00:00Z\n---\n")
        out = _render(TableFormatter(["modified", "created"], DateFormat.ISO8601), [note])
        assert "2020-09-10 14:30:11 +0000" in out
        assert "2020-09-01 10:00:00 +0000" in out

    def test_table_shortens_beginning(self, tmp_path):
        note = _note(tmp_path, "a.md", "x" * 50)
        out = _render(TableFormatter(["beginning"]), [note])
        assert "x" * 33 + "…" in out
        assert "x" * 34 not in out

    def test_table_shows_front_matter_errors(self, tmp_path):
        note = _note(tmp_path, "a.md", "---\nTags: [broken\n---\n")
        out = _render(TableFormatter(["file", "tags"]), [note])
        assert "YAML front matter unmarshal failed" in out

    def test_unknown_column(self):
        with pytest.raises(ValueError, match="unsupported output column"):
            TableFormatter(["file", "size"])


class TestMakeFormatter:
    @pytest.mark.parametrize(
        "output, expected",
        [
            ("json", JsonFormatter),
            ("YAML", YamlFormatter),
            ("wide", TableFormatter),
            ("table=file,tags", TableFormatter),
        ],
    )
    def test_selection(self, output, expected):
        assert isinstance(make_formatter(output), expected)

    def test_quiet_wins(self):
        assert isinstance(make_formatter("json", quiet=True), QuietFormatter)

    def test_wide_has_all_columns(self):
        assert make_formatter("wide").columns == ["file", "beginning", "modified", "created", "tags"]

    def test_unsupported(self):
        with pytest.raises(ValueError, match="unsupported output format"):
            make_formatter("xml")

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, DateFormat.RELATIVE),
            ("relative", DateFormat.RELATIVE),
            ("RFC", DateFormat.RFC2822),
            ("iso8601", DateFormat.ISO8601),
        ],
    )
    def test_date_format(self, value, expected):
        assert parse_date_format(value) is expected

    def test_unsupported_date_format(self):
        with pytest.raises(ValueError):
            parse_date_format("julian")
