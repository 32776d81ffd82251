"""Unit tests for noteo.tag."""

from datetime import datetime

import pytest

from noteo.errors import InvalidTagError, NoValueError, ParseError, UnsupportedDateFormatError
from noteo.tag import Tag


class TestParse:
    def test_name_only(self):
        tag = Tag.parse("todo")
        assert tag.name == "todo"
        assert not tag.has_value
        assert str(tag) == "todo"

    def test_name_and_value(self):
        tag = Tag.parse("deadline:2020-09-10")
        assert tag.name == "deadline"
        assert tag.value == "2020-09-10"
        assert str(tag) == "deadline:2020-09-10"

    def test_only_first_colon_separates(self):
        tag = Tag.parse("link:http://example.com")
        assert tag.name == "link"
        assert tag.value == "http://example.com"

    def test_empty_value_is_a_value(self):
        tag = Tag.parse("name:")
        assert tag.has_value
        assert tag.value == ""
        assert str(tag) == "name:"

    def test_surrounding_spaces_are_stripped(self):
        assert str(Tag.parse("  todo ")) == "todo"

    @pytest.mark.parametrize("text", ["", "   ", "two words", "tab\tinside", "line\nbreak", ":foo", ":"])
    def test_invalid(self, text):
        with pytest.raises(InvalidTagError):
            Tag.parse(text)

    def test_equality_by_string_form(self):
        assert Tag.parse("priority:1") == Tag.parse("priority:1")
        assert Tag.parse("priority:1") != Tag.parse("priority:2")
        assert Tag.parse("priority") != Tag.parse("priority:")


class TestValue:
    def test_missing_value(self):
        with pytest.raises(NoValueError):
            Tag.parse("todo").value

    @pytest.mark.parametrize("text, expected", [("p:3", 3), ("p:-2", -2), ("p:+7", 7), ("p:0", 0)])
    def test_number(self, text, expected):
        assert Tag.parse(text).number() == expected

    @pytest.mark.parametrize("text", ["p:x", "p:1.5", "p:", "p:1e3"])
    def test_not_a_number(self, text):
        with pytest.raises(ParseError):
            Tag.parse(text).number()

    def test_number_without_value(self):
        with pytest.raises(NoValueError):
            Tag.parse("p").number()

    def test_absolute_date(self):
        moment = Tag.parse("deadline:2020-10-15T16:30:10Z").absolute_date()
        assert moment.isoformat() == "2020-10-15T16:30:10+00:00"

    def test_absolute_date_rejects_relative(self, fixed_now):
        with pytest.raises(ParseError):
            Tag.parse("deadline:today").absolute_date()

    def test_relative_date(self, fixed_now):
        assert Tag.parse("deadline:now").relative_date() == fixed_now


class TestMakeDateAbsolute:
    def test_now_becomes_rfc3339(self, fixed_now):
        assert str(Tag.parse("deadline:now").make_date_absolute()) == "deadline:2020-09-10T16:30:11+02:00"

    def test_today_becomes_date(self, fixed_now):
        assert str(Tag.parse("deadline:today").make_date_absolute()) == "deadline:2020-09-10"

    def test_bare_date_is_kept(self, fixed_now):
        assert str(Tag.parse("deadline:2021-01-02").make_date_absolute()) == "deadline:2021-01-02"

    @pytest.mark.parametrize("text", ["deadline:now", "deadline:today", "deadline:2 hours ago"])
    def test_applying_twice_is_stable(self, fixed_now, text):
        once = Tag.parse(text).make_date_absolute()
        assert once.make_date_absolute() == once

    def test_original_is_unchanged(self, fixed_now):
        tag = Tag.parse("deadline:today")
        tag.make_date_absolute()
        assert str(tag) == "deadline:today"

    def test_no_value(self):
        with pytest.raises(NoValueError):
            Tag.parse("deadline").make_date_absolute()

    def test_not_a_date(self):
        with pytest.raises(UnsupportedDateFormatError):
            Tag.parse("priority:high").make_date_absolute()

    def test_returns_a_new_tag(self, fixed_now):
        result = Tag.parse("deadline:yesterday").make_date_absolute()
        assert result == Tag("deadline", "2020-09-09")
        assert isinstance(result.absolute_date(), datetime)
