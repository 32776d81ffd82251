"""Unit tests for noteo.date."""

from datetime import datetime, timedelta, timezone

import pytest

from noteo import date
from noteo.errors import ParseError, UnsupportedDateFormatError

PLUS_TWO = timezone(timedelta(hours=2))

# ---------------------------------------------------------------------------
# parse_absolute
# ---------------------------------------------------------------------------


class TestParseAbsolute:
    @pytest.mark.parametrize(
        "value",
        [
            "Thu, 15 Oct 2020 16:30:10 +0200",
            "2020-10-15 16:30:10 +0200",
            "2020-10-15T16:30:10+02:00",
            "2020-10-15T14:30:10Z",
        ],
    )
    def test_formats_with_offset(self, value):
        assert date.parse_absolute(value) == datetime(2020, 10, 15, 16, 30, 10, tzinfo=PLUS_TWO)

    def test_bare_date_is_local_midnight(self):
        parsed = date.parse_absolute("2020-10-15")
        assert (parsed.year, parsed.month, parsed.day) == (2020, 10, 15)
        assert (parsed.hour, parsed.minute, parsed.second) == (0, 0, 0)
        assert parsed.tzinfo is not None

    def test_unix_date_in_utc(self):
        parsed = date.parse_absolute("Thu Oct 15 16:30:10 UTC 2020")
        assert parsed == datetime(2020, 10, 15, 16, 30, 10, tzinfo=timezone.utc)

    def test_results_are_timezone_aware(self):
        assert date.parse_absolute("2020-10-15T16:30:10+02:00").utcoffset() == timedelta(hours=2)

    @pytest.mark.parametrize("value", ["", "bogus", "2020-13-45", "today", "15/10/2020"])
    def test_invalid(self, value):
        with pytest.raises(ParseError):
            date.parse_absolute(value)


# ---------------------------------------------------------------------------
# parse (relative)
# ---------------------------------------------------------------------------


class TestParseRelative:
    def test_absolute_wins(self, fixed_now):
        assert date.parse("2020-10-15T16:30:10+02:00") == datetime(2020, 10, 15, 16, 30, 10, tzinfo=PLUS_TWO)

    def test_now(self, fixed_now):
        assert date.parse("now") == fixed_now

    def test_today_is_midnight(self, fixed_now):
        assert date.parse("today") == datetime(2020, 9, 10, tzinfo=PLUS_TWO)

    def test_yesterday_and_tomorrow(self, fixed_now):
        assert date.parse("yesterday") == datetime(2020, 9, 9, tzinfo=PLUS_TWO)
        assert date.parse("tomorrow") == datetime(2020, 9, 11, tzinfo=PLUS_TWO)

    @pytest.mark.parametrize(
        "value, delta",
        [
            ("1 second ago", timedelta(seconds=1)),
            ("30 seconds ago", timedelta(seconds=30)),
            ("5 minutes ago", timedelta(minutes=5)),
            ("1 hour ago", timedelta(hours=1)),
            ("2 days ago", timedelta(days=2)),
            ("3 weeks ago", timedelta(weeks=3)),
            ("1 month ago", timedelta(days=30)),
            ("2 years ago", timedelta(days=730)),
            ("2 Days ago", timedelta(days=2)),
        ],
    )
    def test_ago(self, fixed_now, value, delta):
        assert date.parse(value) == fixed_now - delta

    @pytest.mark.parametrize("value", ["", "someday", "2 fortnights ago", "ago", "two days ago"])
    def test_unsupported(self, fixed_now, value):
        with pytest.raises(UnsupportedDateFormatError):
            date.parse(value)

    @pytest.mark.parametrize("value", ["5000 years ago", "-9000 years ago", "99999999999 years ago"])
    def test_out_of_range(self, fixed_now, value):
        with pytest.raises(ParseError, match="out of range"):
            date.parse(value)

    def test_unsupported_is_a_parse_error(self):
        assert issubclass(UnsupportedDateFormatError, ParseError)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormat:
    def test_rfc3339(self, fixed_now):
        assert date.format_rfc3339(fixed_now) == "2020-09-10T16:30:11+02:00"

    def test_rfc3339_utc_uses_z(self):
        moment = datetime(2020, 9, 10, 14, 30, 11, 123456, tzinfo=timezone.utc)
        assert date.format_rfc3339(moment) == "2020-09-10T14:30:11Z"

    def test_iso8601(self, fixed_now):
        assert date.format_iso8601(fixed_now) == "2020-09-10 16:30:11 +0200"

    def test_rfc2822(self, fixed_now):
        assert date.format_rfc2822(fixed_now) == "Thu, 10 Sep 2020 16:30:11 +0200"

    def test_format_with(self, fixed_now):
        assert date.format_with(fixed_now, date.DateFormat.ISO8601) == "2020-09-10 16:30:11 +0200"
        assert date.format_with(fixed_now, date.DateFormat.RELATIVE) == "Less than a second ago"

    @pytest.mark.parametrize(
        "delta, expected",
        [
            (timedelta(0), "Less than a second ago"),
            (timedelta(seconds=1), "1 second ago"),
            (timedelta(seconds=30), "30 seconds ago"),
            (timedelta(minutes=1), "About a minute ago"),
            (timedelta(minutes=5), "5 minutes ago"),
            (timedelta(hours=1), "About an hour ago"),
            (timedelta(hours=5), "5 hours ago"),
            (timedelta(days=3), "3 days ago"),
            (timedelta(weeks=3), "3 weeks ago"),
            (timedelta(days=90), "3 months ago"),
            (timedelta(days=3 * 365), "3 years ago"),
        ],
    )
    def test_relative(self, fixed_now, delta, expected):
        assert date.format_relative(fixed_now - delta) == expected


class TestMin:
    def test_min_sorts_before_real_dates(self, fixed_now):
        assert date.MIN < fixed_now
