"""Tests for duration and time-of-day parsing."""

from datetime import time

import pytest

from todoapp.config.duration import (
    DurationParseError,
    describe_seconds,
    parse_duration,
    parse_time_of_day,
    validate_duration_range,
)


class TestDurationParsing:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("30s", 30),
            ("15m", 900),
            ("24h", 86400),
            ("2d", 172800),
            ("1d12h", 129600),
            ("1h 30m", 5400),
            ("PT30M", 1800),
            ("PT12H", 43200),
            ("P1D", 86400),
            ("P1DT12H", 129600),
            ("pt1h", 3600),
        ],
    )
    def test_valid_durations(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "   ", "abc", "24hours", "P", "PT", "P1Y", "0h"])
    def test_invalid_durations(self, value):
        with pytest.raises(DurationParseError):
            parse_duration(value)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_duration("nonsense")


class TestDurationRange:
    def test_too_short(self):
        with pytest.raises(DurationParseError, match="too short"):
            validate_duration_range(60)

    def test_too_long(self):
        with pytest.raises(DurationParseError, match="too long"):
            validate_duration_range(8 * 86400)

    def test_in_range(self):
        validate_duration_range(86400)

    def test_label_in_message(self):
        with pytest.raises(DurationParseError, match="--window"):
            validate_duration_range(1, label="--window")


class TestTimeOfDay:
    def test_valid(self):
        assert parse_time_of_day("08:00") == time(8, 0)
        assert parse_time_of_day(" 7:05 ") == time(7, 5)

    @pytest.mark.parametrize("value", ["", "8", "24:00", "12:60", "noon"])
    def test_invalid(self, value):
        with pytest.raises(DurationParseError):
            parse_time_of_day(value)


def test_describe_seconds():
    assert describe_seconds(1) == "1 second"
    assert describe_seconds(300) == "5 minutes"
    assert describe_seconds(3600) == "1 hour"
    assert describe_seconds(2 * 86400) == "2 days"
