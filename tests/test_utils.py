"""Tests for date/time helpers."""

import pytest

from entity_sync.utils.datetime import (
    is_integer_timestamp,
    is_timestamp,
    parse_datetime_string,
    time_after_time,
)


class TestTimestamps:
    """Test timestamp detection and parsing."""

    @pytest.mark.parametrize("value,expected", [
        (0, True),
        (1700000000, True),
        ("1700000000", True),
        (-1, False),
        ("-1", False),
        ("17e8", False),
        (1.5, False),
        (True, False),
        (None, False),
    ])
    def test_is_timestamp(self, value, expected):
        assert is_timestamp(value) is expected

    def test_integer_timestamp_rejects_strings(self):
        assert not is_integer_timestamp("10")

    def test_parse_datetime_string(self):
        assert parse_datetime_string("2023-11-14T22:13:20Z") == 1700000000
        assert parse_datetime_string("2023-11-14 22:13:20") == 1700000000
        assert parse_datetime_string("2023-11-14T23:13:20+01:00") == 1700000000

    @pytest.mark.parametrize("value", ["", "not a date", None])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError):
            parse_datetime_string(value)


class TestTimeAfterTime:
    """Test window end calculation."""

    def test_interval(self):
        assert time_after_time(100, 50) == 150

    def test_capped_at_max_time(self):
        assert time_after_time(100, 50, 120) == 120
        assert time_after_time(100, 50, 500) == 150

    def test_max_time_only(self):
        assert time_after_time(100, max_time=120) == 120

    @pytest.mark.parametrize("args", [
        ("100", 50, None),
        (100, 0, None),
        (100, -5, None),
        (100, 50, "later"),
        (100, None, None),
    ])
    def test_invalid_arguments(self, args):
        with pytest.raises(ValueError):
            time_after_time(*args)
