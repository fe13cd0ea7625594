from datetime import time

import pytest

from validation import (
    EntryValidationError,
    check_span,
    compute_duration,
    minutes_between,
    parse_hhmm,
)


@pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "", None, "09:00 ", "09:00\n", "0900", 900])
def test_parse_hhmm_rejects_malformed(value):
    assert parse_hhmm(value) is None


def test_parse_hhmm_accepts_bounds():
    assert parse_hhmm("00:00") == time(0, 0)
    assert parse_hhmm("23:59") == time(23, 59)


def test_minutes_between_overnight():
    assert minutes_between(time(23, 0), time(1, 0)) == 120


def test_compute_duration_same_day():
    assert compute_duration("08:15", "16:45") == 510


def test_compute_duration_overnight():
    assert compute_duration("23:00", "01:00") == 120


def test_compute_duration_rejects_bad_time():
    with pytest.raises(EntryValidationError, match="HH:MM"):
        compute_duration("9:00", "10:00")


def test_compute_duration_rejects_zero_span():
    with pytest.raises(EntryValidationError, match="no duration"):
        compute_duration("10:00", "10:00")


def test_span_boundary():
    check_span(1440)
    with pytest.raises(EntryValidationError, match="one day"):
        check_span(1441)


def test_break_equal_to_span_rejected():
    with pytest.raises(EntryValidationError, match="Break"):
        compute_duration("09:00", "10:00", break_minutes=60)


def test_break_one_less_than_span():
    assert compute_duration("09:00", "10:00", break_minutes=59) == 1


def test_negative_break_rejected():
    with pytest.raises(EntryValidationError, match="negative"):
        compute_duration("09:00", "10:00", break_minutes=-5)


def test_time_format_checked_before_span():
    # Both problems present; the format error wins
    with pytest.raises(EntryValidationError, match="HH:MM"):
        compute_duration("10:00", "1000")
