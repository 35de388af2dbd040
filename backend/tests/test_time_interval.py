import pytest

from app.core.exceptions import InvalidFormatError, InvalidTimeRangeError
from app.models.timetable_entry import Weekday
from app.services.time_interval import (
    TimeInterval,
    next_weekday,
    overlaps,
    parse_date,
    parse_day,
    parse_time,
    parse_time_range,
)


def interval(day: str, start: str, end: str) -> TimeInterval:
    return TimeInterval.parse(day, start, end)


@pytest.mark.parametrize(
    ("value", "minutes"),
    [("00:00", 0), ("9:05", 545), ("09:05", 545), ("23:59", 1439)],
)
def test_parse_time_accepts_24_hour_values(value, minutes):
    assert parse_time(value) == minutes


@pytest.mark.parametrize("value", ["25:00", "24:00", "9:60", "0900", "9:5", "ab:cd", "", " 12:30 ", "12:30\n"])
def test_parse_time_rejects_malformed_values(value):
    with pytest.raises(InvalidFormatError):
        parse_time(value)


def test_zero_length_range_is_invalid():
    with pytest.raises(InvalidTimeRangeError):
        parse_time_range("09:00", "09:00")
    with pytest.raises(InvalidTimeRangeError):
        interval("Monday", "10:00", "09:00")


def test_format_error_wins_over_range_error():
    with pytest.raises(InvalidFormatError):
        parse_time_range("25:00", "09:00")


def test_intervals_on_different_days_never_overlap():
    assert not overlaps(interval("Monday", "09:00", "10:00"), interval("Tuesday", "09:00", "10:00"))


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        (("09:00", "10:00"), ("09:30", "10:30"), True),
        (("09:00", "12:00"), ("10:00", "11:00"), True),
        (("09:00", "10:00"), ("10:00", "11:00"), False),
        (("09:00", "10:00"), ("11:00", "12:00"), False),
    ],
)
def test_overlap_is_symmetric(a, b, expected):
    first = interval("Wednesday", *a)
    second = interval("Wednesday", *b)
    assert overlaps(first, second) is expected
    assert overlaps(second, first) is expected


def test_interval_overlaps_itself():
    slot = interval("Friday", "14:00", "14:01")
    assert slot.overlaps(slot)


def test_interval_properties():
    slot = interval("monday", "9:00", "10:30")
    assert slot.day == Weekday.monday
    assert slot.start_time == "09:00"
    assert slot.end_time == "10:30"
    assert slot.duration == 90
    assert slot.label == "Monday (09:00 - 10:30)"


def test_parse_day_rejects_weekend_and_unknown_names():
    assert parse_day("TUESDAY") == Weekday.tuesday
    with pytest.raises(InvalidFormatError):
        parse_day("Saturday")
    with pytest.raises(InvalidFormatError):
        parse_day("Someday")


def test_parse_date():
    assert parse_date("2025-03-10").isoformat() == "2025-03-10"
    with pytest.raises(InvalidFormatError):
        parse_date("10/03/2025")


def test_next_weekday_wraps_friday_to_monday():
    assert next_weekday(Weekday.monday) == Weekday.tuesday
    assert next_weekday(Weekday.friday) == Weekday.monday
