from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
import re

from app.core.exceptions import InvalidFormatError, InvalidTimeRangeError
from app.models.timetable_entry import Weekday

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
DATE_FORMAT = "%Y-%m-%d"
MINUTES_PER_DAY = 24 * 60

WEEKDAY_ORDER: list[Weekday] = list(Weekday)


def parse_time(value: str) -> int:
    """Return minutes since midnight for an ``H:MM`` or ``HH:MM`` string."""
    if value is None:
        raise InvalidFormatError("Invalid time format: None. Expected format is HH:MM")
    match = TIME_PATTERN.fullmatch(value)
    if match is None:
        raise InvalidFormatError(
            f"Invalid time format: {value}. Expected format is HH:MM",
            details={"value": value},
        )
    return int(match.group(1)) * 60 + int(match.group(2))


def parse_time_range(start_time: str, end_time: str) -> tuple[int, int]:
    start = parse_time(start_time)
    end = parse_time(end_time)
    if end <= start:
        raise InvalidTimeRangeError(details={"start_time": start_time, "end_time": end_time})
    return start, end


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_day(value: str | Weekday) -> Weekday:
    if isinstance(value, Weekday):
        return value
    try:
        return Weekday((value or "").strip().capitalize())
    except ValueError as exc:
        raise InvalidFormatError(
            f"Invalid day: {value}. Expected one of {', '.join(day.value for day in Weekday)}",
            details={"value": value},
        ) from exc


def parse_date(value: str | date) -> date:
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime((value or "").strip(), DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidFormatError(
            f"Invalid date format: {value}. Expected format is YYYY-MM-DD",
            details={"value": value},
        ) from exc


def next_weekday(day: Weekday) -> Weekday:
    index = WEEKDAY_ORDER.index(day)
    return WEEKDAY_ORDER[(index + 1) % len(WEEKDAY_ORDER)]


@dataclass(frozen=True, order=True)
class TimeInterval:
    """Half-open ``[start_minute, end_minute)`` range on a weekday."""

    day: Weekday
    start_minute: int
    end_minute: int

    def __post_init__(self) -> None:
        if not (0 <= self.start_minute < MINUTES_PER_DAY and 0 <= self.end_minute < MINUTES_PER_DAY):
            raise InvalidFormatError("Time must fall between 00:00 and 23:59")
        if self.end_minute <= self.start_minute:
            raise InvalidTimeRangeError(
                details={"start_time": format_minutes(self.start_minute), "end_time": format_minutes(self.end_minute)}
            )

    @classmethod
    def parse(cls, day: str | Weekday, start_time: str, end_time: str) -> "TimeInterval":
        start, end = parse_time_range(start_time, end_time)
        return cls(parse_day(day), start, end)

    @property
    def start_time(self) -> str:
        return format_minutes(self.start_minute)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end_minute)

    @property
    def duration(self) -> int:
        return self.end_minute - self.start_minute

    @property
    def label(self) -> str:
        return f"{self.day.value} ({self.start_time} - {self.end_time})"

    def overlaps(self, other: "TimeInterval") -> bool:
        return overlaps(self, other)


def minutes_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and start_b < end_a


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    if a.day != b.day:
        return False
    return minutes_overlap(a.start_minute, a.end_minute, b.start_minute, b.end_minute)
