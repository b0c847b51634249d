import re
from dataclasses import dataclass
from datetime import date, datetime, time

from scheduling.errors import ValidationError

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def minutes_of(value: time) -> int:
    return value.hour * 60 + value.minute


def parse_date(value) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("bookingDate is required (YYYY-MM-DD)")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError("Invalid bookingDate. Use YYYY-MM-DD")


def parse_time(value, field: str = "time") -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        raise ValidationError(f"{field} is required (HH:MM)")
    m = _TIME_RE.match(value.strip())
    if not m:
        raise ValidationError(f"Invalid {field}. Use 24-hour HH:MM")
    hour, minute, second = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    if hour > 23 or minute > 59 or second != 0:
        raise ValidationError(f"Invalid {field}. Use 24-hour HH:MM")
    return time(hour, minute)


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    # Half-open intervals: touching at a boundary is not an overlap
    return a_start < b_end and b_start < a_end


@dataclass(frozen=True)
class TimeWindow:
    booking_date: date
    start: time
    end: time

    @property
    def start_minutes(self) -> int:
        return minutes_of(self.start)

    @property
    def end_minutes(self) -> int:
        return minutes_of(self.end)

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def overlaps(self, start: time, end: time) -> bool:
        return overlaps(self.start_minutes, self.end_minutes, minutes_of(start), minutes_of(end))

    def as_dict(self) -> dict:
        return {
            "bookingDate": self.booking_date.isoformat(),
            "startTime": self.start.strftime("%H:%M"),
            "endTime": self.end.strftime("%H:%M"),
        }


def parse_window(booking_date, start_time, end_time) -> TimeWindow:
    window = TimeWindow(
        booking_date=parse_date(booking_date),
        start=parse_time(start_time, "startTime"),
        end=parse_time(end_time, "endTime"),
    )
    if window.duration_minutes <= 0:
        raise ValidationError("End time must be after start time")
    return window
