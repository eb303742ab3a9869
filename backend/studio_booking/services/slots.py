"""
Time slot model.

A slot is a half-open interval [start, end) on one civil date for one
resource type. Pure values only: nothing here touches storage.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from studio_booking.models.enums import ResourceType

_CLOCK_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def parse_clock(value: str) -> time:
    """Parse a 24h "HH:MM" string."""
    match = _CLOCK_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time format: {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def format_clock(value: time) -> str:
    return value.strftime("%H:%M")


@dataclass(frozen=True)
class TimeSlot:
    resource_type: ResourceType
    date: date
    start: time
    end: time

    @property
    def label(self) -> str:
        return format_clock(self.start)

    def as_range(self) -> dict[str, str]:
        return {"start_time": format_clock(self.start), "end_time": format_clock(self.end)}


def intervals_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """Half-open overlap. Zero-length intervals never overlap anything."""
    if start_a >= end_a or start_b >= end_b:
        return False
    return start_a < end_b and start_b < end_a


def overlaps(a: TimeSlot, b: TimeSlot) -> bool:
    if a.resource_type != b.resource_type or a.date != b.date:
        return False
    return intervals_overlap(a.start, a.end, b.start, b.end)


class OperatingHours:
    """
    The enumerated set of bookable slot boundaries for a day, e.g.
    09:00, 10:00, ..., 18:00 for hourly slots from opening to closing.
    """

    def __init__(self, open_time: time, close_time: time, slot_minutes: int = 60):
        if slot_minutes <= 0:
            raise ValueError("slot_minutes must be positive")
        if close_time <= open_time:
            raise ValueError("close_time must be after open_time")

        step = timedelta(minutes=slot_minutes)
        anchor = date.min
        cursor = datetime.combine(anchor, open_time)
        closing = datetime.combine(anchor, close_time)
        boundaries = []
        while cursor <= closing:
            boundaries.append(cursor.time())
            cursor += step
        if len(boundaries) < 2:
            raise ValueError("operating hours must contain at least one slot")

        self.open_time = open_time
        self.close_time = boundaries[-1]
        self.slot_minutes = slot_minutes
        self.boundaries: tuple[time, ...] = tuple(boundaries)
        self._boundary_set = frozenset(boundaries)

    @classmethod
    def from_settings(cls, settings) -> "OperatingHours":
        return cls(
            parse_clock(settings.BOOKING_OPEN_TIME),
            parse_clock(settings.BOOKING_CLOSE_TIME),
            settings.BOOKING_SLOT_MINUTES,
        )

    def is_boundary(self, value: time) -> bool:
        return value in self._boundary_set

    def is_valid(self, start: time, end: time) -> bool:
        return end > start and self.is_boundary(start) and self.is_boundary(end)

    def grid(self, resource_type: ResourceType, day: date) -> list[TimeSlot]:
        return [
            TimeSlot(resource_type, day, start, end)
            for start, end in zip(self.boundaries, self.boundaries[1:])
        ]

    def __repr__(self) -> str:
        return (
            f"<OperatingHours({format_clock(self.open_time)}-{format_clock(self.close_time)}, "
            f"every {self.slot_minutes}m)>"
        )
