"""
Hour slots on a fixed grid, as half-open ``[open, close)`` minute ranges.

"00:00" as a closing hour means end of day (24:00), never the start of the
next one.
"""

from dataclasses import dataclass
from typing import Iterable, List

from services.errors import InvalidSlotRange

MINUTES_PER_DAY = 24 * 60
SLOT_MINUTES = 60


def to_minutes(value: str, closing: bool = False) -> int:
    try:
        hours, minutes = value.strip().split(":")
        hours, minutes = int(hours), int(minutes)
    except (AttributeError, ValueError):
        raise InvalidSlotRange(f"Invalid hour format: {value!r}. Use HH:MM")

    if hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise InvalidSlotRange(f"Invalid hour: {value!r}")

    total = hours * 60 + minutes
    if closing and total == 0:
        return MINUTES_PER_DAY
    return total


def to_hour(minutes: int) -> str:
    minutes = min(max(minutes, 0), MINUTES_PER_DAY)
    if minutes == MINUTES_PER_DAY:
        return "00:00"
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True, order=True)
class Slot:
    start: int  # minutes from midnight
    end: int

    @classmethod
    def from_hours(cls, open_hour: str, close_hour: str) -> "Slot":
        return cls(to_minutes(open_hour), to_minutes(close_hour, closing=True))

    @classmethod
    def parse(cls, text: str) -> "Slot":
        """Parse "07:00-08:00"."""
        parts = (text or "").replace("–", "-").split("-")
        if len(parts) != 2:
            raise InvalidSlotRange(f"Invalid slot: {text!r}. Use HH:MM-HH:MM")
        return cls.from_hours(parts[0], parts[1])

    @property
    def open_hour(self) -> str:
        return to_hour(self.start)

    @property
    def close_hour(self) -> str:
        return to_hour(self.end)

    def overlaps(self, other: "Slot") -> bool:
        return (self.start < other.end and self.end > other.start) or self == other

    def __str__(self):
        return f"{self.open_hour}-{self.close_hour}"


def validate_grid(slot: Slot, slot_minutes: int = SLOT_MINUTES) -> Slot:
    if slot.end <= slot.start:
        raise InvalidSlotRange(f"Slot {slot} has zero or negative length")
    if slot.start % slot_minutes or slot.end - slot.start != slot_minutes:
        raise InvalidSlotRange(f"Slot {slot} is not on the {slot_minutes}-minute grid")
    return slot


def parse_slots(values: Iterable[str], slot_minutes: int = SLOT_MINUTES) -> List[Slot]:
    """Parse, grid-check and sort slot strings; they must form one contiguous range."""
    slots = sorted(validate_grid(Slot.parse(v), slot_minutes) for v in values or [])
    if not slots:
        raise InvalidSlotRange("At least one slot is required")
    for prev, nxt in zip(slots, slots[1:]):
        if prev.end != nxt.start:
            raise InvalidSlotRange(f"Slots {prev} and {nxt} are not contiguous")
    return slots


def build_slots(start_time: str, end_time: str, slot_minutes: int = SLOT_MINUTES) -> List[Slot]:
    """Split a start/end range into grid slots; the range must be a positive multiple of the grid."""
    start = to_minutes(start_time)
    end = to_minutes(end_time, closing=True)
    if end <= start:
        raise InvalidSlotRange(f"End time {end_time} must be after start time {start_time}")
    if start % slot_minutes or (end - start) % slot_minutes:
        raise InvalidSlotRange(f"Time range must align to {slot_minutes}-minute slots")
    return [Slot(m, m + slot_minutes) for m in range(start, end, slot_minutes)]


def find_conflicts(candidates: Iterable[Slot], existing: Iterable[Slot]) -> List[Slot]:
    existing = list(existing)
    return [c for c in candidates if any(c.overlaps(e) for e in existing)]
