# scheduler/services/slots/generator.py
"""
Slot generation.

Derives the bookable slot universe from a SlotConfig and "now":

    horizon:  tomorrow .. tomorrow + number_of_days - 1
    per day:  cursor = start_hour * 60
              while cursor < end_hour * 60:
                  emit [cursor, cursor + duration)
                  cursor += duration + break

Contains no storage access; bookings and blocks are applied by the resolver.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from .config import SlotConfig, minutes_to_time_str

_SLOT_ID_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}):(\d{2})-(\d{2})$")


@dataclass(frozen=True)
class CandidateSlot:
    date: date
    start_minutes: int
    end_minutes: int

    @property
    def id(self) -> str:
        return make_slot_id(self.date, self.start_time)

    @property
    def start_time(self) -> str:
        return minutes_to_time_str(self.start_minutes)

    @property
    def end_time(self) -> str:
        return minutes_to_time_str(self.end_minutes)

    @property
    def display_time(self) -> str:
        return f"{self.start_time} - {self.end_time}"

    def starts_at(self, tzinfo=None) -> datetime:
        return datetime.combine(self.date, time(0), tzinfo=tzinfo) + timedelta(minutes=self.start_minutes)

    def ends_at(self, tzinfo=None) -> datetime:
        return datetime.combine(self.date, time(0), tzinfo=tzinfo) + timedelta(minutes=self.end_minutes)


def make_slot_id(dt: date | str, start_time: str) -> str:
    """Slot id "YYYY-MM-DD:HH-MM"."""
    date_str = dt.isoformat() if isinstance(dt, date) else dt
    return f"{date_str}:{start_time.replace(':', '-')}"


def parse_slot_id(slot_id: str) -> tuple[date, str]:
    """Inverse of make_slot_id. Raises ValueError on malformed ids."""
    match = _SLOT_ID_RE.match(slot_id or "")
    if not match:
        raise ValueError(f"Malformed slot id: {slot_id!r}")
    date_str, hour, minute = match.groups()
    return date.fromisoformat(date_str), f"{hour}:{minute}"


def booking_horizon(config: SlotConfig, now: datetime) -> list[date]:
    """Dates offered for booking. Today is never included."""
    first = now.date() + timedelta(days=1)
    return [first + timedelta(days=i) for i in range(config.number_of_days)]


def generate_day(config: SlotConfig, target_date: date) -> list[CandidateSlot]:
    """Candidate slots for a single date."""
    slots: list[CandidateSlot] = []
    cursor = config.day_start_minutes

    while cursor < config.day_end_minutes:
        end = cursor + config.slot_duration_minutes
        if config.overflow == "allow" or end <= config.day_end_minutes:
            slots.append(CandidateSlot(target_date, cursor, end))
        cursor += config.step_minutes

    return slots


def generate_slots(config: SlotConfig, now: datetime) -> list[CandidateSlot]:
    """
    Generate all candidate slots for the booking horizon.

    Args:
        config: Effective slot configuration
        now: Current business-local time

    Returns:
        Slots ordered by date, then start time.
    """
    slots: list[CandidateSlot] = []
    for dt in booking_horizon(config, now):
        slots.extend(generate_day(config, dt))
    return slots


def find_slot(
    config: SlotConfig,
    now: datetime,
    target_date: date,
    start_time: str,
) -> CandidateSlot | None:
    """Locate a generated slot by (date, start time), or None if not offered."""
    if target_date not in booking_horizon(config, now):
        return None
    for slot in generate_day(config, target_date):
        if slot.start_time == start_time:
            return slot
    return None
