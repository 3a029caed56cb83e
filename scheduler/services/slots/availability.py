# scheduler/services/slots/availability.py
"""
Availability resolution.

Annotates generated slots with store state:
- is_booked: a booking exists for (date, slot_id)
- is_blocked: slot block OR day block
- is_past: slot end is not after "now" (business-local)
- is_final_round: admin marker, passed through for callers to filter

Public views drop day-blocked dates and booking details; admin views keep
every slot so blocks can be lifted.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..storage import BookingRecord, BookingStore
from .config import SlotConfig
from .generator import CandidateSlot, booking_horizon, generate_slots

logger = logging.getLogger(__name__)


@dataclass
class AnnotatedSlot:
    slot: CandidateSlot
    is_booked: bool = False
    is_blocked: bool = False
    is_day_blocked: bool = False
    is_past: bool = False
    is_final_round: bool = False
    booking: Optional[BookingRecord] = None

    @property
    def id(self) -> str:
        return self.slot.id

    @property
    def date(self) -> str:
        return self.slot.date.isoformat()

    @property
    def is_available(self) -> bool:
        return not (self.is_booked or self.is_blocked or self.is_past)


def is_slot_past(slot: CandidateSlot, now: datetime) -> bool:
    return slot.ends_at(now.tzinfo) <= now


def resolve_slots(
    store: BookingStore,
    config: SlotConfig,
    now: datetime,
    public: bool = False,
) -> list[AnnotatedSlot]:
    """
    Resolve the status of every slot in the booking horizon.

    Args:
        store: Booking store
        config: Effective slot configuration
        now: Current business-local time
        public: Hide day-blocked dates and booking details

    Returns:
        Annotated slots ordered by date, then start time.
    """
    candidates = generate_slots(config, now)
    dates = booking_horizon(config, now)

    # One pass per date over bookings and markers
    day_blocks = store.blocked_days(dates)
    bookings: dict[str, dict[str, BookingRecord]] = {}
    slot_blocks: dict[str, set[str]] = {}
    final_round: dict[str, set[str]] = {}
    for dt in dates:
        key = dt.isoformat()
        bookings[key] = store.list_by_date(key)
        slot_blocks[key] = store.blocked_slots(key)
        final_round[key] = store.final_round_slots(key)

    result: list[AnnotatedSlot] = []
    for slot in candidates:
        dt = slot.date.isoformat()
        day_blocked = dt in day_blocks
        if public and day_blocked:
            continue

        booking = bookings[dt].get(slot.id)
        result.append(AnnotatedSlot(
            slot=slot,
            is_booked=booking is not None,
            is_blocked=day_blocked or slot.id in slot_blocks[dt],
            is_day_blocked=day_blocked,
            is_past=is_slot_past(slot, now),
            is_final_round=slot.id in final_round[dt],
            booking=None if public else booking,
        ))

    return result


def summarize(slots: list[AnnotatedSlot]) -> dict:
    """Counts for list responses."""
    return {
        "total_slots": len(slots),
        "available_slots": sum(1 for s in slots if s.is_available),
        "booked_slots": sum(1 for s in slots if s.is_booked),
    }
