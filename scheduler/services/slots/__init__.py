# scheduler/services/slots/__init__.py
"""
Slots module.

Generator: deterministic slot universe from SlotConfig + now (no storage)
Resolver: generated slots annotated with bookings, blocks and past status
"""

from .config import SlotConfig, minutes_to_time_str, time_str_to_minutes
from .generator import (
    CandidateSlot,
    booking_horizon,
    find_slot,
    generate_slots,
    make_slot_id,
    parse_slot_id,
)
from .availability import AnnotatedSlot, resolve_slots, summarize

__all__ = [
    "SlotConfig",
    "minutes_to_time_str",
    "time_str_to_minutes",
    "CandidateSlot",
    "booking_horizon",
    "find_slot",
    "generate_slots",
    "make_slot_id",
    "parse_slot_id",
    "AnnotatedSlot",
    "resolve_slots",
    "summarize",
]
