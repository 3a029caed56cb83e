# scheduler/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from typing import Optional

from .base import CamelModel
from .bookings import BookingRead
from .config import SlotConfigRead


class SlotRead(CamelModel):
    """A generated slot with its current status."""
    id: str
    date: str
    start_time: str
    end_time: str
    display_time: str
    display_time_12h: str

    is_booked: bool
    is_blocked: bool
    is_day_blocked: bool = False
    is_past: bool
    is_final_round: bool = False

    # Admin views only
    booking: Optional[BookingRead] = None


class SlotsResponse(CamelModel):
    slots: list[SlotRead]
    total_slots: int
    available_slots: int
    booked_slots: int
    blocked_days: list[str]
    config: SlotConfigRead
