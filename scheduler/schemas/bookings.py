# scheduler/schemas/bookings.py

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import CamelModel


class BookingCreate(CamelModel):
    name: str
    email: str
    whatsapp: str
    joining_preference: str

    date: str = Field(description="Date in YYYY-MM-DD format")
    start_time: str = Field(description="Time in HH:MM format")
    # Accepted for compatibility; the generated slot decides the end time
    end_time: Optional[str] = None
    slot_id: Optional[str] = None

    is_final_round: bool = False
    current_ctc: Optional[str] = None
    expected_ctc: Optional[str] = None

    # Admin secret for manual bookings
    secret: Optional[str] = None


class BookingRead(CamelModel):
    id: str
    name: str
    email: str
    whatsapp: str
    joining_preference: Optional[str] = None

    slot_id: str
    date: str
    start_time: str
    end_time: str
    booked_at: datetime

    meet_link: Optional[str] = None
    event_id: Optional[str] = None

    is_final_round: bool = False
    final_round_eligible: bool = False
    prev_booking_id: Optional[str] = None
    current_ctc: Optional[str] = None
    expected_ctc: Optional[str] = None

    whatsapp_sent: bool = False
    booked_by_admin: bool = False


class BookingDetails(CamelModel):
    date: str
    time: str
    name: str
    email: str
    whatsapp: str
    meet_link: Optional[str] = None


class BookingCreatedResponse(CamelModel):
    success: bool = True
    booking_id: str
    message: str
    details: BookingDetails


class BookingStats(CamelModel):
    total: int
    unique_dates: int


class BookingListResponse(CamelModel):
    bookings: list[BookingRead]
    total_bookings: int
    stats: BookingStats


class BookingUpdate(CamelModel):
    """Fields an admin may edit in place."""
    name: Optional[str] = None
    email: Optional[str] = None
    whatsapp: Optional[str] = None
    joining_preference: Optional[str] = None
    current_ctc: Optional[str] = None
    expected_ctc: Optional[str] = None
    meet_link: Optional[str] = None
    whatsapp_sent: Optional[bool] = None
    final_round_eligible: Optional[bool] = None


class RescheduleRequest(CamelModel):
    new_date: str
    new_start_time: str


class WhatsAppMessageRead(CamelModel):
    message: str
    link: str
