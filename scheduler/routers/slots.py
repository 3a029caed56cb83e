# scheduler/routers/slots.py
"""
Slots API endpoints.

GET  /slots - Public slot list with status flags
POST /slots - Book a slot
"""

import logging
from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends, status

from ..config import Settings
from ..dependencies import (
    check_admin_secret,
    get_booking_service,
    get_now,
    get_settings,
    get_store,
)
from ..schemas.bookings import BookingCreate, BookingCreatedResponse, BookingDetails, BookingRead
from ..schemas.config import SlotConfigRead
from ..schemas.slots import SlotRead, SlotsResponse
from ..services.booking import BookingOutcome, BookingRequest, BookingService
from ..services.messages import format_time_12h
from ..services.slots import AnnotatedSlot, SlotConfig, booking_horizon, resolve_slots, summarize
from ..services.storage import BookingStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/slots", tags=["slots"])


def to_slot_read(item: AnnotatedSlot) -> SlotRead:
    slot = item.slot
    return SlotRead(
        id=slot.id,
        date=item.date,
        start_time=slot.start_time,
        end_time=slot.end_time,
        display_time=slot.display_time,
        display_time_12h=f"{format_time_12h(slot.start_time)} - {format_time_12h(slot.end_time)}",
        is_booked=item.is_booked,
        is_blocked=item.is_blocked,
        is_day_blocked=item.is_day_blocked,
        is_past=item.is_past,
        is_final_round=item.is_final_round,
        booking=BookingRead.model_validate(item.booking) if item.booking else None,
    )


def to_config_read(config: SlotConfig) -> SlotConfigRead:
    return SlotConfigRead(**asdict(config))


def build_slots_response(
    store: BookingStore,
    config: SlotConfig,
    now: datetime,
    public: bool,
) -> SlotsResponse:
    slots = resolve_slots(store, config, now, public=public)
    blocked_days = store.blocked_days(booking_horizon(config, now))
    return SlotsResponse(
        slots=[to_slot_read(s) for s in slots],
        blocked_days=sorted(blocked_days),
        config=to_config_read(config),
        **summarize(slots),
    )


def to_created_response(outcome: BookingOutcome) -> BookingCreatedResponse:
    booking = outcome.booking
    return BookingCreatedResponse(
        booking_id=booking.id,
        message="Slot booked successfully!",
        details=BookingDetails(
            date=booking.date,
            time=f"{booking.start_time} - {booking.end_time}",
            name=booking.name,
            email=booking.email,
            whatsapp=booking.whatsapp,
            meet_link=booking.meet_link,
        ),
    )


def to_booking_request(data: BookingCreate) -> BookingRequest:
    return BookingRequest(
        name=data.name,
        email=data.email,
        whatsapp=data.whatsapp,
        joining_preference=data.joining_preference,
        date=data.date,
        start_time=data.start_time,
        slot_id=data.slot_id,
        final_round=data.is_final_round,
        current_ctc=data.current_ctc,
        expected_ctc=data.expected_ctc,
    )


@router.get("", response_model=SlotsResponse)
def list_slots(
    store: BookingStore = Depends(get_store),
    service: BookingService = Depends(get_booking_service),
    now: datetime = Depends(get_now),
):
    """Slots for the booking horizon; day-blocked dates are left out."""
    return build_slots_response(store, service.effective_config(), now, public=True)


@router.post("", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
    settings: Settings = Depends(get_settings),
):
    """Book a slot. A body "secret" marks a manual admin booking."""
    as_admin = False
    if data.secret is not None:
        check_admin_secret(data.secret, settings)
        as_admin = True

    outcome = service.book(to_booking_request(data), as_admin=as_admin)
    return to_created_response(outcome)
