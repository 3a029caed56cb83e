# scheduler/routers/admin.py
# Admin booking management. Every route requires the admin secret.

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status

from ..dependencies import get_booking_service, get_now, get_store, require_admin
from ..schemas.bookings import (
    BookingCreate,
    BookingCreatedResponse,
    BookingListResponse,
    BookingRead,
    BookingStats,
    BookingUpdate,
    RescheduleRequest,
    WhatsAppMessageRead,
)
from ..schemas.slots import SlotsResponse
from ..services.booking import BookingService
from ..services.messages import render_whatsapp_message, whatsapp_link
from ..services.storage import BookingStore
from .slots import build_slots_response, to_booking_request, to_created_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/bookings", response_model=BookingListResponse)
def list_bookings(service: BookingService = Depends(get_booking_service)):
    bookings = service.list_bookings()
    return BookingListResponse(
        bookings=[BookingRead.model_validate(b) for b in bookings],
        total_bookings=len(bookings),
        stats=BookingStats(
            total=len(bookings),
            unique_dates=len({b.date for b in bookings}),
        ),
    )


@router.post("/bookings", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_manual_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Manual booking: blocks and final-round reservations do not apply."""
    outcome = service.book(to_booking_request(data), as_admin=True)
    return to_created_response(outcome)


@router.get("/slots", response_model=SlotsResponse)
def list_admin_slots(
    store: BookingStore = Depends(get_store),
    service: BookingService = Depends(get_booking_service),
    now: datetime = Depends(get_now),
):
    """All slots, including day-blocked dates, with booking details."""
    return build_slots_response(store, service.effective_config(), now, public=False)


@router.get("/bookings/{date}/{slot_id}", response_model=BookingRead)
def get_booking(date: str, slot_id: str, service: BookingService = Depends(get_booking_service)):
    return service.get_booking(date, slot_id)


@router.patch("/bookings/{date}/{slot_id}", response_model=BookingRead)
def update_booking(
    date: str,
    slot_id: str,
    data: BookingUpdate,
    service: BookingService = Depends(get_booking_service),
):
    return service.update_booking(date, slot_id, data.model_dump(exclude_unset=True))


@router.delete("/bookings/{date}/{slot_id}")
def cancel_booking(date: str, slot_id: str, service: BookingService = Depends(get_booking_service)):
    service.cancel(date, slot_id)
    return {"success": True, "message": "Booking cancelled successfully"}


@router.post("/bookings/{date}/{slot_id}/reschedule", response_model=BookingRead)
def reschedule_booking(
    date: str,
    slot_id: str,
    data: RescheduleRequest,
    service: BookingService = Depends(get_booking_service),
):
    outcome = service.reschedule(date, slot_id, data.new_date, data.new_start_time)
    return outcome.booking


@router.post("/bookings/{date}/{slot_id}/meet-link", response_model=BookingRead)
def generate_meet_link(date: str, slot_id: str, service: BookingService = Depends(get_booking_service)):
    return service.generate_meet_link(date, slot_id)


@router.get("/bookings/{date}/{slot_id}/whatsapp", response_model=WhatsAppMessageRead)
def get_whatsapp_message(date: str, slot_id: str, service: BookingService = Depends(get_booking_service)):
    """Confirmation text rendered from the configured template, plus a wa.me link."""
    booking = service.get_booking(date, slot_id)
    message = render_whatsapp_message(service.effective_config().whatsapp_template, booking)
    return WhatsAppMessageRead(message=message, link=whatsapp_link(booking.whatsapp, message))
