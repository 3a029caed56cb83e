# scheduler/services/booking.py
"""
Booking transaction.

book() runs each gate in order and stops at the first failure:

1. required fields present (request schema)
2. field validation (name / email / WhatsApp format)
3. slot re-check against the store at call time: booked, blocked, past,
   final-round reservation
4. calendar event, best effort: its failure is logged and returned next to
   the booking, never raised
5. atomic create-if-absent; losing it is a ConflictError

The check in step 3 is a fast path only. Step 5 is the one that decides.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..errors import (
    ConflictError,
    ExternalIntegrationError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from .google_calendar import CalendarEvent
from .slot_settings import business_now, load_slot_config
from .slots import CandidateSlot, SlotConfig, find_slot, make_slot_id
from .slots.availability import is_slot_past
from .storage import BookingRecord, BookingStore
from .validation import ensure_valid_booking_form, sanitize_input, validate_email, validate_name, validate_whatsapp

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "This slot has already been booked. Please choose another time."

# "HH:MM", hour 00-23, or the end-of-day "24:00"
START_TIME_RE = re.compile(r"(?:[01]\d|2[0-3]):[0-5]\d|24:00")

EDITABLE_FIELDS = {
    "name",
    "email",
    "whatsapp",
    "joining_preference",
    "current_ctc",
    "expected_ctc",
    "meet_link",
    "whatsapp_sent",
    "final_round_eligible",
}


@dataclass
class BookingRequest:
    name: str
    email: str
    whatsapp: str
    date: str
    start_time: str
    joining_preference: Optional[str] = None
    slot_id: Optional[str] = None
    final_round: bool = False
    current_ctc: Optional[str] = None
    expected_ctc: Optional[str] = None


@dataclass
class BookingOutcome:
    """A committed booking and, separately, what happened to its calendar event."""
    booking: BookingRecord
    calendar_error: Optional[Exception] = field(default=None)


class BookingService:

    def __init__(
        self,
        store: BookingStore,
        settings: Settings,
        calendar=None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.settings = settings
        self.calendar = calendar
        self.clock = clock or (lambda: business_now(settings))

    # ── Slot lookup ──────────────────────────────────────────────────────

    def _parse_target(self, date_str: str, start_time: str) -> tuple[date, str]:
        """Parse client-supplied (date, start) without touching the store."""
        try:
            target_date = date.fromisoformat(date_str)
        except (TypeError, ValueError):
            raise ValidationError("Invalid date, expected YYYY-MM-DD")
        if not isinstance(start_time, str) or not START_TIME_RE.fullmatch(start_time):
            raise ValidationError("Invalid start time, expected HH:MM")
        return target_date, start_time

    def _locate(self, target_date: date, start: str, config: SlotConfig, now: datetime) -> CandidateSlot:
        """Resolve a parsed (date, start) to a generated slot."""
        slot = find_slot(config, now, target_date, start)
        if slot is None:
            raise NotFoundError("Slot not found")
        return slot

    def _check_open(self, slot: CandidateSlot, now: datetime, as_admin: bool) -> None:
        dt = slot.date.isoformat()

        if self.store.is_booked(dt, slot.id):
            raise ConflictError(CONFLICT_MESSAGE)

        if not as_admin:
            if self.store.is_day_blocked(dt):
                raise UnavailableError("This day is not available for booking")
            if self.store.is_slot_blocked(dt, slot.id):
                raise UnavailableError("This slot is not available for booking")

        if is_slot_past(slot, now):
            raise UnavailableError("This slot has already passed")

    def _check_round(self, request: BookingRequest, slot: CandidateSlot) -> Optional[BookingRecord]:
        """Final-round slots only go to verified final-round applicants."""
        reserved = self.store.is_final_round(slot.date.isoformat(), slot.id)

        if not request.final_round:
            if reserved:
                raise UnavailableError("This slot is reserved for final-round interviews")
            return None

        if not reserved:
            raise UnavailableError("This slot is not open for final-round interviews")

        prior = self.store.find_by_contact(request.email) or self.store.find_by_contact(request.whatsapp)
        return self._ensure_eligible(prior)

    @staticmethod
    def _ensure_eligible(prior: Optional[BookingRecord]) -> BookingRecord:
        if prior is None:
            raise NotFoundError("No previous interview found for this identifier.")
        if not prior.final_round_eligible:
            raise UnavailableError(
                "You are not yet eligible for the final interview round. Please contact HR."
            )
        return prior

    # ── Calendar side channel ────────────────────────────────────────────

    def _create_event(self, booking: BookingRecord) -> tuple[Optional[CalendarEvent], Optional[Exception]]:
        if self.calendar is None:
            return None, None
        try:
            event = self.calendar.create_event(
                booking.name,
                booking.email,
                booking.date,
                booking.start_time,
                booking.end_time,
            )
            return event, None
        except Exception as e:
            logger.error(f"Calendar event for {booking.slot_id} not created: {e}")
            return None, e

    def _delete_event(self, event_id: Optional[str]) -> Optional[Exception]:
        if self.calendar is None or not event_id:
            return None
        try:
            self.calendar.delete_event(event_id)
            return None
        except Exception as e:
            logger.error(f"Calendar event {event_id} not deleted: {e}")
            return e

    # ── Operations ───────────────────────────────────────────────────────

    def effective_config(self) -> SlotConfig:
        return load_slot_config(self.store, self.settings)

    def book(self, request: BookingRequest, as_admin: bool = False) -> BookingOutcome:
        """
        Book a slot for an applicant.

        Args:
            request: Applicant details and target slot
            as_admin: Skip slot/day blocks and final-round gating

        Raises:
            ValidationError, NotFoundError, UnavailableError, ConflictError,
            TransientStoreError
        """
        whatsapp = ensure_valid_booking_form(
            request.name,
            request.email,
            request.whatsapp,
            request.joining_preference,
            self.settings.whatsapp_pattern,
        )

        target_date, start = self._parse_target(request.date, request.start_time)
        if request.slot_id and request.slot_id != make_slot_id(target_date, start):
            raise ValidationError("Slot id does not match date and start time")

        config = self.effective_config()
        now = self.clock()
        slot = self._locate(target_date, start, config, now)

        self._check_open(slot, now, as_admin)
        prior = None if as_admin else self._check_round(request, slot)

        booking = BookingRecord(
            id=f"booking_{uuid.uuid4().hex[:16]}",
            name=sanitize_input(request.name),
            email=request.email.strip(),
            whatsapp=whatsapp,
            joining_preference=sanitize_input(request.joining_preference) if request.joining_preference else None,
            slot_id=slot.id,
            date=slot.date.isoformat(),
            start_time=slot.start_time,
            end_time=slot.end_time,
            booked_at=now,
            is_final_round=request.final_round,
            prev_booking_id=prior.id if prior else None,
            current_ctc=request.current_ctc,
            expected_ctc=request.expected_ctc,
            booked_by_admin=as_admin,
        )

        event, calendar_error = self._create_event(booking)
        if event is not None:
            booking = booking.model_copy(update={"meet_link": event.meet_link, "event_id": event.event_id})

        if not self.store.try_create(booking):
            # An event created above stays in the calendar without a booking
            logger.warning(f"Lost race for slot {slot.id}")
            raise ConflictError(CONFLICT_MESSAGE)

        logger.info(f"Booked {slot.id} for {booking.email} (id={booking.id}, admin={as_admin})")
        return BookingOutcome(booking=booking, calendar_error=calendar_error)

    def get_booking(self, dt: str, slot_id: str) -> BookingRecord:
        booking = self.store.get(dt, slot_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    def list_bookings(self) -> list[BookingRecord]:
        """All bookings ordered by date then start time."""
        all_bookings = self.store.list_all()
        result: list[BookingRecord] = []
        for dt in sorted(all_bookings):
            result.extend(sorted(all_bookings[dt].values(), key=lambda b: b.start_time))
        return result

    def cancel(self, dt: str, slot_id: str) -> BookingRecord:
        booking = self.get_booking(dt, slot_id)
        if not self.store.delete(dt, slot_id):
            raise NotFoundError("Booking not found")

        self._delete_event(booking.event_id)
        logger.info(f"Cancelled booking {booking.id} ({slot_id})")
        return booking

    def reschedule(self, old_date: str, old_slot_id: str, new_date: str, new_start_time: str) -> BookingOutcome:
        """
        Move a booking to another slot.

        The new key is created before the old one is deleted, so a failure in
        between leaves two bookings rather than none. If the new slot is
        taken, the old booking is left untouched.
        """
        target_date, start = self._parse_target(new_date, new_start_time)
        old = self.get_booking(old_date, old_slot_id)

        config = self.effective_config()
        now = self.clock()
        slot = self._locate(target_date, start, config, now)
        if slot.id == old.slot_id:
            raise ValidationError("Booking is already in this slot")

        self._check_open(slot, now, as_admin=True)

        moved = old.model_copy(update={
            "slot_id": slot.id,
            "date": slot.date.isoformat(),
            "start_time": slot.start_time,
            "end_time": slot.end_time,
            "meet_link": None,
            "event_id": None,
            "whatsapp_sent": False,
        })
        if not self.store.try_create(moved):
            logger.warning(f"Reschedule of {old.id} lost race for slot {slot.id}")
            raise ConflictError(CONFLICT_MESSAGE)

        self.store.delete(old.date, old.slot_id)
        logger.info(f"Rescheduled booking {old.id}: {old.slot_id} -> {slot.id}")

        calendar_error = self._delete_event(old.event_id)
        event, create_error = self._create_event(moved)
        if event is not None:
            moved = moved.model_copy(update={"meet_link": event.meet_link, "event_id": event.event_id})
            self.store.replace(moved)

        return BookingOutcome(booking=moved, calendar_error=create_error or calendar_error)

    def update_booking(self, dt: str, slot_id: str, changes: dict) -> BookingRecord:
        """
        Edit contact details or bookkeeping flags in place.

        Raises:
            ValidationError: Unknown field or invalid value
            NotFoundError: Booking does not exist (or was removed meanwhile)
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        update = dict(changes)
        if "name" in update:
            if not validate_name(update["name"] or ""):
                raise ValidationError("Name must be between 2 and 100 characters")
            update["name"] = sanitize_input(update["name"])
        if "email" in update:
            if not validate_email(update["email"] or ""):
                raise ValidationError("Please enter a valid email address")
            update["email"] = update["email"].strip()
        if "whatsapp" in update:
            ok, formatted, error = validate_whatsapp(update["whatsapp"] or "", self.settings.whatsapp_pattern)
            if not ok:
                raise ValidationError(error)
            update["whatsapp"] = formatted

        booking = self.get_booking(dt, slot_id)
        try:
            updated = BookingRecord.model_validate({**booking.model_dump(), **update})
        except PydanticValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors()})
            raise ValidationError(f"Invalid value for: {', '.join(fields)}")
        if not self.store.replace(updated):
            raise NotFoundError("Booking not found")

        logger.info(f"Updated booking {booking.id}: {sorted(update)}")
        return updated

    def generate_meet_link(self, dt: str, slot_id: str) -> BookingRecord:
        """
        Create a calendar event for an existing booking on admin request.

        Unlike book(), calendar failures are reported to the caller here.
        """
        booking = self.get_booking(dt, slot_id)
        if self.calendar is None:
            raise ExternalIntegrationError("Google Calendar is not configured")
        if not self.calendar.is_connected():
            raise ExternalIntegrationError("Google Calendar is not connected")

        event = self.calendar.create_event(
            booking.name,
            booking.email,
            booking.date,
            booking.start_time,
            booking.end_time,
        )
        if event is None:
            raise ExternalIntegrationError("Google Calendar is not connected")

        self._delete_event(booking.event_id)
        updated = booking.model_copy(update={"meet_link": event.meet_link, "event_id": event.event_id})
        if not self.store.replace(updated):
            raise NotFoundError("Booking not found")
        return updated

    def verify_final_round(self, identifier: str) -> BookingRecord:
        """Find the applicant's previous booking and check final-round eligibility."""
        if not identifier or not identifier.strip():
            raise ValidationError("Email or WhatsApp number is required")
        return self._ensure_eligible(self.store.find_by_contact(identifier))
