"""Tests for the booking transaction and admin booking operations."""

import threading

import pytest

from scheduler.errors import (
    ConflictError,
    ExternalIntegrationError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from scheduler.services.booking import BookingService
from scheduler.services.storage import RedisBookingStore

from conftest import DAY1, DAY2, NOW, FailingRedis, FakeCalendar, make_booking, make_request


class StaleReadStore(RedisBookingStore):
    """Store whose fast-path check always misses, as if another request
    committed between the check and the write."""

    def is_booked(self, dt, slot_id):
        return False


class TestBook:
    def test_books_slot(self, service, store, calendar):
        outcome = service.book(make_request())

        booking = outcome.booking
        assert outcome.calendar_error is None
        assert booking.slot_id == f"{DAY1}:09-00"
        assert booking.end_time == "10:00"
        assert booking.whatsapp == "+8801712345678"
        assert booking.meet_link == "https://meet.google.com/evt-1"
        assert booking.booked_at == NOW
        assert store.get(DAY1, booking.slot_id) == booking
        assert calendar.created[0]["email"] == "rahim@example.com"

    def test_sanitizes_name(self, service):
        outcome = service.book(make_request(name="  <b>Karim</b> "))
        assert outcome.booking.name == "bKarim/b"

    def test_invalid_fields_collected(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.book(make_request(name="A", email="not-an-email", whatsapp="12345"))
        assert len(exc_info.value.errors) == 3
        assert exc_info.value.message == exc_info.value.errors[0]

    def test_empty_joining_preference(self, service):
        with pytest.raises(ValidationError, match="Joining preference"):
            service.book(make_request(joining_preference="  "))

    def test_malformed_date(self, service):
        with pytest.raises(ValidationError):
            service.book(make_request(date="15/01/2030"))

    def test_malformed_time(self, service):
        with pytest.raises(ValidationError):
            service.book(make_request(start_time="nine"))

    @pytest.mark.parametrize("start_time", ["09:75", "25:00", "24:15", "9:00", "09:00:00"])
    def test_out_of_range_time(self, service, store, start_time):
        with pytest.raises(ValidationError, match="start time"):
            service.book(make_request(start_time=start_time))
        assert store.list_all() == {}

    @pytest.mark.parametrize("overrides", [
        {"date": "15/01/2030"},
        {"start_time": "09:75"},
        {"slot_id": f"{DAY2}:09-00"},
    ])
    def test_rejected_before_store_access(self, settings, calendar, overrides):
        service = BookingService(RedisBookingStore(FailingRedis()), settings, calendar=calendar, clock=lambda: NOW)
        with pytest.raises(ValidationError):
            service.book(make_request(**overrides))

    def test_off_grid_slot(self, service):
        with pytest.raises(NotFoundError, match="Slot not found"):
            service.book(make_request(start_time="09:30"))

    def test_outside_horizon(self, service):
        with pytest.raises(NotFoundError):
            service.book(make_request(date="2030-01-14"))

    def test_slot_id_must_match(self, service):
        with pytest.raises(ValidationError):
            service.book(make_request(slot_id=f"{DAY2}:09-00"))

    def test_end_time_comes_from_grid(self, service):
        outcome = service.book(make_request(start_time="10:15"))
        assert outcome.booking.end_time == "11:15"

    def test_already_booked(self, service, store):
        first = service.book(make_request()).booking
        with pytest.raises(ConflictError):
            service.book(make_request(name="Second Person", email="second@example.com"))
        assert store.get(DAY1, first.slot_id).id == first.id

    def test_blocked_slot(self, service, store):
        store.block_slot(DAY1, f"{DAY1}:09-00")
        with pytest.raises(UnavailableError):
            service.book(make_request())
        assert not store.is_booked(DAY1, f"{DAY1}:09-00")

    def test_blocked_day(self, service, store):
        store.block_day(DAY1)
        with pytest.raises(UnavailableError):
            service.book(make_request(start_time="14:00"))

    def test_admin_bypasses_blocks(self, service, store):
        store.block_day(DAY1)
        store.block_slot(DAY1, f"{DAY1}:09-00")
        outcome = service.book(make_request(), as_admin=True)
        assert outcome.booking.booked_by_admin is True

    def test_admin_cannot_double_book(self, service):
        service.book(make_request())
        with pytest.raises(ConflictError):
            service.book(make_request(email="other@example.com"), as_admin=True)


class TestLostRace:
    def test_atomic_create_decides(self, redis, settings, calendar):
        store = StaleReadStore(redis)
        service = BookingService(store, settings, calendar=calendar, clock=lambda: NOW)
        winner = make_booking(id="winner")
        store.try_create(winner)

        with pytest.raises(ConflictError):
            service.book(make_request(email="loser@example.com"))

        assert store.get(DAY1, winner.slot_id).id == "winner"
        # The loser's calendar event is left behind
        assert len(calendar.created) == 1

    def test_concurrent_bookings_have_one_winner(self, service, store):
        outcomes = []
        conflicts = []
        barrier = threading.Barrier(8)

        def attempt(i):
            barrier.wait()
            try:
                outcomes.append(service.book(make_request(email=f"applicant{i}@example.com")))
            except ConflictError:
                conflicts.append(i)

        threads = [threading.Thread(target=attempt, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(outcomes) == 1
        assert len(conflicts) == 7
        assert [b.id for b in store.list_by_date(DAY1)] == [outcomes[0].booking.id]


class TestCalendarFailure:
    def test_booking_commits_without_link(self, store, settings):
        calendar = FakeCalendar(fail=True)
        service = BookingService(store, settings, calendar=calendar, clock=lambda: NOW)

        outcome = service.book(make_request())

        assert isinstance(outcome.calendar_error, ExternalIntegrationError)
        assert outcome.booking.meet_link is None
        assert store.is_booked(DAY1, outcome.booking.slot_id)

    def test_no_calendar_configured(self, store, settings):
        service = BookingService(store, settings, calendar=None, clock=lambda: NOW)
        outcome = service.book(make_request())
        assert outcome.calendar_error is None
        assert outcome.booking.meet_link is None

    def test_calendar_not_connected(self, store, settings):
        service = BookingService(store, settings, calendar=FakeCalendar(connected=False), clock=lambda: NOW)
        outcome = service.book(make_request())
        assert outcome.calendar_error is None
        assert outcome.booking.event_id is None


class TestFinalRound:
    FINAL_SLOT = f"{DAY2}:09-00"

    @pytest.fixture(autouse=True)
    def reserve(self, store):
        store.mark_final_round(DAY2, self.FINAL_SLOT)

    def test_regular_request_rejected(self, service):
        with pytest.raises(UnavailableError, match="reserved"):
            service.book(make_request(date=DAY2))

    def test_final_request_needs_reserved_slot(self, service):
        with pytest.raises(UnavailableError):
            service.book(make_request(date=DAY2, start_time="10:15", final_round=True))

    def test_no_previous_interview(self, service):
        with pytest.raises(NotFoundError, match="No previous interview"):
            service.book(make_request(date=DAY2, final_round=True))

    def test_not_eligible(self, service, store):
        store.try_create(make_booking(DAY1, "09:00"))
        with pytest.raises(UnavailableError, match="not yet eligible"):
            service.book(make_request(date=DAY2, final_round=True))

    def test_eligible_applicant(self, service, store):
        prior = make_booking(DAY1, "09:00", final_round_eligible=True)
        store.try_create(prior)

        outcome = service.book(make_request(
            date=DAY2,
            final_round=True,
            whatsapp="+880 1712-345678",
            current_ctc="50000",
            expected_ctc="70000",
        ))

        booking = outcome.booking
        assert booking.is_final_round is True
        assert booking.prev_booking_id == prior.id
        assert booking.expected_ctc == "70000"

    def test_admin_books_reserved_slot(self, service):
        outcome = service.book(make_request(date=DAY2), as_admin=True)
        assert outcome.booking.slot_id == self.FINAL_SLOT

    def test_verify(self, service, store):
        store.try_create(make_booking(DAY1, "09:00", final_round_eligible=True))
        assert service.verify_final_round("01712345678").email == "rahim@example.com"

    def test_verify_requires_identifier(self, service):
        with pytest.raises(ValidationError):
            service.verify_final_round("   ")


class TestCancel:
    def test_cancel_frees_slot_and_deletes_event(self, service, store, calendar):
        booking = service.book(make_request()).booking
        service.cancel(DAY1, booking.slot_id)

        assert not store.is_booked(DAY1, booking.slot_id)
        assert calendar.deleted == [booking.event_id]
        service.book(make_request(email="next@example.com"))

    def test_cancel_missing(self, service):
        with pytest.raises(NotFoundError):
            service.cancel(DAY1, f"{DAY1}:09-00")

    def test_cancel_survives_calendar_failure(self, store, settings):
        store.try_create(make_booking(event_id="evt-9"))
        service = BookingService(store, settings, calendar=FakeCalendar(fail=True), clock=lambda: NOW)
        service.cancel(DAY1, f"{DAY1}:09-00")
        assert not store.is_booked(DAY1, f"{DAY1}:09-00")


class TestReschedule:
    def test_moves_booking(self, service, store, calendar):
        old = service.book(make_request()).booking

        outcome = service.reschedule(DAY1, old.slot_id, DAY2, "14:00")

        moved = outcome.booking
        assert moved.id == old.id
        assert moved.slot_id == f"{DAY2}:14-00"
        assert moved.end_time == "15:00"
        assert not store.is_booked(DAY1, old.slot_id)
        assert store.get(DAY2, moved.slot_id).meet_link == moved.meet_link
        assert calendar.deleted == [old.event_id]
        assert moved.event_id != old.event_id

    def test_rejects_malformed_target_time(self, service, store):
        old = service.book(make_request()).booking
        with pytest.raises(ValidationError):
            service.reschedule(DAY1, old.slot_id, DAY2, "09:75")
        assert store.get(DAY1, old.slot_id).id == old.id

    def test_target_taken_keeps_original(self, service, store):
        old = service.book(make_request()).booking
        service.book(make_request(date=DAY2, email="other@example.com"))

        with pytest.raises(ConflictError):
            service.reschedule(DAY1, old.slot_id, DAY2, "09:00")

        assert store.get(DAY1, old.slot_id) == old

    def test_same_slot(self, service):
        old = service.book(make_request()).booking
        with pytest.raises(ValidationError):
            service.reschedule(DAY1, old.slot_id, DAY1, "09:00")

    def test_missing_booking(self, service):
        with pytest.raises(NotFoundError):
            service.reschedule(DAY1, f"{DAY1}:09-00", DAY2, "09:00")

    def test_into_blocked_slot_allowed(self, service, store):
        old = service.book(make_request()).booking
        store.block_slot(DAY2, f"{DAY2}:09-00")
        outcome = service.reschedule(DAY1, old.slot_id, DAY2, "09:00")
        assert outcome.booking.date == DAY2


class TestUpdate:
    def test_updates_fields(self, service, store):
        booking = service.book(make_request()).booking
        updated = service.update_booking(DAY1, booking.slot_id, {
            "whatsapp": "01898765432",
            "whatsapp_sent": True,
            "final_round_eligible": True,
        })
        assert updated.whatsapp == "+8801898765432"
        assert store.get(DAY1, booking.slot_id).final_round_eligible is True

    def test_rejects_slot_fields(self, service):
        booking = service.book(make_request()).booking
        with pytest.raises(ValidationError, match="cannot be edited"):
            service.update_booking(DAY1, booking.slot_id, {"start_time": "10:15"})

    def test_rejects_invalid_email(self, service):
        booking = service.book(make_request()).booking
        with pytest.raises(ValidationError):
            service.update_booking(DAY1, booking.slot_id, {"email": "nope"})

    def test_missing_booking(self, service):
        with pytest.raises(NotFoundError):
            service.update_booking(DAY1, f"{DAY1}:09-00", {"whatsapp_sent": True})


class TestMeetLink:
    def test_generates_and_replaces(self, store, settings, calendar):
        store.try_create(make_booking())
        service = BookingService(store, settings, calendar=calendar, clock=lambda: NOW)

        updated = service.generate_meet_link(DAY1, f"{DAY1}:09-00")

        assert updated.meet_link == "https://meet.google.com/evt-1"
        assert store.get(DAY1, updated.slot_id).event_id == "evt-1"

    def test_not_configured(self, store, settings):
        store.try_create(make_booking())
        service = BookingService(store, settings, calendar=None, clock=lambda: NOW)
        with pytest.raises(ExternalIntegrationError):
            service.generate_meet_link(DAY1, f"{DAY1}:09-00")

    def test_not_connected(self, store, settings):
        store.try_create(make_booking())
        service = BookingService(store, settings, calendar=FakeCalendar(connected=False), clock=lambda: NOW)
        with pytest.raises(ExternalIntegrationError, match="not connected"):
            service.generate_meet_link(DAY1, f"{DAY1}:09-00")


class TestListing:
    def test_sorted_by_date_then_time(self, service):
        service.book(make_request(date=DAY2, start_time="09:00"))
        service.book(make_request(date=DAY1, start_time="14:00"))
        service.book(make_request(date=DAY1, start_time="10:15"))

        assert [b.slot_id for b in service.list_bookings()] == [
            f"{DAY1}:10-15",
            f"{DAY1}:14-00",
            f"{DAY2}:09-00",
        ]
