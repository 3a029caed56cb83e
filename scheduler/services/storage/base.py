"""
Booking store contract.

Bookings are keyed by (date, slot_id). try_create() is the only primitive
that decides who owns a slot: it must be a single conditional write at the
storage layer, never a read followed by a write.

list_by_date(), list_all() and find_by_contact() are query operations that
an implementation may back with a scan or with a secondary index.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from .records import BookingRecord, IntegrationTokenRecord, JobPostRecord, SlotConfigRecord


class BookingStore(ABC):

    # ── Bookings ─────────────────────────────────────────────────────────

    @abstractmethod
    def try_create(self, booking: BookingRecord) -> bool:
        """Store booking only if its (date, slot_id) key is free. Atomic."""

    @abstractmethod
    def get(self, dt: str, slot_id: str) -> Optional[BookingRecord]:
        pass

    @abstractmethod
    def is_booked(self, dt: str, slot_id: str) -> bool:
        pass

    @abstractmethod
    def replace(self, booking: BookingRecord) -> bool:
        """Overwrite an existing booking in place. False if it no longer exists."""

    @abstractmethod
    def delete(self, dt: str, slot_id: str) -> bool:
        """True if a booking was removed."""

    @abstractmethod
    def list_by_date(self, dt: str) -> dict[str, BookingRecord]:
        """slot_id -> booking for one date."""

    @abstractmethod
    def list_all(self) -> dict[str, dict[str, BookingRecord]]:
        """date -> (slot_id -> booking)."""

    @abstractmethod
    def find_by_contact(self, identifier: str) -> Optional[BookingRecord]:
        """Most recent booking whose email or WhatsApp number matches."""

    # ── Blocks ───────────────────────────────────────────────────────────

    @abstractmethod
    def block_slot(self, dt: str, slot_id: str) -> None:
        pass

    @abstractmethod
    def unblock_slot(self, dt: str, slot_id: str) -> bool:
        pass

    @abstractmethod
    def is_slot_blocked(self, dt: str, slot_id: str) -> bool:
        pass

    @abstractmethod
    def blocked_slots(self, dt: str) -> set[str]:
        pass

    @abstractmethod
    def block_day(self, dt: str) -> None:
        pass

    @abstractmethod
    def unblock_day(self, dt: str) -> bool:
        pass

    @abstractmethod
    def is_day_blocked(self, dt: str) -> bool:
        pass

    @abstractmethod
    def blocked_days(self, dates: list[date]) -> set[str]:
        pass

    # ── Final-round markers ──────────────────────────────────────────────

    @abstractmethod
    def mark_final_round(self, dt: str, slot_id: str) -> None:
        pass

    @abstractmethod
    def unmark_final_round(self, dt: str, slot_id: str) -> bool:
        pass

    @abstractmethod
    def is_final_round(self, dt: str, slot_id: str) -> bool:
        pass

    @abstractmethod
    def final_round_slots(self, dt: str) -> set[str]:
        pass

    # ── Config & integration ─────────────────────────────────────────────

    @abstractmethod
    def get_config(self) -> Optional[SlotConfigRecord]:
        pass

    @abstractmethod
    def set_config(self, record: SlotConfigRecord) -> None:
        pass

    @abstractmethod
    def clear_config(self) -> bool:
        pass

    @abstractmethod
    def get_integration_token(self) -> Optional[IntegrationTokenRecord]:
        pass

    @abstractmethod
    def set_integration_token(self, record: IntegrationTokenRecord) -> None:
        pass

    @abstractmethod
    def delete_integration_token(self) -> bool:
        pass

    @abstractmethod
    def save_oauth_state(self, nonce: str, ttl_seconds: int, code_verifier: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def consume_oauth_state(self, nonce: str) -> Optional[str]:
        """
        Remove a saved nonce and return its code verifier ("" when none was saved).

        None for an unknown or expired nonce, so each nonce is accepted once.
        """

    # ── Job posts ────────────────────────────────────────────────────────

    @abstractmethod
    def list_jobs(self) -> list[JobPostRecord]:
        pass

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[JobPostRecord]:
        pass

    @abstractmethod
    def save_job(self, job: JobPostRecord) -> None:
        pass

    @abstractmethod
    def delete_job(self, job_id: str) -> bool:
        pass
