# scheduler/services/storage/redis_store.py
"""
Redis implementation of the booking store.

Key format:
    booking:{date}:{slot_id}          JSON BookingRecord
    blocked:slot:{date}:{slot_id}     presence marker
    blocked:day:{date}                presence marker
    final:slot:{date}:{slot_id}       presence marker
    config:global                     JSON SlotConfigRecord
    integration:google:token          JSON IntegrationTokenRecord
    integration:google:state:{nonce}  PKCE code verifier with TTL
    job:{id}                          JSON JobPostRecord

try_create() is SET NX: Redis decides ownership of the key in one command.
list_by_date(), list_all() and find_by_contact() SCAN the booking keyspace,
O(number of bookings).
"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

from ...errors import CorruptRecordError, TransientStoreError
from ..validation import contact_digits
from .base import BookingStore
from .records import (
    BookingRecord,
    IntegrationTokenRecord,
    JobPostRecord,
    SlotConfigRecord,
    load_record,
)

logger = logging.getLogger(__name__)

MARKER = "1"
SCAN_BATCH = 500


def _decode(value):
    return value.decode() if isinstance(value, bytes) else value


@contextmanager
def _guard(operation: str):
    """Translate Redis failures into TransientStoreError."""
    try:
        yield
    except RedisError as e:
        logger.error(f"Redis {operation} failed: {e}")
        raise TransientStoreError(f"Storage unavailable during {operation}") from e


class RedisBookingStore(BookingStore):
    """Booking store on a single Redis database."""

    BOOKING_PREFIX = "booking"
    SLOT_BLOCK_PREFIX = "blocked:slot"
    DAY_BLOCK_PREFIX = "blocked:day"
    FINAL_ROUND_PREFIX = "final:slot"
    CONFIG_KEY = "config:global"
    TOKEN_KEY = "integration:google:token"
    STATE_PREFIX = "integration:google:state"
    JOB_PREFIX = "job"

    def __init__(self, redis: Redis):
        self.redis = redis

    def _booking_key(self, dt: str, slot_id: str) -> str:
        return f"{self.BOOKING_PREFIX}:{dt}:{slot_id}"

    def _scan_keys(self, pattern: str) -> list[str]:
        return [_decode(k) for k in self.redis.scan_iter(match=pattern, count=SCAN_BATCH)]

    def _scan_records(self, pattern: str, model):
        """Yield (key, record) for every valid value matching pattern."""
        keys = self._scan_keys(pattern)
        if not keys:
            return
        values = self.redis.mget(keys)
        for key, raw in zip(keys, values):
            if raw is None:
                # Deleted between SCAN and MGET
                continue
            try:
                yield key, load_record(model, _decode(raw), key)
            except CorruptRecordError as e:
                logger.warning(f"Skipping corrupt record: {e}")

    # ── Bookings ─────────────────────────────────────────────────────────

    def try_create(self, booking: BookingRecord) -> bool:
        key = self._booking_key(booking.date, booking.slot_id)
        with _guard("try_create"):
            created = self.redis.set(key, booking.dump(), nx=True)
        return bool(created)

    def get(self, dt: str, slot_id: str) -> Optional[BookingRecord]:
        key = self._booking_key(dt, slot_id)
        with _guard("get"):
            raw = self.redis.get(key)
        if raw is None:
            return None
        return load_record(BookingRecord, _decode(raw), key)

    def is_booked(self, dt: str, slot_id: str) -> bool:
        with _guard("is_booked"):
            return self.redis.exists(self._booking_key(dt, slot_id)) == 1

    def replace(self, booking: BookingRecord) -> bool:
        key = self._booking_key(booking.date, booking.slot_id)
        with _guard("replace"):
            updated = self.redis.set(key, booking.dump(), xx=True)
        return bool(updated)

    def delete(self, dt: str, slot_id: str) -> bool:
        with _guard("delete"):
            return self.redis.delete(self._booking_key(dt, slot_id)) > 0

    def list_by_date(self, dt: str) -> dict[str, BookingRecord]:
        with _guard("list_by_date"):
            return {
                record.slot_id: record
                for _, record in self._scan_records(f"{self.BOOKING_PREFIX}:{dt}:*", BookingRecord)
            }

    def list_all(self) -> dict[str, dict[str, BookingRecord]]:
        result: dict[str, dict[str, BookingRecord]] = {}
        with _guard("list_all"):
            for _, record in self._scan_records(f"{self.BOOKING_PREFIX}:*", BookingRecord):
                result.setdefault(record.date, {})[record.slot_id] = record
        return result

    def find_by_contact(self, identifier: str) -> Optional[BookingRecord]:
        needle = (identifier or "").strip().lower()
        if not needle:
            return None
        digits = contact_digits(needle)

        matches = []
        with _guard("find_by_contact"):
            for _, record in self._scan_records(f"{self.BOOKING_PREFIX}:*", BookingRecord):
                if record.email.strip().lower() == needle:
                    matches.append(record)
                elif digits and contact_digits(record.whatsapp) == digits:
                    matches.append(record)

        if not matches:
            return None
        return max(matches, key=lambda r: r.booked_at)

    # ── Blocks ───────────────────────────────────────────────────────────

    def block_slot(self, dt: str, slot_id: str) -> None:
        with _guard("block_slot"):
            self.redis.set(f"{self.SLOT_BLOCK_PREFIX}:{dt}:{slot_id}", MARKER)

    def unblock_slot(self, dt: str, slot_id: str) -> bool:
        with _guard("unblock_slot"):
            return self.redis.delete(f"{self.SLOT_BLOCK_PREFIX}:{dt}:{slot_id}") > 0

    def is_slot_blocked(self, dt: str, slot_id: str) -> bool:
        with _guard("is_slot_blocked"):
            return self.redis.exists(f"{self.SLOT_BLOCK_PREFIX}:{dt}:{slot_id}") == 1

    def blocked_slots(self, dt: str) -> set[str]:
        prefix = f"{self.SLOT_BLOCK_PREFIX}:{dt}:"
        with _guard("blocked_slots"):
            return {key[len(prefix):] for key in self._scan_keys(f"{prefix}*")}

    def block_day(self, dt: str) -> None:
        with _guard("block_day"):
            self.redis.set(f"{self.DAY_BLOCK_PREFIX}:{dt}", MARKER)

    def unblock_day(self, dt: str) -> bool:
        with _guard("unblock_day"):
            return self.redis.delete(f"{self.DAY_BLOCK_PREFIX}:{dt}") > 0

    def is_day_blocked(self, dt: str) -> bool:
        with _guard("is_day_blocked"):
            return self.redis.exists(f"{self.DAY_BLOCK_PREFIX}:{dt}") == 1

    def blocked_days(self, dates: list[date]) -> set[str]:
        if not dates:
            return set()
        date_strs = [d.isoformat() for d in dates]
        with _guard("blocked_days"):
            pipe = self.redis.pipeline()
            for dt in date_strs:
                pipe.exists(f"{self.DAY_BLOCK_PREFIX}:{dt}")
            results = pipe.execute()
        return {dt for dt, exists in zip(date_strs, results) if exists}

    # ── Final-round markers ──────────────────────────────────────────────

    def mark_final_round(self, dt: str, slot_id: str) -> None:
        with _guard("mark_final_round"):
            self.redis.set(f"{self.FINAL_ROUND_PREFIX}:{dt}:{slot_id}", MARKER)

    def unmark_final_round(self, dt: str, slot_id: str) -> bool:
        with _guard("unmark_final_round"):
            return self.redis.delete(f"{self.FINAL_ROUND_PREFIX}:{dt}:{slot_id}") > 0

    def is_final_round(self, dt: str, slot_id: str) -> bool:
        with _guard("is_final_round"):
            return self.redis.exists(f"{self.FINAL_ROUND_PREFIX}:{dt}:{slot_id}") == 1

    def final_round_slots(self, dt: str) -> set[str]:
        prefix = f"{self.FINAL_ROUND_PREFIX}:{dt}:"
        with _guard("final_round_slots"):
            return {key[len(prefix):] for key in self._scan_keys(f"{prefix}*")}

    # ── Config & integration ─────────────────────────────────────────────

    def get_config(self) -> Optional[SlotConfigRecord]:
        with _guard("get_config"):
            raw = self.redis.get(self.CONFIG_KEY)
        if raw is None:
            return None
        return load_record(SlotConfigRecord, _decode(raw), self.CONFIG_KEY)

    def set_config(self, record: SlotConfigRecord) -> None:
        with _guard("set_config"):
            self.redis.set(self.CONFIG_KEY, record.dump())

    def clear_config(self) -> bool:
        with _guard("clear_config"):
            return self.redis.delete(self.CONFIG_KEY) > 0

    def get_integration_token(self) -> Optional[IntegrationTokenRecord]:
        with _guard("get_integration_token"):
            raw = self.redis.get(self.TOKEN_KEY)
        if raw is None:
            return None
        return load_record(IntegrationTokenRecord, _decode(raw), self.TOKEN_KEY)

    def set_integration_token(self, record: IntegrationTokenRecord) -> None:
        with _guard("set_integration_token"):
            self.redis.set(self.TOKEN_KEY, record.dump())

    def delete_integration_token(self) -> bool:
        with _guard("delete_integration_token"):
            return self.redis.delete(self.TOKEN_KEY) > 0

    def save_oauth_state(self, nonce: str, ttl_seconds: int, code_verifier: Optional[str] = None) -> None:
        with _guard("save_oauth_state"):
            self.redis.set(f"{self.STATE_PREFIX}:{nonce}", code_verifier or "", ex=ttl_seconds)

    def consume_oauth_state(self, nonce: str) -> Optional[str]:
        # GETDEL reads and removes in one command, so a nonce is accepted once
        with _guard("consume_oauth_state"):
            return _decode(self.redis.getdel(f"{self.STATE_PREFIX}:{nonce}"))

    # ── Job posts ────────────────────────────────────────────────────────

    def list_jobs(self) -> list[JobPostRecord]:
        with _guard("list_jobs"):
            jobs = [record for _, record in self._scan_records(f"{self.JOB_PREFIX}:*", JobPostRecord)]
        return sorted(jobs, key=lambda j: j.id)

    def get_job(self, job_id: str) -> Optional[JobPostRecord]:
        key = f"{self.JOB_PREFIX}:{job_id}"
        with _guard("get_job"):
            raw = self.redis.get(key)
        if raw is None:
            return None
        return load_record(JobPostRecord, _decode(raw), key)

    def save_job(self, job: JobPostRecord) -> None:
        with _guard("save_job"):
            self.redis.set(f"{self.JOB_PREFIX}:{job.id}", job.dump())

    def delete_job(self, job_id: str) -> bool:
        with _guard("delete_job"):
            return self.redis.delete(f"{self.JOB_PREFIX}:{job_id}") > 0

