# scheduler/services/storage/__init__.py
"""
Persistence for bookings, blocks, configuration, integration token and job posts.
"""

from .base import BookingStore
from .records import (
    BookingRecord,
    IntegrationTokenRecord,
    JobPostRecord,
    SlotConfigRecord,
    load_record,
)
from .redis_store import RedisBookingStore

__all__ = [
    "BookingStore",
    "RedisBookingStore",
    "BookingRecord",
    "IntegrationTokenRecord",
    "JobPostRecord",
    "SlotConfigRecord",
    "load_record",
]
