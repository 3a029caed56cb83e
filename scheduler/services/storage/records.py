# scheduler/services/storage/records.py
"""
Stored record schemas.

Every value written to the store is one of these tagged models, serialized
as JSON with camelCase keys. Values are validated on read: a payload that
does not match its schema raises CorruptRecordError instead of being trusted.
Payloads written before the "kind" tag existed are accepted and tagged.
"""

from datetime import datetime
from typing import Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ...errors import CorruptRecordError


class StoredRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def dump(self) -> str:
        return self.model_dump_json(by_alias=True)


class BookingRecord(StoredRecord):
    kind: Literal["booking"] = "booking"

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


class SlotConfigRecord(StoredRecord):
    """Admin overrides; null fields fall back to environment defaults."""
    kind: Literal["config"] = "config"

    start_hour: Optional[int] = None
    end_hour: Optional[int] = None
    slot_duration_minutes: Optional[int] = None
    break_duration_minutes: Optional[int] = None
    number_of_days: Optional[int] = None
    whatsapp_template: Optional[str] = None
    overflow: Optional[str] = None
    updated_at: Optional[datetime] = None

    def overrides(self) -> dict:
        return self.model_dump(exclude={"kind", "updated_at"})


class IntegrationTokenRecord(StoredRecord):
    kind: Literal["integration_token"] = "integration_token"

    provider: str = "google_calendar"
    refresh_token: str
    connected_at: datetime


class JobPostRecord(StoredRecord):
    kind: Literal["job"] = "job"

    id: str
    title: str
    description: str = ""
    salary: Optional[str] = None
    apply_link: Optional[str] = None
    contact_emails: list[str] = Field(default_factory=list)
    is_published: bool = False


R = TypeVar("R", bound=StoredRecord)


def load_record(model: type[R], raw: str | bytes, key: str = "") -> R:
    """Parse and validate a stored value."""
    try:
        return model.model_validate_json(raw)
    except PydanticValidationError as e:
        raise CorruptRecordError(f"Stored value at {key or '?'} is not a valid {model.__name__}: {e}")
