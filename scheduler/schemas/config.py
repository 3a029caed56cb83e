# scheduler/schemas/config.py

from typing import Literal, Optional

from pydantic import Field

from .base import CamelModel


class SlotConfigRead(CamelModel):
    start_hour: int
    end_hour: int
    slot_duration_minutes: int
    break_duration_minutes: int
    number_of_days: int
    whatsapp_template: str
    overflow: str


class SlotConfigUpdate(CamelModel):
    """Partial update; omitted fields keep their current value."""
    start_hour: Optional[int] = Field(None, ge=0, le=23)
    end_hour: Optional[int] = Field(None, ge=1, le=24)
    slot_duration_minutes: Optional[int] = Field(None, gt=0)
    break_duration_minutes: Optional[int] = Field(None, ge=0)
    number_of_days: Optional[int] = Field(None, ge=1)
    whatsapp_template: Optional[str] = None
    overflow: Optional[Literal["contain", "allow"]] = None
