# scheduler/schemas/final_interview.py

from typing import Optional

from .base import CamelModel


class VerifyRequest(CamelModel):
    identifier: str


class VerifyResponse(CamelModel):
    success: bool = True
    name: str
    email: str
    whatsapp: str
    joining_preference: Optional[str] = None
    prev_booking_id: str
