# scheduler/routers/final_interview.py

from fastapi import APIRouter, Depends

from ..dependencies import get_booking_service
from ..schemas.final_interview import VerifyRequest, VerifyResponse
from ..services.booking import BookingService

router = APIRouter(prefix="/final-interview", tags=["final-interview"])


@router.post("/verify", response_model=VerifyResponse)
def verify_applicant(data: VerifyRequest, service: BookingService = Depends(get_booking_service)):
    """Look up a previous interview by email or WhatsApp number."""
    prior = service.verify_final_round(data.identifier)
    return VerifyResponse(
        name=prior.name,
        email=prior.email,
        whatsapp=prior.whatsapp,
        joining_preference=prior.joining_preference,
        prev_booking_id=prior.id,
    )
