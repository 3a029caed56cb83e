# scheduler/routers/blocks.py
# Admin slot/day blocks and final-round slot reservations.

import logging
from datetime import date as date_type

from fastapi import APIRouter, Depends

from ..dependencies import get_store, require_admin
from ..errors import NotFoundError, ValidationError
from ..services.slots import parse_slot_id
from ..services.storage import BookingStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["blocks"], dependencies=[Depends(require_admin)])


def _check_date(dt: str) -> str:
    try:
        return date_type.fromisoformat(dt).isoformat()
    except ValueError:
        raise ValidationError("Invalid date, expected YYYY-MM-DD")


def _check_slot(dt: str, slot_id: str) -> str:
    """Slot ids must be well-formed and belong to the date in the path."""
    dt = _check_date(dt)
    try:
        slot_date, _ = parse_slot_id(slot_id)
    except ValueError as e:
        raise ValidationError(str(e))
    if slot_date.isoformat() != dt:
        raise ValidationError("Slot id does not belong to this date")
    return dt


# ── Slot blocks ──────────────────────────────────────────────────────────────

@router.put("/blocks/slots/{date}/{slot_id}")
def block_slot(date: str, slot_id: str, store: BookingStore = Depends(get_store)):
    dt = _check_slot(date, slot_id)
    store.block_slot(dt, slot_id)
    logger.info(f"Blocked slot {slot_id}")
    return {"success": True, "date": dt, "slotId": slot_id, "isBlocked": True}


@router.delete("/blocks/slots/{date}/{slot_id}")
def unblock_slot(date: str, slot_id: str, store: BookingStore = Depends(get_store)):
    dt = _check_slot(date, slot_id)
    if not store.unblock_slot(dt, slot_id):
        raise NotFoundError("Slot is not blocked")
    logger.info(f"Unblocked slot {slot_id}")
    return {"success": True, "date": dt, "slotId": slot_id, "isBlocked": False}


# ── Day blocks ───────────────────────────────────────────────────────────────

@router.put("/blocks/days/{date}")
def block_day(date: str, store: BookingStore = Depends(get_store)):
    """Block a whole day. Existing bookings on it are kept."""
    dt = _check_date(date)
    store.block_day(dt)
    logger.info(f"Blocked day {dt}")
    return {"success": True, "date": dt, "isBlocked": True}


@router.delete("/blocks/days/{date}")
def unblock_day(date: str, store: BookingStore = Depends(get_store)):
    dt = _check_date(date)
    if not store.unblock_day(dt):
        raise NotFoundError("Day is not blocked")
    logger.info(f"Unblocked day {dt}")
    return {"success": True, "date": dt, "isBlocked": False}


# ── Final-round reservations ─────────────────────────────────────────────────

@router.put("/final-round/slots/{date}/{slot_id}")
def mark_final_round(date: str, slot_id: str, store: BookingStore = Depends(get_store)):
    dt = _check_slot(date, slot_id)
    store.mark_final_round(dt, slot_id)
    logger.info(f"Reserved {slot_id} for final round")
    return {"success": True, "date": dt, "slotId": slot_id, "isFinalRound": True}


@router.delete("/final-round/slots/{date}/{slot_id}")
def unmark_final_round(date: str, slot_id: str, store: BookingStore = Depends(get_store)):
    dt = _check_slot(date, slot_id)
    if not store.unmark_final_round(dt, slot_id):
        raise NotFoundError("Slot is not reserved for final round")
    logger.info(f"Released final-round reservation on {slot_id}")
    return {"success": True, "date": dt, "slotId": slot_id, "isFinalRound": False}
