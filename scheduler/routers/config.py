# scheduler/routers/config.py
# Admin slot configuration.

from fastapi import APIRouter, Depends

from ..config import Settings
from ..dependencies import get_booking_service, get_settings, get_store, require_admin
from ..schemas.config import SlotConfigRead, SlotConfigUpdate
from ..services.booking import BookingService
from ..services.slot_settings import reset_slot_config, update_slot_config
from ..services.storage import BookingStore
from .slots import to_config_read

router = APIRouter(prefix="/admin/config", tags=["config"], dependencies=[Depends(require_admin)])


@router.get("", response_model=SlotConfigRead)
def get_config(service: BookingService = Depends(get_booking_service)):
    return to_config_read(service.effective_config())


@router.put("", response_model=SlotConfigRead)
def update_config(
    data: SlotConfigUpdate,
    store: BookingStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """
    Update the slot configuration.

    Omitted fields keep their current value. Existing bookings are not
    moved; slots that are no longer generated simply stop being offered.
    """
    return to_config_read(update_slot_config(store, settings, data.model_dump(exclude_unset=True)))


@router.delete("", response_model=SlotConfigRead)
def reset_config(
    store: BookingStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return to_config_read(reset_slot_config(store, settings))
