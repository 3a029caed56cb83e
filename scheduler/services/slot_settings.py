"""
Effective slot configuration.

Admin overrides are stored as a SlotConfigRecord; any field left null falls
back to the environment default from Settings. Last write wins.
"""

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from ..config import Settings
from ..errors import ValidationError
from .slots import SlotConfig
from .storage import BookingStore, SlotConfigRecord

logger = logging.getLogger(__name__)


def business_now(settings: Settings) -> datetime:
    """Current time in the business timezone."""
    return datetime.now(ZoneInfo(settings.business_timezone))


def load_slot_config(store: BookingStore, settings: Settings) -> SlotConfig:
    defaults = SlotConfig.from_settings(settings)
    record = store.get_config()
    if record is None:
        return defaults
    try:
        return defaults.merged(record.overrides())
    except ValueError as e:
        # Stored overrides no longer valid on top of new defaults
        logger.error(f"Ignoring stored slot config: {e}")
        return defaults


def update_slot_config(store: BookingStore, settings: Settings, changes: dict) -> SlotConfig:
    """
    Validate and persist admin overrides.

    Raises:
        ValidationError: If the resulting configuration is invalid
    """
    current = store.get_config() or SlotConfigRecord()
    overrides = {**current.overrides(), **{k: v for k, v in changes.items() if v is not None}}

    try:
        effective = SlotConfig.from_settings(settings).merged(overrides)
    except ValueError as e:
        raise ValidationError(str(e))

    store.set_config(SlotConfigRecord(**overrides, updated_at=datetime.now(timezone.utc)))
    logger.info(f"Slot config updated: {overrides}")
    return effective


def reset_slot_config(store: BookingStore, settings: Settings) -> SlotConfig:
    if store.clear_config():
        logger.info("Slot config reset to defaults")
    return SlotConfig.from_settings(settings)
