# scheduler/services/slots/config.py
"""
Slot configuration for slot generation.
"""

from dataclasses import dataclass, replace

from ...config import DEFAULT_WHATSAPP_TEMPLATE, Settings

OVERFLOW_POLICIES = ("contain", "allow")


@dataclass(frozen=True)
class SlotConfig:
    """
    Configuration for the slot grid.

    Attributes:
        start_hour: First hour a slot may start (0-23)
        end_hour: Hour at which no new slot may start (1-24)
        slot_duration_minutes: Length of one interview
        break_duration_minutes: Gap after each interview
        number_of_days: Horizon length, counted from tomorrow
        whatsapp_template: Confirmation message with {name}/{day}/{date}/{time}/{link}
        overflow: "contain" keeps slots inside end_hour,
                  "allow" lets the last slot run past it
    """
    start_hour: int = 9
    end_hour: int = 17
    slot_duration_minutes: int = 60
    break_duration_minutes: int = 15
    number_of_days: int = 3
    whatsapp_template: str = DEFAULT_WHATSAPP_TEMPLATE
    overflow: str = "contain"

    def __post_init__(self):
        """Validate configuration."""
        if not 0 <= self.start_hour <= 23:
            raise ValueError(f"start_hour must be between 0 and 23, got {self.start_hour}")
        if not 1 <= self.end_hour <= 24:
            raise ValueError(f"end_hour must be between 1 and 24, got {self.end_hour}")
        if self.start_hour >= self.end_hour:
            raise ValueError("Start hour must be before end hour")
        if self.slot_duration_minutes <= 0:
            raise ValueError("slot_duration_minutes must be positive")
        if self.break_duration_minutes < 0:
            raise ValueError("break_duration_minutes cannot be negative")
        if self.number_of_days < 1:
            raise ValueError("number_of_days must be at least 1")
        if self.overflow not in OVERFLOW_POLICIES:
            raise ValueError(f"overflow must be one of {OVERFLOW_POLICIES}, got {self.overflow!r}")

    @property
    def day_start_minutes(self) -> int:
        return self.start_hour * 60

    @property
    def day_end_minutes(self) -> int:
        return self.end_hour * 60

    @property
    def step_minutes(self) -> int:
        return self.slot_duration_minutes + self.break_duration_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "SlotConfig":
        return cls(
            start_hour=settings.start_hour,
            end_hour=settings.end_hour,
            slot_duration_minutes=settings.slot_duration_minutes,
            break_duration_minutes=settings.break_duration_minutes,
            number_of_days=settings.booking_days,
            whatsapp_template=settings.whatsapp_template,
            overflow=settings.slot_overflow,
        )

    def merged(self, overrides: dict) -> "SlotConfig":
        """Return a copy with non-null overrides applied (validated again)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


def time_str_to_minutes(time_str: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hour, minute = time_str.split(":")
    return int(hour) * 60 + int(minute)


def minutes_to_time_str(minutes: int) -> str:
    """
    Convert minutes since midnight to "HH:MM".

    Values past midnight keep counting hours ("24:00", "24:30").
    """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
