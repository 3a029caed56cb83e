# scheduler/config.py

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]

DEFAULT_WHATSAPP_TEMPLATE = (
    "Hello {name}, your interview is confirmed for {day}, {date} at {time}. "
    "Video Link: {link}"
)


class Settings(BaseSettings):
    admin_secret: str

    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: float = 2.0

    # Slot defaults, overridden per field by the stored admin config
    start_hour: int = 9
    end_hour: int = 17
    slot_duration_minutes: int = 60
    break_duration_minutes: int = 15
    booking_days: int = 3
    slot_overflow: str = "contain"
    whatsapp_template: str = DEFAULT_WHATSAPP_TEMPLATE

    business_timezone: str = "Asia/Dhaka"
    whatsapp_pattern: str = r"^\+8801\d{9}$"

    google_client_id: str = ""
    google_client_secret: str = ""
    google_calendar_id: str = "primary"
    app_url: str = "http://localhost:8000"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def google_redirect_uri(self) -> str:
        return f"{self.app_url.rstrip('/')}/admin/integrations/google/callback"

    @property
    def google_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read once at startup."""
    return Settings()
