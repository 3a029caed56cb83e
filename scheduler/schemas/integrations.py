# scheduler/schemas/integrations.py

from datetime import datetime
from typing import Optional

from .base import CamelModel


class IntegrationStatusRead(CamelModel):
    provider: str = "google_calendar"
    configured: bool
    is_connected: bool
    connected_at: Optional[datetime] = None


class OAuthCallbackResponse(CamelModel):
    success: bool
    message: str
