# scheduler/routers/integrations.py
# API endpoints for the admin Google Calendar integration

import logging

from fastapi import APIRouter, Depends, Query

from ..config import Settings
from ..dependencies import get_settings, get_store, require_admin
from ..errors import ExternalIntegrationError, ValidationError
from ..schemas.integrations import IntegrationStatusRead, OAuthCallbackResponse
from ..services.google_calendar import exchange_code_for_token, get_oauth_url
from ..services.storage import BookingStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/integrations", tags=["integrations"])


def _ensure_configured(settings: Settings) -> None:
    if not settings.google_configured:
        raise ExternalIntegrationError("Google Calendar is not configured")


@router.get("/google/auth-url", dependencies=[Depends(require_admin)])
def get_google_auth_url(
    settings: Settings = Depends(get_settings),
    store: BookingStore = Depends(get_store),
) -> dict:
    """
    Generate OAuth URL for Google Calendar authorization.

    The admin should be redirected to this URL to authorize access.
    """
    _ensure_configured(settings)
    return {"authUrl": get_oauth_url(settings, store)}


@router.get("/google/callback", response_model=OAuthCallbackResponse)
def handle_google_callback(
    code: str = Query(..., description="Authorization code from Google"),
    state: str = Query(..., description="One-time state issued with the auth URL"),
    settings: Settings = Depends(get_settings),
    store: BookingStore = Depends(get_store),
):
    """
    Handle OAuth callback from Google.

    Google redirects here without the admin secret; the state nonce
    issued by auth-url authenticates the request instead.
    """
    _ensure_configured(settings)
    try:
        exchange_code_for_token(settings, store, code, state)
    except ValueError as e:
        raise ValidationError(str(e))

    return OAuthCallbackResponse(success=True, message="Google Calendar connected successfully")


@router.get("/google/status", response_model=IntegrationStatusRead, dependencies=[Depends(require_admin)])
def get_google_status(
    settings: Settings = Depends(get_settings),
    store: BookingStore = Depends(get_store),
):
    record = store.get_integration_token()
    return IntegrationStatusRead(
        configured=settings.google_configured,
        is_connected=record is not None,
        connected_at=record.connected_at if record else None,
    )


@router.delete("/google", dependencies=[Depends(require_admin)])
def disconnect_google(store: BookingStore = Depends(get_store)):
    """Forget the stored refresh token. Existing events stay in the calendar."""
    removed = store.delete_integration_token()
    if removed:
        logger.info("Google Calendar disconnected")
    return {"success": True, "message": "Google Calendar disconnected"}
