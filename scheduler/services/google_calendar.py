"""
scheduler/services/google_calendar.py

Google Calendar integration for the admin's calendar.

Handles:
- OAuth URL generation and code exchange (refresh token is persisted)
- Interview event creation with a Google Meet link
- Event deletion
"""

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..config import Settings
from ..errors import ExternalIntegrationError
from .slots.config import time_str_to_minutes
from .storage import BookingStore, IntegrationTokenRecord

logger = logging.getLogger(__name__)

# Scopes needed for calendar access
SCOPES = ["https://www.googleapis.com/auth/calendar.events"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
STATE_TTL_SECONDS = 600


@dataclass(frozen=True)
class CalendarEvent:
    event_id: Optional[str]
    meet_link: Optional[str]


def _get_client_config(settings: Settings) -> dict:
    """Build OAuth client configuration from settings."""
    return {
        "web": {
            "client_id": settings.google_client_id,
            "client_secret": settings.google_client_secret,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": TOKEN_URI,
            "redirect_uris": [settings.google_redirect_uri],
        }
    }


def _build_flow(settings: Settings, code_verifier: Optional[str] = None) -> Flow:
    # PKCE: the verifier issued with the consent URL must reach the token exchange
    return Flow.from_client_config(
        _get_client_config(settings),
        scopes=SCOPES,
        redirect_uri=settings.google_redirect_uri,
        code_verifier=code_verifier,
        autogenerate_code_verifier=True,
    )


def get_oauth_url(settings: Settings, store: BookingStore) -> str:
    """
    Generate the consent URL for connecting the admin calendar.

    A one-time nonce is stored as the OAuth state, together with the PKCE
    code verifier, and checked at callback.
    """
    state = secrets.token_hex(16)
    flow = _build_flow(settings)
    authorization_url, _ = flow.authorization_url(
        access_type="offline",
        include_granted_scopes="true",
        state=state,
        prompt="consent",
    )
    store.save_oauth_state(state, STATE_TTL_SECONDS, flow.code_verifier)
    return authorization_url


def exchange_code_for_token(settings: Settings, store: BookingStore, code: str, state: str) -> IntegrationTokenRecord:
    """
    Exchange the authorization code and persist the refresh token.

    Raises:
        ValueError: If the state is unknown/expired, the exchange fails,
                    or Google returns no refresh token
    """
    code_verifier = store.consume_oauth_state(state)
    if code_verifier is None:
        raise ValueError("Invalid or expired state parameter")

    flow = _build_flow(settings, code_verifier or None)
    try:
        flow.fetch_token(code=code)
    except Exception as e:
        logger.error(f"Token exchange failed: {e}")
        raise ValueError(f"Token exchange failed: {e}")

    refresh_token = flow.credentials.refresh_token
    if not refresh_token:
        # Google omits it when consent was already granted without prompt
        raise ValueError("No refresh token returned")

    record = IntegrationTokenRecord(
        refresh_token=refresh_token,
        connected_at=datetime.now(timezone.utc),
    )
    store.set_integration_token(record)
    logger.info("Google Calendar connected")
    return record


def _get_calendar_service(settings: Settings, refresh_token: str):
    """Build Google Calendar API service client."""
    credentials = Credentials(
        token=None,
        refresh_token=refresh_token,
        token_uri=TOKEN_URI,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
    )
    return build("calendar", "v3", credentials=credentials, cache_discovery=False)


class GoogleCalendar:
    """Calendar collaborator used by the booking service."""

    def __init__(self, settings: Settings, store: BookingStore):
        self.settings = settings
        self.store = store

    def _refresh_token(self) -> Optional[str]:
        record = self.store.get_integration_token()
        return record.refresh_token if record else None

    def is_connected(self) -> bool:
        return self._refresh_token() is not None

    def create_event(
        self,
        name: str,
        email: str,
        date: str,
        start_time: str,
        end_time: str,
    ) -> Optional[CalendarEvent]:
        """
        Create an interview event with a Meet conference.

        Returns:
            CalendarEvent, or None if no calendar is connected.

        Raises:
            ExternalIntegrationError: If the Google API call fails
        """
        refresh_token = self._refresh_token()
        if not refresh_token:
            return None

        tz_name = self.settings.business_timezone
        event = {
            "summary": f"Interview with {name}",
            "description": f"Interview scheduled via the interview scheduler. Applicant: {name} ({email})",
            "start": {
                "dateTime": _event_datetime(date, start_time),
                "timeZone": tz_name,
            },
            "end": {
                "dateTime": _event_datetime(date, end_time),
                "timeZone": tz_name,
            },
            "attendees": [{"email": email}],
            "conferenceData": {
                "createRequest": {
                    "requestId": f"meet-{uuid.uuid4().hex}",
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                },
            },
        }

        try:
            service = _get_calendar_service(self.settings, refresh_token)
            created_event = service.events().insert(
                calendarId=self.settings.google_calendar_id,
                body=event,
                conferenceDataVersion=1,
            ).execute()
        except (HttpError, GoogleAuthError, OSError) as e:
            raise ExternalIntegrationError(f"Failed to create calendar event: {e}") from e

        logger.info(f"Created Google Calendar event: {created_event.get('id')}")
        return CalendarEvent(
            event_id=created_event.get("id"),
            meet_link=created_event.get("hangoutLink"),
        )

    def delete_event(self, event_id: str) -> bool:
        """
        Delete a calendar event.

        Returns:
            True if the event is gone, False if no calendar is connected.

        Raises:
            ExternalIntegrationError: If the Google API call fails
        """
        refresh_token = self._refresh_token()
        if not refresh_token or not event_id:
            return False

        try:
            service = _get_calendar_service(self.settings, refresh_token)
            service.events().delete(
                calendarId=self.settings.google_calendar_id,
                eventId=event_id,
            ).execute()
        except HttpError as e:
            if e.resp.status in (404, 410):
                # Event already deleted
                logger.warning(f"Calendar event not found: {event_id}")
                return True
            raise ExternalIntegrationError(f"Failed to delete calendar event: {e}") from e
        except (GoogleAuthError, OSError) as e:
            raise ExternalIntegrationError(f"Failed to delete calendar event: {e}") from e

        logger.info(f"Deleted Google Calendar event: {event_id}")
        return True


def _event_datetime(date: str, time_str: str) -> str:
    """Local "YYYY-MM-DDTHH:MM:00"; times past midnight roll to the next day."""
    start = datetime.strptime(date, "%Y-%m-%d")
    return (start + timedelta(minutes=time_str_to_minutes(time_str))).strftime("%Y-%m-%dT%H:%M:%S")
