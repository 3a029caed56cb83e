# scheduler/dependencies.py
"""
Request-scoped access to the collaborators built in create_app().

Admin routes depend on require_admin: the shared secret is passed with every
request (query parameter "secret" or X-Admin-Secret header) and checked on
every call.
"""

import hmac
from datetime import datetime
from typing import Optional

from fastapi import Header, Query, Request

from .config import Settings
from .errors import AuthorizationError
from .services.booking import BookingService
from .services.storage import BookingStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> BookingStore:
    return request.app.state.store


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service


def get_now(request: Request) -> datetime:
    return request.app.state.clock()


def is_authorized(candidate: Optional[str], secret: str) -> bool:
    if not candidate or not secret:
        return False
    return hmac.compare_digest(candidate.encode(), secret.encode())


def check_admin_secret(candidate: Optional[str], settings: Settings) -> None:
    if not candidate:
        raise AuthorizationError("Authentication required", status_code=401)
    if not is_authorized(candidate, settings.admin_secret):
        raise AuthorizationError("Invalid credentials")


def require_admin(
    request: Request,
    secret: Optional[str] = Query(None),
    x_admin_secret: Optional[str] = Header(None),
) -> None:
    check_admin_secret(secret or x_admin_secret, get_settings(request))
