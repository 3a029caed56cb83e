# scheduler/main.py
"""
Application factory.

Run with:
    uvicorn scheduler.main:create_app --factory
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI
from redis import Redis
from redis.exceptions import RedisError

from .config import Settings, get_settings
from .errors import register_exception_handlers
from .logging_config import setup_logging
from .redis_client import create_redis_client
from .routers import admin, blocks, config, final_interview, integrations, jobs, slots
from .services.booking import BookingService
from .services.google_calendar import GoogleCalendar
from .services.slot_settings import business_now
from .services.storage import RedisBookingStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    redis: Optional[Redis] = None,
    calendar=None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Build the API with one store, one calendar client and one booking service.

    Args:
        settings: Defaults to environment settings
        redis: Defaults to a client for settings.redis_url
        calendar: Defaults to GoogleCalendar when OAuth credentials are set
        clock: Business-local "now"; defaults to the wall clock
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    redis = redis if redis is not None else create_redis_client(settings)
    store = RedisBookingStore(redis)

    if calendar is None and settings.google_configured:
        calendar = GoogleCalendar(settings, store)
    if calendar is None:
        logger.warning("Google Calendar is not configured, bookings will have no Meet link")

    clock = clock or (lambda: business_now(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Interview scheduler started (timezone={settings.business_timezone})")
        yield
        redis.close()

    app = FastAPI(title="Interview Scheduler API", lifespan=lifespan)

    app.state.settings = settings
    app.state.redis = redis
    app.state.store = store
    app.state.calendar = calendar
    app.state.clock = clock
    app.state.booking_service = BookingService(store, settings, calendar=calendar, clock=clock)

    register_exception_handlers(app)

    app.include_router(slots.router)
    app.include_router(final_interview.router)
    app.include_router(jobs.router)
    app.include_router(admin.router)
    app.include_router(blocks.router)
    app.include_router(config.router)
    app.include_router(integrations.router)
    app.include_router(jobs.admin_router)

    @app.get("/health")
    def health():
        try:
            redis_ok = bool(redis.ping())
        except RedisError as e:
            logger.error(f"Redis ping failed: {e}")
            redis_ok = False
        return {"redis": redis_ok}

    return app
