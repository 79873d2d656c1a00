# barbershop/main.py
"""
FastAPI application for barbershop bookings
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from barbershop.config import Settings, get_settings
from barbershop.core.timeutils import Clock, utcnow
from barbershop.db import create_db_and_tables, create_db_engine
from barbershop.errors import BookingError
from barbershop.logging_config import setup_logging
from barbershop.routers import (
    admin_routes,
    appointments_routes,
    auth_routes,
    barbers_routes,
    services_routes,
    slots_routes,
    users_routes,
)
from barbershop.services.notifications import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Erro interno do servidor. Tente novamente."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    settings = app.state.settings
    setup_logging(settings)
    create_db_and_tables(app.state.engine)
    logger.info("%s starting up (timezone %s)", settings.APP_NAME, settings.BUSINESS_TIMEZONE)

    yield

    logger.info("%s shutting down", settings.APP_NAME)


async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": INTERNAL_ERROR_MESSAGE},
    )


def create_app(
    settings: Optional[Settings] = None,
    clock: Clock = utcnow,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    """Create and configure FastAPI application"""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.state.settings = settings
    app.state.engine = create_db_engine(settings)
    app.state.clock = clock
    app.state.notifier = notifier or LoggingNotifier()

    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(auth_routes.router)
    app.include_router(users_routes.router)
    app.include_router(services_routes.router)
    app.include_router(slots_routes.router)
    app.include_router(appointments_routes.router)
    app.include_router(barbers_routes.router)
    app.include_router(admin_routes.router)

    return app
