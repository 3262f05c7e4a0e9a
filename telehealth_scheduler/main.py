"""
Telehealth Scheduling Service - Main Application
FastAPI backend for appointment slot generation, conflict checks and recurring bookings
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from telehealth_scheduler import config
from telehealth_scheduler.api.scheduling import router as scheduling_router
from telehealth_scheduler.database import init_db
from telehealth_scheduler.services.appointment_store import SqlAppointmentStore, SqlAvailabilityStore
from telehealth_scheduler.services.in_memory_store import (
    InMemoryAppointmentStore,
    InMemoryAvailabilityStore,
    InMemoryProviderDirectory,
)
from telehealth_scheduler.services.provider_directory import SqlProviderDirectory
from telehealth_scheduler.services.scheduling_service import SchedulingService

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_scheduling_components(db_available: bool):
    """Scheduling service and provider directory backed by the database, or by memory in demo mode"""
    if db_available:
        return SchedulingService(SqlAvailabilityStore(), SqlAppointmentStore()), SqlProviderDirectory()

    logger.warning("Database not available, continuing in demo mode (in-memory storage)")
    return (
        SchedulingService(InMemoryAvailabilityStore(), InMemoryAppointmentStore()),
        InMemoryProviderDirectory(),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": jsonable_encoder(exc.errors())},
    )


def create_app(scheduling_service: SchedulingService = None, provider_directory=None) -> FastAPI:
    """
    Build the FastAPI application

    When no service is passed, one is built on startup after the database
    has been initialized.
    """
    app = FastAPI(
        title="Telehealth Scheduling Service",
        description="Appointment slot generation, conflict detection and recurring bookings",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(scheduling_router)

    if scheduling_service is not None:
        app.state.scheduling_service = scheduling_service
        app.state.provider_directory = provider_directory
    else:
        @app.on_event("startup")
        def startup_event():
            """Initialize database and the shared scheduling service"""
            logger.info("Starting Telehealth Scheduling Service...")
            db_available = init_db()
            app.state.scheduling_service, app.state.provider_directory = build_scheduling_components(db_available)
            logger.info("System ready")

    @app.get("/")
    def root():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "Telehealth Scheduling Service",
            "version": "1.0.0",
        }

    return app


app = create_app()
