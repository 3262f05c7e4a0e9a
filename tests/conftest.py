"""
Shared fixtures for the scheduling tests
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from telehealth_scheduler.database import init_db
from telehealth_scheduler.models.appointment import Appointment, AppointmentStatus
from telehealth_scheduler.models.availability import DayOfWeek, ProviderAvailability
from telehealth_scheduler.models.provider import ApprovalStatus, Provider
from telehealth_scheduler.services.in_memory_store import (
    InMemoryAppointmentStore,
    InMemoryAvailabilityStore,
    InMemoryProviderDirectory,
)
from telehealth_scheduler.services.scheduling_service import SchedulingService

from helpers import PATIENT_ID, PROVIDER_ID


@pytest.fixture
def availability_store():
    return InMemoryAvailabilityStore()


@pytest.fixture
def appointment_store():
    return InMemoryAppointmentStore()


@pytest.fixture
def service(availability_store, appointment_store):
    return SchedulingService(availability_store, appointment_store)


@pytest.fixture
def add_window(availability_store):
    """Add an availability window: add_window(DayOfWeek.MONDAY, "09:00", "17:00")"""
    def _add(day_of_week, start_time, end_time, provider_id=PROVIDER_ID, is_available=True):
        return availability_store.add_window(ProviderAvailability(
            provider_id=provider_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            is_available=is_available,
        ))
    return _add


@pytest.fixture
def every_day(add_window):
    """Provider works 09:00-17:00 every day of the week"""
    def _add(start_time="09:00", end_time="17:00"):
        for day_of_week in DayOfWeek:
            add_window(day_of_week, start_time, end_time)
    return _add


@pytest.fixture
def book(appointment_store):
    """Insert an existing appointment: book(utc(...), duration=30)"""
    def _book(start, duration=30, status=AppointmentStatus.SCHEDULED, provider_id=PROVIDER_ID, patient_id=PATIENT_ID):
        return appointment_store.add(Appointment(
            provider_id=provider_id,
            patient_id=patient_id,
            appointment_date=start,
            duration=duration,
            status=status.value,
        ))
    return _book


@pytest.fixture
def provider_directory():
    return InMemoryProviderDirectory([
        Provider(id=PROVIDER_ID, name="Dr. Ada Lovelace", approval_status=ApprovalStatus.APPROVED.value),
        Provider(id="provider-pending", name="Dr. Pending", approval_status=ApprovalStatus.PENDING.value),
        Provider(
            id="provider-inactive",
            name="Dr. Inactive",
            approval_status=ApprovalStatus.APPROVED.value,
            is_active=False,
        ),
    ])


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    assert init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
