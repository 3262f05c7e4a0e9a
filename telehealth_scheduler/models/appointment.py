"""
Appointment database model
Only the fields the scheduling core reads or writes
"""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Boolean, Column, Computed, DateTime, Index, Integer, String, Text
from sqlalchemy.sql import func

from telehealth_scheduler.database import Base
from telehealth_scheduler.utils.timezone_utils import ensure_utc


class AppointmentStatus(PyEnum):
    """Appointment lifecycle status"""
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


# Statuses that occupy the provider's time
ACTIVE_STATUSES = (
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.IN_PROGRESS,
)
ACTIVE_STATUS_VALUES = tuple(status.value for status in ACTIVE_STATUSES)


class AppointmentKind(PyEnum):
    """What a row in the appointments table represents"""
    APPOINTMENT = "APPOINTMENT"  # A patient booking
    BLOCKED = "BLOCKED"  # Time manually blocked by the provider, no patient


class ConsultationType(PyEnum):
    VIDEO = "VIDEO"
    AUDIO = "AUDIO"
    IN_PERSON = "IN_PERSON"


class RecurrencePattern(PyEnum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


# provider_id while the row is active, NULL otherwise. NULLs never collide
# in a unique index on MySQL, PostgreSQL or SQLite.
_ACTIVE_SLOT_SQL = "CASE WHEN status IN ({}) THEN provider_id END".format(
    ", ".join(f"'{value}'" for value in ACTIVE_STATUS_VALUES)
)


class Appointment(Base):
    """
    Appointment model

    Blocked slots live in the same table with kind=BLOCKED and no patient.
    They are stored CANCELLED, so they never count as a conflict.
    """
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)

    provider_id = Column(String(36), nullable=False, index=True)
    patient_id = Column(String(36), nullable=True, index=True)  # None for blocked slots

    appointment_date = Column(DateTime(timezone=True), nullable=False)  # UTC instant
    duration = Column(Integer, nullable=False, default=30)  # minutes

    # Use String for MySQL compatibility (Enum requires CREATE TYPE elsewhere)
    status = Column(String(20), nullable=False, default=AppointmentStatus.SCHEDULED.value, index=True)
    kind = Column(String(20), nullable=False, default=AppointmentKind.APPOINTMENT.value)

    reason = Column(Text, nullable=True)
    consultation_type = Column(String(20), nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurrence_pattern = Column(String(20), nullable=True)

    # Generated by the database from status and provider_id
    active_slot_provider_id = Column(String(36), Computed(_ACTIVE_SLOT_SQL, persisted=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_appointment_provider_date", "provider_id", "appointment_date"),
        # One active appointment per provider start time. Cancelled and
        # completed rows carry NULL here and can share a start time.
        Index(
            "uq_appointment_provider_active_slot",
            "active_slot_provider_id",
            "appointment_date",
            unique=True,
        ),
    )

    def __init__(self, **kwargs):
        # Column defaults only apply on flush; in-memory rows need them up front
        kwargs.setdefault("id", str(uuid.uuid4()))
        kwargs.setdefault("duration", 30)
        kwargs.setdefault("status", AppointmentStatus.SCHEDULED.value)
        kwargs.setdefault("kind", AppointmentKind.APPOINTMENT.value)
        kwargs.setdefault("is_recurring", False)
        super().__init__(**kwargs)

    @property
    def start_utc(self):
        return ensure_utc(self.appointment_date)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUS_VALUES

    @property
    def is_blocked(self) -> bool:
        return self.kind == AppointmentKind.BLOCKED.value

    def __repr__(self):
        return f"<Appointment(id={self.id}, provider={self.provider_id}, date={self.appointment_date}, status={self.status})>"
