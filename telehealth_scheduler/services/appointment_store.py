"""
SQLAlchemy-backed stores for availability windows and appointments
Each call opens its own session; objects returned are detached snapshots
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from telehealth_scheduler.database import SessionLocal
from telehealth_scheduler.errors import SlotConflict, TransactionFailure
from telehealth_scheduler.models.appointment import (
    ACTIVE_STATUS_VALUES,
    Appointment,
    AppointmentKind,
    AppointmentStatus,
)
from telehealth_scheduler.models.availability import DayOfWeek, ProviderAvailability
from telehealth_scheduler.utils.timezone_utils import ensure_utc

logger = logging.getLogger(__name__)


class SqlAvailabilityStore:
    """Reads provider availability windows"""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def list_availability_windows(self, provider_id: str, day_of_week: DayOfWeek) -> List[ProviderAvailability]:
        """All windows for a provider on one day of the week, ordered by start time"""
        with self.session_factory() as session:
            return (
                session.query(ProviderAvailability)
                .filter(
                    ProviderAvailability.provider_id == provider_id,
                    ProviderAvailability.day_of_week == day_of_week.value,
                )
                .order_by(ProviderAvailability.start_time)
                .all()
            )


class SqlAppointmentStore:
    """
    Reads active appointments and writes new ones

    Writes rely on the partial unique index on (provider_id, appointment_date)
    to reject a slot taken between the availability check and the insert.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def list_active_appointments(
        self,
        provider_id: str,
        range_start: datetime,
        range_end: datetime,
        exclude_appointment_id: Optional[str] = None
    ) -> List[Appointment]:
        """Active patient appointments starting in [range_start, range_end)"""
        range_start, range_end = ensure_utc(range_start), ensure_utc(range_end)
        with self.session_factory() as session:
            query = session.query(Appointment).filter(
                Appointment.provider_id == provider_id,
                Appointment.kind == AppointmentKind.APPOINTMENT.value,
                Appointment.status.in_(ACTIVE_STATUS_VALUES),
                Appointment.appointment_date >= range_start,
                Appointment.appointment_date < range_end,
            )
            if exclude_appointment_id:
                query = query.filter(Appointment.id != exclude_appointment_id)
            return query.order_by(Appointment.appointment_date).all()

    def create_appointments_transactionally(self, records: Sequence[Appointment]) -> List[str]:
        """
        Insert all records in one transaction

        Returns:
            Appointment ids, in the order given

        Raises:
            SlotConflict: a record collides with an active appointment
            TransactionFailure: any other database error; nothing is written
        """
        try:
            with self.session_factory() as session, session.begin():
                session.add_all(records)
        except IntegrityError as e:
            logger.warning("Appointment batch rejected by slot constraint: %s", e.orig)
            raise SlotConflict("One or more requested time slots were booked by another request") from e
        except SQLAlchemyError as e:
            logger.exception("Appointment batch write failed")
            raise TransactionFailure(f"Failed to create appointments: {e}") from e

        return [record.id for record in records]

    def create_blocked_slot(
        self,
        provider_id: str,
        start: datetime,
        duration: int,
        reason: Optional[str] = None
    ) -> Appointment:
        """Store a BLOCKED entry for the provider's calendar"""
        blocked = build_blocked_slot(provider_id, start, duration, reason)
        try:
            with self.session_factory() as session, session.begin():
                session.add(blocked)
        except SQLAlchemyError as e:
            logger.exception("Failed to block time slot for provider %s", provider_id)
            raise TransactionFailure(f"Failed to block time slot: {e}") from e
        return blocked

    def delete_blocked_slot(self, provider_id: str, blocked_id: str) -> bool:
        with self.session_factory() as session, session.begin():
            deleted = (
                session.query(Appointment)
                .filter(
                    Appointment.id == blocked_id,
                    Appointment.provider_id == provider_id,
                    Appointment.kind == AppointmentKind.BLOCKED.value,
                )
                .delete(synchronize_session=False)
            )
        return deleted > 0


def build_blocked_slot(provider_id: str, start: datetime, duration: int, reason: Optional[str] = None) -> Appointment:
    return Appointment(
        provider_id=provider_id,
        patient_id=None,
        appointment_date=start,
        duration=duration,
        status=AppointmentStatus.CANCELLED.value,
        kind=AppointmentKind.BLOCKED.value,
        reason=reason or "Time slot blocked",
    )
