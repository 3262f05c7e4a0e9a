"""
In-memory stores for demo mode when the database is unavailable
Provide the same interface as the SQL stores but keep rows in memory
"""

import logging
import threading
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from telehealth_scheduler.errors import SlotConflict
from telehealth_scheduler.models.appointment import Appointment, AppointmentKind
from telehealth_scheduler.models.availability import DayOfWeek, ProviderAvailability
from telehealth_scheduler.models.provider import Provider
from telehealth_scheduler.services.appointment_store import build_blocked_slot
from telehealth_scheduler.services.provider_directory import ensure_bookable
from telehealth_scheduler.utils.timezone_utils import ensure_utc

logger = logging.getLogger(__name__)


class InMemoryAvailabilityStore:

    def __init__(self, windows: Iterable[ProviderAvailability] = ()):
        self._windows: List[ProviderAvailability] = list(windows)

    def add_window(self, window: ProviderAvailability) -> ProviderAvailability:
        self._windows.append(window)
        return window

    def list_availability_windows(self, provider_id: str, day_of_week: DayOfWeek) -> List[ProviderAvailability]:
        windows = [
            w for w in self._windows
            if w.provider_id == provider_id and w.day_of_week == day_of_week.value
        ]
        return sorted(windows, key=lambda w: w.start_time)


class InMemoryAppointmentStore:
    """
    In-memory appointment store

    Enforces the same one-active-appointment-per-start-time rule as the
    database index, so write-time conflicts surface as SlotConflict here too.
    FastAPI runs sync endpoints on a thread pool; every read and write holds
    the store lock, so the batch check-and-insert is atomic.
    """

    def __init__(self, appointments: Iterable[Appointment] = ()):
        self._lock = threading.RLock()
        self._appointments: Dict[str, Appointment] = {}
        for appointment in appointments:
            self.add(appointment)

    def add(self, appointment: Appointment) -> Appointment:
        """Insert one row as-is (no conflict checks)"""
        with self._lock:
            self._appointments[appointment.id] = appointment
        return appointment

    def get(self, appointment_id: str) -> Optional[Appointment]:
        with self._lock:
            return self._appointments.get(appointment_id)

    def all(self) -> List[Appointment]:
        with self._lock:
            rows = list(self._appointments.values())
        return sorted(rows, key=lambda a: a.start_utc)

    def list_active_appointments(
        self,
        provider_id: str,
        range_start: datetime,
        range_end: datetime,
        exclude_appointment_id: Optional[str] = None
    ) -> List[Appointment]:
        range_start, range_end = ensure_utc(range_start), ensure_utc(range_end)
        return [
            a for a in self.all()
            if a.provider_id == provider_id
            and a.kind == AppointmentKind.APPOINTMENT.value
            and a.is_active
            and range_start <= a.start_utc < range_end
            and a.id != exclude_appointment_id
        ]

    def create_appointments_transactionally(self, records: Sequence[Appointment]) -> List[str]:
        with self._lock:
            taken = {(a.provider_id, a.start_utc) for a in self._appointments.values() if a.is_active}
            for record in records:
                key = (record.provider_id, record.start_utc)
                if record.is_active and key in taken:
                    logger.warning("Appointment batch rejected: %s at %s already booked", *key)
                    raise SlotConflict("One or more requested time slots were booked by another request")
                if record.is_active:
                    taken.add(key)

            for record in records:
                self.add(record)
        return [record.id for record in records]

    def create_blocked_slot(
        self,
        provider_id: str,
        start: datetime,
        duration: int,
        reason: Optional[str] = None
    ) -> Appointment:
        return self.add(build_blocked_slot(provider_id, start, duration, reason))

    def delete_blocked_slot(self, provider_id: str, blocked_id: str) -> bool:
        with self._lock:
            blocked = self._appointments.get(blocked_id)
            if blocked is None or blocked.provider_id != provider_id or not blocked.is_blocked:
                return False
            del self._appointments[blocked_id]
        return True


class InMemoryProviderDirectory:

    def __init__(self, providers: Iterable[Provider] = ()):
        self._providers: Dict[str, Provider] = {p.id: p for p in providers}

    def add(self, provider: Provider) -> Provider:
        self._providers[provider.id] = provider
        return provider

    def get_provider(self, provider_id: str) -> Optional[Provider]:
        return self._providers.get(provider_id)

    def ensure_bookable(self, provider_id: str) -> Provider:
        return ensure_bookable(self.get_provider(provider_id), provider_id)
