"""
Scheduling service - the entry point request handlers call
Built once at startup and shared; holds no per-request state
"""

import logging
from datetime import date as calendar_date, datetime, timedelta
from typing import Iterable, List, Optional, Union

from telehealth_scheduler import config
from telehealth_scheduler.models.appointment import Appointment
from telehealth_scheduler.models.schemas import AffectedAppointment, RecurringAppointmentRequest, SlotAvailability, TimeSlot
from telehealth_scheduler.services.availability_evaluator import AvailabilityEvaluator, validate_duration
from telehealth_scheduler.services.conflict_detector import ConflictDetector
from telehealth_scheduler.services.recurrence_expander import RecurrenceExpander, RecurringSeriesResult
from telehealth_scheduler.services.slot_generator import SlotGenerator
from telehealth_scheduler.utils.timezone_utils import DISPLAY_PATTERN, ensure_utc, format_in_timezone, to_utc_instant

logger = logging.getLogger(__name__)


class SchedulingService:
    """
    Service for slot listing, slot checks and recurring bookings

    The stores are injected, so the same service runs against the database
    or against the in-memory stores used in demo mode and tests.
    """

    def __init__(self, availability_store, appointment_store):
        self.availability_store = availability_store
        self.appointment_store = appointment_store
        self.evaluator = AvailabilityEvaluator(availability_store, appointment_store)
        self.slot_generator = SlotGenerator(availability_store, appointment_store)
        self.recurrence_expander = RecurrenceExpander(self.evaluator, appointment_store)
        self.conflict_detector = ConflictDetector(self.slot_generator, appointment_store)

    def get_available_slots(
        self,
        provider_id: str,
        date: Union[str, calendar_date],
        timezone: str,
        duration: int = config.DEFAULT_SLOT_DURATION
    ) -> List[TimeSlot]:
        return self.slot_generator.get_available_slots(provider_id, date, timezone, duration)

    def is_slot_available(
        self,
        provider_id: str,
        start: datetime,
        duration: int,
        exclude_appointment_id: Optional[str] = None,
        timezone: Optional[str] = None
    ) -> SlotAvailability:
        return self.evaluator.is_slot_available(
            provider_id, start, duration, exclude_appointment_id=exclude_appointment_id, timezone=timezone
        )

    def suggest_alternative_slots(
        self,
        provider_id: str,
        start: datetime,
        duration: int,
        timezone: Optional[str] = None
    ) -> List[TimeSlot]:
        return self.conflict_detector.suggest_alternative_slots(provider_id, start, duration, timezone=timezone)

    def buffer_warnings(
        self,
        provider_id: str,
        start: datetime,
        duration: int,
        exclude_appointment_id: Optional[str] = None
    ) -> List[str]:
        return self.conflict_detector.buffer_warnings(
            provider_id, start, duration, exclude_appointment_id=exclude_appointment_id
        )

    def find_affected_appointments(
        self,
        provider_id: str,
        windows: Iterable,
        timezone: str,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None
    ) -> List[AffectedAppointment]:
        """Appointments a proposed working-hours change would leave outside the new hours"""
        return self.conflict_detector.find_affected_appointments(
            provider_id, windows, timezone, range_start=range_start, range_end=range_end
        )

    def create_recurring_appointments(self, request: RecurringAppointmentRequest) -> List[str]:
        return self.recurrence_expander.create_recurring_appointments(request)

    def create_recurring_series(self, request: RecurringAppointmentRequest) -> RecurringSeriesResult:
        return self.recurrence_expander.create_recurring_series(request)

    def block_slot(self, provider_id: str, start: datetime, duration: int, reason: Optional[str] = None) -> Appointment:
        """Mark time on the provider's calendar as blocked"""
        validate_duration(duration)
        blocked = self.appointment_store.create_blocked_slot(provider_id, ensure_utc(start), duration, reason)
        logger.info("Blocked %d minutes at %s for provider %s", duration, blocked.start_utc.isoformat(), provider_id)
        return blocked

    def unblock_slot(self, provider_id: str, blocked_id: str) -> bool:
        return self.appointment_store.delete_blocked_slot(provider_id, blocked_id)

    @staticmethod
    def blocked_slot_end(blocked: Appointment) -> datetime:
        return blocked.start_utc + timedelta(minutes=blocked.duration)

    @staticmethod
    def format_time_for_timezone(utc_time: datetime, timezone: str) -> str:
        """Convert UTC time to user's timezone for display"""
        return format_in_timezone(utc_time, timezone, DISPLAY_PATTERN)

    @staticmethod
    def convert_to_utc(local_time: datetime, timezone: str) -> datetime:
        """Convert user's timezone time to UTC for storage"""
        return to_utc_instant(local_time, timezone)
