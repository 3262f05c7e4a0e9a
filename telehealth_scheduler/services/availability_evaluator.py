"""
Availability Evaluator
Single source of truth for "is this exact requested slot bookable"
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from telehealth_scheduler import config
from telehealth_scheduler.errors import InvalidInput
from telehealth_scheduler.models.appointment import Appointment
from telehealth_scheduler.models.schemas import SlotAvailability
from telehealth_scheduler.utils.timezone_utils import day_of_week_for, ensure_utc, local_time_string

PROVIDER_UNAVAILABLE_REASON = "Provider not available at this time"


def validate_duration(duration: int) -> int:
    if not isinstance(duration, int) or not (
        config.MIN_APPOINTMENT_DURATION <= duration <= config.MAX_APPOINTMENT_DURATION
    ):
        raise InvalidInput(
            f"Invalid duration: {duration}. Expected {config.MIN_APPOINTMENT_DURATION}"
            f"-{config.MAX_APPOINTMENT_DURATION} minutes."
        )
    return duration


def appointment_end(appointment: Appointment) -> datetime:
    """End instant of an appointment (30 minutes when duration is unset)"""
    return appointment.start_utc + timedelta(minutes=appointment.duration or config.DEFAULT_SLOT_DURATION)


def intervals_overlap(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    """Half-open interval intersection: touching intervals do not overlap"""
    return start < other_end and end > other_start


def find_conflict(start: datetime, end: datetime, appointments: Iterable[Appointment]) -> Optional[Appointment]:
    """First appointment whose interval intersects [start, end), if any"""
    for appointment in appointments:
        if intervals_overlap(start, end, appointment.start_utc, appointment_end(appointment)):
            return appointment
    return None


def conflict_lookback() -> timedelta:
    """How far before a range an overlapping appointment can start"""
    return timedelta(minutes=config.MAX_APPOINTMENT_DURATION)


class AvailabilityEvaluator:
    """
    Checks one requested slot against existing appointments and working hours

    Both this check and the day-slot generator use full interval intersection
    (find_conflict), so an appointment that started before the requested
    slot and is still running counts as a conflict.
    """

    def __init__(self, availability_store, appointment_store):
        self.availability_store = availability_store
        self.appointment_store = appointment_store

    def is_slot_available(
        self,
        provider_id: str,
        start: datetime,
        duration: int,
        exclude_appointment_id: Optional[str] = None,
        timezone: Optional[str] = None
    ) -> SlotAvailability:
        """
        Check if a specific time slot is available

        Args:
            provider_id: Provider to check
            start: Requested start (naive values are taken as UTC)
            duration: Length in minutes
            exclude_appointment_id: Appointment being rescheduled, ignored as a conflict
            timezone: Timezone the provider's working hours are expressed in

        Returns:
            SlotAvailability; conflicts are data, never exceptions
        """
        validate_duration(duration)
        timezone = timezone or config.DEFAULT_TIMEZONE
        start = ensure_utc(start)
        end = start + timedelta(minutes=duration)

        appointments = self.appointment_store.list_active_appointments(
            provider_id,
            start - conflict_lookback(),
            end,
            exclude_appointment_id=exclude_appointment_id,
        )
        conflict = find_conflict(start, end, appointments)
        if conflict is not None:
            return SlotAvailability(
                available=False,
                conflict_reason=f"Conflicts with existing appointment at {conflict.start_utc.isoformat()}",
            )

        day_of_week = day_of_week_for(start, timezone)
        time_str = local_time_string(start, timezone)
        windows = self.availability_store.list_availability_windows(provider_id, day_of_week)
        if not any(window.covers(time_str) for window in windows):
            return SlotAvailability(available=False, conflict_reason=PROVIDER_UNAVAILABLE_REASON)

        return SlotAvailability(available=True)
