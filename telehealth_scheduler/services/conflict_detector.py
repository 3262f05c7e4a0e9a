"""
Conflict Detector
Booking advice around the availability check: alternative slots when a
request is refused, buffer warnings for tight bookings, and the appointments
a working-hours change would leave outside the new hours
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

import pytz

from telehealth_scheduler import config
from telehealth_scheduler.models.availability import DayOfWeek
from telehealth_scheduler.models.schemas import AffectedAppointment, TimeSlot
from telehealth_scheduler.services.availability_evaluator import appointment_end, conflict_lookback, validate_duration
from telehealth_scheduler.services.slot_generator import SlotGenerator
from telehealth_scheduler.utils.timezone_utils import ensure_utc, to_local

logger = logging.getLogger(__name__)

OUTSIDE_HOURS = "outside_hours"


def buffer_warning(buffer_minutes: int, neighbour_start: datetime) -> str:
    return (
        f"Less than {buffer_minutes} minutes between appointments "
        f"(adjacent appointment at {neighbour_start.isoformat()})"
    )


class ConflictDetector:
    """
    Advice that never blocks a booking on its own

    Alternatives come from the slot generator, so a suggested slot is exactly
    one the day view would show as available.
    """

    def __init__(self, slot_generator: SlotGenerator, appointment_store):
        self.slot_generator = slot_generator
        self.appointment_store = appointment_store

    def suggest_alternative_slots(
        self,
        provider_id: str,
        start: datetime,
        duration: int,
        timezone: Optional[str] = None,
        limit: int = config.ALTERNATIVE_SLOT_LIMIT,
        search_days: int = config.ALTERNATIVE_SEARCH_DAYS
    ) -> List[TimeSlot]:
        """
        Find open slots after a refused start time

        Walks the requested local day and the following days, returning the
        first `limit` available slots that start after `start`.
        """
        timezone = timezone or config.DEFAULT_TIMEZONE
        start = ensure_utc(start)
        first_day = to_local(start, timezone).date()

        alternatives: List[TimeSlot] = []
        for offset in range(search_days):
            if len(alternatives) >= limit:
                break
            day = first_day + timedelta(days=offset)
            slots = self.slot_generator.get_available_slots(provider_id, day, timezone, duration)
            alternatives.extend(s for s in slots if s.is_available and s.start_time > start)

        alternatives = alternatives[:limit]

        logger.info("Found %d alternative slots for provider %s after %s", len(alternatives), provider_id, start)
        return alternatives

    def buffer_warnings(
        self,
        provider_id: str,
        start: datetime,
        duration: int,
        exclude_appointment_id: Optional[str] = None,
        buffer_minutes: int = config.APPOINTMENT_BUFFER_MINUTES
    ) -> List[str]:
        """Warnings for active appointments ending or starting within the buffer of [start, end)"""
        validate_duration(duration)
        start = ensure_utc(start)
        end = start + timedelta(minutes=duration)
        buffer = timedelta(minutes=buffer_minutes)

        nearby = self.appointment_store.list_active_appointments(
            provider_id,
            start - conflict_lookback() - buffer,
            end + buffer,
            exclude_appointment_id=exclude_appointment_id,
        )

        warnings = []
        for appointment in nearby:
            # Negative gap means overlap, which the availability check reports
            gap = max(start - appointment_end(appointment), appointment.start_utc - end)
            if timedelta(0) <= gap < buffer:
                warnings.append(buffer_warning(buffer_minutes, appointment.start_utc))
        return warnings

    def find_affected_appointments(
        self,
        provider_id: str,
        windows: Iterable,
        timezone: str,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None
    ) -> List[AffectedAppointment]:
        """
        Active appointments that would fall outside a proposed set of weekly windows

        Args:
            provider_id: Provider whose schedule is changing
            windows: Proposed windows (day_of_week, start_time, end_time, is_available)
            timezone: IANA timezone the windows are expressed in
            range_start: First instant to check (default: now)
            range_end: End of the check (default: SCHEDULE_CHANGE_HORIZON_DAYS after range_start)

        Returns:
            Affected appointments in start order; empty when the change is safe
        """
        range_start = ensure_utc(range_start) if range_start else datetime.now(pytz.UTC)
        range_end = ensure_utc(range_end) if range_end else range_start + timedelta(days=config.SCHEDULE_CHANGE_HORIZON_DAYS)

        by_day = {}
        for window in windows:
            if window.is_available:
                by_day.setdefault(DayOfWeek(window.day_of_week), []).append(window)

        affected = []
        for appointment in self.appointment_store.list_active_appointments(provider_id, range_start, range_end):
            local_start = to_local(appointment.start_utc, timezone)
            local_end = to_local(appointment_end(appointment), timezone)
            start_str = local_start.strftime("%H:%M")
            # Running past local midnight fits no window of the start day
            end_str = local_end.strftime("%H:%M") if local_end.date() == local_start.date() else "24:00"

            day_windows = by_day.get(DayOfWeek.from_date(local_start), [])
            if any(w.start_time <= start_str and end_str <= w.end_time for w in day_windows):
                continue

            affected.append(AffectedAppointment(
                id=appointment.id,
                patient_id=appointment.patient_id,
                appointment_date=appointment.start_utc,
                local_start=start_str,
                local_end=local_end.strftime("%H:%M"),
                conflict_type=OUTSIDE_HOURS,
            ))

        logger.info(
            "Schedule change for provider %s affects %d appointments between %s and %s",
            provider_id, len(affected), range_start.isoformat(), range_end.isoformat(),
        )
        return affected
