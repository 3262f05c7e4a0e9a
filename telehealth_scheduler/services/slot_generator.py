"""
Slot Generator
Builds the full list of fixed-size candidate slots for one provider day
"""

import logging
from datetime import date as calendar_date, timedelta
from typing import Iterable, List, Union

from telehealth_scheduler import config
from telehealth_scheduler.models.appointment import Appointment
from telehealth_scheduler.models.availability import DayOfWeek, ProviderAvailability
from telehealth_scheduler.models.schemas import TimeSlot
from telehealth_scheduler.services.availability_evaluator import conflict_lookback, find_conflict, validate_duration
from telehealth_scheduler.utils.timezone_utils import get_timezone, local_day_bounds, local_time_on_date, parse_date

logger = logging.getLogger(__name__)

SLOT_BOOKED_REASON = "Time slot already booked"


class SlotGenerator:
    """
    Generates a provider's slots for a calendar day

    Every slot of every available window is returned, flagged available or
    not, so the UI can render booked slots as well as open ones.
    """

    def __init__(self, availability_store, appointment_store):
        self.availability_store = availability_store
        self.appointment_store = appointment_store

    def get_available_slots(
        self,
        provider_id: str,
        date: Union[str, calendar_date],
        timezone: str,
        duration: int = config.DEFAULT_SLOT_DURATION
    ) -> List[TimeSlot]:
        """
        Get time slots for a provider on a specific date

        Args:
            provider_id: Provider whose calendar is requested
            date: Local calendar date (YYYY-MM-DD string or date)
            timezone: IANA timezone the date and working hours are in
            duration: Slot length in minutes (default: 30)

        Returns:
            Slots sorted by start time; empty when the provider has no hours that day
        """
        day = parse_date(date) if isinstance(date, str) else date
        get_timezone(timezone)
        validate_duration(duration)

        day_of_week = DayOfWeek.from_date(day)
        windows = [
            w for w in self.availability_store.list_availability_windows(provider_id, day_of_week)
            if w.is_available
        ]
        if not windows:
            logger.info("No availability found for provider %s on %s", provider_id, day_of_week.value)
            return []

        day_start, day_end = local_day_bounds(day, timezone)
        appointments = self.appointment_store.list_active_appointments(
            provider_id, day_start - conflict_lookback(), day_end
        )
        logger.info("Found %d existing appointments for provider %s on %s", len(appointments), provider_id, day)

        slots: List[TimeSlot] = []
        for window in windows:
            slots.extend(self._slots_for_window(window, day, timezone, duration, appointments))

        slots.sort(key=lambda slot: slot.start_time)
        logger.info("Generated %d time slots for provider %s on %s", len(slots), provider_id, day)
        return slots

    def _slots_for_window(
        self,
        window: ProviderAvailability,
        day: calendar_date,
        timezone: str,
        duration: int,
        appointments: Iterable[Appointment]
    ) -> List[TimeSlot]:
        window_start = local_time_on_date(day, window.start_time, timezone)
        window_end = local_time_on_date(day, window.end_time, timezone)
        step = timedelta(minutes=duration)

        slots = []
        current = window_start
        # A final partial slot that would run past the window is dropped
        while current + step <= window_end:
            slot_end = current + step
            conflict = find_conflict(current, slot_end, appointments)
            slots.append(TimeSlot(
                start_time=current,
                end_time=slot_end,
                is_available=conflict is None,
                conflict_reason=SLOT_BOOKED_REASON if conflict is not None else None,
            ))
            current = slot_end
        return slots
