"""
Recurrence Expander
Turns one recurring-booking request into individually validated appointments
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterator, List

from dateutil.relativedelta import relativedelta

from telehealth_scheduler.models.appointment import Appointment, AppointmentStatus, RecurrencePattern
from telehealth_scheduler.models.schemas import RecurringAppointmentRequest, SkippedOccurrence
from telehealth_scheduler.services.availability_evaluator import AvailabilityEvaluator
from telehealth_scheduler.utils.timezone_utils import to_local, to_utc_instant

logger = logging.getLogger(__name__)

_STEPS = {
    RecurrencePattern.DAILY: timedelta(days=1),
    RecurrencePattern.WEEKLY: timedelta(weeks=1),
    # Month-end dates clamp (Jan 31 -> Feb 28) and the clamped day carries on
    RecurrencePattern.MONTHLY: relativedelta(months=1),
}


def iter_occurrences(start: datetime, pattern: RecurrencePattern, timezone: str) -> Iterator[datetime]:
    """
    Yield the UTC instants of a series, stepping on the local wall clock

    The naive local cursor is carried between steps, so a 09:00 weekly
    series stays at 09:00 local time across DST changes and a time that
    falls in a spring-forward gap does not shift the occurrences after it.
    """
    yield start
    local = to_local(start, timezone).replace(tzinfo=None)
    while True:
        local += _STEPS[pattern]
        yield to_utc_instant(local, timezone)


@dataclass
class RecurrencePlan:
    staged: List[Appointment] = field(default_factory=list)
    skipped: List[SkippedOccurrence] = field(default_factory=list)


@dataclass
class RecurringSeriesResult:
    appointment_ids: List[str]
    skipped: List[SkippedOccurrence]


class RecurrenceExpander:
    """
    Expands a recurrence rule and writes the bookable occurrences

    Occurrences that conflict are skipped and reported, not raised; the
    remaining ones are written in a single all-or-nothing transaction.
    """

    def __init__(self, evaluator: AvailabilityEvaluator, appointment_store):
        self.evaluator = evaluator
        self.appointment_store = appointment_store

    def plan(self, request: RecurringAppointmentRequest) -> RecurrencePlan:
        """Walk the series and stage every occurrence that is bookable"""
        plan = RecurrencePlan()
        occurrences = iter_occurrences(request.start_date_time, request.recurrence_pattern, request.timezone)

        for index, cursor in zip(range(request.max_occurrences), occurrences):
            if request.recurrence_end_date is not None and cursor > request.recurrence_end_date:
                break

            availability = self.evaluator.is_slot_available(
                request.provider_id,
                cursor,
                request.duration,
                timezone=request.timezone,
            )
            if availability.available:
                plan.staged.append(Appointment(
                    patient_id=request.patient_id,
                    provider_id=request.provider_id,
                    appointment_date=cursor,
                    reason=f"{request.reason} (Recurring {index + 1})",
                    consultation_type=request.consultation_type.value,
                    status=AppointmentStatus.SCHEDULED.value,
                    duration=request.duration,
                    is_recurring=True,
                    recurrence_pattern=request.recurrence_pattern.value,
                ))
            else:
                logger.warning(
                    "Skipping recurring appointment %d at %s: %s",
                    index + 1, cursor.isoformat(), availability.conflict_reason,
                )
                plan.skipped.append(SkippedOccurrence(
                    occurrence=index + 1,
                    appointment_date=cursor,
                    conflict_reason=availability.conflict_reason,
                ))

        return plan

    def create_recurring_series(self, request: RecurringAppointmentRequest) -> RecurringSeriesResult:
        """Create the series and report which occurrences were skipped"""
        plan = self.plan(request)

        appointment_ids: List[str] = []
        if plan.staged:
            appointment_ids = self.appointment_store.create_appointments_transactionally(plan.staged)

        logger.info(
            "Created %d recurring appointments (patient=%s, provider=%s, pattern=%s, skipped=%d)",
            len(appointment_ids),
            request.patient_id,
            request.provider_id,
            request.recurrence_pattern.value,
            len(plan.skipped),
        )
        return RecurringSeriesResult(appointment_ids=appointment_ids, skipped=plan.skipped)

    def create_recurring_appointments(self, request: RecurringAppointmentRequest) -> List[str]:
        """
        Create recurring appointments

        Returns:
            Ids of the created appointments; empty when every occurrence conflicted

        Raises:
            SlotConflict: a slot was taken between the check and the write
            TransactionFailure: the batched write failed, nothing was persisted
        """
        return self.create_recurring_series(request).appointment_ids
