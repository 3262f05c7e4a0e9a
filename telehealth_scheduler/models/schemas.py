from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator
from typing import Annotated, List, Optional
from datetime import datetime

from telehealth_scheduler import config
from telehealth_scheduler.models.appointment import ConsultationType, RecurrencePattern
from telehealth_scheduler.models.availability import DayOfWeek
from telehealth_scheduler.utils.timezone_utils import ensure_utc, get_timezone, parse_hhmm


def _validate_timezone(value: str) -> str:
    get_timezone(value)  # raises InvalidTimezone (a ValueError)
    return value


# 15 minutes to 4 hours
DurationMinutes = Annotated[int, Field(ge=config.MIN_APPOINTMENT_DURATION, le=config.MAX_APPOINTMENT_DURATION)]
TimezoneName = Annotated[str, Field(min_length=1), AfterValidator(_validate_timezone)]


class TimeSlot(BaseModel):
    start_time: datetime
    end_time: datetime
    is_available: bool
    conflict_reason: Optional[str] = None


class SlotAvailability(BaseModel):
    available: bool
    conflict_reason: Optional[str] = None


class ProviderSummary(BaseModel):
    id: str
    name: str


class AvailableSlotsResponse(BaseModel):
    provider: ProviderSummary
    date: str
    timezone: str
    duration: int
    slots: List[TimeSlot]
    total_slots: int
    available_slots: int


class SlotCheckRequest(BaseModel):
    provider_id: str = Field(..., min_length=1)
    start_date_time: datetime
    duration: DurationMinutes = config.DEFAULT_SLOT_DURATION
    timezone: TimezoneName = Field(default=config.DEFAULT_TIMEZONE, description="Timezone of the provider's working hours")
    exclude_appointment_id: Optional[str] = Field(default=None, description="Set when rescheduling an appointment")

    @field_validator("start_date_time")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class SlotCheckResponse(SlotAvailability):
    provider_id: str
    start_date_time: datetime
    duration: int
    warnings: List[str] = []
    alternative_slots: List[TimeSlot] = []  # Only filled when the slot is unavailable


class RecurringAppointmentRequest(BaseModel):
    patient_id: str = Field(..., min_length=1)
    provider_id: str = Field(..., min_length=1)
    start_date_time: datetime
    duration: DurationMinutes = config.DEFAULT_SLOT_DURATION
    reason: str = Field(..., min_length=1)
    consultation_type: ConsultationType
    recurrence_pattern: RecurrencePattern
    recurrence_count: Optional[int] = Field(default=None, ge=1, le=config.MAX_RECURRENCE_COUNT)
    recurrence_end_date: Optional[datetime] = None
    timezone: TimezoneName = Field(..., description="IANA timezone the series repeats in")

    @field_validator("start_date_time", "recurrence_end_date")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive datetimes are taken as UTC
        return ensure_utc(value)

    @model_validator(mode="after")
    def _check_bounds(self) -> "RecurringAppointmentRequest":
        if self.recurrence_end_date is not None and self.recurrence_end_date < self.start_date_time:
            raise ValueError("recurrence_end_date must not be before start_date_time")
        return self

    @property
    def max_occurrences(self) -> int:
        return self.recurrence_count or config.MAX_RECURRING_OCCURRENCES


class SkippedOccurrence(BaseModel):
    occurrence: int
    appointment_date: datetime
    conflict_reason: Optional[str] = None


class RecurringAppointmentResponse(BaseModel):
    appointment_ids: List[str]
    total_created: int
    skipped: List[SkippedOccurrence] = []
    recurrence_pattern: RecurrencePattern
    provider: ProviderSummary
    message: str


class BlockSlotRequest(BaseModel):
    provider_id: str = Field(..., min_length=1)
    start_date_time: datetime
    duration: DurationMinutes = config.DEFAULT_SLOT_DURATION
    reason: Optional[str] = None

    @field_validator("start_date_time")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class BlockSlotResponse(BaseModel):
    id: str
    provider_id: str
    start_time: datetime
    end_time: datetime
    reason: str


class ProposedWindow(BaseModel):
    """A weekly working-hours window as it would be after a schedule change"""
    day_of_week: DayOfWeek
    start_time: str = Field(..., description="Local HH:MM")
    end_time: str = Field(..., description="Local HH:MM")
    is_available: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_hhmm(cls, value: str) -> str:
        return parse_hhmm(value).strftime("%H:%M")

    @model_validator(mode="after")
    def _check_order(self) -> "ProposedWindow":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class ScheduleChangeRequest(BaseModel):
    provider_id: str = Field(..., min_length=1)
    timezone: TimezoneName = Field(..., description="Timezone the proposed windows are expressed in")
    windows: List[ProposedWindow]
    range_start: Optional[datetime] = Field(default=None, description="Defaults to now")
    range_end: Optional[datetime] = Field(default=None, description="Defaults to 90 days after range_start")

    @field_validator("range_start", "range_end")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class AffectedAppointment(BaseModel):
    id: str
    patient_id: Optional[str] = None
    appointment_date: datetime
    local_start: str
    local_end: str
    conflict_type: str


class ScheduleChangeResponse(BaseModel):
    is_valid: bool
    affected_appointments: List[AffectedAppointment]
    total_affected: int


class TimezoneOption(BaseModel):
    value: str
    label: str
    offset: str


class ErrorResponse(BaseModel):
    error: str
    message: str
