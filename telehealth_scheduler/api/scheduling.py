"""
Scheduling API endpoints
Slot listing, single-slot checks, recurring bookings and blocked time
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from telehealth_scheduler import config
from telehealth_scheduler.errors import (
    InvalidInput,
    ProviderNotFound,
    ProviderUnavailable,
    SlotConflict,
    TransactionFailure,
)
from telehealth_scheduler.models.schemas import (
    AvailableSlotsResponse,
    BlockSlotRequest,
    BlockSlotResponse,
    ProviderSummary,
    RecurringAppointmentRequest,
    RecurringAppointmentResponse,
    ScheduleChangeRequest,
    ScheduleChangeResponse,
    SlotCheckRequest,
    SlotCheckResponse,
    TimezoneOption,
)
from telehealth_scheduler.services.scheduling_service import SchedulingService
from telehealth_scheduler.utils.timezone_utils import SUPPORTED_TIMEZONES

router = APIRouter(prefix="/api/scheduling", tags=["scheduling"])


def get_scheduling_service(request: Request) -> SchedulingService:
    """Dependency returning the service built at startup"""
    return request.app.state.scheduling_service


def get_provider_directory(request: Request):
    return request.app.state.provider_directory


def _bookable_provider(provider_directory, provider_id: str) -> ProviderSummary:
    try:
        provider = provider_directory.ensure_bookable(provider_id)
    except ProviderNotFound as e:
        raise HTTPException(status_code=404, detail={"error": "Provider not found", "message": e.message})
    except ProviderUnavailable as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "Provider is not available for appointments", "message": e.message},
        )
    return ProviderSummary(**provider.to_dict())


def _invalid_input(e: InvalidInput) -> HTTPException:
    return HTTPException(status_code=400, detail={"error": "Validation failed", "message": e.message})


@router.get("/available-slots", response_model=AvailableSlotsResponse)
def get_available_slots(
    provider_id: str = Query(..., min_length=1),
    date: str = Query(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="Date in YYYY-MM-DD format"),
    timezone: str = Query(..., min_length=1, description="IANA timezone, e.g. America/New_York"),
    duration: int = Query(
        config.DEFAULT_SLOT_DURATION,
        ge=config.MIN_APPOINTMENT_DURATION,
        le=config.MAX_APPOINTMENT_DURATION,
    ),
    service: SchedulingService = Depends(get_scheduling_service),
    provider_directory=Depends(get_provider_directory),
):
    """
    Get time slots for a provider

    Returns every slot of the day with its availability flag
    """
    provider = _bookable_provider(provider_directory, provider_id)

    try:
        slots = service.get_available_slots(provider_id, date, timezone, duration)
    except InvalidInput as e:
        raise _invalid_input(e)

    return AvailableSlotsResponse(
        provider=provider,
        date=date,
        timezone=timezone,
        duration=duration,
        slots=slots,
        total_slots=len(slots),
        available_slots=len([slot for slot in slots if slot.is_available]),
    )


@router.post("/check-availability", response_model=SlotCheckResponse)
def check_slot_availability(
    request: SlotCheckRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Check if a specific time slot is available

    Refused slots come with the next open slots as alternatives; tight
    bookings come with buffer warnings
    """
    try:
        availability = service.is_slot_available(
            request.provider_id,
            request.start_date_time,
            request.duration,
            exclude_appointment_id=request.exclude_appointment_id,
            timezone=request.timezone,
        )
        warnings = service.buffer_warnings(
            request.provider_id,
            request.start_date_time,
            request.duration,
            exclude_appointment_id=request.exclude_appointment_id,
        )
        alternatives = []
        if not availability.available:
            alternatives = service.suggest_alternative_slots(
                request.provider_id, request.start_date_time, request.duration, timezone=request.timezone
            )
    except InvalidInput as e:
        raise _invalid_input(e)

    return SlotCheckResponse(
        provider_id=request.provider_id,
        start_date_time=request.start_date_time,
        duration=request.duration,
        available=availability.available,
        conflict_reason=availability.conflict_reason,
        warnings=warnings,
        alternative_slots=alternatives,
    )


@router.post("/recurring-appointments", response_model=RecurringAppointmentResponse, status_code=201)
def create_recurring_appointments(
    request: RecurringAppointmentRequest,
    service: SchedulingService = Depends(get_scheduling_service),
    provider_directory=Depends(get_provider_directory),
):
    """
    Create recurring appointments

    Conflicting occurrences are skipped and listed in the response
    """
    provider = _bookable_provider(provider_directory, request.provider_id)

    try:
        result = service.create_recurring_series(request)
    except InvalidInput as e:
        raise _invalid_input(e)
    except SlotConflict as e:
        raise HTTPException(status_code=409, detail={"error": "Time slot conflict", "message": e.message})
    except TransactionFailure:
        raise HTTPException(status_code=500, detail="Failed to create recurring appointments")

    return RecurringAppointmentResponse(
        appointment_ids=result.appointment_ids,
        total_created=len(result.appointment_ids),
        skipped=result.skipped,
        recurrence_pattern=request.recurrence_pattern,
        provider=provider,
        message=f"Successfully created {len(result.appointment_ids)} recurring appointments",
    )


@router.post("/schedule-changes/validate", response_model=ScheduleChangeResponse)
def validate_schedule_change(
    request: ScheduleChangeRequest,
    service: SchedulingService = Depends(get_scheduling_service),
    provider_directory=Depends(get_provider_directory),
):
    """
    Check proposed working hours against booked appointments

    Lists the active appointments the new windows would no longer cover
    """
    if provider_directory.get_provider(request.provider_id) is None:
        raise HTTPException(
            status_code=404,
            detail={"error": "Provider not found", "message": f"Provider not found: {request.provider_id}"},
        )

    try:
        affected = service.find_affected_appointments(
            request.provider_id,
            request.windows,
            request.timezone,
            range_start=request.range_start,
            range_end=request.range_end,
        )
    except InvalidInput as e:
        raise _invalid_input(e)

    return ScheduleChangeResponse(
        is_valid=not affected,
        affected_appointments=affected,
        total_affected=len(affected),
    )


@router.get("/timezones")
def get_timezones():
    """Get list of supported timezones"""
    return {"timezones": [TimezoneOption(**option) for option in SUPPORTED_TIMEZONES]}


@router.post("/blocked-slots", response_model=BlockSlotResponse, status_code=201)
def block_time_slot(
    request: BlockSlotRequest,
    service: SchedulingService = Depends(get_scheduling_service),
    provider_directory=Depends(get_provider_directory),
):
    """Block time on a provider's calendar"""
    _bookable_provider(provider_directory, request.provider_id)

    try:
        blocked = service.block_slot(request.provider_id, request.start_date_time, request.duration, request.reason)
    except InvalidInput as e:
        raise _invalid_input(e)
    except TransactionFailure:
        raise HTTPException(status_code=500, detail="Failed to block time slot")

    return BlockSlotResponse(
        id=blocked.id,
        provider_id=blocked.provider_id,
        start_time=blocked.start_utc,
        end_time=service.blocked_slot_end(blocked),
        reason=blocked.reason,
    )


@router.delete("/blocked-slots/{blocked_id}", status_code=204)
def unblock_time_slot(
    blocked_id: str,
    provider_id: str = Query(..., min_length=1),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Remove a blocked time slot"""
    if not service.unblock_slot(provider_id, blocked_id):
        raise HTTPException(status_code=404, detail="Blocked time slot not found")
    return Response(status_code=204)
