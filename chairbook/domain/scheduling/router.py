"""Scheduling router - FastAPI endpoints for appointments and occurrences"""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...context import BusinessContext, get_business_context
from ...database import get_db
from ...models import Appointment
from ...shared.timeutils import from_db, to_iso
from .expander import Occurrence
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    AvailabilityResponse,
    CancelOccurrenceRequest,
    MoveOccurrenceRequest,
    OccurrenceListResponse,
    OccurrenceResponse,
    RuleErrorResponse,
    StatusUpdateRequest,
)
from .service import SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_scheduling_service(
    db: Session = Depends(get_db),
    ctx: BusinessContext = Depends(get_business_context),
) -> SchedulingService:
    """Dependency injection for SchedulingService"""
    return SchedulingService(db, ctx)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return to_iso(from_db(value)) if value else None


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        title=appointment.title,
        clientId=appointment.client_id,
        serviceId=appointment.service_id,
        serviceName=appointment.service_name,
        startDateTime=_iso(appointment.start_at),
        durationMin=appointment.duration_min,
        isRecurring=appointment.is_recurring,
        rrule=appointment.rrule,
        timezone=appointment.timezone,
        notes=appointment.notes,
        status=appointment.status,
        assignedTo=appointment.assigned_to,
        paymentMethod=appointment.payment_method,
        listPrice=appointment.list_price,
        discount=appointment.discount,
        finalPrice=appointment.final_price,
        paymentStatus=appointment.payment_status,
        paymentNotes=appointment.payment_notes,
        startedAt=_iso(appointment.started_at),
        completedAt=_iso(appointment.completed_at),
        actualDurationMin=appointment.actual_duration_min,
    )


def to_occurrence_response(occurrence: Occurrence) -> OccurrenceResponse:
    return OccurrenceResponse(
        id=occurrence.id,
        baseId=occurrence.base_id,
        originalStart=to_iso(occurrence.original_start),
        start=to_iso(occurrence.start),
        end=to_iso(occurrence.end),
        isRecurring=occurrence.is_recurring,
        status=occurrence.status,
        title=occurrence.title,
        clientId=occurrence.client_id,
        serviceId=occurrence.service_id,
        serviceName=occurrence.service_name,
        assignedTo=occurrence.assigned_to,
        paymentMethod=occurrence.payment_method,
        listPrice=occurrence.list_price,
        discount=occurrence.discount,
        finalPrice=occurrence.final_price,
        paymentStatus=occurrence.payment_status,
        startedAt=_iso(occurrence.started_at),
        completedAt=_iso(occurrence.completed_at),
        actualDurationMin=occurrence.actual_duration_min,
    )


# ============================================================================
# OCCURRENCE QUERIES
# ============================================================================


@router.get("/occurrences", response_model=OccurrenceListResponse)
async def list_occurrences(
    start: datetime = Query(..., description="Window start (ISO-8601)"),
    end: datetime = Query(..., description="Window end (ISO-8601)"),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """All occurrences intersecting the window, sorted by start"""
    result = service.list_occurrences(start, end)
    return OccurrenceListResponse(
        occurrences=[to_occurrence_response(o) for o in result.occurrences],
        ruleErrors=[
            RuleErrorResponse(appointmentId=e.appointment_id, reason=e.reason)
            for e in result.rule_errors
        ],
    )


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    start: datetime = Query(...),
    duration_min: int = Query(..., gt=0),
    ignore_base_id: Optional[int] = Query(None),
    assigned_to: Optional[int] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Whether a candidate slot is free for the given staff member"""
    conflicts = service.find_conflicts(start, duration_min, ignore_base_id, assigned_to)
    return AvailabilityResponse(
        available=not conflicts,
        conflicts=[to_occurrence_response(o) for o in conflicts],
    )


# ============================================================================
# OCCURRENCE ACTIONS
# ============================================================================


@router.post("/occurrences/{occurrence_id}/move", response_model=OccurrenceResponse)
async def move_occurrence(
    occurrence_id: str,
    data: MoveOccurrenceRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    occurrence = service.move_occurrence(occurrence_id, data.newStart, data.newDurationMin)
    return to_occurrence_response(occurrence)


@router.post("/occurrences/{occurrence_id}/cancel")
async def cancel_occurrence(
    occurrence_id: str,
    data: Optional[CancelOccurrenceRequest] = None,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.cancel_occurrence(occurrence_id, data.reason if data else None)


@router.post("/occurrences/{occurrence_id}/status", response_model=AppointmentResponse)
async def update_occurrence_status(
    occurrence_id: str,
    data: StatusUpdateRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Explicit status change. For a recurring occurrence the response is the
    individual appointment it was split into.
    """
    return to_appointment_response(service.update_status(occurrence_id, data.status))


# ============================================================================
# APPOINTMENT CRUD
# ============================================================================


@router.post("", response_model=AppointmentResponse)
async def create_appointment(
    data: AppointmentCreate,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return to_appointment_response(service.create_appointment(data))


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return to_appointment_response(service.get_appointment(appointment_id))


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return to_appointment_response(service.update_appointment(appointment_id, data))


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: int,
    scope: Literal["all", "one"] = Query("all"),
    occurrence_start: Optional[datetime] = Query(None),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Delete a whole appointment, or (scope=one) a single occurrence of a series"""
    return service.delete_appointment(appointment_id, scope, occurrence_start)
