"""Staff router - FastAPI endpoints for staff members and schedules"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...context import BusinessContext, get_business_context
from ...database import get_db
from ...models import StaffMember, StaffSchedule
from .schemas import (
    ScheduleResponse,
    ScheduleUpdate,
    StaffCreate,
    StaffResponse,
    StaffUpdate,
)
from .service import StaffService

router = APIRouter(prefix="/staff", tags=["Staff"])


def get_staff_service(
    db: Session = Depends(get_db),
    ctx: BusinessContext = Depends(get_business_context),
) -> StaffService:
    return StaffService(db, ctx)


def to_schedule_response(schedule: StaffSchedule) -> ScheduleResponse:
    return ScheduleResponse(
        id=schedule.id,
        dayOfWeek=schedule.day_of_week,
        startTime=schedule.start_time,
        endTime=schedule.end_time,
        isActive=schedule.is_active,
    )


def to_staff_response(member: StaffMember) -> StaffResponse:
    return StaffResponse(
        id=member.id,
        name=member.name,
        role=member.role,
        createdAt=member.created_at,
        schedules=[
            to_schedule_response(s) for s in sorted(member.schedules, key=lambda s: s.day_of_week)
        ],
    )


@router.get("", response_model=list[StaffResponse])
async def get_staff(service: StaffService = Depends(get_staff_service)):
    return [to_staff_response(m) for m in service.get_staff()]


# Declared before /{staff_id} so "available" is not parsed as an id
@router.get("/available", response_model=list[StaffResponse])
async def get_available_staff(
    day_of_week: int = Query(..., ge=0, le=6),
    time: str = Query(...),
    service: StaffService = Depends(get_staff_service),
):
    """Staff members working at the given weekday and HH:MM time"""
    return [to_staff_response(m) for m in service.get_available_staff(day_of_week, time)]


@router.get("/{staff_id}", response_model=StaffResponse)
async def get_member(staff_id: int, service: StaffService = Depends(get_staff_service)):
    return to_staff_response(service.get_member(staff_id))


@router.post("", response_model=StaffResponse)
async def create_member(data: StaffCreate, service: StaffService = Depends(get_staff_service)):
    return to_staff_response(service.create_member(data))


@router.patch("/{staff_id}", response_model=StaffResponse)
async def update_member(
    staff_id: int,
    data: StaffUpdate,
    service: StaffService = Depends(get_staff_service),
):
    return to_staff_response(service.update_member(staff_id, data))


@router.delete("/{staff_id}")
async def delete_member(staff_id: int, service: StaffService = Depends(get_staff_service)):
    return service.delete_member(staff_id)


@router.put("/{staff_id}/schedules", response_model=list[ScheduleResponse])
async def set_schedules(
    staff_id: int,
    data: ScheduleUpdate,
    service: StaffService = Depends(get_staff_service),
):
    """Replace the weekly schedule of a staff member"""
    return [to_schedule_response(s) for s in service.set_schedules(staff_id, data)]
