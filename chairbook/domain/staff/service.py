"""Staff service - Business logic for staff members and schedules"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...context import BusinessContext
from ...models import StaffMember, StaffSchedule
from ...shared.validators import validate_time_of_day
from .repository import StaffRepository
from .schemas import ScheduleUpdate, StaffCreate, StaffUpdate

logger = logging.getLogger(__name__)


class StaffService:
    """Service layer for staff business logic"""

    def __init__(self, db: Session, ctx: BusinessContext):
        self.db = db
        self.ctx = ctx
        self.repo = StaffRepository()

    def get_staff(self) -> list[StaffMember]:
        return self.repo.get_staff(self.db, self.ctx)

    def get_member(self, staff_id: int) -> StaffMember:
        member = self.repo.get_staff_by_id(self.db, self.ctx, staff_id)
        if not member:
            raise HTTPException(status_code=404, detail="Staff member not found")
        return member

    def create_member(self, data: StaffCreate) -> StaffMember:
        member = self.repo.create_staff(self.db, self.ctx, name=data.name, role=data.role)
        logger.info(f"✅ Staff member created: {member.name} ({member.role})")
        return member

    def update_member(self, staff_id: int, data: StaffUpdate) -> StaffMember:
        member = self.get_member(staff_id)
        return self.repo.update_staff(self.db, member, name=data.name, role=data.role)

    def delete_member(self, staff_id: int) -> dict:
        member = self.get_member(staff_id)
        self.repo.delete_staff(self.db, member)
        return {"message": "Staff member deleted"}

    def set_schedules(self, staff_id: int, data: ScheduleUpdate) -> list[StaffSchedule]:
        member = self.get_member(staff_id)
        entries = [
            {
                "day_of_week": entry.dayOfWeek,
                "start_time": entry.startTime,
                "end_time": entry.endTime,
                "is_active": entry.isActive,
            }
            for entry in data.schedules
        ]
        schedules = self.repo.replace_schedules(self.db, self.ctx, member, entries)
        logger.info(f"📅 Updated {len(schedules)} schedule(s) for staff member {member.id}")
        return schedules

    def get_available_staff(self, day_of_week: int, time: str) -> list[StaffMember]:
        """Staff members working at `time` (HH:MM) on `day_of_week` (0=Monday)"""
        if not 0 <= day_of_week <= 6:
            raise HTTPException(status_code=400, detail="day_of_week must be between 0 and 6")
        try:
            time = validate_time_of_day(time)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        schedules = self.repo.find_active_schedules(self.db, self.ctx, day_of_week, time)
        members = {schedule.staff_member_id: schedule.staff_member for schedule in schedules}
        return sorted(members.values(), key=lambda m: m.name)
