"""Staff repository - Database operations for staff members and schedules"""

from typing import Optional

from sqlalchemy.orm import Session

from ...context import BusinessContext
from ...models import StaffMember, StaffSchedule


class StaffRepository:
    """Repository for staff database operations"""

    @staticmethod
    def get_staff(db: Session, ctx: BusinessContext) -> list[StaffMember]:
        return (
            db.query(StaffMember)
            .filter(StaffMember.business_id == ctx.business_id)
            .order_by(StaffMember.name.asc())
            .all()
        )

    @staticmethod
    def get_staff_by_id(db: Session, ctx: BusinessContext, staff_id: int) -> Optional[StaffMember]:
        return (
            db.query(StaffMember)
            .filter(StaffMember.id == staff_id, StaffMember.business_id == ctx.business_id)
            .first()
        )

    @staticmethod
    def create_staff(db: Session, ctx: BusinessContext, **staff_data) -> StaffMember:
        member = StaffMember(business_id=ctx.business_id, **staff_data)
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    @staticmethod
    def update_staff(db: Session, member: StaffMember, **updates) -> StaffMember:
        for key, value in updates.items():
            if value is not None and hasattr(member, key):
                setattr(member, key, value)

        db.commit()
        db.refresh(member)
        return member

    @staticmethod
    def delete_staff(db: Session, member: StaffMember) -> None:
        db.delete(member)
        db.commit()

    # Schedule Methods
    @staticmethod
    def replace_schedules(
        db: Session, ctx: BusinessContext, member: StaffMember, entries: list[dict]
    ) -> list[StaffSchedule]:
        """Replace all schedules of a staff member in one transaction"""
        db.query(StaffSchedule).filter(
            StaffSchedule.business_id == ctx.business_id,
            StaffSchedule.staff_member_id == member.id,
        ).delete(synchronize_session=False)

        schedules = [
            StaffSchedule(business_id=ctx.business_id, staff_member_id=member.id, **entry)
            for entry in entries
        ]
        db.add_all(schedules)
        db.commit()
        db.refresh(member)
        return sorted(member.schedules, key=lambda s: s.day_of_week)

    @staticmethod
    def find_active_schedules(db: Session, ctx: BusinessContext, day_of_week: int, time: str) -> list[StaffSchedule]:
        """Active schedules on `day_of_week` whose [start, end) contains `time`"""
        return (
            db.query(StaffSchedule)
            .filter(
                StaffSchedule.business_id == ctx.business_id,
                StaffSchedule.day_of_week == day_of_week,
                StaffSchedule.is_active.is_(True),
                StaffSchedule.start_time <= time,
                StaffSchedule.end_time > time,
            )
            .all()
        )
