"""Scheduling repository - Database operations for appointments and exceptions"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ...context import BusinessContext
from ...models import Appointment, AppointmentException
from ...shared.timeutils import as_utc

RANGE_FIELDS = {
    "start_at": Appointment.start_at,
    "created_at": Appointment.created_at,
    "completed_at": Appointment.completed_at,
}


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def list_all(db: Session, ctx: BusinessContext) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.business_id == ctx.business_id)
            .order_by(Appointment.start_at)
            .all()
        )

    @staticmethod
    def range_query(
        db: Session, ctx: BusinessContext, field: str, start: datetime, end: datetime
    ) -> list[Appointment]:
        """Appointments whose `field` falls within [start, end]"""
        column = RANGE_FIELDS.get(field)
        if column is None:
            raise ValueError(f"Unsupported range field: {field}")
        return (
            db.query(Appointment)
            .filter(
                Appointment.business_id == ctx.business_id,
                column >= as_utc(start),
                column <= as_utc(end),
            )
            .order_by(column)
            .all()
        )

    @staticmethod
    def list_for_window(
        db: Session, ctx: BusinessContext, window_start: datetime, window_end: datetime
    ) -> list[Appointment]:
        """
        Every appointment that could intersect the window: recurring series
        anchored before its end or with an instance moved before its end,
        plus single appointments starting early enough to reach it.
        """
        longest = (
            db.query(func.max(Appointment.duration_min))
            .filter(Appointment.business_id == ctx.business_id, Appointment.is_recurring.is_(False))
            .scalar()
            or 0
        )
        earliest_start = as_utc(window_start) - timedelta(minutes=longest)

        singles = (
            db.query(Appointment)
            .filter(
                Appointment.business_id == ctx.business_id,
                Appointment.is_recurring.is_(False),
                Appointment.start_at >= earliest_start,
                Appointment.start_at <= as_utc(window_end),
            )
            .all()
        )
        moved_series = select(AppointmentException.appointment_id).where(
            AppointmentException.business_id == ctx.business_id,
            AppointmentException.type == "move",
            AppointmentException.new_start <= as_utc(window_end),
        )
        series = (
            db.query(Appointment)
            .filter(
                Appointment.business_id == ctx.business_id,
                Appointment.is_recurring.is_(True),
                or_(
                    Appointment.start_at <= as_utc(window_end),
                    Appointment.id.in_(moved_series),
                ),
            )
            .all()
        )
        return singles + series

    @staticmethod
    def list_pending_singles_started_before(
        db: Session, ctx: BusinessContext, now: datetime
    ) -> list[Appointment]:
        """Pending single appointments that have already started"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.business_id == ctx.business_id,
                Appointment.is_recurring.is_(False),
                Appointment.status == "pending",
                Appointment.start_at < as_utc(now),
            )
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, ctx: BusinessContext, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id, Appointment.business_id == ctx.business_id)
            .first()
        )

    @staticmethod
    def insert(db: Session, ctx: BusinessContext, **data) -> Appointment:
        appointment = Appointment(business_id=ctx.business_id, **data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def upsert(db: Session, ctx: BusinessContext, appointment: Appointment) -> Appointment:
        appointment.business_id = ctx.business_id
        appointment = db.merge(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def patch(db: Session, appointment: Appointment, **updates) -> Appointment:
        """Apply updates as given; None clears a field"""
        for key, value in updates.items():
            if hasattr(appointment, key):
                setattr(appointment, key, value)

        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()


class ExceptionRepository:
    """Repository for skip/move exceptions of recurring appointments"""

    @staticmethod
    def list_all(
        db: Session, ctx: BusinessContext, appointment_ids: Optional[Iterable[int]] = None
    ) -> list[AppointmentException]:
        query = db.query(AppointmentException).filter(
            AppointmentException.business_id == ctx.business_id
        )
        if appointment_ids is not None:
            query = query.filter(AppointmentException.appointment_id.in_(list(appointment_ids)))
        return query.all()

    @staticmethod
    def find(
        db: Session, ctx: BusinessContext, appointment_id: int, original_start: datetime
    ) -> list[AppointmentException]:
        return (
            db.query(AppointmentException)
            .filter(
                AppointmentException.business_id == ctx.business_id,
                AppointmentException.appointment_id == appointment_id,
                AppointmentException.original_start == as_utc(original_start),
            )
            .all()
        )

    @staticmethod
    def insert(
        db: Session,
        ctx: BusinessContext,
        appointment_id: int,
        original_start: datetime,
        type: str,
        new_start: Optional[datetime] = None,
        new_duration_min: Optional[int] = None,
    ) -> AppointmentException:
        exception = AppointmentException(
            business_id=ctx.business_id,
            appointment_id=appointment_id,
            original_start=as_utc(original_start),
            type=type,
            new_start=as_utc(new_start),
            new_duration_min=new_duration_min,
        )
        db.add(exception)
        db.commit()
        db.refresh(exception)
        return exception

    @staticmethod
    def delete(db: Session, exception: AppointmentException) -> None:
        db.delete(exception)
        db.commit()
