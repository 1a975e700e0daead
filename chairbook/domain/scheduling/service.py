"""
Scheduling service - Business logic for appointments and their occurrences

Composes the occurrence expander, the conflict checker and the status
lifecycle with the appointment/exception repositories. Operations that act on
a single instance of a recurring appointment take an occurrence id
("<base id>::<original instant>"); single appointments use their plain id.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import DEFAULT_TIMEZONE
from ...context import BusinessContext
from ...models import Appointment
from ...shared.timeutils import as_utc, from_db, utcnow
from ..catalog.service import CatalogService
from ..clients.service import ClientService
from ..staff.service import StaffService
from .availability import day_window, find_conflicts
from .errors import (
    AppointmentNotFoundError,
    InvalidRecurrenceError,
    SchedulingError,
    SlotUnavailableError,
)
from .expander import (
    CANCELLED,
    DONE,
    PENDING,
    ExpansionResult,
    Occurrence,
    expand,
    expand_recurring,
    expand_single,
    split_occurrence_id,
)
from .lifecycle import (
    LifecycleUpdater,
    ensure_cancellable,
    ensure_transition,
    status_updates,
)
from .overrides import MOVE, SKIP, OverrideIndex, apply_override
from .pricing import calculate_final_price
from .recurrence import build_rule, validate_description
from .repository import AppointmentRepository, ExceptionRepository
from .schemas import AppointmentCreate, AppointmentUpdate

logger = logging.getLogger(__name__)

DELETE_SCOPES = ("all", "one")


class SchedulingService:
    """Service layer for appointment scheduling"""

    def __init__(self, db: Session, ctx: BusinessContext):
        self.db = db
        self.ctx = ctx
        self.repo = AppointmentRepository()
        self.exceptions = ExceptionRepository()
        self.clients = ClientService(db, ctx)
        self.lifecycle = LifecycleUpdater(db, ctx, self.clients)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_by_id(self.db, self.ctx, appointment_id)
        if not appointment:
            raise AppointmentNotFoundError(appointment_id)
        return appointment

    def expand_window(
        self, window_start: datetime, window_end: datetime, now: Optional[datetime] = None
    ) -> ExpansionResult:
        """Expand stored appointments over the window without side effects"""
        appointments = self.repo.list_for_window(self.db, self.ctx, window_start, window_end)
        series_ids = [a.id for a in appointments if a.is_recurring]
        exceptions = self.exceptions.list_all(self.db, self.ctx, series_ids) if series_ids else []
        return expand(appointments, exceptions, window_start, window_end, now or utcnow())

    def list_occurrences(
        self, window_start: datetime, window_end: datetime, now: Optional[datetime] = None
    ) -> ExpansionResult:
        """
        All occurrences intersecting the window, sorted by start.

        Elapsed pending single appointments are persisted as done first,
        and every elapsed occurrence is recorded once as a client visit.
        """
        window_start = as_utc(window_start)
        window_end = as_utc(window_end)
        if window_end < window_start:
            raise SchedulingError("Window end must not be before window start")

        now = as_utc(now) if now else utcnow()
        self.lifecycle.promote_elapsed(now)

        result = self.expand_window(window_start, window_end, now)
        recorded = self.lifecycle.record_elapsed_occurrences(result.occurrences, now)
        if recorded:
            logger.info(f"📊 Recorded {recorded} visit(s) for elapsed recurring occurrences")
        return result

    def find_conflicts(
        self,
        candidate_start: datetime,
        duration_min: int,
        ignore_base_id: Optional[int] = None,
        assigned_to: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[Occurrence]:
        """Occurrences on the candidate's calendar day that overlap it for the same assignee"""
        if duration_min <= 0:
            raise SchedulingError("Duration must be a positive number of minutes")
        candidate_start = as_utc(candidate_start)
        day_start, day_end = day_window(candidate_start)
        result = self.expand_window(day_start, day_end, now)
        return find_conflicts(
            result.occurrences, candidate_start, duration_min, ignore_base_id, assigned_to
        )

    def is_slot_available(
        self,
        candidate_start: datetime,
        duration_min: int,
        ignore_base_id: Optional[int] = None,
        assigned_to: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        return not self.find_conflicts(candidate_start, duration_min, ignore_base_id, assigned_to, now)

    def ensure_available(
        self,
        candidate_start: datetime,
        duration_min: int,
        ignore_base_id: Optional[int] = None,
        assigned_to: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> None:
        conflicts = self.find_conflicts(candidate_start, duration_min, ignore_base_id, assigned_to, now)
        if conflicts:
            logger.info(
                f"⛔ Slot {candidate_start.isoformat()} ({duration_min} min) conflicts with "
                f"{', '.join(c.id for c in conflicts)}"
            )
            raise SlotUnavailableError()

    # ------------------------------------------------------------------
    # Create / edit
    # ------------------------------------------------------------------

    def _resolve_service(
        self,
        service_id: Optional[int],
        service_name: Optional[str],
        service_price: Optional[float],
    ) -> tuple[Optional[int], str, float]:
        """A catalog service, or a free-text name with a positive price"""
        if service_id is not None:
            service = CatalogService(self.db, self.ctx).get_service(service_id)
            name = (service_name or "").strip() or service.name
            return service.id, name, service_price if service_price is not None else service.price

        name = (service_name or "").strip()
        if not name:
            raise SchedulingError("A service is required")
        if service_price is None or service_price <= 0:
            raise SchedulingError("A valid service price is required")
        return None, name, service_price

    def _ensure_references(self, client_id: Optional[int], assigned_to: Optional[int]) -> None:
        if client_id is not None:
            self.clients.get_client(client_id)
        if assigned_to is not None:
            StaffService(self.db, self.ctx).get_member(assigned_to)

    @staticmethod
    def _ensure_rule(rrule: Optional[dict]) -> None:
        reason = validate_description(rrule)
        if reason:
            raise InvalidRecurrenceError(f"Invalid recurrence rule: {reason}")

    def create_appointment(self, data: AppointmentCreate, now: Optional[datetime] = None) -> Appointment:
        """
        Create a single or recurring appointment.

        A recurring appointment is checked for conflicts at its first
        occurrence only; later instances are not checked against existing
        bookings.
        """
        logger.info(f"📥 Creating appointment for business: {self.ctx.business_id}")
        now = as_utc(now) if now else utcnow()

        tz_name = data.timezone or DEFAULT_TIMEZONE
        start = as_utc(data.startDateTime, tz_name)
        rrule = data.rrule.to_storage() if data.isRecurring and data.rrule else None
        if data.isRecurring:
            self._ensure_rule(rrule)

        service_id, service_name, list_price = self._resolve_service(
            data.serviceId, data.serviceName, data.servicePrice
        )
        self._ensure_references(data.clientId, data.assignedTo)

        if data.status != CANCELLED:
            self.ensure_available(start, data.durationMin, assigned_to=data.assignedTo, now=now)

        final_price, discount = calculate_final_price(list_price, data.paymentMethod, data.discount)

        fields = {
            "title": data.title or service_name,
            "client_id": data.clientId,
            "service_id": service_id,
            "service_name": service_name,
            "start_at": start,
            "duration_min": data.durationMin,
            "is_recurring": data.isRecurring,
            "rrule": rrule,
            "timezone": tz_name,
            "notes": data.notes,
            "assigned_to": data.assignedTo,
            "payment_method": data.paymentMethod,
            "list_price": list_price,
            "discount": discount,
            "final_price": final_price,
            "payment_status": data.paymentStatus,
            "payment_notes": data.paymentNotes,
        }
        fields.update(status_updates(data.status, start, now))

        appointment = self.repo.insert(self.db, self.ctx, **fields)
        logger.info(
            f"✅ Appointment {appointment.id} created "
            f"({'recurring' if appointment.is_recurring else 'single'}, {appointment.status})"
        )

        if appointment.status == DONE and not appointment.is_recurring:
            self.lifecycle.record_visit_once(appointment.client_id, appointment.id, now=now)
        return appointment

    def update_appointment(
        self, appointment_id: int, data: AppointmentUpdate, now: Optional[datetime] = None
    ) -> Appointment:
        """Edit an appointment; for a series, availability is checked at its anchor only"""
        appointment = self.get_appointment(appointment_id)
        now = as_utc(now) if now else utcnow()
        provided = data.model_fields_set

        tz_name = data.timezone or appointment.timezone or DEFAULT_TIMEZONE
        start = (
            as_utc(data.startDateTime, tz_name)
            if data.startDateTime is not None
            else from_db(appointment.start_at)
        )
        duration_min = data.durationMin or appointment.duration_min

        is_recurring = data.isRecurring if data.isRecurring is not None else appointment.is_recurring
        rrule = data.rrule.to_storage() if data.rrule is not None else appointment.rrule
        if is_recurring:
            self._ensure_rule(rrule)
        else:
            rrule = None

        client_id = data.clientId if "clientId" in provided else appointment.client_id
        assigned_to = data.assignedTo if "assignedTo" in provided else appointment.assigned_to
        self._ensure_references(client_id, assigned_to)

        status = data.status or appointment.status
        ensure_transition(appointment.status, status)
        if status == CANCELLED and appointment.status != CANCELLED and not is_recurring:
            ensure_cancellable(from_db(appointment.start_at), now)

        if status != CANCELLED:
            self.ensure_available(
                start, duration_min, ignore_base_id=appointment.id, assigned_to=assigned_to, now=now
            )

        updates = {
            "start_at": start,
            "duration_min": duration_min,
            "is_recurring": is_recurring,
            "rrule": rrule,
            "timezone": tz_name,
            "client_id": client_id,
            "assigned_to": assigned_to,
            "title": data.title or appointment.title,
            "notes": data.notes if "notes" in provided else appointment.notes,
            "payment_notes": data.paymentNotes if "paymentNotes" in provided else appointment.payment_notes,
            "payment_status": data.paymentStatus or appointment.payment_status,
        }

        if {"serviceId", "serviceName", "servicePrice"} & provided:
            service_id = data.serviceId if "serviceId" in provided else appointment.service_id
            # Switching catalog entries drops the previous name and price
            switching = "serviceId" in provided and data.serviceId != appointment.service_id
            service_id, service_name, list_price = self._resolve_service(
                service_id,
                data.serviceName or (None if switching else appointment.service_name),
                data.servicePrice
                if data.servicePrice is not None
                else (None if switching else appointment.list_price),
            )
            updates.update(service_id=service_id, service_name=service_name, list_price=list_price)
        else:
            list_price = appointment.list_price

        payment_method = data.paymentMethod or appointment.payment_method
        if data.discount is not None:
            discount = data.discount
        elif payment_method != appointment.payment_method:
            discount = None
        else:
            discount = appointment.discount
        if list_price is not None:
            final_price, discount = calculate_final_price(list_price, payment_method, discount)
            updates.update(final_price=final_price)
        updates.update(payment_method=payment_method, discount=discount)

        status_changed = status != appointment.status
        if status_changed:
            updates.update(
                status_updates(
                    status, start, now, appointment.started_at, appointment.actual_duration_min
                )
            )
        elif status == CANCELLED:
            updates["payment_status"] = "cancelled"

        appointment = self.repo.patch(self.db, appointment, **updates)
        logger.info(f"✅ Appointment {appointment.id} updated")

        if status_changed:
            self._after_status_change(appointment, status, now)
        return appointment

    # ------------------------------------------------------------------
    # Occurrence operations
    # ------------------------------------------------------------------

    def _parse_occurrence_id(self, occurrence_id: str) -> tuple[Appointment, Optional[datetime]]:
        try:
            base_id, instant = split_occurrence_id(occurrence_id)
        except ValueError as e:
            raise SchedulingError(str(e))
        appointment = self.get_appointment(base_id)
        if appointment.is_recurring and instant is None:
            raise SchedulingError(
                f"Appointment {base_id} is recurring; address one occurrence as "
                f"'{base_id}::<original start>'"
            )
        return appointment, instant

    def _series_overrides(self, appointment: Appointment) -> OverrideIndex:
        return OverrideIndex(self.exceptions.list_all(self.db, self.ctx, [appointment.id]))

    def _ensure_occurrence(self, appointment: Appointment, instant: datetime) -> None:
        """Reject instants the appointment's rule never produces"""
        result = build_rule(appointment.rrule, from_db(appointment.start_at), appointment.timezone)
        if not result.ok:
            raise InvalidRecurrenceError(f"Invalid recurrence rule: {result.error}")
        if instant not in result.rule.between(instant, instant):
            raise SchedulingError(
                f"{instant.isoformat()} is not an occurrence of appointment {appointment.id}"
            )

    def _effective_occurrence(self, appointment: Appointment, instant: datetime) -> tuple[datetime, int]:
        """Current (start, duration) of one recurring instance after its exceptions"""
        self._ensure_occurrence(appointment, instant)
        effective = apply_override(
            self._series_overrides(appointment).lookup(appointment.id, instant),
            instant,
            appointment.duration_min,
        )
        if effective is None:
            raise SchedulingError(
                f"Occurrence {instant.isoformat()} of appointment {appointment.id} was cancelled"
            )
        return effective

    def _occurrence_at(self, appointment: Appointment, instant: datetime, now: datetime) -> Optional[Occurrence]:
        if not appointment.is_recurring:
            start = from_db(appointment.start_at)
            return expand_single(
                appointment, start, start + timedelta(minutes=appointment.duration_min), now
            )
        occurrences, _ = expand_recurring(
            appointment, self._series_overrides(appointment), instant, instant, now
        )
        return occurrences[0] if occurrences else None

    def move_occurrence(
        self,
        occurrence_id: str,
        new_start: datetime,
        new_duration_min: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Occurrence:
        """Reschedule one occurrence (or a single appointment)"""
        appointment, instant = self._parse_occurrence_id(occurrence_id)
        now = as_utc(now) if now else utcnow()
        new_start = as_utc(new_start, appointment.timezone)
        if new_duration_min is not None and new_duration_min <= 0:
            raise SchedulingError("Duration must be a positive number of minutes")

        if appointment.status == CANCELLED:
            raise SchedulingError(f"Appointment {appointment.id} is cancelled")

        if not appointment.is_recurring:
            duration_min = new_duration_min or appointment.duration_min
            self.ensure_available(
                new_start, duration_min, appointment.id, appointment.assigned_to, now
            )
            appointment = self.repo.patch(
                self.db, appointment, start_at=new_start, duration_min=duration_min
            )
            logger.info(f"📅 Appointment {appointment.id} moved to {new_start.isoformat()}")
            return self._occurrence_at(appointment, new_start, now)

        _, current_duration = self._effective_occurrence(appointment, instant)
        duration_min = new_duration_min or current_duration
        self.ensure_available(new_start, duration_min, appointment.id, appointment.assigned_to, now)

        # Only one move per instant: the latest replaces earlier ones
        for exception in self.exceptions.find(self.db, self.ctx, appointment.id, instant):
            if exception.type == MOVE:
                self.exceptions.delete(self.db, exception)
        self.exceptions.insert(
            self.db,
            self.ctx,
            appointment.id,
            instant,
            MOVE,
            new_start=new_start,
            new_duration_min=new_duration_min,
        )
        logger.info(
            f"📅 Occurrence {occurrence_id} moved to {new_start.isoformat()} ({duration_min} min)"
        )
        return self._occurrence_at(appointment, instant, now)

    def cancel_occurrence(
        self, occurrence_id: str, reason: Optional[str] = None, now: Optional[datetime] = None
    ) -> dict:
        """
        Cancel one occurrence. Single appointments keep their row with status
        'cancelled'; recurring instances are skipped on the series.
        """
        appointment, instant = self._parse_occurrence_id(occurrence_id)
        now = as_utc(now) if now else utcnow()

        if not appointment.is_recurring:
            if appointment.status != CANCELLED:
                ensure_cancellable(from_db(appointment.start_at), now)
                appointment = self.repo.patch(
                    self.db,
                    appointment,
                    **status_updates(CANCELLED, from_db(appointment.start_at), now),
                )
                logger.info(f"❌ Appointment {appointment.id} cancelled")
            self.clients.record_cancellation(appointment.client_id, appointment.id, reason, now=now)
            return {"message": "Appointment cancelled", "occurrenceId": occurrence_id}

        if appointment.status == CANCELLED:
            # The series cancellation already covers and counts this instance
            return {"message": "Occurrence cancelled", "occurrenceId": occurrence_id}

        existing = self.exceptions.find(self.db, self.ctx, appointment.id, instant)
        if not any(e.type == SKIP for e in existing):
            start, _ = self._effective_occurrence(appointment, instant)
            ensure_cancellable(start, now)
            self.exceptions.insert(self.db, self.ctx, appointment.id, instant, SKIP)
            logger.info(f"❌ Occurrence {occurrence_id} cancelled")

        self.clients.record_cancellation(
            appointment.client_id, appointment.id, reason, occurrence_start=instant, now=now
        )
        return {"message": "Occurrence cancelled", "occurrenceId": occurrence_id}

    def update_status(
        self, occurrence_id: str, new_status: str, now: Optional[datetime] = None
    ) -> Appointment:
        """
        Explicit status change. A recurring instance is split off the series
        as an individual appointment carrying the new status, and the
        original instant is skipped on the series.
        """
        appointment, instant = self._parse_occurrence_id(occurrence_id)
        now = as_utc(now) if now else utcnow()

        if not appointment.is_recurring:
            ensure_transition(appointment.status, new_status)
            start = from_db(appointment.start_at)
            if new_status == appointment.status:
                return appointment
            if new_status == CANCELLED:
                ensure_cancellable(start, now)
            appointment = self.repo.patch(
                self.db,
                appointment,
                **status_updates(
                    new_status, start, now, appointment.started_at, appointment.actual_duration_min
                ),
            )
            logger.info(f"✅ Appointment {appointment.id} status set to {new_status}")
            self._after_status_change(appointment, new_status, now)
            return appointment

        ensure_transition(appointment.status or PENDING, new_status)
        if appointment.status == CANCELLED:
            return appointment
        start, duration_min = self._effective_occurrence(appointment, instant)
        if new_status == CANCELLED:
            ensure_cancellable(start, now)
        # Listing may already have counted this instance as a visit of the series
        visit_recorded = self.clients.has_visit_record(appointment.id, instant)

        fields = {
            "title": appointment.title,
            "client_id": appointment.client_id,
            "service_id": appointment.service_id,
            "service_name": appointment.service_name,
            "start_at": start,
            "duration_min": duration_min,
            "is_recurring": False,
            "rrule": None,
            "timezone": appointment.timezone,
            "notes": appointment.notes,
            "assigned_to": appointment.assigned_to,
            "payment_method": appointment.payment_method,
            "list_price": appointment.list_price,
            "discount": appointment.discount,
            "final_price": appointment.final_price,
            "payment_status": appointment.payment_status or "pending",
            "payment_notes": appointment.payment_notes,
        }
        fields.update(status_updates(new_status, start, now))
        individual = self.repo.insert(self.db, self.ctx, **fields)
        self.exceptions.insert(self.db, self.ctx, appointment.id, instant, SKIP)

        logger.info(
            f"✅ Occurrence {occurrence_id} split into appointment {individual.id} ({new_status})"
        )
        if new_status == DONE and visit_recorded:
            logger.info(f"📊 Visit for occurrence {occurrence_id} already recorded")
        else:
            self._after_status_change(individual, new_status, now)
        return individual

    def mark_completed(self, occurrence_id: str, now: Optional[datetime] = None) -> Appointment:
        return self.update_status(occurrence_id, DONE, now)

    def _after_status_change(
        self,
        appointment: Appointment,
        new_status: str,
        now: datetime,
    ) -> None:
        if new_status == DONE:
            self.lifecycle.record_visit_once(appointment.client_id, appointment.id, now=now)
        elif new_status == CANCELLED:
            self.clients.record_cancellation(appointment.client_id, appointment.id, now=now)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_appointment(
        self,
        appointment_id: int,
        scope: str = "all",
        occurrence_start: Optional[datetime] = None,
    ) -> dict:
        """
        scope="all" deletes the appointment (a whole series with its
        exceptions); scope="one" skips a single instance of a series.
        """
        if scope not in DELETE_SCOPES:
            raise SchedulingError(f"Invalid delete scope: {scope!r}")
        appointment = self.get_appointment(appointment_id)

        if scope == "one" and appointment.is_recurring:
            if occurrence_start is None:
                raise SchedulingError("occurrence_start is required to delete one occurrence")
            instant = as_utc(occurrence_start, appointment.timezone)
            self._ensure_occurrence(appointment, instant)
            existing = self.exceptions.find(self.db, self.ctx, appointment.id, instant)
            if not any(e.type == SKIP for e in existing):
                self.exceptions.insert(self.db, self.ctx, appointment.id, instant, SKIP)
            logger.info(f"🗑️ Occurrence {instant.isoformat()} of appointment {appointment.id} removed")
            return {"message": "Occurrence deleted"}

        self.repo.delete(self.db, appointment)
        logger.info(f"🗑️ Appointment {appointment_id} deleted")
        return {"message": "Appointment deleted"}
