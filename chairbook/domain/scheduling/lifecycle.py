"""
Appointment status lifecycle.

pending → done happens automatically once an appointment's window has
elapsed; pending/done → cancelled only by explicit action, and never for
occurrences that started more than the cancellation window ago.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...config import CANCELLATION_WINDOW_HOURS
from ...context import BusinessContext
from ...shared.timeutils import as_utc, from_db
from ..clients.service import ClientService
from .errors import CancellationWindowError, InvalidStatusTransitionError
from .expander import CANCELLED, DONE, PENDING, STATUSES, Occurrence
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)


def validate_status_transition(current_status: str, new_status: str) -> bool:
    """
    Validate a manual status change.

    'done' is normally reached automatically but may also be set by hand;
    'cancelled' is terminal.
    """
    valid_transitions = {
        PENDING: [DONE, CANCELLED],
        DONE: [PENDING, CANCELLED],
        CANCELLED: [],  # Terminal state
    }

    # Allow same status (no-op)
    if current_status == new_status:
        return True

    return new_status in valid_transitions.get(current_status or PENDING, [])


def ensure_transition(current_status: str, new_status: str) -> None:
    if new_status not in STATUSES:
        raise InvalidStatusTransitionError(f"Unknown status: {new_status!r}")
    if not validate_status_transition(current_status, new_status):
        raise InvalidStatusTransitionError(
            f"Cannot change status from '{current_status}' to '{new_status}'"
        )


def ensure_cancellable(
    scheduled_start: datetime, now: datetime, window_hours: int = CANCELLATION_WINDOW_HOURS
) -> None:
    """Reject cancelling an occurrence that started more than `window_hours` ago"""
    elapsed = as_utc(now) - as_utc(scheduled_start)
    if elapsed > timedelta(hours=window_hours):
        raise CancellationWindowError(window_hours)


def status_updates(
    new_status: str,
    scheduled_start: datetime,
    now: datetime,
    started_at: Optional[datetime] = None,
    actual_duration_min: Optional[int] = None,
) -> dict:
    """
    Field changes that accompany a status change.

    Completion fills the actual timing (keeping values already recorded);
    any other status clears it. Cancelling also cancels the payment.
    """
    if new_status not in STATUSES:
        raise InvalidStatusTransitionError(f"Unknown status: {new_status!r}")

    now = as_utc(now)
    scheduled_start = as_utc(scheduled_start)
    updates = {"status": new_status}

    if new_status == DONE:
        # A future appointment completed early counts from now, never negative
        effective_start = min(scheduled_start, now)
        updates["completed_at"] = now
        updates["started_at"] = from_db(started_at) or effective_start
        if actual_duration_min is None:
            actual_duration_min = round((now - effective_start).total_seconds() / 60)
        updates["actual_duration_min"] = actual_duration_min
    else:
        updates["completed_at"] = None
        updates["started_at"] = None
        updates["actual_duration_min"] = None
        if new_status == CANCELLED:
            updates["payment_status"] = "cancelled"

    return updates


class LifecycleUpdater:
    """Persists time-driven status changes and their client-visit side effects"""

    def __init__(self, db: Session, ctx: BusinessContext, clients: Optional[ClientService] = None):
        self.db = db
        self.ctx = ctx
        self.clients = clients or ClientService(db, ctx)
        self.repo = AppointmentRepository()

    def record_visit_once(
        self,
        client_id: Optional[int],
        appointment_id: int,
        occurrence_start: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """Record a completed visit unless one already exists for this appointment/occurrence"""
        if not client_id:
            return False
        if self.clients.has_visit_record(appointment_id, occurrence_start):
            return False
        entry = self.clients.record_visit_completed(client_id, appointment_id, occurrence_start, now)
        return entry is not None

    def promote_elapsed(self, now: datetime) -> list:
        """Mark every elapsed pending single appointment as done"""
        now = as_utc(now)
        promoted = []

        for appointment in self.repo.list_pending_singles_started_before(self.db, self.ctx, now):
            end = from_db(appointment.start_at) + timedelta(minutes=appointment.duration_min)
            if not end < now:
                continue
            appointment.status = DONE
            promoted.append(appointment)

        if not promoted:
            return promoted

        self.db.commit()
        for appointment in promoted:
            logger.info(f"✅ Appointment {appointment.id} transitioned: pending → done")
            self.record_visit_once(appointment.client_id, appointment.id, now=now)

        return promoted

    def record_elapsed_occurrences(self, occurrences: Iterable[Occurrence], now: datetime) -> int:
        """Record one visit per elapsed recurring occurrence"""
        recorded = 0
        for occurrence in occurrences:
            if not occurrence.is_recurring or occurrence.status != DONE:
                continue
            if self.record_visit_once(
                occurrence.client_id, occurrence.base_id, occurrence.original_start, now
            ):
                recorded += 1
        return recorded

