"""
Occurrence expander.

Projects stored appointments onto a time window: single appointments are
kept when they intersect it, recurring ones are expanded through their rule
and reconciled with skip/move exceptions. Pure computation; persistence
side effects live in lifecycle.py.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from ...shared.timeutils import as_utc, from_db, parse_instant, to_iso
from .overrides import OverrideIndex, apply_override
from .recurrence import build_rule

logger = logging.getLogger(__name__)

OCCURRENCE_SEPARATOR = "::"

PENDING = "pending"
DONE = "done"
CANCELLED = "cancelled"
STATUSES = (PENDING, DONE, CANCELLED)


@dataclass
class Occurrence:
    id: str
    base_id: int
    original_start: datetime
    start: datetime
    end: datetime
    is_recurring: bool
    status: str
    title: Optional[str] = None
    client_id: Optional[int] = None
    service_id: Optional[int] = None
    service_name: Optional[str] = None
    assigned_to: Optional[int] = None
    payment_method: Optional[str] = None
    list_price: Optional[float] = None
    discount: Optional[float] = None
    final_price: Optional[float] = None
    payment_status: Optional[str] = None
    # Timing fields come from the base appointment and are shared by all
    # instances of a recurring series
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    actual_duration_min: Optional[int] = None

    @property
    def duration_min(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


@dataclass
class RuleError:
    appointment_id: int
    reason: str


@dataclass
class ExpansionResult:
    occurrences: List[Occurrence] = field(default_factory=list)
    rule_errors: List[RuleError] = field(default_factory=list)


def occurrence_id(base_id: int, instant: datetime) -> str:
    return f"{base_id}{OCCURRENCE_SEPARATOR}{to_iso(instant)}"


def split_occurrence_id(value: str) -> Tuple[int, Optional[datetime]]:
    """Split "<base id>::<instant>" into its parts; plain ids have no instant"""
    base, _, instant = str(value).partition(OCCURRENCE_SEPARATOR)
    try:
        base_id = int(base)
    except ValueError:
        raise ValueError(f"Invalid occurrence id: {value!r}") from None
    return base_id, parse_instant(instant) if instant else None


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test; touching intervals do not overlap"""
    return a_start < b_end and b_start < a_end


def derive_status(stored_status: Optional[str], end: datetime, now: datetime) -> str:
    status = stored_status or PENDING
    if status == PENDING and end < now:
        return DONE
    return status


def _occurrence_from(appointment, occ_id: str, original: datetime, start: datetime, end: datetime, status: str) -> Occurrence:
    return Occurrence(
        id=occ_id,
        base_id=appointment.id,
        original_start=original,
        start=start,
        end=end,
        is_recurring=bool(appointment.is_recurring),
        status=status,
        title=appointment.title,
        client_id=appointment.client_id,
        service_id=appointment.service_id,
        service_name=appointment.service_name,
        assigned_to=appointment.assigned_to,
        payment_method=appointment.payment_method,
        list_price=appointment.list_price,
        discount=appointment.discount,
        final_price=appointment.final_price,
        payment_status=appointment.payment_status,
        started_at=from_db(appointment.started_at),
        completed_at=from_db(appointment.completed_at),
        actual_duration_min=appointment.actual_duration_min,
    )


def expand_single(appointment, window_start: datetime, window_end: datetime, now: datetime) -> Optional[Occurrence]:
    start = from_db(appointment.start_at)
    end = start + timedelta(minutes=appointment.duration_min)
    if not intervals_overlap(start, end, window_start, window_end):
        return None
    status = derive_status(appointment.status, end, now)
    return _occurrence_from(appointment, str(appointment.id), start, start, end, status)


def expand_recurring(
    appointment,
    overrides: OverrideIndex,
    window_start: datetime,
    window_end: datetime,
    now: datetime,
) -> Tuple[List[Occurrence], Optional[str]]:
    """Expand one recurring appointment; returns (occurrences, rule error)"""
    result = build_rule(appointment.rrule, from_db(appointment.start_at), appointment.timezone)
    if not result.ok:
        return [], result.error

    rule = result.rule
    instants = set(rule.between(window_start, window_end))
    # Instances whose original start lies outside the window but were moved into it
    for move in overrides.moves_for(appointment.id):
        original = from_db(move.original_start)
        if original in instants:
            continue
        effective = apply_override(
            overrides.lookup(appointment.id, original), original, appointment.duration_min
        )
        if effective is None:
            continue
        start, duration = effective
        if not intervals_overlap(start, start + timedelta(minutes=duration), window_start, window_end):
            continue
        if rule.between(original, original):
            instants.add(original)

    occurrences = []
    for instant in sorted(instants):
        effective = apply_override(
            overrides.lookup(appointment.id, instant), instant, appointment.duration_min
        )
        if effective is None:
            continue
        start, duration = effective
        end = start + timedelta(minutes=duration)
        # Per-instance status is derived from time only, never stored.
        # A cancelled series cancels every instance.
        if appointment.status == CANCELLED:
            status = CANCELLED
        else:
            status = DONE if end < now else PENDING
        occurrences.append(
            _occurrence_from(appointment, occurrence_id(appointment.id, instant), instant, start, end, status)
        )
    return occurrences, None


def expand(
    appointments: Iterable,
    exceptions: Iterable,
    window_start: datetime,
    window_end: datetime,
    now: datetime,
) -> ExpansionResult:
    """
    Expand every appointment that could intersect [window_start, window_end).

    Occurrences come back sorted by start. A recurring instance is included
    when its original start falls in the window, or when a move places it
    inside the window. Recurring appointments whose rule cannot be built are
    left out and reported in `rule_errors`.
    """
    window_start = as_utc(window_start)
    window_end = as_utc(window_end)
    now = as_utc(now)
    overrides = OverrideIndex(exceptions)
    result = ExpansionResult()

    for appointment in appointments:
        if not appointment.is_recurring:
            occurrence = expand_single(appointment, window_start, window_end, now)
            if occurrence is not None:
                result.occurrences.append(occurrence)
            continue

        occurrences, error = expand_recurring(appointment, overrides, window_start, window_end, now)
        if error:
            logger.warning(f"⚠️ Skipping recurring appointment {appointment.id}: {error}")
            result.rule_errors.append(RuleError(appointment.id, error))
            continue
        result.occurrences.extend(occurrences)

    result.occurrences.sort(key=lambda o: (o.start, o.base_id))
    return result
