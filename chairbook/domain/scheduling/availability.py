"""
Conflict checking.

Appointments of different staff members may run at the same time (several
chairs); only the same staff member, or two unassigned appointments,
collide.
"""

from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from ...shared.timeutils import as_utc, get_zone
from .expander import CANCELLED, Occurrence, intervals_overlap


def day_window(candidate_start: datetime, tz_name: Optional[str] = None) -> Tuple[datetime, datetime]:
    """Inclusive bounds of the local calendar day containing `candidate_start`"""
    local = as_utc(candidate_start).astimezone(get_zone(tz_name))
    day_start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = (day_start + timedelta(days=1)) - timedelta(microseconds=1)
    return as_utc(day_start), as_utc(day_end)


def assignees_by_base(occurrences: Iterable[Occurrence]) -> Dict[int, Optional[int]]:
    return {occurrence.base_id: occurrence.assigned_to for occurrence in occurrences}


def find_conflicts(
    occurrences: List[Occurrence],
    candidate_start: datetime,
    duration_min: int,
    ignore_base_id: Optional[int] = None,
    assigned_to: Optional[int] = None,
) -> List[Occurrence]:
    """Occurrences that block the candidate interval for the given assignee"""
    start = as_utc(candidate_start)
    end = start + timedelta(minutes=duration_min)
    assignees = assignees_by_base(occurrences)

    conflicts = []
    for occurrence in occurrences:
        if ignore_base_id is not None and occurrence.base_id == ignore_base_id:
            continue
        if occurrence.status == CANCELLED:
            continue
        # Unassigned (None) only matches unassigned
        if assignees.get(occurrence.base_id) != assigned_to:
            continue
        if intervals_overlap(start, end, occurrence.start, occurrence.end):
            conflicts.append(occurrence)
    return conflicts
