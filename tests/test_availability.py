from datetime import datetime, timezone

from chairbook.domain.scheduling.availability import day_window, find_conflicts
from chairbook.domain.scheduling.expander import Occurrence


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def occurrence(base_id, start, end, assigned_to=None, status="pending", id=None):
    return Occurrence(
        id=id or str(base_id),
        base_id=base_id,
        original_start=start,
        start=start,
        end=end,
        is_recurring=False,
        status=status,
        assigned_to=assigned_to,
    )


BOOKED = occurrence(1, utc(2026, 3, 2, 10), utc(2026, 3, 2, 11), assigned_to=5)


def test_overlap_with_same_staff_is_a_conflict():
    conflicts = find_conflicts([BOOKED], utc(2026, 3, 2, 10, 30), 60, assigned_to=5)
    assert conflicts == [BOOKED]


def test_overlap_with_other_staff_is_available():
    assert find_conflicts([BOOKED], utc(2026, 3, 2, 10, 30), 60, assigned_to=6) == []


def test_touching_slots_do_not_conflict():
    assert find_conflicts([BOOKED], utc(2026, 3, 2, 11), 30, assigned_to=5) == []
    assert find_conflicts([BOOKED], utc(2026, 3, 2, 9), 60, assigned_to=5) == []


def test_unassigned_candidate_only_conflicts_with_unassigned_bookings():
    unassigned = occurrence(2, utc(2026, 3, 2, 14), utc(2026, 3, 2, 15))
    occurrences = [BOOKED, unassigned]

    assert find_conflicts(occurrences, utc(2026, 3, 2, 14, 30), 30) == [unassigned]
    assert find_conflicts(occurrences, utc(2026, 3, 2, 10, 30), 30) == []
    assert find_conflicts(occurrences, utc(2026, 3, 2, 14, 30), 30, assigned_to=5) == []


def test_ignored_base_id_never_conflicts():
    assert find_conflicts([BOOKED], utc(2026, 3, 2, 10, 30), 60, ignore_base_id=1, assigned_to=5) == []


def test_ignoring_a_series_skips_all_its_occurrences():
    first = occurrence(9, utc(2026, 3, 2, 10), utc(2026, 3, 2, 11), id="9::a")
    second = occurrence(9, utc(2026, 3, 2, 12), utc(2026, 3, 2, 13), id="9::b")
    assert find_conflicts([first, second], utc(2026, 3, 2, 10), 180, ignore_base_id=9) == []
    assert find_conflicts([first, second], utc(2026, 3, 2, 10), 180) == [first, second]


def test_cancelled_occurrences_do_not_block():
    cancelled = occurrence(3, utc(2026, 3, 2, 16), utc(2026, 3, 2, 17), status="cancelled")
    assert find_conflicts([cancelled], utc(2026, 3, 2, 16), 60) == []


def test_done_occurrences_still_block():
    done = occurrence(3, utc(2026, 3, 2, 16), utc(2026, 3, 2, 17), status="done")
    assert find_conflicts([done], utc(2026, 3, 2, 16, 15), 15) == [done]


def test_day_window_uses_local_calendar_day():
    # 01:00 UTC on March 3 is still March 2 in Buenos Aires (-03:00)
    start, end = day_window(utc(2026, 3, 3, 1, 0), "America/Argentina/Buenos_Aires")
    assert start == utc(2026, 3, 2, 3, 0)
    assert end == utc(2026, 3, 3, 2, 59, 59, 999999)


def test_day_window_in_utc():
    start, end = day_window(utc(2026, 3, 2, 10, 0), "UTC")
    assert start == utc(2026, 3, 2)
    assert end == utc(2026, 3, 2, 23, 59, 59, 999999)
