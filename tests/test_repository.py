from datetime import datetime, timezone

import pytest

from chairbook.context import BusinessContext
from chairbook.domain.scheduling.repository import AppointmentRepository, ExceptionRepository
from chairbook.models import Appointment
from chairbook.shared.timeutils import from_db


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_range_query_by_start(db, ctx, make_appointment):
    make_appointment(start_at=utc(2026, 3, 1, 10))
    inside = make_appointment(start_at=utc(2026, 3, 5, 10))
    make_appointment(start_at=utc(2026, 3, 9, 10))

    found = AppointmentRepository.range_query(db, ctx, "start_at", utc(2026, 3, 2), utc(2026, 3, 8))

    assert [a.id for a in found] == [inside.id]


def test_range_query_rejects_unknown_field(db, ctx):
    with pytest.raises(ValueError):
        AppointmentRepository.range_query(db, ctx, "notes", utc(2026, 3, 2), utc(2026, 3, 8))


def test_list_for_window_includes_long_appointments_started_earlier(db, ctx, make_appointment):
    long_one = make_appointment(start_at=utc(2026, 3, 1, 22), duration_min=240)
    series = make_appointment(start_at=utc(2026, 1, 1, 10), is_recurring=True, rrule={"freq": "DAILY"})
    make_appointment(start_at=utc(2026, 2, 20, 10))
    make_appointment(start_at=utc(2026, 3, 5, 10), is_recurring=True, rrule={"freq": "DAILY"})

    found = AppointmentRepository.list_for_window(db, ctx, utc(2026, 3, 2), utc(2026, 3, 2, 23))

    assert {a.id for a in found} == {long_one.id, series.id}


def test_upsert_inserts_then_updates(db, ctx):
    appointment = Appointment(
        title="Color",
        start_at=utc(2026, 3, 2, 10),
        duration_min=90,
        is_recurring=False,
        status="pending",
        payment_status="pending",
    )
    saved = AppointmentRepository.upsert(db, ctx, appointment)
    assert saved.id is not None
    assert saved.business_id == ctx.business_id

    saved.duration_min = 120
    again = AppointmentRepository.upsert(db, ctx, saved)
    assert again.id == saved.id
    assert AppointmentRepository.get_by_id(db, ctx, saved.id).duration_min == 120


def test_patch_with_none_clears_field(db, ctx, make_appointment):
    appointment = make_appointment(notes="Bring reference photo")
    AppointmentRepository.patch(db, appointment, notes=None)
    assert appointment.notes is None


def test_queries_are_scoped_to_business(db, ctx, make_appointment):
    appointment = make_appointment()
    ExceptionRepository.insert(db, ctx, appointment.id, utc(2026, 3, 2, 10), "skip")
    other = BusinessContext(business_id="salon-2")

    assert AppointmentRepository.list_all(db, other) == []
    assert AppointmentRepository.get_by_id(db, other, appointment.id) is None
    assert ExceptionRepository.list_all(db, other) == []
    assert len(ExceptionRepository.list_all(db, ctx)) == 1


def test_exception_lookup_by_original_instant(db, ctx, make_appointment):
    series = make_appointment(is_recurring=True, rrule={"freq": "DAILY"})
    ExceptionRepository.insert(
        db, ctx, series.id, utc(2026, 3, 3, 10), "move", new_start=utc(2026, 3, 3, 14), new_duration_min=30
    )

    [found] = ExceptionRepository.find(db, ctx, series.id, utc(2026, 3, 3, 10))
    assert found.type == "move"
    assert from_db(found.new_start) == utc(2026, 3, 3, 14)
    assert ExceptionRepository.find(db, ctx, series.id, utc(2026, 3, 4, 10)) == []
