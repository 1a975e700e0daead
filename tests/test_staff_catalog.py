import pytest
from fastapi import HTTPException

from chairbook.domain.catalog.schemas import ServiceCreate, ServiceUpdate
from chairbook.domain.catalog.service import CatalogService
from chairbook.domain.staff.schemas import ScheduleEntry, ScheduleUpdate, StaffCreate, StaffUpdate
from chairbook.domain.staff.service import StaffService


@pytest.fixture
def staff_service(db, ctx):
    return StaffService(db, ctx)


@pytest.fixture
def catalog(db, ctx):
    return CatalogService(db, ctx)


def week(*entries):
    return ScheduleUpdate(
        schedules=[ScheduleEntry(dayOfWeek=d, startTime=s, endTime=e, isActive=a) for d, s, e, a in entries]
    )


def test_staff_crud(staff_service):
    member = staff_service.create_member(StaffCreate(name="Bruno"))
    assert member.role == "staff"

    updated = staff_service.update_member(member.id, StaffUpdate(role="admin"))
    assert updated.role == "admin"
    assert updated.name == "Bruno"

    staff_service.delete_member(member.id)
    with pytest.raises(HTTPException):
        staff_service.get_member(member.id)


def test_set_schedules_replaces_previous_week(staff_service):
    member = staff_service.create_member(StaffCreate(name="Bruno"))

    staff_service.set_schedules(member.id, week((0, "09:00", "17:00", True), (2, "09:00", "13:00", True)))
    schedules = staff_service.set_schedules(member.id, week((1, "10:00", "18:00", True)))

    assert [(s.day_of_week, s.start_time, s.end_time) for s in schedules] == [(1, "10:00", "18:00")]


def test_available_staff_at_time(staff_service):
    bruno = staff_service.create_member(StaffCreate(name="Bruno"))
    carla = staff_service.create_member(StaffCreate(name="Carla"))
    dario = staff_service.create_member(StaffCreate(name="Dario"))
    staff_service.set_schedules(bruno.id, week((0, "09:00", "13:00", True)))
    staff_service.set_schedules(carla.id, week((0, "12:00", "20:00", True)))
    staff_service.set_schedules(dario.id, week((0, "09:00", "20:00", False)))

    assert [m.name for m in staff_service.get_available_staff(0, "12:30")] == ["Bruno", "Carla"]
    assert [m.name for m in staff_service.get_available_staff(0, "13:00")] == ["Carla"]
    assert [m.name for m in staff_service.get_available_staff(0, "08:59")] == []
    assert staff_service.get_available_staff(1, "12:30") == []


def test_available_staff_rejects_bad_time(staff_service):
    with pytest.raises(HTTPException) as exc_info:
        staff_service.get_available_staff(0, "25:00")
    assert exc_info.value.status_code == 400


@pytest.mark.parametrize(
    "entry",
    [
        {"dayOfWeek": 7, "startTime": "09:00", "endTime": "10:00"},
        {"dayOfWeek": 0, "startTime": "9:00", "endTime": "10:00"},
        {"dayOfWeek": 0, "startTime": "11:00", "endTime": "10:00"},
    ],
)
def test_invalid_schedule_entries(entry):
    with pytest.raises(ValueError):
        ScheduleEntry(**entry)


def test_duplicate_weekdays_are_rejected():
    with pytest.raises(ValueError):
        week((0, "09:00", "12:00", True), (0, "14:00", "18:00", True))


def test_catalog_crud(catalog, ctx):
    service = catalog.create_service(ServiceCreate(name="Beard trim", price=600))
    assert service.business_id == ctx.business_id

    updated = catalog.update_service(service.id, ServiceUpdate(price=650))
    assert updated.price == 650
    assert updated.name == "Beard trim"
    assert [s.name for s in catalog.get_services()] == ["Beard trim"]

    catalog.delete_service(service.id)
    with pytest.raises(HTTPException) as exc_info:
        catalog.get_service(service.id)
    assert exc_info.value.status_code == 404


def test_catalog_rejects_non_positive_price():
    with pytest.raises(ValueError):
        ServiceCreate(name="Free", price=0)
