from urllib.parse import quote


def book(api, **overrides):
    payload = {
        "title": "Haircut",
        "serviceName": "Haircut",
        "servicePrice": 1000,
        "startDateTime": "2030-03-12T10:00:00+00:00",
        "durationMin": 60,
        "timezone": "UTC",
    }
    payload.update(overrides)
    return api.post("/appointments", json=payload)


def occurrence_path(occurrence_id: str, action: str) -> str:
    return f"/appointments/occurrences/{quote(occurrence_id, safe='')}/{action}"


def test_health(api):
    assert api.get("/health").json() == {"status": "healthy"}


def test_business_header_is_required(api):
    response = api.get("/appointments/1", headers={"X-Business-Id": ""})
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing X-Business-Id header"


def test_create_and_get_appointment(api):
    response = book(api)
    assert response.status_code == 200
    body = response.json()
    assert body["startDateTime"] == "2030-03-12T10:00:00+00:00"
    assert body["finalPrice"] == 900
    assert body["discount"] == 10
    assert body["status"] == "pending"

    fetched = api.get(f"/appointments/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == body["id"]


def test_missing_appointment_is_404(api):
    response = api.get("/appointments/999")
    assert response.status_code == 404
    assert response.json() == {"detail": "Appointment 999 not found"}


def test_taken_slot_is_409(api):
    assert book(api).status_code == 200
    response = book(api, startDateTime="2030-03-12T10:30:00+00:00")
    assert response.status_code == 409
    assert "already taken" in response.json()["detail"]


def test_invalid_recurrence_payload_is_422(api):
    response = book(api, isRecurring=True, rrule={"freq": "HOURLY"})
    assert response.status_code == 422

    response = book(api, isRecurring=True)
    assert response.status_code == 422


def test_occurrences_endpoint_expands_series(api):
    created = book(api, isRecurring=True, rrule={"freq": "WEEKLY", "byweekday": [1, 3]}).json()

    response = api.get(
        "/appointments/occurrences",
        params={"start": "2030-03-11T00:00:00+00:00", "end": "2030-03-17T23:59:59+00:00"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["ruleErrors"] == []
    assert [o["id"] for o in body["occurrences"]] == [
        f"{created['id']}::2030-03-12T10:00:00+00:00",
        f"{created['id']}::2030-03-14T10:00:00+00:00",
    ]
    assert body["occurrences"][0]["end"] == "2030-03-12T11:00:00+00:00"


def test_availability_endpoint(api):
    created = book(api).json()
    params = {"start": "2030-03-12T10:30:00+00:00", "duration_min": 30}

    busy = api.get("/appointments/availability", params=params).json()
    assert busy["available"] is False
    assert [c["baseId"] for c in busy["conflicts"]] == [created["id"]]

    free = api.get("/appointments/availability", params={**params, "ignore_base_id": created["id"]}).json()
    assert free == {"available": True, "conflicts": []}


def test_move_and_cancel_occurrences(api):
    series = book(api, isRecurring=True, rrule={"freq": "DAILY", "count": 3}).json()
    first = f"{series['id']}::2030-03-12T10:00:00+00:00"
    second = f"{series['id']}::2030-03-13T10:00:00+00:00"

    moved = api.post(occurrence_path(first, "move"), json={"newStart": "2030-03-12T15:00:00+00:00"})
    assert moved.status_code == 200
    assert moved.json()["start"] == "2030-03-12T15:00:00+00:00"
    assert moved.json()["originalStart"] == "2030-03-12T10:00:00+00:00"

    cancelled = api.post(occurrence_path(second, "cancel"), json={"reason": "Holiday"})
    assert cancelled.status_code == 200

    body = api.get(
        "/appointments/occurrences",
        params={"start": "2030-03-12T00:00:00+00:00", "end": "2030-03-20T00:00:00+00:00"},
    ).json()
    assert [o["start"] for o in body["occurrences"]] == [
        "2030-03-12T15:00:00+00:00",
        "2030-03-14T10:00:00+00:00",
    ]


def test_cancel_after_window_is_400(api):
    past = book(api, startDateTime="2020-01-01T10:00:00+00:00").json()

    response = api.post(occurrence_path(str(past["id"]), "cancel"))

    assert response.status_code == 400
    assert "24 hours" in response.json()["detail"]


def test_status_endpoint_completes_appointment(api):
    created = book(api).json()

    response = api.post(occurrence_path(str(created["id"]), "status"), json={"status": "done"})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "done"
    assert body["completedAt"].endswith("+00:00")


def test_patch_and_delete_appointment(api):
    created = book(api).json()

    patched = api.patch(f"/appointments/{created['id']}", json={"paymentMethod": "transfer"})
    assert patched.status_code == 200
    assert patched.json()["finalPrice"] == 1000

    deleted = api.delete(f"/appointments/{created['id']}")
    assert deleted.json() == {"message": "Appointment deleted"}
    assert api.get(f"/appointments/{created['id']}").status_code == 404


def test_delete_single_occurrence(api):
    series = book(api, isRecurring=True, rrule={"freq": "DAILY", "count": 2}).json()

    response = api.delete(
        f"/appointments/{series['id']}",
        params={"scope": "one", "occurrence_start": "2030-03-13T10:00:00+00:00"},
    )

    assert response.json() == {"message": "Occurrence deleted"}
    body = api.get(
        "/appointments/occurrences",
        params={"start": "2030-03-12T00:00:00+00:00", "end": "2030-03-14T00:00:00+00:00"},
    ).json()
    assert len(body["occurrences"]) == 1


def test_clients_endpoints(api):
    created = api.post("/clients", json={"name": "Ana Gómez", "phone": "+54 11 4555 1234"})
    assert created.status_code == 200
    client = created.json()
    assert client["phone"] == "+541145551234"

    appointment = book(api, clientId=client["id"], startDateTime="2030-04-01T10:00:00+00:00").json()
    api.post(occurrence_path(str(appointment["id"]), "cancel"), json={"reason": "Sick"})

    refreshed = api.get(f"/clients/{client['id']}").json()
    assert refreshed["totalCancellations"] == 1

    history = api.get(f"/clients/{client['id']}/history").json()
    assert {h["eventType"] for h in history} == {"client_created", "appointment_cancelled"}

    reminder = api.post(f"/clients/{client['id']}/reminders", json={"method": "whatsapp"})
    assert reminder.json()["eventType"] == "reminder_sent"

    stats = api.get("/clients/stats/summary").json()
    assert stats["totalClients"] == 1
    assert stats["totalCancellations"] == 1

    assert api.get("/clients/at-risk").status_code == 200


def test_services_endpoints(api):
    created = api.post("/services", json={"name": "Beard trim", "price": 600}).json()

    appointment = book(api, serviceName=None, servicePrice=None, serviceId=created["id"]).json()
    assert appointment["serviceName"] == "Beard trim"
    assert appointment["finalPrice"] == 540

    assert api.patch(f"/services/{created['id']}", json={"price": 700}).json()["price"] == 700
    assert [s["name"] for s in api.get("/services").json()] == ["Beard trim"]


def test_staff_endpoints(api):
    bruno = api.post("/staff", json={"name": "Bruno"}).json()
    schedules = api.put(
        f"/staff/{bruno['id']}/schedules",
        json={"schedules": [{"dayOfWeek": 0, "startTime": "09:00", "endTime": "17:00"}]},
    )
    assert schedules.status_code == 200

    available = api.get("/staff/available", params={"day_of_week": 0, "time": "10:00"}).json()
    assert [m["name"] for m in available] == ["Bruno"]
    assert available[0]["schedules"][0]["startTime"] == "09:00"

    assert api.get("/staff/available", params={"day_of_week": 0, "time": "18:00"}).json() == []
