from datetime import date, datetime

import pytest

from itmaint.api.routes.interventions import apply_status_change, get_status_color
from itmaint.core.exceptions import InvalidTransitionError
from itmaint.models.intervention import Intervention, InterventionStatus, can_transition


# ==================== Lifecycle ====================

@pytest.mark.parametrize("current,requested", [
    ("planned", "in_progress"),
    ("planned", "cancelled"),
    ("in_progress", "done"),
    ("in_progress", "not_done"),
    ("done", "done"),
])
def test_allowed_transitions(current, requested):
    assert can_transition(current, requested)


@pytest.mark.parametrize("current,requested", [
    ("planned", "done"),
    ("done", "planned"),
    ("cancelled", "planned"),
    ("not_done", "in_progress"),
    ("in_progress", "planned"),
])
def test_forbidden_transitions(current, requested):
    assert not can_transition(current, requested)


def test_status_change_stamps_start_and_end_times():
    intervention = Intervention(status=InterventionStatus.PLANNED.value)
    started = datetime(2024, 5, 10, 9, 0)
    finished = datetime(2024, 5, 10, 11, 30)

    apply_status_change(intervention, InterventionStatus.IN_PROGRESS, now=started)
    assert intervention.status == "in_progress"
    assert intervention.start_time == started

    apply_status_change(intervention, InterventionStatus.DONE, now=finished)
    assert intervention.status == "done"
    assert intervention.start_time == started
    assert intervention.end_time == finished


def test_invalid_status_change_raises():
    intervention = Intervention(status=InterventionStatus.DONE.value)
    with pytest.raises(InvalidTransitionError):
        apply_status_change(intervention, InterventionStatus.PLANNED)
    assert intervention.status == "done"


def test_status_colors():
    assert get_status_color("planned") == "#3788d8"
    assert get_status_color("unknown") == "#6b7280"


# ==================== API ====================

def _create(client, headers, equipment, scheduled_date="2030-06-15", type="cleaning"):
    response = client.post("/api/interventions/", headers=headers, json={
        "equipment_id": str(equipment.id),
        "scheduled_date": scheduled_date,
        "type": type,
    })
    assert response.status_code == 201, response.text
    return response.json()


def test_create_and_get_intervention(client, technician_headers, make_equipment):
    equipment = make_equipment(name="Desktop 7")
    created = _create(client, technician_headers, equipment)

    assert created["status"] == "planned"
    assert created["equipment_name"] == "Desktop 7"

    response = client.get(f"/api/interventions/{created['id']}", headers=technician_headers)
    assert response.status_code == 200
    assert response.json()["type"] == "cleaning"


def test_create_for_unknown_equipment_returns_404(client, admin_headers):
    response = client.post("/api/interventions/", headers=admin_headers, json={
        "equipment_id": "00000000-0000-0000-0000-000000000000",
        "scheduled_date": "2030-06-15",
        "type": "other",
    })
    assert response.status_code == 404


def test_viewer_cannot_create(client, viewer_headers, make_equipment):
    response = client.post("/api/interventions/", headers=viewer_headers, json={
        "equipment_id": str(make_equipment().id),
        "scheduled_date": "2030-06-15",
        "type": "other",
    })
    assert response.status_code == 403


def test_status_patch_follows_lifecycle(client, technician_headers, technician_user, make_equipment):
    created = _create(client, technician_headers, make_equipment())
    url = f"/api/interventions/{created['id']}/status"

    started = client.patch(url, headers=technician_headers, json={"status": "in_progress"})
    assert started.status_code == 200
    assert started.json()["start_time"] is not None
    assert started.json()["technician_id"] == str(technician_user.id)

    done = client.patch(url, headers=technician_headers, json={"status": "done", "observations": "Fans cleaned"})
    assert done.status_code == 200
    assert done.json()["end_time"] is not None
    assert done.json()["observations"] == "Fans cleaned"

    back = client.patch(url, headers=technician_headers, json={"status": "planned"})
    assert back.status_code == 409


def test_update_rejects_invalid_status_jump(client, admin_headers, make_equipment):
    created = _create(client, admin_headers, make_equipment())

    response = client.put(f"/api/interventions/{created['id']}", headers=admin_headers,
                          json={"status": "done", "notes": "skip ahead"})
    assert response.status_code == 409

    response = client.put(f"/api/interventions/{created['id']}", headers=admin_headers,
                          json={"notes": "bring thermal paste", "type": "replacement"})
    assert response.status_code == 200
    assert response.json()["notes"] == "bring thermal paste"
    assert response.json()["type"] == "replacement"


def test_list_filters(client, admin_headers, make_equipment):
    first = make_equipment(name="A")
    second = make_equipment(name="B")
    _create(client, admin_headers, first, scheduled_date="2030-01-10", type="cleaning")
    _create(client, admin_headers, second, scheduled_date="2030-02-10", type="update")

    by_equipment = client.get("/api/interventions/", headers=admin_headers,
                              params={"equipment_id": str(first.id)}).json()
    assert [i["equipment_name"] for i in by_equipment] == ["A"]

    by_type = client.get("/api/interventions/", headers=admin_headers, params={"type": "update"}).json()
    assert [i["equipment_name"] for i in by_type] == ["B"]

    by_range = client.get("/api/interventions/", headers=admin_headers,
                          params={"start_date": "2030-02-01", "end_date": "2030-02-28"}).json()
    assert len(by_range) == 1

    everything = client.get("/api/interventions/", headers=admin_headers).json()
    assert [i["scheduled_date"] for i in everything] == ["2030-02-10", "2030-01-10"]


def test_calendar_events(client, admin_headers, make_equipment):
    _create(client, admin_headers, make_equipment(name="Switch"), scheduled_date="2030-03-05")

    response = client.get("/api/interventions/calendar", headers=admin_headers,
                          params={"start": "2030-03-01", "end": "2030-03-31"})

    assert response.status_code == 200
    events = response.json()
    assert len(events) == 1
    assert events[0]["title"] == "Switch"
    assert events[0]["start"] == "2030-03-05"
    assert events[0]["backgroundColor"] == "#3788d8"
    assert events[0]["extendedProps"]["status"] == "planned"


def test_delete_requires_admin(client, admin_headers, technician_headers, make_equipment):
    created = _create(client, admin_headers, make_equipment())
    url = f"/api/interventions/{created['id']}"

    assert client.delete(url, headers=technician_headers).status_code == 403
    assert client.delete(url, headers=admin_headers).status_code == 200
    assert client.get(url, headers=admin_headers).status_code == 404


def test_summary_counts(client, admin_headers, make_equipment):
    _create(client, admin_headers, make_equipment(), scheduled_date=date.today().isoformat())

    summary = client.get("/api/interventions/stats/summary", headers=admin_headers).json()

    assert summary["total"] == 1
    assert summary["thisMonth"] == 1
    assert summary["completionRate"] == 0
