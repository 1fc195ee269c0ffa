import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.auth.dependencies import get_current_active_user, get_db
from app.core.errors import DataSourceError
from app.crud import time_entries as crud_time_entries
from app.main import app
from app.models.auth import UserInToken
from app.models.projects import ProjectLocation
from app.models.time_entries import TimeEntry, TimeEntryLocation
from app.services import geocoding

from tests.conftest import DummyQuery, DummySupabase

EMPLOYEE_ID = uuid.UUID("144922e2-2ff2-40ab-b1bf-136b21385138")

PROJECT_ROW = {
    "id": "0b6f7c1e",
    "external_id": "2024-117",
    "address": "Unter den Linden 1",
    "zipcode": None,
    "plz": "10117",
    "city": "Berlin",
    "latitude": 52.5170,
    "longitude": 13.3889,
    "status": "active",
}


def entry_row(**overrides):
    row = {
        "id": 17,
        "employee": str(EMPLOYEE_ID),
        "start_time": "2026-10-16T08:00:00+00:00",
        "end_time": None,
        "duration": None,
        "task": "Work on project",
        "project_id": "0b6f7c1e",
        "project_external_id": "2024-117",
        "project_address": "Unter den Linden 1, 10117 Berlin",
        "location": {"latitude": 52.517, "longitude": 13.3889, "address": "Mitte"},
        "end_location": None,
    }
    row.update(overrides)
    return row


def call_args(query, name):
    return [call[1] for call in query.calls if call[0] == name]


@pytest.fixture
def project():
    return ProjectLocation(
        id="0b6f7c1e",
        external_id="2024-117",
        address="Unter den Linden 1",
        zipcode="10117",
        city="Berlin",
    )


# --- CRUD ---


@pytest.mark.parametrize(
    "start, end, hours",
    [
        (datetime(2026, 10, 16, 8, 0), datetime(2026, 10, 16, 16, 30), 8.5),
        (datetime(2026, 10, 16, 8, 0), datetime(2026, 10, 16, 16, 20), 8.33),
        (
            datetime(2026, 10, 16, 8, 0, tzinfo=timezone.utc),
            datetime(2026, 10, 16, 8, 0, 30, tzinfo=timezone.utc),
            0.01,
        ),
    ],
)
def test_duration_hours(start, end, hours):
    assert crud_time_entries.duration_hours(start, end) == hours


def test_duration_hours_mixes_naive_and_aware():
    start = datetime(2026, 10, 16, 8, 0)
    end = datetime(2026, 10, 16, 10, 0, tzinfo=timezone.utc)

    assert crud_time_entries.duration_hours(start, end) == 2.0


async def test_get_active_entry_queries_open_entries():
    query = DummyQuery(rows=[entry_row()])
    db = DummySupabase(query=query)

    entry = await crud_time_entries.get_active_entry(db, EMPLOYEE_ID)

    assert db.tables == ["time_entries"]
    assert ("eq", ("employee", str(EMPLOYEE_ID)), {}) in query.calls
    assert ("is_", ("end_time", "null"), {}) in query.calls
    assert ("order", ("start_time",), {"desc": True}) in query.calls
    assert ("limit", (1,), {}) in query.calls
    assert entry.id == "17"
    assert entry.is_active


async def test_get_active_entry_none_when_clocked_out():
    db = DummySupabase(query=DummyQuery(rows=[]))

    assert await crud_time_entries.get_active_entry(db, EMPLOYEE_ID) is None


async def test_clock_in_inserts_project_snapshot(project):
    query = DummyQuery(rows=[entry_row()])
    db = DummySupabase(query=query)
    now = datetime(2026, 10, 16, 8, 0, tzinfo=timezone.utc)
    location = TimeEntryLocation(latitude=52.517, longitude=13.3889, address="Mitte")

    entry = await crud_time_entries.clock_in(
        db, EMPLOYEE_ID, project, location=location, now=now
    )

    (body,) = call_args(query, "insert")[0]
    assert body == {
        "employee": str(EMPLOYEE_ID),
        "start_time": "2026-10-16T08:00:00+00:00",
        "task": "Work on project",
        "project_id": "0b6f7c1e",
        "project_external_id": "2024-117",
        "project_address": "Unter den Linden 1, 10117 Berlin",
        "location": {"latitude": 52.517, "longitude": 13.3889, "address": "Mitte"},
    }
    assert entry.project_id == "0b6f7c1e"


async def test_clock_in_keeps_given_task_and_missing_location(project):
    query = DummyQuery(rows=[entry_row(task="Dachrinne")])
    db = DummySupabase(query=query)

    await crud_time_entries.clock_in(db, EMPLOYEE_ID, project, task="Dachrinne")

    (body,) = call_args(query, "insert")[0]
    assert body["task"] == "Dachrinne"
    assert body["location"] is None


async def test_clock_in_without_returned_row_fails(project):
    db = DummySupabase(query=DummyQuery(rows=[]))

    with pytest.raises(DataSourceError):
        await crud_time_entries.clock_in(db, EMPLOYEE_ID, project)


async def test_clock_out_records_duration_and_end_location():
    closed = entry_row(end_time="2026-10-16T16:30:00+00:00", duration=8.5)
    query = DummyQuery(rows=[closed])
    db = DummySupabase(query=query)
    entry = TimeEntry(**entry_row())
    now = datetime(2026, 10, 16, 16, 30, tzinfo=timezone.utc)
    location = TimeEntryLocation(latitude=52.52, longitude=13.405, address="Alex")

    result = await crud_time_entries.clock_out(db, entry, location=location, now=now)

    (body,) = call_args(query, "update")[0]
    assert body == {
        "end_time": "2026-10-16T16:30:00+00:00",
        "duration": 8.5,
        "end_location": {"latitude": 52.52, "longitude": 13.405, "address": "Alex"},
    }
    assert ("eq", ("id", "17"), {}) in query.calls
    assert result.duration == 8.5
    assert not result.is_active


async def test_clock_out_failure_raises():
    db = DummySupabase(query=DummyQuery(error=ConnectionError("offline")))

    with pytest.raises(DataSourceError, match="offline"):
        await crud_time_entries.clock_out(db, TimeEntry(**entry_row()))


# --- API ---


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(geocoding, "geocoder", None)
    user = UserInToken(id=EMPLOYEE_ID, email="worker@fieldops.de")
    app.dependency_overrides[get_current_active_user] = lambda: user
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_db(**tables):
    db = DummySupabase(tables=tables)
    app.dependency_overrides[get_db] = lambda: db
    return db


def test_active_entry_endpoint(client):
    use_db(time_entries=DummyQuery(rows=[entry_row()]))

    response = client.get("/api/v1/time-entries/active")

    assert response.status_code == 200
    assert response.json()["id"] == "17"
    assert response.json()["end_time"] is None


def test_active_entry_endpoint_when_clocked_out(client):
    use_db(time_entries=DummyQuery(rows=[]))

    response = client.get("/api/v1/time-entries/active")

    assert response.status_code == 200
    assert response.json() is None


def test_clock_in_labels_location_and_creates_entry(client):
    entries = DummyQuery(results=[[], [entry_row()]])
    use_db(time_entries=entries, projects=DummyQuery(rows=[PROJECT_ROW]))

    response = client.post(
        "/api/v1/time-entries/clock-in",
        json={
            "project_id": "0b6f7c1e",
            "location": {"latitude": 52.517, "longitude": 13.3889},
        },
    )

    assert response.status_code == 201
    assert response.json()["project_external_id"] == "2024-117"
    (body,) = call_args(entries, "insert")[0]
    assert body["location"]["address"] == "52.517000, 13.388900"
    assert body["project_address"] == "Unter den Linden 1, 10117 Berlin"


def test_clock_in_while_clocked_in_conflicts(client):
    entries = DummyQuery(rows=[entry_row()])
    use_db(time_entries=entries, projects=DummyQuery(rows=[PROJECT_ROW]))

    response = client.post(
        "/api/v1/time-entries/clock-in", json={"project_id": "0b6f7c1e"}
    )

    assert response.status_code == 409
    assert call_args(entries, "insert") == []


def test_clock_in_unknown_project(client):
    use_db(time_entries=DummyQuery(rows=[]), projects=DummyQuery(rows=[]))

    response = client.post("/api/v1/time-entries/clock-in", json={"project_id": "nope"})

    assert response.status_code == 404


def test_clock_in_requires_project_id(client):
    use_db()

    response = client.post("/api/v1/time-entries/clock-in", json={})

    assert response.status_code == 422


def test_clock_out_closes_active_entry(client):
    closed = entry_row(end_time="2026-10-16T16:30:00+00:00", duration=8.5)
    entries = DummyQuery(results=[[entry_row()], [closed]])
    use_db(time_entries=entries)

    response = client.post(
        "/api/v1/time-entries/clock-out",
        json={"location": {"latitude": 52.52, "longitude": 13.405, "address": "Alex"}},
    )

    assert response.status_code == 200
    assert response.json()["duration"] == 8.5
    (body,) = call_args(entries, "update")[0]
    assert body["end_location"]["address"] == "Alex"


def test_clock_out_without_active_entry(client):
    use_db(time_entries=DummyQuery(rows=[]))

    response = client.post("/api/v1/time-entries/clock-out", json={})

    assert response.status_code == 404


def test_time_tracking_store_failure_is_502(client):
    use_db(time_entries=DummyQuery(error=ConnectionError("offline")))

    response = client.post("/api/v1/time-entries/clock-out", json={})

    assert response.status_code == 502
    assert "offline" in response.json()["detail"]
