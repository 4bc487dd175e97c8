from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.fieldroute.data.business_repository import parse_business_data
from src.fieldroute.main import create_app
from src.fieldroute.services.routing.models import Leg

BUSINESS = {
    "homeAddress": "1 Home St",
    "contacts": [
        {
            "id": "C1",
            "name": "Pat Jones",
            "address": "2 Job Rd",
            "jobTickets": [
                {
                    "id": "J1",
                    "statusHistory": [
                        {"id": "h1", "status": "Job Created", "timestamp": "2030-05-01T10:00:00"},
                        {"id": "h2", "status": "Scheduled", "timestamp": "2030-05-06T09:00:00", "duration": 45},
                    ],
                }
            ],
        }
    ],
    "suppliers": [{"id": "S1", "name": "Door Parts Inc", "address": "9 Supply Rd"}],
}

MINUTES = {
    ("1 Home St", "2 Job Rd"): 20,
    ("2 Job Rd", "1 Home St"): 25,
    ("2 Job Rd", "9 Supply Rd"): 10,
    ("9 Supply Rd", "2 Job Rd"): 10,
}


class DummyDirections:
    async def route(self, addresses, departure_time=None):
        return [
            Leg(
                distance_meters=int(MINUTES[(origin, destination)] * 800),
                distance_text="",
                duration_seconds=int(MINUTES[(origin, destination)] * 60),
                duration_text=f"{MINUTES[(origin, destination)]} mins",
            )
            for origin, destination in zip(addresses, addresses[1:])
        ]


@pytest.fixture
def api_client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    from src.fieldroute.persistence import routes as routes_persistence
    from src.fieldroute.persistence.filesystem import FileStorage
    from src.fieldroute.services.routing import service as routing_service

    data = parse_business_data(BUSINESS)
    monkeypatch.setattr(routing_service, "load_business_data", lambda: data)
    monkeypatch.setattr(routing_service, "GoogleDirectionsClient", lambda: DummyDirections())
    monkeypatch.setattr(routing_service, "FileStorage", lambda: FileStorage(root=tmp_path))
    monkeypatch.setattr(routes_persistence, "FileStorage", lambda: FileStorage(root=tmp_path))
    monkeypatch.setattr(routes_persistence, "get_supabase_client", lambda: None)

    return TestClient(create_app())


def test_health(api_client: TestClient):
    assert api_client.get("/api/health").json() == {"status": "ok"}


def test_daily_route_metrics(api_client: TestClient, tmp_path: Path):
    response = api_client.get("/api/routes/2030-05-06", params={"persist": "true"})

    assert response.status_code == 200
    body = response.json()
    assert [stop["id"] for stop in body["stops"]] == ["start", "J1-0", "end"]
    assert body["state"] == "success"
    assert body["leave_by"] == "08:40"
    assert body["leave_by_display"] == "8:40 AM"
    assert body["metrics"]["J1-0"]["eta"] == "09:00"
    assert body["metrics"]["J1-0"]["idle_time_minutes"] == 0
    assert body["metrics"]["end"]["eta"] == "10:10"
    assert body["metrics"]["end"]["eta_display"] == "10:10 AM"
    assert body["totals"]["time_seconds"] == 45 * 60
    assert body["notifications"] == []
    assert (tmp_path / "outputs" / body["export_directory"] / "stops.csv").exists()


def test_day_without_jobs_is_home_to_home(api_client: TestClient):
    body = api_client.get("/api/routes/2030-05-07/stops").json()

    assert body["saved"] is False
    assert [stop["id"] for stop in body["stops"]] == ["start", "end"]


def test_supplier_run_edit_persists_and_recomputes(api_client: TestClient):
    response = api_client.post(
        "/api/routes/2030-05-06/stops/supplier",
        json={"supplier_id": "S1", "index": 2, "next_action": "return"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["saved"] is True
    assert [stop["type"] for stop in body["stops"]] == ["home", "job", "supplier", "job", "home"]

    route = api_client.get("/api/routes/2030-05-06").json()
    supplier_id = route["stops"][2]["id"]
    # Job ends 09:45, ten minutes to the supplier.
    assert route["metrics"][supplier_id]["eta"] == "09:55"

    removed = api_client.delete(f"/api/routes/2030-05-06/stops/{supplier_id}").json()
    assert [stop["type"] for stop in removed["stops"]] == ["home", "job", "home"]

    cleared = api_client.delete("/api/routes/2030-05-06/saved").json()
    assert cleared["removed"] is True
    assert api_client.get("/api/routes/2030-05-06/stops").json()["saved"] is False


def test_save_route_drops_unknown_jobs(api_client: TestClient):
    response = api_client.put(
        "/api/routes/2030-05-06/saved",
        json={
            "stops": [
                {"type": "home", "label": "Start"},
                {"type": "job", "jobId": "J-deleted", "contactId": "C1"},
                {"type": "place", "id": "place-1", "name": "Bank", "address": "5 Bank St"},
                {"type": "job", "jobId": "J1", "contactId": "C1"},
                {"type": "home", "label": "End"},
            ]
        },
    )

    assert response.status_code == 200
    assert [stop["id"] for stop in response.json()["stops"]] == ["start", "place-1", "J1-3", "end"]


def test_bad_requests(api_client: TestClient):
    assert api_client.get("/api/routes/not-a-date").status_code == 400
    assert api_client.delete("/api/routes/2030-05-06/stops/start").status_code == 400
    assert api_client.delete("/api/routes/2030-05-06/stops/nope").status_code == 404
    missing_supplier = api_client.post(
        "/api/routes/2030-05-06/stops/supplier",
        json={"supplier_id": "S-missing", "index": 1},
    )
    assert missing_supplier.status_code == 404


def test_no_home_address_returns_empty_route_without_directions_key(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from src.fieldroute.services.routing import service as routing_service

    def unconfigured_client():
        raise ValueError("Directions API key is not configured.")

    monkeypatch.setattr(routing_service, "load_business_data", lambda: parse_business_data({}))
    monkeypatch.setattr(routing_service, "GoogleDirectionsClient", unconfigured_client)

    response = api_client.get("/api/routes/2030-01-01")

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "idle"
    assert body["stops"] == []
    assert body["metrics"] == {}
    assert body["leave_by"] is None
