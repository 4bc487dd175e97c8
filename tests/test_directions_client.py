import asyncio
from datetime import date, datetime

import httpx
import pytest

from src.fieldroute.services.routing.directions_client import DirectionsError, GoogleDirectionsClient
from src.fieldroute.services.routing.models import HomeLabel, HomeStop, OrchestratorState, PlaceStop
from src.fieldroute.services.routing.orchestrator import RouteMetricsOrchestrator


def _leg(meters: int, seconds: int, traffic_seconds: int | None = None) -> dict:
    leg = {
        "distance": {"value": meters, "text": f"{meters / 1609:.1f} mi"},
        "duration": {"value": seconds, "text": f"{seconds // 60} mins"},
    }
    if traffic_seconds is not None:
        leg["duration_in_traffic"] = {"value": traffic_seconds, "text": f"{traffic_seconds // 60} mins"}
    return leg


def _client(handler, **kwargs) -> GoogleDirectionsClient:
    return GoogleDirectionsClient(
        api_key="test-key",
        base_url="https://directions.test/json",
        backoff_seconds=0.0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_route_parses_legs_and_sends_waypoints():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "OK", "routes": [{"legs": [_leg(8000, 900, 1100), _leg(4000, 600)]}]})

    departure = datetime(2030, 1, 2, 8, 30)
    legs = asyncio.run(_client(handler).route(["Home", "Job", "Home"], departure_time=departure))

    assert [leg.duration_seconds for leg in legs] == [1100, 600]
    assert [leg.distance_meters for leg in legs] == [8000, 4000]
    params = seen[0].url.params
    assert params["origin"] == "Home"
    assert params["destination"] == "Home"
    assert params["waypoints"] == "Job"
    assert params["mode"] == "driving"
    assert params["departure_time"] == str(int(departure.timestamp()))
    assert params["traffic_model"] == "best_guess"


def test_route_without_departure_omits_traffic_params():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "OK", "routes": [{"legs": [_leg(1000, 120)]}]})

    asyncio.run(_client(handler).route(["A", "B"]))

    assert "departure_time" not in seen[0].url.params
    assert "waypoints" not in seen[0].url.params


def test_non_ok_status_raises_without_retry():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"status": "ZERO_RESULTS", "routes": []})

    with pytest.raises(DirectionsError) as excinfo:
        asyncio.run(_client(handler, max_retries=3).route(["A", "B"]))

    assert excinfo.value.status == "ZERO_RESULTS"
    assert excinfo.value.addresses == ("A", "B")
    assert len(calls) == 1


def test_transient_status_is_retried():
    responses = iter(
        [
            {"status": "OVER_QUERY_LIMIT"},
            {"status": "OK", "routes": [{"legs": [_leg(1000, 120)]}]},
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=next(responses))

    legs = asyncio.run(_client(handler, max_retries=1).route(["A", "B"]))

    assert legs[0].duration_seconds == 120


def test_network_errors_exhaust_retries():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DirectionsError) as excinfo:
        asyncio.run(_client(handler, max_retries=2).route(["A", "B"]))

    assert excinfo.value.status == "NETWORK_ERROR"
    assert len(calls) == 3


def test_leg_count_mismatch_is_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "OK", "routes": [{"legs": [_leg(1000, 120)]}]})

    with pytest.raises(DirectionsError):
        asyncio.run(_client(handler).route(["A", "B", "C"]))


def test_client_requires_api_key(monkeypatch):
    from src.fieldroute.services.routing import directions_client

    monkeypatch.setattr(directions_client.settings, "directions_api_key", None)
    with pytest.raises(ValueError):
        GoogleDirectionsClient()


def test_dropped_connection_is_a_directions_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.RemoteProtocolError("Server disconnected without sending a response.", request=request)

    with pytest.raises(DirectionsError) as excinfo:
        asyncio.run(_client(handler, max_retries=1).route(["A", "B"]))

    assert excinfo.value.status == "NETWORK_ERROR"
    assert len(calls) == 2


def test_non_transport_http_error_is_a_directions_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.DecodingError("bad gzip stream", request=request)

    with pytest.raises(DirectionsError) as excinfo:
        asyncio.run(_client(handler, max_retries=3).route(["A", "B"]))

    assert excinfo.value.status == "NETWORK_ERROR"


def test_orchestrator_falls_back_when_provider_drops_connections():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.RemoteProtocolError("Server disconnected without sending a response.", request=request)

    notes = []
    orchestrator = RouteMetricsOrchestrator(_client(handler, max_retries=0), notify=notes.append)
    stops = [
        HomeStop(id="start", address="A", label=HomeLabel.START),
        PlaceStop(id="place-1", address="B", name="Bank"),
        HomeStop(id="end", address="A", label=HomeLabel.END),
    ]

    snapshot = asyncio.run(orchestrator.recompute(stops, date(2030, 1, 2), now=datetime(2030, 1, 1, 20, 0)))

    assert snapshot.state is OrchestratorState.FAILED
    assert snapshot.metrics == {}
    assert [note.level for note in notes] == ["info", "error"]
    assert notes[-1].context["leg_index"] == 0
