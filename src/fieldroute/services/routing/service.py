"""Route timing orchestration service."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ...data.business_repository import find_supplier, load_business_data
from ...persistence.filesystem import FileStorage
from ...persistence.routes import SavedRouteStore
from ...schemas.routing import (
    DailyRouteResponse,
    NotificationModel,
    RouteMetricsModel,
    RouteTotalsModel,
    SavedHomeStopModel,
    SavedJobStopModel,
    SavedPlaceStopModel,
    SavedRouteStopModel,
    SavedSupplierStopModel,
    StopModel,
    StopSequenceResponse,
)
from ..outputs.routing_formatter import format_clock, snapshot_to_csv, snapshot_to_json
from .builder import build_stops, to_saved_route
from .directions_client import DirectionsGateway, GoogleDirectionsClient
from .editor import NextAction, add_place_stop, add_supplier_stop, remove_stop
from .models import (
    HomeLabel,
    HomeStop,
    JobStop,
    Notification,
    PlaceStop,
    RouteSnapshot,
    SavedHomeStop,
    SavedJobStop,
    SavedPlaceStop,
    SavedRouteStop,
    SavedSupplierStop,
    Stop,
    SupplierStop,
)
from .orchestrator import RouteMetricsOrchestrator
from .propagation import service_duration_minutes

logger = logging.getLogger(__name__)


def parse_route_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD.") from exc


def saved_stop_from_model(model: SavedRouteStopModel) -> SavedRouteStop:
    if isinstance(model, SavedHomeStopModel):
        return SavedHomeStop(label=HomeLabel(model.label))
    if isinstance(model, SavedJobStopModel):
        return SavedJobStop(job_id=model.job_id, contact_id=model.contact_id)
    if isinstance(model, SavedSupplierStopModel):
        return SavedSupplierStop(supplier_id=model.supplier_id, id=model.id)
    if isinstance(model, SavedPlaceStopModel):
        return SavedPlaceStop(id=model.id, name=model.name, address=model.address)
    raise TypeError(f"Unsupported saved stop model: {model!r}")


def stop_to_model(stop: Stop) -> StopModel:
    fields = {
        "id": stop.id,
        "type": stop.kind.value,
        "name": stop.name,
        "address": stop.address,
        "service_duration_minutes": service_duration_minutes(stop),
    }
    if isinstance(stop, HomeStop):
        fields["label"] = stop.label.value
    elif isinstance(stop, JobStop):
        fields["job_id"] = stop.job_id
        fields["contact_id"] = stop.contact_id
        if stop.appointment_time is not None:
            fields["appointment_time"] = stop.appointment_time.strftime("%H:%M")
    elif isinstance(stop, SupplierStop):
        fields["supplier_id"] = stop.supplier_id
    elif not isinstance(stop, PlaceStop):
        raise TypeError(f"Unsupported stop: {stop!r}")
    return StopModel(**fields)


def snapshot_to_response(
    snapshot: RouteSnapshot,
    route_date: date,
    notifications: Sequence[Notification] = (),
    export_directory: Optional[str] = None,
) -> DailyRouteResponse:
    leave_by = snapshot.leave_by.strftime("%H:%M") if snapshot.leave_by else None
    return DailyRouteResponse(
        date=route_date.isoformat(),
        state=snapshot.state.value,
        stops=[stop_to_model(stop) for stop in snapshot.stops],
        metrics={
            stop_id: RouteMetricsModel(
                travel_distance_value=metrics.travel_distance_value,
                travel_distance_text=metrics.travel_distance_text,
                travel_time_value=metrics.travel_time_value,
                travel_time_text=metrics.travel_time_text,
                eta=metrics.eta_text,
                eta_display=format_clock(metrics.eta_text),
                idle_time_minutes=metrics.idle_time_minutes,
            )
            for stop_id, metrics in snapshot.metrics.items()
        },
        totals=RouteTotalsModel(
            distance_meters=snapshot.totals.distance_meters,
            time_seconds=snapshot.totals.time_seconds,
        ),
        leave_by=leave_by,
        leave_by_display=format_clock(leave_by) if leave_by else None,
        notifications=[
            NotificationModel(level=item.level, message=item.message, context=dict(item.context))
            for item in notifications
        ],
        export_directory=export_directory,
    )


def load_stops(route_date: date, store: SavedRouteStore | None = None) -> tuple[list[Stop], bool]:
    """Current stop sequence for the day and whether it came from a saved route."""
    data = load_business_data()
    saved_route = (store or SavedRouteStore()).get(route_date)
    stops = build_stops(route_date, data.contacts, data.suppliers, data.home_address, saved_route)
    return stops, saved_route is not None


def get_stop_sequence(route_date: date) -> StopSequenceResponse:
    stops, saved = load_stops(route_date)
    return StopSequenceResponse(date=route_date.isoformat(), saved=saved, stops=[stop_to_model(stop) for stop in stops])


async def compute_daily_route(
    route_date: date,
    *,
    gateway: DirectionsGateway | None = None,
    persist: bool = False,
    now: Optional[datetime] = None,
) -> DailyRouteResponse:
    stops, _ = load_stops(route_date)
    if len(stops) < 2:
        # No home address: nothing to route, so no provider is needed either.
        return snapshot_to_response(RouteSnapshot(generation=0, route_date=route_date, stops=tuple(stops)), route_date)

    notifications: list[Notification] = []
    orchestrator = RouteMetricsOrchestrator(gateway or GoogleDirectionsClient(), notify=notifications.append)
    snapshot = await orchestrator.recompute(stops, route_date, now=now)

    export_directory = None
    if persist and snapshot.stops:
        storage = FileStorage()
        run_dir = storage.make_run_directory(prefix=f"route_{route_date.isoformat()}")
        storage.write_json(run_dir / "summary.json", snapshot_to_json(snapshot))
        storage.write_csv(run_dir / "stops.csv", snapshot_to_csv(snapshot))
        export_directory = run_dir.name

    return snapshot_to_response(snapshot, route_date, notifications, export_directory)


def save_route(route_date: date, stops: Sequence[SavedRouteStopModel]) -> StopSequenceResponse:
    SavedRouteStore().save(route_date, [saved_stop_from_model(stop) for stop in stops])
    return get_stop_sequence(route_date)


def clear_route(route_date: date) -> bool:
    return SavedRouteStore().clear(route_date)


def _persist_edit(route_date: date, stops: Sequence[Stop], store: SavedRouteStore) -> StopSequenceResponse:
    store.save(route_date, to_saved_route(stops))
    return get_stop_sequence(route_date)


def insert_supplier_stop(route_date: date, supplier_id: str, index: int, next_action: NextAction) -> StopSequenceResponse:
    supplier = find_supplier(load_business_data(), supplier_id)
    if supplier is None:
        raise LookupError(f"Supplier '{supplier_id}' not found.")
    store = SavedRouteStore()
    stops, _ = load_stops(route_date, store)
    return _persist_edit(route_date, add_supplier_stop(stops, index, supplier, next_action), store)


def insert_place_stop(route_date: date, index: int, name: str, address: str) -> StopSequenceResponse:
    store = SavedRouteStore()
    stops, _ = load_stops(route_date, store)
    return _persist_edit(route_date, add_place_stop(stops, index, name, address), store)


def delete_stop(route_date: date, stop_id: str) -> StopSequenceResponse:
    store = SavedRouteStore()
    stops, _ = load_stops(route_date, store)
    return _persist_edit(route_date, remove_stop(stops, stop_id), store)
