"""Serializers for route timing outputs."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Optional

from ..routing.models import JobStop, RouteSnapshot


def format_clock(value: str | datetime | None) -> str:
    """``"13:05"`` (or a datetime) as ``"1:05 PM"``."""
    if value is None or value == "":
        return ""
    if isinstance(value, datetime):
        value = value.strftime("%H:%M")
    hours_text, minutes = value.split(":")[:2]
    hours = int(hours_text)
    suffix = "PM" if hours >= 12 else "AM"
    return f"{hours % 12 or 12}:{minutes} {suffix}"


def _clock(value: Optional[datetime]) -> Optional[str]:
    return value.strftime("%H:%M") if value else None


def snapshot_to_json(snapshot: RouteSnapshot) -> dict:
    stops = []
    for sequence, stop in enumerate(snapshot.stops):
        metrics = snapshot.metrics.get(stop.id)
        stops.append(
            {
                "sequence": sequence,
                "id": stop.id,
                "type": stop.kind.value,
                "name": stop.name,
                "address": stop.address,
                "eta": metrics.eta_text if metrics else None,
                "idle_time_minutes": metrics.idle_time_minutes if metrics else None,
                "travel_distance_meters": metrics.travel_distance_value if metrics else None,
                "travel_time_seconds": metrics.travel_time_value if metrics else None,
            }
        )
    return {
        "date": snapshot.route_date.isoformat() if snapshot.route_date else None,
        "state": snapshot.state.value,
        "leave_by": _clock(snapshot.leave_by),
        "totals": {
            "distance_meters": snapshot.totals.distance_meters,
            "time_seconds": snapshot.totals.time_seconds,
        },
        "stops": stops,
    }


def snapshot_to_csv(snapshot: RouteSnapshot) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "date",
        "sequence",
        "stop_id",
        "type",
        "name",
        "address",
        "eta",
        "idle_time_minutes",
        "travel_distance_meters",
        "travel_time_seconds",
        "appointment_time",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    route_date = snapshot.route_date.isoformat() if snapshot.route_date else ""
    for sequence, stop in enumerate(snapshot.stops):
        metrics = snapshot.metrics.get(stop.id)
        appointment = stop.appointment_time if isinstance(stop, JobStop) else None
        writer.writerow(
            {
                "date": route_date,
                "sequence": sequence,
                "stop_id": stop.id,
                "type": stop.kind.value,
                "name": stop.name,
                "address": stop.address,
                "eta": metrics.eta_text if metrics else "",
                "idle_time_minutes": metrics.idle_time_minutes if metrics else "",
                "travel_distance_meters": metrics.travel_distance_value if metrics else "",
                "travel_time_seconds": metrics.travel_time_value if metrics else "",
                "appointment_time": appointment.strftime("%H:%M") if appointment else "",
            }
        )
    return buffer.getvalue()
