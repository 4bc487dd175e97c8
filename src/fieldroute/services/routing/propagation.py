"""Forward time propagation over resolved legs."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Sequence

from ...config import settings
from .models import HomeStop, JobStop, Leg, PlaceStop, RouteMetrics, RouteTotals, Stop, SupplierStop


def service_duration_minutes(stop: Stop) -> int:
    """Time spent at a stop before driving on."""
    if isinstance(stop, JobStop):
        return stop.service_duration_minutes
    if isinstance(stop, SupplierStop):
        return settings.supplier_service_minutes
    if isinstance(stop, PlaceStop):
        return settings.place_service_minutes
    if isinstance(stop, HomeStop):
        return 0
    raise TypeError(f"Unsupported stop: {stop!r}")


def default_departure(route_date: date) -> datetime:
    return datetime.combine(route_date, settings.default_departure_time)


def reconcile_arrival(stop: Stop, arrival: datetime, route_date: date) -> tuple[datetime, int]:
    """ETA and idle minutes at ``stop`` for a raw ``arrival``.

    Early arrival at a fixed appointment waits for it; late arrival is kept as is.
    """
    if isinstance(stop, JobStop) and stop.appointment_time is not None:
        scheduled = datetime.combine(route_date, stop.appointment_time)
        if arrival < scheduled:
            idle = math.ceil((scheduled - arrival).total_seconds() / 60)
            return scheduled, idle
    return arrival, 0


@dataclass
class RouteTimeline:
    """Running clock for one walk over a stop sequence.

    Both the batched and the per-leg fetch feed legs through :meth:`advance`
    so idle time and appointment handling never depend on the fetch tier.
    """

    stops: Sequence[Stop]
    route_date: date
    current_time: datetime
    metrics: dict[str, RouteMetrics] = field(default_factory=dict)
    totals: RouteTotals = field(default_factory=RouteTotals)
    legs_done: int = 0

    @property
    def finished(self) -> bool:
        return self.legs_done >= len(self.stops) - 1

    @property
    def next_pair(self) -> tuple[Stop, Stop]:
        return self.stops[self.legs_done], self.stops[self.legs_done + 1]

    def advance(self, leg: Leg) -> RouteMetrics:
        if self.finished:
            raise ValueError("All legs of this route have already been applied.")
        destination = self.stops[self.legs_done + 1]
        arrival = self.current_time + timedelta(seconds=leg.duration_seconds)
        eta, idle = reconcile_arrival(destination, arrival, self.route_date)

        result = RouteMetrics(
            travel_distance_value=leg.distance_meters,
            travel_distance_text=leg.distance_text,
            travel_time_value=leg.duration_seconds,
            travel_time_text=leg.duration_text,
            eta=eta,
            idle_time_minutes=idle,
        )
        self.metrics[destination.id] = result
        self.totals = self.totals.add(leg)
        self.current_time = eta + timedelta(minutes=service_duration_minutes(destination))
        self.legs_done += 1
        return result


@dataclass(frozen=True)
class PropagationResult:
    metrics: dict[str, RouteMetrics]
    totals: RouteTotals
    end_time: datetime


def propagate(stops: Sequence[Stop], route_date: date, start_time: datetime, legs: Sequence[Leg]) -> PropagationResult:
    """Fold precomputed legs into per-stop metrics, starting at ``start_time``.

    ``legs`` may be shorter than the route; only those legs are applied.
    """
    if len(legs) > max(len(stops) - 1, 0):
        raise ValueError(f"{len(legs)} legs supplied for a route of {len(stops)} stops.")
    timeline = RouteTimeline(stops=stops, route_date=route_date, current_time=start_time)
    for leg in legs:
        timeline.advance(leg)
    return PropagationResult(metrics=dict(timeline.metrics), totals=timeline.totals, end_time=timeline.current_time)
