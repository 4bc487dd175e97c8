"""Recomputes route metrics for a stop sequence with batched/per-leg fallback."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Optional, Sequence

from .directions_client import DirectionsError, DirectionsGateway
from .leave_by import compute_leave_by
from .models import Notification, OrchestratorState, RouteSnapshot, Stop
from .propagation import RouteTimeline, default_departure, propagate

logger = logging.getLogger(__name__)

Notifier = Callable[[Notification], None]


def _log_notification(notification: Notification) -> None:
    level = logging.ERROR if notification.level == "error" else logging.INFO
    logger.log(level, f"Notification: {notification.message}")


class RouteMetricsOrchestrator:
    """Owns the published :class:`RouteSnapshot` for one caller.

    Every call to :meth:`recompute` starts a new generation. Work from an older
    generation keeps running once its provider call is in flight, but it can
    no longer publish or notify.
    """

    def __init__(
        self,
        gateway: DirectionsGateway,
        *,
        notify: Notifier | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.gateway = gateway
        self._notify = notify or _log_notification
        self._clock = clock
        self._generation = 0
        self._snapshot = RouteSnapshot(generation=0, route_date=None, stops=())

    @property
    def snapshot(self) -> RouteSnapshot:
        return self._snapshot

    @property
    def state(self) -> OrchestratorState:
        return self._snapshot.state

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _publish(self, generation: int, snapshot: RouteSnapshot) -> bool:
        if not self._is_current(generation):
            logger.debug(f"Discarding stale result from generation {generation} (current {self._generation})")
            return False
        self._snapshot = snapshot
        return True

    def _set_state(self, generation: int, state: OrchestratorState, **changes: Any) -> bool:
        return self._publish(generation, replace(self._snapshot, state=state, **changes))

    def _emit(self, generation: int, notification: Notification) -> None:
        if self._is_current(generation):
            self._notify(notification)

    async def recompute(self, stops: Sequence[Stop], route_date: date, now: Optional[datetime] = None) -> RouteSnapshot:
        """Run one full cycle for ``(stops, route_date)`` and return the snapshot.

        The returned snapshot is whatever is current when the cycle ends, which
        belongs to a newer generation if this one went stale.
        """
        self._generation += 1
        generation = self._generation
        stops = tuple(stops)
        now = now or self._clock()

        self._publish(generation, RouteSnapshot(generation=generation, route_date=route_date, stops=stops))
        if len(stops) < 2:
            return self._snapshot

        self._set_state(generation, OrchestratorState.RESOLVING)
        leave_by: Optional[datetime] = None
        try:
            leave_by = await compute_leave_by(stops, route_date, self.gateway, now)
        except DirectionsError as exc:
            logger.warning(f"Leave-by calculation failed for {route_date}: {exc}")
            self._emit(generation, Notification("error", "Could not calculate leave-by time.", {"status": exc.status}))
        if not self._set_state(generation, OrchestratorState.FETCHING_PRIMARY, leave_by=leave_by):
            return self._snapshot

        start_time = leave_by or default_departure(route_date)
        departure = start_time if start_time > now else None
        addresses = [stop.address for stop in stops]
        try:
            legs = await self.gateway.route(addresses, departure_time=departure)
            if len(legs) != len(stops) - 1:
                raise DirectionsError(f"Expected {len(stops) - 1} legs, got {len(legs)}.", addresses=addresses)
            result = propagate(stops, route_date, start_time, legs)
        except DirectionsError as exc:
            logger.warning(f"Batched directions request failed for {route_date}: {exc}")
            self._emit(
                generation,
                Notification("info", "Couldn't get full route traffic data. Calculating leg-by-leg.", {"status": exc.status}),
            )
        else:
            self._set_state(
                generation,
                OrchestratorState.SUCCESS,
                metrics=result.metrics,
                totals=result.totals,
            )
            logger.info(f"Computed {len(legs)} legs for {route_date} in one request")
            return self._snapshot

        if not self._set_state(generation, OrchestratorState.FETCHING_FALLBACK):
            return self._snapshot
        return await self._fetch_per_leg(generation, stops, route_date, start_time, now)

    async def _fetch_per_leg(
        self,
        generation: int,
        stops: tuple[Stop, ...],
        route_date: date,
        start_time: datetime,
        now: datetime,
    ) -> RouteSnapshot:
        timeline = RouteTimeline(stops=stops, route_date=route_date, current_time=start_time)
        while not timeline.finished:
            if not self._is_current(generation):
                return self._snapshot
            origin, destination = timeline.next_pair
            departure = timeline.current_time if timeline.current_time > now else None
            pair = [origin.address, destination.address]
            try:
                legs = await self.gateway.route(pair, departure_time=departure)
                if len(legs) != 1:
                    raise DirectionsError(f"Expected one leg, got {len(legs)}.", addresses=pair)
            except DirectionsError as exc:
                logger.error(
                    f"Leg {timeline.legs_done} ({origin.address} -> {destination.address}) failed for {route_date}: {exc}"
                )
                self._emit(
                    generation,
                    Notification(
                        "error",
                        f'Could not calculate route from "{origin.address}" to "{destination.address}"',
                        {
                            "leg_index": timeline.legs_done,
                            "origin": origin.address,
                            "destination": destination.address,
                            "status": exc.status,
                        },
                    ),
                )
                # Legs computed so far are still published.
                self._set_state(
                    generation,
                    OrchestratorState.FAILED,
                    metrics=dict(timeline.metrics),
                    totals=timeline.totals,
                )
                return self._snapshot
            timeline.advance(legs[0])

        self._set_state(generation, OrchestratorState.SUCCESS, metrics=dict(timeline.metrics), totals=timeline.totals)
        logger.info(f"Computed {timeline.legs_done} legs for {route_date} leg-by-leg")
        return self._snapshot
