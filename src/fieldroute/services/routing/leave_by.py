"""Latest departure from home that still makes the first appointment."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from .directions_client import DirectionsGateway
from .models import JobStop, PlaceStop, Stop, SupplierStop
from .propagation import service_duration_minutes

logger = logging.getLogger(__name__)


def first_appointment_index(stops: Sequence[Stop]) -> Optional[int]:
    for index, stop in enumerate(stops):
        if isinstance(stop, JobStop) and stop.appointment_time is not None:
            return index
    return None


async def compute_leave_by(
    stops: Sequence[Stop],
    route_date: date,
    gateway: DirectionsGateway,
    now: datetime,
) -> Optional[datetime]:
    """Leave-by instant for the first timed job, or ``None`` when there is none.

    The legs up to that job are queried as departing ``now`` and only their
    durations are used. Service time for every supplier or place stop strictly
    between home and the job is added on top. Gateway errors propagate to the caller.
    """
    target_index = first_appointment_index(stops)
    if target_index is None or target_index == 0:
        return None

    target = stops[target_index]
    if not isinstance(target, JobStop) or target.appointment_time is None:
        raise TypeError(f"Stop {target.id} has no fixed appointment.")
    leading = stops[: target_index + 1]

    legs = await gateway.route([stop.address for stop in leading], departure_time=now)
    travel_seconds = sum(leg.duration_seconds for leg in legs)
    # Only errands get an allowance; jobs before the first appointment are not budgeted.
    service_seconds = sum(
        service_duration_minutes(stop) * 60
        for stop in leading[1:-1]
        if isinstance(stop, (SupplierStop, PlaceStop))
    )

    scheduled = datetime.combine(route_date, target.appointment_time)
    leave_by = scheduled - timedelta(seconds=travel_seconds + service_seconds)
    logger.info(
        f"Leave-by for {route_date} is {leave_by:%H:%M} "
        f"({travel_seconds}s driving, {service_seconds}s on errands before {target.contact_name})"
    )
    return leave_by
