"""Builds the ordered stop sequence for a day."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, time
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import APPOINTMENT_STATUSES, Contact, JobTicket, StatusHistoryEntry, Supplier
from .models import (
    HOME_END_ID,
    HOME_START_ID,
    HomeLabel,
    HomeStop,
    JobStop,
    PlaceStop,
    SavedHomeStop,
    SavedJobStop,
    SavedPlaceStop,
    SavedRouteStop,
    SavedSupplierStop,
    Stop,
    SupplierStop,
)

logger = logging.getLogger(__name__)

# Sort key for jobs without an appointment time, so they land after every timed job.
_UNTIMED_SORT_KEY = time(23, 59, 59, 999999)


@dataclass(slots=True)
class _JobForDate:
    contact: Contact
    ticket: JobTicket
    appointment_time: Optional[time]
    service_duration_minutes: int


def _entries_on(ticket: JobTicket, route_date: date) -> list[StatusHistoryEntry]:
    return [entry for entry in ticket.status_history if entry.local_date == route_date]


def appointment_time_for_date(ticket: JobTicket, route_date: date) -> Optional[time]:
    """Clock time of the most recent scheduling event on ``route_date``, if timed."""
    scheduling = sorted(
        (entry for entry in _entries_on(ticket, route_date) if entry.status in APPOINTMENT_STATUSES),
        key=lambda entry: entry.occurred_at,
        reverse=True,
    )
    if not scheduling or not scheduling[0].has_clock_time:
        return None
    return scheduling[0].occurred_at.time().replace(second=0, microsecond=0)


def service_duration_for_date(ticket: JobTicket, route_date: date, default_minutes: int | None = None) -> int:
    """Duration recorded on the job's status as of ``route_date``.

    The latest event on that day wins; without one, the latest event overall.
    """
    fallback = default_minutes if default_minutes is not None else settings.default_job_service_minutes
    candidates = _entries_on(ticket, route_date) or list(ticket.status_history)
    if not candidates:
        return fallback
    current = max(candidates, key=lambda entry: entry.occurred_at)
    return current.duration if current.duration is not None else fallback


def is_routable_on(ticket: JobTicket, route_date: date, routable_statuses: Sequence[str] | None = None) -> bool:
    """True when any routable status event lands on ``route_date``.

    History is checked rather than the current status so past days keep the
    jobs that were visited even after they moved on to Completed or Paid.
    """
    statuses = set(routable_statuses if routable_statuses is not None else settings.routable_statuses)
    return any(entry.status.value in statuses for entry in _entries_on(ticket, route_date))


def _jobs_for_date(contacts: Sequence[Contact], route_date: date) -> list[_JobForDate]:
    seen: set[str] = set()
    jobs: list[_JobForDate] = []
    for contact in contacts:
        for ticket in contact.job_tickets:
            if ticket.id in seen or not is_routable_on(ticket, route_date):
                continue
            seen.add(ticket.id)
            jobs.append(
                _JobForDate(
                    contact=contact,
                    ticket=ticket,
                    appointment_time=appointment_time_for_date(ticket, route_date),
                    service_duration_minutes=service_duration_for_date(ticket, route_date),
                )
            )
    jobs.sort(key=lambda job: job.appointment_time or _UNTIMED_SORT_KEY)
    return jobs


def _job_stop(stop_id: str, contact: Contact, ticket: JobTicket, route_date: date) -> JobStop:
    return JobStop(
        id=stop_id,
        address=ticket.job_location or contact.address,
        job_id=ticket.id,
        contact_id=contact.id,
        contact_name=contact.name,
        service_duration_minutes=service_duration_for_date(ticket, route_date),
        appointment_time=appointment_time_for_date(ticket, route_date),
    )


def _home_stop(label: HomeLabel, home_address: str) -> HomeStop:
    stop_id = HOME_START_ID if label is HomeLabel.START else HOME_END_ID
    return HomeStop(id=stop_id, address=home_address, label=label)


def _find_ticket(contacts: Sequence[Contact], contact_id: str, job_id: str) -> tuple[Contact, JobTicket] | None:
    for contact in contacts:
        if contact.id != contact_id:
            continue
        for ticket in contact.job_tickets:
            if ticket.id == job_id:
                return contact, ticket
    return None


def _with_unique_ids(stops: list[Stop]) -> list[Stop]:
    """Suffix repeated ids; metrics are keyed by stop id."""
    seen: set[str] = set()
    unique: list[Stop] = []
    for stop in stops:
        stop_id, suffix = stop.id, 1
        while stop_id in seen:
            suffix += 1
            stop_id = f"{stop.id}.{suffix}"
        seen.add(stop_id)
        unique.append(stop if stop_id == stop.id else replace(stop, id=stop_id))
    return unique


def reconstruct_stops(
    saved_route: Sequence[SavedRouteStop],
    route_date: date,
    contacts: Sequence[Contact],
    suppliers: Sequence[Supplier],
    home_address: str,
) -> list[Stop]:
    """Resolve a saved route against current records.

    Only order and selection come from the saved route. Entries whose job or
    supplier no longer exists are dropped.
    """
    supplier_lookup = {supplier.id: supplier for supplier in suppliers}
    stops: list[Stop] = []
    for index, saved in enumerate(saved_route):
        if isinstance(saved, SavedHomeStop):
            stops.append(_home_stop(saved.label, home_address))
        elif isinstance(saved, SavedJobStop):
            found = _find_ticket(contacts, saved.contact_id, saved.job_id)
            if found is None:
                logger.warning(
                    f"Dropping saved stop for {route_date}: job {saved.job_id} of contact {saved.contact_id} no longer exists"
                )
                continue
            contact, ticket = found
            stops.append(_job_stop(f"{ticket.id}-{index}", contact, ticket, route_date))
        elif isinstance(saved, SavedSupplierStop):
            supplier = supplier_lookup.get(saved.supplier_id)
            if supplier is None:
                logger.warning(f"Dropping saved stop for {route_date}: supplier {saved.supplier_id} no longer exists")
                continue
            stops.append(SupplierStop(id=saved.id, address=supplier.address, supplier_id=supplier.id, name=supplier.name))
        elif isinstance(saved, SavedPlaceStop):
            stops.append(PlaceStop(id=saved.id, address=saved.address, name=saved.name))
        else:
            raise TypeError(f"Unsupported saved stop: {saved!r}")
    return _with_unique_ids(stops)


def build_stops(
    route_date: date,
    contacts: Sequence[Contact],
    suppliers: Sequence[Supplier],
    home_address: str | None,
    saved_route: Sequence[SavedRouteStop] | None = None,
) -> list[Stop]:
    """Stop sequence for ``route_date``: the saved route if any, else the default day."""
    if not home_address:
        return []

    if saved_route is not None:
        return reconstruct_stops(saved_route, route_date, contacts, suppliers, home_address)

    jobs = _jobs_for_date(contacts, route_date)
    job_stops: list[Stop] = [
        _job_stop(f"{job.ticket.id}-{index}", job.contact, job.ticket, route_date)
        for index, job in enumerate(jobs)
    ]
    logger.info(f"Synthesized default route for {route_date} with {len(job_stops)} job stops")
    stops = [_home_stop(HomeLabel.START, home_address), *job_stops, _home_stop(HomeLabel.END, home_address)]
    return _with_unique_ids(stops)


def to_saved_route(stops: Sequence[Stop]) -> list[SavedRouteStop]:
    """Compact, persistence-safe projection of a stop sequence."""
    saved: list[SavedRouteStop] = []
    for stop in stops:
        if isinstance(stop, HomeStop):
            saved.append(SavedHomeStop(label=stop.label))
        elif isinstance(stop, JobStop):
            saved.append(SavedJobStop(job_id=stop.job_id, contact_id=stop.contact_id))
        elif isinstance(stop, SupplierStop):
            saved.append(SavedSupplierStop(supplier_id=stop.supplier_id, id=stop.id))
        elif isinstance(stop, PlaceStop):
            saved.append(SavedPlaceStop(id=stop.id, name=stop.name, address=stop.address))
        else:
            raise TypeError(f"Unsupported stop: {stop!r}")
    return saved
