"""Edits to a day's stop sequence (supplier runs and ad-hoc places)."""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Literal, Sequence

from ...models.domain import Supplier
from .models import JobStop, PlaceStop, Stop, SupplierStop

NextAction = Literal["return", "continue"]


def _new_token() -> str:
    return uuid.uuid4().hex[:12]


def _check_insert_index(stops: Sequence[Stop], index: int) -> None:
    # Stops go between the two home stops.
    if not 1 <= index <= len(stops) - 1:
        raise ValueError(f"Insert position {index} is outside the route (1..{len(stops) - 1}).")


def add_supplier_stop(
    stops: Sequence[Stop],
    index: int,
    supplier: Supplier,
    next_action: NextAction = "continue",
) -> list[Stop]:
    """Insert a supplier run before ``index``.

    With ``next_action="return"`` and a job right before the insert position,
    a second visit to that job follows the supplier.
    """
    _check_insert_index(stops, index)
    supplier_stop = SupplierStop(
        id=f"supplier-{_new_token()}",
        address=supplier.address,
        supplier_id=supplier.id,
        name=supplier.name,
    )
    inserted: list[Stop] = [supplier_stop]
    previous = stops[index - 1]
    if next_action == "return" and isinstance(previous, JobStop):
        inserted.append(replace(previous, id=f"{previous.job_id}-{_new_token()}"))

    new_stops = list(stops)
    new_stops[index:index] = inserted
    return new_stops


def add_place_stop(stops: Sequence[Stop], index: int, name: str, address: str) -> list[Stop]:
    _check_insert_index(stops, index)
    if not address.strip():
        raise ValueError("A place stop needs an address.")
    new_stops = list(stops)
    new_stops.insert(index, PlaceStop(id=f"place-{_new_token()}", address=address.strip(), name=name.strip() or address.strip()))
    return new_stops


def remove_stop(stops: Sequence[Stop], stop_id: str) -> list[Stop]:
    """Remove a supplier or place stop.

    A supplier run sandwiched between two visits of the same job takes the
    return visit with it.
    """
    position = next((i for i, stop in enumerate(stops) if stop.id == stop_id), None)
    if position is None:
        raise LookupError(f"Stop '{stop_id}' is not on this route.")

    target = stops[position]
    if not isinstance(target, (SupplierStop, PlaceStop)):
        raise ValueError(f"Only supplier and place stops can be removed, not {target.kind.value} stops.")

    new_stops = list(stops)
    count = 1
    if isinstance(target, SupplierStop) and 0 < position < len(stops) - 1:
        before, after = stops[position - 1], stops[position + 1]
        if isinstance(before, JobStop) and isinstance(after, JobStop) and before.job_id == after.job_id:
            count = 2
    del new_stops[position:position + count]
    return new_stops
