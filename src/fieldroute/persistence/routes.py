"""Saved route persistence keyed by date, database first with file fallback."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Any, Sequence

from ..db.supabase import get_supabase_client
from ..services.routing.models import (
    HomeLabel,
    SavedHomeStop,
    SavedJobStop,
    SavedPlaceStop,
    SavedRouteStop,
    SavedSupplierStop,
    StopKind,
)
from .filesystem import FileStorage

logger = logging.getLogger(__name__)

_TABLE = "saved_routes"


def saved_stop_to_dict(stop: SavedRouteStop) -> dict[str, Any]:
    if isinstance(stop, SavedHomeStop):
        return {"type": StopKind.HOME.value, "label": stop.label.value}
    if isinstance(stop, SavedJobStop):
        return {"type": StopKind.JOB.value, "jobId": stop.job_id, "contactId": stop.contact_id}
    if isinstance(stop, SavedSupplierStop):
        return {"type": StopKind.SUPPLIER.value, "supplierId": stop.supplier_id, "id": stop.id}
    if isinstance(stop, SavedPlaceStop):
        return {"type": StopKind.PLACE.value, "id": stop.id, "name": stop.name, "address": stop.address}
    raise TypeError(f"Unsupported saved stop: {stop!r}")


def saved_stop_from_dict(raw: dict[str, Any]) -> SavedRouteStop:
    kind = StopKind(raw["type"])
    if kind is StopKind.HOME:
        return SavedHomeStop(label=HomeLabel(raw["label"]))
    if kind is StopKind.JOB:
        return SavedJobStop(job_id=str(raw["jobId"]), contact_id=str(raw["contactId"]))
    if kind is StopKind.SUPPLIER:
        return SavedSupplierStop(supplier_id=str(raw["supplierId"]), id=str(raw["id"]))
    return SavedPlaceStop(id=str(raw["id"]), name=str(raw.get("name") or ""), address=str(raw["address"]))


def _decode(rows: Sequence[Any], route_date: date) -> list[SavedRouteStop]:
    stops: list[SavedRouteStop] = []
    for raw in rows:
        try:
            stops.append(saved_stop_from_dict(raw))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Skipping undecodable saved stop for {route_date}: {raw!r} ({e})")
    return stops


class SavedRouteStore:
    """Stores one ordered list of saved stops per day."""

    def __init__(self, storage: FileStorage | None = None) -> None:
        self.storage = storage or FileStorage()

    def _path(self, route_date: date) -> Path:
        return self.storage.routes_root / f"{route_date.isoformat()}.json"

    def get(self, route_date: date) -> list[SavedRouteStop] | None:
        supabase = get_supabase_client()
        if supabase:
            try:
                response = supabase.table(_TABLE).select("stops").eq("route_date", route_date.isoformat()).execute()
                if response.data:
                    return _decode(response.data[0].get("stops") or [], route_date)
                return None
            except Exception as e:
                logger.warning(f"Failed to load saved route for {route_date} from database, using files: {e}")

        path = self._path(route_date)
        if not path.exists():
            return None
        return _decode(self.storage.read_json(path), route_date)

    def save(self, route_date: date, stops: Sequence[SavedRouteStop]) -> None:
        payload = [saved_stop_to_dict(stop) for stop in stops]
        supabase = get_supabase_client()
        if supabase:
            try:
                supabase.table(_TABLE).upsert({"route_date": route_date.isoformat(), "stops": payload}).execute()
                return
            except Exception as e:
                logger.warning(f"Failed to save route for {route_date} to database, writing file instead: {e}")
        self.storage.write_json(self._path(route_date), payload)
        logger.info(f"Saved route for {route_date} with {len(payload)} stops")

    def clear(self, route_date: date) -> bool:
        """Forget the saved route so the day falls back to the default sequence."""
        removed = False
        supabase = get_supabase_client()
        if supabase:
            try:
                response = supabase.table(_TABLE).delete().eq("route_date", route_date.isoformat()).execute()
                removed = bool(response.data)
            except Exception as e:
                logger.warning(f"Failed to clear route for {route_date} in database: {e}")
        path = self._path(route_date)
        if path.exists():
            path.unlink()
            removed = True
        return removed
