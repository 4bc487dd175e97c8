"""Data access helpers for contacts, job tickets and suppliers."""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Any, Optional

from ..config import settings
from ..models.domain import BusinessData, Contact, JobStatus, JobTicket, StatusHistoryEntry, Supplier


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Unable to parse duration from value '{value}'") from exc


def _parse_history_entry(raw: dict) -> StatusHistoryEntry:
    return StatusHistoryEntry(
        id=str(raw.get("id") or ""),
        status=JobStatus(raw["status"]),
        timestamp=str(raw["timestamp"]),
        notes=raw.get("notes"),
        duration=_optional_int(raw.get("duration")),
    )


def _parse_ticket(raw: dict) -> JobTicket:
    history: list[StatusHistoryEntry] = []
    for entry in raw.get("statusHistory") or []:
        try:
            history.append(_parse_history_entry(entry))
        except (KeyError, ValueError) as exc:
            logging.warning(f"Skipping invalid status entry on job {raw.get('id')}: {exc}")
    return JobTicket(
        id=str(raw["id"]),
        status_history=history,
        job_location=(raw.get("jobLocation") or "").strip() or None,
        notes=raw.get("notes") or "",
    )


def parse_business_data(payload: dict) -> BusinessData:
    contacts: list[Contact] = []
    for raw_contact in payload.get("contacts") or []:
        try:
            contacts.append(
                Contact(
                    id=str(raw_contact["id"]),
                    name=(raw_contact.get("name") or "").strip(),
                    address=(raw_contact.get("address") or "").strip(),
                    job_tickets=[_parse_ticket(ticket) for ticket in raw_contact.get("jobTickets") or []],
                )
            )
        except (KeyError, ValueError) as exc:
            logging.warning(f"Skipping invalid contact record: {exc}")

    suppliers = tuple(
        Supplier(id=str(raw["id"]), name=(raw.get("name") or "").strip(), address=(raw.get("address") or "").strip())
        for raw in payload.get("suppliers") or []
        if raw.get("id")
    )
    home = (payload.get("homeAddress") or "").strip() or None
    return BusinessData(home_address=home, contacts=tuple(contacts), suppliers=suppliers)


@functools.lru_cache(maxsize=1)
def load_business_data(source: Optional[Path] = None) -> BusinessData:
    """Load contacts, suppliers and the home address from the configured JSON file."""

    json_path = source or settings.business_data_file
    if not json_path.exists():
        raise FileNotFoundError(f"Business data file not found: {json_path}")

    with json_path.open(mode="r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Business data file '{json_path}' must contain a JSON object.")

    data = parse_business_data(payload)
    if settings.home_address:
        data.home_address = settings.home_address
    return data


def find_supplier(data: BusinessData, supplier_id: str) -> Supplier | None:
    return next((supplier for supplier in data.suppliers if supplier.id == supplier_id), None)
