import json
from datetime import date
from pathlib import Path

import pytest

from src.fieldroute.persistence import routes as routes_persistence
from src.fieldroute.persistence.filesystem import FileStorage
from src.fieldroute.persistence.routes import SavedRouteStore, saved_stop_from_dict
from src.fieldroute.services.routing.models import (
    HomeLabel,
    SavedHomeStop,
    SavedJobStop,
    SavedPlaceStop,
    SavedSupplierStop,
)

DAY = date(2025, 3, 14)


@pytest.fixture(autouse=True)
def no_database(monkeypatch):
    monkeypatch.setattr(routes_persistence, "get_supabase_client", lambda: None)


def test_file_storage_creates_run_directory(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="route_test")

    assert run_dir.exists()
    assert run_dir.is_dir()
    assert run_dir.parent == tmp_path / "outputs"


def test_file_storage_writes_json_and_csv(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="route_test")

    summary_path = run_dir / "summary.json"
    stops_path = run_dir / "stops.csv"

    storage.write_json(summary_path, {"hello": "world"})
    storage.write_csv(stops_path, "a,b\n1,2\n")

    assert summary_path.read_text(encoding="utf-8") == '{\n  "hello": "world"\n}'
    assert storage.read_json(summary_path) == {"hello": "world"}
    assert stops_path.read_text(encoding="utf-8") == "a,b\n1,2\n"


def test_saved_route_store_round_trip(tmp_path: Path) -> None:
    store = SavedRouteStore(FileStorage(root=tmp_path))
    saved = [
        SavedHomeStop(label=HomeLabel.START),
        SavedJobStop(job_id="J1", contact_id="C1"),
        SavedSupplierStop(supplier_id="S1", id="supplier-abc"),
        SavedPlaceStop(id="place-1", name="Bank", address="5 Bank St"),
        SavedHomeStop(label=HomeLabel.END),
    ]

    assert store.get(DAY) is None
    store.save(DAY, saved)

    assert store.get(DAY) == saved
    on_disk = json.loads((tmp_path / "routes" / "2025-03-14.json").read_text(encoding="utf-8"))
    assert on_disk[1] == {"type": "job", "jobId": "J1", "contactId": "C1"}
    assert on_disk[2] == {"type": "supplier", "supplierId": "S1", "id": "supplier-abc"}


def test_clearing_saved_route(tmp_path: Path) -> None:
    store = SavedRouteStore(FileStorage(root=tmp_path))
    store.save(DAY, [SavedHomeStop(label=HomeLabel.START), SavedHomeStop(label=HomeLabel.END)])

    assert store.clear(DAY) is True
    assert store.get(DAY) is None
    assert store.clear(DAY) is False


def test_undecodable_saved_stops_are_skipped(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    storage.write_json(
        storage.routes_root / "2025-03-14.json",
        [{"type": "home", "label": "Start"}, {"type": "teleporter"}, {"type": "job", "jobId": "J1"}],
    )

    assert SavedRouteStore(storage).get(DAY) == [SavedHomeStop(label=HomeLabel.START)]


def test_saved_stop_from_dict_accepts_place():
    stop = saved_stop_from_dict({"type": "place", "id": "place-9", "name": "Bank", "address": "5 Bank St"})

    assert stop == SavedPlaceStop(id="place-9", name="Bank", address="5 Bank St")
