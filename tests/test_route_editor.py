from datetime import time

import pytest

from src.fieldroute.models.domain import Supplier
from src.fieldroute.services.routing.editor import add_place_stop, add_supplier_stop, remove_stop
from src.fieldroute.services.routing.models import HomeLabel, HomeStop, JobStop, PlaceStop, SupplierStop

SUPPLIER = Supplier(id="S1", name="Door Parts Inc", address="9 Supply Rd")


def _route() -> list:
    return [
        HomeStop(id="start", address="1 Home St", label=HomeLabel.START),
        JobStop(
            id="J1-0",
            address="2 Job Rd",
            job_id="J1",
            contact_id="C1",
            contact_name="Pat Jones",
            service_duration_minutes=60,
            appointment_time=time(9, 0),
        ),
        HomeStop(id="end", address="1 Home St", label=HomeLabel.END),
    ]


def test_supplier_run_with_return_to_job():
    stops = add_supplier_stop(_route(), 2, SUPPLIER, "return")

    assert [stop.kind.value for stop in stops] == ["home", "job", "supplier", "job", "home"]
    supplier_stop, return_visit = stops[2], stops[3]
    assert isinstance(supplier_stop, SupplierStop)
    assert supplier_stop.id.startswith("supplier-")
    assert supplier_stop.address == "9 Supply Rd"
    assert isinstance(return_visit, JobStop)
    assert return_visit.job_id == "J1"
    assert return_visit.id != "J1-0"
    assert return_visit.id.startswith("J1-")


def test_supplier_run_continue_inserts_only_supplier():
    stops = add_supplier_stop(_route(), 2, SUPPLIER, "continue")

    assert [stop.kind.value for stop in stops] == ["home", "job", "supplier", "home"]


def test_return_after_home_inserts_only_supplier():
    stops = add_supplier_stop(_route(), 1, SUPPLIER, "return")

    assert [stop.kind.value for stop in stops] == ["home", "supplier", "job", "home"]


def test_insert_outside_route_is_rejected():
    with pytest.raises(ValueError):
        add_supplier_stop(_route(), 0, SUPPLIER)
    with pytest.raises(ValueError):
        add_place_stop(_route(), 3, "Bank", "5 Bank St")


def test_removing_supplier_takes_return_visit_along():
    stops = add_supplier_stop(_route(), 2, SUPPLIER, "return")

    trimmed = remove_stop(stops, stops[2].id)

    assert [stop.id for stop in trimmed] == ["start", "J1-0", "end"]


def test_removing_place_stop():
    stops = add_place_stop(_route(), 1, "Bank", "5 Bank St")
    assert isinstance(stops[1], PlaceStop)

    assert [stop.id for stop in remove_stop(stops, stops[1].id)] == ["start", "J1-0", "end"]


def test_only_errand_stops_are_removable():
    with pytest.raises(ValueError):
        remove_stop(_route(), "J1-0")
    with pytest.raises(LookupError):
        remove_stop(_route(), "missing")
