"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Literal, Mapping, Optional, Union


class StopKind(str, Enum):
    HOME = "home"
    JOB = "job"
    SUPPLIER = "supplier"
    PLACE = "place"


class HomeLabel(str, Enum):
    START = "Start"
    END = "End"


HOME_START_ID = "start"
HOME_END_ID = "end"


@dataclass(frozen=True, slots=True)
class HomeStop:
    id: str
    address: str
    label: HomeLabel
    kind: Literal[StopKind.HOME] = field(default=StopKind.HOME, init=False)

    @property
    def name(self) -> str:
        return "Home" if self.label is HomeLabel.START else "Return Home"


@dataclass(frozen=True, slots=True)
class JobStop:
    id: str
    address: str
    job_id: str
    contact_id: str
    contact_name: str
    service_duration_minutes: int
    appointment_time: Optional[time] = None
    kind: Literal[StopKind.JOB] = field(default=StopKind.JOB, init=False)

    @property
    def name(self) -> str:
        return self.contact_name


@dataclass(frozen=True, slots=True)
class SupplierStop:
    id: str
    address: str
    supplier_id: str
    name: str
    kind: Literal[StopKind.SUPPLIER] = field(default=StopKind.SUPPLIER, init=False)


@dataclass(frozen=True, slots=True)
class PlaceStop:
    id: str
    address: str
    name: str
    kind: Literal[StopKind.PLACE] = field(default=StopKind.PLACE, init=False)


Stop = Union[HomeStop, JobStop, SupplierStop, PlaceStop]


@dataclass(frozen=True, slots=True)
class SavedHomeStop:
    label: HomeLabel
    kind: Literal[StopKind.HOME] = field(default=StopKind.HOME, init=False)


@dataclass(frozen=True, slots=True)
class SavedJobStop:
    job_id: str
    contact_id: str
    kind: Literal[StopKind.JOB] = field(default=StopKind.JOB, init=False)


@dataclass(frozen=True, slots=True)
class SavedSupplierStop:
    supplier_id: str
    id: str
    kind: Literal[StopKind.SUPPLIER] = field(default=StopKind.SUPPLIER, init=False)


@dataclass(frozen=True, slots=True)
class SavedPlaceStop:
    id: str
    name: str
    address: str
    kind: Literal[StopKind.PLACE] = field(default=StopKind.PLACE, init=False)


SavedRouteStop = Union[SavedHomeStop, SavedJobStop, SavedSupplierStop, SavedPlaceStop]


@dataclass(frozen=True, slots=True)
class Leg:
    """Resolved travel between two adjacent stops."""

    distance_meters: int
    distance_text: str
    duration_seconds: int
    duration_text: str


@dataclass(frozen=True, slots=True)
class RouteMetrics:
    travel_distance_value: int
    travel_distance_text: str
    travel_time_value: int
    travel_time_text: str
    eta: datetime
    idle_time_minutes: int

    @property
    def eta_text(self) -> str:
        return self.eta.strftime("%H:%M")


@dataclass(frozen=True, slots=True)
class RouteTotals:
    distance_meters: int = 0
    time_seconds: int = 0

    def add(self, leg: Leg) -> RouteTotals:
        return RouteTotals(
            distance_meters=self.distance_meters + leg.distance_meters,
            time_seconds=self.time_seconds + leg.duration_seconds,
        )


@dataclass(frozen=True, slots=True)
class Notification:
    level: Literal["info", "error"]
    message: str
    context: Mapping[str, Any] = field(default_factory=dict)


class OrchestratorState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    FETCHING_PRIMARY = "fetching_primary"
    FETCHING_FALLBACK = "fetching_fallback"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RouteSnapshot:
    """Immutable view of one recomputation, replaced as a whole on publish."""

    generation: int
    route_date: Optional[date]
    stops: tuple[Stop, ...]
    state: OrchestratorState = OrchestratorState.IDLE
    metrics: Mapping[str, RouteMetrics] = field(default_factory=dict)
    totals: RouteTotals = field(default_factory=RouteTotals)
    leave_by: Optional[datetime] = None
