"""Route timing request/response schemas."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SavedHomeStopModel(BaseModel):
    type: Literal["home"] = "home"
    label: Literal["Start", "End"]


class SavedJobStopModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["job"] = "job"
    job_id: str = Field(..., alias="jobId")
    contact_id: str = Field(..., alias="contactId")


class SavedSupplierStopModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["supplier"] = "supplier"
    supplier_id: str = Field(..., alias="supplierId")
    id: str


class SavedPlaceStopModel(BaseModel):
    type: Literal["place"] = "place"
    id: str
    name: str = ""
    address: str = Field(..., min_length=1)


SavedRouteStopModel = Annotated[
    Union[SavedHomeStopModel, SavedJobStopModel, SavedSupplierStopModel, SavedPlaceStopModel],
    Field(discriminator="type"),
]


class SaveRouteRequest(BaseModel):
    stops: List[SavedRouteStopModel]


class AddSupplierStopRequest(BaseModel):
    supplier_id: str
    index: int = Field(..., ge=1, description="Position the supplier is inserted at (before the stop currently there).")
    next_action: Literal["return", "continue"] = Field(
        default="continue",
        description="'return' goes back to the previous job after the supplier, 'continue' proceeds with the route.",
    )


class AddPlaceStopRequest(BaseModel):
    index: int = Field(..., ge=1)
    name: str = ""
    address: str = Field(..., min_length=1)


class StopModel(BaseModel):
    id: str
    type: Literal["home", "job", "supplier", "place"]
    name: str
    address: str
    label: Optional[str] = None
    job_id: Optional[str] = None
    contact_id: Optional[str] = None
    supplier_id: Optional[str] = None
    appointment_time: Optional[str] = Field(default=None, description="HH:MM, fixed appointment on this day.")
    service_duration_minutes: int


class RouteMetricsModel(BaseModel):
    travel_distance_value: int = Field(..., description="Meters")
    travel_distance_text: str
    travel_time_value: int = Field(..., description="Seconds")
    travel_time_text: str
    eta: str = Field(..., description="HH:MM local")
    eta_display: str
    idle_time_minutes: int = Field(..., ge=0)


class RouteTotalsModel(BaseModel):
    distance_meters: int
    time_seconds: int


class NotificationModel(BaseModel):
    level: Literal["info", "error"]
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


class StopSequenceResponse(BaseModel):
    date: str
    saved: bool
    stops: List[StopModel]


class DailyRouteResponse(BaseModel):
    date: str
    state: str
    stops: List[StopModel]
    metrics: Dict[str, RouteMetricsModel]
    totals: RouteTotalsModel
    leave_by: Optional[str] = None
    leave_by_display: Optional[str] = None
    notifications: List[NotificationModel] = Field(default_factory=list)
    export_directory: Optional[str] = None
