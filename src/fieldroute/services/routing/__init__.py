"""Daily route building and timing."""

from .builder import build_stops, to_saved_route
from .directions_client import DirectionsError, DirectionsGateway, GoogleDirectionsClient
from .leave_by import compute_leave_by
from .orchestrator import RouteMetricsOrchestrator
from .propagation import propagate

__all__ = [
    "build_stops",
    "to_saved_route",
    "DirectionsError",
    "DirectionsGateway",
    "GoogleDirectionsClient",
    "compute_leave_by",
    "RouteMetricsOrchestrator",
    "propagate",
]
