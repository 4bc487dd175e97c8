"""Daily route endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Path, Query, status

from ...schemas.routing import (
    AddPlaceStopRequest,
    AddSupplierStopRequest,
    DailyRouteResponse,
    SaveRouteRequest,
    StopSequenceResponse,
)
from ...services.routing import service as routing_service

router = APIRouter(prefix="/routes", tags=["routes"])


def _route_date(value: str):
    try:
        return routing_service.parse_route_date(value)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/{route_date}", response_model=DailyRouteResponse, status_code=status.HTTP_200_OK)
async def get_daily_route(
    route_date: str = Path(..., description="Route date as YYYY-MM-DD"),
    persist: bool = Query(default=False, description="Write a JSON/CSV export of the computed route."),
) -> DailyRouteResponse:
    day = _route_date(route_date)
    try:
        return await routing_service.compute_daily_route(day, persist=persist)
    except ValueError as exc:
        # Raised when the directions provider is not configured.
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except FileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error computing route for {route_date}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to compute route: {str(exc)}",
        ) from exc


@router.get("/{route_date}/stops", response_model=StopSequenceResponse, status_code=status.HTTP_200_OK)
def get_route_stops(route_date: str = Path(..., description="Route date as YYYY-MM-DD")) -> StopSequenceResponse:
    """Stop sequence for the day without contacting the directions provider."""
    day = _route_date(route_date)
    try:
        return routing_service.get_stop_sequence(day)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


@router.put("/{route_date}/saved", response_model=StopSequenceResponse, status_code=status.HTTP_200_OK)
def save_route(payload: SaveRouteRequest, route_date: str = Path(..., description="Route date as YYYY-MM-DD")) -> StopSequenceResponse:
    day = _route_date(route_date)
    return routing_service.save_route(day, payload.stops)


@router.delete("/{route_date}/saved", status_code=status.HTTP_200_OK)
def clear_route(route_date: str = Path(..., description="Route date as YYYY-MM-DD")) -> dict:
    """Drop the saved route so the day goes back to the default sequence."""
    day = _route_date(route_date)
    removed = routing_service.clear_route(day)
    return {"success": True, "removed": removed, "date": day.isoformat()}


@router.post("/{route_date}/stops/supplier", response_model=StopSequenceResponse, status_code=status.HTTP_200_OK)
def add_supplier(payload: AddSupplierStopRequest, route_date: str = Path(..., description="Route date as YYYY-MM-DD")) -> StopSequenceResponse:
    day = _route_date(route_date)
    try:
        return routing_service.insert_supplier_stop(day, payload.supplier_id, payload.index, payload.next_action)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/{route_date}/stops/place", response_model=StopSequenceResponse, status_code=status.HTTP_200_OK)
def add_place(payload: AddPlaceStopRequest, route_date: str = Path(..., description="Route date as YYYY-MM-DD")) -> StopSequenceResponse:
    day = _route_date(route_date)
    try:
        return routing_service.insert_place_stop(day, payload.index, payload.name, payload.address)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.delete("/{route_date}/stops/{stop_id}", response_model=StopSequenceResponse, status_code=status.HTTP_200_OK)
def delete_stop(route_date: str = Path(..., description="Route date as YYYY-MM-DD"), stop_id: str = Path(..., description="Stop identifier")) -> StopSequenceResponse:
    day = _route_date(route_date)
    try:
        return routing_service.delete_stop(day, stop_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
