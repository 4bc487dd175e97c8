"""HTTP client for the driving-directions provider."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional, Protocol, Sequence

import httpx

from ...config import settings
from .models import Leg

logger = logging.getLogger(__name__)

# Provider statuses worth another attempt; every other non-OK status is final.
_TRANSIENT_STATUSES = frozenset({"OVER_QUERY_LIMIT", "UNKNOWN_ERROR"})


class DirectionsError(Exception):
    """A directions request that produced no usable legs."""

    def __init__(self, message: str, *, status: str = "ERROR", addresses: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.status = status
        self.addresses = tuple(addresses)


class DirectionsGateway(Protocol):
    async def route(self, addresses: Sequence[str], departure_time: Optional[datetime] = None) -> list[Leg]:
        """Driving legs between consecutive ``addresses`` (one per adjacent pair)."""
        ...


def _parse_legs(data: dict, addresses: Sequence[str]) -> list[Leg]:
    routes = data.get("routes") or []
    if not routes:
        raise DirectionsError("Directions response contained no routes.", status="ZERO_RESULTS", addresses=addresses)

    legs: list[Leg] = []
    for raw_leg in routes[0].get("legs", []):
        try:
            # Traffic-aware duration is only present when a departure time was sent.
            duration = raw_leg.get("duration_in_traffic") or raw_leg["duration"]
            distance = raw_leg["distance"]
            legs.append(
                Leg(
                    distance_meters=int(distance["value"]),
                    distance_text=str(distance.get("text", "")),
                    duration_seconds=int(duration["value"]),
                    duration_text=str(duration.get("text", "")),
                )
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DirectionsError(f"Malformed leg in directions response: {exc}", addresses=addresses) from exc

    if len(legs) != len(addresses) - 1:
        raise DirectionsError(
            f"Expected {len(addresses) - 1} legs but the provider returned {len(legs)}.",
            addresses=addresses,
        )
    return legs


class GoogleDirectionsClient:
    """Directions gateway backed by the Google Directions JSON API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.directions_api_key
        if not self.api_key:
            raise ValueError("Directions API key is not configured.")
        self.base_url = base_url or settings.directions_base_url
        self.timeout = timeout if timeout is not None else settings.directions_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.directions_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.directions_backoff_seconds
        self._transport = transport

    def _build_params(self, addresses: Sequence[str], departure_time: Optional[datetime]) -> dict:
        params = {
            "origin": addresses[0],
            "destination": addresses[-1],
            "mode": "driving",
            "key": self.api_key,
        }
        if len(addresses) > 2:
            params["waypoints"] = "|".join(addresses[1:-1])
        if departure_time is not None:
            # Naive datetimes are local wall-clock times.
            params["departure_time"] = str(int(departure_time.timestamp()))
            params["traffic_model"] = "best_guess"
        return params

    async def route(self, addresses: Sequence[str], departure_time: Optional[datetime] = None) -> list[Leg]:
        if len(addresses) < 2:
            raise ValueError("At least two addresses are required for a directions request.")

        params = self._build_params(addresses, departure_time)
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=5.0), transport=self._transport) as client:
            attempt = 0
            while True:
                try:
                    response = await client.get(self.base_url, params=params)
                    response.raise_for_status()
                    data = response.json()
                    status = data.get("status", "UNKNOWN_ERROR")
                    if status == "OK":
                        return _parse_legs(data, addresses)
                    message = data.get("error_message") or f"Directions request failed: {status}"
                    if status not in _TRANSIENT_STATUSES or attempt >= self.max_retries:
                        raise DirectionsError(message, status=status, addresses=addresses)
                    attempt += 1
                    logger.debug(f"Directions status {status}, retrying (attempt {attempt}/{self.max_retries})")
                except httpx.HTTPStatusError as exc:
                    code = exc.response.status_code
                    if code < 500 or attempt >= self.max_retries:
                        raise DirectionsError(
                            f"Directions provider returned HTTP {code}", status=f"HTTP_{code}", addresses=addresses
                        ) from exc
                    attempt += 1
                except httpx.TransportError as exc:
                    # Timeouts and connection or protocol failures are retried.
                    if attempt >= self.max_retries:
                        logger.warning(f"Directions request failed after {attempt + 1} attempts: {exc}")
                        raise DirectionsError(
                            f"Directions provider is not reachable: {exc}", status="NETWORK_ERROR", addresses=addresses
                        ) from exc
                    attempt += 1
                    logger.debug(f"Directions network error, retrying (attempt {attempt}/{self.max_retries}): {exc}")
                except ValueError as exc:
                    # Response body was not JSON.
                    raise DirectionsError(
                        f"Invalid directions response: {exc}", status="INVALID_RESPONSE", addresses=addresses
                    ) from exc
                except httpx.HTTPError as exc:
                    raise DirectionsError(
                        f"Directions request failed: {exc}", status="NETWORK_ERROR", addresses=addresses
                    ) from exc
                await asyncio.sleep(self.backoff_seconds * (2 ** (attempt - 1)))


async def check_health(client: GoogleDirectionsClient | None = None) -> bool:
    """Probe the provider with a short request between two fixed addresses."""
    try:
        gateway = client or GoogleDirectionsClient(max_retries=0)
        legs = await gateway.route(["1600 Amphitheatre Parkway, Mountain View, CA", "1 Infinite Loop, Cupertino, CA"])
        return len(legs) == 1
    except (DirectionsError, ValueError):
        return False
