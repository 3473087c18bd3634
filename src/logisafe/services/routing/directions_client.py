"""HTTP client for the external directions provider."""

from __future__ import annotations

import logging
import time
from typing import Literal, Sequence

import httpx

from ...config import settings

logger = logging.getLogger(__name__)

FallbackReason = Literal[
    "unconfigured", "invalid_request", "transport", "http_status", "provider_status", "malformed"
]


class DirectionsError(Exception):
    """Raised when the provider cannot produce a usable route."""

    def __init__(self, message: str, reason: FallbackReason) -> None:
        super().__init__(message)
        self.reason = reason


class DirectionsClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        travel_mode: str | None = None,
    ) -> None:
        self.base_url = (base_url or settings.maps_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("Directions base URL is not configured.")
        self.api_key = api_key or settings.maps_api_key
        if not self.api_key:
            raise ValueError("Directions API key is not configured.")
        self.timeout = timeout if timeout is not None else settings.directions_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.directions_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.directions_backoff_seconds
        )
        self.travel_mode = travel_mode or settings.directions_travel_mode

    def _get_client(self) -> httpx.Client:
        # One client per call so concurrent variant fetches never share a connection pool.
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)))

    def directions(
        self,
        origin: str,
        destination: str,
        waypoints: Sequence[str] = (),
        travel_mode: str | None = None,
    ) -> dict:
        """Fetch a directions payload; raise DirectionsError on any kind of failure."""
        if not origin or not destination:
            raise ValueError("Origin and destination are required.")

        params = {
            "origin": origin,
            "destination": destination,
            "mode": travel_mode or self.travel_mode,
            "key": self.api_key,
        }
        if waypoints:
            params["waypoints"] = "|".join(waypoints)
        url = f"{self.base_url}/directions/json"

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    try:
                        data = response.json()
                    except ValueError as exc:
                        raise DirectionsError("Directions response is not valid JSON.", "malformed") from exc
                    if not isinstance(data, dict):
                        raise DirectionsError("Directions response is not an object.", "malformed")
                    status = data.get("status")
                    if status != "OK":
                        message = data.get("error_message") or f"provider status {status!r}"
                        raise DirectionsError(f"Directions request failed: {message}", "provider_status")
                    if not data.get("routes"):
                        raise DirectionsError("Directions response has no routes.", "malformed")
                    return data
                except httpx.HTTPStatusError as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise DirectionsError(
                            f"Directions provider returned status {exc.response.status_code}", "http_status"
                        ) from exc
                    time.sleep(self.backoff_seconds * attempt)
                except (httpx.TimeoutException, httpx.NetworkError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise DirectionsError(
                            f"Failed to reach directions provider at {self.base_url}: {exc}", "transport"
                        ) from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(
                        f"Directions network error, retrying in {wait_time:.1f}s "
                        f"(attempt {attempt}/{self.max_retries}): {exc}"
                    )
                    time.sleep(wait_time)
                except httpx.HTTPError as exc:
                    raise DirectionsError(f"Directions request failed: {exc}", "transport") from exc
        finally:
            client.close()


def extract_path(payload: dict) -> list[tuple[float, float]]:
    """Pull an ordered (lat, lng) path out of a provider directions payload.

    Prefers the encoded overview polyline and falls back to the step geometry.
    Raises ValueError when neither yields at least two points.
    """
    try:
        route = payload["routes"][0]
    except (KeyError, IndexError, TypeError) as exc:
        raise ValueError("Directions payload has no routes.") from exc

    encoded = (route.get("overview_polyline") or {}).get("points")
    if encoded:
        try:
            path = decode_polyline(encoded)
        except (IndexError, TypeError) as exc:
            raise ValueError("Overview polyline could not be decoded.") from exc
        if len(path) >= 2:
            return path

    path: list[tuple[float, float]] = []
    try:
        for leg in route.get("legs") or []:
            for step in leg.get("steps") or []:
                if step.get("path"):
                    points = [(float(p["lat"]), float(p["lng"])) for p in step["path"]]
                else:
                    points = [
                        (float(step[key]["lat"]), float(step[key]["lng"]))
                        for key in ("start_location", "end_location")
                        if step.get(key)
                    ]
                for point in points:
                    if not path or path[-1] != point:
                        path.append(point)
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Directions step geometry is malformed: {exc!r}") from exc
    if len(path) < 2:
        raise ValueError("Directions payload has no usable geometry.")
    return path


def decode_polyline(polyline: str) -> list[tuple[float, float]]:
    """Decode Google polyline string to list of (lat, lon) coordinates."""
    coordinates = []
    index = 0
    lat = 0
    lon = 0

    while index < len(polyline):
        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlat = ~(result >> 1) if (result & 1) else (result >> 1)
        lat += dlat

        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlon = ~(result >> 1) if (result & 1) else (result >> 1)
        lon += dlon

        coordinates.append((lat / 1e5, lon / 1e5))

    return coordinates


def check_health(base_url: str | None = None, api_key: str | None = None) -> bool:
    """Check the directions provider with a minimal Mumbai to Pune request."""
    try:
        client = DirectionsClient(base_url=base_url, api_key=api_key, timeout=5.0, max_retries=0)
    except ValueError:
        return False
    try:
        client.directions("Mumbai", "Pune")
        return True
    except DirectionsError:
        return False
