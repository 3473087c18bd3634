import random
import threading

import httpx
import pytest

from logisafe.schemas.routing import DirectionsRequest, RouteOptimizeRequest
from logisafe.services.routing import directions_client as directions_module
from logisafe.services.routing import service as routing_service
from logisafe.services.routing.directions_client import DirectionsClient, DirectionsError
from logisafe.services.routing.fallback import synthetic_path
from logisafe.services.routing.variants import SimulatedVariantSource

PROVIDER_PAYLOAD = {
    "status": "OK",
    "routes": [
        {
            "overview_polyline": {"points": "_p~iF~ps|U_ulLnnqC_mqNvxq`@"},
            "legs": [],
            "bounds": {},
        }
    ],
}


class DummyClient:
    def __init__(self, payload=None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.calls = []
        self._lock = threading.Lock()

    def directions(self, origin, destination, waypoints=(), travel_mode=None):
        with self._lock:
            self.calls.append((origin, destination, tuple(waypoints), travel_mode))
        if self.error is not None:
            raise self.error
        return self.payload


def test_fetch_directions_uses_provider_path() -> None:
    client = DummyClient(payload=PROVIDER_PAYLOAD)
    result = routing_service.fetch_directions("Mumbai", "Pune", ["Lonavala"], "driving", "fastest", client=client)

    assert result.source == "provider"
    assert result.fallback_reason is None
    assert not result.is_synthetic
    assert result.path[0] == (38.5, -120.2)
    assert client.calls == [("Mumbai", "Pune", ("Lonavala",), "driving")]


@pytest.mark.parametrize(
    "error,reason",
    [
        (DirectionsError("boom", "transport"), "transport"),
        (DirectionsError("denied", "provider_status"), "provider_status"),
        (DirectionsError("503", "http_status"), "http_status"),
        (RuntimeError("unexpected"), "transport"),
    ],
)
def test_fetch_directions_falls_back_on_failure(error, reason) -> None:
    result = routing_service.fetch_directions("Mumbai", "Pune", variant_key="safest", client=DummyClient(error=error))

    assert result.source == "synthetic"
    assert result.fallback_reason == reason
    assert result.path == synthetic_path("Mumbai", "Pune", "safest")
    assert result.payload["status"] == "OK"


def test_fetch_directions_flags_malformed_success() -> None:
    payload = {"status": "OK", "routes": [{"legs": []}]}
    result = routing_service.fetch_directions("Mumbai", "Pune", client=DummyClient(payload=payload))

    assert result.source == "synthetic"
    assert result.fallback_reason == "malformed"
    assert len(result.path) == 3


def test_fetch_directions_without_api_key_is_synthetic() -> None:
    result = routing_service.fetch_directions("Delhi", "Jaipur", variant_key="balanced")

    assert result.source == "synthetic"
    assert result.fallback_reason == "unconfigured"


def test_fetch_directions_without_locations_never_raises() -> None:
    result = routing_service.fetch_directions(None, "", variant_key="fastest")

    assert result.fallback_reason == "invalid_request"
    assert len(result.path) == 3


def test_variant_directions_are_keyed_by_variant(monkeypatch: pytest.MonkeyPatch) -> None:
    client = DummyClient(payload=PROVIDER_PAYLOAD)
    monkeypatch.setattr(routing_service, "DirectionsClient", lambda: client)
    variants = SimulatedVariantSource(rng=random.Random(0)).generate(
        origin="Mumbai", destination="Pune", mode="extended"
    )

    results = routing_service.fetch_variant_directions(variants, "Mumbai", "Pune", ["Lonavala"])

    assert set(results) == set(variants)
    assert all(result.variant_key == key for key, result in results.items())
    assert all(result.source == "provider" for result in results.values())
    assert len(client.calls) == 4


def test_variant_directions_mix_provider_and_synthetic(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_fetch(origin, destination, waypoints=(), travel_mode=None, variant_key=None, client=None):
        if variant_key == "safest":
            return routing_service._synthetic_result(origin, destination, waypoints, variant_key, "transport")
        return routing_service.fetch_directions(
            origin, destination, waypoints, travel_mode, variant_key, DummyClient(payload=PROVIDER_PAYLOAD)
        )

    monkeypatch.setattr(routing_service, "fetch_directions", fake_fetch)
    variants = SimulatedVariantSource(rng=random.Random(0)).generate(origin="Mumbai", destination="Pune")

    results = routing_service.fetch_variant_directions(variants, "Mumbai", "Pune")

    assert results["fastest"].source == "provider"
    assert results["safest"].source == "synthetic"
    assert results["safest"].path == synthetic_path("Mumbai", "Pune", "safest")


def test_optimize_routes_formats_variants() -> None:
    payload = RouteOptimizeRequest(startLocation="Mumbai", endLocation="Pune", cargoType="electronics", useGemini=True)
    variants = routing_service.optimize_routes(payload, SimulatedVariantSource(rng=random.Random(9)))

    fastest = variants["fastest"]
    assert fastest.distance == f"{int(fastest.distance_km)} km"
    assert fastest.fuel_consumption.endswith(" liters")
    assert fastest.cost_estimate.startswith("₹")
    assert variants["balanced"].duration.endswith(" hours")


def test_optimize_routes_rejects_missing_locations() -> None:
    with pytest.raises(ValueError):
        routing_service.optimize_routes(RouteOptimizeRequest(startLocation="Mumbai"))


def test_directions_for_request_requires_locations() -> None:
    with pytest.raises(ValueError):
        routing_service.directions_for_request(DirectionsRequest(origin="Mumbai"))


def test_directions_for_request_reports_source() -> None:
    response = routing_service.directions_for_request(
        DirectionsRequest(origin="Mumbai", destination="Pune", variantKey="fastest")
    )

    assert response.source == "synthetic"
    assert response.fallback_reason == "unconfigured"
    assert len(response.path) == 3
    assert response.model_dump(by_alias=True)["geocoded_waypoints"] == []


def _client_with(handler, **kwargs) -> DirectionsClient:
    client = DirectionsClient(base_url="https://maps.example/api", api_key="test-key", **kwargs)
    client._get_client = lambda: httpx.Client(transport=httpx.MockTransport(handler))
    return client


def test_directions_client_sends_query_parameters() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        seen["path"] = request.url.path
        return httpx.Response(200, json=PROVIDER_PAYLOAD)

    data = _client_with(handler).directions("Mumbai", "Pune", ["Lonavala", "Khopoli"])

    assert data["status"] == "OK"
    assert seen["path"] == "/api/directions/json"
    assert seen["waypoints"] == "Lonavala|Khopoli"
    assert seen["key"] == "test-key"
    assert seen["mode"] == "driving"


@pytest.mark.parametrize(
    "response,reason",
    [
        (httpx.Response(500, text="upstream down"), "http_status"),
        (httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"}), "provider_status"),
        (httpx.Response(200, json={"status": "OK", "routes": []}), "malformed"),
        (httpx.Response(200, text="not json"), "malformed"),
    ],
)
def test_directions_client_classifies_failures(response, reason) -> None:
    client = _client_with(lambda request: response)

    with pytest.raises(DirectionsError) as excinfo:
        client.directions("Mumbai", "Pune")
    assert excinfo.value.reason == reason


def test_fetch_directions_flags_bad_step_geometry_as_malformed() -> None:
    body = {"status": "OK", "routes": [{"legs": [{"steps": [{"path": [{"latitude": 1}]}]}]}]}
    client = _client_with(lambda request: httpx.Response(200, json=body))

    result = routing_service.fetch_directions("Mumbai", "Pune", client=client)

    assert result.source == "synthetic"
    assert result.fallback_reason == "malformed"


def test_directions_client_retries_transport_errors() -> None:
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) < 2:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json=PROVIDER_PAYLOAD)

    data = _client_with(handler, max_retries=1, backoff_seconds=0.0).directions("Mumbai", "Pune")

    assert data["routes"]
    assert len(attempts) == 2


def test_directions_client_requires_api_key() -> None:
    with pytest.raises(ValueError):
        DirectionsClient(base_url="https://maps.example/api", api_key=None)
    assert directions_module.check_health(base_url="https://maps.example/api", api_key=None) is False
