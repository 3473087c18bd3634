import pytest

from logisafe.services.routing.directions_client import decode_polyline, extract_path
from logisafe.services.routing.fallback import (
    VARIANT_OFFSETS,
    synthetic_directions_payload,
    synthetic_path,
)
from logisafe.services.routing.locations import (
    CITY_COORDINATES,
    DEFAULT_CITY,
    canonical_city,
    find_city_in,
    resolve_coordinates,
)

MUMBAI = CITY_COORDINATES["Mumbai"]
PUNE = CITY_COORDINATES["Pune"]


@pytest.mark.parametrize("name", [None, "", "Atlantis", "12345", "  "])
def test_unknown_location_resolves_to_default_city(name) -> None:
    assert DEFAULT_CITY == "Mumbai"
    assert resolve_coordinates(name) == MUMBAI


def test_known_locations_resolve_case_insensitively() -> None:
    assert resolve_coordinates("pune") == PUNE
    assert resolve_coordinates("Delhi Warehouse 4") == CITY_COORDINATES["Delhi"]
    assert canonical_city(" CHENNAI ") == "Chennai"
    assert find_city_in("theft report near jaipur bypass") == "Jaipur"
    assert find_city_in("nowhere in particular") is None


@pytest.mark.parametrize("variant_key", [None, "fastest", "safest", "economical", "balanced", "scenic"])
@pytest.mark.parametrize("origin,destination", [("Mumbai", "Pune"), ("Atlantis", None), (None, None)])
def test_synthetic_path_always_has_three_points(variant_key, origin, destination) -> None:
    path = synthetic_path(origin, destination, variant_key)

    assert len(path) == 3
    assert path[0] == resolve_coordinates(origin)
    assert path[2] == resolve_coordinates(destination)


def test_synthetic_midpoint_is_shifted_per_variant() -> None:
    d_lat, d_lng = VARIANT_OFFSETS["safest"]
    _, midpoint, _ = synthetic_path("Mumbai", "Pune", "safest")

    assert midpoint == pytest.approx(((MUMBAI[0] + PUNE[0]) / 2 + d_lat, (MUMBAI[1] + PUNE[1]) / 2 + d_lng))
    assert synthetic_path("Mumbai", "Pune", "fastest")[1] != midpoint


def test_synthetic_payload_is_provider_shaped() -> None:
    payload = synthetic_directions_payload("Mumbai", "Pune", ["Lonavala"], "fastest")

    assert payload["status"] == "OK"
    route = payload["routes"][0]
    assert set(route["bounds"]) == {"northeast", "southwest"}
    leg = route["legs"][0]
    assert leg["start_location"] == {"lat": MUMBAI[0], "lng": MUMBAI[1]}
    assert leg["end_location"] == {"lat": PUNE[0], "lng": PUNE[1]}
    assert leg["distance"]["value"] > 100_000
    assert route["waypoint_order"] == [0]
    assert route["warnings"]

    # Same geometry whichever way it is read back.
    assert extract_path(payload) == synthetic_path("Mumbai", "Pune", "fastest")


def test_extract_path_prefers_overview_polyline() -> None:
    payload = {"routes": [{"overview_polyline": {"points": "_p~iF~ps|U_ulLnnqC_mqNvxq`@"}, "legs": []}]}

    assert extract_path(payload) == [(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)]


def test_extract_path_uses_step_locations() -> None:
    payload = {
        "routes": [
            {
                "legs": [
                    {
                        "steps": [
                            {"start_location": {"lat": 1.0, "lng": 2.0}, "end_location": {"lat": 1.5, "lng": 2.5}},
                            {"start_location": {"lat": 1.5, "lng": 2.5}, "end_location": {"lat": 2.0, "lng": 3.0}},
                        ]
                    }
                ]
            }
        ]
    }

    assert extract_path(payload) == [(1.0, 2.0), (1.5, 2.5), (2.0, 3.0)]


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"routes": []},
        {"routes": [{"legs": [{"steps": []}]}]},
        {"routes": [{"legs": [{"steps": [{"path": [{"latitude": 1}]}]}]}]},
        {"routes": [{"legs": [{"steps": [{"start_location": "Mumbai"}]}]}]},
        {"routes": [{"legs": ["not-a-leg"]}]},
    ],
)
def test_extract_path_rejects_unusable_payloads(payload) -> None:
    with pytest.raises(ValueError):
        extract_path(payload)


def test_decode_polyline_empty() -> None:
    assert decode_polyline("") == []
