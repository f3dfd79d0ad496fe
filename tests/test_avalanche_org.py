"""Tests for the avalanche.org client with mocked HTTP."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
import requests
import responses

from avybrief.fetch.avalanche_org import (
    AvalancheOrgClient,
    build_forecast_record,
    find_zone_feature,
)

BASE = "https://avalanche.test/v2/public"
MAP_LAYER_SAC = f"{BASE}/products/map-layer/SAC"
PRODUCT = f"{BASE}/product"

CENTER = "Sierra Avalanche Center"
ZONE = "Central Sierra"


def _feature(name=ZONE, center=CENTER, danger=3, center_id="SAC"):
    return {
        "type": "Feature",
        "id": 2101,
        "geometry": {
            "type": "Polygon",
            "coordinates": [[[-120.0, 39.0], [-119.0, 39.0], [-119.0, 40.0], [-120.0, 40.0]]],
        },
        "properties": {
            "name": name,
            "center": center,
            "center_id": center_id,
            "danger_level": danger,
            "danger_elevation_high": 3,
            "danger_elevation_middle": 2,
            "danger_elevation_low": None,
            "travel_advice": "Evaluate snow and terrain carefully.",
            "link": "https://www.sierraavalanchecenter.org/forecasts#/central-sierra-nevada",
        },
    }


def _map_layer(*features):
    return {"type": "FeatureCollection", "features": list(features) or [_feature()]}


def _product():
    return {
        "id": 99,
        "published_time": "2026-01-15T14:00:00+00:00",
        "bottom_line": "<p>Wind slabs near ridgelines.</p>",
        "hazard_discussion": "<p>Loading on NE aspects.</p>",
        "weather_discussion": "<p>Cold.</p>",
        "forecast_avalanche_problems": [
            {
                "name": "Wind Slab",
                "likelihood": "likely",
                "size": ["1", "2"],
                "min_size": 1,
                "max_size": "2",
                "discussion": "<p>Drifts</p>",
                "location": ["north upper"],
            }
        ],
        "media": [
            {"id": 7, "url": {"large": "https://img/large.jpg"}, "caption": "<p>Crown</p>", "type": "image"},
        ],
    }


@pytest.fixture
def client():
    return AvalancheOrgClient(base_url=BASE)


@responses.activate
def test_get_forecast_merges_map_layer_and_product(client):
    responses.add(responses.GET, MAP_LAYER_SAC, json=_map_layer(), status=200)
    responses.add(responses.GET, PRODUCT, json=_product(), status=200)

    record = client.get_forecast(CENTER, ZONE, "2026-01-15")

    assert record is not None
    assert record.center_id == "SAC"
    assert record.zone_id == "2101"
    assert record.danger_overall == 3
    assert record.danger_high == 3
    assert record.danger_low is None
    assert record.forecast_url.startswith("https://www.sierraavalanchecenter.org")
    assert record.geometry.outer_ring()[0] == [-120.0, 39.0]
    assert record.has_product_data is True
    assert record.bottom_line == "<p>Wind slabs near ridgelines.</p>"
    assert record.avalanche_problems[0].min_size == "1"
    assert record.media[0].id == "7"
    assert record.published_time == datetime(2026, 1, 15, 14, 0, tzinfo=timezone.utc)

    product_params = responses.calls[1].request.params
    assert product_params == {"type": "forecast", "center_id": "SAC", "zone_id": "2101"}


@responses.activate
def test_product_failure_degrades(client):
    responses.add(responses.GET, MAP_LAYER_SAC, json=_map_layer(), status=200)
    responses.add(responses.GET, PRODUCT, status=503)

    record = client.get_forecast(CENTER, ZONE, "2026-01-15")

    assert record is not None
    assert record.has_product_data is False
    assert record.bottom_line is None
    assert record.published_time is None
    assert record.danger_overall == 3


@responses.activate
def test_zone_not_found(client):
    responses.add(responses.GET, MAP_LAYER_SAC, json=_map_layer(_feature(name="Other")), status=200)

    assert client.get_forecast(CENTER, ZONE, "2026-01-15") is None
    assert len(responses.calls) == 1


@responses.activate
def test_map_layer_error_propagates(client):
    responses.add(responses.GET, MAP_LAYER_SAC, status=500)

    with pytest.raises(requests.HTTPError):
        client.get_forecast(CENTER, ZONE, "2026-01-15")


@responses.activate
def test_unmapped_center_uses_full_map_layer(client):
    center = "Example Avalanche Center"
    feature = _feature(center=center, center_id="EXA")
    responses.add(responses.GET, f"{BASE}/products/map-layer", json=_map_layer(feature), status=200)
    responses.add(responses.GET, PRODUCT, json=_product(), status=200)

    record = client.get_forecast(center, ZONE, "2026-01-15")

    assert record.center_id == "EXA"
    assert record.has_product_data is True


def test_find_zone_feature_matches_center():
    collection = _map_layer(_feature(center="Other Center", center_id="OTH"), _feature())
    feature = find_zone_feature(collection, CENTER, ZONE)
    assert feature["properties"]["center"] == CENTER


def test_find_zone_feature_prefers_center_name_over_shared_id():
    collection = _map_layer(_feature(center="Other Center"), _feature())
    feature = find_zone_feature(collection, CENTER, ZONE)
    assert feature["properties"]["center"] == CENTER


def test_find_zone_feature_alias_matches_by_center_id():
    nwac = _feature(center="Northwest Avalanche Center", center_id="NWAC")
    feature = find_zone_feature(_map_layer(nwac), "Snoqualmie Pass", ZONE)
    assert feature is nwac


def test_find_zone_feature_unmapped_center_needs_name_match():
    anonymous = _feature(center=None, center_id=None)
    assert find_zone_feature(_map_layer(anonymous), "Example Avalanche Center", ZONE) is None


def test_off_scale_danger_becomes_no_rating():
    record = build_forecast_record(CENTER, ZONE, "2026-01-15", _feature(danger=0), None)
    assert record.danger_overall == -1
    assert record.has_product_data is False
