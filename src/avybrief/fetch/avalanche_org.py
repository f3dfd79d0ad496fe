"""Avalanche.org public API client (map-layer zones + forecast products)."""

from __future__ import annotations

import logging
import os
from datetime import datetime

import requests

from avybrief.config import center_id_for
from avybrief.constants import DANGER_LEVELS
from avybrief.models import (
    AvalancheProblem,
    ForecastRecord,
    MediaItem,
    ZoneGeometry,
)

logger = logging.getLogger(__name__)

AVALANCHE_ORG_BASE_URL = "https://api.avalanche.org/v2/public"
MAP_LAYER_PATH = "/products/map-layer"
PRODUCT_PATH = "/product"

USER_AGENT = "avybrief (avalanche briefing service)"


def _rating(value, default: int | None) -> int | None:
    """Coerce an API danger value to the scale, ``default`` when absent or off-scale."""
    if value is None:
        return default
    try:
        level = int(value)
    except (TypeError, ValueError):
        return default
    return level if level in DANGER_LEVELS else default


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable published_time %r", value)
        return None


class AvalancheOrgClient:
    """Client for the avalanche.org public forecast API."""

    def __init__(self, base_url: str | None = None, timeout: int = 30):
        self.base_url = (
            base_url or os.environ.get("AVALANCHE_ORG_BASE_URL") or AVALANCHE_ORG_BASE_URL
        ).rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})

    def fetch_map_layer(self, center_id: str | None = None) -> dict:
        """Fetch the zone FeatureCollection, for one center or all of them."""
        url = f"{self.base_url}{MAP_LAYER_PATH}"
        if center_id:
            url = f"{url}/{center_id}"
        logger.info("Fetching avalanche.org map layer (%s)", center_id or "all centers")
        resp = self.session.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def fetch_product(self, center_id: str, zone_id: str) -> dict | None:
        """Fetch the detailed forecast product; None on any failure."""
        url = f"{self.base_url}{PRODUCT_PATH}"
        params = {"type": "forecast", "center_id": center_id, "zone_id": zone_id}
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError):
            logger.warning(
                "Product fetch failed for %s/%s", center_id, zone_id, exc_info=True,
            )
            return None

    def get_forecast(self, center: str, zone: str, forecast_date: str) -> ForecastRecord | None:
        """Return the zone's current forecast, or None if the zone is not published.

        Map-layer errors propagate; product errors degrade to a record
        with ``has_product_data=False``.
        """
        center_id = center_id_for(center)
        collection = self.fetch_map_layer(center_id)

        feature = find_zone_feature(collection, center, zone)
        if feature is None:
            logger.info("No map-layer feature for %s / %s", center, zone)
            return None

        props = feature.get("properties") or {}
        center_id = center_id or props.get("center_id")
        zone_id = str(feature["id"]) if feature.get("id") is not None else None

        product = None
        if center_id and zone_id:
            product = self.fetch_product(center_id, zone_id)

        return build_forecast_record(
            center, zone, forecast_date, feature, product,
            center_id=center_id, zone_id=zone_id,
        )


def find_zone_feature(collection: dict, center: str, zone: str) -> dict | None:
    """Find the map-layer feature for a zone name within a center.

    An exact center name match wins. Otherwise a feature whose
    ``center_id`` equals the mapped id for ``center`` is used, which
    covers registry aliases such as "Snoqualmie Pass" -> NWAC.
    """
    center_id = center_id_for(center)
    by_id = None
    for feature in collection.get("features") or []:
        props = feature.get("properties") or {}
        if props.get("name") != zone:
            continue
        if props.get("center") == center:
            return feature
        if by_id is None and center_id is not None and props.get("center_id") == center_id:
            by_id = feature
    return by_id


def build_forecast_record(
    center: str,
    zone: str,
    forecast_date: str,
    feature: dict,
    product: dict | None,
    center_id: str | None = None,
    zone_id: str | None = None,
) -> ForecastRecord:
    """Merge a map-layer feature and an optional product into a ForecastRecord."""
    props = feature.get("properties") or {}
    geometry = feature.get("geometry")

    record = {
        "center": center,
        "zone": zone,
        "forecast_date": forecast_date,
        "center_id": center_id,
        "zone_id": zone_id,
        "danger_overall": _rating(props.get("danger_level"), -1),
        "danger_high": _rating(props.get("danger_elevation_high"), None),
        "danger_middle": _rating(props.get("danger_elevation_middle"), None),
        "danger_low": _rating(props.get("danger_elevation_low"), None),
        "travel_advice": props.get("travel_advice") or "",
        "forecast_url": props.get("link") or props.get("url") or "",
        "geometry": ZoneGeometry.model_validate(geometry) if geometry else None,
    }

    if product:
        record.update({
            "bottom_line": product.get("bottom_line"),
            "hazard_discussion": product.get("hazard_discussion"),
            "weather_discussion": product.get("weather_discussion"),
            "avalanche_problems": [
                AvalancheProblem.model_validate(p)
                for p in product.get("forecast_avalanche_problems") or []
            ],
            "media": [MediaItem.model_validate(m) for m in product.get("media") or []],
            "published_time": _parse_time(product.get("published_time")),
            "has_product_data": True,
        })

    return ForecastRecord(**record)
