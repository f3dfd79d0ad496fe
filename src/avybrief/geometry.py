"""Zone geometry helpers."""

from __future__ import annotations

from avybrief.models import ZoneGeometry

_CARDINALS_16 = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]


def ring_centroid(ring: list[list[float]]) -> tuple[float, float]:
    """Unweighted centroid of a polygon ring of ``[lon, lat]`` pairs.

    Arithmetic mean of the vertex coordinates, not area-weighted. Forecast
    zones are small enough that the difference does not matter for a
    weather lookup point.

    Returns ``(lat, lon)``.
    """
    if not ring:
        raise ValueError("Cannot compute centroid of an empty ring")
    lon_sum = 0.0
    lat_sum = 0.0
    for vertex in ring:
        lon_sum += vertex[0]
        lat_sum += vertex[1]
    count = len(ring)
    return lat_sum / count, lon_sum / count


def zone_centroid(geometry: ZoneGeometry | None) -> tuple[float, float] | None:
    """Centroid of the outer ring, or None if there is no usable ring."""
    if geometry is None:
        return None
    ring = geometry.outer_ring()
    if not ring:
        return None
    return ring_centroid(ring)


def degrees_to_cardinal(degrees: float) -> str:
    """16-point compass direction for a bearing in degrees."""
    index = int(degrees / 22.5 + 0.5) % 16
    return _CARDINALS_16[index]
