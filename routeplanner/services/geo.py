import math
from typing import Iterable, List

from ..models.geo import Bounds, GeoPoint
from ..models.response import ModeRecommendation
from ..models.route import TransportMode

EARTH_RADIUS_KM = 6371.0


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle (haversine) distance in kilometres."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lng - a.lng)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def get_bounds(points: Iterable[GeoPoint]) -> Bounds:
    """Bounding box of the given points (a zero box at 0,0 when empty)."""
    points = list(points)
    if not points:
        origin = GeoPoint(lat=0.0, lng=0.0)
        return Bounds(northeast=origin, southwest=origin)

    lats = [p.lat for p in points]
    lngs = [p.lng for p in points]
    return Bounds(
        northeast=GeoPoint(lat=max(lats), lng=max(lngs)),
        southwest=GeoPoint(lat=min(lats), lng=min(lngs)),
    )


def decode_polyline(encoded: str) -> List[GeoPoint]:
    """Decode a Google encoded polyline (1e-5 precision)."""
    points: List[GeoPoint] = []
    index = 0
    lat = 0
    lng = 0
    length = len(encoded)

    while index < length:
        deltas = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(encoded[index]) - 63
                index += 1
                result |= (b & 0x1F) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if result & 1 else result >> 1)
        lat += deltas[0]
        lng += deltas[1]
        points.append(GeoPoint(lat=lat / 1e5, lng=lng / 1e5))

    return points


def encode_simple_polyline(points: Iterable[GeoPoint]) -> str:
    """'lat,lng|lat,lng' with 6 decimals, used for estimated routes."""
    return "|".join(f"{p.lat:.6f},{p.lng:.6f}" for p in points)


def decode_simple_polyline(encoded: str) -> List[GeoPoint]:
    points = []
    for pair in filter(None, encoded.split("|")):
        lat, lng = pair.split(",")
        points.append(GeoPoint(lat=float(lat), lng=float(lng)))
    return points


# (upper bound km, mode, reason, confidence)
_MODE_THRESHOLDS = [
    (1, TransportMode.WALKING, "Very short distance, perfect for walking", 0.95),
    (3, TransportMode.CYCLING, "Short distance, ideal for cycling", 0.85),
    (5, TransportMode.CYCLING, "Moderate distance, cycling or walking recommended", 0.75),
    (15, TransportMode.DRIVING, "Medium distance, driving or transit recommended", 0.80),
    (30, TransportMode.DRIVING, "Considerable distance, driving recommended", 0.85),
    (300, TransportMode.DRIVING, "Long distance, road trip suitable", 0.90),
    (1000, TransportMode.FLIGHT, "Very long distance, consider flying", 0.85),
]


def recommend_mode(distance: float) -> ModeRecommendation:
    """Pick a sensible transport mode for a straight-line distance in km."""
    for upper, mode, reason, confidence in _MODE_THRESHOLDS:
        if distance < upper:
            return ModeRecommendation(mode=mode, reason=reason, confidence=confidence)
    return ModeRecommendation(
        mode=TransportMode.FLIGHT,
        reason="Extremely long distance, flying strongly recommended",
        confidence=0.95,
    )
