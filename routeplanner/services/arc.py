import math
from typing import Tuple

from ..exceptions import DegenerateInputError
from ..models.geo import GeoPoint

# acos loses precision near 1; below this (~0.6m) points count as coincident
_MIN_ANGLE = 1e-7


def flight_curve_factor(distance: float) -> float:
    """Curve factor for rendering a flight of ``distance`` km; longer flights bend a little more."""
    return min(0.005, distance / 1000 * 0.02)


def generate_arc(
    p1: GeoPoint,
    p2: GeoPoint,
    num_points: int = 30,
    curve_factor: float = 0.3,
    strict: bool = False,
) -> Tuple[GeoPoint, ...]:
    """Points along the great circle from p1 to p2 with an eased spacing.

    Returns ``num_points + 1`` points. Each fraction f is shifted by
    ``sin(f*pi) * curve_factor * 0.1`` (clamped to [0, 1]) before the usual
    spherical interpolation; curve_factor=0 gives the plain geodesic.

    Coincident points have no defined arc: the start point is repeated, or
    DegenerateInputError is raised when ``strict`` is set.
    """
    if num_points < 1:
        raise ValueError("num_points must be at least 1")

    φ1, λ1, φ2, λ2 = map(math.radians, [p1.lat, p1.lng, p2.lat, p2.lng])
    cos_δ = math.sin(φ1) * math.sin(φ2) + math.cos(φ1) * math.cos(φ2) * math.cos(λ2 - λ1)
    δ = math.acos(max(-1.0, min(1.0, cos_δ)))
    if δ < _MIN_ANGLE:
        if strict:
            raise DegenerateInputError(f"Cannot build an arc between coincident points {p1}")
        return tuple(p1 for _ in range(num_points + 1))
    if math.pi - δ < _MIN_ANGLE:
        raise DegenerateInputError(f"No unique great circle between antipodal points {p1} and {p2}")

    sin_δ = math.sin(δ)

    points = []
    for i in range(num_points + 1):
        f = i / num_points
        f = min(max(f + math.sin(f * math.pi) * curve_factor * 0.1, 0.0), 1.0)
        A = math.sin((1 - f) * δ) / sin_δ
        B = math.sin(f * δ) / sin_δ
        x = A * math.cos(φ1) * math.cos(λ1) + B * math.cos(φ2) * math.cos(λ2)
        y = A * math.cos(φ1) * math.sin(λ1) + B * math.cos(φ2) * math.sin(λ2)
        z = A * math.sin(φ1) + B * math.sin(φ2)
        φ = math.atan2(z, math.sqrt(x * x + y * y))
        λ = math.atan2(y, x)
        points.append(GeoPoint(lat=math.degrees(φ), lng=math.degrees(λ)))
    return tuple(points)
