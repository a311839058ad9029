import logging
from typing import Optional

from ..models.airport import Airport
from ..models.route import ComposedRoute, RouteSegment, SegmentKind, Stop, Waypoint
from .airports import AirportDirectory, nearest_airport
from .geo import distance_km

logger = logging.getLogger(__name__)

GROUND_SPEED_KMH = 50.0
CRUISE_SPEED_KMH = 800.0


def _airport_waypoint(airport: Airport) -> Waypoint:
    return Waypoint(name=airport.name, location=airport.location, airport_code=airport.code)


def _segment(kind: SegmentKind, origin: Waypoint, destination: Waypoint) -> RouteSegment:
    km = distance_km(origin.location, destination.location)
    speed = CRUISE_SPEED_KMH if kind is SegmentKind.FLIGHT else GROUND_SPEED_KMH
    return RouteSegment(
        kind=kind,
        origin=origin,
        destination=destination,
        distance_m=round(km * 1000),
        duration_s=round(km / speed * 3600),
        needs_realistic_rendering=kind is SegmentKind.GROUND,
    )


def compose_flight_route(
    origin: Stop,
    destination: Stop,
    directory: Optional[AirportDirectory] = None,
) -> ComposedRoute:
    """Stop -> nearest airport (ground), airport -> airport (flight), airport -> stop (ground).

    All three segments are always emitted, even when a stop sits on its
    airport or both stops share the same airport.
    """
    departure = nearest_airport(origin.location, directory)
    arrival = nearest_airport(destination.location, directory)

    logger.info(
        f"Flight route: {origin.name} -> {departure.code}, "
        f"{departure.code} -> {arrival.code}, {arrival.code} -> {destination.name}"
    )

    start = Waypoint(name=origin.name, location=origin.location)
    end = Waypoint(name=destination.name, location=destination.location)
    segments = [
        _segment(SegmentKind.GROUND, start, _airport_waypoint(departure)),
        _segment(SegmentKind.FLIGHT, _airport_waypoint(departure), _airport_waypoint(arrival)),
        _segment(SegmentKind.GROUND, _airport_waypoint(arrival), end),
    ]

    total_distance = sum(s.distance_m for s in segments)
    total_duration = sum(s.duration_s for s in segments)
    logger.debug(f"Total: {total_distance / 1000:.1f}km, {round(total_duration / 60)}min")

    return ComposedRoute(
        segments=segments,
        total_distance_m=total_distance,
        total_duration_s=total_duration,
    )
