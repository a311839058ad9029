import logging
from typing import List, Optional, Tuple

from ..models.geo import GeoPoint
from ..models.response import ItineraryPlan, PlannedLeg, RouteStatus
from ..models.route import (
    Route,
    RouteProvider,
    RouteRequest,
    RouteSegment,
    SegmentKind,
    Stop,
    TransportMode,
)
from .airports import AirportDirectory
from .arc import flight_curve_factor, generate_arc
from .flight import compose_flight_route
from .geo import decode_polyline, decode_simple_polyline
from .providers import new_id
from .routing import RoutingService

logger = logging.getLogger(__name__)

ARC_POINTS = 30


def route_path(route: Route) -> List[GeoPoint]:
    """Drawable coordinates for a canonical route."""
    if route.overview_polyline:
        try:
            if route.provider is RouteProvider.FALLBACK:
                return decode_simple_polyline(route.overview_polyline)
            return decode_polyline(route.overview_polyline)
        except (IndexError, ValueError) as e:
            logger.warning(f"Could not decode polyline for route {route.id}: {e}")
    return [route.start, route.end]


async def _ground_path(
    service: RoutingService,
    segment: RouteSegment,
    request_id: str,
) -> Tuple[List[GeoPoint], Optional[RouteProvider]]:
    straight = [segment.origin.location, segment.destination.location]
    if not segment.needs_realistic_rendering:
        return straight, None

    response = await service.get_route(
        RouteRequest(
            id=request_id,
            origin=segment.origin.location,
            destination=segment.destination.location,
            mode=TransportMode.DRIVING,
        )
    )
    if response.status is not RouteStatus.OK or not response.routes:
        return straight, None
    route = response.routes[0]
    return route_path(route), route.provider


async def plan_itinerary(
    service: RoutingService,
    origin: Stop,
    destination: Stop,
    mode: TransportMode,
    directory: Optional[AirportDirectory] = None,
) -> ItineraryPlan:
    """Drawable legs between two stops.

    Flights become ground -> flight -> ground; the flight leg is drawn as a
    shallow arc and the ground legs are routed as driving trips.
    """
    if mode is not TransportMode.FLIGHT:
        response = await service.get_route(
            RouteRequest(origin=origin.location, destination=destination.location, mode=mode)
        )
        if response.status is not RouteStatus.OK or not response.routes:
            return ItineraryPlan(mode=mode, legs=[], total_distance_m=0, total_duration_s=0)
        route = response.routes[0]
        leg = PlannedLeg(
            mode=mode,
            kind=SegmentKind.GROUND,
            path=route_path(route),
            distance_m=route.distance_m,
            duration_s=route.duration_s,
            provider=route.provider,
        )
        return ItineraryPlan(
            mode=mode,
            legs=[leg],
            total_distance_m=route.distance_m,
            total_duration_s=route.duration_s,
        )

    composed = compose_flight_route(origin, destination, directory)
    prefix = new_id()
    legs = []
    for n, segment in enumerate(composed.segments):
        if segment.kind is SegmentKind.FLIGHT:
            curve = flight_curve_factor(segment.distance_m / 1000)
            path = list(generate_arc(segment.origin.location, segment.destination.location, ARC_POINTS, curve))
            legs.append(
                PlannedLeg(
                    mode=TransportMode.FLIGHT,
                    kind=SegmentKind.FLIGHT,
                    path=path,
                    distance_m=segment.distance_m,
                    duration_s=segment.duration_s,
                )
            )
            continue

        path, provider = await _ground_path(service, segment, f"{prefix}_airport_car_{n}")
        legs.append(
            PlannedLeg(
                mode=TransportMode.DRIVING,
                kind=SegmentKind.GROUND,
                path=path,
                distance_m=segment.distance_m,
                duration_s=segment.duration_s,
                provider=provider,
            )
        )

    return ItineraryPlan(
        mode=mode,
        legs=legs,
        total_distance_m=composed.total_distance_m,
        total_duration_s=composed.total_duration_s,
    )
