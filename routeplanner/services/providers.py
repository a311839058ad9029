"""Routing provider adapters.

Each adapter returns its own tagged payload model; ``to_route_response``
turns any payload into the canonical RouteResponse right at the boundary.
"""
import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from uuid import uuid4

import aiohttp
from pydantic import ValidationError

from ..exceptions import (
    InvalidRequest,
    MalformedPayload,
    MissingCredential,
    NoRoutesFound,
    ProviderError,
    ServiceUnavailable,
)
from ..models.geo import Bounds, GeoPoint
from ..models.providers import FallbackEstimate, GoogleDirectionsPayload, GoogleRoute, ProviderPayload
from ..models.response import RouteResponse, RouteStatus
from ..models.route import MODE_SPEEDS_KMH, Route, RouteLeg, RouteProvider, RouteRequest, TransportMode
from .geo import distance_km, encode_simple_polyline, get_bounds

logger = logging.getLogger(__name__)

GOOGLE_DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
GOOGLE_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.5
ESTIMATE_WARNING = "This is an estimated route"

# Google calls cycling "bicycling"
_GOOGLE_MODES = {TransportMode.CYCLING: "bicycling"}


def new_id() -> str:
    return f"req_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class GoogleDirectionsProvider:
    """Google Directions API adapter (aiohttp, cancellable)."""

    name = RouteProvider.GOOGLE

    def __init__(
        self,
        api_key: Optional[str],
        endpoint: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_key = api_key
        self.endpoint = endpoint or GOOGLE_DIRECTIONS_URL
        self._session = session

    def _params(self, request: RouteRequest) -> dict:
        return {
            "origin": f"{request.origin.lat},{request.origin.lng}",
            "destination": f"{request.destination.lat},{request.destination.lng}",
            "mode": _GOOGLE_MODES.get(request.mode, request.mode.value),
            "alternatives": "true" if request.alternatives else "false",
            "key": self.api_key,
        }

    async def fetch(self, request: RouteRequest) -> GoogleDirectionsPayload:
        """Query the directions endpoint and return a validated, status-OK payload."""
        if not self.api_key:
            raise MissingCredential("No API key configured", provider=self.name.value)

        params = self._params(request)
        try:
            if self._session is not None:
                data = await self._get_json(self._session, params)
            else:
                async with aiohttp.ClientSession() as session:
                    data = await self._get_json(session, params)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ServiceUnavailable(f"Google routing failed: {e}", provider=self.name.value) from e

        try:
            payload = GoogleDirectionsPayload.model_validate(data)
        except ValidationError as e:
            raise MalformedPayload(f"Unexpected Google payload: {e}", provider=self.name.value) from e

        check_google_status(payload)
        return payload

    async def _get_json(self, session: aiohttp.ClientSession, params: dict):
        async with session.get(self.endpoint, params=params) as resp:
            if resp.status != 200:
                raise ServiceUnavailable(
                    f"Google routing failed: HTTP {resp.status}",
                    provider=self.name.value,
                    status=str(resp.status),
                )
            try:
                return await resp.json(content_type=None)
            except ValueError as e:
                raise MalformedPayload(f"Google returned invalid JSON: {e}", provider=self.name.value) from e


def check_google_status(payload: GoogleDirectionsPayload) -> None:
    """Map a non-OK Google status onto the provider error taxonomy."""
    status = payload.status
    if status == "OK" and payload.routes:
        return

    message = f"Google API error: {status}"
    if payload.error_message:
        message = f"{message} ({payload.error_message})"

    if status in ("ZERO_RESULTS", "NOT_FOUND") or status == "OK":
        raise NoRoutesFound(message, provider="google", status="ZERO_RESULTS" if status == "OK" else status)
    if status == "INVALID_REQUEST":
        raise InvalidRequest(message, provider="google", status=status)
    raise ServiceUnavailable(message, provider="google", status=status)


class FallbackEstimator:
    """Deterministic straight-line estimate; never fails."""

    name = RouteProvider.FALLBACK

    def estimate(self, request: RouteRequest) -> FallbackEstimate:
        km = distance_km(request.origin, request.destination)
        return FallbackEstimate(
            origin=request.origin,
            destination=request.destination,
            mode=request.mode,
            distance_km=km,
            duration_s=round(km / MODE_SPEEDS_KMH[request.mode] * 3600),
        )


def _box(origin: GeoPoint, destination: GeoPoint) -> Bounds:
    return get_bounds([origin, destination])


def _google_route(route: GoogleRoute, request: RouteRequest) -> Route:
    polyline = route.overview_polyline.points
    legs = [
        RouteLeg(
            id=new_id(),
            mode=request.mode,
            distance_m=leg.distance.value,
            duration_s=leg.duration.value,
            polyline=polyline,
            start=GeoPoint(lat=leg.start_location.lat, lng=leg.start_location.lng),
            end=GeoPoint(lat=leg.end_location.lat, lng=leg.end_location.lng),
            start_address=leg.start_address,
            end_address=leg.end_address,
        )
        for leg in route.legs
    ]
    if route.bounds is not None:
        bounds = Bounds(
            northeast=GeoPoint(lat=route.bounds.northeast.lat, lng=route.bounds.northeast.lng),
            southwest=GeoPoint(lat=route.bounds.southwest.lat, lng=route.bounds.southwest.lng),
        )
    else:
        bounds = _box(request.origin, request.destination)

    return Route(
        id=new_id(),
        legs=legs,
        distance_m=sum(leg.distance_m for leg in legs),
        duration_s=sum(leg.duration_s for leg in legs),
        start=request.origin,
        end=request.destination,
        bounds=bounds,
        overview_polyline=polyline,
        summary=route.summary,
        copyrights=route.copyrights,
        warnings=list(route.warnings),
        confidence=GOOGLE_CONFIDENCE,
        is_real_time=request.mode in (TransportMode.DRIVING, TransportMode.TRANSIT),
        last_updated=_now(),
        provider=RouteProvider.GOOGLE,
        attribution="© Google",
    )


def _fallback_route(estimate: FallbackEstimate, warnings: Sequence[str]) -> Route:
    polyline = encode_simple_polyline([estimate.origin, estimate.destination])
    distance_m = estimate.distance_km * 1000
    leg = RouteLeg(
        id=new_id(),
        mode=estimate.mode,
        distance_m=distance_m,
        duration_s=estimate.duration_s,
        polyline=polyline,
        start=estimate.origin,
        end=estimate.destination,
    )
    return Route(
        id=new_id(),
        legs=[leg],
        distance_m=distance_m,
        duration_s=estimate.duration_s,
        start=estimate.origin,
        end=estimate.destination,
        bounds=_box(estimate.origin, estimate.destination),
        overview_polyline=polyline,
        summary=f"{estimate.mode.value} route (estimated)",
        copyrights="Fallback routing",
        warnings=[ESTIMATE_WARNING, *warnings],
        confidence=FALLBACK_CONFIDENCE,
        is_real_time=False,
        last_updated=_now(),
        provider=RouteProvider.FALLBACK,
        attribution="Estimated routing",
    )


def to_route_response(
    payload: ProviderPayload,
    request: RouteRequest,
    request_id: str,
    warnings: Sequence[str] = (),
) -> RouteResponse:
    """Normalize any provider payload into the canonical response."""
    if isinstance(payload, GoogleDirectionsPayload):
        check_google_status(payload)
        routes: List[Route] = [_google_route(r, request) for r in payload.routes]
        return RouteResponse(
            status=RouteStatus.OK,
            routes=routes[:1],
            alternative_routes=routes[1:],
            provider=RouteProvider.GOOGLE,
            request_id=request_id,
            timestamp=_now(),
        )
    if isinstance(payload, FallbackEstimate):
        return RouteResponse(
            status=RouteStatus.OK,
            routes=[_fallback_route(payload, warnings)],
            provider=RouteProvider.FALLBACK,
            request_id=request_id,
            timestamp=_now(),
        )
    raise ProviderError(f"Unknown provider payload: {type(payload).__name__}")
