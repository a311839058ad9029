import asyncio

import pytest

from routeplanner.models.airport import Airport
from routeplanner.models.config import (
    CachingConfig,
    FallbackBehavior,
    ProviderConfig,
    RoutingConfig,
)
from routeplanner.models.geo import GeoPoint
from routeplanner.models.providers import (
    GoogleDirectionsPayload,
    GoogleLatLng,
    GoogleLeg,
    GooglePolyline,
    GoogleRoute,
    GoogleValue,
)
from routeplanner.models.route import RouteProvider, RouteRequest, TransportMode
from routeplanner.services.airports import AirportDirectory
from routeplanner.services.cache import RouteCache
from routeplanner.services.routing import RoutingService

# Decodes to (38.5, -120.2), (40.7, -120.95), (43.252, -126.453)
SAMPLE_POLYLINE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


def google_payload(routes=1, distance=12000, duration=900):
    route = GoogleRoute(
        summary="I-5 N",
        copyrights="Map data ©2024 Google",
        overview_polyline=GooglePolyline(points=SAMPLE_POLYLINE),
        legs=[
            GoogleLeg(
                distance=GoogleValue(value=distance, text="12 km"),
                duration=GoogleValue(value=duration, text="15 mins"),
                start_location=GoogleLatLng(lat=38.5, lng=-120.2),
                end_location=GoogleLatLng(lat=43.252, lng=-126.453),
            )
        ],
    )
    return GoogleDirectionsPayload(status="OK", routes=[route] * routes)


class FakeProvider:
    """Stands in for the Google adapter.

    ``errors`` are raised one per call before the payload is returned;
    ``delays`` are slept one per call (the last value repeats).
    """

    name = RouteProvider.GOOGLE

    def __init__(self, payload=None, errors=(), delays=(0,)):
        self.payload = payload or google_payload()
        self.errors = list(errors)
        self.delays = list(delays)
        self.calls = 0
        self.cancelled = 0

    async def fetch(self, request: RouteRequest) -> GoogleDirectionsPayload:
        self.calls += 1
        delay = self.delays.pop(0) if len(self.delays) > 1 else self.delays[0]
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        if self.errors:
            raise self.errors.pop(0)
        return self.payload


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_config(max_retries=0, timeout_ms=1000, fallback=True, caching=True, api_key="test-key"):
    return RoutingConfig(
        providers={RouteProvider.GOOGLE: ProviderConfig(api_key=api_key)},
        fallback_behavior=FallbackBehavior(
            max_retries=max_retries,
            timeout_ms=timeout_ms,
            fallback_to_offline=fallback,
        ),
        caching=CachingConfig(enabled=caching),
    )


def make_service(provider=None, cache=None, **config_kwargs) -> RoutingService:
    return RoutingService(
        config=make_config(**config_kwargs),
        cache=cache,
        provider=provider if provider is not None else FakeProvider(),
        retry_backoff=0,
    )


def route_request(mode=TransportMode.DRIVING, request_id=None) -> RouteRequest:
    return RouteRequest(
        id=request_id,
        origin=GeoPoint(lat=40.7128, lng=-74.0060),
        destination=GeoPoint(lat=40.7580, lng=-73.9855),
        mode=mode,
    )


def _airport(code, name, city, country, lat, lng):
    return Airport(code=code, name=name, city=city, country=country, location=GeoPoint(lat=lat, lng=lng))


@pytest.fixture
def directory():
    return AirportDirectory([
        _airport("JFK", "John F. Kennedy International Airport", "New York", "USA", 40.6413, -73.7781),
        _airport("LAX", "Los Angeles International Airport", "Los Angeles", "USA", 33.9416, -118.4085),
        _airport("HND", "Tokyo Haneda Airport", "Tokyo", "Japan", 35.5494, 139.7798),
        _airport("NRT", "Narita International Airport", "Tokyo", "Japan", 35.7647, 140.3863),
        _airport("SYD", "Sydney Kingsford Smith Airport", "Sydney", "Australia", -33.9399, 151.1753),
    ])


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return RouteCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def service(provider, cache):
    return make_service(provider=provider, cache=cache)

