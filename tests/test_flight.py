import pytest

from routeplanner.exceptions import ConfigurationError
from routeplanner.models.geo import GeoPoint
from routeplanner.models.route import SegmentKind, Stop
from routeplanner.services.airports import AirportDirectory, load_airports
from routeplanner.services.flight import CRUISE_SPEED_KMH, GROUND_SPEED_KMH, compose_flight_route
from routeplanner.services.geo import distance_km


def _closest(directory, point):
    return min(directory, key=lambda a: distance_km(point, a.location))


def test_three_segments_in_order(directory):
    origin = Stop(name="Manhattan", location=GeoPoint(lat=40.7831, lng=-73.9712))
    destination = Stop(name="Santa Monica", location=GeoPoint(lat=34.0195, lng=-118.4912))

    route = compose_flight_route(origin, destination, directory)

    kinds = [s.kind for s in route.segments]
    assert kinds == [SegmentKind.GROUND, SegmentKind.FLIGHT, SegmentKind.GROUND]
    first, flight, last = route.segments
    assert first.origin.name == "Manhattan"
    assert first.destination.airport_code == "JFK"
    assert flight.origin.airport_code == "JFK"
    assert flight.destination.airport_code == "LAX"
    assert last.origin.airport_code == "LAX"
    assert last.destination.name == "Santa Monica"
    assert [s.needs_realistic_rendering for s in route.segments] == [True, False, True]


def test_totals_are_segment_sums(directory):
    origin = Stop(name="A", location=GeoPoint(lat=40.7831, lng=-73.9712))
    destination = Stop(name="B", location=GeoPoint(lat=-33.8688, lng=151.2093))

    route = compose_flight_route(origin, destination, directory)

    assert route.total_distance_m == sum(s.distance_m for s in route.segments)
    assert route.total_duration_s == sum(s.duration_s for s in route.segments)


def test_segment_estimates_use_fixed_speeds(directory):
    origin = Stop(name="A", location=GeoPoint(lat=40.7831, lng=-73.9712))
    destination = Stop(name="B", location=GeoPoint(lat=34.0195, lng=-118.4912))

    ground, flight, _ = compose_flight_route(origin, destination, directory).segments

    ground_km = distance_km(ground.origin.location, ground.destination.location)
    flight_km = distance_km(flight.origin.location, flight.destination.location)
    assert ground.duration_s == round(ground_km / GROUND_SPEED_KMH * 3600)
    assert flight.duration_s == round(flight_km / CRUISE_SPEED_KMH * 3600)


def test_tokyo_to_sydney_with_bundled_airports():
    airports = load_airports()
    origin = Stop(name="Origin", location=GeoPoint(lat=35.0, lng=139.0))
    destination = Stop(name="Destination", location=GeoPoint(lat=34.0, lng=151.0))

    route = compose_flight_route(origin, destination, airports)

    departure = _closest(airports, origin.location)
    arrival = _closest(airports, destination.location)
    flight = route.segments[1]
    assert flight.origin.airport_code == departure.code
    assert flight.destination.airport_code == arrival.code
    assert flight.distance_m == round(distance_km(departure.location, arrival.location) * 1000)


def test_same_airport_still_has_three_segments(directory):
    origin = Stop(name="Queens", location=GeoPoint(lat=40.70, lng=-73.80))
    destination = Stop(name="Brooklyn", location=GeoPoint(lat=40.65, lng=-73.95))

    route = compose_flight_route(origin, destination, directory)

    assert len(route.segments) == 3
    flight = route.segments[1]
    assert flight.origin.airport_code == flight.destination.airport_code == "JFK"
    assert flight.distance_m == 0
    assert flight.duration_s == 0


def test_stop_on_airport_gives_zero_ground_leg(directory):
    origin = Stop(name="JFK", location=GeoPoint(lat=40.6413, lng=-73.7781))
    destination = Stop(name="LAX", location=GeoPoint(lat=33.9416, lng=-118.4085))

    first, _, last = compose_flight_route(origin, destination, directory).segments

    assert first.distance_m == 0
    assert last.distance_m == 0


def test_empty_directory_is_a_configuration_error():
    stop = Stop(name="A", location=GeoPoint(lat=0, lng=0))
    with pytest.raises(ConfigurationError):
        compose_flight_route(stop, stop, AirportDirectory([]))
