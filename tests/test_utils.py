"""Tests for geo primitives, formatting and GPX export."""

import math
import random

import gpxpy
import pytest

from models import GeneratedRoute
from utils import (
    calculate_bearing,
    create_gpx,
    distance_km,
    format_race_time,
    format_time,
    get_compass_direction,
    random_point_in_disc,
    validate_coordinates,
)


POINTS = [
    (0.0, 0.0),
    (59.3293, 18.0686),
    (40.7128, -74.0060),
    (-33.8688, 151.2093),
    (89.9, 179.9),
]


class TestDistanceKm:

    @pytest.mark.parametrize("point", POINTS)
    def test_same_point_is_zero(self, point):
        assert distance_km(point, point) == 0

    def test_symmetric_and_non_negative(self):
        for a in POINTS:
            for b in POINTS:
                assert distance_km(a, b) >= 0
                assert distance_km(a, b) == pytest.approx(distance_km(b, a))

    def test_equator_five_km(self):
        """0.045 degrees of longitude at the equator is about 5 km."""
        assert distance_km((0.0, 0.0), (0.0, 0.045)) == pytest.approx(5.0, abs=0.01)

    def test_known_city_distance(self):
        """London to Paris is roughly 344 km."""
        assert distance_km((51.5074, -0.1278), (48.8566, 2.3522)) == pytest.approx(344, abs=2)

    def test_antipodal_points(self):
        assert distance_km((0.0, 0.0), (0.0, 180.0)) == pytest.approx(math.pi * 6371, rel=1e-9)


class TestRandomPointInDisc:

    def test_points_stay_within_radius_in_degrees(self):
        rng = random.Random(1)
        center = (59.3293, 18.0686)
        for _ in range(500):
            lat, lon = random_point_in_disc(center, 5.0, rng)
            offset = math.hypot(lat - center[0], lon - center[1])
            assert offset <= 5.0 / 111 + 1e-12

    def test_linear_radius_sampling(self):
        """Radius fraction equals the second random draw (no square root)."""
        class Draws:
            def __init__(self, values):
                self.values = iter(values)

            def random(self):
                return next(self.values)

        lat, lon = random_point_in_disc((10.0, 20.0), 11.1, Draws([0.0, 0.25]))
        assert lat == pytest.approx(10.0 + 0.025)
        assert lon == pytest.approx(20.0)

    def test_seeded_rng_is_reproducible(self):
        a = random_point_in_disc((0, 0), 3.0, random.Random(7))
        b = random_point_in_disc((0, 0), 3.0, random.Random(7))
        assert a == b


class TestFormatting:

    def test_format_time_minutes(self):
        assert format_time(5.5) == "05:30"

    def test_format_time_hours(self):
        assert format_time(125.25) == "02:05:15"

    def test_format_race_time(self):
        assert format_race_time(75.5) == "1:15.50"

    def test_format_race_time_negative_clamps(self):
        assert format_race_time(-3) == "0:00.00"


class TestBearing:

    def test_east(self):
        bearing = calculate_bearing((0.0, 0.0), (0.0, 1.0))
        assert bearing == pytest.approx(90.0)
        assert get_compass_direction(bearing) == "E"

    def test_north(self):
        assert get_compass_direction(calculate_bearing((0.0, 0.0), (1.0, 0.0))) == "N"


def test_validate_coordinates():
    assert validate_coordinates(59.3, 18.0)
    assert not validate_coordinates(91.0, 0.0)
    assert not validate_coordinates(0.0, -181.0)


class TestCreateGpx:

    def _route(self, waypoints=None):
        return GeneratedRoute(
            name="Harbor Loop Tour 12",
            description="A medium 5.0km route.",
            start=(59.0, 18.0),
            end=(59.03, 18.02),
            distance=5.0,
            estimated_time=900,
            difficulty_level="medium",
            tags=["auto-generated", "road-route", "urban"],
            waypoints=waypoints,
        )

    def test_exports_waypoints(self):
        waypoints = [(59.0, 18.0), (59.01, 18.01), (59.03, 18.02)]
        gpx = gpxpy.parse(create_gpx(self._route(waypoints)))
        points = gpx.tracks[0].segments[0].points
        assert [(p.latitude, p.longitude) for p in points] == waypoints
        assert gpx.tracks[0].name == "Harbor Loop Tour 12"

    def test_falls_back_to_start_and_end(self):
        gpx = gpxpy.parse(create_gpx(self._route()))
        assert len(gpx.tracks[0].segments[0].points) == 2
