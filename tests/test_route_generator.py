"""Tests for route generation along roads and the offline straight-line variant."""

import asyncio
import random

import pytest

from conftest import FailingDirections, FakeDirections
from models import DirectionsStatus, RouteGenerationParams
from route_generator import (
    RouteGenerator,
    determine_difficulty,
    generate_route_description,
    generate_route_name,
    generate_tags,
)
from routing import RoadSnapper


def _params(**overrides) -> RouteGenerationParams:
    values = dict(
        count=5,
        center_lat=59.3293,
        center_lng=18.0686,
        radius_km=5.0,
        min_distance_km=2.0,
        max_distance_km=8.0,
    )
    values.update(overrides)
    return RouteGenerationParams(**values)


def _generator(directions, seed=42) -> RouteGenerator:
    rng = random.Random(seed)
    return RouteGenerator(RoadSnapper(directions, rng=rng), rng=rng)


class TestDifficulty:

    @pytest.mark.parametrize("distance,expected", [
        (0.5, "easy"),
        (2.5, "easy"),
        (2.99, "easy"),
        (3.0, "medium"),
        (5.0, "medium"),
        (6.99, "medium"),
        (7.0, "hard"),
        (9.0, "hard"),
    ])
    def test_thresholds(self, distance, expected):
        assert determine_difficulty(distance) == expected


class TestNaming:

    def test_name_has_prefix_suffix_and_number(self):
        name = generate_route_name(random.Random(3))
        number = int(name.rsplit(" ", 1)[1])
        assert 1 <= number <= 99
        assert len(name.split(" ")) >= 3

    def test_description_embeds_distance_and_difficulty(self):
        description = generate_route_description(4.567, "medium", random.Random(0))
        assert "4.6km" in description
        assert "medium" in description


class TestTags:

    def test_easy_sprint(self):
        tags = generate_tags("easy", 1.5, random.Random(0))
        assert tags[:4] == ["auto-generated", "road-route", "beginner-friendly", "sprint"]
        assert tags[4] in {"urban", "scenic", "training", "competitive"}

    def test_hard_endurance(self):
        tags = generate_tags("hard", 9.0, random.Random(0))
        assert "challenging" in tags
        assert "endurance" in tags

    def test_medium_has_no_difficulty_or_distance_tag(self):
        tags = generate_tags("medium", 5.0, random.Random(0))
        assert len(tags) == 3

    def test_straight_line_marker(self):
        tags = generate_tags("medium", 5.0, random.Random(0), road=False)
        assert "straight-line" in tags
        assert "road-route" not in tags


class TestParamsValidation:

    @pytest.mark.parametrize("overrides", [
        {"count": 0},
        {"radius_km": 0},
        {"min_distance_km": -1},
        {"min_distance_km": 9.0, "max_distance_km": 8.0},
    ])
    def test_invalid_params_raise(self, overrides):
        with pytest.raises(ValueError):
            _params(**overrides).validate()


class TestGenerateRoutes:

    def test_routes_respect_distance_bounds(self, fake_directions):
        params = _params()
        routes = asyncio.run(_generator(fake_directions).generate_routes(params))

        assert 1 <= len(routes) <= 5
        for route in routes:
            assert params.min_distance_km <= route.distance <= params.max_distance_km
            assert route.difficulty_level == determine_difficulty(route.distance)
            assert route.is_public is True
            assert route.tags[:2] == ["auto-generated", "road-route"]
            assert route.waypoints == [route.start, route.end]
            assert route.distance == round(route.distance, 2)

    def test_estimated_time_comes_from_road_duration(self, fake_directions):
        routes = asyncio.run(_generator(fake_directions).generate_routes(_params(count=1)))
        route = routes[0]
        # FakeDirections reports 10 m/s
        assert route.estimated_time == pytest.approx(route.distance * 100, abs=1.0)

    def test_unsatisfiable_bounds_give_empty_result(self, fake_directions):
        params = _params(count=2, radius_km=1.0, min_distance_km=50.0, max_distance_km=60.0)
        routes = asyncio.run(_generator(fake_directions).generate_routes(params))

        assert routes == []
        # 2 routes x 10 attempts x (1 start snap + 8 x (end snap + road route))
        assert len(fake_directions.calls) == 2 * 10 * 17

    def test_no_route_found_never_raises(self):
        directions = FakeDirections(status=DirectionsStatus.ZERO_RESULTS)
        assert asyncio.run(_generator(directions).generate_routes(_params())) == []

    def test_service_errors_are_contained(self):
        directions = FailingDirections()
        routes = asyncio.run(_generator(directions).generate_routes(_params(count=3)))

        assert routes == []
        # Snapping swallows the error, road_route raises once per attempt
        assert directions.calls == 3 * 10 * 3

    def test_requires_snapper(self):
        with pytest.raises(ValueError):
            asyncio.run(RouteGenerator(None).generate_routes(_params()))

    def test_rows_for_backend(self, fake_directions):
        route = asyncio.run(_generator(fake_directions).generate_routes(_params(count=1)))[0]
        row = route.to_row("user-9")

        assert row["user_id"] == "user-9"
        assert row["start_lat"] == route.start[0]
        assert row["end_lng"] == route.end[1]
        assert row["waypoints"][0] == {"lat": route.start[0], "lng": route.start[1]}
        assert isinstance(row["estimated_time"], int)


class TestGenerateStraightRoutes:

    def test_bounds_and_estimated_time(self):
        params = _params()
        routes = RouteGenerator(None, rng=random.Random(5)).generate_straight_routes(params)

        assert 1 <= len(routes) <= 5
        for route in routes:
            assert params.min_distance_km <= route.distance <= params.max_distance_km
            base = route.distance * 300
            assert base <= route.estimated_time < base + 300
            assert route.waypoints is None
            assert "straight-line" in route.tags

    def test_unsatisfiable_bounds(self):
        params = _params(radius_km=0.5, min_distance_km=20.0, max_distance_km=30.0)
        assert RouteGenerator(None, rng=random.Random(5)).generate_straight_routes(params) == []
