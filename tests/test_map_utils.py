"""Tests for the folium map builders."""

import folium

from map_utils import create_generation_map, create_race_map
from models import GeneratedRoute, PositionFix


def _route(difficulty="hard", waypoints=None):
    return GeneratedRoute(
        name="Harbor Sprint 7",
        description="A hard 6.1km route.",
        start=(59.33, 18.06),
        end=(59.36, 18.10),
        distance=6.1,
        estimated_time=700,
        difficulty_level=difficulty,
        tags=["auto-generated"],
        waypoints=waypoints,
    )


def _children(m, kind):
    return [child for child in m._children.values() if type(child) is kind]


class TestRaceMap:

    def test_start_and_finish_markers(self, race_target):
        m = create_race_map(race_target)

        assert isinstance(m, folium.Map)
        assert len(_children(m, folium.Marker)) == 2
        assert not _children(m, folium.CircleMarker)
        locations = [marker.location for marker in _children(m, folium.Marker)]
        assert locations == [[0.0, 0.0], [0.0, 0.045]]

    def test_position_is_drawn_and_included_in_bounds(self, race_target):
        m = create_race_map(race_target, PositionFix(-0.01, 0.02))

        markers = _children(m, folium.CircleMarker)
        assert len(markers) == 1
        assert markers[0].location == [-0.01, 0.02]
        assert "fitBounds" in m.get_root().render()


class TestGenerationMap:

    def test_area_and_routes(self):
        routes = [_route(), _route("easy", waypoints=[(59.33, 18.06), (59.34, 18.08), (59.36, 18.10)])]
        m = create_generation_map((59.33, 18.06), 5.0, routes)

        circles = _children(m, folium.Circle)
        assert len(circles) == 1
        assert circles[0].options["radius"] == 5000

        lines = _children(m, folium.PolyLine)
        assert len(lines) == 2
        assert lines[0].options["color"] == "red"
        assert lines[1].options["color"] == "green"
        assert len(lines[1].locations) == 3

    def test_without_routes(self):
        m = create_generation_map((59.33, 18.06), 2.0)
        assert not _children(m, folium.PolyLine)
        assert len(_children(m, folium.Marker)) == 1
