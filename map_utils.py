"""
Kartfunktioner för visualisering
"""

import folium
from typing import List, Optional
from models import GeneratedRoute, LatLon, PositionFix, RaceTarget

ROUTE_COLORS = {
    "easy": "green",
    "medium": "orange",
    "hard": "red"
}


def _fit(m: folium.Map, coords: List[LatLon]) -> None:
    # Anpassa zoom för att visa alla punkter
    if len(coords) > 1:
        bounds = [[min(p[0] for p in coords), min(p[1] for p in coords)],
                  [max(p[0] for p in coords), max(p[1] for p in coords)]]
        m.fit_bounds(bounds)


def create_generation_map(
    center: LatLon,
    radius_km: float,
    routes: Optional[List[GeneratedRoute]] = None
) -> folium.Map:
    """
    Skapa karta över genereringsområdet och genererade rutter

    Args:
        center: Genereringscentrum (lat, lon)
        radius_km: Radie för området
        routes: Genererade rutter att rita ut

    Returns:
        Folium Map-objekt
    """
    m = folium.Map(
        location=list(center),
        zoom_start=12,
        control_scale=True
    )

    folium.Marker(
        center,
        popup="Genereringscentrum",
        icon=folium.Icon(color="blue", icon="crosshairs", prefix="fa")
    ).add_to(m)

    folium.Circle(
        center,
        radius=radius_km * 1000,
        color="blue",
        fill=True,
        fill_opacity=0.05
    ).add_to(m)

    for route in routes or []:
        color = ROUTE_COLORS.get(route.difficulty_level, "blue")
        coords = route.waypoints or [route.start, route.end]
        folium.PolyLine(
            coords,
            color=color,
            weight=4,
            opacity=0.8,
            dash_array=None if route.waypoints else "8",
            popup=f"{route.name}: {route.distance:.2f} km"
        ).add_to(m)
        folium.CircleMarker(route.start, radius=5, color=color, fill=True, popup="Start").add_to(m)

    return m


def create_race_map(target: RaceTarget, position: Optional[PositionFix] = None) -> folium.Map:
    """
    Skapa karta för ett lopp med start, mål och aktuell position

    Args:
        target: Rutten som körs
        position: Senaste GPS-position

    Returns:
        Folium Map-objekt
    """
    m = folium.Map(
        location=list(target.start),
        zoom_start=14,
        control_scale=True
    )

    folium.Marker(
        target.start,
        popup="Start",
        icon=folium.Icon(color="green", icon="play")
    ).add_to(m)

    folium.Marker(
        target.end,
        popup="Mål",
        icon=folium.Icon(color="red", icon="stop")
    ).add_to(m)

    coords = [target.start, target.end]
    if position:
        folium.CircleMarker(
            position.as_tuple(),
            radius=8,
            color="blue",
            fill=True,
            fill_opacity=0.9,
            popup="Du"
        ).add_to(m)
        coords.append(position.as_tuple())

    _fit(m, coords)
    return m
