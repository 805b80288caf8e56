"""
Hjälpfunktioner: geoprimitiver, formatering och GPX-export
"""

import math
import random
import gpxpy
import gpxpy.gpx
from typing import Optional
from config import EARTH_RADIUS_KM, KM_PER_DEGREE
from models import GeneratedRoute, LatLon


def distance_km(point1: LatLon, point2: LatLon) -> float:
    """
    Storcirkelavstånd mellan två punkter (Haversine formula)

    Args:
        point1: (lat, lon) i grader
        point2: (lat, lon) i grader

    Returns:
        Avstånd i kilometer
    """
    lat1, lon1 = math.radians(point1[0]), math.radians(point1[1])
    lat2, lon2 = math.radians(point2[0]), math.radians(point2[1])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    # Avrundningsfel kan ge a något över 1 för antipodala punkter
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def random_point_in_disc(
    center: LatLon,
    radius_km: float,
    rng: Optional[random.Random] = None
) -> LatLon:
    """
    Slumpa en punkt inom radius_km från center

    Radien dras linjärt (inte med roten ur), så punkterna hamnar oftare
    nära centrum. Grader räknas om med ~111 km per grad åt båda hållen.

    Args:
        center: Centrum (lat, lon)
        radius_km: Radie i km
        rng: Slumpkälla, modulens random om None

    Returns:
        (lat, lon)
    """
    rng = rng or random
    radius_degrees = radius_km / KM_PER_DEGREE

    angle = rng.random() * 2 * math.pi
    distance = rng.random() * radius_degrees

    lat = center[0] + distance * math.cos(angle)
    lon = center[1] + distance * math.sin(angle)

    return (lat, lon)


def create_gpx(route: GeneratedRoute) -> str:
    """
    Skapa GPX-fil från en genererad rutt

    Args:
        route: GeneratedRoute

    Returns:
        GPX som sträng
    """
    gpx = gpxpy.gpx.GPX()

    gpx.creator = "Segmentor"
    gpx.description = route.description

    gpx_track = gpxpy.gpx.GPXTrack()
    gpx_track.name = route.name
    gpx_track.type = route.difficulty_level
    gpx_track.description = ", ".join(route.tags)
    gpx.tracks.append(gpx_track)

    gpx_segment = gpxpy.gpx.GPXTrackSegment()
    gpx_track.segments.append(gpx_segment)

    # Utan vägsnappning finns bara start och mål
    points = route.waypoints or [route.start, route.end]
    for lat, lon in points:
        gpx_segment.points.append(gpxpy.gpx.GPXTrackPoint(lat, lon))

    return gpx.to_xml()


def format_time(minutes: float) -> str:
    """
    Formatera tid från minuter till sträng

    Args:
        minutes: Antal minuter

    Returns:
        Formaterad tidssträng (HH:MM:SS eller MM:SS)
    """
    hours = int(minutes // 60)
    mins = int(minutes % 60)
    secs = int((minutes * 60) % 60)

    if hours > 0:
        return f"{hours:02d}:{mins:02d}:{secs:02d}"
    else:
        return f"{mins:02d}:{secs:02d}"


def format_race_time(seconds: float) -> str:
    """Formatera lopptid som M:SS.cc"""
    total_ms = int(max(0.0, seconds) * 1000)
    minutes = total_ms // 60000
    secs = (total_ms % 60000) // 1000
    centis = (total_ms % 1000) // 10
    return f"{minutes}:{secs:02d}.{centis:02d}"


def calculate_bearing(point1: LatLon, point2: LatLon) -> float:
    """
    Beräkna bäring mellan två punkter

    Args:
        point1: Startpunkt (lat, lon)
        point2: Slutpunkt (lat, lon)

    Returns:
        Bäring i grader (0-360)
    """
    lat1, lon1 = math.radians(point1[0]), math.radians(point1[1])
    lat2, lon2 = math.radians(point2[0]), math.radians(point2[1])

    dlon = lon2 - lon1

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)

    bearing = math.atan2(y, x)
    bearing = math.degrees(bearing)
    bearing = (bearing + 360) % 360

    return bearing


def get_compass_direction(bearing: float) -> str:
    """
    Konvertera bäring till kompassriktning

    Args:
        bearing: Bäring i grader

    Returns:
        Kompassriktning (N, NE, E, etc.)
    """
    directions = ["N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
                  "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW"]
    index = int((bearing + 11.25) / 22.5) % 16
    return directions[index]


def validate_coordinates(lat: float, lon: float) -> bool:
    """
    Validera att koordinater är giltiga

    Args:
        lat: Latitud
        lon: Longitud

    Returns:
        True om koordinaterna är giltiga
    """
    return -90 <= lat <= 90 and -180 <= lon <= 180
