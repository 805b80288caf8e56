"""
Ruttgenerator: slumpar start/mål inom ett område och behåller rutter inom distansintervallet
"""

import logging
import random
from typing import List, Optional

from config import (
    MAX_GENERATION_ATTEMPTS,
    MAX_END_POINT_ATTEMPTS,
    MAX_STRAIGHT_ATTEMPTS,
    MAX_STRAIGHT_END_POINT_ATTEMPTS,
    STRAIGHT_SECONDS_PER_KM,
    STRAIGHT_TIME_JITTER_SECONDS,
    EASY_MAX_KM,
    MEDIUM_MAX_KM,
    SPRINT_MAX_KM,
    ENDURANCE_MIN_KM,
    ROUTE_PREFIXES,
    ROUTE_SUFFIXES,
    ROUTE_DESCRIPTIONS,
    THEME_TAGS
)
from models import GeneratedRoute, RouteGenerationParams, RoadRouteResult
from routing import RoadSnapper
from utils import distance_km, random_point_in_disc

logger = logging.getLogger(__name__)


def determine_difficulty(distance: float) -> str:
    """Svårighetsgrad utifrån distans i km"""
    if distance < EASY_MAX_KM:
        return "easy"
    if distance < MEDIUM_MAX_KM:
        return "medium"
    return "hard"


def generate_route_name(rng: random.Random) -> str:
    prefix = rng.choice(ROUTE_PREFIXES)
    suffix = rng.choice(ROUTE_SUFFIXES)
    number = rng.randint(1, 99)
    return f"{prefix} {suffix} {number}"


def generate_route_description(distance: float, difficulty: str, rng: random.Random) -> str:
    template = rng.choice(ROUTE_DESCRIPTIONS)
    return template.format(distance=distance, difficulty=difficulty)


def generate_tags(difficulty: str, distance: float, rng: random.Random, road: bool = True) -> List[str]:
    """
    Taggar för en genererad rutt

    Args:
        difficulty: "easy", "medium" eller "hard"
        distance: Distans i km
        rng: Slumpkälla för tematagg
        road: False för rutter utan vägsnappning

    Returns:
        Lista med taggar
    """
    tags = ["auto-generated", "road-route" if road else "straight-line"]

    if difficulty == "easy":
        tags.append("beginner-friendly")
    elif difficulty == "hard":
        tags.append("challenging")

    if distance < SPRINT_MAX_KM:
        tags.append("sprint")
    elif distance > ENDURANCE_MIN_KM:
        tags.append("endurance")

    tags.append(rng.choice(THEME_TAGS))
    return tags


class RouteGenerator:
    """Genererar rutter längs vägnätet runt ett centrum"""

    def __init__(self, snapper: Optional[RoadSnapper], rng: Optional[random.Random] = None):
        self.snapper = snapper
        self.rng = rng or random.Random()

    async def generate_routes(self, params: RouteGenerationParams) -> List[GeneratedRoute]:
        """
        Generera upp till params.count rutter som följer vägar

        Rutter som inte hittas inom försöksgränserna hoppas över, så listan
        kan bli kortare än params.count. Fel från vägtjänsten avbryter bara
        det aktuella försöket.

        Args:
            params: RouteGenerationParams

        Returns:
            Lista med GeneratedRoute
        """
        params.validate()
        if self.snapper is None:
            raise ValueError("Vägsnappning kräver en vägbeskrivningstjänst")

        routes = []
        for index in range(params.count):
            route = None
            for attempt in range(MAX_GENERATION_ATTEMPTS):
                try:
                    route = await self._try_road_route(params)
                except Exception as e:
                    logger.warning(f"Rutt {index + 1}, försök {attempt + 1} misslyckades: {e}")
                    continue
                if route:
                    break

            if route:
                routes.append(route)
            else:
                logger.info(f"Rutt {index + 1} hoppades över efter {MAX_GENERATION_ATTEMPTS} försök")

        logger.info(f"Genererade {len(routes)} av {params.count} rutter")
        return routes

    async def _try_road_route(self, params: RouteGenerationParams) -> Optional[GeneratedRoute]:
        start = random_point_in_disc(params.center, params.radius_km, self.rng)
        snapped_start = await self.snapper.snap_to_road(start)

        for _ in range(MAX_END_POINT_ATTEMPTS):
            end = random_point_in_disc(params.center, params.radius_km, self.rng)
            snapped_end = await self.snapper.snap_to_road(end)
            road_route = await self.snapper.road_route(snapped_start, snapped_end)
            if road_route is None:
                continue

            distance = round(road_route.distance, 2)
            if params.accepts(distance):
                return self._build_route(snapped_start, snapped_end, distance, road_route)

        return None

    def _build_route(self, start, end, distance: float, road_route: RoadRouteResult) -> GeneratedRoute:
        difficulty = determine_difficulty(distance)
        return GeneratedRoute(
            name=generate_route_name(self.rng),
            description=generate_route_description(distance, difficulty, self.rng),
            start=start,
            end=end,
            distance=distance,
            estimated_time=road_route.duration,
            difficulty_level=difficulty,
            tags=generate_tags(difficulty, distance, self.rng),
            is_public=True,
            waypoints=road_route.waypoints
        )

    def generate_straight_routes(self, params: RouteGenerationParams) -> List[GeneratedRoute]:
        """
        Offline-variant utan vägtjänst: fågelvägen mellan två slumpade punkter

        Uppskattad tid är distance * 300 s plus slumpmässigt tillägg.
        """
        params.validate()

        routes = []
        for index in range(params.count):
            route = None
            for _ in range(MAX_STRAIGHT_ATTEMPTS):
                route = self._try_straight_route(params)
                if route:
                    break

            if route:
                routes.append(route)
            else:
                logger.info(f"Rak rutt {index + 1} hoppades över")

        return routes

    def _try_straight_route(self, params: RouteGenerationParams) -> Optional[GeneratedRoute]:
        start = random_point_in_disc(params.center, params.radius_km, self.rng)

        for _ in range(MAX_STRAIGHT_END_POINT_ATTEMPTS):
            end = random_point_in_disc(params.center, params.radius_km, self.rng)
            distance = round(distance_km(start, end), 2)
            if not params.accepts(distance):
                continue

            difficulty = determine_difficulty(distance)
            jitter = self.rng.randrange(STRAIGHT_TIME_JITTER_SECONDS)
            return GeneratedRoute(
                name=generate_route_name(self.rng),
                description=generate_route_description(distance, difficulty, self.rng),
                start=start,
                end=end,
                distance=distance,
                estimated_time=distance * STRAIGHT_SECONDS_PER_KM + jitter,
                difficulty_level=difficulty,
                tags=generate_tags(difficulty, distance, self.rng, road=False),
                is_public=True
            )

        return None
