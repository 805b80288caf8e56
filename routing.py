"""
Vägsnappning: kopplar slumpade punkter till vägnätet via en vägbeskrivningstjänst
"""

import asyncio
import logging
import random
import streamlit as st
from typing import Optional

from config import AVOID_HIGHWAYS_THRESHOLD, AVOID_TOLLS_THRESHOLD, DEFAULT_TRAVEL_MODE, SNAP_OFFSET_DEGREES
from models import LatLon, RoadRouteResult
from routing_providers import DirectionsService, GraphHopperDirections, OpenRouteServiceDirections

logger = logging.getLogger(__name__)


class RoadSnapper:
    """Adapter mot vägbeskrivningstjänsten: snappning och väg-rutter"""

    def __init__(self, directions: DirectionsService, rng: Optional[random.Random] = None):
        self.directions = directions
        self.rng = rng or random.Random()

    async def snap_to_road(self, point: LatLon) -> LatLon:
        """
        Flytta en punkt till närmaste körbara väg

        En kort rutt begärs från punkten till en närliggande punkt; tjänstens
        startposition är då den närmaste vägpunkten. Vid fel returneras
        ursprungspunkten oförändrad.

        Args:
            point: (lat, lon)

        Returns:
            Snappad (lat, lon) eller point
        """
        nearby = (point[0] + SNAP_OFFSET_DEGREES, point[1] + SNAP_OFFSET_DEGREES)
        try:
            result = await asyncio.to_thread(self.directions.route, point, nearby)
        except Exception as e:
            logger.warning(f"Snappning misslyckades för {point}: {e}")
            return point

        if not result.ok:
            logger.debug(f"Ingen väg nära {point} ({result.status.value})")
            return point
        return result.start_location

    async def road_route(self, start: LatLon, end: LatLon) -> Optional[RoadRouteResult]:
        """
        Hämta faktisk väg-rutt mellan två (snappade) punkter

        Motorvägar undviks i ~30% och avgiftsvägar i ~20% av anropen för
        att ge variation. Fel från tjänsten kastas vidare.

        Args:
            start: Startpunkt (lat, lon)
            end: Slutpunkt (lat, lon)

        Returns:
            RoadRouteResult eller None om ingen rutt finns
        """
        avoid_highways = self.rng.random() > AVOID_HIGHWAYS_THRESHOLD
        avoid_tolls = self.rng.random() > AVOID_TOLLS_THRESHOLD

        result = await asyncio.to_thread(
            self.directions.route, start, end, avoid_highways, avoid_tolls
        )
        if not result.ok:
            logger.warning(f"Ingen väg-rutt {start} -> {end}: {result.status.value}")
            return None

        return RoadRouteResult(
            distance=result.distance / 1000,
            duration=result.duration,
            waypoints=list(result.path)
        )


def get_directions_service(provider: str = "auto", mode: str = DEFAULT_TRAVEL_MODE) -> Optional[DirectionsService]:
    """
    Välj vägbeskrivningstjänst utifrån konfigurerade API-nycklar

    Args:
        provider: "auto", "graphhopper" eller "ors"
        mode: Färdsätt ("driving", "cycling", "walking")

    Returns:
        DirectionsService eller None om ingen nyckel finns
    """
    if provider == "auto":
        # Använd GraphHopper om tillgänglig, annars ORS
        if "GRAPHHOPPER_API_KEY" in st.secrets:
            provider = "graphhopper"
        elif "ORS_API_KEY" in st.secrets:
            provider = "ors"
        else:
            logger.error("Ingen API-nyckel för vägbeskrivningar konfigurerad")
            return None

    if provider == "graphhopper" and "GRAPHHOPPER_API_KEY" in st.secrets:
        return GraphHopperDirections(st.secrets["GRAPHHOPPER_API_KEY"], mode)
    if provider == "ors" and "ORS_API_KEY" in st.secrets:
        return OpenRouteServiceDirections(st.secrets["ORS_API_KEY"], mode)

    logger.error(f"Tjänsten {provider} saknar API-nyckel")
    return None
