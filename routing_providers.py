"""
Vägbeskrivningstjänster: GraphHopper och OpenRouteService
"""

import logging
import requests
from typing import List, Optional

from config import (
    ORS_BASE_URL,
    GRAPHHOPPER_BASE_URL,
    ORS_PROFILES,
    GRAPHHOPPER_PROFILES,
    DEFAULT_TRAVEL_MODE,
    REQUEST_TIMEOUT
)
from models import DirectionsResult, DirectionsStatus, LatLon

logger = logging.getLogger(__name__)


def _path_from_coordinates(coordinates: List[List[float]]) -> List[LatLon]:
    # Båda tjänsterna svarar i [lon, lat(, elevation)]
    return [(coord[1], coord[0]) for coord in coordinates if len(coord) >= 2]


class DirectionsService:
    """Basklass för vägbeskrivningstjänster"""

    name = "base"

    def route(
        self,
        origin: LatLon,
        destination: LatLon,
        avoid_highways: bool = False,
        avoid_tolls: bool = False
    ) -> DirectionsResult:
        """
        Hämta en rutt längs vägnätet

        Args:
            origin: Startpunkt (lat, lon)
            destination: Slutpunkt (lat, lon)
            avoid_highways: Undvik motorvägar
            avoid_tolls: Undvik avgiftsbelagda vägar

        Returns:
            DirectionsResult; nätverksfel kastas som requests.RequestException
        """
        raise NotImplementedError


class GraphHopperDirections(DirectionsService):
    """GraphHopper Routing API"""

    name = "GraphHopper"

    def __init__(self, api_key: str, mode: str = DEFAULT_TRAVEL_MODE, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.profile = GRAPHHOPPER_PROFILES.get(mode, mode)
        self.session = session or requests.Session()

    def route(
        self,
        origin: LatLon,
        destination: LatLon,
        avoid_highways: bool = False,
        avoid_tolls: bool = False
    ) -> DirectionsResult:
        url = f"{GRAPHHOPPER_BASE_URL}/route"
        body = {
            "points": [[origin[1], origin[0]], [destination[1], destination[0]]],
            "profile": self.profile,
            "points_encoded": False,
            "instructions": False,
            "locale": "sv"
        }

        priority = []
        if avoid_highways:
            priority.append({"if": "road_class == MOTORWAY", "multiply_by": "0"})
        if avoid_tolls:
            priority.append({"if": "toll != NO", "multiply_by": "0"})
        if priority:
            # Custom model kräver flexibelt läge
            body["ch.disable"] = True
            body["custom_model"] = {"priority": priority}

        response = self.session.post(
            url, params={"key": self.api_key}, json=body, timeout=REQUEST_TIMEOUT
        )
        if response.status_code == 400:
            # GraphHopper svarar 400 när punkter saknar förbindelse
            logger.debug(f"GraphHopper hittade ingen rutt: {response.text[:200]}")
            return DirectionsResult(DirectionsStatus.ZERO_RESULTS)
        if response.status_code != 200:
            logger.warning(f"GraphHopper svarade {response.status_code}")
            return DirectionsResult(DirectionsStatus.ERROR)

        return self._parse_graphhopper_response(response.json())

    def _parse_graphhopper_response(self, data: dict) -> DirectionsResult:
        """Parsa GraphHopper-respons till DirectionsResult"""

        if "paths" not in data or not data["paths"]:
            return DirectionsResult(DirectionsStatus.ZERO_RESULTS)

        path = data["paths"][0]
        coordinates = path.get("points", {}).get("coordinates", [])
        if not coordinates:
            return DirectionsResult(DirectionsStatus.ZERO_RESULTS)

        # GraphHopper ger tid i millisekunder
        return DirectionsResult(
            status=DirectionsStatus.OK,
            distance=path.get("distance", 0),
            duration=path.get("time", 0) / 1000,
            path=_path_from_coordinates(coordinates)
        )


class OpenRouteServiceDirections(DirectionsService):
    """OpenRouteService Directions API"""

    name = "ORS"

    def __init__(self, api_key: str, mode: str = DEFAULT_TRAVEL_MODE, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.profile = ORS_PROFILES.get(mode, mode)
        self.session = session or requests.Session()

    def route(
        self,
        origin: LatLon,
        destination: LatLon,
        avoid_highways: bool = False,
        avoid_tolls: bool = False
    ) -> DirectionsResult:
        url = f"{ORS_BASE_URL}/v2/directions/{self.profile}/geojson"
        headers = {
            "Authorization": self.api_key,
            "Content-Type": "application/json"
        }
        body = {
            "coordinates": [[origin[1], origin[0]], [destination[1], destination[0]]],
            "instructions": False
        }

        avoid_features = []
        if avoid_highways:
            avoid_features.append("highways")
        if avoid_tolls:
            avoid_features.append("tollways")
        if avoid_features:
            body["options"] = {"avoid_features": avoid_features}

        response = self.session.post(url, json=body, headers=headers, timeout=REQUEST_TIMEOUT)
        if response.status_code == 404:
            logger.debug(f"ORS hittade ingen rutt: {response.text[:200]}")
            return DirectionsResult(DirectionsStatus.ZERO_RESULTS)
        if response.status_code != 200:
            logger.warning(f"ORS svarade {response.status_code}")
            return DirectionsResult(DirectionsStatus.ERROR)

        return self._parse_ors_response(response.json())

    def _parse_ors_response(self, data: dict) -> DirectionsResult:
        """Parsa ORS-respons till DirectionsResult"""

        if "features" not in data or not data["features"]:
            return DirectionsResult(DirectionsStatus.ZERO_RESULTS)

        feature = data["features"][0]
        coordinates = feature.get("geometry", {}).get("coordinates", [])
        summary = feature.get("properties", {}).get("summary", {})
        if not coordinates:
            return DirectionsResult(DirectionsStatus.ZERO_RESULTS)

        return DirectionsResult(
            status=DirectionsStatus.OK,
            distance=summary.get("distance", 0),
            duration=summary.get("duration", 0),
            path=_path_from_coordinates(coordinates)
        )
