"""
Datamodeller för Segmentor
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

LatLon = Tuple[float, float]


@dataclass
class RouteGenerationParams:
    """Parametrar för en genereringskörning"""
    count: int
    center_lat: float
    center_lng: float
    radius_km: float
    min_distance_km: float
    max_distance_km: float

    @property
    def center(self) -> LatLon:
        return (self.center_lat, self.center_lng)

    def validate(self) -> None:
        """
        Kontrollera att parametrarna är rimliga

        Raises:
            ValueError: om antal < 1, någon distans <= 0 eller min > max
        """
        if self.count < 1:
            raise ValueError(f"count måste vara minst 1, fick {self.count}")
        for name in ("radius_km", "min_distance_km", "max_distance_km"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} måste vara positiv")
        if self.min_distance_km > self.max_distance_km:
            raise ValueError(
                f"min_distance_km ({self.min_distance_km}) är större än "
                f"max_distance_km ({self.max_distance_km})"
            )

    def accepts(self, distance_km: float) -> bool:
        return self.min_distance_km <= distance_km <= self.max_distance_km


@dataclass
class GeneratedRoute:
    """En automatiskt genererad rutt, redo att sparas i backend"""
    name: str
    description: str
    start: LatLon
    end: LatLon
    distance: float  # km
    estimated_time: float  # sekunder
    difficulty_level: str
    tags: List[str]
    is_public: bool = True
    waypoints: Optional[List[LatLon]] = None

    def to_row(self, owner_id: str) -> Dict[str, Any]:
        """Bygg en rad för tabellen routes"""
        row = {
            "user_id": owner_id,
            "name": self.name,
            "description": self.description,
            "start_lat": self.start[0],
            "start_lng": self.start[1],
            "end_lat": self.end[0],
            "end_lng": self.end[1],
            "distance": self.distance,
            "estimated_time": round(self.estimated_time),
            "difficulty_level": self.difficulty_level,
            "tags": list(self.tags),
            "is_public": self.is_public,
        }
        if self.waypoints is not None:
            row["waypoints"] = [{"lat": lat, "lng": lon} for lat, lon in self.waypoints]
        return row


@dataclass
class RoadRouteResult:
    """Väg-rutt mellan två punkter"""
    distance: float  # km
    duration: float  # sekunder
    waypoints: List[LatLon] = field(default_factory=list)


class DirectionsStatus(Enum):
    OK = "OK"
    ZERO_RESULTS = "ZERO_RESULTS"
    ERROR = "ERROR"


@dataclass
class DirectionsResult:
    """Svar från en vägbeskrivningstjänst"""
    status: DirectionsStatus
    distance: float = 0.0  # meter
    duration: float = 0.0  # sekunder
    path: List[LatLon] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is DirectionsStatus.OK and bool(self.path)

    @property
    def start_location(self) -> Optional[LatLon]:
        return self.path[0] if self.path else None


@dataclass
class PositionFix:
    """En positionsuppdatering från GPS"""
    lat: float
    lon: float
    speed: Optional[float] = None  # m/s
    accuracy: Optional[float] = None  # meter
    timestamp: Optional[float] = None

    def as_tuple(self) -> LatLon:
        return (self.lat, self.lon)


@dataclass
class RaceTarget:
    """Rutten som körs, som den lagras i backend"""
    route_id: Optional[str]
    start: LatLon
    end: LatLon
    distance_km: Optional[float] = None
    name: str = ""
    description: Optional[str] = None
    difficulty_level: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "RaceTarget":
        return cls(
            route_id=row.get("id"),
            start=(row["start_lat"], row["start_lng"]),
            end=(row["end_lat"], row["end_lng"]),
            distance_km=row.get("distance"),
            name=row.get("name", ""),
            description=row.get("description"),
            difficulty_level=row.get("difficulty_level"),
        )


@dataclass
class RaceResult:
    """Lokalt resultat av ett avslutat lopp"""
    elapsed_seconds: float
    average_speed: Optional[float]  # km/h
    max_speed: float  # km/h


@dataclass
class RaceCompletion:
    """Rad för tabellen route_completions"""
    user_id: str
    route_id: str
    completion_time: int  # sekunder
    average_speed: Optional[float]
    max_speed: float
    completion_date: str  # ISO 8601

    def to_row(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "route_id": self.route_id,
            "completion_time": self.completion_time,
            "average_speed": self.average_speed,
            "max_speed": self.max_speed,
            "completion_date": self.completion_date,
        }
