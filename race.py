"""
Racetillstånd: idle -> active <-> paused -> finished, med automatisk start/mål via närhet
"""

import logging
from enum import Enum
from typing import Optional

from config import PROXIMITY_THRESHOLD_KM
from models import PositionFix, RaceResult, RaceTarget
from utils import distance_km

logger = logging.getLogger(__name__)


class RaceStatus(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class RaceEvent(Enum):
    STARTED = "started"
    FINISHED = "finished"


class InvalidTransition(Exception):
    """Manuell övergång som inte är tillåten i aktuellt tillstånd"""


class RaceSession:
    """
    Tillståndsmaskin för ett lopp på en rutt

    Alla tider är monotona sekunder som skickas in av anroparen, vilket gör
    maskinen deterministisk oavsett i vilken ordning tick och
    positionsuppdateringar kommer.

    Framsteg räknas linjärt från fågelvägsavståndet till målet, inte längs
    den faktiska vägen.
    """

    def __init__(self, target: RaceTarget, proximity_km: float = PROXIMITY_THRESHOLD_KM):
        self.target = target
        self.proximity_km = proximity_km

        self.status = RaceStatus.IDLE
        self.start_time: Optional[float] = None
        self.finish_time: Optional[float] = None
        self.paused_at: Optional[float] = None
        self.paused_total = 0.0

        self.position: Optional[PositionFix] = None
        self.distance_to_start: Optional[float] = None
        self.distance_to_finish: Optional[float] = None
        self.current_speed = 0.0
        self.max_speed = 0.0
        self.progress = 0.0
        self.display_elapsed = 0.0
        self.result: Optional[RaceResult] = None

    @property
    def is_racing(self) -> bool:
        return self.status in (RaceStatus.ACTIVE, RaceStatus.PAUSED)

    @property
    def waiting_for_gps(self) -> bool:
        return self.position is None

    def start(self, now: float) -> None:
        """Starta loppet (manuellt eller via närhet till start)"""
        if self.is_racing:
            raise InvalidTransition(f"Kan inte starta från {self.status.value}")

        self.status = RaceStatus.ACTIVE
        self.start_time = now
        self.finish_time = None
        self.paused_at = None
        self.paused_total = 0.0
        self.max_speed = 0.0
        self.progress = 0.0
        self.display_elapsed = 0.0
        self.result = None
        logger.info(f"Lopp startat på {self.target.name or self.target.route_id}")

    def toggle_pause(self, now: float) -> RaceStatus:
        """Växla mellan aktiv och pausad"""
        if self.status is RaceStatus.ACTIVE:
            self.status = RaceStatus.PAUSED
            self.paused_at = now
        elif self.status is RaceStatus.PAUSED:
            self.paused_total += now - self.paused_at
            self.paused_at = None
            self.status = RaceStatus.ACTIVE
        else:
            raise InvalidTransition(f"Kan inte pausa från {self.status.value}")
        return self.status

    def stop(self) -> None:
        """Avbryt loppet; inget resultat sparas"""
        if not self.is_racing:
            raise InvalidTransition(f"Kan inte avbryta från {self.status.value}")

        self.status = RaceStatus.CANCELLED
        self.start_time = None
        self.paused_at = None
        self.paused_total = 0.0
        self.progress = 0.0
        self.display_elapsed = 0.0
        logger.info("Lopp avbrutet")

    def finish(self, now: float) -> RaceResult:
        """Avsluta loppet och räkna ut tid och snittfart"""
        if not self.is_racing:
            raise InvalidTransition(f"Kan inte gå i mål från {self.status.value}")

        # Pausad vid mål: klockan står still sedan paused_at
        elapsed = self.elapsed(now)
        self.status = RaceStatus.FINISHED
        self.paused_at = None
        self.finish_time = now
        self.display_elapsed = elapsed

        average_speed = None
        if self.target.distance_km and elapsed > 0:
            elapsed_minutes = elapsed / 60
            average_speed = self.target.distance_km / elapsed_minutes * 60

        self.result = RaceResult(
            elapsed_seconds=elapsed,
            average_speed=average_speed,
            max_speed=self.max_speed
        )
        logger.info(f"I mål efter {elapsed:.1f} s")
        return self.result

    def elapsed(self, now: float) -> float:
        """Förfluten lopptid exklusive pauser"""
        if self.start_time is None:
            return 0.0
        if self.status is RaceStatus.FINISHED:
            return self.display_elapsed

        end = self.paused_at if self.status is RaceStatus.PAUSED else now
        return max(0.0, end - self.start_time - self.paused_total)

    def tick(self, now: float) -> float:
        if self.status is RaceStatus.ACTIVE:
            self.display_elapsed = self.elapsed(now)
        return self.display_elapsed

    def update_position(self, fix: PositionFix, now: float) -> Optional[RaceEvent]:
        """
        Behandla en positionsuppdatering

        Args:
            fix: Ny position
            now: Monoton tid för uppdateringen

        Returns:
            RaceEvent om uppdateringen startade eller avslutade loppet
        """
        self.position = fix
        point = fix.as_tuple()
        self.distance_to_start = distance_km(point, self.target.start)
        self.distance_to_finish = distance_km(point, self.target.end)

        speed = fix.speed * 3.6 if fix.speed and fix.speed > 0 else 0.0
        self.current_speed = speed
        if self.status is RaceStatus.ACTIVE and speed > self.max_speed:
            self.max_speed = speed

        total = self.target.distance_km
        if total:
            progress_distance = max(0.0, total - self.distance_to_finish)
            self.progress = min(100.0, progress_distance / total * 100)

        if self.status is RaceStatus.IDLE and self.distance_to_start < self.proximity_km:
            self.start(now)
            return RaceEvent.STARTED

        if self.is_racing and self.distance_to_finish < self.proximity_km:
            self.finish(now)
            return RaceEvent.FINISHED

        return None
