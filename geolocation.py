"""
Positionsström: prenumeration på GPS-uppdateringar med deterministisk avregistrering
"""

import asyncio
import logging
import gpxpy
from typing import Callable, List, Optional

from models import PositionFix
from utils import distance_km

logger = logging.getLogger(__name__)

PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3


class GeolocationError(Exception):
    """Fel från positionskällan"""

    def __init__(self, code: int, message: str = ""):
        super().__init__(message or f"geolocation error {code}")
        self.code = code
        self.message = message


PositionCallback = Callable[[PositionFix], None]
ErrorCallback = Callable[[GeolocationError], None]


class Subscription:
    """Handtag för en aktiv prenumeration"""

    def __init__(self, source: "LocationSource", on_position: PositionCallback, on_error: Optional[ErrorCallback]):
        self._source = source
        self.on_position = on_position
        self.on_error = on_error
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._source._remove(self)


class LocationSource:
    """
    Basklass för positionskällor

    Uppdateringar levereras synkront till alla aktiva prenumeranter i den
    ordning de registrerades.
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self._last_fix: Optional[PositionFix] = None

    def subscribe(self, on_position: PositionCallback, on_error: Optional[ErrorCallback] = None) -> Subscription:
        subscription = Subscription(self, on_position, on_error)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def current_position(self) -> Optional[PositionFix]:
        """Senast kända position, None om ingen finns ännu"""
        return self._last_fix

    def _emit(self, fix: PositionFix) -> None:
        self._last_fix = fix
        # Kopia: en callback får avregistrera sig under leveransen
        for subscription in list(self._subscriptions):
            if subscription.active:
                subscription.on_position(fix)

    def _emit_error(self, error: GeolocationError) -> None:
        logger.warning(f"GPS-fel: {error}")
        for subscription in list(self._subscriptions):
            if subscription.active and subscription.on_error:
                subscription.on_error(error)


class ManualLocationSource(LocationSource):
    """Positionskälla som matas utifrån, t.ex. från kartklick i UI:t"""

    def publish(self, fix: PositionFix) -> None:
        self._emit(fix)

    def fail(self, error: GeolocationError) -> None:
        self._emit_error(error)


class GpxReplaySource(LocationSource):
    """Spelar upp ett inspelat GPX-spår som en positionsström"""

    def __init__(self, gpx_xml: str):
        super().__init__()
        gpx = gpxpy.parse(gpx_xml)
        self.fixes = self._build_fixes(gpx)
        self.position = 0

    @staticmethod
    def _build_fixes(gpx) -> List[PositionFix]:
        points = [p for track in gpx.tracks for segment in track.segments for p in segment.points]
        if not points:
            points = list(gpx.waypoints)

        fixes = []
        previous = None
        for point in points:
            timestamp = point.time.timestamp() if point.time else None
            speed = getattr(point, "speed", None)
            # Hastighet saknas i de flesta GPX-filer, härled från tidsstämplar
            if speed is None and previous is not None and timestamp and previous.timestamp:
                dt = timestamp - previous.timestamp
                if dt > 0:
                    speed = distance_km(previous.as_tuple(), (point.latitude, point.longitude)) * 1000 / dt
            fix = PositionFix(point.latitude, point.longitude, speed=speed, timestamp=timestamp)
            fixes.append(fix)
            previous = fix
        return fixes

    @property
    def finished(self) -> bool:
        return self.position >= len(self.fixes)

    def step(self) -> Optional[PositionFix]:
        """Publicera nästa punkt, None när spåret är slut"""
        if self.finished:
            return None
        fix = self.fixes[self.position]
        self.position += 1
        self._emit(fix)
        return fix

    async def play(self, speedup: float = 1.0, default_interval: float = 1.0) -> None:
        """
        Spela upp hela spåret med verkliga tidsavstånd

        Args:
            speedup: Uppspelningshastighet, 2.0 = dubbelt så snabbt
            default_interval: Sekunder mellan punkter utan tidsstämpel
        """
        previous = None
        while not self.finished:
            fix = self.fixes[self.position]
            if previous is not None:
                if fix.timestamp and previous.timestamp:
                    delay = max(0.0, fix.timestamp - previous.timestamp)
                else:
                    delay = default_interval
                await asyncio.sleep(delay / speedup)
            self.step()
            previous = fix
