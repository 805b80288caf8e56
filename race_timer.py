"""
Racetidtagare: kopplar ihop positionsström, periodisk tick och lagring av resultat
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from backend import BackendError
from config import TICK_INTERVAL
from geolocation import GeolocationError, LocationSource
from models import PositionFix, RaceCompletion, RaceTarget
from race import RaceEvent, RaceSession, RaceStatus
from utils import format_race_time

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


def _log_notify(level: str, message: str) -> None:
    logger.info(f"[{level}] {message}")


class AsyncioTicker:
    """
    Periodisk callback på den körande asyncio-loopen

    Utan körande loop (synkron kod) tickar den inte; lopptiden räknas ändå
    ut från klockan vid mål.
    """

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            return
        try:
            self._schedule()
        except RuntimeError:
            logger.warning("Ingen körande event-loop, tick är avstängd")

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        self._schedule()
        self.callback()


class RaceTimer:
    """
    Styr ett lopp i realtid

    Positionsprenumerationen lever så länge tidtagaren lever, medan ticken
    bara går när loppet är aktivt. close() släpper båda och anropas även
    när tidtagaren används som context manager.
    """

    def __init__(
        self,
        target: RaceTarget,
        location_source: LocationSource,
        backend=None,
        user_id: Optional[str] = None,
        ticker_factory: Callable = AsyncioTicker,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        notify: Notifier = _log_notify,
        tick_interval: float = TICK_INTERVAL
    ):
        self.session = RaceSession(target)
        self.backend = backend
        self.user_id = user_id
        self.clock = clock
        self.wall_clock = wall_clock
        self.notify = notify

        self.last_error: Optional[GeolocationError] = None
        self.completion: Optional[RaceCompletion] = None
        self.saved = False

        self._ticker = ticker_factory(tick_interval, self.tick)
        self._subscription = location_source.subscribe(self._on_position, self._on_error)
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @property
    def status(self) -> RaceStatus:
        return self.session.status

    @property
    def waiting_for_gps(self) -> bool:
        return self.session.waiting_for_gps or self.last_error is not None

    @property
    def elapsed_display(self) -> str:
        return format_race_time(self.session.display_elapsed)

    @property
    def ticking(self) -> bool:
        return self._ticker.running

    def tick(self) -> None:
        self.session.tick(self.clock())

    def close(self) -> None:
        """Stoppa tick och avsluta positionsprenumerationen"""
        self._ticker.stop()
        self._subscription.unsubscribe()
        self.closed = True

    def start(self) -> None:
        self.session.start(self.clock())
        self._sync_ticker()
        self.notify("success", "Loppet har startat! Följ rutten till mål.")

    def toggle_pause(self) -> None:
        status = self.session.toggle_pause(self.clock())
        self._sync_ticker()
        if status is RaceStatus.PAUSED:
            self.notify("info", "Loppet pausat")
        else:
            self.notify("info", "Loppet återupptaget")

    def stop(self) -> None:
        self.session.stop()
        self._sync_ticker()
        self.notify("warning", "Loppet avbröts.")

    def _sync_ticker(self) -> None:
        if self.session.status is RaceStatus.ACTIVE and not self.closed:
            self._ticker.start()
        else:
            self._ticker.stop()

    def _on_position(self, fix: PositionFix) -> None:
        self.last_error = None
        event = self.session.update_position(fix, self.clock())
        if event is RaceEvent.STARTED:
            self._sync_ticker()
            self.notify("success", "Loppet har startat! Följ rutten till mål.")
        elif event is RaceEvent.FINISHED:
            self._sync_ticker()
            self._record_finish()

    def _on_error(self, error: GeolocationError) -> None:
        logger.error(f"GPS-fel ({error.code}): {error.message}")
        self.last_error = error
        self.notify("warning", "Väntar på GPS-position...")

    def _record_finish(self) -> None:
        result = self.session.result
        finished_at = self.wall_clock()
        elapsed = format_race_time(result.elapsed_seconds)

        target = self.session.target
        if not self.user_id or not target.route_id or self.backend is None:
            self.notify("success", f"I mål på {elapsed}!")
            return

        self.completion = RaceCompletion(
            user_id=self.user_id,
            route_id=target.route_id,
            completion_time=round(result.elapsed_seconds),
            average_speed=result.average_speed,
            max_speed=result.max_speed,
            completion_date=finished_at.isoformat()
        )
        try:
            self.backend.insert_completion(self.completion)
        except BackendError as e:
            # Loppet räknas som avslutat lokalt även om sparningen misslyckas
            logger.error(f"Kunde inte spara loppet: {e}")
            self.notify("error", f"I mål på {elapsed}, men tiden kunde inte sparas.")
            return

        self.saved = True
        self.notify("success", f"I mål på {elapsed}!")
