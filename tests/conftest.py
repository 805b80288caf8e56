import pytest

from models import DirectionsResult, DirectionsStatus, RaceTarget
from utils import distance_km


class FakeDirections:
    """Directions service that routes in a straight line between the points.

    Snap queries return the origin itself, so points are already "on a road".
    """

    name = "fake"

    def __init__(self, detour: float = 1.0, status: DirectionsStatus = DirectionsStatus.OK):
        self.detour = detour
        self.status = status
        self.calls = []

    def route(self, origin, destination, avoid_highways=False, avoid_tolls=False):
        self.calls.append((origin, destination, avoid_highways, avoid_tolls))
        if self.status is not DirectionsStatus.OK:
            return DirectionsResult(self.status)
        meters = distance_km(origin, destination) * 1000 * self.detour
        return DirectionsResult(
            status=DirectionsStatus.OK,
            distance=meters,
            duration=meters / 10,
            path=[origin, destination],
        )


class FailingDirections:
    """Directions service whose every call raises."""

    name = "failing"

    def __init__(self):
        self.calls = 0

    def route(self, origin, destination, avoid_highways=False, avoid_tolls=False):
        self.calls += 1
        raise ConnectionError("quota exceeded")


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeTicker:
    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.running = False

    def start(self):
        self.running = True

    def stop(self):
        self.running = False


@pytest.fixture
def fake_directions() -> FakeDirections:
    return FakeDirections()


@pytest.fixture
def race_target() -> RaceTarget:
    """A ~5 km route along the equator."""
    return RaceTarget(
        route_id="route-1",
        start=(0.0, 0.0),
        end=(0.0, 0.045),
        distance_km=5.0,
        name="Equator Dash Classic 7",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
