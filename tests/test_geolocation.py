"""Tests for location sources and subscriptions."""

import asyncio
from datetime import datetime, timedelta, timezone

import gpxpy
import gpxpy.gpx
import pytest

from conftest import FakeTicker
from geolocation import GeolocationError, GpxReplaySource, ManualLocationSource, TIMEOUT
from models import PositionFix, RaceTarget
from race import RaceStatus
from race_timer import RaceTimer


def _gpx_track(points, start=datetime(2026, 5, 1, 8, 0, tzinfo=timezone.utc), step_seconds=10):
    gpx = gpxpy.gpx.GPX()
    track = gpxpy.gpx.GPXTrack()
    segment = gpxpy.gpx.GPXTrackSegment()
    gpx.tracks.append(track)
    track.segments.append(segment)
    for i, (lat, lon) in enumerate(points):
        time = start + timedelta(seconds=i * step_seconds) if step_seconds else None
        segment.points.append(gpxpy.gpx.GPXTrackPoint(lat, lon, time=time))
    return gpx.to_xml()


class TestManualLocationSource:

    def test_delivers_to_all_subscribers(self):
        source = ManualLocationSource()
        first, second = [], []
        source.subscribe(first.append)
        source.subscribe(second.append)

        fix = PositionFix(59.0, 18.0)
        source.publish(fix)

        assert first == [fix]
        assert second == [fix]
        assert source.current_position() == fix

    def test_unsubscribe_stops_delivery(self):
        source = ManualLocationSource()
        received = []
        subscription = source.subscribe(received.append)
        subscription.unsubscribe()
        subscription.unsubscribe()

        source.publish(PositionFix(59.0, 18.0))
        assert received == []
        assert source.subscriber_count == 0

    def test_unsubscribe_during_delivery(self):
        source = ManualLocationSource()
        received = []

        def once(fix):
            received.append(fix)
            subscription.unsubscribe()

        subscription = source.subscribe(once)
        source.publish(PositionFix(1.0, 1.0))
        source.publish(PositionFix(2.0, 2.0))
        assert len(received) == 1

    def test_errors_go_to_error_handler(self):
        source = ManualLocationSource()
        errors = []
        source.subscribe(lambda fix: None, errors.append)
        source.subscribe(lambda fix: None)

        source.fail(GeolocationError(TIMEOUT, "Timeout expired"))
        assert [e.code for e in errors] == [TIMEOUT]


class TestGpxReplaySource:

    def test_derives_speed_from_timestamps(self):
        # 0.001 degrees of latitude is ~111 m, every 10 s
        source = GpxReplaySource(_gpx_track([(59.0, 18.0), (59.001, 18.0), (59.002, 18.0)]))

        assert len(source.fixes) == 3
        assert source.fixes[0].speed is None
        assert source.fixes[1].speed == pytest.approx(11.1, abs=0.1)

    def test_no_speed_without_timestamps(self):
        source = GpxReplaySource(_gpx_track([(59.0, 18.0), (59.001, 18.0)], step_seconds=0))
        assert all(fix.speed is None for fix in source.fixes)

    def test_step_publishes_in_order(self):
        source = GpxReplaySource(_gpx_track([(1.0, 1.0), (2.0, 2.0)]))
        received = []
        source.subscribe(received.append)

        assert source.step().lat == 1.0
        assert source.step().lat == 2.0
        assert source.step() is None
        assert source.finished
        assert [fix.lat for fix in received] == [1.0, 2.0]

    def test_play(self):
        source = GpxReplaySource(_gpx_track([(1.0, 1.0), (2.0, 2.0), (3.0, 3.0)], step_seconds=1))
        received = []
        source.subscribe(received.append)

        asyncio.run(source.play(speedup=100.0))
        assert len(received) == 3

    def test_replay_drives_a_full_race(self):
        points = [(0.0, -0.01), (0.0, -0.0003)] + [(0.0, 0.005 * i) for i in range(1, 10)]
        source = GpxReplaySource(_gpx_track(points))
        target = RaceTarget("route-2", start=(0.0, 0.0), end=(0.0, 0.045), distance_km=5.0)
        clock_values = iter(range(100))
        timer = RaceTimer(target, source, ticker_factory=FakeTicker, clock=lambda: next(clock_values))

        while not source.finished:
            source.step()

        assert timer.status is RaceStatus.FINISHED
        assert timer.session.result.elapsed_seconds == 9
        assert timer.session.max_speed > 0
        timer.close()
