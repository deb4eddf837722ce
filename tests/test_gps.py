import asyncio
import json
import os
import subprocess
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from wanderlust.errors import PositionError
from wanderlust.geo import Position
from wanderlust.gps import StaticPosition, TermuxLocation, TracePlayback, TraceRecorder


def _completed(stdout="", stderr="", returncode=0):
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = returncode
    return result


class TestTermuxLocation(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.gps = TermuxLocation()

    @patch("wanderlust.gps.subprocess.run")
    async def test_fix(self, mock_run):
        mock_run.return_value = _completed(json.dumps({"latitude": 37.7749, "longitude": -122.4194, "accuracy": 8.0}))
        position = await self.gps.get_position(timeout=5)
        self.assertEqual(position, Position(37.7749, -122.4194))
        self.assertEqual(self.gps.get_status(), "GPS OK, accuracy 8m")
        self.assertEqual(mock_run.call_args[0][0], ["termux-location", "-p", "gps", "-r", "once"])

    @patch("wanderlust.gps.subprocess.run")
    async def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired("termux-location", 5)
        with self.assertRaises(PositionError) as ctx:
            await self.gps.get_position(timeout=5)
        self.assertEqual(ctx.exception.kind, PositionError.TIMEOUT)
        self.assertEqual(self.gps.consecutive_failures, 1)

    @patch("wanderlust.gps.subprocess.run")
    async def test_permission_denied(self, mock_run):
        mock_run.return_value = _completed(stderr="Permission denied: location", returncode=1)
        with self.assertRaises(PositionError) as ctx:
            await self.gps.get_position()
        self.assertEqual(ctx.exception.kind, PositionError.PERMISSION)

    @patch("wanderlust.gps.subprocess.run")
    async def test_not_installed(self, mock_run):
        mock_run.side_effect = FileNotFoundError("termux-location")
        with self.assertRaises(PositionError) as ctx:
            await self.gps.get_position()
        self.assertEqual(ctx.exception.kind, PositionError.UNAVAILABLE)

    @patch("wanderlust.gps.subprocess.run")
    async def test_garbage_output(self, mock_run):
        mock_run.return_value = _completed("{")
        with self.assertRaises(PositionError):
            await self.gps.get_position()
        mock_run.return_value = _completed("   ")
        with self.assertRaises(PositionError):
            await self.gps.get_position()
        self.assertEqual(self.gps.get_status(), "GPS: 2 consecutive failures")


class TestTraceFiles(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "trace.json")

    def tearDown(self):
        self.tmpdir.cleanup()

    def write_trace(self, entries):
        with open(self.path, "w") as f:
            json.dump({"recorded_at": "2024-05-01T10:00:00", "trace": entries}, f)

    async def test_playback_in_order(self):
        self.write_trace([
            {"elapsed": 0, "location": {"lat": 1.0, "lon": 2.0}},
            {"elapsed": 3, "location": None, "status": "GPS: 1 consecutive failures"},
            {"elapsed": 6, "location": {"lat": 1.5, "lon": 2.5}},
        ])
        playback = TracePlayback(self.path, speed=2.0)

        self.assertEqual(await playback.get_position(), Position(1.0, 2.0))
        self.assertEqual(playback.next_interval(), 1.5)
        with self.assertRaises(PositionError):
            await playback.get_position()
        self.assertEqual(await playback.get_position(), Position(1.5, 2.5))
        self.assertTrue(playback.is_finished())
        with self.assertRaises(PositionError):
            await playback.get_position()

    async def test_playback_watch_delivers_everything(self):
        self.write_trace([
            {"elapsed": 0, "location": {"lat": 1.0, "lon": 2.0}},
            {"elapsed": 1, "location": None},
            {"elapsed": 2, "location": {"lat": 1.5, "lon": 2.5}},
        ])
        playback = TracePlayback(self.path)
        positions, errors = [], []
        subscription = playback.watch(positions.append, errors.append, interval=0)
        await subscription.wait()

        self.assertEqual(positions, [Position(1.0, 2.0), Position(1.5, 2.5)])
        self.assertEqual(len(errors), 1)
        self.assertFalse(subscription.active)

    async def test_recorder_round_trip(self):
        recorder = TraceRecorder(StaticPosition(Position(1.0, 2.0)), self.path)
        await recorder.get_position()
        await recorder.get_position()
        recorder.save()

        playback = TracePlayback(self.path)
        self.assertEqual(len(playback.trace), 2)
        self.assertEqual(await playback.get_position(), Position(1.0, 2.0))


class TestWatch(unittest.IsolatedAsyncioTestCase):
    async def test_cancel_stops_fixes(self):
        source = StaticPosition(Position(1.0, 2.0))
        positions = []
        subscription = source.watch(positions.append, interval=0.01)
        while len(positions) < 3:
            await asyncio.sleep(0.01)
        subscription.cancel()
        await subscription.wait()
        count = len(positions)
        await asyncio.sleep(0.01)
        self.assertEqual(len(positions), count)
        self.assertFalse(subscription.active)


if __name__ == "__main__":
    unittest.main()
