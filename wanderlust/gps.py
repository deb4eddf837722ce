"""Position sources: Termux GPS, fixed positions, trace recording/playback."""

import asyncio
import contextlib
import json
import subprocess
import time
from datetime import datetime
from typing import Callable, Optional

from .config import CONFIG
from .errors import PositionError
from .geo import Position


class Subscription:
    """Handle for a running watch; cancel() stops further fixes"""

    def __init__(self, task: asyncio.Task):
        self.task = task

    @property
    def active(self) -> bool:
        return not self.task.done()

    def cancel(self):
        self.task.cancel()

    async def wait(self):
        """Wait until the watch ends on its own or is cancelled"""
        with contextlib.suppress(asyncio.CancelledError):
            await self.task


class PositionSource:
    """Base class for anything that can produce position fixes"""

    def __init__(self, poll_interval: Optional[float] = None):
        self.poll_interval = poll_interval or CONFIG["gps_poll_interval"]

    async def get_position(self, timeout: Optional[float] = None) -> Position:
        """Single fix. Raises PositionError when none can be produced."""
        raise NotImplementedError

    def is_finished(self) -> bool:
        return False

    def next_interval(self) -> float:
        return self.poll_interval

    def get_status(self) -> str:
        return type(self).__name__

    def watch(self, on_position: Callable[[Position], None],
              on_error: Optional[Callable[[PositionError], None]] = None,
              interval: Optional[float] = None) -> Subscription:
        """Deliver fixes to on_position until cancelled or the source runs out.

        Without on_error, the first PositionError ends the watch.
        """
        task = asyncio.get_running_loop().create_task(
            self._watch_loop(on_position, on_error, interval))
        return Subscription(task)

    async def _watch_loop(self, on_position, on_error, interval):
        while not self.is_finished():
            try:
                position = await self.get_position()
            except PositionError as e:
                if on_error is None:
                    raise
                on_error(e)
            else:
                on_position(position)

            if self.is_finished():
                break
            await asyncio.sleep(interval if interval is not None else self.next_interval())


class TermuxLocation(PositionSource):
    """GPS access via Termux API"""

    def __init__(self, poll_interval: Optional[float] = None, provider: str = "gps"):
        super().__init__(poll_interval)
        self.provider = provider
        self.last_position: Optional[Position] = None
        self.last_accuracy: Optional[float] = None
        self.consecutive_failures = 0

    def _read_location(self, timeout: float) -> Position:
        """Blocking termux-location call"""
        try:
            result = subprocess.run(
                ["termux-location", "-p", self.provider, "-r", "once"],
                capture_output=True,
                text=True,
                timeout=timeout
            )
        except subprocess.TimeoutExpired as e:
            raise PositionError(PositionError.TIMEOUT, f"no fix within {timeout}s") from e
        except FileNotFoundError as e:
            raise PositionError(PositionError.UNAVAILABLE, "termux-location not installed") from e

        if result.returncode != 0:
            error_msg = result.stderr.strip() if result.stderr else "unknown error"
            kind = PositionError.PERMISSION if "permission" in error_msg.lower() else PositionError.UNAVAILABLE
            raise PositionError(kind, error_msg)

        if not result.stdout or not result.stdout.strip():
            raise PositionError(PositionError.UNAVAILABLE, "empty response from termux-location")

        try:
            data = json.loads(result.stdout)
            position = Position(float(data["latitude"]), float(data["longitude"]))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise PositionError(PositionError.UNAVAILABLE, f"unreadable location: {e}") from e

        self.last_accuracy = data.get("accuracy")
        return position

    async def get_position(self, timeout: Optional[float] = None) -> Position:
        timeout = timeout or CONFIG["gps_timeout"]
        try:
            position = await asyncio.to_thread(self._read_location, timeout)
        except PositionError:
            self.consecutive_failures += 1
            raise
        self.last_position = position
        self.consecutive_failures = 0
        return position

    def get_status(self) -> str:
        """Get GPS status string"""
        if self.consecutive_failures == 0:
            acc = f", accuracy {self.last_accuracy:.0f}m" if self.last_accuracy else ""
            return f"GPS OK{acc}"
        return f"GPS: {self.consecutive_failures} consecutive failures"


class StaticPosition(PositionSource):
    """Always reports the same position"""

    def __init__(self, position: Position, poll_interval: Optional[float] = None):
        super().__init__(poll_interval)
        self.position = position

    async def get_position(self, timeout: Optional[float] = None) -> Position:
        return self.position

    def get_status(self) -> str:
        return f"Fixed position {self.position.lat:.5f}, {self.position.lon:.5f}"


class TracePlayback(PositionSource):
    """Plays back a recorded trace file"""

    def __init__(self, playback_path: str, speed: float = 1.0):
        super().__init__()
        self.playback_path = playback_path
        self.speed = speed
        self.index = 0
        self.consecutive_failures = 0

        with open(playback_path) as f:
            data = json.load(f)
        self.trace: list[dict] = data["trace"]

    @staticmethod
    def _entry_position(entry: dict) -> Optional[Position]:
        location = entry.get("location")
        if not location:
            return None
        return Position.from_value(location)

    async def get_position(self, timeout: Optional[float] = None) -> Position:
        """Next entry of the trace; entries without a location count as failures"""
        if self.index >= len(self.trace):
            raise PositionError(PositionError.UNAVAILABLE, "end of trace")

        entry = self.trace[self.index]
        self.index += 1

        position = self._entry_position(entry)
        if position is None:
            self.consecutive_failures += 1
            raise PositionError(PositionError.UNAVAILABLE, entry.get("status") or "no fix in trace")
        self.consecutive_failures = 0
        return position

    def next_interval(self) -> float:
        """Interval to wait before the next entry, from trace timing and speed"""
        if self.index <= 0 or self.index >= len(self.trace):
            return self.poll_interval / self.speed

        prev_elapsed = self.trace[self.index - 1].get("elapsed", 0)
        curr_elapsed = self.trace[self.index].get("elapsed", 0)
        interval = (curr_elapsed - prev_elapsed) / self.speed
        return max(0.1, min(interval, 5.0))

    def is_finished(self) -> bool:
        return self.index >= len(self.trace)

    def get_status(self) -> str:
        progress = f"{self.index}/{len(self.trace)}"
        if self.consecutive_failures == 0:
            return f"Playback OK ({progress})"
        return f"Playback: {self.consecutive_failures} failures ({progress})"


class TraceRecorder(PositionSource):
    """Wraps another source and records every attempt to a trace file"""

    def __init__(self, source: PositionSource, record_path: str):
        super().__init__(source.poll_interval)
        self.source = source
        self.record_path = record_path
        self.trace: list[dict] = []
        self.start_time = time.time()

    async def get_position(self, timeout: Optional[float] = None) -> Position:
        # Record even failed attempts
        entry = {
            "elapsed": time.time() - self.start_time,
            "timestamp": time.time(),
            "location": None,
        }
        try:
            position = await self.source.get_position(timeout)
        except PositionError as e:
            entry["status"] = str(e)
            self.trace.append(entry)
            raise
        entry["location"] = {"lat": position.lat, "lon": position.lon}
        entry["status"] = self.source.get_status()
        self.trace.append(entry)
        return position

    def is_finished(self) -> bool:
        return self.source.is_finished()

    def next_interval(self) -> float:
        return self.source.next_interval()

    def get_status(self) -> str:
        return self.source.get_status()

    def save(self) -> str:
        """Save trace to file"""
        with open(self.record_path, "w") as f:
            json.dump({
                "recorded_at": datetime.now().isoformat(),
                "trace": self.trace
            }, f, indent=2)
        return self.record_path
