"""Frame timing for the per-tick update loop"""

import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Deque, Iterator, Optional


@dataclass
class FrameData:
    """Timing information for one tick."""
    frame_number: int
    timestamp: float  # Seconds since start
    delta: float  # Seconds since previous tick
    capture_time: float  # perf_counter value at tick


class FrameTimer:
    """
    Rolling window of per-tick processing times.

    Wrap the tracking and retargeting work of each tick in measure(); fps
    then reports how many ticks per second that work alone could sustain.
    """

    def __init__(self, window_size: int = 60):
        if window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {window_size}")
        self._samples: Deque[float] = deque(maxlen=window_size)

    @contextmanager
    def measure(self) -> Iterator[None]:
        started = time.perf_counter()
        try:
            yield
        finally:
            self.record(time.perf_counter() - started)

    def record(self, elapsed: float) -> None:
        """Add one processing time in seconds."""
        self._samples.append(max(0.0, float(elapsed)))

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def last(self) -> float:
        return self._samples[-1] if self._samples else 0.0

    @property
    def average(self) -> float:
        if not self._samples:
            return 0.0
        return sum(self._samples) / len(self._samples)

    @property
    def fps(self) -> float:
        avg = self.average
        return 1.0 / avg if avg > 0 else 0.0

    def reset(self) -> None:
        self._samples.clear()


@dataclass
class FrameClock:
    """
    Issues per-tick timestamps and elapsed times.

    The delta of each tick is what the smoothing stages consume to stay
    frame-rate independent. The first tick reports the nominal frame duration.
    """
    target_fps: float = 30.0
    _frame_count: int = field(default=0, init=False)
    _start_time: float = field(default=0.0, init=False)
    _last_tick: Optional[float] = field(default=None, init=False)

    def start(self) -> None:
        """Start the frame clock."""
        self._start_time = time.perf_counter()
        self._last_tick = None
        self._frame_count = 0

    def tick(self) -> FrameData:
        """
        Advance to next frame and return frame data.

        Returns:
            FrameData with timing information
        """
        current_time = time.perf_counter()
        if self._start_time == 0.0:
            self._start_time = current_time

        if self._last_tick is None:
            delta = self.target_frame_duration
        else:
            delta = current_time - self._last_tick

        frame_data = FrameData(
            frame_number=self._frame_count,
            timestamp=current_time - self._start_time,
            delta=delta,
            capture_time=current_time,
        )

        self._last_tick = current_time
        self._frame_count += 1

        return frame_data

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def target_frame_duration(self) -> float:
        """Target duration per frame in seconds."""
        return 1.0 / self.target_fps

    def reset(self) -> None:
        """Reset the frame clock."""
        self._frame_count = 0
        self._start_time = 0.0
        self._last_tick = None
