"""
Tick scheduling for the detection mock stream.
"""

import math
import time
import threading
from typing import Optional, Callable
from dataclasses import dataclass

from .config import MockConfig


@dataclass
class TickInfo:
    """Information about one scheduled tick."""
    tick_id: int
    scheduled_time_s: float
    wall_time_s: float
    lag_ms: float


class IntervalStatistics:
    """
    Running mean and variance of tick intervals (Welford's method).

    Memory use is constant however long the stream runs.
    """

    def __init__(self):
        self.count = 0
        self.mean = 0.0
        self._m2 = 0.0

    def add(self, interval_s: float) -> None:
        self.count += 1
        delta = interval_s - self.mean
        self.mean += delta / self.count
        self._m2 += delta * (interval_s - self.mean)

    @property
    def std(self) -> float:
        """Population standard deviation."""
        if self.count == 0:
            return 0.0
        return math.sqrt(max(0.0, self._m2 / self.count))

    def reset(self) -> None:
        self.count = 0
        self.mean = 0.0
        self._m2 = 0.0


class TickController:
    """
    Schedules ticks at a fixed interval against an absolute start time.

    Waiting for a tick is interruptible through the shared stop event, so
    a shutdown request never has to sit out a full interval.
    """

    def __init__(self, interval_ms: int, stop_event: Optional[threading.Event] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize tick controller.

        Args:
            interval_ms: Tick interval in milliseconds
            stop_event: Event that interrupts waiting when set
            clock: Monotonic clock in seconds
        """
        self.interval_s = interval_ms / 1000.0
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.clock = clock

        self.current_tick_id = 0
        self.start_time: Optional[float] = None
        self.last_tick_time: Optional[float] = None
        self.intervals = IntervalStatistics()

    def start(self) -> None:
        """Reset the schedule so the first tick fires immediately."""
        self.start_time = self.clock()
        self.last_tick_time = None
        self.current_tick_id = 0
        self.intervals.reset()

    def wait_for_next_tick(self) -> Optional[TickInfo]:
        """
        Block until the next tick is due.

        If processing fell behind schedule the tick fires immediately and
        the schedule is not reset, so later ticks catch up.

        Returns:
            TickInfo for the tick, or None if the stop event was set
        """
        if self.start_time is None:
            self.start()

        target_time = self.start_time + self.current_tick_id * self.interval_s
        now = self.clock()
        if now < target_time:
            if self.stop_event.wait(target_time - now):
                return None
            now = self.clock()
        elif self.stop_event.is_set():
            return None

        if self.last_tick_time is not None:
            self.intervals.add(now - self.last_tick_time)
        self.last_tick_time = now

        info = TickInfo(
            tick_id=self.current_tick_id,
            scheduled_time_s=target_time - self.start_time,
            wall_time_s=now - self.start_time,
            lag_ms=max(0.0, (now - target_time) * 1000.0)
        )
        self.current_tick_id += 1
        return info

    def get_timing_statistics(self) -> dict:
        """
        Get timing accuracy statistics.

        Returns:
            Dictionary containing timing statistics
        """
        mean_interval = self.intervals.mean if self.intervals.count else 0.0

        return {
            'target_rate_hz': 1.0 / self.interval_s,
            'target_interval_s': self.interval_s,
            'ticks': self.current_tick_id,
            'actual_rate_hz': 1.0 / mean_interval if mean_interval > 0 else 0.0,
            'mean_interval_s': mean_interval,
            'interval_std_s': self.intervals.std,
            'timing_error_ms': abs(mean_interval - self.interval_s) * 1000 if self.intervals.count else 0.0
        }


class TickLoop:
    """
    Runs a tick callback at a fixed cadence until stopped.

    The callback returns True when its message was delivered. The loop ends
    when the stop event is set or, if max_messages is configured, once that
    many messages have been delivered. Exceptions from the callback
    propagate and end the loop.
    """

    def __init__(self, config: MockConfig, stop_event: Optional[threading.Event] = None):
        self.config = config
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.timing_controller = TickController(config.interval_ms, self.stop_event)
        self.messages_delivered = 0
        self.running = False

    def run(self, tick_callback: Callable[[TickInfo], bool]) -> dict:
        """
        Run ticks until stopped or the message bound is reached.

        Args:
            tick_callback: Called once per tick; returns delivery success

        Returns:
            Timing statistics for the run
        """
        self.running = True
        self.messages_delivered = 0

        try:
            self.timing_controller.start()

            while not self.stop_event.is_set() and not self._bound_reached():
                tick_info = self.timing_controller.wait_for_next_tick()
                if tick_info is None:
                    break

                if tick_callback(tick_info):
                    self.messages_delivered += 1
        finally:
            self.running = False

        return self.timing_controller.get_timing_statistics()

    def _bound_reached(self) -> bool:
        max_messages = self.config.max_messages
        return max_messages is not None and self.messages_delivered >= max_messages
