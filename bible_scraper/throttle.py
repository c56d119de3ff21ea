"""Adaptive per-job request delay.

The delay shrinks after a streak of successful requests and grows when a
source answers with a rate limit. The wait handed out is never below the
source's own floor, doubles for a minute after a rate limit, and carries
+/-20% jitter so parallel workers do not fire in lockstep.
"""

import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .errors import FetchFailure, RateLimited

SUCCESS_STREAK = 5
FAILURE_WINDOW = 600.0
RATE_LIMIT_WINDOW = 60.0
JITTER = 0.2


@dataclass(frozen=True)
class SpeedPreset:
    base_delay: float
    max_delay: float
    ramp_up: float
    ramp_down: float
    initial_delay: float


SPEED_PRESETS: Dict[str, SpeedPreset] = {
    "conservative": SpeedPreset(base_delay=0.5, max_delay=8.0, ramp_up=2.0, ramp_down=0.9,
                                initial_delay=0.75),
    "balanced": SpeedPreset(base_delay=0.1, max_delay=5.0, ramp_up=1.5, ramp_down=0.85,
                            initial_delay=0.2),
    "aggressive": SpeedPreset(base_delay=0.05, max_delay=3.0, ramp_up=1.5, ramp_down=0.8,
                              initial_delay=0.075),
}


class AdaptiveThrottle:
    def __init__(self, preset: SpeedPreset, clock: Callable[[], float] = time.monotonic,
                 rng: Optional[random.Random] = None):
        self.preset = preset
        self.current_delay = preset.initial_delay
        self.consecutive_successes = 0
        self.failures: List[float] = []
        self.last_rate_limit: Optional[float] = None
        self.total_latency = 0.0
        self.success_count = 0
        self._clock = clock
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    @classmethod
    def for_speed(cls, speed: str, **kwargs) -> "AdaptiveThrottle":
        return cls(SPEED_PRESETS.get(speed, SPEED_PRESETS["balanced"]), **kwargs)

    def record_success(self, latency: float = 0.0):
        with self._lock:
            self.success_count += 1
            self.total_latency += latency
            self.consecutive_successes += 1
            if self.consecutive_successes >= SUCCESS_STREAK:
                self.current_delay = max(self.preset.base_delay,
                                         self.current_delay * self.preset.ramp_down)
                self.consecutive_successes = 0

    def record_failure(self, error: FetchFailure):
        with self._lock:
            now = self._clock()
            self.consecutive_successes = 0
            self.failures.append(now)
            self.failures = [t for t in self.failures if now - t <= FAILURE_WINDOW]

            if isinstance(error, RateLimited):
                self.last_rate_limit = now
                self.current_delay = min(self.preset.max_delay,
                                         self.current_delay * self.preset.ramp_up)

    def next_delay(self, source_floor: float = 0.0) -> float:
        with self._lock:
            delay = max(self.current_delay, source_floor)
            if (self.last_rate_limit is not None
                    and self._clock() - self.last_rate_limit < RATE_LIMIT_WINDOW):
                delay *= 2
            return delay * self._rng.uniform(1 - JITTER, 1 + JITTER)

    def recent_failures(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for t in self.failures if now - t <= FAILURE_WINDOW)

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "current_delay": round(self.current_delay, 3),
                "consecutive_successes": self.consecutive_successes,
                "recent_failures": len(self.failures),
                "avg_latency": (round(self.total_latency / self.success_count, 3)
                                if self.success_count else None),
            }
