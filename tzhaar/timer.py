"""Elapsed-time display values and the clocks that drive them."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

TEXT_COLOR = (255, 255, 255)
PAUSED_TEXT_COLOR = (255, 200, 0)


def format_elapsed(delta: timedelta) -> str:
    """Format as ``M:SS``, switching to ``H:MM:SS`` after the first hour."""
    total = max(0, int(delta.total_seconds()))
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


@dataclass(eq=False)
class TimerInfoBox:
    """On-screen timer box showing time elapsed since ``start_time``.

    A set ``freeze_time`` stops the display at that instant, which is how a
    paused run is shown.
    """

    image: Any
    start_time: datetime
    freeze_time: datetime | None = None

    @property
    def paused(self) -> bool:
        return self.freeze_time is not None

    def elapsed(self, now: datetime) -> timedelta:
        end = self.freeze_time if self.freeze_time is not None else now
        return max(timedelta(0), end - self.start_time)

    def text(self, now: datetime) -> str:
        return format_elapsed(self.elapsed(now))

    def text_color(self) -> tuple[int, int, int]:
        return PAUSED_TEXT_COLOR if self.paused else TEXT_COLOR

    def tooltip(self, now: datetime) -> str:
        return f"Elapsed time: {self.text(now)}"


class WallClock:
    """Real time as an aware UTC datetime."""

    def __call__(self) -> datetime:
        return datetime.now(timezone.utc)


class ReplayClock:
    """Monotonic frame timing mapped onto a virtual wall clock.

    Frame deltas come from :func:`time.perf_counter` and are scaled by
    ``speed``; ``now()`` is ``origin`` plus the scaled session time.
    """

    def __init__(self, origin: datetime | None = None, speed: float = 1.0) -> None:
        now = time.perf_counter()
        self._last_tick = now
        self.origin = origin if origin is not None else datetime.now(timezone.utc)
        self.speed = speed

        self.delta_time = 0.0
        self.session_time = 0.0

    def tick(self) -> float:
        """Advance and return the scaled delta time in seconds."""
        now = time.perf_counter()
        self.delta_time = max(0.0, now - self._last_tick) * self.speed
        self._last_tick = now
        self.session_time += self.delta_time
        return self.delta_time

    def advance(self, seconds: float) -> None:
        """Step virtual time without consulting the performance counter."""
        self.delta_time = max(0.0, seconds)
        self.session_time += self.delta_time

    def __call__(self) -> datetime:
        return self.origin + timedelta(seconds=self.session_time)
