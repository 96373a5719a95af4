"""Pause-aware recording clock."""

from __future__ import annotations

import time
from typing import Any, Callable, Optional, Protocol

from ..config import CONFIG
from .types import RecordingSession, RecordingState


class ScheduledEvent(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything shaped like kivy.clock.Clock."""

    def schedule_interval(self, callback: Callable[[float], Any], timeout: float) -> ScheduledEvent: ...


def now_ms() -> int:
    return int(time.monotonic() * 1000)


def format_clock(elapsed_ms: int) -> str:
    """MM:SS with two-digit fields; minutes keep growing past 99."""
    seconds = max(0, int(elapsed_ms)) // 1000
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class RecordingTimer:
    def __init__(
        self,
        session: RecordingSession,
        publish: Callable[[str], None],
        scheduler: Scheduler,
        *,
        clock: Callable[[], int] = now_ms,
        interval: float | None = None,
    ) -> None:
        self.session = session
        self.publish = publish
        self.scheduler = scheduler
        self.clock = clock
        self.interval = interval if interval is not None else CONFIG.timer_interval
        self._event: Optional[ScheduledEvent] = None

    @property
    def running(self) -> bool:
        return self._event is not None

    def start(self) -> None:
        if self._event is not None:
            return
        self.publish(format_clock(0))
        self._event = self.scheduler.schedule_interval(self._on_tick, self.interval)

    def _on_tick(self, _dt: float) -> None:
        self.tick()

    def tick(self) -> Optional[int]:
        if self.session.state is not RecordingState.RECORDING:
            return None
        return self._publish_elapsed()

    def finish(self) -> int:
        """Publish the final value and stop ticking."""
        elapsed = self._publish_elapsed()
        self.stop()
        return elapsed

    def stop(self) -> None:
        if self._event is not None:
            self._event.cancel()
            self._event = None

    def _publish_elapsed(self) -> int:
        elapsed = self.session.elapsed_ms(self.clock())
        self.session.duration_ms = elapsed
        self.publish(format_clock(elapsed))
        return elapsed


__all__ = ["RecordingTimer", "Scheduler", "ScheduledEvent", "format_clock", "now_ms"]
