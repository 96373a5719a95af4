"""Live input level meter (peak deviation as a percentage)."""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional

import numpy as np

from ..config import CONFIG
from .timer import ScheduledEvent, Scheduler

LOGGER = logging.getLogger("clipbooth.meter")


def peak_level(frame: Optional[np.ndarray]) -> int:
    """Peak absolute deviation from the signal centre, 0-100."""
    if frame is None:
        return 0
    data = np.asarray(frame)
    if data.size == 0:
        return 0
    if np.issubdtype(data.dtype, np.unsignedinteger):
        # Unsigned PCM (e.g. 8-bit analyser frames) is centred mid-range.
        center = (int(np.iinfo(data.dtype).max) + 1) / 2.0
        full_scale = center
    elif np.issubdtype(data.dtype, np.signedinteger):
        center = 0.0
        full_scale = float(-int(np.iinfo(data.dtype).min))
    else:
        center = 0.0
        full_scale = 1.0
    peak = float(np.max(np.abs(data.astype(np.float64) - center)))
    if not math.isfinite(peak):
        return 0
    return max(0, min(100, math.floor(peak / full_scale * 100)))


class LevelMeter:
    """Samples the latest device frame on every animation frame."""

    def __init__(
        self,
        read_frame: Callable[[], Optional[np.ndarray]],
        publish: Callable[[int], None],
        scheduler: Scheduler,
        *,
        fps: int | None = None,
    ) -> None:
        self.read_frame = read_frame
        self.publish = publish
        self.scheduler = scheduler
        self.fps = max(1, int(fps or CONFIG.meter_fps))
        self.level = 0
        self._event: Optional[ScheduledEvent] = None

    @property
    def running(self) -> bool:
        return self._event is not None

    def start(self) -> None:
        if self._event is not None:
            return
        self._event = self.scheduler.schedule_interval(self._on_frame, 1.0 / self.fps)

    def _on_frame(self, _dt: float) -> None:
        self.tick()

    def tick(self) -> int:
        try:
            level = peak_level(self.read_frame())
        except Exception as exc:
            LOGGER.debug("level read failed: %s", exc)
            level = 0
        self.level = level
        self.publish(level)
        return level

    def stop(self) -> None:
        if self._event is not None:
            self._event.cancel()
            self._event = None
        self.level = 0
        self.publish(0)


__all__ = ["LevelMeter", "peak_level"]
