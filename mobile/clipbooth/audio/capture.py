"""Record/pause/resume/stop state machine over a capture device."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..config import CONFIG
from .device import CaptureDevice, DeviceStream
from .level_meter import LevelMeter
from .timer import RecordingTimer, ScheduledEvent, Scheduler, now_ms
from .types import RecordingSession, RecordingState, TrimSelection

LOGGER = logging.getLogger("clipbooth.capture")

StateCallback = Callable[[RecordingState, RecordingState], None]


class InvalidTransition(RuntimeError):
    pass


class CaptureController:
    def __init__(
        self,
        device: CaptureDevice,
        scheduler: Scheduler,
        *,
        clock: Callable[[], int] = now_ms,
        on_state_change: Optional[StateCallback] = None,
        on_timer: Optional[Callable[[str], None]] = None,
        on_level: Optional[Callable[[int], None]] = None,
        timer_interval: float | None = None,
        meter_fps: int | None = None,
        pump_interval: float | None = None,
    ) -> None:
        self.device = device
        self.scheduler = scheduler
        self.clock = clock
        self._on_state_change = on_state_change
        self._on_timer = on_timer or (lambda _text: None)
        self._on_level = on_level or (lambda _level: None)
        self.timer_interval = timer_interval
        self.meter_fps = meter_fps
        self.pump_interval = pump_interval if pump_interval is not None else CONFIG.block_ms / 1000.0

        self.session = RecordingSession()
        self.selection: Optional[TrimSelection] = None
        self._stream: Optional[DeviceStream] = None
        self._timer: Optional[RecordingTimer] = None
        self._meter: Optional[LevelMeter] = None
        self._pump_event: Optional[ScheduledEvent] = None

    @property
    def state(self) -> RecordingState:
        return self.session.state

    @property
    def blob(self) -> Optional[bytes]:
        return self.session.blob

    def start(self) -> RecordingSession:
        if self.state not in (RecordingState.IDLE, RecordingState.STOPPED):
            raise InvalidTransition(f"cannot start while {self.state.value}")
        # DeviceUnavailable propagates; nothing has changed yet.
        stream = self.device.open()
        previous = self.state
        self._stream = stream
        self.selection = None
        self.session = RecordingSession(
            started_at_ms=self.clock(),
            state=RecordingState.RECORDING,
            mime_type=stream.mime_type,
            sample_rate=stream.sample_rate,
            channels=stream.channels,
        )
        self._timer = RecordingTimer(
            self.session,
            self._on_timer,
            self.scheduler,
            clock=self.clock,
            interval=self.timer_interval,
        )
        self._meter = LevelMeter(stream.latest_frame, self._on_level, self.scheduler, fps=self.meter_fps)
        self._timer.start()
        self._meter.start()
        self._pump_event = self.scheduler.schedule_interval(lambda _dt: self.pump(), self.pump_interval)
        LOGGER.info("Recording started (%s Hz, %s ch)", stream.sample_rate, stream.channels)
        self._notify(previous, RecordingState.RECORDING)
        return self.session

    def pause(self) -> None:
        self._require(RecordingState.RECORDING, action="pause")
        self.pump()
        self.session.paused_at_ms = self.clock()
        if self._timer:
            self._timer.tick()
        if self._stream:
            self._stream.pause()
        self._transition(RecordingState.PAUSED)

    def resume(self) -> None:
        self._require(RecordingState.PAUSED, action="resume")
        self._commit_pause()
        if self._stream:
            self._stream.resume()
        self._transition(RecordingState.RECORDING)

    def stop(self) -> bytes:
        self._require(RecordingState.RECORDING, RecordingState.PAUSED, action="stop")
        stream = self._stream
        previous = self.state
        try:
            self.pump()
            self._commit_pause()
            if self._timer:
                self._timer.finish()
            blob = stream.finalize(self.session.chunks) if stream else b""
        except Exception:
            LOGGER.exception("Finalizing capture failed")
            self._release()
            self.session = RecordingSession()
            self._notify(previous, RecordingState.IDLE)
            raise
        self._release()
        self.session.blob = blob
        self._transition(RecordingState.STOPPED)
        LOGGER.info(
            "Recording stopped (%s chunk(s), %s ms)",
            len(self.session.chunks),
            self.session.duration_ms,
        )
        return blob

    def re_record(self) -> None:
        previous = self.state
        self._release()
        self.session = RecordingSession()
        self.selection = None
        self._notify(previous, RecordingState.IDLE)

    def close(self) -> None:
        self._release()

    def on_data(self, chunk: bytes) -> bool:
        if self.session.state is not RecordingState.RECORDING or not chunk:
            return False
        self.session.chunks.append(bytes(chunk))
        return True

    def pump(self) -> int:
        """Move blocks buffered by the device into the session."""
        if self._stream is None:
            return 0
        accepted = 0
        for chunk in self._stream.drain():
            if self.on_data(chunk):
                accepted += 1
        return accepted

    def _commit_pause(self) -> None:
        paused_at = self.session.paused_at_ms
        if paused_at is None:
            return
        self.session.accumulated_pause_ms += max(0, self.clock() - paused_at)
        self.session.paused_at_ms = None

    def _release(self) -> None:
        if self._pump_event is not None:
            self._pump_event.cancel()
            self._pump_event = None
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        stream, self._stream = self._stream, None
        try:
            if stream is not None:
                stream.release()
        finally:
            if self._meter is not None:
                self._meter.stop()
                self._meter = None

    def _require(self, *states: RecordingState, action: str) -> None:
        if self.state not in states:
            raise InvalidTransition(f"cannot {action} while {self.state.value}")

    def _transition(self, to_state: RecordingState) -> None:
        from_state = self.session.state
        if from_state == to_state:
            return
        self.session.state = to_state
        self._notify(from_state, to_state)

    def _notify(self, from_state: RecordingState, to_state: RecordingState) -> None:
        if from_state != to_state and self._on_state_change:
            self._on_state_change(from_state, to_state)


__all__ = ["CaptureController", "InvalidTransition"]
