"""Pytest configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


def _ensure_repo_on_path() -> None:
    """Allow tests to import from repo modules without setting PYTHONPATH."""
    repo_root = Path(__file__).resolve().parents[1]
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()

from mobile.clipbooth.audio.device import DeviceUnavailable, encode_capture  # noqa: E402


class ManualEvent:
    def __init__(self, scheduler: "ManualScheduler", callback, interval: float) -> None:
        self.scheduler = scheduler
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Stands in for kivy's Clock; callbacks run only when the test says so."""

    def __init__(self) -> None:
        self.events: list[ManualEvent] = []

    def schedule_interval(self, callback, interval: float) -> ManualEvent:
        event = ManualEvent(self, callback, interval)
        self.events.append(event)
        return event

    @property
    def active(self) -> list[ManualEvent]:
        return [event for event in self.events if not event.cancelled]

    def run(self, times: int = 1) -> None:
        for _ in range(times):
            for event in self.active:
                event.callback(event.interval)


class FakeClock:
    def __init__(self, start_ms: int = 1_000_000) -> None:
        self.now = start_ms

    def advance(self, ms: int) -> None:
        self.now += ms

    def __call__(self) -> int:
        return self.now


class FakeStream:
    def __init__(self, sample_rate: int = 44100, channels: int = 1, fail_finalize: bool = False) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.mime_type = "audio/flac"
        self.fail_finalize = fail_finalize
        self.paused = False
        self.released = 0
        self._pending: list[bytes] = []
        self._latest = None

    def feed(self, block: np.ndarray) -> None:
        block = np.asarray(block, dtype=np.float32).reshape(-1, self.channels)
        self._latest = block
        if not self.paused:
            self._pending.append(block.tobytes())

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def drain(self) -> list[bytes]:
        chunks, self._pending = self._pending, []
        return chunks

    def latest_frame(self):
        return self._latest

    def finalize(self, chunks) -> bytes:
        if self.fail_finalize:
            raise RuntimeError("encoder exploded")
        return encode_capture(chunks, sample_rate=self.sample_rate, channels=self.channels)

    def release(self) -> None:
        self.released += 1
        self._latest = None


class FakeDevice:
    def __init__(self, stream: FakeStream | None = None, *, denied: bool = False) -> None:
        self.stream = stream or FakeStream()
        self.denied = denied
        self.opened = 0

    def open(self) -> FakeStream:
        if self.denied:
            raise DeviceUnavailable("Permission denied")
        self.opened += 1
        return self.stream


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def device() -> FakeDevice:
    return FakeDevice()
