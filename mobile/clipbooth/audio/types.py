"""Dataclasses shared across audio helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np

from ..services.schemas import SubmissionForm


class RecordingState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    PAUSED = "PAUSED"
    STOPPED = "STOPPED"


@dataclass(slots=True)
class RecordingSession:
    """One capture-to-submit attempt. Replaced wholesale on re-record."""

    started_at_ms: int = 0
    state: RecordingState = RecordingState.IDLE
    chunks: List[bytes] = field(default_factory=list)
    accumulated_pause_ms: int = 0
    paused_at_ms: Optional[int] = None
    blob: Optional[bytes] = None
    mime_type: str = "audio/flac"
    sample_rate: int = 0
    channels: int = 0
    duration_ms: int = 0

    def elapsed_ms(self, now_ms: int) -> int:
        """Recorded time, excluding paused intervals."""
        if self.paused_at_ms is not None:
            now_ms = self.paused_at_ms
        return max(0, now_ms - self.started_at_ms - self.accumulated_pause_ms)


@dataclass(frozen=True, slots=True)
class TrimSelection:
    """Fractional trim bounds against the decoded sample timeline."""

    start_fraction: float = 0.0
    end_fraction: float = 1.0

    def __post_init__(self) -> None:
        for name in ("start_fraction", "end_fraction"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value!r}")

    @classmethod
    def from_percent(cls, start: float, end: float) -> "TrimSelection":
        return cls(float(start) / 100.0, float(end) / 100.0)

    @classmethod
    def full(cls) -> "TrimSelection":
        return cls(0.0, 1.0)


@dataclass(frozen=True, slots=True)
class DecodedAudioBuffer:
    """Float PCM shaped (channels, frames) in [-1, 1]."""

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        data = np.array(self.samples, dtype=np.float32)
        if data.ndim == 1:
            data = data.reshape(1, -1)
        if data.ndim != 2:
            raise ValueError("samples must be shaped (channels, frames)")
        if self.sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        data.setflags(write=False)
        object.__setattr__(self, "samples", data)

    @property
    def channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def frames(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration_ms(self) -> float:
        return self.frames / self.sample_rate * 1000

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]


@dataclass(frozen=True, slots=True)
class EncodedSubmission:
    """Trimmed WAV payload plus the form it is submitted with."""

    wav_bytes: bytes
    sample_rate: int
    channels: int
    frames: int
    duration_ms: float
    form: SubmissionForm
    filename: str = "recording.wav"
    mime_type: str = "audio/wav"
