"""Decode a finalized capture, cut the chosen range and re-encode it as WAV."""

from __future__ import annotations

import io
import logging
import math
from pathlib import Path

import numpy as np
import soundfile as sf

from ..services.schemas import SubmissionForm
from .types import DecodedAudioBuffer, EncodedSubmission, TrimSelection
from .wav import encode_wav

LOGGER = logging.getLogger("clipbooth.trim")


class DecodeError(ValueError):
    """The captured blob could not be decoded."""


def decode_blob(blob: bytes | None) -> DecodedAudioBuffer:
    if not blob:
        raise DecodeError("Recording is empty")
    try:
        data, sample_rate = sf.read(io.BytesIO(blob), dtype="float32", always_2d=True)
    except Exception as exc:
        raise DecodeError(f"Unsupported or corrupt recording: {exc}") from exc
    if data.shape[0] == 0:
        raise DecodeError("Recording contains no audio")
    return DecodedAudioBuffer(samples=data.T, sample_rate=int(sample_rate))


def slice_bounds(total_frames: int, selection: TrimSelection) -> tuple[int, int]:
    start = math.floor(total_frames * selection.start_fraction)
    end = math.floor(total_frames * selection.end_fraction)
    return start, max(start, end)


def slice_buffer(buffer: DecodedAudioBuffer, selection: TrimSelection) -> DecodedAudioBuffer:
    start, end = slice_bounds(buffer.frames, selection)
    # Same indices on every channel; verbatim copy.
    return DecodedAudioBuffer(samples=buffer.samples[:, start:end], sample_rate=buffer.sample_rate)


def probe_duration_ms(path: str | Path) -> int | None:
    """Duration of an existing audio file, or None when soundfile cannot read it."""
    try:
        info = sf.info(str(path))
    except Exception as exc:
        LOGGER.debug("Cannot probe %s: %s", path, exc)
        return None
    if not info.samplerate:
        return None
    return int(info.frames / info.samplerate * 1000)


class TrimEncoder:
    """Renders the trimmed WAV submission from a finalized capture."""

    def render(
        self,
        blob: bytes | None,
        selection: TrimSelection,
        form: SubmissionForm,
    ) -> EncodedSubmission:
        decoded = decode_blob(blob)
        sliced = slice_buffer(decoded, selection)
        wav_bytes = encode_wav(sliced)
        duration_ms = sliced.duration_ms
        LOGGER.info(
            "Rendered %s of %s frame(s) at %s Hz (%.0f ms)",
            sliced.frames,
            decoded.frames,
            sliced.sample_rate,
            duration_ms,
        )
        return EncodedSubmission(
            wav_bytes=wav_bytes,
            sample_rate=sliced.sample_rate,
            channels=sliced.channels,
            frames=sliced.frames,
            duration_ms=duration_ms,
            form=form.model_copy(update={"duration_ms": duration_ms}),
        )


__all__ = [
    "DecodeError",
    "TrimEncoder",
    "decode_blob",
    "probe_duration_ms",
    "slice_bounds",
    "slice_buffer",
]
