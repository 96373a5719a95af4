"""Canonical 16-bit PCM RIFF/WAVE writer."""

from __future__ import annotations

import struct

import numpy as np

from .types import DecodedAudioBuffer

HEADER_SIZE = 44
BYTES_PER_SAMPLE = 2
PCM_FORMAT = 1


def wav_header(frames: int, channels: int, sample_rate: int) -> bytes:
    data_length = frames * channels * BYTES_PER_SAMPLE
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        HEADER_SIZE + data_length - 8,
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT,
        channels,
        sample_rate,
        sample_rate * channels * BYTES_PER_SAMPLE,
        channels * BYTES_PER_SAMPLE,
        BYTES_PER_SAMPLE * 8,
        b"data",
        data_length,
    )


def float_to_pcm16(samples: np.ndarray) -> np.ndarray:
    """Clamp to [-1, 1]; negatives scale by 32768, the rest by 32767."""
    data = np.nan_to_num(np.asarray(samples, dtype=np.float64), nan=0.0)
    clipped = np.clip(data, -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
    # astype truncates toward zero
    return scaled.astype(np.int16)


def encode_wav(buffer: DecodedAudioBuffer) -> bytes:
    pcm = float_to_pcm16(buffer.samples)
    # (channels, frames) -> frame-major interleave in channel order
    interleaved = np.ascontiguousarray(pcm.T).astype("<i2", copy=False)
    return wav_header(buffer.frames, buffer.channels, buffer.sample_rate) + interleaved.tobytes()


__all__ = ["encode_wav", "float_to_pcm16", "wav_header"]
