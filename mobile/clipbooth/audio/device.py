"""Input device session over sounddevice, with compressed blob encoding."""

from __future__ import annotations

import io
import logging
import queue
import threading
from typing import Any, Iterable, List, Optional, Protocol

import numpy as np
import soundfile as sf

from ..config import CONFIG

LOGGER = logging.getLogger("clipbooth.device")

MIME_TYPES = {
    "FLAC": "audio/flac",
    "OGG": "audio/ogg",
    "WAV": "audio/wav",
}


class DeviceUnavailable(RuntimeError):
    """Permission denied or no capture device present."""


class DeviceStream(Protocol):
    sample_rate: int
    channels: int
    mime_type: str

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def drain(self) -> List[bytes]: ...

    def latest_frame(self) -> Optional[np.ndarray]: ...

    def finalize(self, chunks: Iterable[bytes]) -> bytes: ...

    def release(self) -> None: ...


class CaptureDevice(Protocol):
    def open(self) -> DeviceStream: ...


class SoundDeviceStream:
    """Live microphone stream. Blocks are buffered until drained on the loop thread."""

    def __init__(
        self,
        sd_module: Any,
        *,
        sample_rate: int,
        channels: int,
        block_ms: int,
        capture_format: str,
        device: Any = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.capture_format = capture_format.upper()
        self.mime_type = MIME_TYPES.get(self.capture_format, "application/octet-stream")
        self._pending: "queue.Queue[bytes]" = queue.Queue()
        self._latest: Optional[np.ndarray] = None
        self._lock = threading.Lock()
        self._paused = False
        self._released = False
        blocksize = max(1, int(sample_rate * (block_ms / 1000.0)))
        self._stream = sd_module.InputStream(
            samplerate=sample_rate,
            channels=channels,
            dtype="float32",
            blocksize=blocksize,
            device=device,
            callback=self._on_audio,
        )
        self._stream.start()

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            LOGGER.debug("input status: %s", status)
        if self._released:
            return
        block = np.array(indata, dtype=np.float32, copy=True)
        with self._lock:
            self._latest = block
        if self._paused:
            return
        self._pending.put_nowait(block.tobytes())

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def drain(self) -> List[bytes]:
        chunks: List[bytes] = []
        while True:
            try:
                chunks.append(self._pending.get_nowait())
            except queue.Empty:
                return chunks

    def latest_frame(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._latest

    def finalize(self, chunks: Iterable[bytes]) -> bytes:
        return encode_capture(
            chunks,
            sample_rate=self.sample_rate,
            channels=self.channels,
            capture_format=self.capture_format,
        )

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self._stream.stop()
        finally:
            self._stream.close()
            with self._lock:
                self._latest = None
        LOGGER.info("Input stream released")


class SoundDeviceInput:
    """Opens microphone sessions with sounddevice."""

    def __init__(
        self,
        *,
        sample_rate: int | None = None,
        channels: int | None = None,
        block_ms: int | None = None,
        capture_format: str | None = None,
        device: Any = None,
    ) -> None:
        self.sample_rate = sample_rate or CONFIG.sample_rate
        self.channels = channels or CONFIG.channels
        self.block_ms = block_ms or CONFIG.block_ms
        self.capture_format = capture_format or CONFIG.capture_format
        self.device = device
        self._sd = self._try_import_sounddevice()

    def _try_import_sounddevice(self):
        try:
            import sounddevice as sd  # type: ignore

            return sd
        except Exception as exc:
            LOGGER.warning("sounddevice unavailable: %s", exc)
            return None

    def open(self) -> SoundDeviceStream:
        if self._sd is None:
            raise DeviceUnavailable("sounddevice/PortAudio is not available")
        try:
            self._sd.check_input_settings(
                device=self.device,
                channels=self.channels,
                samplerate=self.sample_rate,
                dtype="float32",
            )
            return SoundDeviceStream(
                self._sd,
                sample_rate=self.sample_rate,
                channels=self.channels,
                block_ms=self.block_ms,
                capture_format=self.capture_format,
                device=self.device,
            )
        except Exception as exc:
            raise DeviceUnavailable(f"Microphone unavailable: {exc}") from exc


def encode_capture(
    chunks: Iterable[bytes],
    *,
    sample_rate: int,
    channels: int,
    capture_format: str = "FLAC",
) -> bytes:
    """Pack raw float32 blocks into one compressed in-memory file."""
    raw = b"".join(chunks)
    pcm = np.frombuffer(raw, dtype=np.float32).reshape(-1, channels)
    buffer = io.BytesIO()
    subtype = "VORBIS" if capture_format.upper() == "OGG" else "PCM_16"
    sf.write(buffer, pcm, sample_rate, format=capture_format.upper(), subtype=subtype)
    return buffer.getvalue()


__all__ = [
    "CaptureDevice",
    "DeviceStream",
    "DeviceUnavailable",
    "SoundDeviceInput",
    "SoundDeviceStream",
    "encode_capture",
]
