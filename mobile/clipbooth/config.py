"""Client runtime constants resolved from the environment."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field


class ClientConfig(BaseModel):
    app_name: str = Field(default="ClipBooth")
    sample_rate: int = Field(default=int(os.getenv("CLIPBOOTH_SAMPLE_RATE", "44100")))
    channels: int = Field(default=int(os.getenv("CLIPBOOTH_CHANNELS", "1")))
    block_ms: int = Field(default=int(os.getenv("CLIPBOOTH_BLOCK_MS", "100")))
    capture_format: str = Field(default=os.getenv("CLIPBOOTH_CAPTURE_FORMAT", "FLAC"))
    timer_interval: float = Field(default=float(os.getenv("CLIPBOOTH_TIMER_INTERVAL", "0.25")))
    meter_fps: int = Field(default=int(os.getenv("CLIPBOOTH_METER_FPS", "60")))
    request_timeout: float = Field(default=float(os.getenv("CLIPBOOTH_REQUEST_TIMEOUT", "30")))
    log_history: int = Field(default=int(os.getenv("CLIPBOOTH_LOG_HISTORY", "200")))
    settings_file: str = Field(default=os.getenv("CLIPBOOTH_SETTINGS_FILE", "settings.json"))
    categories: list[str] = Field(
        default_factory=lambda: _split_categories(
            os.getenv(
                "CLIPBOOTH_CATEGORIES",
                "Podcast Episode,Community Recording,Recitation,Reminder,Other",
            )
        )
    )


def _split_categories(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


CONFIG = ClientConfig()
