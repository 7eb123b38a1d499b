"""Runtime configuration and logger setup.

Settings are read from the environment (``SITECAM_`` prefix) or an optional
``.env`` file. Call ``get_config()`` rather than instantiating directly so the
whole process shares one cached instance; tests may call
``get_config.cache_clear()`` after patching the environment.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class SitecamConfig(BaseSettings):
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        "INFO"
    )

    # Timeline grid
    segment_minutes: int = 5
    working_hours_start: int = 7
    working_hours_end: int = 17

    # Viewport
    min_zoom: float = 1.0
    max_zoom: float = 4.0
    zoom_step: float = 0.5
    base_segment_width: float = 0.5
    min_visible_hours: int = 4

    # Annotations
    nearby_window_seconds: float = 10.0

    # Clips
    placeholder_clip_url: str = (
        "https://bitdash-a.akamaihd.net/content/sintel/hls/playlist.m3u8"
    )
    clips_dir: Optional[Path] = None
    strict_duplicate_clips: bool = False

    # Playback
    auto_select_first_clip: bool = True
    preload_enabled: bool = True

    model_config = SettingsConfigDict(
        env_prefix="SITECAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_config() -> SitecamConfig:
    return SitecamConfig()


def configure_logging(level: str | None = None) -> None:
    """(Re)install the stderr sink at ``level`` (defaults to config)."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level or get_config().log_level,
        colorize=True,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan> | <white>{message}</white>",
    )


configure_logging()

__all__ = ["SitecamConfig", "get_config", "configure_logging", "logger"]
