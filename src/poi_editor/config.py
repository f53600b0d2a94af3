from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from poi_editor.map_layer.config import DEFAULT_STYLE, MapConfig
from poi_editor.store import DEFAULT_STORAGE_KEY

DEFAULT_STORAGE_PATH = "~/.poi_editor/state.sqlite"
DEFAULT_EXPORT_FILENAME = "pois-export.geojson"


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_lonlat(name: str, default: Tuple[float, float]) -> Tuple[float, float]:
    raw = os.getenv(name)
    if raw is None:
        return default
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 2:
        return default
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Runtime settings, read from POI_* environment variables."""

    storage_path: str
    storage_key: str
    export_filename: str
    log_level: str
    map_center: Tuple[float, float]
    map_zoom: float
    map_style: str
    fit_padding: int
    fit_max_zoom: float

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = MapConfig()
        return cls(
            storage_path=_env_str("POI_STORAGE_PATH", DEFAULT_STORAGE_PATH),
            storage_key=_env_str("POI_STORAGE_KEY", DEFAULT_STORAGE_KEY),
            export_filename=_env_str("POI_EXPORT_FILENAME", DEFAULT_EXPORT_FILENAME),
            log_level=_env_str("POI_LOG_LEVEL", "INFO").upper(),
            map_center=_env_lonlat("POI_MAP_CENTER", defaults.center),
            map_zoom=_env_float("POI_MAP_ZOOM", defaults.zoom),
            map_style=_env_str("POI_MAP_STYLE", DEFAULT_STYLE),
            fit_padding=_env_int("POI_FIT_PADDING", defaults.fit_padding),
            fit_max_zoom=_env_float("POI_FIT_MAX_ZOOM", defaults.fit_max_zoom),
        )

    def map_config(self) -> MapConfig:
        return MapConfig(
            center=self.map_center,
            zoom=self.map_zoom,
            style=self.map_style,
            fit_padding=self.fit_padding,
            fit_max_zoom=self.fit_max_zoom,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def reset_settings_cache() -> None:
    """Test helper to force env re-read."""

    get_settings.cache_clear()
