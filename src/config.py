"""Unified configuration loaded from .greenmap.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from greenmap.geo.bounds import MapBounds

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".greenmap.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "greenmap",
]

NOMINATIM_URL = "https://nominatim.openstreetmap.org"


class StoreSectionConfig(BaseModel):
    """[store] section."""

    directory: str = "./greenmap-data"


class MapSectionConfig(BaseModel):
    """[map] section — the single region the map is locked to."""

    south: float = 29.6
    west: float = -90.3
    north: float = 30.2
    east: float = -89.8
    center_lat: float = 29.9511
    center_lng: float = -90.0715
    zoom: int = 12
    min_zoom: int = 10
    max_zoom: int = 18

    @property
    def bounds(self) -> MapBounds:
        return MapBounds(south=self.south, west=self.west, north=self.north, east=self.east)


class GeocodingSectionConfig(BaseModel):
    """[geocoding] section."""

    base_url: str = NOMINATIM_URL
    user_agent: str = "greenmap/0.1"
    timeout: int = 15
    bounded: bool = False


class LocationSectionConfig(BaseModel):
    """[location] section — a fixed stand-in for the device sensor."""

    lat: float | None = None
    lng: float | None = None

    @property
    def is_configured(self) -> bool:
        return self.lat is not None and self.lng is not None


class GreenmapConfig(BaseModel):
    """Top-level configuration model."""

    store: StoreSectionConfig = Field(default_factory=StoreSectionConfig)
    map: MapSectionConfig = Field(default_factory=MapSectionConfig)
    geocoding: GeocodingSectionConfig = Field(default_factory=GeocodingSectionConfig)
    location: LocationSectionConfig = Field(default_factory=LocationSectionConfig)

    @property
    def store_dir(self) -> Path:
        return Path(self.store.directory)


def load_config(path: str | Path | None = None) -> GreenmapConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .greenmap.toml in CWD
    3. ~/.config/greenmap/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged GreenmapConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "greenmap" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = GreenmapConfig.model_validate(data) if data else GreenmapConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: GreenmapConfig, **cli_kwargs: object) -> GreenmapConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).

    Args:
        config: Base config.
        **cli_kwargs: CLI flag values, e.g. ``store_directory``,
            ``geocoder_url``, ``location_lat``.

    Returns:
        Updated config with CLI overrides applied.
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "store_directory": ("store", "directory"),
        "geocoder_url": ("geocoding", "base_url"),
        "geocoder_timeout": ("geocoding", "timeout"),
        "bounded": ("geocoding", "bounded"),
        "location_lat": ("location", "lat"),
        "location_lng": ("location", "lng"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return GreenmapConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: GreenmapConfig) -> GreenmapConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "GREENMAP_STORE_DIR": ("store", "directory"),
        "GREENMAP_GEOCODER_URL": ("geocoding", "base_url"),
        "GREENMAP_USER_AGENT": ("geocoding", "user_agent"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    bounded_raw = os.environ.get("GREENMAP_GEOCODER_BOUNDED")
    if bounded_raw is not None:
        data["geocoding"]["bounded"] = bounded_raw.lower() in ("true", "1", "yes")

    return GreenmapConfig.model_validate(data)
