"""
Settings

Two kinds of configuration live here:

- SlideshowSettings: user-facing, persisted under a fixed key,
  loaded once at startup and saved on change.
- EngineConfig: process configuration, built from constructor defaults
  and optionally overridden from the environment.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Mapping, Optional
from pathlib import Path
import logging
import math
import os

from .storage import SETTINGS_KEY, KeyValueStore, read_json, write_json

logger = logging.getLogger(__name__)


# =============================================================================
# SLIDESHOW SETTINGS
# =============================================================================

@dataclass(frozen=True)
class SlideshowSettings:
    enabled: bool = True
    interval_seconds: int = 7

    def to_dict(self) -> dict:
        return {'enabled': self.enabled, 'intervalSeconds': self.interval_seconds}


DEFAULT_SLIDESHOW_SETTINGS = SlideshowSettings()


class SettingsStore:
    """Load-at-startup / save-on-change access to SlideshowSettings."""

    def __init__(self, store: KeyValueStore, key: str = SETTINGS_KEY):
        self._store = store
        self._key = key

    def load(self) -> SlideshowSettings:
        data = read_json(self._store, self._key)
        if not isinstance(data, dict):
            return DEFAULT_SLIDESHOW_SETTINGS

        enabled = data.get('enabled')
        interval = data.get('intervalSeconds')
        if not isinstance(enabled, bool):
            enabled = DEFAULT_SLIDESHOW_SETTINGS.enabled
        if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
            interval = DEFAULT_SLIDESHOW_SETTINGS.interval_seconds

        return SlideshowSettings(enabled=enabled, interval_seconds=interval)

    def save(self, settings: SlideshowSettings) -> bool:
        return write_json(self._store, self._key, settings.to_dict())


# =============================================================================
# ENGINE CONFIG
# =============================================================================

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_STORAGE_PATH = Path.home() / '.quote-racer' / 'state.db'

ENV_PREFIX = 'QUOTE_RACER_'


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the acquisition engine."""
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    cache_capacity: int = 10
    cache_retention_hours: float = 24.0
    storage_path: Optional[Path] = DEFAULT_STORAGE_PATH
    sources_path: Optional[Path] = None
    user_agent: str = "QuoteRacer/1.0"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'EngineConfig':
        """
        Build config from QUOTE_RACER_* variables.

        Invalid numeric values fall back to defaults. An empty
        QUOTE_RACER_STORAGE_PATH disables persistence.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        storage_path = defaults.storage_path
        raw_storage = env.get(ENV_PREFIX + 'STORAGE_PATH')
        if raw_storage is not None:
            storage_path = Path(raw_storage).expanduser() if raw_storage.strip() else None

        raw_sources = env.get(ENV_PREFIX + 'SOURCES_PATH')

        return cls(
            timeout_ms=_env_number(env, 'TIMEOUT_MS', defaults.timeout_ms, int),
            cache_capacity=_env_number(env, 'CACHE_CAPACITY', defaults.cache_capacity, int),
            cache_retention_hours=_env_number(
                env, 'CACHE_RETENTION_HOURS', defaults.cache_retention_hours, float
            ),
            storage_path=storage_path,
            sources_path=Path(raw_sources).expanduser() if raw_sources else None,
            user_agent=env.get(ENV_PREFIX + 'USER_AGENT', defaults.user_agent),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data['storage_path'] = str(self.storage_path) if self.storage_path else None
        data['sources_path'] = str(self.sources_path) if self.sources_path else None
        return data


def _env_number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s%s=%r", ENV_PREFIX, name, raw)
        return default
    if not math.isfinite(value):
        logger.warning("Ignoring non-finite %s%s=%r", ENV_PREFIX, name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s%s=%r", ENV_PREFIX, name, raw)
        return default
    return value
