import json
from pathlib import Path

from quoteracer.engine import create_engine
from quoteracer.errors import StorageError
from quoteracer.settings import (
    DEFAULT_SLIDESHOW_SETTINGS, DEFAULT_TIMEOUT_MS,
    EngineConfig, SettingsStore, SlideshowSettings,
)
from quoteracer.storage import SETTINGS_KEY, MemoryKeyValueStore


class TestSettingsStore:
    """Slideshow settings persistence."""

    def test_defaults_when_empty(self):
        """Nothing stored yields the defaults."""
        assert SettingsStore(MemoryKeyValueStore()).load() == SlideshowSettings(enabled=True, interval_seconds=7)

    def test_saved_settings(self):
        """Saved settings use the camelCase layout and load back."""
        store = MemoryKeyValueStore()
        settings = SettingsStore(store)
        settings.save(SlideshowSettings(enabled=False, interval_seconds=15))

        assert json.loads(store.get(SETTINGS_KEY)) == {"enabled": False, "intervalSeconds": 15}
        assert settings.load() == SlideshowSettings(enabled=False, interval_seconds=15)

    def test_partial_settings_use_defaults(self):
        """Missing fields are filled from the defaults."""
        store = MemoryKeyValueStore({SETTINGS_KEY: '{"enabled": false}'})
        loaded = SettingsStore(store).load()
        assert loaded.enabled is False
        assert loaded.interval_seconds == DEFAULT_SLIDESHOW_SETTINGS.interval_seconds

    def test_invalid_values_use_defaults(self):
        """Mistyped or non-positive fields are replaced by defaults."""
        store = MemoryKeyValueStore({SETTINGS_KEY: '{"enabled": "yes", "intervalSeconds": -3}'})
        assert SettingsStore(store).load() == DEFAULT_SLIDESHOW_SETTINGS

    def test_corrupt_json_uses_defaults(self):
        """Unparseable stored value is treated as absent."""
        store = MemoryKeyValueStore({SETTINGS_KEY: "invalid-json"})
        assert SettingsStore(store).load() == DEFAULT_SLIDESHOW_SETTINGS

    def test_save_failure_does_not_raise(self):
        """Storage failure on save is reported, not raised."""
        class FailingStore(MemoryKeyValueStore):
            def set(self, key, value):
                raise StorageError("Storage quota exceeded")

        assert SettingsStore(FailingStore()).save(SlideshowSettings()) is False


class TestEngineConfig:
    """Environment-driven engine configuration."""

    def test_defaults(self):
        """Empty environment yields the documented defaults."""
        config = EngineConfig.from_env({})
        assert config.timeout_ms == DEFAULT_TIMEOUT_MS
        assert config.timeout_seconds == DEFAULT_TIMEOUT_MS / 1000
        assert config.cache_capacity == 10
        assert config.sources_path is None

    def test_overrides(self):
        """Every QUOTE_RACER_* variable is honoured."""
        config = EngineConfig.from_env({
            'QUOTE_RACER_TIMEOUT_MS': '1500',
            'QUOTE_RACER_CACHE_CAPACITY': '3',
            'QUOTE_RACER_CACHE_RETENTION_HOURS': '0.5',
            'QUOTE_RACER_STORAGE_PATH': '/tmp/qr/state.db',
            'QUOTE_RACER_SOURCES_PATH': '/etc/qr/sources.json',
        })
        assert config.timeout_ms == 1500
        assert config.cache_capacity == 3
        assert config.cache_retention_hours == 0.5
        assert config.storage_path == Path('/tmp/qr/state.db')
        assert config.sources_path == Path('/etc/qr/sources.json')

    def test_invalid_numbers_fall_back(self):
        """Unparseable, non-positive and non-finite numbers use defaults."""
        config = EngineConfig.from_env({
            'QUOTE_RACER_TIMEOUT_MS': 'fast',
            'QUOTE_RACER_CACHE_CAPACITY': '0',
            'QUOTE_RACER_CACHE_RETENTION_HOURS': 'nan',
        })
        assert config.timeout_ms == DEFAULT_TIMEOUT_MS
        assert config.cache_capacity == 10
        assert config.cache_retention_hours == 24.0

        assert EngineConfig.from_env({'QUOTE_RACER_CACHE_RETENTION_HOURS': 'inf'}).cache_retention_hours == 24.0
        assert EngineConfig.from_env({'QUOTE_RACER_CACHE_RETENTION_HOURS': '-inf'}).cache_retention_hours == 24.0

    def test_non_finite_retention_still_builds_engine(self):
        """nan/inf retention never reaches the cache constructor."""
        for raw in ('nan', 'inf'):
            config = EngineConfig.from_env({
                'QUOTE_RACER_CACHE_RETENTION_HOURS': raw,
                'QUOTE_RACER_STORAGE_PATH': '',
            })
            engine = create_engine(config)
            assert engine.get_stats()['config']['cache_retention_hours'] == 24.0

    def test_empty_storage_path_disables_persistence(self):
        """Blank storage path selects the in-memory store."""
        assert EngineConfig.from_env({'QUOTE_RACER_STORAGE_PATH': ''}).storage_path is None
