"""
Engine Facade

The single operation presentation layers call.

USAGE:
======
```python
engine = create_engine()
result = engine.acquire_sync(timeout_ms=3000)
print(result.text, result.author, result.provenance)
```

GUARANTEES:
===========
1. acquire() always returns an EngineResult, never raises for source failures
2. Live wins are written through the cache before returning
3. Cache and offline answers are never written back to the cache
"""

from __future__ import annotations
from dataclasses import replace
from datetime import timedelta
from typing import Optional
import asyncio
import logging
import time

import httpx

from .cache import QuoteCache
from .contracts import EngineResult
from .fallback import FallbackChain
from .fetcher import SourceFetcher
from .race import RaceCoordinator
from .ratings import RatingsStore
from .registry import SourceRegistry
from .settings import EngineConfig, SettingsStore
from .storage import KeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore

logger = logging.getLogger(__name__)


class QuoteEngine:
    """
    Composes race -> (cache write | fallback chain).

    An httpx client may be injected; otherwise one is opened per call.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        cache: Optional[QuoteCache] = None,
        fallback: Optional[FallbackChain] = None,
        config: Optional[EngineConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        store: Optional[KeyValueStore] = None,
    ):
        self._registry = registry
        self._cache = cache
        self._fallback = fallback or FallbackChain(cache)
        self._config = config or EngineConfig()
        self._client = client
        self._transport = transport
        self._store = store

    # =========================================================================
    # ACQUISITION
    # =========================================================================

    async def acquire(self, timeout_ms: Optional[int] = None) -> EngineResult:
        """Fastest valid live quote, else a cached one, else an offline one."""
        timeout = self._config.timeout_seconds if timeout_ms is None else timeout_ms / 1000.0
        started = time.perf_counter()
        sources = self._registry.enabled_sources()

        if self._client is not None:
            race = await self._race(self._client, sources, timeout)
        else:
            async with httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                race = await self._race(client, sources, timeout)

        if race.winner is not None:
            if self._cache is not None:
                self._cache.record(race.winner.record)
            return EngineResult.from_live(race)

        result = self._fallback.resolve(race)
        return replace(result, duration_ms=(time.perf_counter() - started) * 1000)

    def acquire_sync(self, timeout_ms: Optional[int] = None) -> EngineResult:
        """Blocking wrapper for callers without an event loop."""
        return asyncio.run(self.acquire(timeout_ms))

    async def _race(self, client: httpx.AsyncClient, sources, timeout: float):
        fetcher = SourceFetcher(client, user_agent=self._config.user_agent)
        return await RaceCoordinator(fetcher).race(sources, timeout)

    # =========================================================================
    # COLLABORATORS
    # =========================================================================

    @property
    def registry(self) -> SourceRegistry:
        return self._registry

    @property
    def cache(self) -> Optional[QuoteCache]:
        return self._cache

    @property
    def ratings(self) -> RatingsStore:
        return RatingsStore(self._require_store())

    @property
    def slideshow_settings(self) -> SettingsStore:
        return SettingsStore(self._require_store())

    def _require_store(self) -> KeyValueStore:
        if self._store is None:
            self._store = MemoryKeyValueStore()
        return self._store

    def get_stats(self) -> dict:
        return {
            'registry': self._registry.stats(),
            'cache_entries': len(self._cache) if self._cache is not None else 0,
            'config': self._config.to_dict(),
        }


def create_engine(
    config: Optional[EngineConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> QuoteEngine:
    """Create engine with the bundled registry and a persisted cache."""
    config = config or EngineConfig.from_env()
    registry = SourceRegistry.load(config.sources_path)

    if config.storage_path is not None:
        store: KeyValueStore = SqliteKeyValueStore(config.storage_path)
    else:
        store = MemoryKeyValueStore()

    cache = QuoteCache(
        store,
        capacity=config.cache_capacity,
        retention=timedelta(hours=config.cache_retention_hours),
    )
    return QuoteEngine(
        registry=registry,
        cache=cache,
        config=config,
        transport=transport,
        store=store,
    )


_default_engine: Optional[QuoteEngine] = None


def get_engine() -> QuoteEngine:
    """Process-wide engine, created on first use."""
    global _default_engine
    if _default_engine is None:
        _default_engine = create_engine()
    return _default_engine


def reset_engine() -> None:
    global _default_engine
    _default_engine = None


async def acquire(timeout_ms: Optional[int] = None) -> EngineResult:
    """Acquire a quote from the process-wide engine."""
    return await get_engine().acquire(timeout_ms)
