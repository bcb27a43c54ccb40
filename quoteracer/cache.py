"""
Quote Cache

Capacity- and time-bounded store of previously normalized records.

Best-effort only: any storage failure makes the cache behave as empty.
"""

from __future__ import annotations
from typing import Callable, List, Optional
from datetime import datetime, timedelta
import logging
import random

from .contracts import CachedRecord, CanonicalRecord, utc_now
from .errors import ValidationError
from .storage import CACHE_KEY, KeyValueStore, read_json, write_json

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10
DEFAULT_RETENTION = timedelta(hours=24)


class QuoteCache:
    """
    Newest-first list of CachedRecords under a single key.

    record() replaces by id, then prunes by age, then by capacity.
    sample_one() prunes by age and returns a uniformly random survivor.
    """

    def __init__(
        self,
        store: KeyValueStore,
        capacity: int = DEFAULT_CAPACITY,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
        key: str = CACHE_KEY,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._store = store
        self._capacity = capacity
        self._retention = retention
        self._clock = clock
        self._rng = rng or random.Random()
        self._key = key

    def record(self, record: CanonicalRecord) -> None:
        now = self._clock()
        entries = [e for e in self._load() if e.record.id != record.id]
        entries.insert(0, CachedRecord(record=record, cached_at=now))

        entries = self._prune_expired(entries, now)
        entries = entries[:self._capacity]
        self._save(entries)

    def sample_one(self) -> Optional[CanonicalRecord]:
        entries = self._load()
        fresh = self._prune_expired(entries, self._clock())
        if len(fresh) != len(entries):
            logger.debug("Pruned %d expired cache entries", len(entries) - len(fresh))
            self._save(fresh)

        if not fresh:
            return None
        return self._rng.choice(fresh).record

    def entries(self) -> List[CachedRecord]:
        return self._prune_expired(self._load(), self._clock())

    def clear(self) -> None:
        self._save([])

    def __len__(self) -> int:
        return len(self.entries())

    def _prune_expired(self, entries: List[CachedRecord], now: datetime) -> List[CachedRecord]:
        cutoff = now - self._retention
        return [e for e in entries if e.cached_at > cutoff]

    def _load(self) -> List[CachedRecord]:
        data = read_json(self._store, self._key)
        if not isinstance(data, list):
            return []

        entries = []
        for item in data:
            try:
                entries.append(CachedRecord.from_dict(item))
            except ValidationError as e:
                logger.warning("Dropping invalid cache entry: %s", e)
        return entries

    def _save(self, entries: List[CachedRecord]) -> None:
        write_json(self._store, self._key, [e.to_dict() for e in entries])
