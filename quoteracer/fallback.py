"""
Fallback Chain

Degraded-but-always-available answers after every live source failed.

ORDER:
======
1. A random surviving cache entry      -> provenance "cache"
2. A random entry of the bundled corpus -> provenance "offline"

This chain never fails at runtime: the corpus is checked to be
non-empty when the chain is built.
"""

from __future__ import annotations
from typing import Optional, Sequence, Tuple, Union
import logging
import random

from .cache import QuoteCache
from .contracts import CanonicalRecord, EngineResult, Provenance, RaceResult, SourceFailure
from .errors import AggregateFailure

logger = logging.getLogger(__name__)


OFFLINE_QUOTES: Tuple[CanonicalRecord, ...] = (
    CanonicalRecord(
        id='fallback-1',
        text='The only way to do great work is to love what you do.',
        author='Steve Jobs',
        provenance=Provenance.OFFLINE,
    ),
    CanonicalRecord(
        id='fallback-2',
        text='Innovation distinguishes between a leader and a follower.',
        author='Steve Jobs',
        provenance=Provenance.OFFLINE,
    ),
    CanonicalRecord(
        id='fallback-3',
        text='Life is what happens to you while you are busy making other plans.',
        author='John Lennon',
        provenance=Provenance.OFFLINE,
    ),
)


class FallbackChain:

    def __init__(
        self,
        cache: Optional[QuoteCache],
        corpus: Sequence[CanonicalRecord] = OFFLINE_QUOTES,
        rng: Optional[random.Random] = None,
    ):
        if not corpus:
            raise ValueError("offline corpus must not be empty")
        self._cache = cache
        self._corpus = tuple(corpus)
        self._rng = rng or random.Random()

    def resolve(self, failure: Union[RaceResult, AggregateFailure]) -> EngineResult:
        """Answer for a race that produced no winner."""
        failures: Tuple[SourceFailure, ...] = tuple(failure.failures)

        if self._cache is not None:
            cached = self._cache.sample_one()
            if cached is not None:
                logger.info("Serving cached quote %s after %d failures", cached.id, len(failures))
                return EngineResult.from_cache(cached, failures)

        record = self._rng.choice(self._corpus)
        logger.info("Serving offline quote %s after %d failures", record.id, len(failures))
        return EngineResult.from_offline(record, failures)
