"""
Quote Racer

Races several independently-owned quote APIs, normalizes whichever answers
first into one canonical record, and degrades to a local cache and then a
bundled offline corpus so callers always get a quote within a bounded time.

DIRECTION OF DEPENDENCY:
========================
engine -> race -> fetcher -> normalizers
engine -> fallback -> cache -> storage

Presentation code imports only from this package root.
"""

from .contracts import (
    CanonicalRecord,
    SourceDescriptor,
    SourceSuccess,
    SourceFailure,
    SourceOutcome,
    RaceResult,
    CachedRecord,
    EngineResult,
    FetchStatus,
    Provenance,
)

from .errors import (
    QuoteEngineError,
    NetworkError,
    HttpStatusError,
    ValidationError,
    CancellationError,
    AggregateFailure,
    StorageError,
)

from .registry import SourceRegistry
from .cache import QuoteCache
from .fallback import FallbackChain, OFFLINE_QUOTES
from .race import RaceCoordinator
from .fetcher import SourceFetcher
from .ratings import RatingsStore
from .settings import EngineConfig, SettingsStore, SlideshowSettings
from .storage import KeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore
from .labels import format_source_label
from .engine import QuoteEngine, create_engine, get_engine, reset_engine, acquire

__version__ = "1.0.0"
