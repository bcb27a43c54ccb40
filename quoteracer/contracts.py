"""
Quote Acquisition Contracts

Immutable data structures shared by every stage of the engine.

BOUNDARY: Acquisition Layer
All upstream data leaves the engine through these contracts.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Optional, Tuple, Union
from datetime import datetime, timezone
from enum import Enum

from .errors import ValidationError


# =============================================================================
# ENUMS & CONSTANTS
# =============================================================================

class FetchStatus(Enum):
    """Status of a single source request."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    PARSE_ERROR = "parse_error"
    VALIDATION_ERROR = "validation_error"
    NETWORK_ERROR = "network_error"
    CANCELLED = "cancelled"


class Provenance:
    """Provenance tags that are not live source ids."""
    CACHE = "cache"
    OFFLINE = "offline"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# CANONICAL RECORD
# =============================================================================

@dataclass(frozen=True)
class CanonicalRecord:
    """
    The unified quote representation every source is normalized into.

    INVARIANT: text is never empty once constructed.
    """
    id: str
    text: str
    author: Optional[str] = None
    provenance: str = ""

    def __post_init__(self):
        if not isinstance(self.text, str) or not self.text.strip():
            raise ValidationError("Missing quote text", field="text")

    def with_provenance(self, provenance: str) -> "CanonicalRecord":
        return replace(self, provenance=provenance)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'text': self.text,
            'provenance': self.provenance,
        }
        if self.author is not None:
            data['author'] = self.author
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "CanonicalRecord":
        if not isinstance(data, dict):
            raise ValidationError("Invalid record format")
        author = data.get('author')
        return cls(
            id=str(data.get('id') or ''),
            text=str(data.get('text') or ''),
            author=str(author) if author else None,
            provenance=str(data.get('provenance') or ''),
        )


# =============================================================================
# SOURCE CONFIGURATION
# =============================================================================

Normalizer = Callable[[Any], CanonicalRecord]


@dataclass(frozen=True)
class SourceDescriptor:
    """One upstream endpoint paired with its normalizer."""
    source_id: str
    name: str
    url: str
    shape: str
    normalize: Normalizer = field(compare=False, repr=False)
    enabled: bool = True

    def __hash__(self):
        return hash(self.source_id)


# =============================================================================
# SOURCE OUTCOMES
# =============================================================================

@dataclass(frozen=True)
class SourceSuccess:
    """A source answered with a payload that normalized cleanly."""
    source_id: str
    url: str
    record: CanonicalRecord
    elapsed_ms: float = 0.0

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class SourceFailure:
    """
    A source request that did not produce a record.

    Failures are FIRST-CLASS outputs, not exceptions.
    """
    source_id: str
    url: str
    status: FetchStatus
    cause: Exception = field(compare=False)
    elapsed_ms: float = 0.0

    @property
    def success(self) -> bool:
        return False

    @property
    def error_message(self) -> str:
        return str(self.cause)


SourceOutcome = Union[SourceSuccess, SourceFailure]


@dataclass(frozen=True)
class RaceResult:
    """Result of one race: at most one winner plus every recorded failure."""
    winner: Optional[SourceSuccess]
    failures: Tuple[SourceFailure, ...]
    started_at: datetime
    completed_at: datetime

    @property
    def success(self) -> bool:
        return self.winner is not None

    @property
    def duration_ms(self) -> float:
        return (self.completed_at - self.started_at).total_seconds() * 1000

    def failures_by_source(self) -> Dict[str, SourceFailure]:
        return {f.source_id: f for f in self.failures}


# =============================================================================
# CACHE & ENGINE OUTPUT
# =============================================================================

@dataclass(frozen=True)
class CachedRecord:
    """A canonical record plus the moment it was written to the cache."""
    record: CanonicalRecord
    cached_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        data = self.record.to_dict()
        data['cachedAt'] = self.cached_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "CachedRecord":
        if not isinstance(data, dict):
            raise ValidationError("Invalid cache entry")
        try:
            cached_at = datetime.fromisoformat(str(data['cachedAt']))
        except (KeyError, ValueError) as e:
            raise ValidationError(f"Invalid cachedAt: {e}", field="cachedAt")
        if cached_at.tzinfo is None:
            cached_at = cached_at.replace(tzinfo=timezone.utc)
        return cls(record=CanonicalRecord.from_dict(data), cached_at=cached_at)


@dataclass(frozen=True)
class EngineResult:
    """The sole output of the engine facade."""
    record: CanonicalRecord
    provenance: str
    source_url: Optional[str] = None
    failures: Tuple[SourceFailure, ...] = ()
    duration_ms: float = 0.0

    @property
    def is_live(self) -> bool:
        return self.provenance not in (Provenance.CACHE, Provenance.OFFLINE)

    @property
    def text(self) -> str:
        return self.record.text

    @property
    def author(self) -> Optional[str]:
        return self.record.author

    @classmethod
    def from_live(cls, race: RaceResult) -> "EngineResult":
        winner = race.winner
        if winner is None:
            raise ValueError("race has no winner")
        return cls(
            record=winner.record,
            provenance=winner.record.provenance,
            source_url=winner.url,
            failures=race.failures,
            duration_ms=race.duration_ms,
        )

    @classmethod
    def from_cache(cls, record: CanonicalRecord, failures: Tuple[SourceFailure, ...] = ()) -> "EngineResult":
        return cls(
            record=record.with_provenance(Provenance.CACHE),
            provenance=Provenance.CACHE,
            failures=failures,
        )

    @classmethod
    def from_offline(cls, record: CanonicalRecord, failures: Tuple[SourceFailure, ...] = ()) -> "EngineResult":
        return cls(
            record=record.with_provenance(Provenance.OFFLINE),
            provenance=Provenance.OFFLINE,
            failures=failures,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.record.id,
            'text': self.record.text,
            'author': self.record.author,
            'provenance': self.provenance,
            'source_url': self.source_url,
            'duration_ms': round(self.duration_ms, 1),
            'failures': [
                {'source': f.source_id, 'status': f.status.value, 'error': f.error_message}
                for f in self.failures
            ],
        }
