"""
Quote Engine Errors

Typed failures raised inside the acquisition engine.

PROPAGATION:
============
- NetworkError, HttpStatusError, ValidationError, CancellationError are
  per-source. They are caught inside the race coordinator and surface only
  as causes attached to SourceFailure outcomes.
- AggregateFailure bundles every per-source cause when no source wins.
- StorageError never leaves the key-value layer.
"""

from __future__ import annotations
from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .contracts import SourceFailure


class QuoteEngineError(Exception):
    """Base class for all engine errors."""


class NetworkError(QuoteEngineError):
    """Transport or connect failure."""


class HttpStatusError(QuoteEngineError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, status_code: int):
        super().__init__(f"HTTP error! status: {status_code}")
        self.status_code = status_code


class ValidationError(QuoteEngineError, ValueError):
    """Payload shape or content is invalid."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class CancellationError(QuoteEngineError):
    """Request abandoned because the race was decided or the deadline fired."""

    def __init__(self, reason: str = "cancelled"):
        super().__init__(f"Request cancelled: {reason}")
        self.reason = reason


class AggregateFailure(QuoteEngineError):
    """Every source failed, or the deadline expired before any succeeded."""

    def __init__(self, failures: Sequence["SourceFailure"] = ()):
        self.failures = tuple(failures)
        details = ", ".join(f"{f.source_id}: {f.cause}" for f in self.failures)
        super().__init__(f"All quote APIs failed. Errors: {details or 'no sources'}")


class StorageError(QuoteEngineError):
    """Underlying key-value storage could not be read or written."""
