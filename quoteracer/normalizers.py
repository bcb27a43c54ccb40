"""
Response Normalizers
====================

Converts raw, untyped upstream payloads into CanonicalRecords.

GUARANTEES:
- Every payload is either normalized or rejected with a ValidationError
- No normalizer reads another source's schema
- Missing optional fields degrade to None, never to a failure
- Each normalizer stamps its own fixed provenance id
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Optional
import time
import uuid

from .contracts import CanonicalRecord, Normalizer
from .errors import ValidationError


DUMMYJSON = "dummyjson"
ZENQUOTES = "zenquotes"
PROGRAMMING_QUOTES = "programming-quotes"
CATFACT = "catfact"
RANDOMUSER = "randomuser"

CATFACT_AUTHOR = "Random Cat Facts"


# =============================================================================
# HELPERS
# =============================================================================

def generate_id(prefix: str) -> str:
    """Time-based id with a random suffix, for sources that give none."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def _require_object(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError("Invalid response format")
    return data


def _require_first_item(data: Any) -> Dict[str, Any]:
    # An empty array is a failure, not an absent value
    if not isinstance(data, list) or len(data) == 0:
        raise ValidationError("Invalid response format")
    return _require_object(data[0])


def _coerce_text(value: Any, field: str) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError("Missing quote text", field=field)
    return text


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _join_parts(parts: Iterable[Any]) -> str:
    words = []
    for part in parts:
        if part is None:
            continue
        piece = str(part).strip()
        if piece:
            words.append(piece)
    return " ".join(words)


# =============================================================================
# PER-SOURCE NORMALIZERS
# =============================================================================

def normalize_dummyjson(data: Any) -> CanonicalRecord:
    """`{"id": 420, "quote": "...", "author": "..."}`"""
    obj = _require_object(data)
    text = _coerce_text(obj.get('quote'), 'quote')
    raw_id = obj.get('id')
    record_id = str(raw_id) if raw_id not in (None, "") else generate_id(DUMMYJSON)

    return CanonicalRecord(
        id=record_id,
        text=text,
        author=_optional_text(obj.get('author')),
        provenance=DUMMYJSON,
    )


def normalize_zenquotes(data: Any) -> CanonicalRecord:
    """`[{"q": "...", "a": "..."}]`"""
    item = _require_first_item(data)
    text = _coerce_text(item.get('q'), 'q')

    return CanonicalRecord(
        id=generate_id("zen"),
        text=text,
        author=_optional_text(item.get('a')),
        provenance=ZENQUOTES,
    )


def normalize_programming_quote(data: Any) -> CanonicalRecord:
    """`{"quote": "...", "author": "..."}`"""
    obj = _require_object(data)
    text = _coerce_text(obj.get('quote'), 'quote')

    return CanonicalRecord(
        id=generate_id("prog"),
        text=text,
        author=_optional_text(obj.get('author')),
        provenance=PROGRAMMING_QUOTES,
    )


def normalize_catfact(data: Any) -> CanonicalRecord:
    """`{"fact": "...", "length": 51}`"""
    obj = _require_object(data)
    text = _coerce_text(obj.get('fact'), 'fact')

    return CanonicalRecord(
        id=generate_id("cat"),
        text=text,
        author=CATFACT_AUTHOR,
        provenance=CATFACT,
    )


def normalize_randomuser(data: Any) -> CanonicalRecord:
    """
    `{"results": [{"name": {...}, "location": {...}, "login": {"uuid": ...}}]}`

    Name parts become the text, location parts the attribution.
    """
    obj = _require_object(data)
    person = _require_first_item(obj.get('results'))

    name = person.get('name')
    name = name if isinstance(name, dict) else {}
    text = _coerce_text(
        _join_parts((name.get('title'), name.get('first'), name.get('last'))),
        'name',
    )

    location = person.get('location')
    location = location if isinstance(location, dict) else {}
    author = _join_parts((location.get('city'), location.get('state'), location.get('country')))

    login = person.get('login')
    raw_id = login.get('uuid') if isinstance(login, dict) else None

    return CanonicalRecord(
        id=str(raw_id) if raw_id else generate_id("user"),
        text=text,
        author=author or None,
        provenance=RANDOMUSER,
    )


# =============================================================================
# SHAPE DISPATCH
# =============================================================================

NORMALIZERS: Dict[str, Normalizer] = {
    'dummyjson': normalize_dummyjson,
    'zenquotes': normalize_zenquotes,
    'programming': normalize_programming_quote,
    'catfact': normalize_catfact,
    'randomuser': normalize_randomuser,
}


def get_normalizer(shape: str) -> Normalizer:
    """Resolve a shape tag; unknown tags are configuration defects."""
    try:
        return NORMALIZERS[shape]
    except KeyError:
        raise ValueError(f"Unknown source shape: {shape!r}") from None
