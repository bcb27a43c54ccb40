"""Human-readable labels for provenance tags."""

from __future__ import annotations
from typing import Optional
from urllib.parse import urlsplit

from .contracts import Provenance
from .registry import SourceRegistry


def format_source_label(
    source: Optional[str],
    registry: Optional[SourceRegistry] = None,
) -> Optional[str]:
    if not source:
        return None

    if source == Provenance.CACHE:
        return 'Cached result'

    if source == Provenance.OFFLINE:
        return 'Offline fallback'

    if source.startswith('http://') or source.startswith('https://'):
        try:
            hostname = urlsplit(source).hostname
        except ValueError:
            return source
        return hostname or source

    if registry is not None:
        name = registry.display_name(source)
        if name:
            return name

    return source
