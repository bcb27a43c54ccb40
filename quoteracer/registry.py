"""
Source Registry

Loads and manages source descriptors from sources.json.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional
import json
import logging
from pathlib import Path

from .contracts import SourceDescriptor
from .normalizers import get_normalizer

logger = logging.getLogger(__name__)

DEFAULT_SOURCES_PATH = Path(__file__).parent / 'config' / 'sources.json'


@dataclass
class SourceRegistry:
    """
    Fixed, ordered collection of upstream sources.

    Each source's normalizer is resolved once, at load time.
    Order is kept for diagnostics only.
    """

    _sources: Dict[str, SourceDescriptor]

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'SourceRegistry':
        """Load registry from a sources.json file."""
        if config_path is None:
            config_path = DEFAULT_SOURCES_PATH

        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)

        descriptors = []
        for source_data in config.get('sources', []):
            shape = source_data['shape']
            descriptors.append(SourceDescriptor(
                source_id=source_data['id'],
                name=source_data.get('name', source_data['id']),
                url=source_data['url'],
                shape=shape,
                normalize=get_normalizer(shape),
                enabled=source_data.get('enabled', True),
            ))

        registry = cls.from_descriptors(descriptors)
        logger.debug("Loaded %d sources from %s", registry.total_count, config_path)
        return registry

    @classmethod
    def default(cls) -> 'SourceRegistry':
        return cls.load(DEFAULT_SOURCES_PATH)

    @classmethod
    def from_descriptors(cls, descriptors: Iterable[SourceDescriptor]) -> 'SourceRegistry':
        sources: Dict[str, SourceDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.source_id in sources:
                raise ValueError(f"Duplicate source id: {descriptor.source_id}")
            sources[descriptor.source_id] = descriptor
        return cls(_sources=sources)

    def get(self, source_id: str) -> Optional[SourceDescriptor]:
        """Get source by ID."""
        return self._sources.get(source_id)

    def all_sources(self) -> Iterator[SourceDescriptor]:
        """Iterate all sources."""
        yield from self._sources.values()

    def enabled_sources(self) -> List[SourceDescriptor]:
        """Only enabled sources, in registration order."""
        return [s for s in self._sources.values() if s.enabled]

    def display_name(self, source_id: str) -> Optional[str]:
        source = self._sources.get(source_id)
        return source.name if source else None

    @property
    def total_count(self) -> int:
        return len(self._sources)

    @property
    def enabled_count(self) -> int:
        return sum(1 for s in self._sources.values() if s.enabled)

    def stats(self) -> dict:
        """Get registry statistics."""
        return {
            'total': self.total_count,
            'enabled': self.enabled_count,
            'shapes': {
                s.source_id: s.shape for s in self._sources.values()
            },
        }
