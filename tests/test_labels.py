from quoteracer.labels import format_source_label
from quoteracer.registry import SourceRegistry


def test_empty_values():
    assert format_source_label(None) is None
    assert format_source_label('') is None


def test_fallback_provenances():
    assert format_source_label('cache') == 'Cached result'
    assert format_source_label('offline') == 'Offline fallback'


def test_urls_become_hostnames():
    assert format_source_label('http://example.com/path') == 'example.com'
    assert format_source_label('http://api.example.com:8080/endpoint') == 'api.example.com'
    assert format_source_label('https://dummyjson.com/quotes') == 'dummyjson.com'


def test_unparseable_url_is_returned_unchanged():
    assert format_source_label('http://[invalid') == 'http://[invalid'


def test_plain_strings_are_returned_unchanged():
    assert format_source_label('custom-source') == 'custom-source'
    assert format_source_label('api-v1') == 'api-v1'


def test_registry_display_names():
    registry = SourceRegistry.default()
    assert format_source_label('catfact', registry) == 'Cat Facts'
    assert format_source_label('not-registered', registry) == 'not-registered'
