from .ekg_collector import EkgCollector, flatten_document

__all__ = ['EkgCollector', 'flatten_document']
