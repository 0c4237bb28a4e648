from unit_extractor.prefetch.cache import PrefetchCache
from unit_extractor.prefetch.keys import make_prefetch_key
from unit_extractor.prefetch.service import PrefetchService

__all__ = ["PrefetchCache", "PrefetchService", "make_prefetch_key"]
