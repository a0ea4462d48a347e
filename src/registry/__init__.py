"""Component registry access.

This package fetches module source from the remote registry:
- source.py: URL building and payload decoding (raw source or registry-item JSON)
- fetcher.py: synchronous fetcher on requests
- async_fetcher.py: concurrent fetcher on aiohttp
- cache.py: injectable source cache
"""

from .cache import SourceCache, process_cache
from .fetcher import SourceFetcher
from .async_fetcher import AsyncSourceFetcher

__all__ = ["SourceCache", "process_cache", "SourceFetcher", "AsyncSourceFetcher"]
