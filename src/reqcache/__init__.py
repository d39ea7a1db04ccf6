"""reqcache - Cached async request execution with reactive state."""

from contextlib import suppress

# Duration parsing
from reqcache.duration import parse_duration

# Engine API
from reqcache.engine import ApiEngine, api, use_api
from reqcache.errors import RequestFailure
from reqcache.events import EventHook

# Request factories
from reqcache.fetchers import RequestFactory
from reqcache.keys import make_cache_key, parse_cache_key
from reqcache.query_ref import QueryRef

# Reactive cells
from reqcache.reactive import Computed, Ref, watch

# Core types
from reqcache.types import CacheEntry, Duration

# Optional fetcher imports - only available when dependencies are installed
with suppress(ImportError):
    from reqcache.fetchers import ApiError, HttpFetcher, http_error_adapter

__version__ = "0.1.0"

__all__ = [
    "ApiEngine",
    "ApiError",
    "CacheEntry",
    "Computed",
    "Duration",
    "EventHook",
    "HttpFetcher",
    "QueryRef",
    "Ref",
    "RequestFactory",
    "RequestFailure",
    "api",
    "http_error_adapter",
    "make_cache_key",
    "parse_cache_key",
    "parse_duration",
    "use_api",
    "watch",
]
