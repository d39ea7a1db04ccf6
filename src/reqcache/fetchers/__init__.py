"""Request factories for reqcache."""

from contextlib import suppress

from reqcache.fetchers.base import RequestFactory

# Optional fetchers - only available when dependencies are installed
with suppress(ImportError):
    from reqcache.fetchers.http import ApiError, HttpFetcher, http_error_adapter

__all__ = [
    "ApiError",
    "HttpFetcher",
    "RequestFactory",
    "http_error_adapter",
]
