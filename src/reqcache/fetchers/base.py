"""Base protocol for request factories."""

from typing import Any, Protocol, runtime_checkable

from reqcache.types import Request


@runtime_checkable
class RequestFactory(Protocol):
    """Builds async request functions suitable for ``ApiEngine``."""

    def request(self, method: str, path: str, **kwargs: Any) -> Request:
        """Build a request function for a method and path template."""
        ...

    def get(self, path: str, **kwargs: Any) -> Request:
        """Build a GET request function for a path template."""
        ...

    async def aclose(self) -> None:
        """Release the underlying transport."""
        ...
