"""httpx-backed request functions."""

from __future__ import annotations

from typing import Any

import httpx

from reqcache.types import Request


class ApiError(Exception):
    """An HTTP failure reduced to a status code and message."""

    def __init__(self, status_code: int | None, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __repr__(self) -> str:
        return f"ApiError({self.status_code!r}, {self.message!r})"


def http_error_adapter(error: Exception) -> Exception:
    """Map httpx failures to ``ApiError``; pass anything else through.

    Error bodies shaped like ``{"statusCode": 404, "message": "..."}`` keep
    their message.
    """
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        try:
            message = response.json().get("message", "Request failed")
        except Exception:
            message = f"HTTP {response.status_code}"
        return ApiError(response.status_code, str(message))
    if isinstance(error, httpx.HTTPError):
        return ApiError(None, str(error) or type(error).__name__)
    return error


class HttpFetcher:
    """Builds request functions over an ``httpx.AsyncClient``.

    Positional arguments of a built function fill the ``{}`` placeholders
    of its path template:

        http = HttpFetcher("https://api.example.com")
        posts = ApiEngine(http.get("/posts/{}"), error_adapter=http_error_adapter)
        post = await posts.execute(7)   # GET /posts/7
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    def request(self, method: str, path: str, **kwargs: Any) -> Request:
        """Build a request function. Extra kwargs go to ``client.request``."""
        method = method.upper()

        async def send(*args: Any) -> Any:
            response = await self._client.request(method, path.format(*args), **kwargs)
            response.raise_for_status()
            if not response.content:
                return None
            return response.json()

        send.__name__ = f"{method} {path}"
        send.__qualname__ = send.__name__
        return send

    def get(self, path: str, **kwargs: Any) -> Request:
        """Build a GET request function."""
        return self.request("GET", path, **kwargs)

    async def aclose(self) -> None:
        """Close the client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpFetcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["ApiError", "HttpFetcher", "http_error_adapter"]
