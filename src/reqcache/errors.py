"""Exceptions raised by reqcache."""

from typing import Any


class RequestFailure(Exception):
    """A failed request whose adapted error is not an exception.

    ``error_adapter`` may map a failure to any value (a dict, a string, a
    dataclass). Such values cannot be raised directly, so they travel on
    ``.error``.
    """

    def __init__(self, error: Any) -> None:
        super().__init__(error)
        self.error = error

    def __repr__(self) -> str:
        return f"RequestFailure({self.error!r})"
