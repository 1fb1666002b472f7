"""Error types raised by possibly_async itself."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any


class PossiblyAsyncError(Exception):
    """Base class for errors raised by the library (never by user callbacks)."""


class DeferredValueError(PossiblyAsyncError):
    """Error raised when an immediate value was required but a deferred one was found.

    The awaitable is kept so the caller can still await it or close it.
    """

    def __init__(self, message: str, deferred: Awaitable[Any]) -> None:
        self.deferred = deferred
        super().__init__(message)

    def __repr__(self) -> str:
        return f"DeferredValueError({super().__repr__()}, deferred={self.deferred!r})"
