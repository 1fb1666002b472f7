"""Chain - fluent wrapper around possibly_async."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Generator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from possibly_async.kernel.dispatch import OnRejected, ensure_immediate, possibly_async
from possibly_async.kernel.result import is_deferred, resolve

V = TypeVar("V")
R = TypeVar("R")


def _identity(value: V) -> V:
    return value


@dataclass(frozen=True)
class Chain(Generic[V]):
    """Holds a possibly-async value and composes continuations onto it.

    Chain(1).then(f).then(g) stays synchronous for as long as every step
    does; the first awaitable turns the rest of the chain deferred.

    A Chain holding a coroutine may be consumed only once (by then(),
    recover() or await), like the coroutine itself.
    """

    value: V | Awaitable[V]

    def then(
        self,
        on_fulfilled: Callable[[V], R | Awaitable[R]],
        on_rejected: OnRejected | None = None,
    ) -> Chain[R]:
        """Chain a continuation (and optional rejection handler) onto the value."""
        return Chain(possibly_async(self.value, on_fulfilled, on_rejected))

    def recover(self, on_rejected: OnRejected) -> Chain[Any]:
        """Handle a rejection of a deferred value; immediate values pass through."""
        return Chain(possibly_async(self.value, _identity, on_rejected))

    @property
    def is_deferred(self) -> bool:
        return is_deferred(self.value)

    def unwrap(self) -> V | Awaitable[V]:
        return self.value

    def unwrap_immediate(self) -> V:
        """Return the value, raising DeferredValueError if it is still deferred."""
        return ensure_immediate(self.value)

    def __await__(self) -> Generator[Any, None, V]:
        return resolve(self.value).__await__()
