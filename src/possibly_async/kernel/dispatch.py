"""Core dispatcher - continue synchronously or suspend, never double-wrap."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from possibly_async.errors import DeferredValueError
from possibly_async.kernel.result import StepResult, is_deferred, resolve

T = TypeVar("T")

OnRejected = Callable[[Exception], Any]


def _require_callable(name: str, fn: Any) -> None:
    if not callable(fn):
        raise TypeError(f"{name} must be callable, got {type(fn).__name__}")


def possibly_async(
    value: T | Awaitable[T],
    on_fulfilled: Callable[[T], Any],
    on_rejected: OnRejected | None = None,
) -> Any:
    """Apply on_fulfilled to value, now if it is immediate or later if it is deferred.

    Semantics:
        - Immediate value: returns on_fulfilled(value) as-is, even when that
          result is itself awaitable. Exceptions propagate synchronously and
          on_rejected is never consulted.
        - Deferred value: returns a coroutine chaining on_fulfilled (and
          on_rejected, if given) onto it. Results of either callback are
          awaited once if they are awaitable.

    Args:
        value: Immediate value or awaitable.
        on_fulfilled: Continuation for the value.
        on_rejected: Optional handler for an exception raised by the awaitable.

    Returns:
        The continuation's result, or a coroutine resolving to it.
    """
    _require_callable("on_fulfilled", on_fulfilled)
    if on_rejected is not None:
        _require_callable("on_rejected", on_rejected)

    step = StepResult.of(value)
    if step.kind == "immediate":
        return on_fulfilled(step.value)  # type: ignore[arg-type]
    return _chain(step.value, on_fulfilled, on_rejected)  # type: ignore[arg-type]


async def _chain(
    deferred: Awaitable[T],
    on_fulfilled: Callable[[T], Any],
    on_rejected: OnRejected | None,
) -> Any:
    try:
        value = await deferred
    except Exception as exc:
        if on_rejected is None:
            raise
        return await resolve(on_rejected(exc))
    # Outside the try: a failing on_fulfilled rejects the chain, it is not "recovered"
    return await resolve(on_fulfilled(value))


def invoke(
    producer: Callable[[], T | Awaitable[T]],
    on_fulfilled: Callable[[T], Any],
    on_rejected: OnRejected | None = None,
) -> Any:
    """Run producer and dispatch its result, routing failures uniformly.

    A synchronous exception from producer goes to on_rejected (called
    synchronously) when one is given; otherwise it propagates unmodified.
    A value produced normally, immediate or deferred, is handed to
    possibly_async with the same callbacks.
    """
    _require_callable("producer", producer)
    _require_callable("on_fulfilled", on_fulfilled)
    if on_rejected is None:
        return possibly_async(producer(), on_fulfilled)

    _require_callable("on_rejected", on_rejected)
    try:
        value = producer()
    except Exception as exc:
        return on_rejected(exc)
    return possibly_async(value, on_fulfilled, on_rejected)


def ensure_immediate(value: T | Awaitable[T]) -> T:
    """Return value if it is immediate, raise DeferredValueError otherwise."""
    if is_deferred(value):
        raise DeferredValueError(
            f"Expected an immediate value, got {type(value).__name__}",
            deferred=value,
        )
    return value  # type: ignore[return-value]
