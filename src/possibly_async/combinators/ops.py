"""Sequential collection combinators: for_each, map, map_values.

Each combinator walks its input in order and stays synchronous until a step
returns an awaitable. From that point on (escalation) the remaining elements
are driven from inside a single coroutine, one step at a time, and that
coroutine is what the call returns.

Semantics shared by all three:
    - Step i+1 starts only after step i, and its awaitable if any, completed
    - Never more than one step in flight, never overlapping steps
    - Once escalated the result stays deferred, even if later steps are not
    - The input is read in full when the call is made; later changes to the
      caller's collection do not affect a call already in progress
    - Exceptions propagate unchanged: synchronously before escalation,
      through the returned coroutine after it
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from typing import Any, TypeVar

from possibly_async.kernel.result import is_deferred
from possibly_async.kernel.trace import Trace

logger = logging.getLogger(__name__)

K = TypeVar("K")
T = TypeVar("T")
R = TypeVar("R")

Step = Callable[[T, K], Any]


class _Recorder:
    """Per-call trace bookkeeping. Does nothing when no enabled trace is given."""

    def __init__(self, name: str, trace: Trace | None) -> None:
        self.name = name
        self.trace = trace if trace is not None and trace.enabled else None
        self.begin_id: int | None = None
        self.started = time.perf_counter()
        if self.trace is not None:
            self.begin_id = self.trace.begin(name)

    def call(self, step: Step[T, K], item: T, key: K) -> Any:
        if self.trace is None:
            return step(item, key)

        with self.trace.within(self.begin_id):
            result = step(item, key)
        self.trace.record(
            "step",
            info={"key": key, "deferred": is_deferred(result)},
            parent_id=self.begin_id,
        )
        return result

    def escalate(self, key: Any) -> None:
        logger.debug("%s escalated to deferred at %r", self.name, key)
        if self.trace is not None:
            self.trace.record("escalate", info={"key": key}, parent_id=self.begin_id)

    def end(self, escalated: bool) -> None:
        if self.trace is not None:
            self.trace.record(
                f"{self.name}_end",
                info={"escalated": escalated},
                parent_id=self.begin_id,
                duration_ms=(time.perf_counter() - self.started) * 1000,
            )

    def error(self, exc: Exception) -> None:
        if self.trace is not None:
            self.trace.record(
                f"{self.name}_error",
                info={"error": str(exc)},
                parent_id=self.begin_id,
            )


def _drive(
    name: str,
    pairs: Iterable[tuple[K, T]],
    step: Step[T, K],
    store: Callable[[K, Any], None],
    finish: Callable[[], R],
    trace: Trace | None,
) -> R | Awaitable[R]:
    if not callable(step):
        raise TypeError(f"step must be callable, got {type(step).__name__}")

    recorder = _Recorder(name, trace)
    # Snapshot: the caller may mutate its collection before awaiting the result
    remaining = iter(list(pairs))
    try:
        for key, item in remaining:
            result = recorder.call(step, item, key)
            if is_deferred(result):
                recorder.escalate(key)
                return _drive_escalated(recorder, key, result, remaining, step, store, finish)
            store(key, result)
    except Exception as exc:
        recorder.error(exc)
        raise

    recorder.end(escalated=False)
    return finish()


async def _drive_escalated(
    recorder: _Recorder,
    key: K,
    pending: Awaitable[Any],
    remaining: Iterator[tuple[K, T]],
    step: Step[T, K],
    store: Callable[[K, Any], None],
    finish: Callable[[], R],
) -> R:
    try:
        store(key, await pending)
        for key, item in remaining:
            result = recorder.call(step, item, key)
            if is_deferred(result):
                result = await result
            store(key, result)
    except Exception as exc:
        recorder.error(exc)
        raise

    recorder.end(escalated=True)
    return finish()


def _discard(key: Any, result: Any) -> None:
    pass


def for_each(
    items: Iterable[T],
    step: Callable[[T, int], Any],
    *,
    trace: Trace | None = None,
) -> None | Awaitable[None]:
    """Call step(item, index) for every item, in order, for its side effects.

    Args:
        items: Items to visit.
        step: Called with each item and its index; may return an awaitable.
        trace: Optional trace to record the call into.

    Returns:
        None if every step completed immediately, otherwise a coroutine
        resolving to None once the last step has completed.
    """
    return _drive("for_each", enumerate(items), step, _discard, lambda: None, trace)


def map(
    items: Iterable[T],
    step: Callable[[T, int], R | Awaitable[R]],
    *,
    trace: Trace | None = None,
) -> list[R] | Awaitable[list[R]]:
    """Collect step(item, index) for every item into a list, in order.

    Results keep whatever type each step produced; nothing is coerced.

    Returns:
        The list if every step completed immediately, otherwise a coroutine
        resolving to the fully populated list.
    """
    results: list[R] = []

    def store(index: int, value: R) -> None:
        results.append(value)

    return _drive("map", enumerate(items), step, store, lambda: results, trace)


def map_values(
    mapping: Mapping[K, T],
    step: Callable[[T, K], R | Awaitable[R]],
    *,
    trace: Trace | None = None,
) -> dict[K, R] | Awaitable[dict[K, R]]:
    """Build a dict with the same keys and step(value, key) as values.

    Keys are visited in the mapping's iteration (insertion) order.
    """
    results: dict[K, R] = {}

    def store(key: K, value: R) -> None:
        results[key] = value

    return _drive("map_values", mapping.items(), step, store, lambda: results, trace)
