"""Execution trace for the sequential combinators.

Each for_each / map / map_values call given a Trace records a begin event and
hangs its step, escalate, end and error events off it. While a step function
runs, its call is the active parent, so combinators invoked synchronously
from inside a step appear as children of that call.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class Evidence:
    """One recorded combinator event."""

    action: str
    id: int
    parent_id: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    info: dict[str, Any] = field(default_factory=dict)
    duration_ms: float | None = None


class Trace:
    """Collects Evidence for combinator calls. Disabled traces store nothing."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._events: list[Evidence] = []
        self._active_call: int | None = None

    def begin(self, combinator: str) -> int | None:
        """Open a combinator call; returns the id its events attach to."""
        return self.record(f"{combinator}_begin")

    @contextmanager
    def within(self, call_id: int | None) -> Iterator[None]:
        """Make call_id the default parent for events recorded in the block."""
        outer = self._active_call
        self._active_call = call_id
        try:
            yield
        finally:
            self._active_call = outer

    def record(
        self,
        action: str,
        info: dict[str, Any] | None = None,
        parent_id: int | None = None,
        duration_ms: float | None = None,
    ) -> int | None:
        if not self.enabled:
            return None

        event = Evidence(
            action=action,
            id=len(self._events),
            parent_id=parent_id if parent_id is not None else self._active_call,
            info=info or {},
            duration_ms=duration_ms,
        )
        self._events.append(event)
        return event.id

    def get_events(self) -> list[Evidence]:
        return list(self._events)

    def find(self, action: str) -> list[Evidence]:
        return [ev for ev in self._events if ev.action == action]

    def children(self, call_id: int) -> list[Evidence]:
        """Events recorded under a call, in order."""
        return [ev for ev in self._events if ev.parent_id == call_id]

    def __len__(self) -> int:
        return len(self._events)

    def clear(self) -> None:
        self._events.clear()
        self._active_call = None
