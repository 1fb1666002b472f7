"""Step results - the immediate/deferred union every dispatch matches on."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar, TypeGuard

V = TypeVar("V")


def is_deferred(value: Any) -> TypeGuard[Awaitable[Any]]:
    """Return True if value can be awaited (coroutine, Future, __await__)."""
    return inspect.isawaitable(value)


@dataclass(frozen=True)
class StepResult(Generic[V]):
    """
    Outcome of applying a callback, before anything has been awaited.

    Kinds:
    - immediate: value is the result itself
    - deferred: value is an awaitable that will produce the result
    """

    kind: Literal["immediate", "deferred"]
    value: V | Awaitable[V]

    @staticmethod
    def Immediate(value: V) -> StepResult[V]:
        return StepResult(kind="immediate", value=value)

    @staticmethod
    def Deferred(value: Awaitable[V]) -> StepResult[V]:
        return StepResult(kind="deferred", value=value)

    @staticmethod
    def of(value: Any) -> StepResult[Any]:
        if is_deferred(value):
            return StepResult.Deferred(value)
        return StepResult.Immediate(value)

    @property
    def is_deferred(self) -> bool:
        return self.kind == "deferred"


async def resolve(value: V | Awaitable[V]) -> V:
    """Await value once if it is deferred, otherwise return it unchanged.

    Lets async callers consume a possibly-async result without checking.
    """
    if is_deferred(value):
        return await value
    return value  # type: ignore[return-value]
