import asyncio
import inspect

import pytest

from possibly_async import StepResult, invoke, is_deferred, possibly_async, resolve
from fakes import FakeAwaitable, Rejection, make_deferred, make_rejected


def test_is_deferred() -> None:
    coro = make_deferred(1)
    assert is_deferred(coro)
    assert is_deferred(FakeAwaitable(1))
    assert not is_deferred(1)
    assert not is_deferred("1")
    assert not is_deferred(None)
    assert not is_deferred(make_deferred)
    coro.close()


def test_step_result_classifies_values() -> None:
    assert StepResult.of(1) == StepResult.Immediate(1)
    assert StepResult.of(1).kind == "immediate"

    coro = make_deferred(1)
    step = StepResult.of(coro)
    assert step.kind == "deferred"
    assert step.is_deferred
    assert step.value is coro
    coro.close()


def test_immediate_value_runs_synchronously() -> None:
    assert possibly_async(1, lambda v: v + 1) == 2
    assert possibly_async(1, lambda v: str(v)) == "1"
    assert possibly_async(1, lambda v: possibly_async(v + 1, lambda w: str(w))) == "2"


def test_immediate_value_returns_deferred_continuation_as_is() -> None:
    inner = make_deferred("x")
    result = possibly_async(1, lambda _: inner)
    assert result is inner
    assert asyncio.run(result) == "x"


def test_immediate_value_does_not_consult_rejection_handler() -> None:
    handled: list[Exception] = []

    def fail(_v: int) -> int:
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        possibly_async(1, fail, handled.append)
    assert handled == []


def test_deferred_value_returns_deferred_result() -> None:
    r1 = possibly_async(make_deferred(1), lambda v: v + 1)
    assert inspect.isawaitable(r1)
    assert asyncio.run(r1) == 2

    r2 = possibly_async(make_deferred(1), lambda v: str(v))
    assert asyncio.run(r2) == "1"


def test_nested_deferred_results_are_flattened() -> None:
    r1 = possibly_async(1, lambda v: possibly_async(make_deferred(v), lambda w: str(w)))
    assert is_deferred(r1)
    assert asyncio.run(r1) == "1"

    r2 = possibly_async(
        make_deferred(1),
        lambda v: possibly_async(make_deferred(v + 1), lambda w: w + 1),
    )
    assert asyncio.run(r2) == 3


def test_non_coroutine_awaitable_is_deferred() -> None:
    awaitable = FakeAwaitable(41)
    result = possibly_async(awaitable, lambda v: v + 1)
    assert asyncio.run(result) == 42
    assert awaitable.awaited == 1


def test_rejection_propagates_without_handler() -> None:
    r1 = possibly_async(make_rejected("ERROR"), lambda v: v + 1)
    with pytest.raises(Rejection, match="ERROR"):
        asyncio.run(r1)

    r2 = possibly_async(1, lambda _: possibly_async(make_rejected("ERROR"), lambda v: v + 1))
    with pytest.raises(Rejection, match="ERROR"):
        asyncio.run(r2)


def test_rejection_propagates_same_exception() -> None:
    reason = Rejection("ERROR")

    async def reject() -> None:
        raise reason

    with pytest.raises(Rejection) as info:
        asyncio.run(possibly_async(reject(), lambda v: v))
    assert info.value is reason


def test_rejection_handler_result_becomes_value() -> None:
    result = possibly_async(
        make_rejected("ERROR"),
        lambda v: v + 1,
        lambda reason: f"{reason} (caught)",
    )
    assert asyncio.run(result) == "ERROR (caught)"


def test_rejection_handler_may_return_deferred() -> None:
    result = possibly_async(
        make_rejected("ERROR"),
        lambda v: v + 1,
        lambda reason: make_deferred(f"{reason} (later)"),
    )
    assert asyncio.run(result) == "ERROR (later)"


def test_rejection_handler_raising_replaces_reason() -> None:
    def rethrow(reason: Exception) -> None:
        raise RuntimeError(f"{reason} (rethrown)")

    result = possibly_async(make_rejected("ERROR"), lambda v: v + 1, rethrow)
    with pytest.raises(RuntimeError, match=r"ERROR \(rethrown\)"):
        asyncio.run(result)


def test_rejection_handler_deferred_rejection_replaces_reason() -> None:
    result = possibly_async(
        make_rejected("ERROR"),
        lambda v: v + 1,
        lambda reason: make_rejected(f"{reason} (again)"),
    )
    with pytest.raises(Rejection, match=r"ERROR \(again\)"):
        asyncio.run(result)


def test_fulfillment_failure_is_not_routed_to_handler() -> None:
    handled: list[Exception] = []

    def fail(_v: int) -> int:
        raise ValueError("boom")

    result = possibly_async(make_deferred(1), fail, handled.append)
    with pytest.raises(ValueError, match="boom"):
        asyncio.run(result)
    assert handled == []


def test_callbacks_must_be_callable() -> None:
    with pytest.raises(TypeError, match="on_fulfilled"):
        possibly_async(1, "not callable")  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="on_rejected"):
        possibly_async(1, lambda v: v, 42)  # type: ignore[arg-type]


def test_invoke() -> None:
    assert invoke(lambda: 1, lambda v: v + 1) == 2

    r2 = invoke(lambda: make_deferred(1), lambda v: v + 1)
    assert is_deferred(r2)
    assert asyncio.run(r2) == 2


def test_invoke_reraises_without_handler() -> None:
    def producer() -> int:
        raise Rejection("1")

    with pytest.raises(Rejection, match="1"):
        invoke(producer, lambda v: v + 1)


def test_invoke_checks_callbacks_before_running_producer() -> None:
    ran: list[int] = []

    with pytest.raises(TypeError, match="on_fulfilled"):
        invoke(lambda: ran.append(1), "nope")  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="on_rejected"):
        invoke(lambda: ran.append(1), lambda v: v, "nope")  # type: ignore[arg-type]
    assert ran == []


def test_invoke_reports_bad_on_fulfilled_even_when_producer_fails() -> None:
    def producer() -> int:
        raise Rejection("1")

    with pytest.raises(TypeError, match="on_fulfilled"):
        invoke(producer, "nope", lambda reason: "caught")  # type: ignore[arg-type]


def test_invoke_catches_synchronous_failure_with_handler() -> None:
    def producer() -> int:
        raise Rejection("1")

    result = invoke(producer, lambda v: v + 1, lambda reason: f"{reason} (caught)")
    assert result == "1 (caught)"


def test_invoke_handler_raising_propagates_synchronously() -> None:
    def producer() -> int:
        raise Rejection("1")

    def rethrow(reason: Exception) -> None:
        raise RuntimeError(f"{reason} (rethrown)")

    with pytest.raises(RuntimeError, match=r"1 \(rethrown\)"):
        invoke(producer, lambda v: v + 1, rethrow)


def test_invoke_routes_deferred_rejection_to_handler() -> None:
    r4 = invoke(
        lambda: make_rejected("ERROR"),
        lambda v: v + 1,
        lambda reason: f"{reason} (caught)",
    )
    assert asyncio.run(r4) == "ERROR (caught)"

    def rethrow(reason: Exception) -> None:
        raise Rejection(f"{reason} (rethrown)")

    r5 = invoke(lambda: make_rejected("ERROR"), lambda v: v + 1, rethrow)
    with pytest.raises(Rejection, match=r"ERROR \(rethrown\)"):
        asyncio.run(r5)


@pytest.mark.asyncio
async def test_resolve_accepts_both_shapes():
    assert await resolve(1) == 1
    assert await resolve(make_deferred(2)) == 2
    assert await resolve(possibly_async(make_deferred(2), lambda v: v * 10)) == 20
