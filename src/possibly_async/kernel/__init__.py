"""Kernel layer - dispatch primitives for possibly-async values."""

from possibly_async.kernel.chain import Chain
from possibly_async.kernel.dispatch import ensure_immediate, invoke, possibly_async
from possibly_async.kernel.result import StepResult, is_deferred, resolve
from possibly_async.kernel.trace import Evidence, Trace

__all__ = [
    "possibly_async",
    "invoke",
    "is_deferred",
    "StepResult",
    # Consumption
    "resolve",
    "ensure_immediate",
    "Chain",
    # Tracing
    "Trace",
    "Evidence",
]
