from .combinators import for_each, map, map_values
from .errors import DeferredValueError, PossiblyAsyncError
from .kernel import (
    Chain,
    Evidence,
    StepResult,
    Trace,
    ensure_immediate,
    invoke,
    is_deferred,
    possibly_async,
    resolve,
)

__all__ = [
    # Core
    "possibly_async",
    "invoke",
    "is_deferred",
    "StepResult",
    # Combinators
    "for_each",
    "map",
    "map_values",
    # Consumption
    "resolve",
    "ensure_immediate",
    "Chain",
    # Errors
    "PossiblyAsyncError",
    "DeferredValueError",
    # Tracing
    "Trace",
    "Evidence",
]
