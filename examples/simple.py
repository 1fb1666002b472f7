from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable

from possibly_async import Trace, is_deferred, map, possibly_async

logging.basicConfig(level=logging.DEBUG)

CACHE = {"a": 1, "b": 2}


def lookup(key: str) -> int | Awaitable[int]:
    """Cached keys come back immediately, the rest are fetched."""
    if key in CACHE:
        return CACHE[key]
    return fetch(key)


async def fetch(key: str) -> int:
    await asyncio.sleep(0.01)
    CACHE[key] = len(key) * 10
    return CACHE[key]


def double(key: str, _index: int):
    return possibly_async(lookup(key), lambda v: v * 2)


if __name__ == "__main__":
    # Everything cached: no event loop needed
    print(map(["a", "b"], double))

    trace = Trace()
    result = map(["a", "missing", "b"], double, trace=trace)
    assert is_deferred(result)
    print(asyncio.run(result))
    for ev in trace.get_events():
        print(ev.id, ev.parent_id, ev.action, ev.info)
