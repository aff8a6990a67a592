"""Per-key de-duplication of asynchronous lookups.

The first request for a key starts the lookup; concurrent requests for the
same key await the same future instead of starting their own.  Results are
cached for the lifetime of the ``SingleFlight`` instance (one run), so later
requests are served without awaiting anything new.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class SingleFlight(Generic[K, V]):
    """Cache plus in-flight table keyed by ``K``.

    Attributes:
        results: Resolved values, never invalidated.
        in_flight: Futures for lookups that have started but not finished.
        calls: How many lookups were actually started, per key.
    """

    def __init__(self) -> None:
        self.results: dict[K, V] = {}
        self.in_flight: dict[K, asyncio.Future[V]] = {}
        self.calls: dict[K, int] = {}

    async def get(self, key: K, fetch: Callable[[K], Awaitable[V]]) -> V:
        """Return the value for *key*, running ``fetch(key)`` at most once.

        Waiters on an in-flight key resume in the order they started waiting.
        If ``fetch`` raises, every waiter receives the exception and nothing
        is cached.
        """
        if key in self.results:
            return self.results[key]

        pending = self.in_flight.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        future: asyncio.Future[V] = asyncio.get_running_loop().create_future()
        self.in_flight[key] = future
        self.calls[key] = self.calls.get(key, 0) + 1
        try:
            value = await fetch(key)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Mark retrieved so an unawaited failure is not logged by asyncio.
            future.exception()
            raise
        else:
            self.results[key] = value
            future.set_result(value)
            return value
        finally:
            del self.in_flight[key]
