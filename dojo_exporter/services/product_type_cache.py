"""Read-through cache of product type names keyed by product type id."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from dojo_exporter.core.locks import ReadWriteLock

logger = logging.getLogger(__name__)


class ProductTypeCache:
    """
    Maps product type id to name for the lifetime of the process.

    Names are treated as immutable, so there is no eviction or TTL. Concurrent
    misses for one id share a single upstream fetch. Failed lookups are not
    cached; the next caller retries upstream.
    """

    def __init__(self) -> None:
        self._names: dict[int, str] = {}
        self._lock = ReadWriteLock()
        # type id -> lock serializing the upstream fetch for that id
        self._fetch_locks: dict[int, asyncio.Lock] = {}

    async def get(self, type_id: int) -> str | None:
        async with self._lock.read():
            return self._names.get(type_id)

    async def get_or_fetch(
        self,
        type_id: int,
        fetch: Callable[[int], Awaitable[str]],
    ) -> str:
        """Return the cached name, or call `fetch` (outside the read/write lock) and store its result."""
        cached = await self.get(type_id)
        if cached is not None:
            return cached

        async with self._fetch_locks.setdefault(type_id, asyncio.Lock()):
            # Another task may have filled it while this one waited.
            cached = await self.get(type_id)
            if cached is not None:
                return cached

            name = await fetch(type_id)
            async with self._lock.write():
                self._names[type_id] = name
        self._fetch_locks.pop(type_id, None)
        logger.debug("Cached product type %d as %r", type_id, name)
        return name

    def __len__(self) -> int:
        return len(self._names)
