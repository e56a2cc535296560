"""Engagement freshness: skip re-aggregating products whose engagements have not changed."""

import asyncio
from datetime import datetime


def _is_newer(latest: datetime | None, previous: datetime | None) -> bool:
    if latest is None:
        return False
    if previous is None:
        return True
    return latest > previous


class EngagementFreshness:
    """
    Last observed engagement update per product name.

    Shares its lock with the snapshot store; the lock is held only for the
    compare-and-record step, never across the engagement fetch.
    """

    def __init__(self, lock: asyncio.Lock) -> None:
        self._lock = lock
        self._latest: dict[str, datetime | None] = {}

    async def advance(self, product_name: str, latest: datetime | None) -> bool:
        """
        Record `latest` for the product and return True if it needs collecting.

        Returns False, leaving state untouched, when a previous value exists and
        `latest` is not strictly newer. A first observation is always recorded.
        """
        async with self._lock:
            if product_name in self._latest and not _is_newer(latest, self._latest[product_name]):
                return False
            self._latest[product_name] = latest
            return True

    def get(self, product_name: str) -> datetime | None:
        return self._latest.get(product_name)

    def __contains__(self, product_name: object) -> bool:
        return product_name in self._latest
