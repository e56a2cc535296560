"""Publish a product's count table and zero the series that dropped out of it."""

import asyncio

from dojo_exporter.services.aggregation import CountTable, SeriesKey, StatusDimension
from dojo_exporter.services.metrics import VulnerabilityGauges

# product name -> (severity, cwe) -> last published value
Snapshot = dict[str, dict[SeriesKey, float]]


class Reconciler:
    """
    Owns the last published value of every series, one snapshot per status dimension.

    For each dimension, under the shared lock: set every series in the fresh table,
    then set to zero every series of the same product that was published non-zero
    before but is absent now. Zero records stay in the snapshot, so a series is
    zeroed once and not rewritten on later cycles. Products are never purged.
    """

    def __init__(self, gauges: VulnerabilityGauges, lock: asyncio.Lock) -> None:
        self.gauges = gauges
        self._lock = lock
        self._snapshots: dict[StatusDimension, Snapshot] = {
            dimension: {} for dimension in StatusDimension
        }

    def snapshot(self, dimension: StatusDimension, product_name: str) -> dict[SeriesKey, float]:
        """Copy of the published values for one product and dimension."""
        return dict(self._snapshots[dimension].get(product_name, {}))

    async def reconcile(
        self,
        product_name: str,
        product_type: str,
        table: CountTable,
    ) -> tuple[int, int]:
        """Publish `table` for one product. Returns (series_set, series_zeroed)."""
        updated = 0
        zeroed = 0
        for dimension in StatusDimension:
            u, z = await self._reconcile_dimension(
                dimension, product_name, product_type, table.get(dimension, {})
            )
            updated += u
            zeroed += z
        return updated, zeroed

    async def _reconcile_dimension(
        self,
        dimension: StatusDimension,
        product_name: str,
        product_type: str,
        counts: dict[SeriesKey, int],
    ) -> tuple[int, int]:
        async with self._lock:
            previous = self._snapshots[dimension].setdefault(product_name, {})

            for (severity, cwe), count in counts.items():
                self.gauges.set(dimension, product_name, product_type, severity, cwe, float(count))
                previous[(severity, cwe)] = float(count)

            stale = [
                key for key, value in previous.items() if key not in counts and value != 0
            ]
            for severity, cwe in stale:
                self.gauges.set(dimension, product_name, product_type, severity, cwe, 0.0)
                previous[(severity, cwe)] = 0.0

            return len(counts), len(stale)
