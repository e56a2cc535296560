"""Collection loop: fetch products every interval and publish each product's counts with bounded concurrency."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from dojo_exporter.schemas.defectdojo import Product
from dojo_exporter.services.aggregation import aggregate_findings
from dojo_exporter.services.defectdojo_client import (
    CollectionCancelled,
    DefectDojoClient,
    DefectDojoError,
)
from dojo_exporter.services.freshness import EngagementFreshness
from dojo_exporter.services.metrics import VulnerabilityGauges
from dojo_exporter.services.product_type_cache import ProductTypeCache
from dojo_exporter.services.reconciler import Reconciler

logger = logging.getLogger(__name__)

CollectorStatus = Literal["running", "stopped", "failed"]


class ProductOutcome(str, Enum):
    PUBLISHED = "published"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


class CollectorState:
    """
    Process-wide state shared by every product worker.

    Snapshots and engagement freshness share one lock; the type cache has its own.
    """

    def __init__(self, gauges: VulnerabilityGauges) -> None:
        self.lock = asyncio.Lock()
        self.reconciler = Reconciler(gauges, self.lock)
        self.freshness = EngagementFreshness(self.lock)
        self.type_cache = ProductTypeCache()


@dataclass
class WorkerContext:
    """Handles a product worker needs; passed explicitly to each worker."""

    client: DefectDojoClient
    state: CollectorState
    stop: asyncio.Event
    use_engagement_check: bool


def _check_stop(ctx: WorkerContext) -> None:
    if ctx.stop.is_set():
        raise CollectionCancelled("Shutdown requested; not collecting further")


async def collect_product(product: Product, ctx: WorkerContext) -> ProductOutcome:
    """
    Fetch, aggregate and publish one product.

    DefectDojo errors end this product's work only; they are logged and reported
    as FAILED. Gauges of a failed or skipped product keep their last values.
    """
    step = "engagement update time"
    try:
        if ctx.use_engagement_check:
            _check_stop(ctx)
            latest = await ctx.client.fetch_latest_engagement_update(product.id)
            if not await ctx.state.freshness.advance(product.name, latest):
                logger.debug("No engagement updates for product %s; skipping", product.name)
                return ProductOutcome.SKIPPED

        step = "product type"
        _check_stop(ctx)
        product_type = await ctx.state.type_cache.get_or_fetch(
            product.type_id, ctx.client.fetch_product_type
        )

        step = "vulnerabilities"
        _check_stop(ctx)
        findings = await ctx.client.fetch_findings(product.name)
    except CollectionCancelled:
        return ProductOutcome.CANCELLED
    except DefectDojoError as e:
        logger.error("Error fetching %s for product %s: %s", step, product.name, e.message)
        return ProductOutcome.FAILED

    table = aggregate_findings(findings)
    updated, zeroed = await ctx.state.reconciler.reconcile(product.name, product_type, table)
    logger.debug(
        "Published product %s: findings=%d series_set=%d series_zeroed=%d",
        product.name,
        len(findings),
        updated,
        zeroed,
    )
    return ProductOutcome.PUBLISHED


class Collector:
    """
    Runs collection cycles until stopped.

    A cycle fetches the product list and runs one worker per product, at most
    `concurrency` at a time, then waits for all of them. Cycles start every
    `interval_sec`; an overrunning cycle is followed immediately by the next one.
    If the product list cannot be fetched, collection stops for good.
    """

    def __init__(
        self,
        client: DefectDojoClient,
        state: CollectorState,
        *,
        concurrency: int,
        interval_sec: float,
        use_engagement_check: bool,
        stop: asyncio.Event | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.client = client
        self.state = state
        self.concurrency = concurrency
        self.interval_sec = interval_sec
        self.stop = stop if stop is not None else asyncio.Event()
        self.status: CollectorStatus = "stopped"
        self.cycles = 0
        self._slots = asyncio.Semaphore(concurrency)
        self._ctx = WorkerContext(
            client=client,
            state=state,
            stop=self.stop,
            use_engagement_check=use_engagement_check,
        )

    async def _run_worker(self, product: Product) -> ProductOutcome:
        async with self._slots:
            if self.stop.is_set():
                return ProductOutcome.CANCELLED
            return await collect_product(product, self._ctx)

    async def run_cycle(self, products: list[Product]) -> Counter[ProductOutcome]:
        """Collect every product and return how many ended in each outcome."""
        results = await asyncio.gather(
            *(self._run_worker(p) for p in products),
            return_exceptions=True,
        )
        outcomes: Counter[ProductOutcome] = Counter()
        for product, result in zip(products, results):
            if isinstance(result, ProductOutcome):
                outcomes[result] += 1
            elif isinstance(result, Exception):
                logger.error(
                    "Unexpected error collecting product %s",
                    product.name,
                    exc_info=result,
                )
                outcomes[ProductOutcome.FAILED] += 1
            else:
                raise result
        return outcomes

    async def _wait_next_tick(self, remaining: float) -> None:
        if remaining <= 0:
            logger.warning(
                "Collection cycle took longer than interval of %.1fs; starting next cycle now",
                self.interval_sec,
            )
            return
        try:
            await asyncio.wait_for(self.stop.wait(), timeout=remaining)
        except asyncio.TimeoutError:
            pass

    async def run(self) -> None:
        """Collection loop. Returns when stopped or when the product list cannot be fetched."""
        loop = asyncio.get_running_loop()
        self.status = "running"
        logger.info(
            "Starting collection: concurrency=%d interval=%.1fs engagement_check=%s",
            self.concurrency,
            self.interval_sec,
            self._ctx.use_engagement_check,
        )
        try:
            while not self.stop.is_set():
                started = loop.time()
                try:
                    products = await self.client.fetch_products()
                except CollectionCancelled:
                    break
                except DefectDojoError as e:
                    logger.error("Error fetching products; collection stopped: %s", e.message)
                    self.status = "failed"
                    return
                except Exception:
                    logger.exception("Unexpected error fetching products; collection stopped")
                    self.status = "failed"
                    return

                outcomes = await self.run_cycle(products)
                self.cycles += 1
                elapsed = loop.time() - started
                logger.info(
                    "Collection cycle %d finished in %.2fs: products=%d published=%d skipped=%d failed=%d cancelled=%d",
                    self.cycles,
                    elapsed,
                    len(products),
                    outcomes[ProductOutcome.PUBLISHED],
                    outcomes[ProductOutcome.SKIPPED],
                    outcomes[ProductOutcome.FAILED],
                    outcomes[ProductOutcome.CANCELLED],
                    extra={
                        "cycle": self.cycles,
                        "duration_seconds": elapsed,
                        "product_count": len(products),
                    },
                )
                await self._wait_next_tick(self.interval_sec - elapsed)
        finally:
            if self.status == "running":
                self.status = "stopped"
        logger.info("Collection stopped")
