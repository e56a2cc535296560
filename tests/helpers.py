"""Shared builders and a fake DefectDojo client for collector tests."""

import asyncio
from collections import Counter
from datetime import datetime

from dojo_exporter.schemas.defectdojo import Finding, Product
from dojo_exporter.services.defectdojo_client import DefectDojoApiError


def _finding(severity: str = "High", cwe: int = 79, **flags: bool) -> Finding:
    """Build a Finding with the given status flags set (Python attribute names)."""
    return Finding(severity=severity, cwe=cwe, **flags)


def _product(product_id: int = 1, name: str = "Test Product 1", type_id: int = 2) -> Product:
    return Product(id=product_id, prod_type=type_id, name=name)


class FakeDojo:
    """
    Stands in for DefectDojoClient. Records calls and the peak number of
    concurrent findings fetches.
    """

    def __init__(
        self,
        products: list[Product],
        findings: dict[str, list[Finding]] | None = None,
        types: dict[int, str] | None = None,
        engagements: dict[int, datetime | None] | None = None,
        failing: dict[str, Exception] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.products = products
        self.findings = findings or {}
        self.types = types or {}
        self.engagements = engagements or {}
        self.failing = failing or {}
        self.delay = delay
        self.products_error: Exception | None = None
        self.calls: Counter[str] = Counter()
        self.active = 0
        self.max_active = 0
        self.closed = False

    async def fetch_products(self) -> list[Product]:
        self.calls["products"] += 1
        if self.products_error is not None:
            raise self.products_error
        return list(self.products)

    async def fetch_product_type(self, type_id: int) -> str:
        self.calls["product_type"] += 1
        if type_id not in self.types:
            raise DefectDojoApiError(f"DefectDojo returned 404 for type {type_id}", 404)
        return self.types[type_id]

    async def fetch_latest_engagement_update(self, product_id: int) -> datetime | None:
        self.calls["engagements"] += 1
        return self.engagements.get(product_id)

    async def fetch_findings(self, product_name: str) -> list[Finding]:
        self.calls["findings"] += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if product_name in self.failing:
                raise self.failing[product_name]
            return list(self.findings.get(product_name, []))
        finally:
            self.active -= 1

    async def aclose(self) -> None:
        self.closed = True
