"""Pydantic schemas for API records and responses."""

from dojo_exporter.schemas.defectdojo import (
    Engagement,
    Finding,
    Page,
    Product,
    ProductType,
)
from dojo_exporter.schemas.health import HealthResponse

__all__ = [
    "Engagement",
    "Finding",
    "HealthResponse",
    "Page",
    "Product",
    "ProductType",
]
