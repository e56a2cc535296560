"""HTTP routes."""

from fastapi import APIRouter

from dojo_exporter.api import health, metrics

router = APIRouter()
router.include_router(health.router, tags=["health"])
router.include_router(metrics.router, tags=["metrics"])
