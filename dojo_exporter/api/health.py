"""Liveness and readiness endpoints. Independent of collection state."""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from dojo_exporter import __version__
from dojo_exporter.schemas.health import HealthResponse

router = APIRouter()


@router.get("/healthz", response_class=PlainTextResponse)
def get_healthz() -> str:
    return "ok"


@router.get("/ready", response_class=PlainTextResponse)
def get_ready() -> str:
    return "ok"


@router.get("/api/v1/health", response_model=HealthResponse)
def get_health(request: Request) -> HealthResponse:
    """
    Return service health and, for information only, the collector status.
    A failed collector does not make the service unhealthy.
    """
    collector = getattr(request.app.state, "collector", None)
    return HealthResponse(
        status="ok",
        version=__version__,
        collector=collector.status if collector is not None else "stopped",
    )
