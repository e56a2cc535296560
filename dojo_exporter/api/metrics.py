"""Prometheus exposition endpoint."""

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

router = APIRouter()


@router.get("/metrics")
def get_metrics(request: Request) -> Response:
    registry = getattr(request.app.state, "registry", REGISTRY)
    return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
