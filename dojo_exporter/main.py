"""FastAPI application factory. Wires the collector into the app lifespan; no collection logic here."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from prometheus_client import REGISTRY, CollectorRegistry

from dojo_exporter import __version__
from dojo_exporter.api import router
from dojo_exporter.core.config import Settings
from dojo_exporter.services.collector import Collector, CollectorState
from dojo_exporter.services.defectdojo_client import DefectDojoClient
from dojo_exporter.services.metrics import VulnerabilityGauges

logger = logging.getLogger(__name__)

INDEX_HTML = (
    "<h2>DefectDojo Exporter</h2>"
    "<p><a href='/metrics'>/metrics</a> -  available service metrics</p>"
)


def create_app(settings: Settings, registry: CollectorRegistry = REGISTRY) -> FastAPI:
    """
    Build the exporter app. Collection starts with the app lifespan and is
    stopped on shutdown: the stop event is set, the collector gets
    SHUTDOWN_GRACE_SEC to finish, then its task is cancelled.
    """
    state = CollectorState(VulnerabilityGauges(registry))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        stop = asyncio.Event()
        client = DefectDojoClient.from_settings(settings, cancel_event=stop)
        collector = Collector(
            client,
            state,
            concurrency=settings.CONCURRENCY,
            interval_sec=settings.INTERVAL_SEC,
            use_engagement_check=settings.USE_ENGAGEMENT_UPDATE_CHECK,
            stop=stop,
        )
        app.state.collector = collector
        task = asyncio.create_task(collector.run(), name="dojo-collector")
        try:
            yield
        finally:
            logger.info("Shutdown signal received")
            stop.set()
            try:
                await asyncio.wait_for(task, timeout=settings.SHUTDOWN_GRACE_SEC)
            except asyncio.TimeoutError:
                logger.warning(
                    "Collector did not stop within %.1fs; cancelled in-flight cycle",
                    settings.SHUTDOWN_GRACE_SEC,
                )
            except Exception as e:
                logger.exception("Collector exited with an error: %s", e)
            await client.aclose()
            logger.info("Exporter stopped gracefully")

    app = FastAPI(
        title="DefectDojo Exporter",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.collector_state = state
    app.include_router(router)

    @app.get("/", response_class=HTMLResponse)
    def root() -> str:
        """Landing page linking the metrics endpoint."""
        return INDEX_HTML

    return app
