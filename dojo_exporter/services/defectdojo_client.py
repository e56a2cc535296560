"""Async client for the DefectDojo v2 REST API: paginated reads of products, findings, types and engagements."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from dojo_exporter import __version__
from dojo_exporter.schemas.defectdojo import (
    Engagement,
    Finding,
    Page,
    Product,
    ProductType,
)

if TYPE_CHECKING:
    from dojo_exporter.core.config import Settings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Connection pool sizing for the shared client.
MAX_CONNECTIONS = 256
MAX_KEEPALIVE_CONNECTIONS = 64
KEEPALIVE_EXPIRY_SEC = 90.0
CONNECT_TIMEOUT_SEC = 10.0


class DefectDojoError(Exception):
    """Base class for every failure talking to DefectDojo."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DefectDojoApiError(DefectDojoError):
    """Transport failure, non-200 response, or a body that is not the expected JSON."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class DefectDojoNotFoundError(DefectDojoError):
    """A lookup that must return one record returned none."""


class CollectionCancelled(DefectDojoError):
    """Raised instead of issuing a request once shutdown was requested."""


class DefectDojoClient:
    """
    Thin wrapper over one pooled httpx.AsyncClient.

    Every list endpoint is followed through its `next` links until exhausted; the
    caller always gets the complete result set or an exception, never a partial list.
    """

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient,
        *,
        page_size: int = 100,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.cancel_event = cancel_event
        self._http = http_client

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        cancel_event: asyncio.Event | None = None,
    ) -> DefectDojoClient:
        """Build a client with auth header, per-request timeout and connection pool from settings."""
        http_client = httpx.AsyncClient(
            headers={
                "Authorization": f"Token {settings.DD_TOKEN.get_secret_value()}",
                "Accept": "application/json",
                "User-Agent": f"dojo-exporter/{__version__}",
            },
            timeout=httpx.Timeout(settings.TIMEOUT_SEC, connect=min(CONNECT_TIMEOUT_SEC, settings.TIMEOUT_SEC)),
            limits=httpx.Limits(
                max_connections=MAX_CONNECTIONS,
                max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS,
                keepalive_expiry=KEEPALIVE_EXPIRY_SEC,
            ),
        )
        return cls(
            settings.DD_URL,
            http_client,
            page_size=settings.PAGE_SIZE,
            cancel_event=cancel_event,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> DefectDojoClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/v2/{path.lstrip('/')}"

    async def _get_json(self, url: str, params: dict[str, Any] | None) -> Any:
        """GET one URL and return the decoded JSON body. Raises DefectDojoApiError on any failure."""
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise CollectionCancelled(f"Shutdown requested; not fetching {url}")
        try:
            resp = await self._http.get(url, params=params)
        except httpx.TimeoutException as e:
            raise DefectDojoApiError(f"Request to {url} timed out") from e
        except httpx.HTTPError as e:
            raise DefectDojoApiError(f"Request to {url} failed: {e}") from e

        if resp.status_code != 200:
            raise DefectDojoApiError(
                f"DefectDojo returned {resp.status_code} for {url}",
                resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise DefectDojoApiError(f"Response from {url} is not valid JSON") from e

    async def _iter_pages(
        self,
        path: str,
        params: dict[str, Any],
        model: type[ModelT],
    ) -> AsyncIterator[Page[ModelT]]:
        """Yield every page of a list endpoint in order, following `next` until it is empty."""
        url: str | None = self._url(path)
        page_params: dict[str, Any] | None = params
        while url:
            body = await self._get_json(url, page_params)
            try:
                page = Page[model].model_validate(body)
            except ValidationError as e:
                raise DefectDojoApiError(f"Unexpected response shape from {url}: {e}") from e
            logger.debug("Fetched %s: %d records", url, len(page.results))
            yield page
            # `next` already carries the query string
            url = page.next
            page_params = None

    async def _fetch_all(
        self,
        path: str,
        params: dict[str, Any],
        model: type[ModelT],
    ) -> list[ModelT]:
        items: list[ModelT] = []
        async for page in self._iter_pages(path, params, model):
            items.extend(page.results)
        return items

    async def fetch_products(self) -> list[Product]:
        """Return every product visible to the token."""
        return await self._fetch_all("products/", {"limit": self.page_size}, Product)

    async def fetch_findings(self, product_name: str) -> list[Finding]:
        """Return every finding of the named product."""
        return await self._fetch_all(
            "findings/",
            {"product_name": product_name, "limit": self.page_size},
            Finding,
        )

    async def fetch_product_type(self, type_id: int) -> str:
        """Return the name of a product type. Raises DefectDojoNotFoundError when the id is unknown."""
        url = self._url("product_types/")
        body = await self._get_json(url, {"id": type_id, "limit": 1})
        try:
            page = Page[ProductType].model_validate(body)
        except ValidationError as e:
            raise DefectDojoApiError(f"Unexpected response shape from {url}: {e}") from e
        if not page.results:
            raise DefectDojoNotFoundError(f"No product type found for id {type_id}")
        return page.results[0].name

    async def fetch_latest_engagement_update(self, product_id: int) -> datetime | None:
        """Return the newest `updated` across all engagements of a product, or None if there is none."""
        latest: datetime | None = None
        async for page in self._iter_pages(
            "engagements/",
            {"product": product_id, "limit": self.page_size},
            Engagement,
        ):
            for engagement in page.results:
                if engagement.updated is None:
                    continue
                if latest is None or engagement.updated > latest:
                    latest = engagement.updated
        return latest
