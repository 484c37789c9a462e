"""MallBoard — Marketplace Gateway Client.

Talks to the gateway service that fetches per-item sales from each
marketplace and persists them. Failures surface as ``GatewayError``; the
number of attempts is ``settings.gateway_max_attempts`` (1 = no retry).
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from mallboard.config import settings
from mallboard.core.malls import Mall
from mallboard.models.dashboard_models import (
    GatewayProductSales,
    ProductSalesPoint,
    SaveProductSalesRequest,
    SaveProductSalesResponse,
)
from mallboard.core.logging import get_logger

logger = get_logger("gateway.client")

RETRY_BASE_DELAY = 2  # seconds


class GatewayError(Exception):
    """Raised when the gateway call fails or returns an unusable body."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


def _error_message(response: httpx.Response) -> str:
    """``message`` or ``detail`` from a JSON error body, else empty."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    return str(body.get("message") or body.get("detail") or "")


class GatewayClient:
    """Async HTTP client for the marketplace gateway API."""

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        max_attempts: int | None = None,
    ):
        self.base_url = (base_url or settings.gateway_base_url).rstrip("/")
        self.max_attempts = max(1, max_attempts or settings.gateway_max_attempts)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=settings.gateway_timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Core Request Method ──

    async def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        client = await self._get_client()

        for attempt in range(1, self.max_attempts + 1):
            try:
                resp = await client.request(method, path, params=params, json=json)
                resp.raise_for_status()
                return resp.json()

            except httpx.HTTPStatusError as e:
                message = _error_message(e.response) or str(e)

                if attempt < self.max_attempts and e.response.status_code >= 500:
                    wait = RETRY_BASE_DELAY * (2 ** (attempt - 1))
                    logger.warning(
                        f"Gateway error {e.response.status_code}. Retrying in {wait}s"
                    )
                    await asyncio.sleep(wait)
                    continue

                raise GatewayError(str(message), e.response.status_code) from e

            except httpx.RequestError as e:
                if attempt < self.max_attempts:
                    wait = RETRY_BASE_DELAY * (2 ** (attempt - 1))
                    logger.warning(f"Gateway request error: {e}. Retrying in {wait}s")
                    await asyncio.sleep(wait)
                    continue
                raise GatewayError(f"Gateway unreachable: {e}") from e

            except ValueError as e:
                raise GatewayError(f"Gateway returned non-JSON body: {e}") from e

        raise GatewayError("Max attempts exhausted")

    # ── Product Sales ──

    async def fetch_product_sales(
        self, mall: Mall, code: str, date_start: str, date_stop: str
    ) -> List[ProductSalesPoint]:
        """Per-day sales of one item code, straight from the marketplace."""
        data = await self._request(
            "GET",
            f"/{mall.value}/product-sales/{code}",
            params={"startDate": date_start, "endDate": date_stop},
        )
        try:
            payload = GatewayProductSales.model_validate(data)
        except ValidationError as e:
            raise GatewayError(f"Malformed product-sales payload: {e}") from e
        if not payload.success:
            raise GatewayError(payload.message or f"{mall.value} fetch failed")
        logger.info(
            f"Fetched {len(payload.daily_sales)} days for {mall.value}/{code}",
            extra={"mall": mall.value, "entity_id": code},
        )
        return payload.daily_sales

    async def save_product_sales(
        self, mall: Mall, code: str, points: List[ProductSalesPoint]
    ) -> int:
        """Persist fetched rows through the gateway; returns rows saved."""
        body = SaveProductSalesRequest(mall=mall.value, code=code, daily_sales=points)
        data = await self._request(
            "POST",
            "/sync/save-product-sales",
            json=body.model_dump(by_alias=True),
        )
        try:
            result = SaveProductSalesResponse.model_validate(data)
        except ValidationError as e:
            raise GatewayError(f"Malformed save response: {e}") from e
        if not result.success:
            raise GatewayError(f"Gateway refused to save {mall.value}/{code}")
        return result.saved_count

    # ── Mall-level Sync ──

    async def sync_amazon_sales(self, date_start: str, date_stop: str) -> Dict[str, Any]:
        """Ask the gateway to pull Amazon daily sales into the store."""
        data = await self._request(
            "POST",
            "/amazon/sync-sales",
            json={"startDate": date_start, "endDate": date_stop},
        )
        if not isinstance(data, dict):
            raise GatewayError("Malformed amazon sync response")
        return data


async def get_gateway_client():
    """Dependency — yields a gateway client and closes it afterwards."""
    client = GatewayClient()
    try:
        yield client
    finally:
        await client.close()
