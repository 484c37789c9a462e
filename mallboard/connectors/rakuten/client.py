"""MallBoard — Rakuten RMS Order API Client.

Two-step order read: ``searchOrder`` pages through order numbers, then
``getOrder`` returns details for at most 100 numbers per call.
"""

import base64
from typing import Any, Dict, List, Optional

import httpx

from mallboard.config import settings
from mallboard.core.logging import get_logger

logger = get_logger("rakuten.client")

ORDER_PROGRESS_ALL = [100, 200, 300, 400, 500, 600, 700, 800, 900]
SEARCH_PAGE_SIZE = 1000
DETAIL_CHUNK_SIZE = 100
GET_ORDER_VERSION = 7


class RakutenAPIError(Exception):
    """Raised when the RMS API returns an error."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


def esa_auth_header(service_secret: str, license_key: str) -> str:
    """``ESA base64(serviceSecret:licenseKey)`` with stray whitespace removed."""
    token = f"{service_secret.strip()}:{license_key.strip()}".encode("utf-8")
    return f"ESA {base64.b64encode(token).decode('ascii')}"


def to_rms_datetime(day: str) -> str:
    """YYYY-MM-DD → start of that day in JST, as RMS expects."""
    return f"{day}T00:00:00+0900"


def _error_message(response: httpx.Response) -> str:
    """RMS error text: ``MessageModelList`` first, then ``Results``."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    messages = body.get("MessageModelList")
    if isinstance(messages, list) and messages and isinstance(messages[0], dict):
        content = messages[0].get("messageContent")
        if content:
            return str(content)
    results = body.get("Results")
    if isinstance(results, dict) and results.get("message"):
        code = results.get("errorCode")
        return f"{results['message']} ({code})" if code else str(results["message"])
    return ""


class RakutenClient:
    """Async HTTP client for the Rakuten RMS order API."""

    def __init__(
        self,
        service_secret: str,
        license_key: str,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.auth_header = esa_auth_header(service_secret, license_key)
        self.base_url = (base_url or settings.rakuten_api_base).rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=settings.marketplace_timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            resp = await client.post(
                f"{self.base_url}{path}",
                json=body,
                headers={
                    "Authorization": self.auth_header,
                    "Content-Type": "application/json; charset=utf-8",
                },
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response) or str(e)
            raise RakutenAPIError(message, e.response.status_code) from e
        except httpx.RequestError as e:
            raise RakutenAPIError(f"Rakuten RMS unreachable: {e}") from e
        except ValueError as e:
            raise RakutenAPIError(f"Rakuten RMS returned non-JSON body: {e}", resp.status_code) from e
        if not isinstance(data, dict):
            raise RakutenAPIError("Rakuten RMS returned an unexpected body", resp.status_code)
        return data

    # ── Orders ──

    async def search_order_numbers(self, start_datetime: str, end_datetime: str) -> List[str]:
        """Every order number ordered between the two datetimes."""
        numbers: List[str] = []
        page = 1
        while True:
            data = await self._post(
                "/order/searchOrder/",
                {
                    "dateType": 1,  # order date
                    "startDatetime": start_datetime,
                    "endDatetime": end_datetime,
                    "orderProgressList": ORDER_PROGRESS_ALL,
                    "PaginationRequestModel": {
                        "requestRecordsAmount": SEARCH_PAGE_SIZE,
                        "requestPage": page,
                    },
                },
            )
            page_numbers = data.get("orderNumberList") or []
            numbers.extend(page_numbers)

            pagination = data.get("PaginationResponseModel")
            if not pagination:
                break
            total_pages = pagination.get("totalPages") or 1
            if page >= total_pages or not page_numbers:
                break
            page += 1

        logger.info(f"Rakuten searchOrder: {len(numbers)} orders over {page} page(s)")
        return numbers

    async def get_orders(self, order_numbers: List[str]) -> List[Dict[str, Any]]:
        """Order details, requested in chunks of 100."""
        orders: List[Dict[str, Any]] = []
        for i in range(0, len(order_numbers), DETAIL_CHUNK_SIZE):
            chunk = order_numbers[i : i + DETAIL_CHUNK_SIZE]
            data = await self._post(
                "/order/getOrder/",
                {"orderNumberList": chunk, "version": GET_ORDER_VERSION},
            )
            orders.extend(data.get("OrderModelList") or [])
        return orders

    async def fetch_orders(self, start_datetime: str, end_datetime: str) -> List[Dict[str, Any]]:
        numbers = await self.search_order_numbers(start_datetime, end_datetime)
        if not numbers:
            return []
        return await self.get_orders(numbers)
