"""MallBoard — Qoo10 QAPI Client.

Order search over ``ShippingBasic.GetShippingInfo_v3`` and item lookup over
``ItemsLookup``. Order search pages by a ``Page`` parameter but may repeat a
page once results run out, so paging stops on the first page that adds no
new ``PackNo``.
"""

from typing import Any, Dict, List, Optional, Set

import httpx

from mallboard.config import settings
from mallboard.core.logging import get_logger

logger = get_logger("qoo10.client")

# 1 awaiting payment, 2 shipping requested, 3 shipping, 4 delivered, 5 confirmed
SHIPPING_STATUSES = ["1", "2", "3", "4", "5"]
MAX_PAGES = 500


class Qoo10APIError(Exception):
    """Raised when Qoo10 returns an HTTP error or a non-zero ResultCode."""

    def __init__(self, message: str, status_code: int = 0, result_code: Any = None):
        self.status_code = status_code
        self.result_code = result_code
        super().__init__(message)


def to_qoo10_date(day: str) -> str:
    """YYYY-MM-DD → YYYYMMDD (already compact dates pass through)."""
    return day.replace("-", "")


def order_key(order: Dict[str, Any]) -> str:
    return str(order.get("PackNo") or order.get("OrderNo") or "")


class Qoo10Client:
    """Async HTTP client for the Qoo10 seller API."""

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key.strip()
        self.base_url = (base_url or settings.qoo10_api_base).rstrip("/")
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

    async def _call(self, method_name: str, form: Dict[str, str]) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            resp = await client.post(
                f"{self.base_url}/{method_name}",
                data={"returnType": "application/json", **form},
                headers={
                    "GiosisCertificationKey": self.api_key,
                    "QAPIVersion": "1.0",
                },
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise Qoo10APIError(
                f"Qoo10 API error: {e.response.status_code}", e.response.status_code
            ) from e
        except httpx.RequestError as e:
            raise Qoo10APIError(f"Qoo10 API unreachable: {e}") from e
        except ValueError as e:
            # Maintenance pages come back as HTML with a 200
            raise Qoo10APIError(f"Qoo10 API returned non-JSON body: {e}", resp.status_code) from e
        if not isinstance(data, dict):
            raise Qoo10APIError("Qoo10 API returned an unexpected body", resp.status_code)
        return data

    # ── Orders ──

    async def fetch_orders_page(
        self, date_start: str, date_stop: str, shipping_status: str, page: int = 1
    ) -> Dict[str, Any]:
        """One page of orders for one shipping status."""
        data = await self._call(
            "ShippingBasic.GetShippingInfo_v3",
            {
                "ShippingStatus": shipping_status,
                "SearchStartDate": to_qoo10_date(date_start),
                "SearchEndDate": to_qoo10_date(date_stop),
                "SearchCondition": "1",  # by order date
                "Page": str(page),
            },
        )
        logger.debug(
            f"Qoo10 status={shipping_status} page={page} "
            f"ResultCode={data.get('ResultCode')} orders={len(data.get('ResultObject') or [])}"
        )
        return data

    async def fetch_orders_by_status(
        self, date_start: str, date_stop: str, shipping_status: str
    ) -> List[Dict[str, Any]]:
        """Every order for one shipping status across all pages."""
        orders: List[Dict[str, Any]] = []
        seen: Set[str] = set()

        for page in range(1, MAX_PAGES + 1):
            data = await self.fetch_orders_page(date_start, date_stop, shipping_status, page)
            if str(data.get("ResultCode")) != "0":
                break
            page_orders = data.get("ResultObject") or []
            if not isinstance(page_orders, list) or not page_orders:
                break

            added = 0
            for order in page_orders:
                if not isinstance(order, dict):
                    continue
                key = order_key(order)
                if key and key not in seen:
                    seen.add(key)
                    orders.append(order)
                    added += 1
            if added == 0:
                break

        logger.info(f"Qoo10 status {shipping_status}: {len(orders)} unique orders")
        return orders

    async def fetch_orders(self, date_start: str, date_stop: str) -> List[Dict[str, Any]]:
        """Orders across shipping statuses 1-5, deduplicated.

        A failing status is logged and skipped; the others still count. When
        every status fails the last error is raised.
        """
        orders: List[Dict[str, Any]] = []
        seen: Set[str] = set()
        last_error: Optional[Qoo10APIError] = None
        failed = 0
        for status in SHIPPING_STATUSES:
            try:
                status_orders = await self.fetch_orders_by_status(
                    date_start, date_stop, status
                )
            except Qoo10APIError as e:
                logger.warning(f"Qoo10 status {status} failed: {e}")
                last_error = e
                failed += 1
                continue
            for order in status_orders:
                key = order_key(order) or repr(sorted(order.items()))
                if key not in seen:
                    seen.add(key)
                    orders.append(order)
        if last_error is not None and failed == len(SHIPPING_STATUSES):
            raise last_error
        logger.info(f"Qoo10 total unique orders: {len(orders)}")
        return orders

    async def check_connection(self, date_start: str, date_stop: str) -> Dict[str, Any]:
        """One order-search call; a zero ResultCode means the key works."""
        data = await self.fetch_orders_page(date_start, date_stop, SHIPPING_STATUSES[0])
        return {
            "ok": str(data.get("ResultCode")) == "0",
            "result_code": data.get("ResultCode"),
            "result_msg": data.get("ResultMsg") or "",
        }

    # ── Items ──

    def _result_object(self, data: Dict[str, Any]) -> Any:
        if str(data.get("ResultCode")) != "0":
            raise Qoo10APIError(
                f"Qoo10 API error: {data.get('ResultMsg') or 'Unknown error'}",
                result_code=data.get("ResultCode"),
            )
        return data.get("ResultObject")

    async def list_items(self, page: int = 1, item_status: str = "S2") -> List[Dict[str, Any]]:
        """One page of the seller's listings.

        ``item_status``: S0 unconfirmed, S1 waiting, S2 on sale, S3 suspended,
        S5/S8 restricted.
        """
        data = await self._call(
            "ItemsLookup.GetAllGoodsInfo",
            {"SellerCode": "", "ItemStatus": item_status, "Page": str(page)},
        )
        items = self._result_object(data)
        # The list sits either at the top level or under one of these keys
        if isinstance(items, dict):
            for key in ("Items", "Goods", "ItemList", "items", "goods"):
                if isinstance(items.get(key), list):
                    items = items[key]
                    break
            else:
                items = [items]
        if not isinstance(items, list):
            items = []
        logger.info(f"Qoo10 items page {page} ({item_status}): {len(items)}")
        return [i for i in items if isinstance(i, dict)]

    async def get_item_detail(self, item_code: str) -> Dict[str, Any]:
        data = await self._call("ItemsLookup.GetItemDetailInfo", {"ItemCode": item_code})
        detail = self._result_object(data)
        if isinstance(detail, list):
            detail = detail[0] if detail else {}
        if not isinstance(detail, dict):
            raise Qoo10APIError(f"Qoo10 item {item_code} not found")
        return detail
