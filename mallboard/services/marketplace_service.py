"""MallBoard — Marketplace Sales Service.

Reads orders from a marketplace API with the stored credentials and reduces
them to daily revenue (mall level) or per-day sales of one item code. Also
checks stored credentials and lists item codes for the product registry.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Tuple

import httpx

from mallboard.connectors.qoo10 import transformer as qoo10_transformer
from mallboard.connectors.qoo10.client import Qoo10Client
from mallboard.connectors.rakuten import transformer as rakuten_transformer
from mallboard.connectors.rakuten.client import RakutenClient, to_rms_datetime
from mallboard.core.dates import DATE_FORMAT, default_date_range, parse_date
from mallboard.core.malls import Mall
from mallboard.models.catalog_models import CredentialSettings
from mallboard.models.dashboard_models import MarketplaceItem, ProductSalesPoint
from mallboard.store.credentials import require_credential
from mallboard.core.logging import get_logger

logger = get_logger("services.marketplace")

CONNECTION_CHECK_DAYS = 7


class UnsupportedMallError(Exception):
    """Raised for a mall this service cannot read directly."""

    def __init__(self, mall: Mall, operation: str):
        self.mall = mall
        super().__init__(f"{operation} is not available for {mall.value}")


def _next_day(day: str) -> str:
    return (parse_date(day) + timedelta(days=1)).strftime(DATE_FORMAT)


def qoo10_client(credentials: CredentialSettings, transport: httpx.AsyncBaseTransport | None = None) -> Qoo10Client:
    cred = require_credential(credentials, Mall.QOO10, "api_key")
    return Qoo10Client(cred.api_key, transport=transport)


def rakuten_client(credentials: CredentialSettings, transport: httpx.AsyncBaseTransport | None = None) -> RakutenClient:
    cred = require_credential(credentials, Mall.RAKUTEN, "service_secret", "license_key")
    return RakutenClient(cred.service_secret, cred.license_key, transport=transport)


async def fetch_product_sales(
    credentials: CredentialSettings,
    mall: Mall,
    code: str,
    date_start: str,
    date_stop: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> List[ProductSalesPoint]:
    """Per-day sales of one item code over ``[date_start, date_stop]``."""
    if mall == Mall.QOO10:
        client = qoo10_client(credentials, transport)
        try:
            orders = await client.fetch_orders(date_start, date_stop)
        finally:
            await client.close()
        points = qoo10_transformer.product_daily_sales(orders, code, date_start, date_stop)

    elif mall == Mall.RAKUTEN:
        client = rakuten_client(credentials, transport)
        try:
            # The end bound is exclusive, so search up to the next midnight
            orders = await client.fetch_orders(
                to_rms_datetime(date_start), to_rms_datetime(_next_day(date_stop))
            )
        finally:
            await client.close()
        points = rakuten_transformer.product_daily_sales(orders, code)

    else:
        raise UnsupportedMallError(mall, "product-sales")

    logger.info(
        f"{mall.value}/{code}: {sum(p.quantity for p in points)} units over {len(points)} days",
        extra={"mall": mall.value, "entity_id": code},
    )
    return points


async def fetch_daily_sales(
    credentials: CredentialSettings,
    mall: Mall,
    date_start: str,
    date_stop: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Tuple[Dict[str, float], int]:
    """Mall-wide revenue per day and the number of orders it came from."""
    if mall == Mall.QOO10:
        client = qoo10_client(credentials, transport)
        try:
            orders = await client.fetch_orders(date_start, date_stop)
        finally:
            await client.close()
        return qoo10_transformer.aggregate_orders_by_date(orders), len(orders)

    if mall == Mall.RAKUTEN:
        client = rakuten_client(credentials, transport)
        try:
            orders = await client.fetch_orders(
                to_rms_datetime(date_start), to_rms_datetime(_next_day(date_stop))
            )
        finally:
            await client.close()
        return rakuten_transformer.aggregate_orders_by_date(orders), len(orders)

    raise UnsupportedMallError(mall, "daily-sales")


# ── Connection & item discovery ──


async def check_qoo10_connection(
    credentials: CredentialSettings,
    today: date | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Dict[str, Any]:
    """Check the stored Qoo10 key with an order search over the past week."""
    date_start, date_stop = default_date_range(CONNECTION_CHECK_DAYS, today)
    client = qoo10_client(credentials, transport)
    try:
        return await client.check_connection(date_start, date_stop)
    finally:
        await client.close()


async def list_qoo10_items(
    credentials: CredentialSettings,
    page: int = 1,
    item_status: str = "S2",
    transport: httpx.AsyncBaseTransport | None = None,
) -> List[MarketplaceItem]:
    client = qoo10_client(credentials, transport)
    try:
        rows = await client.list_items(page, item_status)
    finally:
        await client.close()
    return qoo10_transformer.to_marketplace_items(rows)


async def get_qoo10_item(
    credentials: CredentialSettings,
    item_code: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Dict[str, Any]:
    """Raw item detail as Qoo10 returns it."""
    client = qoo10_client(credentials, transport)
    try:
        return await client.get_item_detail(item_code)
    finally:
        await client.close()


async def extract_rakuten_items(
    credentials: CredentialSettings,
    date_start: str,
    date_stop: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Tuple[List[MarketplaceItem], int]:
    """Items found in the range's orders and the number of orders read.

    The RMS item API needs a separate contract, so orders are the source.
    """
    client = rakuten_client(credentials, transport)
    try:
        orders = await client.fetch_orders(
            to_rms_datetime(date_start), to_rms_datetime(_next_day(date_stop))
        )
    finally:
        await client.close()
    items = rakuten_transformer.extract_items(orders)
    logger.info(
        f"Extracted {len(items)} rakuten items from {len(orders)} orders",
        extra={"mall": Mall.RAKUTEN.value},
    )
    return items, len(orders)
