"""MallBoard — Rakuten Orders → Daily Sales."""

from collections import defaultdict
from typing import Any, Dict, Iterator, List

from mallboard.core.dates import normalize_date_prefix
from mallboard.models.dashboard_models import MarketplaceItem, ProductSalesPoint


def _order_date(order: Dict[str, Any]) -> str | None:
    raw = order.get("orderDatetime")
    if not raw:
        return None
    return normalize_date_prefix(str(raw))


def aggregate_orders_by_date(orders: List[Dict[str, Any]]) -> Dict[str, float]:
    """Billed amount (``totalPrice``) per order date."""
    daily: Dict[str, float] = defaultdict(float)
    for order in orders:
        day = _order_date(order)
        if day:
            daily[day] += float(order.get("totalPrice") or 0)
    return dict(sorted(daily.items()))


def _items(order: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    for package in order.get("PackageModelList") or []:
        yield from package.get("ItemModelList") or []


def item_code(item: Dict[str, Any]) -> str:
    return str(item.get("itemUrl") or item.get("manageNumber") or item.get("itemNumber") or "")


def product_daily_sales(orders: List[Dict[str, Any]], product_code: str) -> List[ProductSalesPoint]:
    """Per-day ``price * units`` for one item, only days with sales."""
    sales: Dict[str, float] = defaultdict(float)
    quantity: Dict[str, int] = defaultdict(int)
    for order in orders:
        day = _order_date(order)
        if not day:
            continue
        for item in _items(order):
            if item_code(item) != product_code:
                continue
            units = int(item.get("units") or 1)
            sales[day] += float(item.get("price") or 0) * units
            quantity[day] += units

    return [
        ProductSalesPoint(date=day, sales=round(sales[day]), quantity=quantity[day])
        for day in sorted(sales)
    ]


def extract_items(orders: List[Dict[str, Any]]) -> List[MarketplaceItem]:
    """Distinct items seen in the orders, first-seen name kept, sorted by code."""
    found: Dict[str, MarketplaceItem] = {}
    for order in orders:
        for item in _items(order):
            code = item_code(item)
            if code and code not in found:
                found[code] = MarketplaceItem(
                    code=code,
                    name=str(item.get("itemName") or ""),
                    seller_code=str(item.get("manageNumber") or ""),
                    price=float(item["price"]) if item.get("price") is not None else None,
                )
    return [found[code] for code in sorted(found)]
