"""MallBoard — Qoo10 Orders → Daily Sales.

Revenue is GMV: ``(OrderPrice + OptionPrice) * OrderQty``, discounts not
subtracted.
"""

from collections import defaultdict
from typing import Any, Dict, List

from mallboard.core.dates import iter_dates, normalize_date_prefix
from mallboard.models.dashboard_models import MarketplaceItem, ProductSalesPoint


def _safe_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _safe_int(value: Any, default: int = 1) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def order_quantity(order: Dict[str, Any]) -> int:
    return _safe_int(order.get("OrderQty") or order.get("orderQty"), 1)


def order_amount(order: Dict[str, Any]) -> float:
    price = _safe_float(order.get("OrderPrice") or order.get("orderPrice") or 0)
    option = _safe_float(order.get("OptionPrice") or order.get("optionPrice") or 0)
    return (price + option) * order_quantity(order)


def order_date(order: Dict[str, Any]) -> str | None:
    raw = order.get("OrderDate") or order.get("orderDate") or order.get("PayDate") or ""
    return normalize_date_prefix(str(raw))


def aggregate_orders_by_date(orders: List[Dict[str, Any]]) -> Dict[str, float]:
    """GMV per order date; orders without a parsable date are skipped."""
    daily: Dict[str, float] = defaultdict(float)
    for order in orders:
        day = order_date(order)
        if day:
            daily[day] += order_amount(order)
    return dict(daily)


def filter_orders_by_item(orders: List[Dict[str, Any]], item_code: str) -> List[Dict[str, Any]]:
    """Orders whose ItemNo or SellerItemCode equals the code."""
    return [
        o
        for o in orders
        if (o.get("ItemNo") or o.get("itemNo") or "") == item_code
        or (o.get("SellerItemCode") or o.get("sellerItemCode") or "") == item_code
    ]


def product_daily_sales(
    orders: List[Dict[str, Any]],
    item_code: str,
    date_start: str,
    date_stop: str,
) -> List[ProductSalesPoint]:
    """Per-day sales for one item, zero-filled over the whole range."""
    sales: Dict[str, float] = defaultdict(float)
    quantity: Dict[str, int] = defaultdict(int)
    for order in filter_orders_by_item(orders, item_code):
        day = order_date(order)
        if not day:
            continue
        sales[day] += order_amount(order)
        quantity[day] += order_quantity(order)

    return [
        ProductSalesPoint(date=day, sales=round(sales.get(day, 0)), quantity=quantity.get(day, 0))
        for day in iter_dates(date_start, date_stop)
    ]


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def to_marketplace_item(raw: Dict[str, Any]) -> MarketplaceItem | None:
    """Normalize one ItemsLookup row; rows without an item code are dropped."""
    code = _first(raw, "ItemCode", "itemCode", "GdNo", "gdNo")
    if code is None:
        return None
    price = _first(raw, "ItemPrice", "itemPrice", "Price", "price", "SellerPrice", "sellerPrice")
    qty = _first(raw, "ItemQty", "itemQty", "Qty", "qty", "StockQty", "stockQty")
    return MarketplaceItem(
        code=str(code),
        name=str(_first(raw, "ItemTitle", "itemTitle", "GdNm", "gdNm", "Title", "title") or ""),
        seller_code=str(_first(raw, "SellerCode", "sellerCode", "SellerGdNo", "sellerGdNo") or ""),
        price=_safe_float(price) if price is not None else None,
        quantity=_safe_int(qty, 0) if qty is not None else None,
        status=str(_first(raw, "ItemStatus", "itemStatus", "Status", "status") or ""),
    )


def to_marketplace_items(rows: List[Dict[str, Any]]) -> List[MarketplaceItem]:
    return [item for item in (to_marketplace_item(r) for r in rows) if item is not None]
