"""MallBoard — Product Rollup.

Sums per-item sales across every marketplace code that maps to one logical
product. Per mall and code, previously synced rows in the store are used
first; with none stored, the gateway is asked directly. A mall whose fetch
fails contributes nothing and is reported in ``failed``.
"""

from collections import defaultdict
from typing import Dict, Iterable, List

from sqlmodel import Session

from mallboard.connectors.gateway.client import GatewayClient, GatewayError
from mallboard.models.catalog_models import ProductSkuMapping
from mallboard.models.dashboard_models import ProductSalesPoint, ProductSalesSeries
from mallboard.store.sales import list_product_sales
from mallboard.core.logging import get_logger

logger = get_logger("analyzer.rollup")


def merge_product_sales(
    point_sets: Iterable[Iterable[ProductSalesPoint]],
) -> List[ProductSalesPoint]:
    """Per-date sum of sales and quantity across sets, sorted by date."""
    sales: Dict[str, int] = defaultdict(int)
    quantity: Dict[str, int] = defaultdict(int)
    for points in point_sets:
        for p in points:
            sales[p.date] += p.sales
            quantity[p.date] += p.quantity
    return [
        ProductSalesPoint(date=day, sales=sales[day], quantity=quantity[day])
        for day in sorted(sales)
    ]


async def rollup_product_sales(
    session: Session,
    gateway: GatewayClient,
    mappings: List[ProductSkuMapping],
    date_start: str,
    date_stop: str,
) -> ProductSalesSeries:
    """One series for the product family described by ``mappings``."""
    names = sorted({m.product_name for m in mappings})
    result = ProductSalesSeries(
        product_name=", ".join(names),
        date_range_start=date_start,
        date_range_end=date_stop,
    )

    collected: List[List[ProductSalesPoint]] = []
    by_mall: Dict[str, int] = defaultdict(int)
    cached_malls = set()

    for mapping in mappings:
        for mall, code in mapping.mall_codes().items():
            cached = list_product_sales(session, mall, code, date_start, date_stop)
            if cached:
                points = [
                    ProductSalesPoint(date=r.date, sales=r.sales, quantity=r.quantity)
                    for r in cached
                ]
                cached_malls.add(mall.value)
            else:
                try:
                    points = await gateway.fetch_product_sales(
                        mall, code, date_start, date_stop
                    )
                except GatewayError as e:
                    logger.warning(
                        f"{mall.value}/{code} fetch failed, counting as zero: {e}",
                        extra={"mall": mall.value, "entity_id": code},
                    )
                    result.failed[f"{mall.value}:{code}"] = str(e)
                    continue
            # Remote rows may cover more than asked for
            points = [p for p in points if date_start <= p.date <= date_stop]
            collected.append(points)
            by_mall[mall.value] += sum(p.sales for p in points)

    result.series = merge_product_sales(collected)
    result.total_sales = sum(p.sales for p in result.series)
    result.total_quantity = sum(p.quantity for p in result.series)
    result.by_mall = dict(by_mall)
    result.cached_malls = sorted(cached_malls)

    logger.info(
        f"Rolled up {len(mappings)} mapping(s) '{result.product_name}': "
        f"{len(result.series)} days, total {result.total_sales}"
    )
    return result
