"""MallBoard — Product Sales Sync.

"Sync now" for one registered product: for each mall code on it, fetch the
item's per-day sales through the gateway and ask the gateway to persist them.
Malls are handled one after another; a failing mall is recorded and the rest
still run. Nothing is retried.
"""

from mallboard.connectors.gateway.client import GatewayClient, GatewayError
from mallboard.models.catalog_models import ProductSkuMapping
from mallboard.models.dashboard_models import SyncReport
from mallboard.core.logging import get_logger

logger = get_logger("services.sync")


async def sync_product(
    gateway: GatewayClient,
    product: ProductSkuMapping,
    date_start: str,
    date_stop: str,
) -> SyncReport:
    """Sync every mall code of one product for the range."""
    report = SyncReport(
        product_id=product.id,
        product_name=product.product_name,
        date_range_start=date_start,
        date_range_end=date_stop,
    )

    codes = product.mall_codes()
    if not codes:
        logger.info(f"Product {product.id} has no mall codes; nothing to sync")
        return report

    for mall, code in codes.items():
        try:
            points = await gateway.fetch_product_sales(mall, code, date_start, date_stop)
            saved = await gateway.save_product_sales(mall, code, points)
            report.synced[mall.value] = report.synced.get(mall.value, 0) + saved
        except GatewayError as e:
            logger.error(
                f"Sync failed for {mall.value}/{code}: {e}",
                extra={"mall": mall.value, "entity_id": code, "status_code": e.status_code},
            )
            report.errors[mall.value] = str(e)

    logger.info(
        f"Synced product {product.id} ({product.product_name}): "
        f"{report.total_synced} rows, {len(report.errors)} mall error(s)"
    )
    return report
