"""MallBoard — Marketplace Gateway Routes.

Per-item sales straight from the marketplace APIs, the product-sales save
endpoint, the daily mall sales sync (on demand or as the full batch), and
credential checks and item discovery for the product registry.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from mallboard.config import settings
from mallboard.connectors.gateway.client import GatewayClient, get_gateway_client
from mallboard.connectors.qoo10.client import Qoo10APIError
from mallboard.connectors.rakuten.client import RakutenAPIError
from mallboard.core.dates import default_date_range, resolve_range, validate_date
from mallboard.core.malls import Mall, get_mall
from mallboard.database import get_session
from mallboard.models.dashboard_models import (
    GatewayProductSales,
    MallSyncResult,
    SaveProductSalesRequest,
    SaveProductSalesResponse,
)
from mallboard.services import mall_sales_sync, marketplace_service
from mallboard.services.marketplace_service import UnsupportedMallError
from mallboard.store.credentials import CorruptDocumentError, MissingCredentialsError, load_credentials
from mallboard.store.discovered_items import load_discovered_items, save_discovered_items
from mallboard.store.sales import save_product_sales
from mallboard.core.logging import get_logger

logger = get_logger("api.malls")

router = APIRouter(tags=["Malls"])


def _require_mall(name: str) -> Mall:
    mall = get_mall(name)
    if mall is None:
        raise HTTPException(status_code=404, detail=f"Unknown mall: {name}")
    return mall


def _date_range(start_date: Optional[str], end_date: Optional[str]) -> tuple[str, str]:
    for value in (start_date, end_date):
        if value is not None and validate_date(value) is None:
            raise HTTPException(status_code=422, detail=f"Invalid date: {value}")
    date_start, date_stop = resolve_range(start_date, end_date, settings.default_range_days)
    if date_start > date_stop:
        raise HTTPException(status_code=422, detail="startDate is after endDate")
    return date_start, date_stop


def _marketplace_error(e: Exception) -> HTTPException:
    """Map a marketplace-side failure onto an HTTP error."""
    if isinstance(e, UnsupportedMallError):
        return HTTPException(status_code=501, detail=str(e))
    if isinstance(e, MissingCredentialsError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, CorruptDocumentError):
        return HTTPException(status_code=500, detail=str(e))
    return HTTPException(status_code=502, detail=f"Marketplace API error: {e}")


@router.get("/{mall_name}/product-sales/{code}")
async def get_product_sales(
    mall_name: str,
    code: str,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    session: Session = Depends(get_session),
):
    """Per-day sales of one item code, read live from the marketplace."""
    mall = _require_mall(mall_name)
    date_start, date_stop = _date_range(start_date, end_date)
    try:
        credentials = load_credentials(session)
        points = await marketplace_service.fetch_product_sales(
            credentials, mall, code, date_start, date_stop
        )
    except (
        UnsupportedMallError,
        MissingCredentialsError,
        CorruptDocumentError,
        Qoo10APIError,
        RakutenAPIError,
    ) as e:
        logger.error(f"{mall.value}/{code} product-sales failed: {e}", extra={"mall": mall.value})
        raise _marketplace_error(e)

    payload = GatewayProductSales(
        success=True,
        mall=mall.value,
        code=code,
        daily_sales=points,
        total_sales=sum(p.sales for p in points),
        total_quantity=sum(p.quantity for p in points),
    )
    return payload.model_dump(by_alias=True)


@router.post("/sync/save-product-sales")
async def post_save_product_sales(
    request: SaveProductSalesRequest, session: Session = Depends(get_session)
):
    """Upsert fetched per-day rows for one item code."""
    mall = _require_mall(request.mall)
    saved = save_product_sales(session, mall, request.code, request.daily_sales)
    logger.info(
        f"Saved {saved} product-sales rows for {mall.value}/{request.code}",
        extra={"mall": mall.value, "entity_id": request.code},
    )
    return SaveProductSalesResponse(success=True, saved_count=saved).model_dump(by_alias=True)


async def _sync_mall(mall: Mall, start_date, end_date, session: Session) -> MallSyncResult:
    date_start, date_stop = _date_range(start_date, end_date)
    try:
        return await mall_sales_sync.sync_mall_daily_sales(session, mall, date_start, date_stop)
    except (
        MissingCredentialsError,
        CorruptDocumentError,
        Qoo10APIError,
        RakutenAPIError,
    ) as e:
        logger.error(f"{mall.value} sales sync failed: {e}", extra={"mall": mall.value})
        raise _marketplace_error(e)


@router.post("/qoo10/sync-sales", response_model=MallSyncResult)
async def sync_qoo10_sales(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    session: Session = Depends(get_session),
):
    """Pull Qoo10 orders and write daily revenue into sales_data."""
    return await _sync_mall(Mall.QOO10, start_date, end_date, session)


@router.post("/rakuten/sync-sales", response_model=MallSyncResult)
async def sync_rakuten_sales(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    session: Session = Depends(get_session),
):
    """Pull Rakuten orders and write daily revenue into sales_data."""
    return await _sync_mall(Mall.RAKUTEN, start_date, end_date, session)


@router.get("/rakuten/daily-sales")
async def get_rakuten_daily_sales(
    days: int = Query(30, ge=1, le=365),
    session: Session = Depends(get_session),
):
    """Sync the trailing ``days`` of Rakuten revenue and return it per day."""
    date_start, date_stop = default_date_range(days)
    result = await _sync_mall(Mall.RAKUTEN, date_start, date_stop, session)
    return {
        "success": result.success,
        "dailySales": result.daily_sales,
        "totalOrders": result.order_count,
        "totalSales": sum(result.daily_sales.values()),
        "message": result.message,
    }


# ── Credential check & item discovery ──


@router.get("/qoo10/test-connection")
async def qoo10_connection_check(session: Session = Depends(get_session)):
    """Check the stored Qoo10 key against the order API."""
    try:
        credentials = load_credentials(session)
        check = await marketplace_service.check_qoo10_connection(credentials)
    except (MissingCredentialsError, CorruptDocumentError, Qoo10APIError) as e:
        logger.error(f"Qoo10 connection check failed: {e}", extra={"mall": "qoo10"})
        raise _marketplace_error(e)
    message = "Qoo10 API connection OK" if check["ok"] else (
        f"Qoo10 API connection failed: {check['result_msg'] or 'Unknown error'}"
    )
    return {
        "success": check["ok"],
        "message": message,
        "resultCode": check["result_code"],
        "resultMsg": check["result_msg"],
    }


@router.get("/qoo10/products")
async def list_qoo10_products(
    page: int = Query(1, ge=1),
    status: str = Query("S2"),
    session: Session = Depends(get_session),
):
    """One page of Qoo10 listings, for picking item codes."""
    try:
        credentials = load_credentials(session)
        items = await marketplace_service.list_qoo10_items(credentials, page, status)
    except (MissingCredentialsError, CorruptDocumentError, Qoo10APIError) as e:
        logger.error(f"Qoo10 item listing failed: {e}", extra={"mall": "qoo10"})
        raise _marketplace_error(e)
    return {
        "success": True,
        "page": page,
        "status": status,
        "count": len(items),
        "products": [i.model_dump() for i in items],
    }


@router.get("/qoo10/product/{item_code}")
async def get_qoo10_product(item_code: str, session: Session = Depends(get_session)):
    try:
        credentials = load_credentials(session)
        detail = await marketplace_service.get_qoo10_item(credentials, item_code)
    except (MissingCredentialsError, CorruptDocumentError, Qoo10APIError) as e:
        logger.error(f"Qoo10 item {item_code} lookup failed: {e}", extra={"mall": "qoo10"})
        raise _marketplace_error(e)
    return {"success": True, "product": detail}


@router.post("/rakuten/extract-products-from-orders")
async def extract_rakuten_products(
    days: int = Query(30, ge=1, le=365),
    session: Session = Depends(get_session),
):
    """Collect item codes from recent Rakuten orders and keep the list."""
    date_start, date_stop = default_date_range(days)
    try:
        credentials = load_credentials(session)
        items, order_count = await marketplace_service.extract_rakuten_items(
            credentials, date_start, date_stop
        )
    except (MissingCredentialsError, CorruptDocumentError, RakutenAPIError) as e:
        logger.error(f"Rakuten item extraction failed: {e}", extra={"mall": "rakuten"})
        raise _marketplace_error(e)
    save_discovered_items(session, Mall.RAKUTEN, items, source="orders")
    return {
        "success": True,
        "count": len(items),
        "orderCount": order_count,
        "products": [i.model_dump() for i in items],
    }


@router.get("/rakuten/saved-products")
async def get_saved_rakuten_products(session: Session = Depends(get_session)):
    try:
        saved = load_discovered_items(session, Mall.RAKUTEN)
    except CorruptDocumentError as e:
        raise _marketplace_error(e)
    return {
        "success": True,
        "count": len(saved.items),
        "products": [i.model_dump() for i in saved.items],
        "updatedAt": saved.updated_at.isoformat() if saved.updated_at else None,
    }


@router.post("/trigger-batch")
async def trigger_batch(
    session: Session = Depends(get_session),
    gateway: GatewayClient = Depends(get_gateway_client),
):
    """Run the daily mall sales batch now."""
    log = await mall_sales_sync.run_daily_batch(session, gateway)
    return {"status": log.status, "batch": log.model_dump(mode="json")}
