"""MallBoard — Product Registry Routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from mallboard.config import settings
from mallboard.connectors.gateway.client import GatewayClient, get_gateway_client
from mallboard.core.dates import resolve_range
from mallboard.database import get_session
from mallboard.models.dashboard_models import DateRangeRequest, SyncReport
from mallboard.services.sync_service import sync_product
from mallboard.store import products as product_store
from mallboard.store.products import ProductIn
from mallboard.core.logging import get_logger

logger = get_logger("api.products")

router = APIRouter(prefix="/products", tags=["Products"])


def _serialize(product) -> dict:
    data = product.model_dump(mode="json")
    data["mall_codes"] = {m.value: c for m, c in product.mall_codes().items()}
    return data


@router.get("")
async def list_products(session: Session = Depends(get_session)):
    products = product_store.list_products(session)
    return {
        "status": "success",
        "count": len(products),
        "products": [_serialize(p) for p in products],
    }


@router.post("", status_code=201)
async def create_product(data: ProductIn, session: Session = Depends(get_session)):
    product = product_store.create_product(session, data)
    return {"status": "success", "product": _serialize(product)}


@router.get("/{product_id}")
async def get_product(product_id: int, session: Session = Depends(get_session)):
    product = product_store.get_product(session, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"status": "success", "product": _serialize(product)}


@router.put("/{product_id}")
async def update_product(
    product_id: int, data: ProductIn, session: Session = Depends(get_session)
):
    product = product_store.update_product(session, product_id, data)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"status": "success", "product": _serialize(product)}


@router.delete("/{product_id}")
async def delete_product(product_id: int, session: Session = Depends(get_session)):
    if not product_store.delete_product(session, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return {"status": "success", "deleted": product_id}


@router.post("/{product_id}/sync", response_model=SyncReport)
async def sync_product_now(
    product_id: int,
    request: DateRangeRequest,
    session: Session = Depends(get_session),
    gateway: GatewayClient = Depends(get_gateway_client),
):
    """Fetch and persist this product's per-mall sales for the range.

    Malls that fail are listed under ``errors``; the others are still synced.
    """
    product = product_store.get_product(session, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    date_start, date_stop = resolve_range(
        request.start_date, request.end_date, settings.default_range_days
    )
    if date_start > date_stop:
        raise HTTPException(status_code=422, detail="start_date is after end_date")
    return await sync_product(gateway, product, date_start, date_stop)
