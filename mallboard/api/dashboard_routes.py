"""MallBoard — Dashboard API Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session

from mallboard.analyzer.dashboard import build_dashboard
from mallboard.analyzer.product_rollup import rollup_product_sales
from mallboard.config import settings
from mallboard.connectors.gateway.client import GatewayClient, get_gateway_client
from mallboard.core.context import RequestContext, get_request_context
from mallboard.core.dates import resolve_range, validate_date
from mallboard.database import get_session
from mallboard.models.dashboard_models import (
    DashboardOutput,
    DashboardRequest,
    ProductSalesRequest,
    ProductSalesSeries,
)
from mallboard.store import products as product_store
from mallboard.store.sales import list_daily_sales
from mallboard.core.logging import get_logger

logger = get_logger("api.dashboard")

router = APIRouter(tags=["Dashboard"])


class DashboardResponse(BaseModel):
    status: str = "success"
    dashboard: DashboardOutput


class ProductSalesResponse(BaseModel):
    status: str = "success"
    product_sales: ProductSalesSeries


@router.post("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    request: DashboardRequest,
    session: Session = Depends(get_session),
    context: RequestContext = Depends(get_request_context),
):
    """Chart series and KPI totals for the selected range and channels."""
    date_start, date_stop = resolve_range(
        request.start_date, request.end_date, settings.default_range_days
    )
    if date_start > date_stop:
        raise HTTPException(status_code=422, detail="start_date is after end_date")
    dashboard = build_dashboard(
        session,
        context,
        date_start,
        date_stop,
        malls=request.malls,
        mall_ads=request.mall_ads,
        external_ads=request.external_ads,
    )
    return DashboardResponse(dashboard=dashboard)


@router.post("/dashboard/product-sales", response_model=ProductSalesResponse)
async def get_product_sales(
    request: ProductSalesRequest,
    session: Session = Depends(get_session),
    gateway: GatewayClient = Depends(get_gateway_client),
):
    """Per-day sales of one product family summed across its mall codes."""
    if request.sku_ids:
        mappings = product_store.get_many(session, request.sku_ids)
    elif request.product_name:
        mappings = product_store.find_by_product_name(session, request.product_name)
    else:
        raise HTTPException(
            status_code=422, detail="Either product_name or sku_ids is required"
        )
    if not mappings:
        raise HTTPException(status_code=404, detail="No matching products")

    date_start, date_stop = resolve_range(
        request.start_date, request.end_date, settings.default_range_days
    )
    if date_start > date_stop:
        raise HTTPException(status_code=422, detail="start_date is after end_date")
    series = await rollup_product_sales(session, gateway, mappings, date_start, date_stop)
    return ProductSalesResponse(product_sales=series)


@router.get("/sales-data")
async def get_sales_data(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    session: Session = Depends(get_session),
):
    """Raw daily rows in the range (duplicates included)."""
    for value in (start_date, end_date):
        if value is not None and validate_date(value) is None:
            raise HTTPException(status_code=422, detail=f"Invalid date: {value}")
    date_start, date_stop = resolve_range(start_date, end_date, settings.default_range_days)
    if date_start > date_stop:
        raise HTTPException(status_code=422, detail="startDate is after endDate")
    rows = list_daily_sales(session, date_start, date_stop)
    return {
        "status": "success",
        "count": len(rows),
        "date_range": f"{date_start} → {date_stop}",
        "data": [r.model_dump(mode="json") for r in rows],
    }
