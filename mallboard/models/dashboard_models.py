"""MallBoard — Dashboard, Rollup & Sync Output Models."""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from mallboard.core.dates import validate_date


# ─────────────────────────────────────────────
# SELECTIONS — which channels count
# ─────────────────────────────────────────────


class MallSelection(BaseModel):
    """Per-mall toggle, used for both revenue and in-mall ad spend."""

    amazon: bool = True
    rakuten: bool = True
    qoo10: bool = True

    def is_selected(self, mall: str) -> bool:
        return bool(getattr(self, mall, False))


class AdPlatformSelection(BaseModel):
    """Per-platform toggle for external ad spend."""

    x: bool = True
    tiktok: bool = True

    def is_selected(self, platform: str) -> bool:
        return bool(getattr(self, platform, False))


# ─────────────────────────────────────────────
# CHART SERIES
# ─────────────────────────────────────────────


class ChartRow(BaseModel):
    """One point of the dashboard chart.

    Unselected channels carry 0 rather than being omitted so that the stacked
    bars keep a fixed order.
    """

    date: str
    amazon: int = 0
    rakuten: int = 0
    qoo10: int = 0
    amazon_ad: int = 0
    rakuten_ad: int = 0
    qoo10_ad: int = 0
    total_ad: int = 0
    x_ad: int = 0
    tiktok_ad: int = 0
    flags: List[str] = []


class DashboardTotals(BaseModel):
    """Scalar KPI card values."""

    total_sales: int = 0
    total_ad_cost: int = 0
    total_external_ad_cost: int = 0


class FlagOut(BaseModel):
    id: Optional[int] = None
    name: str
    date: str
    description: str = ""


class DashboardOutput(BaseModel):
    """Everything the dashboard screen needs for one date range."""

    date_range_start: str
    date_range_end: str
    currency: str = "JPY"
    data_mode: str = "live"
    series: List[ChartRow] = []
    totals: DashboardTotals = DashboardTotals()
    flags: List[FlagOut] = []


# ─────────────────────────────────────────────
# PRODUCT SALES
# ─────────────────────────────────────────────


class ProductSalesPoint(BaseModel):
    """Sales and units for one day."""

    date: str
    sales: int = 0
    quantity: int = 0


class ProductSalesSeries(BaseModel):
    """A product family's per-day sales summed across every mapped code."""

    product_name: str = ""
    date_range_start: str
    date_range_end: str
    series: List[ProductSalesPoint] = []
    total_sales: int = 0
    total_quantity: int = 0
    by_mall: Dict[str, int] = {}
    cached_malls: List[str] = []
    failed: Dict[str, str] = {}


class GatewayProductSales(BaseModel):
    """Wire shape of ``GET /{mall}/product-sales/{code}``."""

    success: bool
    mall: str
    code: str
    daily_sales: List[ProductSalesPoint] = Field(default=[], alias="dailySales")
    total_sales: int = Field(default=0, alias="totalSales")
    total_quantity: int = Field(default=0, alias="totalQuantity")
    message: str = ""

    model_config = {"populate_by_name": True}


class SaveProductSalesRequest(BaseModel):
    """Wire shape of ``POST /sync/save-product-sales``."""

    mall: str
    code: str
    daily_sales: List[ProductSalesPoint] = Field(default=[], alias="dailySales")

    model_config = {"populate_by_name": True}


class SaveProductSalesResponse(BaseModel):
    success: bool
    saved_count: int = Field(default=0, alias="savedCount")

    model_config = {"populate_by_name": True}


# ─────────────────────────────────────────────
# SYNC
# ─────────────────────────────────────────────


class SyncReport(BaseModel):
    """Result of syncing one product across its malls."""

    product_id: Optional[int] = None
    product_name: str = ""
    date_range_start: str
    date_range_end: str
    synced: Dict[str, int] = {}
    errors: Dict[str, str] = {}

    @property
    def total_synced(self) -> int:
        return sum(self.synced.values())


class MallSyncResult(BaseModel):
    """Result of one mall's daily sales sync into sales_data."""

    mall: str
    success: bool = True
    saved_dates: List[str] = []
    daily_sales: Dict[str, int] = {}
    order_count: int = 0
    message: str = ""


# ─────────────────────────────────────────────
# ITEM DISCOVERY — codes offered to the product registry
# ─────────────────────────────────────────────


class MarketplaceItem(BaseModel):
    """A sellable item as listed by a marketplace."""

    code: str
    name: str = ""
    seller_code: str = ""
    price: Optional[float] = None
    quantity: Optional[int] = None
    status: str = ""


# ─────────────────────────────────────────────
# REQUESTS
# ─────────────────────────────────────────────


class DateRangeRequest(BaseModel):
    start_date: Optional[str] = None
    """YYYY-MM-DD; defaults to the trailing window."""
    end_date: Optional[str] = None
    """YYYY-MM-DD; defaults to today."""

    @field_validator("start_date", "end_date")
    @classmethod
    def _check_date(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and validate_date(v) is None:
            raise ValueError("date must be YYYY-MM-DD")
        return v


class DashboardRequest(DateRangeRequest):
    """Request body for POST /dashboard."""

    malls: MallSelection = MallSelection()
    mall_ads: MallSelection = MallSelection()
    external_ads: AdPlatformSelection = AdPlatformSelection()

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "start_date": "2025-11-01",
                    "end_date": "2025-11-30",
                    "malls": {"amazon": True, "rakuten": True, "qoo10": False},
                }
            ]
        }
    }


class ProductSalesRequest(DateRangeRequest):
    """Request body for POST /dashboard/product-sales.

    Either a product name (every SKU registered under it) or an explicit list
    of mapping ids.
    """

    product_name: Optional[str] = None
    sku_ids: Optional[List[int]] = None
