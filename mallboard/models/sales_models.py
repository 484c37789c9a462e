"""MallBoard — Sales Models.

Daily per-mall sales rows and per-SKU product sales rows.
"""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


class DailySalesRecord(SQLModel, table=True):
    """One day of revenue and ad spend across all channels.

    The date is NOT unique: repeated syncs or manual loads may leave several
    rows for the same day, and readers sum or filter them as they are.
    """

    __tablename__ = "sales_data"

    id: Optional[int] = Field(default=None, primary_key=True)
    date: str = Field(index=True, description="YYYY-MM-DD")
    amazon: int = Field(default=0, description="Amazon revenue")
    rakuten: int = Field(default=0, description="Rakuten revenue")
    qoo10: int = Field(default=0, description="Qoo10 revenue")
    amazon_ad: int = Field(default=0, description="Amazon in-mall ad spend")
    rakuten_ad: int = Field(default=0, description="Rakuten in-mall ad spend")
    qoo10_ad: int = Field(default=0, description="Qoo10 in-mall ad spend")
    x_ad: int = Field(default=0, description="X ad spend")
    tiktok_ad: int = Field(default=0, description="TikTok ad spend")
    source: str = Field(default="", index=True, description="Writer of this row")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ProductSalesRecord(SQLModel, table=True):
    """Sales of one marketplace item code on one day."""

    __tablename__ = "product_sales"

    id: Optional[int] = Field(default=None, primary_key=True)
    mall: str = Field(index=True, description="amazon | rakuten | qoo10")
    code: str = Field(index=True, description="Marketplace item code")
    date: str = Field(index=True, description="YYYY-MM-DD")
    sales: int = Field(default=0)
    quantity: int = Field(default=0)
    synced_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class BatchLog(SQLModel, table=True):
    """Outcome of one daily mall sync batch run."""

    __tablename__ = "batch_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    triggered_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: str = Field(description="completed | partial | failed")
    message: str = Field(default="")
    detail_json: str = Field(default="{}", description="Per-mall result as JSON")
