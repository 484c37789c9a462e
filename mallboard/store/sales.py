"""MallBoard — Sales Store.

Reads and writes of ``sales_data`` and ``product_sales``.
"""

from datetime import datetime, timezone
from typing import Dict, List

from sqlmodel import Session, select

from mallboard.core.malls import Mall
from mallboard.models.dashboard_models import ProductSalesPoint
from mallboard.models.sales_models import DailySalesRecord, ProductSalesRecord
from mallboard.core.logging import get_logger

logger = get_logger("store.sales")


def list_daily_sales(session: Session, date_start: str, date_stop: str) -> List[DailySalesRecord]:
    """Daily rows with ``date_start <= date <= date_stop``, oldest first."""
    return list(
        session.exec(
            select(DailySalesRecord)
            .where(
                DailySalesRecord.date >= date_start,
                DailySalesRecord.date <= date_stop,
            )
            .order_by(DailySalesRecord.date, DailySalesRecord.id)  # type: ignore
        ).all()
    )


def upsert_mall_daily_sales(
    session: Session,
    mall: Mall,
    daily_amounts: Dict[str, float],
    source: str,
) -> List[str]:
    """Write one mall's revenue per day into the row owned by ``source``.

    Only the row written by the same source for that date is updated; rows
    from other writers are left alone. Returns the dates written.
    """
    now = datetime.now(timezone.utc)
    saved: List[str] = []
    for day, amount in sorted(daily_amounts.items()):
        existing = session.exec(
            select(DailySalesRecord).where(
                DailySalesRecord.date == day,
                DailySalesRecord.source == source,
            )
        ).first()
        if existing:
            setattr(existing, mall.value, round(amount))
            existing.updated_at = now
            session.add(existing)
        else:
            row = DailySalesRecord(date=day, source=source)
            setattr(row, mall.value, round(amount))
            session.add(row)
        saved.append(day)
    session.commit()
    logger.info(f"Saved {len(saved)} {mall.value} daily rows ({source})")
    return saved


def list_product_sales(
    session: Session,
    mall: Mall,
    code: str,
    date_start: str,
    date_stop: str,
) -> List[ProductSalesRecord]:
    """Previously synced rows for one item code in the range."""
    return list(
        session.exec(
            select(ProductSalesRecord)
            .where(
                ProductSalesRecord.mall == mall.value,
                ProductSalesRecord.code == code,
                ProductSalesRecord.date >= date_start,
                ProductSalesRecord.date <= date_stop,
            )
            .order_by(ProductSalesRecord.date)  # type: ignore
        ).all()
    )


def save_product_sales(
    session: Session,
    mall: Mall,
    code: str,
    points: List[ProductSalesPoint],
) -> int:
    """Upsert per-day rows for one item code keyed on (mall, code, date)."""
    now = datetime.now(timezone.utc)
    saved = 0
    for point in points:
        existing = session.exec(
            select(ProductSalesRecord).where(
                ProductSalesRecord.mall == mall.value,
                ProductSalesRecord.code == code,
                ProductSalesRecord.date == point.date,
            )
        ).first()
        if existing:
            existing.sales = point.sales
            existing.quantity = point.quantity
            existing.synced_at = now
            session.add(existing)
        else:
            session.add(
                ProductSalesRecord(
                    mall=mall.value,
                    code=code,
                    date=point.date,
                    sales=point.sales,
                    quantity=point.quantity,
                )
            )
        saved += 1
    session.commit()
    logger.info(f"Saved {saved} product sales rows for {mall.value}/{code}")
    return saved
