"""MallBoard — Dashboard Builder.

Loads the rows for one date range and runs the sales aggregator over them:
  load sales + flags → chart series → KPI totals → DashboardOutput
"""

from sqlmodel import Session

from mallboard.analyzer.demo_data import demo_flags, demo_sales
from mallboard.analyzer.sales_aggregator import build_chart_series, compute_totals
from mallboard.config import settings
from mallboard.core.context import RequestContext
from mallboard.models.dashboard_models import (
    AdPlatformSelection,
    DashboardOutput,
    FlagOut,
    MallSelection,
)
from mallboard.store.flags import list_flags_in_range
from mallboard.store.sales import list_daily_sales
from mallboard.core.logging import get_logger

logger = get_logger("analyzer.dashboard")


def build_dashboard(
    session: Session,
    context: RequestContext,
    date_start: str,
    date_stop: str,
    malls: MallSelection | None = None,
    mall_ads: MallSelection | None = None,
    external_ads: AdPlatformSelection | None = None,
) -> DashboardOutput:
    """Chart series, totals and flags for ``[date_start, date_stop]``."""
    if context.is_demo:
        records = demo_sales(date_start, date_stop)
        flags = demo_flags(date_start, date_stop)
    else:
        records = list_daily_sales(session, date_start, date_stop)
        flags = list_flags_in_range(session, date_start, date_stop)

    series = build_chart_series(
        records, flags, date_start, date_stop, malls, mall_ads, external_ads
    )
    totals = compute_totals(records, malls, mall_ads, external_ads)

    logger.info(
        f"Dashboard {date_start} → {date_stop} ({context.data_mode}): "
        f"{len(records)} rows, sales {totals.total_sales}",
        extra={"data_mode": context.data_mode},
    )
    return DashboardOutput(
        date_range_start=date_start,
        date_range_end=date_stop,
        currency=settings.currency,
        data_mode=context.data_mode,
        series=series,
        totals=totals,
        flags=[
            FlagOut(id=f.id, name=f.name, date=f.date, description=f.description)
            for f in flags
        ],
    )
