"""MallBoard — Sales Aggregator.

Turns daily sales rows and event flags into the dashboard chart series and
the KPI card totals. Pure functions over already-loaded rows; nothing here
touches the database.
"""

from typing import Dict, Iterable, List, Protocol, Sequence

from mallboard.core.malls import (
    AD_PLATFORMS,
    AD_PLATFORM_CHANNELS,
    MALLS,
    MALL_CHANNELS,
)
from mallboard.models.dashboard_models import (
    AdPlatformSelection,
    ChartRow,
    DashboardTotals,
    MallSelection,
)
from mallboard.core.logging import get_logger

logger = get_logger("analyzer.sales")


class SalesRow(Protocol):
    date: str
    amazon: int
    rakuten: int
    qoo10: int
    amazon_ad: int
    rakuten_ad: int
    qoo10_ad: int
    x_ad: int
    tiktok_ad: int


class FlagRow(Protocol):
    name: str
    date: str


def in_range(day: str, date_start: str, date_stop: str) -> bool:
    """Inclusive on both ends; ISO dates compare correctly as strings."""
    return date_start <= day <= date_stop


def filter_by_range(
    records: Iterable[SalesRow], date_start: str, date_stop: str
) -> List[SalesRow]:
    """Rows dated within ``[date_start, date_stop]``, input order kept."""
    return [r for r in records if in_range(r.date, date_start, date_stop)]


def _value(row: SalesRow, field: str) -> int:
    return int(getattr(row, field, 0) or 0)


def _chart_row(
    row: SalesRow,
    malls: MallSelection,
    mall_ads: MallSelection,
    external_ads: AdPlatformSelection,
) -> ChartRow:
    values: Dict[str, int] = {"total_ad": 0}
    for mall in MALLS:
        channel = MALL_CHANNELS[mall]
        values[channel.revenue_field] = (
            _value(row, channel.revenue_field) if malls.is_selected(mall.value) else 0
        )
        ad = _value(row, channel.ad_field) if mall_ads.is_selected(mall.value) else 0
        values[channel.ad_field] = ad
        values["total_ad"] += ad
    for platform in AD_PLATFORMS:
        channel = AD_PLATFORM_CHANNELS[platform]
        values[channel.ad_field] = (
            _value(row, channel.ad_field)
            if external_ads.is_selected(platform.value)
            else 0
        )
    return ChartRow(date=row.date, **values)


def build_chart_series(
    records: Iterable[SalesRow],
    flags: Iterable[FlagRow],
    date_start: str,
    date_stop: str,
    malls: MallSelection | None = None,
    mall_ads: MallSelection | None = None,
    external_ads: AdPlatformSelection | None = None,
) -> List[ChartRow]:
    """Merge sales rows and flags into one date-sorted chart series.

    - Rows outside the range are dropped; duplicate dates stay separate rows.
    - A flag dated in range on a day with no sales row gets a zero row so it
      can be drawn on the same axis. Flags outside the range are dropped.
    - Flag names are attached to the first row of their date.
    """
    malls = malls or MallSelection()
    mall_ads = mall_ads or MallSelection()
    external_ads = external_ads or AdPlatformSelection()

    series = [
        _chart_row(r, malls, mall_ads, external_ads)
        for r in filter_by_range(records, date_start, date_stop)
    ]

    flag_names: Dict[str, List[str]] = {}
    for flag in flags:
        if in_range(flag.date, date_start, date_stop):
            flag_names.setdefault(flag.date, []).append(flag.name)

    sales_dates = {row.date for row in series}
    for day in flag_names:
        if day not in sales_dates:
            series.append(ChartRow(date=day))

    # Stable sort keeps duplicate-date rows in their load order
    series.sort(key=lambda r: r.date)

    attached = set()
    for row in series:
        if row.date in flag_names and row.date not in attached:
            row.flags = list(flag_names[row.date])
            attached.add(row.date)

    logger.debug(
        f"Built chart series of {len(series)} rows ({len(flag_names)} flagged dates)"
    )
    return series


def calculate_total_sales(records: Sequence[SalesRow], malls: MallSelection) -> int:
    """Revenue summed over selected malls only."""
    total = 0
    for row in records:
        for mall in MALLS:
            if malls.is_selected(mall.value):
                total += _value(row, MALL_CHANNELS[mall].revenue_field)
    return total


def calculate_total_ad_cost(records: Sequence[SalesRow], mall_ads: MallSelection) -> int:
    """In-mall ad spend summed over selected malls only."""
    total = 0
    for row in records:
        for mall in MALLS:
            if mall_ads.is_selected(mall.value):
                total += _value(row, MALL_CHANNELS[mall].ad_field)
    return total


def calculate_total_external_ad_cost(
    records: Sequence[SalesRow], external_ads: AdPlatformSelection
) -> int:
    """External ad spend summed over selected platforms only."""
    total = 0
    for row in records:
        for platform in AD_PLATFORMS:
            if external_ads.is_selected(platform.value):
                total += _value(row, AD_PLATFORM_CHANNELS[platform].ad_field)
    return total


def compute_totals(
    records: Sequence[SalesRow],
    malls: MallSelection | None = None,
    mall_ads: MallSelection | None = None,
    external_ads: AdPlatformSelection | None = None,
) -> DashboardTotals:
    """KPI card totals for rows already filtered to the range."""
    return DashboardTotals(
        total_sales=calculate_total_sales(records, malls or MallSelection()),
        total_ad_cost=calculate_total_ad_cost(records, mall_ads or MallSelection()),
        total_external_ad_cost=calculate_total_external_ad_cost(
            records, external_ads or AdPlatformSelection()
        ),
    )
