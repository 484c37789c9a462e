"""MallBoard — Daily Mall Sales Sync.

Writes each mall's daily revenue into ``sales_data``. Qoo10 and Rakuten are
read here from their order APIs; Amazon is delegated to the gateway. The
daily batch runs all three, isolated from each other, and leaves a
``BatchLog`` behind.
"""

import json
from datetime import date, timedelta
from typing import List, Optional

import httpx
from sqlmodel import Session

from mallboard.config import settings
from mallboard.connectors.gateway.client import GatewayClient, GatewayError
from mallboard.core.dates import default_date_range
from mallboard.core.malls import SOURCE_QOO10_API, SOURCE_RAKUTEN_API, Mall
from mallboard.models.dashboard_models import MallSyncResult
from mallboard.models.sales_models import BatchLog
from mallboard.services.marketplace_service import fetch_daily_sales
from mallboard.store.credentials import MissingCredentialsError, load_credentials
from mallboard.store.sales import upsert_mall_daily_sales
from mallboard.core.logging import get_logger

logger = get_logger("services.mall_sync")

_SOURCES = {Mall.QOO10: SOURCE_QOO10_API, Mall.RAKUTEN: SOURCE_RAKUTEN_API}


async def sync_mall_daily_sales(
    session: Session,
    mall: Mall,
    date_start: str,
    date_stop: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MallSyncResult:
    """Fetch one mall's orders and upsert its daily revenue rows."""
    credentials = load_credentials(session)
    daily, order_count = await fetch_daily_sales(
        credentials, mall, date_start, date_stop, transport=transport
    )
    if not daily:
        return MallSyncResult(
            mall=mall.value, order_count=order_count, message="No orders in range"
        )
    saved = upsert_mall_daily_sales(session, mall, daily, _SOURCES[mall])
    return MallSyncResult(
        mall=mall.value,
        saved_dates=saved,
        daily_sales={day: round(amount) for day, amount in sorted(daily.items())},
        order_count=order_count,
        message=f"Synced {len(saved)} days of {mall.value} sales",
    )


async def run_daily_batch(
    session: Session,
    gateway: GatewayClient,
    today: Optional[date] = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BatchLog:
    """Sync every mall for the trailing window and record the outcome."""
    today = today or date.today()
    # Through yesterday: today's orders are still coming in
    date_start, date_stop = default_date_range(
        settings.batch_window_days, today - timedelta(days=1)
    )
    logger.info(f"Daily batch starting: {date_start} → {date_stop}")

    results: List[MallSyncResult] = []
    for mall in (Mall.QOO10, Mall.RAKUTEN):
        try:
            results.append(
                await sync_mall_daily_sales(
                    session, mall, date_start, date_stop, transport=transport
                )
            )
        except MissingCredentialsError as e:
            logger.info(f"Skipping {mall.value}: {e}")
            results.append(MallSyncResult(mall=mall.value, success=False, message=str(e)))
        except Exception as e:
            logger.error(f"{mall.value} daily sync failed: {e}", extra={"mall": mall.value})
            session.rollback()
            results.append(MallSyncResult(mall=mall.value, success=False, message=str(e)))

    try:
        amazon = await gateway.sync_amazon_sales(date_start, date_stop)
        results.append(
            MallSyncResult(
                mall=Mall.AMAZON.value,
                success=bool(amazon.get("success", True)),
                message=str(amazon.get("message", "")),
            )
        )
    except GatewayError as e:
        logger.error(f"amazon daily sync failed: {e}", extra={"mall": "amazon"})
        results.append(MallSyncResult(mall=Mall.AMAZON.value, success=False, message=str(e)))

    succeeded = sum(1 for r in results if r.success)
    if succeeded == len(results):
        status = "completed"
    elif succeeded:
        status = "partial"
    else:
        status = "failed"

    log = BatchLog(
        status=status,
        message=f"{succeeded}/{len(results)} malls synced for {date_start} → {date_stop}",
        detail_json=json.dumps([r.model_dump() for r in results], ensure_ascii=False),
    )
    session.add(log)
    session.commit()
    session.refresh(log)
    logger.info(f"Daily batch {status}: {log.message}", extra={"batch_id": log.id})
    return log
