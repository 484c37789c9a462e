"""MallBoard — Scheduler Jobs.

APScheduler daily job that syncs every mall's sales at the configured hour.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from mallboard.config import settings
from mallboard.connectors.gateway.client import GatewayClient
from mallboard.database import get_session
from mallboard.services.mall_sales_sync import run_daily_batch
from mallboard.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def daily_batch_job():
    """Sync the trailing window of mall sales into sales_data."""
    logger.info("Scheduled daily batch starting...")
    gateway = GatewayClient()
    try:
        session = next(get_session())
        log = await run_daily_batch(session, gateway)
        logger.info(f"Scheduled batch {log.status}: {log.message}")
    except Exception as e:
        logger.error(f"Scheduled batch failed: {e}")
    finally:
        await gateway.close()


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        daily_batch_job,
        "cron",
        hour=settings.batch_hour,
        minute=0,
        id="daily_batch",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Daily batch at {settings.batch_hour}:00")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
