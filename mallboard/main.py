"""MallBoard — FastAPI Application Entry Point.

Multi-mall sales and ad-spend dashboard backend.
"""

import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from mallboard.database import (
    backend_name,
    db_url,
    get_session,
    init_db,
    mask_url,
    table_counts,
    test_connection,
)
from mallboard.scheduler.jobs import start_scheduler, stop_scheduler
from mallboard.api.dashboard_routes import router as dashboard_router
from mallboard.api.product_routes import router as product_router
from mallboard.api.flag_routes import router as flag_router
from mallboard.api.settings_routes import router as settings_router
from mallboard.api.mall_routes import router as mall_router
from mallboard.core.logging import get_logger

logger = get_logger("main")

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 MallBoard starting up...")
    logger.info(f"🌍 Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    db_ok = test_connection()
    if db_ok:
        try:
            init_db()
        except Exception as e:
            logger.error(f"❌ Table creation failed: {e}")
    else:
        logger.error("❌ Database NOT connected — endpoints will fail")
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("MallBoard shut down")


app = FastAPI(
    title="MallBoard",
    description="Daily sales and ad spend across Amazon, Rakuten and Qoo10, with X and TikTok ad costs.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers; the mall router matches /{mall}/... so it goes last
app.include_router(dashboard_router)
app.include_router(product_router)
app.include_router(flag_router)
app.include_router(settings_router)
app.include_router(mall_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "mallboard",
        "version": "1.0.0",
    }


@app.get("/debug/db", tags=["System"])
async def debug_db(session: Session = Depends(get_session)):
    """Debug endpoint — database connectivity and row counts per table."""
    error = None
    tables = {}
    connected = test_connection()
    if connected:
        try:
            tables = table_counts(session)
        except SQLAlchemyError as e:
            error = str(e)

    return {
        "connected": connected,
        "backend": backend_name(db_url),
        "url": mask_url(db_url),
        "environment": "serverless" if IS_SERVERLESS else "local",
        "tables": tables,
        "error": error,
    }
