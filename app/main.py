"""AdPulse — FastAPI Application Entry Point.

CSV ingestion and analytics for Meta Ads and Shopify exports.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.database import init_db, test_connection, table_row_counts, db_url, is_sqlite, _mask_url
from app.scheduler.jobs import start_scheduler, stop_scheduler
from app.api.upload_routes import router as upload_router
from app.api.analytics_routes import router as analytics_router
from app.core.logging import get_logger

logger = get_logger("main")


IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 AdPulse starting up...")
    logger.info(f"🌍 Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    db_ok = test_connection()
    if db_ok:
        try:
            init_db()
        except Exception as e:
            logger.error(f"❌ Table creation failed: {e}")
    else:
        logger.error("❌ Database NOT connected, endpoints will fail")
    # Serverless workers do not live long enough to sweep
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("AdPulse shut down")


app = FastAPI(
    title="AdPulse",
    description="Upload Meta Ads and Shopify CSV exports, normalize them, and serve dashboard metrics.",
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

# Routers
app.include_router(upload_router)
app.include_router(analytics_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "adpulse",
        "version": "1.0.0",
    }


@app.get("/debug/db", tags=["System"])
async def debug_db():
    """Debug endpoint — database connectivity and row counts per table."""
    error = None
    tables = {}
    connected = test_connection()
    if connected:
        try:
            tables = table_row_counts()
        except Exception as e:
            error = str(e)

    backend = "sqlite" if is_sqlite else "postgresql"
    return {
        "connected": connected,
        "backend": backend,
        "url": _mask_url(db_url),
        "tables": tables,
        "environment": "serverless" if IS_SERVERLESS else "local",
        "error": error,
    }
