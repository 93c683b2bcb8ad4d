"""
Cryptoscan Backend - FastAPI Application

Main entry point for the backend API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cryptoscan.api.v1 import router as api_v1_router
from cryptoscan.core.config import settings
from cryptoscan.core.logging import setup_logging
from cryptoscan.db.database import close_db, init_db
from cryptoscan.services.candles import CandleStore, get_candle_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging(settings.log_level)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    await init_db()

    yield

    # Shutdown
    logger.info("Shutting down...")
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Cryptoscan Market Analysis API

    ## Architecture
    - **Candle Store**: Daily OHLCV candles per pair (SQLite)
    - **Indicator Engine**: RSI, MACD, Bollinger, ATR, ADX, Ichimoku and more (pure Python/NumPy)
    - **Price Levels**: ATR-adaptive support/resistance and Fibonacci levels
    - **Scoring**: Short-term, long-term, risk-adjusted and enhanced scores
    - **Market Aggregation**: Breadth, sentiment, correlations and trend changes
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware - allow both frontend ports
cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.frontend_url not in cors_origins:
    cors_origins.append(settings.frontend_url)
# Add any additional origins from settings
if settings.allowed_origins:
    cors_origins.extend([o for o in settings.allowed_origins if o not in cors_origins])

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check(store: CandleStore = Depends(get_candle_store)):
    """Health check endpoint; degraded when the candle store is unreachable."""
    store_ok = await store.health_check()
    return {
        "status": "healthy" if store_ok else "degraded",
        "candle_store": store.name,
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Cryptoscan Backend API",
        "docs": "/docs",
        "health": "/health",
        "pairs": "/api/v1/crypto/pairs",
        "market_summary": "/api/v1/crypto/market/summary",
    }
