"""
=============================================================================
ShopLens - Product Catalog & Interaction Analytics API
=============================================================================
Features:
  - Product catalog CRUD with text search
  - Interaction tracking (search / view / click / time spent)
  - Dashboard reports: hourly trends, leaderboard, conversion funnel
  - AI product recommendations from recent interaction history
=============================================================================
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import settings
from .dependencies import init_resources, close_resources
from .exceptions import (
    ShopLensException,
    shoplens_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .limiter import limiter
from .logging_config import setup_logging
from .middleware import RequestTrackingMiddleware
from .routers import dashboard_router, interaction_router, product_router

VERSION = "1.0.0"

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="ShopLens API",
    description="Product catalog with interaction tracking and analytics dashboard",
    version=VERSION
)

app.state.limiter = limiter

# DEFAULT_RATE_LIMIT for routes without their own @limiter.limit
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestTrackingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ShopLensException, shoplens_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(dashboard_router.router)
app.include_router(interaction_router.router)
app.include_router(product_router.router)


@app.on_event("startup")
async def startup():
    await init_resources()
    logger.info("All connections initialized")


@app.on_event("shutdown")
async def shutdown():
    await close_resources()
    logger.info("All connections closed")


@app.get("/health")
@limiter.exempt
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("shoplens.main:app", host="0.0.0.0", port=8000)
