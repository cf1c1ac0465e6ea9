"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from inventory_ledger.api.exception_handlers import register_exception_handlers
from inventory_ledger.api.middleware import MetricsMiddleware, RequestIDMiddleware
from inventory_ledger.api.v1 import credits, customers, interest, orders, sales, stock, suppliers
from inventory_ledger.config import Settings, settings as default_settings
from inventory_ledger.infrastructure.database.session import Database
from inventory_ledger.infrastructure.observability.logging import setup_logging
from inventory_ledger.scheduler.interest_scheduler import InterestScheduler
from inventory_ledger.services.reporting import CreditReportingService
from inventory_ledger.utils.cache import TTLCache
from inventory_ledger.utils.date_utils import SystemClock

# Setup structured logging
setup_logging(default_settings.log_level, default_settings.service_name)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and run the interest scheduler for the app's lifetime"""
    app.state.database.create_tables()
    app.state.scheduler.start()
    logger.info(f"{app.state.settings.service_name} started")
    try:
        yield
    finally:
        app.state.scheduler.stop()
        app.state.database.dispose()


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    clock=None,
) -> FastAPI:
    """Create and configure FastAPI application"""
    settings = settings or default_settings
    database = database or Database.from_settings(settings)
    clock = clock or SystemClock()

    app = FastAPI(
        title="Inventory Ledger",
        description="Stock, sales and credit accounts with interest accrual",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    reporting = CreditReportingService(
        TTLCache(settings.report_cache_max_entries, settings.report_cache_ttl_seconds),
        clock=clock,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.clock = clock
    app.state.reporting = reporting
    app.state.scheduler = InterestScheduler(
        database,
        reporting,
        clock=clock,
        hour=settings.interest_scheduler_hour,
        minute=settings.interest_scheduler_minute,
        timezone_name=settings.interest_scheduler_timezone,
        interval_days=settings.interest_accrual_interval_days,
        enabled=settings.interest_scheduler_enabled,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(credits.router, prefix="/v1", tags=["credits"])
    app.include_router(interest.router, prefix="/v1", tags=["interest"])
    app.include_router(stock.router, prefix="/v1", tags=["stock"])
    app.include_router(customers.router, prefix="/v1", tags=["customers"])
    app.include_router(sales.router, prefix="/v1", tags=["sales"])
    app.include_router(suppliers.router, prefix="/v1", tags=["suppliers"])
    app.include_router(orders.router, prefix="/v1", tags=["orders"])

    return app


app = create_app()
