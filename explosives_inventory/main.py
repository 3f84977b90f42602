"""
Explosives Inventory Ledger — FastAPI Application.

This is the entry point for the application.
Logging is configured and all routers are registered here.
"""

import logging
import sys

from fastapi import FastAPI

from explosives_inventory.config import get_settings
from explosives_inventory.api.health import router as health_router
from explosives_inventory.api.magazines import router as magazines_router
from explosives_inventory.api.products import router as products_router
from explosives_inventory.api.stock import router as stock_router
from explosives_inventory.api.transactions import router as transactions_router
from explosives_inventory.api.reconciliations import (
    router as reconciliations_router,
)
from explosives_inventory.api.audit import router as audit_router

settings = get_settings()


def setup_logging(log_level: str | None = None) -> logging.Logger:
    """Attach a console handler to the application's root logger."""
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)

    logger = logging.getLogger("explosives_inventory")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(handler)
    return logger


setup_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Stock ledger for explosives magazines",
    debug=settings.DEBUG,
)

# Register routers
app.include_router(health_router)
app.include_router(magazines_router)
app.include_router(products_router)
app.include_router(stock_router)
app.include_router(transactions_router)
app.include_router(reconciliations_router)
app.include_router(audit_router)
