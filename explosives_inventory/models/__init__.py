"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from explosives_inventory.models.base import Base
from explosives_inventory.models.enums import (
    TransactionType,
    MagazineSide,
    CompatibilityGroup,
    ExplosiveType,
    UnitOfMeasure,
    AdjustmentDirection,
)
from explosives_inventory.models.audit_log import AuditLog
from explosives_inventory.models.magazine import Magazine
from explosives_inventory.models.product import Product
from explosives_inventory.models.inventory_transaction import (
    InventoryTransaction,
    StockEffect,
    STOCK_EFFECTS,
)
from explosives_inventory.models.reconciliation import InventoryReconciliation

__all__ = [
    "Base",
    "TransactionType",
    "MagazineSide",
    "CompatibilityGroup",
    "ExplosiveType",
    "UnitOfMeasure",
    "AdjustmentDirection",
    "AuditLog",
    "Magazine",
    "Product",
    "InventoryTransaction",
    "StockEffect",
    "STOCK_EFFECTS",
    "InventoryReconciliation",
]
