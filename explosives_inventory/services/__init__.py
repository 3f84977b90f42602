"""Business logic services."""

from explosives_inventory.services.audit_service import AuditService
from explosives_inventory.services.ledger_service import LedgerService
from explosives_inventory.services.magazine_service import MagazineService
from explosives_inventory.services.product_service import ProductService
from explosives_inventory.services.transaction_service import TransactionService
from explosives_inventory.services.reconciliation_service import (
    ReconciliationService,
)

__all__ = [
    "AuditService",
    "LedgerService",
    "MagazineService",
    "ProductService",
    "TransactionService",
    "ReconciliationService",
]
