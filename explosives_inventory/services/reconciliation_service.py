"""
Reconciliation service — physical counts against the ledger.

A reconciliation moves through two states: created, then
resolved. Creating one freezes the ledger-derived count at that
moment; it writes nothing to the ledger. Resolving one with a
non-zero variance posts a corrective adjustment through the
TransactionService, so the ledger remains the only source of
stock.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from explosives_inventory.config import Settings, get_settings
from explosives_inventory.models.enums import AdjustmentDirection
from explosives_inventory.models.reconciliation import InventoryReconciliation
from explosives_inventory.schemas.reconciliation import (
    ReconciliationCreate,
    ReconciliationPreviewRequest,
)
from explosives_inventory.schemas.transaction import AdjustmentRequest
from explosives_inventory.services.audit_service import AuditService
from explosives_inventory.services.exceptions import (
    AlreadyResolved,
    DuplicateUnresolvedReconciliation,
    ReconciliationNotFound,
    ValidationError,
)
from explosives_inventory.services.ledger_service import LedgerService
from explosives_inventory.services.magazine_service import MagazineService
from explosives_inventory.services.product_service import ProductService
from explosives_inventory.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

_PERCENT = Decimal("0.01")


@dataclass(frozen=True)
class ReconciliationPreview:
    system_count: Decimal
    physical_count: Decimal
    variance: Decimal
    variance_percent: Decimal
    significant_variance: bool

    @property
    def requires_approval(self) -> bool:
        return self.significant_variance


@dataclass(frozen=True)
class ReconciliationSummary:
    total_reconciliations: int
    resolved_count: int
    unresolved_count: int
    variance_count: int
    shortage_count: int
    overage_count: int
    accuracy_rate: Decimal


class ReconciliationService:

    def __init__(
        self,
        db: Session,
        transaction_service: TransactionService | None = None,
        audit_service: AuditService | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.audit_service = audit_service or AuditService(db)
        self.transaction_service = transaction_service or TransactionService(
            db, audit_service=self.audit_service, settings=self.settings
        )

    @property
    def ledger_service(self) -> LedgerService:
        return self.transaction_service.ledger_service

    @property
    def magazine_service(self) -> MagazineService:
        return self.transaction_service.magazine_service

    @property
    def product_service(self) -> ProductService:
        return self.transaction_service.product_service

    def _find_unresolved(
        self, magazine_id: int, product_id: int
    ) -> InventoryReconciliation | None:
        return self.db.execute(
            select(InventoryReconciliation).where(
                InventoryReconciliation.magazine_id == magazine_id,
                InventoryReconciliation.product_id == product_id,
                InventoryReconciliation.resolved.is_(False),
            )
        ).scalar_one_or_none()

    def preview(
        self, request: ReconciliationPreviewRequest
    ) -> ReconciliationPreview:
        """
        Compute what a count would record, without writing anything.

        The variance percent is relative to the system count and is
        0 when the system count is not positive.
        """
        self.magazine_service.get_magazine(request.magazine_id)
        self.product_service.get_product(request.product_id)

        system_count = self.ledger_service.balance(
            request.magazine_id, request.product_id
        )
        variance = request.physical_count - system_count
        if system_count > 0:
            percent = (abs(variance) / system_count * 100).quantize(_PERCENT)
        else:
            percent = Decimal("0.00")

        significant = (
            abs(variance) > self.settings.SIGNIFICANT_VARIANCE_UNITS
            or percent > self.settings.SIGNIFICANT_VARIANCE_PERCENT
        )
        return ReconciliationPreview(
            system_count=system_count,
            physical_count=request.physical_count,
            variance=variance,
            variance_percent=percent,
            significant_variance=significant,
        )

    def create(
        self,
        request: ReconciliationCreate,
        user_id: str,
        require_variance_reason: bool = False,
    ) -> InventoryReconciliation:
        """
        Record a physical count.

        The magazine row is locked before the system count is read,
        so the snapshot cannot interleave with a stock movement.

        Raises:
            ValidationError: negative count, or a missing reason for a
                non-zero variance when one is required
            MagazineNotFound / ProductNotFound
            DuplicateUnresolvedReconciliation: the pair already has an
                open count
        """
        if request.physical_count < 0:
            raise ValidationError("physical_count must not be negative")
        if not user_id:
            raise ValidationError("entering user is required")

        self.magazine_service.lock_magazines([request.magazine_id])
        self.product_service.get_product(request.product_id)

        existing = self._find_unresolved(request.magazine_id, request.product_id)
        if existing:
            raise DuplicateUnresolvedReconciliation(existing.id)

        system_count = self.ledger_service.balance(
            request.magazine_id, request.product_id
        )
        variance = request.physical_count - system_count

        reason = (request.variance_reason or "").strip() or None
        if require_variance_reason and variance != 0 and not reason:
            raise ValidationError(
                "variance_reason is required when the count differs "
                "from the system count"
            )

        reconciliation = InventoryReconciliation(
            reconciliation_date=request.reconciliation_date or datetime.utcnow(),
            magazine_id=request.magazine_id,
            product_id=request.product_id,
            physical_count=request.physical_count,
            system_count_at_time=system_count,
            variance=variance,
            variance_reason=reason,
            entered_by_user_id=user_id,
            resolved=False,
        )
        self.db.add(reconciliation)
        try:
            self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent count for the same pair
            logger.warning(
                "Concurrent unresolved reconciliation for magazine %s product %s",
                request.magazine_id, request.product_id,
            )
            raise DuplicateUnresolvedReconciliation(None)

        self.audit_service.record(
            user_id, "reconciliation.create", "InventoryReconciliation",
            reconciliation.id,
            {
                "magazine_id": reconciliation.magazine_id,
                "product_id": reconciliation.product_id,
                "physical_count": reconciliation.physical_count,
                "system_count_at_time": system_count,
                "variance": variance,
            },
        )
        logger.info(
            "Reconciliation %s created: magazine %s product %s variance %s",
            reconciliation.id, reconciliation.magazine_id,
            reconciliation.product_id, variance,
        )
        return reconciliation

    def resolve(
        self, reconciliation_id: int, resolution_notes: str, user_id: str
    ) -> InventoryReconciliation:
        """
        Resolve an open count.

        A non-zero variance posts an ADJUST_INCREASE or
        ADJUST_DECREASE of abs(variance). If that adjustment is
        rejected the error propagates and the record stays open.
        """
        if not user_id:
            raise ValidationError("resolving user is required")

        reconciliation = self.db.execute(
            select(InventoryReconciliation)
            .where(InventoryReconciliation.id == reconciliation_id)
            .with_for_update()
        ).scalar_one_or_none()
        if not reconciliation:
            raise ReconciliationNotFound(reconciliation_id)
        if reconciliation.resolved:
            raise AlreadyResolved(reconciliation_id)

        notes = resolution_notes
        variance = Decimal(str(reconciliation.variance))
        if variance != 0:
            adjustment = self.transaction_service.adjust(
                AdjustmentRequest(
                    direction=(
                        AdjustmentDirection.INCREASE if variance > 0
                        else AdjustmentDirection.DECREASE
                    ),
                    magazine_id=reconciliation.magazine_id,
                    product_id=reconciliation.product_id,
                    quantity=abs(variance),
                    reference_number=f"REC-{reconciliation.id}-ADJ",
                    authorization_number=f"AUTH-{reconciliation.id:06d}",
                    notes=f"Adjustment for reconciliation #{reconciliation.id}",
                ),
                user_id,
                system_generated=True,
            )
            reconciliation.adjustment_transaction_id = adjustment.id
            notes = f"{resolution_notes} (adjustment transaction #{adjustment.id})"

        reconciliation.resolved = True
        reconciliation.resolved_by_user_id = user_id
        reconciliation.resolution_notes = notes
        reconciliation.resolved_at = datetime.utcnow()
        self.db.flush()

        self.audit_service.record(
            user_id, "reconciliation.resolve", "InventoryReconciliation",
            reconciliation.id,
            {
                "variance": variance,
                "adjustment_transaction_id": reconciliation.adjustment_transaction_id,
            },
        )
        logger.info(
            "Reconciliation %s resolved by %s (adjustment=%s)",
            reconciliation.id, user_id, reconciliation.adjustment_transaction_id,
        )
        return reconciliation

    def get_reconciliation(self, reconciliation_id: int) -> InventoryReconciliation:
        reconciliation = self.db.get(InventoryReconciliation, reconciliation_id)
        if not reconciliation:
            raise ReconciliationNotFound(reconciliation_id)
        return reconciliation

    def list_reconciliations(
        self,
        magazine_id: int | None = None,
        product_id: int | None = None,
        unresolved_only: bool = False,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[InventoryReconciliation]:
        """Reconciliations matching every given filter, newest first."""
        query = select(InventoryReconciliation)
        if magazine_id is not None:
            query = query.where(InventoryReconciliation.magazine_id == magazine_id)
        if product_id is not None:
            query = query.where(InventoryReconciliation.product_id == product_id)
        if unresolved_only:
            query = query.where(InventoryReconciliation.resolved.is_(False))
        if start_date is not None:
            query = query.where(
                InventoryReconciliation.reconciliation_date >= start_date
            )
        if end_date is not None:
            query = query.where(
                InventoryReconciliation.reconciliation_date <= end_date
            )
        query = query.order_by(
            InventoryReconciliation.reconciliation_date.desc(),
            InventoryReconciliation.id.desc(),
        )
        return list(self.db.execute(query).scalars().all())

    def summarize(
        self,
        magazine_id: int | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> tuple[list[InventoryReconciliation], ReconciliationSummary]:
        """The matching records and their accuracy statistics."""
        records = self.list_reconciliations(
            magazine_id=magazine_id, start_date=start_date, end_date=end_date
        )
        total = len(records)
        resolved = sum(1 for r in records if r.resolved)
        shortages = sum(1 for r in records if r.variance < 0)
        overages = sum(1 for r in records if r.variance > 0)
        variant = shortages + overages

        if total:
            accuracy = (
                Decimal(total - variant) / Decimal(total) * 100
            ).quantize(_PERCENT)
        else:
            accuracy = Decimal("0")

        return records, ReconciliationSummary(
            total_reconciliations=total,
            resolved_count=resolved,
            unresolved_count=total - resolved,
            variance_count=variant,
            shortage_count=shortages,
            overage_count=overages,
            accuracy_rate=accuracy,
        )
