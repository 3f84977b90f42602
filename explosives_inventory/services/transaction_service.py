"""
Transaction service — the only way stock moves.

Each operation:
1. Validates the request (quantity, reference and authorization numbers)
2. Locks the magazine rows involved
3. Validates business rules (available stock, capacity, compatibility)
4. Appends the ledger entries through LedgerService
5. Queues an audit event

Every rejection happens before anything is written. The
caller controls the commit, and the row locks taken in step 2
are held until it does.
"""

import logging
import re
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from explosives_inventory.config import Settings, get_settings
from explosives_inventory.models.enums import AdjustmentDirection, TransactionType
from explosives_inventory.models.inventory_transaction import InventoryTransaction
from explosives_inventory.models.magazine import Magazine
from explosives_inventory.models.product import Product
from explosives_inventory.schemas.transaction import (
    AdjustmentRequest,
    DestructionRequest,
    IssueRequest,
    LedgerEntryCreate,
    MovementBase,
    ReceiptRequest,
    TransferRequest,
)
from explosives_inventory.services.audit_service import AuditService
from explosives_inventory.services.exceptions import (
    CompatibilityConflict,
    InsufficientStock,
    InvalidTransfer,
    ValidationError,
)
from explosives_inventory.services.ledger_service import LedgerService
from explosives_inventory.services.magazine_service import MagazineService
from explosives_inventory.services.product_service import ProductService

logger = logging.getLogger(__name__)


class TransactionService:

    def __init__(
        self,
        db: Session,
        ledger_service: LedgerService | None = None,
        magazine_service: MagazineService | None = None,
        product_service: ProductService | None = None,
        audit_service: AuditService | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.ledger_service = ledger_service or LedgerService(db)
        self.audit_service = audit_service or AuditService(db)
        self.magazine_service = magazine_service or MagazineService(
            db, self.ledger_service, self.audit_service
        )
        self.product_service = product_service or ProductService(
            db, self.ledger_service, self.audit_service
        )
        self._authorization_pattern = re.compile(
            self.settings.AUTHORIZATION_NUMBER_PATTERN
        )

    # --- Validation ---

    def _validate_request(
        self,
        request: MovementBase,
        user_id: str,
        system_generated: bool = False,
    ) -> None:
        """
        Rules shared by all seven transaction kinds.

        System-generated authorization numbers skip the format check
        applied to user input.
        """
        errors = []
        if request.quantity <= 0:
            errors.append("quantity must be positive")
        if not request.reference_number.strip():
            errors.append("reference_number is required")
        authorization = request.authorization_number.strip()
        if not authorization:
            errors.append("authorization_number is required")
        elif (
            not system_generated
            and not self._authorization_pattern.match(authorization)
        ):
            errors.append(
                f"authorization_number '{authorization}' does not match "
                f"the required format {self.settings.AUTHORIZATION_NUMBER_PATTERN}"
            )
        if not user_id:
            errors.append("entering user is required")
        if errors:
            raise ValidationError(errors)

    def _require_stock(
        self, magazine: Magazine, product: Product, quantity: Decimal
    ) -> Decimal:
        """Raise InsufficientStock unless the magazine holds `quantity`."""
        available = self.ledger_service.balance(magazine.id, product.id)
        if available < quantity:
            logger.warning(
                "Insufficient stock of %s in %s: available=%s required=%s",
                product.un_number, magazine.code, available, quantity,
            )
            raise InsufficientStock(
                available=available,
                required=quantity,
                product_name=product.name,
                magazine_code=magazine.code,
            )
        return available

    def _require_room(
        self, magazine: Magazine, product: Product, quantity: Decimal
    ) -> None:
        """
        Preconditions for any stock increase: both records active,
        capacity available, and no compatibility conflict.
        """
        errors = []
        if not magazine.is_active:
            errors.append(f"Magazine {magazine.code} is archived")
        if not product.is_active:
            errors.append(f"Product {product.un_number} is archived")
        if errors:
            raise ValidationError(errors)

        self.magazine_service.validate_capacity(magazine.id, product.id, quantity)

        compatibility = self.product_service.validate_compatibility(
            product.id, magazine.id
        )
        if not compatibility.compatible:
            logger.warning(
                "Compatibility conflict storing %s in %s: %s",
                product.un_number, magazine.code, compatibility.reason,
            )
            raise CompatibilityConflict(
                product.compatibility_group.value, compatibility.conflicts
            )

    def _entry(
        self,
        request: MovementBase,
        transaction_type: TransactionType,
        user_id: str,
        magazine_from_id: int | None = None,
        magazine_to_id: int | None = None,
        transfer_group_id: uuid.UUID | None = None,
    ) -> LedgerEntryCreate:
        return LedgerEntryCreate(
            transaction_type=transaction_type,
            magazine_from_id=magazine_from_id,
            magazine_to_id=magazine_to_id,
            product_id=request.product_id,
            quantity=request.quantity,
            reference_number=request.reference_number.strip(),
            authorization_number=request.authorization_number.strip(),
            notes=request.notes,
            entered_by_user_id=user_id,
            transaction_date=request.transaction_date or datetime.utcnow(),
            attachments=request.attachments,
            transfer_group_id=transfer_group_id,
        )

    def _record(self, entry: InventoryTransaction, user_id: str) -> None:
        self.audit_service.record(
            user_id,
            f"transaction.{entry.transaction_type.value.lower()}",
            "InventoryTransaction",
            entry.id,
            {
                "product_id": entry.product_id,
                "magazine_from_id": entry.magazine_from_id,
                "magazine_to_id": entry.magazine_to_id,
                "quantity": entry.quantity,
                "reference_number": entry.reference_number,
            },
        )
        logger.info(
            "Recorded %s #%s: %s x product %s (from=%s, to=%s) by %s",
            entry.transaction_type.value, entry.id, entry.quantity,
            entry.product_id, entry.magazine_from_id, entry.magazine_to_id,
            user_id,
        )

    # --- Stock increases ---

    def receipt(
        self, request: ReceiptRequest, user_id: str
    ) -> InventoryTransaction:
        """
        Receive stock into a magazine.

        Checks destination capacity, then compatibility with the
        products already stored there.
        """
        self._validate_request(request, user_id)
        magazines = self.magazine_service.lock_magazines([request.magazine_to_id])
        magazine = magazines[request.magazine_to_id]
        product = self.product_service.get_product(request.product_id)

        self._require_room(magazine, product, request.quantity)

        entry = self.ledger_service.append(self._entry(
            request, TransactionType.RECEIPT, user_id,
            magazine_to_id=magazine.id,
        ))
        self._record(entry, user_id)
        return entry

    # --- Stock decreases ---

    def _decrease(
        self,
        request: MovementBase,
        transaction_type: TransactionType,
        magazine_id: int,
        user_id: str,
        system_generated: bool = False,
    ) -> InventoryTransaction:
        self._validate_request(request, user_id, system_generated)
        magazine = self.magazine_service.lock_magazines([magazine_id])[magazine_id]
        product = self.product_service.get_product(request.product_id)

        self._require_stock(magazine, product, request.quantity)

        entry = self.ledger_service.append(self._entry(
            request, transaction_type, user_id,
            magazine_from_id=magazine.id,
        ))
        self._record(entry, user_id)
        return entry

    def issue(self, request: IssueRequest, user_id: str) -> InventoryTransaction:
        """Issue stock out of a magazine for use."""
        return self._decrease(
            request, TransactionType.ISSUE, request.magazine_from_id, user_id
        )

    def destruction(
        self, request: DestructionRequest, user_id: str
    ) -> InventoryTransaction:
        """Record the destruction of stock held in a magazine."""
        return self._decrease(
            request, TransactionType.DESTRUCTION, request.magazine_from_id, user_id
        )

    # --- Adjustments ---

    def adjust(
        self,
        request: AdjustmentRequest,
        user_id: str,
        system_generated: bool = False,
    ) -> InventoryTransaction:
        """
        Correct the stock of a product in a magazine.

        An increase has the same preconditions as a receipt,
        a decrease the same as an issue. system_generated marks
        adjustments posted by reconciliation, whose authorization
        number is not user input.
        """
        if request.direction == AdjustmentDirection.DECREASE:
            return self._decrease(
                request, TransactionType.ADJUST_DECREASE,
                request.magazine_id, user_id, system_generated,
            )

        self._validate_request(request, user_id, system_generated)
        magazine = self.magazine_service.lock_magazines(
            [request.magazine_id]
        )[request.magazine_id]
        product = self.product_service.get_product(request.product_id)

        self._require_room(magazine, product, request.quantity)

        entry = self.ledger_service.append(self._entry(
            request, TransactionType.ADJUST_INCREASE, user_id,
            magazine_to_id=magazine.id,
        ))
        self._record(entry, user_id)
        return entry

    # --- Transfers ---

    def transfer(
        self, request: TransferRequest, user_id: str
    ) -> tuple[InventoryTransaction, InventoryTransaction]:
        """
        Move stock between two magazines.

        Checks source stock, destination capacity and destination
        compatibility, then writes the TRANSFER_OUT and TRANSFER_IN
        entries as one unit: both are recorded or neither is.
        """
        if request.magazine_from_id == request.magazine_to_id:
            raise InvalidTransfer(request.magazine_from_id)

        self._validate_request(request, user_id)
        magazines = self.magazine_service.lock_magazines(
            [request.magazine_from_id, request.magazine_to_id]
        )
        source = magazines[request.magazine_from_id]
        destination = magazines[request.magazine_to_id]
        product = self.product_service.get_product(request.product_id)

        self._require_stock(source, product, request.quantity)
        self._require_room(destination, product, request.quantity)

        group_id = uuid.uuid4()
        transfer_out, transfer_in = self.ledger_service.append_many([
            self._entry(
                request, TransactionType.TRANSFER_OUT, user_id,
                magazine_from_id=source.id, transfer_group_id=group_id,
            ),
            self._entry(
                request, TransactionType.TRANSFER_IN, user_id,
                magazine_to_id=destination.id, transfer_group_id=group_id,
            ),
        ])
        self._record(transfer_out, user_id)
        self._record(transfer_in, user_id)
        return transfer_out, transfer_in

    # --- Reads ---

    def get_transaction(self, transaction_id: int) -> InventoryTransaction:
        return self.ledger_service.get_entry(transaction_id)

    def list_transactions(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        magazine_id: int | None = None,
        product_id: int | None = None,
        transaction_type: TransactionType | None = None,
    ) -> list[InventoryTransaction]:
        return self.ledger_service.list_entries(
            start_date=start_date,
            end_date=end_date,
            magazine_id=magazine_id,
            product_id=product_id,
            transaction_type=transaction_type,
        )
