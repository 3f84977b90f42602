"""
Comprehensive tests for the TransactionService.

Every rejection must leave the ledger exactly as it was.
"""

from decimal import Decimal

import pytest

from explosives_inventory.config import Settings
from explosives_inventory.models.enums import (
    AdjustmentDirection,
    CompatibilityGroup,
    TransactionType,
)
from explosives_inventory.schemas.transaction import (
    AdjustmentRequest,
    DestructionRequest,
    IssueRequest,
    ReceiptRequest,
    TransferRequest,
)
from explosives_inventory.services.exceptions import (
    CapacityExceeded,
    CompatibilityConflict,
    InsufficientStock,
    InvalidTransfer,
    MagazineNotFound,
    ProductNotFound,
    ValidationError,
)
from explosives_inventory.services.ledger_service import LedgerService
from explosives_inventory.services.magazine_service import MagazineService
from explosives_inventory.services.product_service import ProductService
from explosives_inventory.services.transaction_service import TransactionService

from conftest import TEST_USER, make_magazine, make_product


def movement(**kwargs):
    fields = {
        "quantity": Decimal("10"),
        "reference_number": "REF-001",
        "authorization_number": "AUTH-001",
    }
    fields.update(kwargs)
    return fields


def ledger_length(db_session):
    return len(LedgerService(db_session).list_entries())


# --- Receipt Tests ---

class TestReceipt:

    def test_receipt_succeeds(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session)
        service = TransactionService(db_session)

        txn = service.receipt(ReceiptRequest(**movement(
            magazine_to_id=magazine.id, product_id=product.id,
        )), TEST_USER)
        db_session.commit()

        assert txn.transaction_type == TransactionType.RECEIPT
        assert txn.magazine_to_id == magazine.id
        assert txn.magazine_from_id is None
        assert txn.entered_by_user_id == TEST_USER
        assert LedgerService(db_session).balance(magazine.id, product.id) == 10

    def test_unknown_magazine_rejected(self, db_session):
        product = make_product(db_session)

        with pytest.raises(MagazineNotFound):
            TransactionService(db_session).receipt(ReceiptRequest(**movement(
                magazine_to_id=404, product_id=product.id,
            )), TEST_USER)

    def test_unknown_product_rejected(self, db_session):
        magazine = make_magazine(db_session)

        with pytest.raises(ProductNotFound):
            TransactionService(db_session).receipt(ReceiptRequest(**movement(
                magazine_to_id=magazine.id, product_id=404,
            )), TEST_USER)

    def test_authorization_format_enforced(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session)

        with pytest.raises(ValidationError, match="authorization_number"):
            TransactionService(db_session).receipt(ReceiptRequest(**movement(
                magazine_to_id=magazine.id, product_id=product.id,
                authorization_number="permit 7",
            )), TEST_USER)
        assert ledger_length(db_session) == 0

    def test_authorization_pattern_is_configurable(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session)
        settings = Settings()
        settings.AUTHORIZATION_NUMBER_PATTERN = r"^PERMIT-\d+$"
        service = TransactionService(db_session, settings=settings)

        txn = service.receipt(ReceiptRequest(**movement(
            magazine_to_id=magazine.id, product_id=product.id,
            authorization_number="PERMIT-7",
        )), TEST_USER)
        assert txn.authorization_number == "PERMIT-7"

    def test_missing_user_rejected(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session)

        with pytest.raises(ValidationError, match="entering user"):
            TransactionService(db_session).receipt(ReceiptRequest(**movement(
                magazine_to_id=magazine.id, product_id=product.id,
            )), "")

    def test_archived_magazine_rejects_stock(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session)
        MagazineService(db_session).archive_magazine(magazine.id, TEST_USER)
        db_session.commit()

        with pytest.raises(ValidationError, match="archived"):
            TransactionService(db_session).receipt(ReceiptRequest(**movement(
                magazine_to_id=magazine.id, product_id=product.id,
            )), TEST_USER)

    def test_archived_product_rejected(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session)
        ProductService(db_session).archive_product(product.id, TEST_USER)
        db_session.commit()

        with pytest.raises(ValidationError, match="archived"):
            TransactionService(db_session).receipt(ReceiptRequest(**movement(
                magazine_to_id=magazine.id, product_id=product.id,
            )), TEST_USER)

    def test_incompatible_product_rejected(self, db_session):
        magazine = make_magazine(db_session)
        dynamite = make_product(db_session, group=CompatibilityGroup.D)
        detonators = make_product(
            db_session, un_number="UN 0030", name="Detonators",
            group=CompatibilityGroup.B,
        )
        service = TransactionService(db_session)
        service.receipt(ReceiptRequest(**movement(
            magazine_to_id=magazine.id, product_id=dynamite.id,
        )), TEST_USER)
        db_session.commit()

        with pytest.raises(CompatibilityConflict) as exc_info:
            service.receipt(ReceiptRequest(**movement(
                magazine_to_id=magazine.id, product_id=detonators.id,
            )), TEST_USER)
        assert exc_info.value.product_group == "B"
        assert exc_info.value.conflicts == ["Dynamite (Group D)"]
        assert ledger_length(db_session) == 1


# --- Capacity Scenario ---

class TestMagazineScenario:
    """Magazine M-01, 1000kg, product weighing 1kg per unit."""

    def test_capacity_and_stock_limits(self, db_session):
        magazine = make_magazine(db_session, "M-01", max_kg="1000")
        product = make_product(db_session, weight_per_unit="1")
        service = TransactionService(db_session)
        ledger = LedgerService(db_session)

        service.receipt(ReceiptRequest(**movement(
            magazine_to_id=magazine.id, product_id=product.id,
            quantity=Decimal("500"),
        )), TEST_USER)
        db_session.commit()
        assert ledger.balance(magazine.id, product.id) == 500
        assert MagazineService(db_session).current_weight(
            magazine.id
        ).current_weight_kg == 500

        with pytest.raises(CapacityExceeded) as exc_info:
            service.receipt(ReceiptRequest(**movement(
                magazine_to_id=magazine.id, product_id=product.id,
                quantity=Decimal("600"),
            )), TEST_USER)
        db_session.rollback()
        assert exc_info.value.current == 500
        assert exc_info.value.maximum == 1000
        assert exc_info.value.attempted == 1100
        assert ledger.balance(magazine.id, product.id) == 500
        assert ledger_length(db_session) == 1

        service.issue(IssueRequest(**movement(
            magazine_from_id=magazine.id, product_id=product.id,
            quantity=Decimal("200"),
        )), TEST_USER)
        db_session.commit()
        assert ledger.balance(magazine.id, product.id) == 300

        with pytest.raises(InsufficientStock) as exc_info:
            service.issue(IssueRequest(**movement(
                magazine_from_id=magazine.id, product_id=product.id,
                quantity=Decimal("400"),
            )), TEST_USER)
        db_session.rollback()
        assert exc_info.value.available == 300
        assert exc_info.value.required == 400
        assert ledger.balance(magazine.id, product.id) == 300


# --- Decrease Tests ---

class TestDecreases:

    def _stocked(self, db_session, quantity="50"):
        magazine = make_magazine(db_session)
        product = make_product(db_session)
        TransactionService(db_session).receipt(ReceiptRequest(**movement(
            magazine_to_id=magazine.id, product_id=product.id,
            quantity=Decimal(quantity),
        )), TEST_USER)
        db_session.commit()
        return magazine, product

    def test_issue_from_empty_magazine_rejected(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session)

        with pytest.raises(InsufficientStock):
            TransactionService(db_session).issue(IssueRequest(**movement(
                magazine_from_id=magazine.id, product_id=product.id,
            )), TEST_USER)

    def test_destruction_reduces_stock(self, db_session):
        magazine, product = self._stocked(db_session)

        txn = TransactionService(db_session).destruction(
            DestructionRequest(**movement(
                magazine_from_id=magazine.id, product_id=product.id,
                quantity=Decimal("5"),
            )),
            TEST_USER,
        )
        db_session.commit()

        assert txn.transaction_type == TransactionType.DESTRUCTION
        assert LedgerService(db_session).balance(magazine.id, product.id) == 45

    def test_issue_whole_balance_allowed(self, db_session):
        magazine, product = self._stocked(db_session)

        TransactionService(db_session).issue(IssueRequest(**movement(
            magazine_from_id=magazine.id, product_id=product.id,
            quantity=Decimal("50"),
        )), TEST_USER)
        db_session.commit()

        assert LedgerService(db_session).balance(magazine.id, product.id) == 0

    def test_archived_magazine_can_still_issue(self, db_session):
        magazine, product = self._stocked(db_session)
        MagazineService(db_session).archive_magazine(magazine.id, TEST_USER)
        db_session.commit()

        TransactionService(db_session).issue(IssueRequest(**movement(
            magazine_from_id=magazine.id, product_id=product.id,
        )), TEST_USER)
        db_session.commit()

        assert LedgerService(db_session).balance(magazine.id, product.id) == 40


# --- Adjustment Tests ---

class TestAdjustment:

    def test_increase_posts_to_destination(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session)

        txn = TransactionService(db_session).adjust(AdjustmentRequest(**movement(
            direction=AdjustmentDirection.INCREASE,
            magazine_id=magazine.id, product_id=product.id,
            quantity=Decimal("3"),
        )), TEST_USER)
        db_session.commit()

        assert txn.transaction_type == TransactionType.ADJUST_INCREASE
        assert txn.magazine_to_id == magazine.id
        assert LedgerService(db_session).balance(magazine.id, product.id) == 3

    def test_decrease_below_zero_rejected(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session)

        with pytest.raises(InsufficientStock):
            TransactionService(db_session).adjust(AdjustmentRequest(**movement(
                direction=AdjustmentDirection.DECREASE,
                magazine_id=magazine.id, product_id=product.id,
            )), TEST_USER)

    def test_increase_checks_capacity(self, db_session):
        magazine = make_magazine(db_session, max_kg="1")
        product = make_product(db_session, weight_per_unit="1")

        with pytest.raises(CapacityExceeded):
            TransactionService(db_session).adjust(AdjustmentRequest(**movement(
                direction=AdjustmentDirection.INCREASE,
                magazine_id=magazine.id, product_id=product.id,
                quantity=Decimal("2"),
            )), TEST_USER)


# --- Transfer Tests ---

class TestTransfer:

    def setup_magazines(self, db_session):
        source = make_magazine(db_session, "MAG-001")
        destination = make_magazine(db_session, "MAG-002")
        product = make_product(db_session)
        TransactionService(db_session).receipt(ReceiptRequest(**movement(
            magazine_to_id=source.id, product_id=product.id,
            quantity=Decimal("100"),
        )), TEST_USER)
        db_session.commit()
        return source, destination, product

    def test_transfer_writes_linked_pair(self, db_session):
        source, destination, product = self.setup_magazines(db_session)

        transfer_out, transfer_in = TransactionService(db_session).transfer(
            TransferRequest(**movement(
                magazine_from_id=source.id, magazine_to_id=destination.id,
                product_id=product.id, quantity=Decimal("40"),
            )),
            TEST_USER,
        )
        db_session.commit()

        assert transfer_out.transaction_type == TransactionType.TRANSFER_OUT
        assert transfer_in.transaction_type == TransactionType.TRANSFER_IN
        assert transfer_out.transfer_group_id == transfer_in.transfer_group_id
        pair = LedgerService(db_session).get_transfer_pair(
            transfer_out.transfer_group_id
        )
        assert [e.id for e in pair] == [transfer_out.id, transfer_in.id]

    def test_transfer_moves_balances(self, db_session):
        source, destination, product = self.setup_magazines(db_session)

        TransactionService(db_session).transfer(TransferRequest(**movement(
            magazine_from_id=source.id, magazine_to_id=destination.id,
            product_id=product.id, quantity=Decimal("40"),
        )), TEST_USER)
        db_session.commit()

        ledger = LedgerService(db_session)
        assert ledger.balance(source.id, product.id) == 60
        assert ledger.balance(destination.id, product.id) == 40

    def test_same_magazine_rejected(self, db_session):
        source, _, product = self.setup_magazines(db_session)

        with pytest.raises(InvalidTransfer):
            TransactionService(db_session).transfer(TransferRequest(**movement(
                magazine_from_id=source.id, magazine_to_id=source.id,
                product_id=product.id,
            )), TEST_USER)

    def test_insufficient_source_writes_nothing(self, db_session):
        source, destination, product = self.setup_magazines(db_session)

        with pytest.raises(InsufficientStock):
            TransactionService(db_session).transfer(TransferRequest(**movement(
                magazine_from_id=source.id, magazine_to_id=destination.id,
                product_id=product.id, quantity=Decimal("101"),
            )), TEST_USER)
        db_session.rollback()
        assert ledger_length(db_session) == 1

    def test_incompatible_destination_writes_nothing(self, db_session):
        source, destination, product = self.setup_magazines(db_session)
        detonators = make_product(
            db_session, un_number="UN 0030", name="Detonators",
            group=CompatibilityGroup.B,
        )
        TransactionService(db_session).receipt(ReceiptRequest(**movement(
            magazine_to_id=destination.id, product_id=detonators.id,
        )), TEST_USER)
        db_session.commit()

        with pytest.raises(CompatibilityConflict):
            TransactionService(db_session).transfer(TransferRequest(**movement(
                magazine_from_id=source.id, magazine_to_id=destination.id,
                product_id=product.id,
            )), TEST_USER)
        db_session.rollback()

        assert ledger_length(db_session) == 2
        assert LedgerService(db_session).balance(source.id, product.id) == 100


# --- Non-negativity ---

class TestNonNegativity:

    def test_balances_never_negative(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session)
        service = TransactionService(db_session)
        ledger = LedgerService(db_session)

        operations = [
            ("receipt", "30"), ("issue", "10"), ("issue", "25"),
            ("destruction", "20"), ("receipt", "5"), ("issue", "6"),
        ]
        for kind, qty in operations:
            try:
                if kind == "receipt":
                    service.receipt(ReceiptRequest(**movement(
                        magazine_to_id=magazine.id, product_id=product.id,
                        quantity=Decimal(qty),
                    )), TEST_USER)
                elif kind == "issue":
                    service.issue(IssueRequest(**movement(
                        magazine_from_id=magazine.id, product_id=product.id,
                        quantity=Decimal(qty),
                    )), TEST_USER)
                else:
                    service.destruction(DestructionRequest(**movement(
                        magazine_from_id=magazine.id, product_id=product.id,
                        quantity=Decimal(qty),
                    )), TEST_USER)
                db_session.commit()
            except InsufficientStock:
                db_session.rollback()
            assert ledger.balance(magazine.id, product.id) >= 0

        assert ledger.balance(magazine.id, product.id) == 5
