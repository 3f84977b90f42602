"""
Tests for the ProductService: the catalog and compatibility checks.
"""

from decimal import Decimal

import pytest

from explosives_inventory.models.enums import CompatibilityGroup
from explosives_inventory.schemas.product import ProductUpdate
from explosives_inventory.schemas.transaction import IssueRequest, ReceiptRequest
from explosives_inventory.services.exceptions import (
    DuplicateKey,
    MagazineNotFound,
    ProductNotFound,
    ReferentialIntegrityError,
)
from explosives_inventory.services.product_service import ProductService
from explosives_inventory.services.transaction_service import TransactionService

from conftest import TEST_USER, make_magazine, make_product


def receive(db_session, magazine, product, quantity):
    TransactionService(db_session).receipt(ReceiptRequest(
        magazine_to_id=magazine.id,
        product_id=product.id,
        quantity=Decimal(quantity),
        reference_number="PO-200",
        authorization_number="AUTH-200",
    ), TEST_USER)
    db_session.commit()


class TestCatalog:

    def test_create_product_succeeds(self, db_session):
        product = make_product(db_session, un_number="UN 0081")

        assert product.id is not None
        assert product.compatibility_group == CompatibilityGroup.D
        assert product.is_active is True

    def test_duplicate_un_number_rejected(self, db_session):
        make_product(db_session, un_number="UN 0081")

        with pytest.raises(DuplicateKey) as exc_info:
            make_product(db_session, un_number="UN 0081", name="Other")
        assert exc_info.value.value == "UN 0081"

    def test_filter_by_group(self, db_session):
        make_product(db_session, un_number="UN 0081", group=CompatibilityGroup.D)
        make_product(
            db_session, un_number="UN 0030", name="Detonators",
            group=CompatibilityGroup.B,
        )
        service = ProductService(db_session)

        products = service.list_products(compatibility_group=CompatibilityGroup.B)
        assert [p.name for p in products] == ["Detonators"]

    def test_update_product(self, db_session):
        product = make_product(db_session)
        service = ProductService(db_session)

        updated = service.update_product(
            product.id, ProductUpdate(manufacturer="Acme"), TEST_USER
        )
        db_session.commit()
        assert updated.manufacturer == "Acme"

    def test_heavier_product_over_capacity_warns(self, db_session, caplog):
        magazine = make_magazine(db_session, "MAG-001", max_kg="100")
        product = make_product(db_session, weight_per_unit="1")
        receive(db_session, magazine, product, "80")

        ProductService(db_session).update_product(
            product.id,
            ProductUpdate(net_explosive_weight_per_unit_kg=Decimal("2")),
            TEST_USER,
        )
        db_session.commit()

        assert "Magazine MAG-001 now holds 160" in caplog.text

    def test_group_change_into_conflict_warns(self, db_session, caplog):
        magazine = make_magazine(db_session, "MAG-001")
        dynamite = make_product(db_session)
        boosters = make_product(
            db_session, un_number="UN 0042", name="Boosters"
        )
        receive(db_session, magazine, dynamite, "10")
        receive(db_session, magazine, boosters, "10")

        ProductService(db_session).update_product(
            boosters.id,
            ProductUpdate(compatibility_group=CompatibilityGroup.B),
            TEST_USER,
        )
        db_session.commit()

        assert "Product UN 0042 in magazine MAG-001" in caplog.text
        assert "Dynamite (Group D)" in caplog.text

    def test_archive_product(self, db_session):
        product = make_product(db_session)
        service = ProductService(db_session)

        service.archive_product(product.id, TEST_USER)
        db_session.commit()

        assert service.get_product(product.id).is_active is False
        assert service.list_products() == []

    def test_delete_unused_product(self, db_session):
        product = make_product(db_session)
        service = ProductService(db_session)

        service.delete_product(product.id, TEST_USER)
        db_session.commit()

        with pytest.raises(ProductNotFound):
            service.get_product(product.id)

    def test_delete_product_with_history_rejected(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session)
        receive(db_session, magazine, product, "5")

        with pytest.raises(ReferentialIntegrityError):
            ProductService(db_session).delete_product(product.id, TEST_USER)


class TestValidateCompatibility:

    def test_empty_magazine_is_compatible(self, db_session):
        magazine = make_magazine(db_session)
        product = make_product(db_session, group=CompatibilityGroup.B)

        result = ProductService(db_session).validate_compatibility(
            product.id, magazine.id
        )
        assert result.compatible is True

    def test_conflict_with_occupant(self, db_session):
        magazine = make_magazine(db_session)
        dynamite = make_product(db_session, group=CompatibilityGroup.D)
        detonators = make_product(
            db_session, un_number="UN 0030", name="Detonators",
            group=CompatibilityGroup.B,
        )
        receive(db_session, magazine, dynamite, "10")

        result = ProductService(db_session).validate_compatibility(
            detonators.id, magazine.id
        )
        assert result.compatible is False
        assert result.conflicts == ["Dynamite (Group D)"]

    def test_emptied_magazine_has_no_occupants(self, db_session):
        magazine = make_magazine(db_session)
        dynamite = make_product(db_session, group=CompatibilityGroup.D)
        detonators = make_product(
            db_session, un_number="UN 0030", name="Detonators",
            group=CompatibilityGroup.B,
        )
        receive(db_session, magazine, dynamite, "10")
        TransactionService(db_session).issue(IssueRequest(
            magazine_from_id=magazine.id,
            product_id=dynamite.id,
            quantity=Decimal("10"),
            reference_number="JOB-1",
            authorization_number="AUTH-201",
        ), TEST_USER)
        db_session.commit()

        result = ProductService(db_session).validate_compatibility(
            detonators.id, magazine.id
        )
        assert result.compatible is True

    def test_unknown_magazine(self, db_session):
        product = make_product(db_session)
        with pytest.raises(MagazineNotFound):
            ProductService(db_session).validate_compatibility(product.id, 404)
