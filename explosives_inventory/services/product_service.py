"""
Product service — the explosives catalog and compatibility checks.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from explosives_inventory.models.enums import CompatibilityGroup
from explosives_inventory.models.magazine import Magazine
from explosives_inventory.models.product import Product
from explosives_inventory.schemas.product import ProductCreate, ProductUpdate
from explosives_inventory.services.audit_service import AuditService
from explosives_inventory.services.compatibility import (
    CompatibilityResult,
    Occupant,
    check_compatibility,
)
from explosives_inventory.services.exceptions import (
    DuplicateKey,
    MagazineNotFound,
    ProductNotFound,
    ReferentialIntegrityError,
)
from explosives_inventory.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


class ProductService:

    def __init__(
        self,
        db: Session,
        ledger_service: LedgerService | None = None,
        audit_service: AuditService | None = None,
    ):
        self.db = db
        self.ledger_service = ledger_service or LedgerService(db)
        self.audit_service = audit_service or AuditService(db)

    def _find_by_un_number(self, un_number: str) -> Product | None:
        return self.db.execute(
            select(Product).where(Product.un_number == un_number)
        ).scalar_one_or_none()

    def create_product(self, request: ProductCreate, user_id: str) -> Product:
        """
        Add a product to the catalog.

        Raises DuplicateKey if the UN number is already registered.
        """
        if self._find_by_un_number(request.un_number):
            raise DuplicateKey("Product", "un_number", request.un_number)

        product = Product(**request.model_dump())
        self.db.add(product)
        self.db.flush()

        self.audit_service.record(
            user_id, "product.create", "Product", product.id,
            {"un_number": product.un_number},
        )
        logger.info("Created product %s (id=%s)", product.un_number, product.id)
        return product

    def get_product(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise ProductNotFound(product_id)
        return product

    def list_products(
        self,
        compatibility_group: CompatibilityGroup | None = None,
        include_archived: bool = False,
    ) -> list[Product]:
        query = select(Product).order_by(Product.name)
        if compatibility_group is not None:
            query = query.where(
                Product.compatibility_group == compatibility_group
            )
        if not include_archived:
            query = query.where(Product.is_active.is_(True))
        return list(self.db.execute(query).scalars().all())

    def update_product(
        self, product_id: int, request: ProductUpdate, user_id: str
    ) -> Product:
        product = self.get_product(product_id)
        changes = request.model_dump(exclude_unset=True)

        new_un = changes.get("un_number")
        if new_un and new_un != product.un_number:
            duplicate = self._find_by_un_number(new_un)
            if duplicate and duplicate.id != product.id:
                raise DuplicateKey("Product", "un_number", new_un)

        for field, value in changes.items():
            setattr(product, field, value)
        self.db.flush()

        if changes.keys() & {
            "net_explosive_weight_per_unit_kg", "compatibility_group"
        }:
            self._warn_on_stored_stock(product)

        self.audit_service.record(
            user_id, "product.update", "Product", product.id,
            changes,
        )
        return product

    def _warn_on_stored_stock(self, product: Product) -> None:
        """
        Log each magazine that an updated weight or group leaves over
        capacity or holding incompatible products. Stock already on
        the ledger is not moved.
        """
        for line in self.ledger_service.balance_all_by_product(product.id):
            if line.quantity <= 0:
                continue
            magazine = self.db.get(Magazine, line.magazine_id)

            weight = self.ledger_service.net_weight(magazine.id)
            if weight > magazine.max_net_explosive_weight_kg:
                logger.warning(
                    "Magazine %s now holds %s kg, over its limit of %s kg",
                    magazine.code, weight, magazine.max_net_explosive_weight_kg,
                )

            others = [
                Occupant(name=o.product_name, group=o.compatibility_group)
                for o in self.ledger_service.balance_all_by_magazine(magazine.id)
                if o.product_id != product.id and o.quantity > 0
            ]
            result = check_compatibility(product.compatibility_group, others)
            if not result.compatible:
                logger.warning(
                    "Product %s in magazine %s: %s",
                    product.un_number, magazine.code, result.reason,
                )

    def archive_product(self, product_id: int, user_id: str) -> Product:
        """Archive a product; archived products cannot be received."""
        product = self.get_product(product_id)
        product.is_active = False
        self.db.flush()

        self.audit_service.record(user_id, "product.archive", "Product", product.id)
        logger.info("Archived product %s", product.un_number)
        return product

    def delete_product(self, product_id: int, user_id: str) -> None:
        """
        Delete a product with no ledger history.

        Raises ReferentialIntegrityError otherwise.
        """
        product = self.get_product(product_id)
        references = self.ledger_service.count_references(product_id=product_id)
        if references:
            raise ReferentialIntegrityError("Product", product_id, references)

        self.db.delete(product)
        self.db.flush()

        self.audit_service.record(
            user_id, "product.delete", "Product", product_id,
            {"un_number": product.un_number},
        )

    def occupants(self, magazine_id: int) -> list[Occupant]:
        """Products with a positive balance in the magazine."""
        return [
            Occupant(name=line.product_name, group=line.compatibility_group)
            for line in self.ledger_service.balance_all_by_magazine(magazine_id)
            if line.quantity > 0
        ]

    def validate_compatibility(
        self, product_id: int, magazine_id: int
    ) -> CompatibilityResult:
        """
        Check whether the product may be stored alongside what the
        magazine currently holds. An empty magazine accepts anything.
        """
        product = self.get_product(product_id)
        if not self.db.get(Magazine, magazine_id):
            raise MagazineNotFound(magazine_id)

        return check_compatibility(
            product.compatibility_group, self.occupants(magazine_id)
        )
