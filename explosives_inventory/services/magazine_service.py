"""
Magazine service — storage magazines and their capacity.

Capacity is measured in net explosive weight (NEW). A
magazine's current weight is derived from the ledger, exactly
like a stock balance; it is never stored on the magazine.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from explosives_inventory.models.magazine import Magazine
from explosives_inventory.models.product import Product
from explosives_inventory.schemas.magazine import MagazineCreate, MagazineUpdate
from explosives_inventory.services.audit_service import AuditService
from explosives_inventory.services.exceptions import (
    CapacityExceeded,
    DuplicateKey,
    MagazineNotFound,
    ProductNotFound,
    ReferentialIntegrityError,
)
from explosives_inventory.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacityStatus:
    magazine_id: int
    magazine_code: str
    current_weight_kg: Decimal
    max_weight_kg: Decimal

    @property
    def available_kg(self) -> Decimal:
        return self.max_weight_kg - self.current_weight_kg

    @property
    def utilization_percent(self) -> Decimal:
        if self.max_weight_kg <= 0:
            return Decimal("0")
        return (
            self.current_weight_kg / self.max_weight_kg * 100
        ).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class CapacityCheck:
    current_weight_kg: Decimal
    max_weight_kg: Decimal
    additional_weight_kg: Decimal
    new_total_weight_kg: Decimal


class MagazineService:

    def __init__(
        self,
        db: Session,
        ledger_service: LedgerService | None = None,
        audit_service: AuditService | None = None,
    ):
        self.db = db
        self.ledger_service = ledger_service or LedgerService(db)
        self.audit_service = audit_service or AuditService(db)

    def _find_by_code(self, code: str) -> Magazine | None:
        return self.db.execute(
            select(Magazine).where(Magazine.code == code)
        ).scalar_one_or_none()

    def create_magazine(self, request: MagazineCreate, user_id: str) -> Magazine:
        """
        Create a new magazine.

        Raises DuplicateKey if the code is already used.
        """
        if self._find_by_code(request.code):
            raise DuplicateKey("Magazine", "code", request.code)

        magazine = Magazine(
            code=request.code,
            name=request.name,
            location=request.location,
            max_net_explosive_weight_kg=request.max_net_explosive_weight_kg,
            notes=request.notes,
        )
        self.db.add(magazine)
        self.db.flush()

        self.audit_service.record(
            user_id, "magazine.create", "Magazine", magazine.id,
            {"code": magazine.code},
        )
        logger.info("Created magazine %s (id=%s)", magazine.code, magazine.id)
        return magazine

    def get_magazine(self, magazine_id: int) -> Magazine:
        magazine = self.db.get(Magazine, magazine_id)
        if not magazine:
            raise MagazineNotFound(magazine_id)
        return magazine

    def list_magazines(self, include_archived: bool = False) -> list[Magazine]:
        """All magazines ordered by code."""
        query = select(Magazine).order_by(Magazine.code)
        if not include_archived:
            query = query.where(Magazine.is_active.is_(True))
        return list(self.db.execute(query).scalars().all())

    def update_magazine(
        self, magazine_id: int, request: MagazineUpdate, user_id: str
    ) -> Magazine:
        """Apply a partial update. Changing the code re-checks uniqueness."""
        magazine = self.get_magazine(magazine_id)
        changes = request.model_dump(exclude_unset=True)

        new_code = changes.get("code")
        if new_code and new_code != magazine.code:
            duplicate = self._find_by_code(new_code)
            if duplicate and duplicate.id != magazine.id:
                raise DuplicateKey("Magazine", "code", new_code)

        for field, value in changes.items():
            setattr(magazine, field, value)
        self.db.flush()

        if "max_net_explosive_weight_kg" in changes:
            self._warn_if_over_capacity(magazine)

        self.audit_service.record(
            user_id, "magazine.update", "Magazine", magazine.id,
            changes,
        )
        return magazine

    def _warn_if_over_capacity(self, magazine: Magazine) -> None:
        current = self.ledger_service.net_weight(magazine.id)
        if current > magazine.max_net_explosive_weight_kg:
            logger.warning(
                "Magazine %s now holds %s kg, over its new limit of %s kg",
                magazine.code, current, magazine.max_net_explosive_weight_kg,
            )

    def archive_magazine(self, magazine_id: int, user_id: str) -> Magazine:
        """
        Archive a magazine instead of deleting it.

        An archived magazine keeps its ledger history and can still
        have stock issued out of it, but accepts no new stock.
        """
        magazine = self.get_magazine(magazine_id)
        magazine.is_active = False
        self.db.flush()

        self.audit_service.record(
            user_id, "magazine.archive", "Magazine", magazine.id
        )
        logger.info("Archived magazine %s", magazine.code)
        return magazine

    def delete_magazine(self, magazine_id: int, user_id: str) -> None:
        """
        Delete a magazine that has never been used.

        Raises ReferentialIntegrityError if any ledger entry
        references it; those magazines must be archived.
        """
        magazine = self.get_magazine(magazine_id)
        references = self.ledger_service.count_references(
            magazine_id=magazine_id
        )
        if references:
            raise ReferentialIntegrityError("Magazine", magazine_id, references)

        self.db.delete(magazine)
        self.db.flush()

        self.audit_service.record(
            user_id, "magazine.delete", "Magazine", magazine_id,
            {"code": magazine.code},
        )

    def lock_magazines(self, magazine_ids: list[int]) -> dict[int, Magazine]:
        """
        Load magazines with a row lock held until the caller commits.

        Every stock check and the append that follows it run while
        holding these locks, so two requests against the same
        magazine cannot both pass a check that only one of them
        may satisfy. Ids are locked in ascending order to avoid
        deadlocks between transfers in opposite directions. SQLite
        has no row locks; there the transaction already holds the
        database write lock, see enable_sqlite_write_locking.
        """
        ids = sorted(set(magazine_ids))
        magazines = {
            m.id: m for m in self.db.execute(
                select(Magazine)
                .where(Magazine.id.in_(ids))
                .order_by(Magazine.id)
                .with_for_update()
            ).scalars()
        }
        for magazine_id in ids:
            if magazine_id not in magazines:
                raise MagazineNotFound(magazine_id)
        return magazines

    # --- Capacity ---

    def current_weight(self, magazine_id: int) -> CapacityStatus:
        """Net explosive weight held in a magazine against its maximum."""
        magazine = self.get_magazine(magazine_id)
        return CapacityStatus(
            magazine_id=magazine.id,
            magazine_code=magazine.code,
            current_weight_kg=self.ledger_service.net_weight(magazine.id),
            max_weight_kg=Decimal(str(magazine.max_net_explosive_weight_kg)),
        )

    def validate_capacity(
        self, magazine_id: int, product_id: int, quantity: Decimal
    ) -> CapacityCheck:
        """
        Check that adding `quantity` units of a product keeps the
        magazine at or under its maximum net explosive weight.

        Raises CapacityExceeded with the current, maximum and
        attempted totals when it would not.
        """
        status = self.current_weight(magazine_id)
        product = self.db.get(Product, product_id)
        if not product:
            raise ProductNotFound(product_id)

        additional = quantity * product.net_explosive_weight_per_unit_kg
        new_total = status.current_weight_kg + additional

        if new_total > status.max_weight_kg:
            logger.warning(
                "Capacity check failed for magazine %s: %s + %s > %s",
                status.magazine_code,
                status.current_weight_kg,
                additional,
                status.max_weight_kg,
            )
            raise CapacityExceeded(
                status.magazine_code,
                current=status.current_weight_kg,
                maximum=status.max_weight_kg,
                attempted=new_total,
            )

        return CapacityCheck(
            current_weight_kg=status.current_weight_kg,
            max_weight_kg=status.max_weight_kg,
            additional_weight_kg=additional,
            new_total_weight_kg=new_total,
        )
