"""
Ledger service — the stock ledger and its balance projection.

This service enforces the structural rules of the ledger:
1. Entries are immutable (append-only)
2. Quantities are strictly positive
3. Each entry populates exactly the magazine side its type requires

It also answers "how much of product P is in magazine M right
now". That answer is never stored; every query replays the
signed effects of the ledger entries through STOCK_EFFECTS.

Business validation (capacity, compatibility, available stock)
is the TransactionService's job. No other service writes to the
ledger directly.
"""

import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.orm import Session

from explosives_inventory.models.enums import (
    CompatibilityGroup,
    MagazineSide,
    TransactionType,
    UnitOfMeasure,
)
from explosives_inventory.models.inventory_transaction import (
    InventoryTransaction,
    STOCK_EFFECTS,
    INCREASING_TYPES,
    DECREASING_TYPES,
)
from explosives_inventory.models.magazine import Magazine
from explosives_inventory.models.product import Product
from explosives_inventory.schemas.transaction import LedgerEntryCreate
from explosives_inventory.services.exceptions import (
    TransactionNotFound,
    ValidationError,
)


_TO_SIDE_TYPES = [
    t for t, effect in STOCK_EFFECTS.items() if effect.side == MagazineSide.TO
]


def _signed_quantity():
    """SQL expression: quantity with the sign of its transaction type."""
    return case(
        (
            InventoryTransaction.transaction_type.in_(INCREASING_TYPES),
            InventoryTransaction.quantity,
        ),
        (
            InventoryTransaction.transaction_type.in_(DECREASING_TYPES),
            -InventoryTransaction.quantity,
        ),
        else_=0,
    )


def _magazine_ref():
    """SQL expression: the single magazine an entry affects."""
    return case(
        (
            InventoryTransaction.transaction_type.in_(_TO_SIDE_TYPES),
            InventoryTransaction.magazine_to_id,
        ),
        else_=InventoryTransaction.magazine_from_id,
    )


def _touches(magazine_id: int):
    return or_(
        and_(
            InventoryTransaction.transaction_type.in_(_TO_SIDE_TYPES),
            InventoryTransaction.magazine_to_id == magazine_id,
        ),
        and_(
            InventoryTransaction.transaction_type.not_in(_TO_SIDE_TYPES),
            InventoryTransaction.magazine_from_id == magazine_id,
        ),
    )


def replay(
    entries: Iterable[InventoryTransaction],
) -> dict[tuple[int, int], Decimal]:
    """
    Compute every non-zero (magazine_id, product_id) balance by
    walking the entries one at a time.

    This is the reference definition of a stock balance. The SQL
    aggregations below must always agree with it.
    """
    balances: dict[tuple[int, int], Decimal] = defaultdict(Decimal)
    for entry in entries:
        balances[(entry.magazine_id, entry.product_id)] += entry.signed_quantity
    return {key: qty for key, qty in balances.items() if qty != 0}


@dataclass(frozen=True)
class StockLine:
    """One non-zero balance with the catalog details needed to report it."""
    magazine_id: int
    magazine_code: str
    magazine_name: str
    product_id: int
    product_name: str
    un_number: str
    compatibility_group: CompatibilityGroup
    unit: UnitOfMeasure
    quantity: Decimal
    net_explosive_weight_kg: Decimal


class LedgerService:
    """
    All ledger reads and writes pass through this service.

    The service takes a database session as a constructor
    argument. The caller controls the transaction boundary
    and decides when to commit or rollback.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- Writes ---

    def _check_structure(self, entry: LedgerEntryCreate) -> None:
        errors = []
        kind = entry.transaction_type.value

        if entry.quantity <= 0:
            errors.append("quantity must be positive")

        side = STOCK_EFFECTS[entry.transaction_type].side
        if side == MagazineSide.TO:
            if entry.magazine_to_id is None:
                errors.append(f"{kind} requires a destination magazine")
            if entry.magazine_from_id is not None:
                errors.append(f"{kind} must not have a source magazine")
        else:
            if entry.magazine_from_id is None:
                errors.append(f"{kind} requires a source magazine")
            if entry.magazine_to_id is not None:
                errors.append(f"{kind} must not have a destination magazine")

        if not entry.entered_by_user_id:
            errors.append("entered_by_user_id is required")

        if errors:
            raise ValidationError(errors)

    def append(self, entry: LedgerEntryCreate) -> InventoryTransaction:
        """Write one immutable ledger entry."""
        return self.append_many([entry])[0]

    def append_many(
        self, entries: list[LedgerEntryCreate]
    ) -> list[InventoryTransaction]:
        """
        Write a group of ledger entries as one unit.

        Every entry is checked before any is added, and the group
        is flushed once, so a structural failure writes nothing.
        The caller is responsible for calling db.commit().
        """
        for entry in entries:
            self._check_structure(entry)

        rows = []
        for entry in entries:
            row = InventoryTransaction(
                transaction_date=entry.transaction_date,
                transaction_type=entry.transaction_type,
                magazine_from_id=entry.magazine_from_id,
                magazine_to_id=entry.magazine_to_id,
                product_id=entry.product_id,
                quantity=entry.quantity,
                reference_number=entry.reference_number,
                authorization_number=entry.authorization_number,
                notes=entry.notes,
                entered_by_user_id=entry.entered_by_user_id,
                attachments=entry.attachments,
                transfer_group_id=entry.transfer_group_id,
            )
            self.db.add(row)
            rows.append(row)

        self.db.flush()
        return rows

    # --- Balance projection ---

    def balance(self, magazine_id: int, product_id: int) -> Decimal:
        """
        Current quantity of a product in a magazine.

        Balance is never stored. It is always derived from the
        entries, which guarantees it is correct as long as the
        entries are correct.
        """
        total = self.db.execute(
            select(func.coalesce(func.sum(_signed_quantity()), 0)).where(
                InventoryTransaction.product_id == product_id,
                _touches(magazine_id),
            )
        ).scalar()
        return Decimal(str(total))

    def net_weight(self, magazine_id: int) -> Decimal:
        """Net explosive weight (kg) currently held in a magazine."""
        total = self.db.execute(
            select(
                func.coalesce(
                    func.sum(
                        _signed_quantity()
                        * Product.net_explosive_weight_per_unit_kg
                    ),
                    0,
                )
            )
            .select_from(InventoryTransaction)
            .join(Product, Product.id == InventoryTransaction.product_id)
            .where(_touches(magazine_id))
        ).scalar()
        return Decimal(str(total))

    def _grouped_balances(self, *criteria) -> list[StockLine]:
        magazine_ref = _magazine_ref().label("magazine_id")
        quantity = func.sum(_signed_quantity())
        rows = self.db.execute(
            select(
                magazine_ref,
                InventoryTransaction.product_id,
                quantity.label("quantity"),
            )
            .where(*criteria)
            .group_by(magazine_ref, InventoryTransaction.product_id)
            .having(quantity != 0)
        ).all()
        if not rows:
            return []

        magazines = {
            m.id: m for m in self.db.execute(
                select(Magazine).where(
                    Magazine.id.in_(sorted({r.magazine_id for r in rows}))
                )
            ).scalars()
        }
        products = {
            p.id: p for p in self.db.execute(
                select(Product).where(
                    Product.id.in_(sorted({r.product_id for r in rows}))
                )
            ).scalars()
        }

        lines = []
        for row in rows:
            magazine = magazines[row.magazine_id]
            product = products[row.product_id]
            qty = Decimal(str(row.quantity))
            lines.append(StockLine(
                magazine_id=magazine.id,
                magazine_code=magazine.code,
                magazine_name=magazine.name,
                product_id=product.id,
                product_name=product.name,
                un_number=product.un_number,
                compatibility_group=product.compatibility_group,
                unit=product.unit,
                quantity=qty,
                net_explosive_weight_kg=(
                    qty * product.net_explosive_weight_per_unit_kg
                ),
            ))
        lines.sort(key=lambda line: (line.magazine_code, line.product_name))
        return lines

    def balance_all_by_magazine(self, magazine_id: int) -> list[StockLine]:
        """Non-zero balances of every product held in one magazine."""
        return self._grouped_balances(_touches(magazine_id))

    def balance_all_by_product(self, product_id: int) -> list[StockLine]:
        """Non-zero balances of one product across all magazines."""
        return self._grouped_balances(
            InventoryTransaction.product_id == product_id
        )

    def balance_all(self) -> list[StockLine]:
        """Non-zero balances of every magazine and product pair."""
        return self._grouped_balances()

    # --- Reads ---

    def get_entry(self, transaction_id: int) -> InventoryTransaction:
        entry = self.db.get(InventoryTransaction, transaction_id)
        if not entry:
            raise TransactionNotFound(transaction_id)
        return entry

    def list_entries(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        magazine_id: int | None = None,
        product_id: int | None = None,
        transaction_type: TransactionType | None = None,
    ) -> list[InventoryTransaction]:
        """Return ledger entries matching every given filter, newest first."""
        query = select(InventoryTransaction)
        if start_date is not None:
            query = query.where(InventoryTransaction.transaction_date >= start_date)
        if end_date is not None:
            query = query.where(InventoryTransaction.transaction_date <= end_date)
        if magazine_id is not None:
            query = query.where(_touches(magazine_id))
        if product_id is not None:
            query = query.where(InventoryTransaction.product_id == product_id)
        if transaction_type is not None:
            query = query.where(
                InventoryTransaction.transaction_type == transaction_type
            )
        query = query.order_by(
            InventoryTransaction.transaction_date.desc(),
            InventoryTransaction.id.desc(),
        )
        return list(self.db.execute(query).scalars().all())

    def get_transfer_pair(
        self, transfer_group_id: uuid.UUID
    ) -> list[InventoryTransaction]:
        """Return the TRANSFER_OUT / TRANSFER_IN entries of one transfer."""
        entries = self.db.execute(
            select(InventoryTransaction)
            .where(InventoryTransaction.transfer_group_id == transfer_group_id)
            .order_by(InventoryTransaction.id)
        ).scalars().all()
        return list(entries)

    def count_references(
        self,
        magazine_id: int | None = None,
        product_id: int | None = None,
    ) -> int:
        """Count ledger entries referencing a magazine or a product."""
        query = select(func.count(InventoryTransaction.id))
        if magazine_id is not None:
            query = query.where(or_(
                InventoryTransaction.magazine_from_id == magazine_id,
                InventoryTransaction.magazine_to_id == magazine_id,
            ))
        if product_id is not None:
            query = query.where(InventoryTransaction.product_id == product_id)
        return self.db.execute(query).scalar()
