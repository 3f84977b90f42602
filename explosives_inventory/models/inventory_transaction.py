"""
Inventory transaction model (the ledger).

Each row is one immutable stock movement. Rows are only ever
inserted; corrections are made with new offsetting entries.
Current stock is never stored anywhere. It is always derived
by replaying these rows through STOCK_EFFECTS.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, Text, ForeignKey, JSON,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from explosives_inventory.models.base import Base
from explosives_inventory.models.enums import MagazineSide, TransactionType


@dataclass(frozen=True)
class StockEffect:
    """Which magazine side a transaction type uses and its sign."""
    side: MagazineSide
    sign: int


# The sign table: the source of truth for every stock projection
STOCK_EFFECTS: dict[TransactionType, StockEffect] = {
    TransactionType.RECEIPT: StockEffect(MagazineSide.TO, 1),
    TransactionType.ISSUE: StockEffect(MagazineSide.FROM, -1),
    TransactionType.TRANSFER_OUT: StockEffect(MagazineSide.FROM, -1),
    TransactionType.TRANSFER_IN: StockEffect(MagazineSide.TO, 1),
    TransactionType.ADJUST_INCREASE: StockEffect(MagazineSide.TO, 1),
    TransactionType.ADJUST_DECREASE: StockEffect(MagazineSide.FROM, -1),
    TransactionType.DESTRUCTION: StockEffect(MagazineSide.FROM, -1),
}

_missing_effects = set(TransactionType) - set(STOCK_EFFECTS)
if _missing_effects:
    raise RuntimeError(
        f"Transaction types without a stock effect: {sorted(_missing_effects)}"
    )

INCREASING_TYPES = tuple(
    t for t, effect in STOCK_EFFECTS.items() if effect.sign > 0
)
DECREASING_TYPES = tuple(
    t for t, effect in STOCK_EFFECTS.items() if effect.sign < 0
)


class InventoryTransaction(Base):
    """
    An immutable ledger entry.

    Exactly one of magazine_from_id / magazine_to_id is set,
    as dictated by STOCK_EFFECTS. This invariant is enforced by
    the LedgerService, not by the model.
    """

    __tablename__ = "inventory_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    transaction_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, index=True
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        SAEnum(
            TransactionType,
            name="transaction_type_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    magazine_from_id: Mapped[int | None] = mapped_column(
        ForeignKey("magazines.id"), nullable=True, index=True
    )
    magazine_to_id: Mapped[int | None] = mapped_column(
        ForeignKey("magazines.id"), nullable=True, index=True
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id"), nullable=False, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    reference_number: Mapped[str] = mapped_column(
        String(50), nullable=False
    )
    authorization_number: Mapped[str] = mapped_column(
        String(50), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    entered_by_user_id: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True
    )
    attachments: Mapped[list | None] = mapped_column(JSON, nullable=True)
    # Shared by the TRANSFER_OUT / TRANSFER_IN pair of one transfer
    transfer_group_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    # Relationships
    magazine_from: Mapped["Magazine | None"] = relationship(
        foreign_keys=[magazine_from_id]
    )
    magazine_to: Mapped["Magazine | None"] = relationship(
        foreign_keys=[magazine_to_id]
    )
    product: Mapped["Product"] = relationship()

    @property
    def magazine_id(self) -> int | None:
        """The single magazine this entry affects."""
        if STOCK_EFFECTS[self.transaction_type].side == MagazineSide.TO:
            return self.magazine_to_id
        return self.magazine_from_id

    @property
    def signed_quantity(self) -> Decimal:
        return self.quantity * STOCK_EFFECTS[self.transaction_type].sign

    def __repr__(self) -> str:
        return (
            f"<InventoryTransaction {self.transaction_type.value} "
            f"{self.quantity} of product {self.product_id}>"
        )
