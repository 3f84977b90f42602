"""
Inventory reconciliation model.

Records one physical count of a product in a magazine against
the ledger-derived count at the moment the count was entered.
The system count is a frozen snapshot, never recomputed.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Numeric, Text, ForeignKey, Index, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from explosives_inventory.models.base import Base


class InventoryReconciliation(Base):
    __tablename__ = "inventory_reconciliations"
    __table_args__ = (
        # At most one open count per magazine/product pair
        Index(
            "uq_reconciliation_unresolved_pair",
            "magazine_id",
            "product_id",
            unique=True,
            postgresql_where=text("resolved = false"),
            sqlite_where=text("resolved = 0"),
        ),
        Index(
            "ix_reconciliation_magazine_date",
            "magazine_id",
            "reconciliation_date",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    reconciliation_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    magazine_id: Mapped[int] = mapped_column(
        ForeignKey("magazines.id"), nullable=False
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id"), nullable=False, index=True
    )
    physical_count: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    system_count_at_time: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    variance: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, index=True
    )
    variance_reason: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    entered_by_user_id: Mapped[str] = mapped_column(
        String(100), nullable=False
    )
    resolved: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    resolved_by_user_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    adjustment_transaction_id: Mapped[int | None] = mapped_column(
        ForeignKey("inventory_transactions.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    # Relationships
    magazine: Mapped["Magazine"] = relationship()
    product: Mapped["Product"] = relationship()
    adjustment_transaction: Mapped["InventoryTransaction | None"] = relationship()

    def __repr__(self) -> str:
        state = "resolved" if self.resolved else "open"
        return (
            f"<InventoryReconciliation {self.id} variance={self.variance} "
            f"({state})>"
        )
