"""
Magazine model.

A magazine is a licensed physical storage location with a
maximum net explosive weight. Its contents are never stored
here; they are derived from the ledger.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from explosives_inventory.models.base import Base


class Magazine(Base):
    """
    A storage magazine.

    Once referenced by a ledger entry, a magazine is never
    deleted, only archived via is_active=False.
    """

    __tablename__ = "magazines"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(
        String(200), nullable=False, index=True
    )
    max_net_explosive_weight_kg: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Magazine {self.code} (max {self.max_net_explosive_weight_kg}kg)>"
