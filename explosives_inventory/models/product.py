"""
Product model (explosives catalog).
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, Numeric, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from explosives_inventory.models.base import Base
from explosives_inventory.models.enums import (
    CompatibilityGroup,
    ExplosiveType,
    UnitOfMeasure,
)


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    un_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    compatibility_group: Mapped[CompatibilityGroup] = mapped_column(
        SAEnum(
            CompatibilityGroup,
            name="compatibility_group_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    explosive_type: Mapped[ExplosiveType | None] = mapped_column(
        SAEnum(
            ExplosiveType,
            name="explosive_type_enum",
            create_constraint=True,
        ),
        nullable=True,
    )
    unit: Mapped[UnitOfMeasure] = mapped_column(
        SAEnum(
            UnitOfMeasure,
            name="unit_of_measure_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    # Net explosive weight, not packaged weight
    net_explosive_weight_per_unit_kg: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    manufacturer: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
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
        return f"<Product {self.un_number} {self.name} ({self.compatibility_group.value})>"
