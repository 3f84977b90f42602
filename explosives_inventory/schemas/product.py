"""
Pydantic schemas for the explosives product catalog.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from explosives_inventory.models.enums import (
    CompatibilityGroup,
    ExplosiveType,
    UnitOfMeasure,
)

# "UN" followed by the four-digit regulatory identifier, e.g. "UN 0081"
UN_NUMBER_PATTERN = r"^UN \d{4}$"


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    un_number: str = Field(pattern=UN_NUMBER_PATTERN)
    description: str | None = Field(default=None, max_length=500)
    compatibility_group: CompatibilityGroup
    explosive_type: ExplosiveType | None = None
    unit: UnitOfMeasure
    net_explosive_weight_per_unit_kg: Decimal = Field(
        default=Decimal("0"), ge=0, decimal_places=4
    )
    manufacturer: str | None = Field(default=None, max_length=100)


class ProductUpdate(BaseModel):
    """Partial update. Only fields that are set are applied."""
    name: str | None = Field(default=None, min_length=1, max_length=100)
    un_number: str | None = Field(default=None, pattern=UN_NUMBER_PATTERN)
    description: str | None = Field(default=None, max_length=500)
    compatibility_group: CompatibilityGroup | None = None
    explosive_type: ExplosiveType | None = None
    unit: UnitOfMeasure | None = None
    net_explosive_weight_per_unit_kg: Decimal | None = Field(
        default=None, ge=0, decimal_places=4
    )
    manufacturer: str | None = Field(default=None, max_length=100)


class ProductResponse(BaseModel):
    id: int
    name: str
    un_number: str
    description: str | None
    compatibility_group: CompatibilityGroup
    explosive_type: ExplosiveType | None
    unit: UnitOfMeasure
    net_explosive_weight_per_unit_kg: Decimal
    manufacturer: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CompatibilityResponse(BaseModel):
    product_id: int
    magazine_id: int
    compatible: bool
    conflicts: list[str]
    reason: str | None = None
