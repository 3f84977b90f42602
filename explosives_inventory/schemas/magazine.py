"""
Pydantic schemas for magazine operations.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class MagazineCreate(BaseModel):
    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=100)
    location: str = Field(min_length=1, max_length=200)
    max_net_explosive_weight_kg: Decimal = Field(gt=0, decimal_places=4)
    notes: str | None = None


class MagazineUpdate(BaseModel):
    """Partial update. Only fields that are set are applied."""
    code: str | None = Field(default=None, min_length=1, max_length=20)
    name: str | None = Field(default=None, min_length=1, max_length=100)
    location: str | None = Field(default=None, min_length=1, max_length=200)
    max_net_explosive_weight_kg: Decimal | None = Field(
        default=None, gt=0, decimal_places=4
    )
    notes: str | None = None


class MagazineResponse(BaseModel):
    id: int
    code: str
    name: str
    location: str
    max_net_explosive_weight_kg: Decimal
    notes: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# --- Capacity Schemas ---

class CapacityStatusResponse(BaseModel):
    """Net explosive weight currently stored against the magazine limit."""
    magazine_id: int
    magazine_code: str
    current_weight_kg: Decimal
    max_weight_kg: Decimal
    available_kg: Decimal
    utilization_percent: Decimal


class CapacityValidateRequest(BaseModel):
    product_id: int
    quantity: Decimal = Field(gt=0, decimal_places=4)


class CapacityCheckResponse(BaseModel):
    can_accommodate: bool
    current_weight_kg: Decimal
    max_weight_kg: Decimal
    additional_weight_kg: Decimal
    new_total_weight_kg: Decimal
