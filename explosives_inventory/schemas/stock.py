"""
Pydantic schemas for derived stock balances.
"""

from decimal import Decimal

from pydantic import BaseModel

from explosives_inventory.models.enums import CompatibilityGroup, UnitOfMeasure


class StockBalanceResponse(BaseModel):
    """Balance of one product in one magazine, derived from the ledger."""
    magazine_id: int
    product_id: int
    quantity: Decimal


class StockLineResponse(BaseModel):
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

    model_config = {"from_attributes": True}
