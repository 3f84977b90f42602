"""
Pydantic schemas for physical-count reconciliation.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ReconciliationCreate(BaseModel):
    magazine_id: int
    product_id: int
    physical_count: Decimal = Field(ge=0, decimal_places=4)
    variance_reason: str | None = Field(default=None, max_length=500)
    reconciliation_date: datetime | None = None


class ReconciliationResolve(BaseModel):
    resolution_notes: str = Field(min_length=1, max_length=1000)


class ReconciliationPreviewRequest(BaseModel):
    magazine_id: int
    product_id: int
    physical_count: Decimal = Field(ge=0, decimal_places=4)


class ReconciliationPreviewResponse(BaseModel):
    """What a count would produce, without recording anything."""
    system_count: Decimal
    physical_count: Decimal
    variance: Decimal
    variance_percent: Decimal
    significant_variance: bool
    requires_approval: bool


class ReconciliationResponse(BaseModel):
    id: int
    reconciliation_date: datetime
    magazine_id: int
    product_id: int
    physical_count: Decimal
    system_count_at_time: Decimal
    variance: Decimal
    variance_reason: str | None
    entered_by_user_id: str
    resolved: bool
    resolved_by_user_id: str | None
    resolution_notes: str | None
    adjustment_transaction_id: int | None
    created_at: datetime
    resolved_at: datetime | None

    model_config = {"from_attributes": True}


class ReconciliationSummary(BaseModel):
    total_reconciliations: int
    resolved_count: int
    unresolved_count: int
    variance_count: int
    shortage_count: int
    overage_count: int
    accuracy_rate: Decimal


class ReconciliationReportResponse(BaseModel):
    reconciliations: list[ReconciliationResponse]
    summary: ReconciliationSummary
