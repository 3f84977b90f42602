"""
Pydantic schemas for ledger and transaction operations.

These define the API contract. They are separate from the
database models because the API shape and the storage shape
differ: a caller asks for a "transfer", the ledger stores a
TRANSFER_OUT and a TRANSFER_IN.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from explosives_inventory.models.enums import AdjustmentDirection, TransactionType


# --- Ledger Schemas ---

class LedgerEntryCreate(BaseModel):
    """
    A single raw ledger entry, as handed to LedgerService.append.

    Only the Transaction Engine builds these. Structural rules
    (positive quantity, correct magazine side) are checked by
    the ledger itself so they hold for every writer.
    """
    transaction_type: TransactionType
    magazine_from_id: int | None = None
    magazine_to_id: int | None = None
    product_id: int
    quantity: Decimal
    reference_number: str
    authorization_number: str
    notes: str | None = None
    entered_by_user_id: str
    transaction_date: datetime = Field(default_factory=datetime.utcnow)
    attachments: list[str] | None = None
    transfer_group_id: uuid.UUID | None = None


# --- Request Schemas ---

class MovementBase(BaseModel):
    """Fields shared by every stock movement request."""
    product_id: int
    quantity: Decimal = Field(gt=0, decimal_places=4)
    reference_number: str = Field(min_length=1, max_length=50)
    authorization_number: str = Field(min_length=1, max_length=50)
    notes: str | None = Field(default=None, max_length=1000)
    transaction_date: datetime | None = None
    attachments: list[str] | None = None


class ReceiptRequest(MovementBase):
    magazine_to_id: int


class IssueRequest(MovementBase):
    magazine_from_id: int


class DestructionRequest(MovementBase):
    magazine_from_id: int


class TransferRequest(MovementBase):
    magazine_from_id: int
    magazine_to_id: int


class AdjustmentRequest(MovementBase):
    """
    A stock correction. An increase lands in magazine_id as the
    destination; a decrease is taken from magazine_id as the source.
    """
    direction: AdjustmentDirection
    magazine_id: int


# --- Response Schemas ---

class TransactionResponse(BaseModel):
    id: int
    transaction_date: datetime
    transaction_type: TransactionType
    magazine_from_id: int | None
    magazine_to_id: int | None
    product_id: int
    quantity: Decimal
    reference_number: str
    authorization_number: str
    notes: str | None
    entered_by_user_id: str
    attachments: list[str] | None
    transfer_group_id: uuid.UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class TransferResponse(BaseModel):
    transfer_group_id: uuid.UUID
    transfer_out: TransactionResponse
    transfer_in: TransactionResponse
