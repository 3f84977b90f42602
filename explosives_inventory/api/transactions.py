"""
Transaction API endpoints.

Each POST records one stock movement (two ledger entries for
a transfer) and commits it. A rejected movement is rolled back
and nothing is written.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from explosives_inventory.api.dependencies import get_current_user_id
from explosives_inventory.models.base import get_db
from explosives_inventory.models.enums import TransactionType
from explosives_inventory.services.exceptions import InventoryError
from explosives_inventory.services.transaction_service import TransactionService
from explosives_inventory.schemas.transaction import (
    ReceiptRequest,
    IssueRequest,
    TransferRequest,
    AdjustmentRequest,
    DestructionRequest,
    TransactionResponse,
    TransferResponse,
)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get("", response_model=list[TransactionResponse])
def list_transactions(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    magazine_id: int | None = None,
    product_id: int | None = None,
    transaction_type: TransactionType | None = None,
    db: Session = Depends(get_db),
):
    """Ledger entries matching every given filter, newest first."""
    service = TransactionService(db)
    return service.list_transactions(
        start_date=start_date,
        end_date=end_date,
        magazine_id=magazine_id,
        product_id=product_id,
        transaction_type=transaction_type,
    )


@router.post("/receipt", response_model=TransactionResponse, status_code=201)
def receipt(
    request: ReceiptRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Receive stock into a magazine."""
    service = TransactionService(db)
    try:
        txn = service.receipt(request, user_id)
        db.commit()
        return txn
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/issue", response_model=TransactionResponse, status_code=201)
def issue(
    request: IssueRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Issue stock out of a magazine."""
    service = TransactionService(db)
    try:
        txn = service.issue(request, user_id)
        db.commit()
        return txn
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/transfer", response_model=TransferResponse, status_code=201)
def transfer(
    request: TransferRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Move stock between two magazines."""
    service = TransactionService(db)
    try:
        transfer_out, transfer_in = service.transfer(request, user_id)
        db.commit()
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return TransferResponse(
        transfer_group_id=transfer_out.transfer_group_id,
        transfer_out=TransactionResponse.model_validate(transfer_out),
        transfer_in=TransactionResponse.model_validate(transfer_in),
    )


@router.post("/adjustment", response_model=TransactionResponse, status_code=201)
def adjustment(
    request: AdjustmentRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Correct the stock of a product in a magazine up or down."""
    service = TransactionService(db)
    try:
        txn = service.adjust(request, user_id)
        db.commit()
        return txn
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/destruction", response_model=TransactionResponse, status_code=201)
def destruction(
    request: DestructionRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Record the destruction of stock."""
    service = TransactionService(db)
    try:
        txn = service.destruction(request, user_id)
        db.commit()
        return txn
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
):
    """Get one ledger entry."""
    service = TransactionService(db)
    try:
        return service.get_transaction(transaction_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
