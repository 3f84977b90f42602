"""
Stock balance API endpoints.

Every figure returned here is computed from the ledger at
request time. There is no stored stock table to read from.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from explosives_inventory.models.base import get_db
from explosives_inventory.services.exceptions import InventoryError
from explosives_inventory.services.ledger_service import LedgerService
from explosives_inventory.services.magazine_service import MagazineService
from explosives_inventory.services.product_service import ProductService
from explosives_inventory.schemas.stock import StockBalanceResponse, StockLineResponse

router = APIRouter(prefix="/stock", tags=["Stock"])


@router.get("", response_model=list[StockLineResponse])
def list_stock(db: Session = Depends(get_db)):
    """Every non-zero magazine and product balance."""
    return LedgerService(db).balance_all()


@router.get("/magazines/{magazine_id}", response_model=list[StockLineResponse])
def magazine_stock(magazine_id: int, db: Session = Depends(get_db)):
    """Everything currently held in one magazine."""
    try:
        MagazineService(db).get_magazine(magazine_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    return LedgerService(db).balance_all_by_magazine(magazine_id)


@router.get("/products/{product_id}", response_model=list[StockLineResponse])
def product_stock(product_id: int, db: Session = Depends(get_db)):
    """Where a product is held, magazine by magazine."""
    try:
        ProductService(db).get_product(product_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    return LedgerService(db).balance_all_by_product(product_id)


@router.get(
    "/magazines/{magazine_id}/products/{product_id}",
    response_model=StockBalanceResponse,
)
def stock_balance(
    magazine_id: int,
    product_id: int,
    db: Session = Depends(get_db),
):
    """Current quantity of one product in one magazine, zero if none."""
    try:
        MagazineService(db).get_magazine(magazine_id)
        ProductService(db).get_product(product_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return StockBalanceResponse(
        magazine_id=magazine_id,
        product_id=product_id,
        quantity=LedgerService(db).balance(magazine_id, product_id),
    )
