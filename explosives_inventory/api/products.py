"""
Product catalog API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from explosives_inventory.api.dependencies import get_current_user_id
from explosives_inventory.models.base import get_db
from explosives_inventory.models.enums import CompatibilityGroup
from explosives_inventory.services.exceptions import InventoryError
from explosives_inventory.services.product_service import ProductService
from explosives_inventory.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    CompatibilityResponse,
)

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=list[ProductResponse])
def list_products(
    compatibility_group: CompatibilityGroup | None = None,
    include_archived: bool = False,
    db: Session = Depends(get_db),
):
    """List products, optionally filtered by compatibility group."""
    return ProductService(db).list_products(
        compatibility_group=compatibility_group,
        include_archived=include_archived,
    )


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(
    request: ProductCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    service = ProductService(db)
    try:
        product = service.create_product(request, user_id)
        db.commit()
        return product
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    service = ProductService(db)
    try:
        return service.get_product(product_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    request: ProductUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    service = ProductService(db)
    try:
        product = service.update_product(product_id, request, user_id)
        db.commit()
        return product
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/{product_id}/archive", response_model=ProductResponse)
def archive_product(
    product_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    service = ProductService(db)
    try:
        product = service.archive_product(product_id, user_id)
        db.commit()
        return product
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.delete("/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Delete a product that has no ledger history."""
    service = ProductService(db)
    try:
        service.delete_product(product_id, user_id)
        db.commit()
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    return Response(status_code=204)


@router.get("/{product_id}/compatibility", response_model=CompatibilityResponse)
def check_compatibility(
    product_id: int,
    magazine_id: int,
    db: Session = Depends(get_db),
):
    """Whether the product may be stored with a magazine's current contents."""
    service = ProductService(db)
    try:
        result = service.validate_compatibility(product_id, magazine_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return CompatibilityResponse(
        product_id=product_id,
        magazine_id=magazine_id,
        compatible=result.compatible,
        conflicts=result.conflicts,
        reason=result.reason,
    )
