"""
Magazine API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from explosives_inventory.api.dependencies import get_current_user_id
from explosives_inventory.models.base import get_db
from explosives_inventory.services.exceptions import CapacityExceeded, InventoryError
from explosives_inventory.services.magazine_service import MagazineService
from explosives_inventory.schemas.magazine import (
    MagazineCreate,
    MagazineUpdate,
    MagazineResponse,
    CapacityStatusResponse,
    CapacityValidateRequest,
    CapacityCheckResponse,
)

router = APIRouter(prefix="/magazines", tags=["Magazines"])


@router.get("", response_model=list[MagazineResponse])
def list_magazines(
    include_archived: bool = False,
    db: Session = Depends(get_db),
):
    """List magazines ordered by code."""
    return MagazineService(db).list_magazines(include_archived=include_archived)


@router.post("", response_model=MagazineResponse, status_code=201)
def create_magazine(
    request: MagazineCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Register a new storage magazine."""
    service = MagazineService(db)
    try:
        magazine = service.create_magazine(request, user_id)
        db.commit()
        return magazine
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.get("/{magazine_id}", response_model=MagazineResponse)
def get_magazine(magazine_id: int, db: Session = Depends(get_db)):
    service = MagazineService(db)
    try:
        return service.get_magazine(magazine_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.patch("/{magazine_id}", response_model=MagazineResponse)
def update_magazine(
    magazine_id: int,
    request: MagazineUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Update the fields present in the request body."""
    service = MagazineService(db)
    try:
        magazine = service.update_magazine(magazine_id, request, user_id)
        db.commit()
        return magazine
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/{magazine_id}/archive", response_model=MagazineResponse)
def archive_magazine(
    magazine_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Archive a magazine.

    Its history is kept and existing stock can still be issued,
    but it accepts no new stock.
    """
    service = MagazineService(db)
    try:
        magazine = service.archive_magazine(magazine_id, user_id)
        db.commit()
        return magazine
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.delete("/{magazine_id}", status_code=204)
def delete_magazine(
    magazine_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Delete a magazine that no ledger entry references."""
    service = MagazineService(db)
    try:
        service.delete_magazine(magazine_id, user_id)
        db.commit()
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    return Response(status_code=204)


# --- Capacity Endpoints ---

@router.get("/{magazine_id}/capacity", response_model=CapacityStatusResponse)
def get_capacity(magazine_id: int, db: Session = Depends(get_db)):
    """Current net explosive weight against the magazine's limit."""
    service = MagazineService(db)
    try:
        status = service.current_weight(magazine_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return CapacityStatusResponse(
        magazine_id=status.magazine_id,
        magazine_code=status.magazine_code,
        current_weight_kg=status.current_weight_kg,
        max_weight_kg=status.max_weight_kg,
        available_kg=status.available_kg,
        utilization_percent=status.utilization_percent,
    )


@router.post(
    "/{magazine_id}/capacity/validate",
    response_model=CapacityCheckResponse,
)
def validate_capacity(
    magazine_id: int,
    request: CapacityValidateRequest,
    db: Session = Depends(get_db),
):
    """
    Check whether a quantity of a product would fit.

    Nothing is recorded. An addition that would exceed the limit
    is reported with can_accommodate=false rather than an error.
    """
    service = MagazineService(db)
    try:
        check = service.validate_capacity(
            magazine_id, request.product_id, request.quantity
        )
    except CapacityExceeded as e:
        return CapacityCheckResponse(
            can_accommodate=False,
            current_weight_kg=e.current,
            max_weight_kg=e.maximum,
            additional_weight_kg=e.attempted - e.current,
            new_total_weight_kg=e.attempted,
        )
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return CapacityCheckResponse(
        can_accommodate=True,
        current_weight_kg=check.current_weight_kg,
        max_weight_kg=check.max_weight_kg,
        additional_weight_kg=check.additional_weight_kg,
        new_total_weight_kg=check.new_total_weight_kg,
    )
