"""
Reconciliation API endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from explosives_inventory.api.dependencies import get_current_user_id
from explosives_inventory.config import get_settings
from explosives_inventory.models.base import get_db
from explosives_inventory.services.exceptions import InventoryError
from explosives_inventory.services.reconciliation_service import (
    ReconciliationService,
)
from explosives_inventory.schemas.reconciliation import (
    ReconciliationCreate,
    ReconciliationResolve,
    ReconciliationPreviewRequest,
    ReconciliationPreviewResponse,
    ReconciliationResponse,
    ReconciliationSummary,
    ReconciliationReportResponse,
)

router = APIRouter(prefix="/reconciliations", tags=["Reconciliations"])


@router.get("", response_model=list[ReconciliationResponse])
def list_reconciliations(
    magazine_id: int | None = None,
    product_id: int | None = None,
    unresolved_only: bool = False,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    db: Session = Depends(get_db),
):
    service = ReconciliationService(db)
    return service.list_reconciliations(
        magazine_id=magazine_id,
        product_id=product_id,
        unresolved_only=unresolved_only,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/report", response_model=ReconciliationReportResponse)
def reconciliation_report(
    magazine_id: int | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    db: Session = Depends(get_db),
):
    """Reconciliations in a period with their accuracy statistics."""
    service = ReconciliationService(db)
    records, summary = service.summarize(
        magazine_id=magazine_id, start_date=start_date, end_date=end_date
    )
    return ReconciliationReportResponse(
        reconciliations=[
            ReconciliationResponse.model_validate(r) for r in records
        ],
        summary=ReconciliationSummary(
            total_reconciliations=summary.total_reconciliations,
            resolved_count=summary.resolved_count,
            unresolved_count=summary.unresolved_count,
            variance_count=summary.variance_count,
            shortage_count=summary.shortage_count,
            overage_count=summary.overage_count,
            accuracy_rate=summary.accuracy_rate,
        ),
    )


@router.post("/preview", response_model=ReconciliationPreviewResponse)
def preview_reconciliation(
    request: ReconciliationPreviewRequest,
    db: Session = Depends(get_db),
):
    """What a count would record, without recording it."""
    service = ReconciliationService(db)
    try:
        preview = service.preview(request)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return ReconciliationPreviewResponse(
        system_count=preview.system_count,
        physical_count=preview.physical_count,
        variance=preview.variance,
        variance_percent=preview.variance_percent,
        significant_variance=preview.significant_variance,
        requires_approval=preview.requires_approval,
    )


@router.post("", response_model=ReconciliationResponse, status_code=201)
def create_reconciliation(
    request: ReconciliationCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Record a physical count against the current system count.

    Nothing is written to the ledger until the count is resolved.
    """
    service = ReconciliationService(db)
    try:
        reconciliation = service.create(
            request,
            user_id,
            require_variance_reason=get_settings().REQUIRE_VARIANCE_REASON,
        )
        db.commit()
        return reconciliation
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.get("/{reconciliation_id}", response_model=ReconciliationResponse)
def get_reconciliation(reconciliation_id: int, db: Session = Depends(get_db)):
    service = ReconciliationService(db)
    try:
        return service.get_reconciliation(reconciliation_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post(
    "/{reconciliation_id}/resolve",
    response_model=ReconciliationResponse,
)
def resolve_reconciliation(
    reconciliation_id: int,
    request: ReconciliationResolve,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Resolve an open count.

    A non-zero variance posts a corrective adjustment in the
    same commit as the resolution.
    """
    service = ReconciliationService(db)
    try:
        reconciliation = service.resolve(
            reconciliation_id, request.resolution_notes, user_id
        )
        db.commit()
        return reconciliation
    except InventoryError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
