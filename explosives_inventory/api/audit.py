"""
Audit log API endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from explosives_inventory.models.base import get_db
from explosives_inventory.services.audit_service import AuditService
from explosives_inventory.schemas.audit import AuditLogResponse

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=list[AuditLogResponse])
def list_audit_logs(
    entity: str | None = None,
    entity_id: int | None = None,
    actor_user_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Audit events, newest first."""
    return AuditService(db).list_events(
        entity=entity,
        entity_id=entity_id,
        actor_user_id=actor_user_id,
        limit=limit,
    )
