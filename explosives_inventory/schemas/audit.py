"""
Pydantic schemas for the audit log.
"""

from datetime import datetime

from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: int
    timestamp: datetime
    actor_user_id: str
    action: str
    entity: str
    entity_id: int | None
    details: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
