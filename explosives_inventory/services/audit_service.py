"""
Audit service — best-effort audit trail of core mutations.

Services call record() while they work. Events are queued on
the session and written only after the caller commits, through
a separate session. A failure to write the audit trail is
logged and never rolls back, or blocks, the action it describes.
Queued events are dropped if the caller rolls back, so the log
never describes a change that did not happen.
"""

import json
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import event, select
from sqlalchemy.orm import Session

from explosives_inventory.models.audit_log import AuditLog

logger = logging.getLogger(__name__)

PENDING_AUDIT_KEY = "pending_audit_events"


class AuditService:

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        actor_user_id: str,
        action: str,
        entity: str,
        entity_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Queue an audit event for the current transaction."""
        self.db.info.setdefault(PENDING_AUDIT_KEY, []).append({
            "timestamp": datetime.utcnow(),
            "actor_user_id": actor_user_id,
            "action": action,
            "entity": entity,
            "entity_id": entity_id,
            "details": details,
        })

    def list_events(
        self,
        entity: str | None = None,
        entity_id: int | None = None,
        actor_user_id: str | None = None,
        limit: int = 100,
    ) -> list[AuditLog]:
        """Return audit events, newest first."""
        query = select(AuditLog)
        if entity is not None:
            query = query.where(AuditLog.entity == entity)
        if entity_id is not None:
            query = query.where(AuditLog.entity_id == entity_id)
        if actor_user_id is not None:
            query = query.where(AuditLog.actor_user_id == actor_user_id)
        query = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        return list(self.db.execute(query.limit(limit)).scalars().all())


def write_audit_events(bind, events: list[dict[str, Any]]) -> None:
    """Persist queued events in their own short transaction."""
    with Session(bind=bind) as audit_db:
        audit_db.add_all([
            AuditLog(
                timestamp=e["timestamp"],
                actor_user_id=e["actor_user_id"],
                action=e["action"],
                entity=e["entity"],
                entity_id=e["entity_id"],
                details=(
                    json.dumps(e["details"], default=str)
                    if e["details"] is not None else None
                ),
            )
            for e in events
        ])
        audit_db.commit()


@event.listens_for(Session, "after_commit")
def _flush_audit_events(session: Session) -> None:
    events = session.info.pop(PENDING_AUDIT_KEY, None)
    if not events:
        return
    try:
        write_audit_events(session.get_bind(), events)
    except Exception:
        logger.warning(
            "Failed to write %d audit event(s); the audited action was kept",
            len(events),
            exc_info=True,
        )


@event.listens_for(Session, "after_rollback")
def _discard_audit_events(session: Session) -> None:
    session.info.pop(PENDING_AUDIT_KEY, None)
