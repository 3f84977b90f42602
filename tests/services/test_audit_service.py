"""
Tests for the audit trail.

Events are written only after a commit, never after a rollback,
and a failure to write them never undoes the audited change.
"""

import json
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from explosives_inventory.schemas.magazine import MagazineCreate, MagazineUpdate
from explosives_inventory.services import audit_service
from explosives_inventory.services.audit_service import AuditService
from explosives_inventory.services.magazine_service import MagazineService

from conftest import TEST_USER, make_magazine


class TestAuditTrail:

    def test_commit_writes_event(self, db_session):
        magazine = make_magazine(db_session, "MAG-001")

        events = AuditService(db_session).list_events(entity="Magazine")
        assert len(events) == 1
        assert events[0].action == "magazine.create"
        assert events[0].actor_user_id == TEST_USER
        assert events[0].entity_id == magazine.id
        assert json.loads(events[0].details) == {"code": "MAG-001"}

    def test_rollback_discards_event(self, db_session):
        service = MagazineService(db_session)
        service.create_magazine(MagazineCreate(
            code="MAG-001",
            name="Magazine 1",
            location="North Quarry",
            max_net_explosive_weight_kg=Decimal("100"),
        ), TEST_USER)
        db_session.rollback()

        assert service.list_magazines() == []
        assert AuditService(db_session).list_events() == []

    def test_filters_by_actor(self, db_session):
        service = AuditService(db_session)
        service.list_events()
        service.record("alice", "product.archive", "Product", 1)
        service.record("bob", "product.archive", "Product", 2)
        db_session.commit()

        events = service.list_events(actor_user_id="bob")
        assert [e.entity_id for e in events] == [2]

    def test_decimal_details_serialized(self, db_session):
        magazine = make_magazine(db_session, "MAG-001")
        MagazineService(db_session).update_magazine(
            magazine.id,
            MagazineUpdate(max_net_explosive_weight_kg=Decimal("750")),
            TEST_USER,
        )
        db_session.commit()

        event = AuditService(db_session).list_events(entity="Magazine")[0]
        assert event.action == "magazine.update"
        assert json.loads(event.details) == {
            "max_net_explosive_weight_kg": "750"
        }

    def test_write_failure_keeps_change(self, db_session, monkeypatch, caplog):
        def failing_write(bind, events):
            raise OperationalError(
                "INSERT INTO audit_logs", {}, Exception("disk full")
            )

        monkeypatch.setattr(audit_service, "write_audit_events", failing_write)

        magazine = make_magazine(db_session, "MAG-001")

        assert MagazineService(db_session).get_magazine(magazine.id).code == "MAG-001"
        assert AuditService(db_session).list_events() == []
        assert "Failed to write 1 audit event" in caplog.text

    def test_unexpected_write_error_keeps_change(
        self, db_session, monkeypatch, caplog
    ):
        def failing_write(bind, events):
            raise RuntimeError("audit store unavailable")

        monkeypatch.setattr(audit_service, "write_audit_events", failing_write)

        magazine = make_magazine(db_session, "MAG-001")

        assert MagazineService(db_session).get_magazine(magazine.id).code == "MAG-001"
        assert "Failed to write 1 audit event" in caplog.text
