"""
Tests for the audit log service
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from example_module.models import AuditEntry
from example_module.services.audit_service import ACTION_SUBMISSION, AuditService, validate_details


class TestValidateDetails:
    def test_accepts_json_data(self):
        validate_details({"a": [1, 2], "b": None})
        validate_details(None)

    def test_rejects_unserializable_data(self):
        with pytest.raises(ValueError, match="JSON-serializable"):
            validate_details({"when": datetime.now()})


class TestAuditService:
    async def test_record_returns_id(self, db):
        entry_id = await AuditService(db).record(
            ACTION_SUBMISSION, entity_type="content", entity_id=1, ip_address="10.0.0.1", data={"k": "v"}
        )
        assert isinstance(entry_id, int)

        latest = await AuditService(db).latest(ACTION_SUBMISSION)
        assert latest.id == entry_id
        assert latest.data == {"k": "v"}

    async def test_count_recent_by_ip(self, db):
        audit = AuditService(db)
        for _ in range(3):
            await audit.record(ACTION_SUBMISSION, ip_address="10.0.0.1")
        await audit.record(ACTION_SUBMISSION, ip_address="10.0.0.2")
        await audit.record("other", ip_address="10.0.0.1")

        assert await audit.count_recent_by_ip(ACTION_SUBMISSION, "10.0.0.1", 3600) == 3
        assert await audit.count_recent_by_ip(ACTION_SUBMISSION, "10.0.0.2", 3600) == 1

    async def test_count_ignores_entries_outside_window(self, db):
        audit = AuditService(db)
        entry_id = await audit.record(ACTION_SUBMISSION, ip_address="10.0.0.1")
        await db.execute(
            update(AuditEntry)
            .where(AuditEntry.id == entry_id)
            .values(created_at=datetime.now(timezone.utc) - timedelta(hours=2))
        )
        await db.commit()

        assert await audit.count_recent_by_ip(ACTION_SUBMISSION, "10.0.0.1", 3600) == 0

    async def test_list_recent(self, db):
        audit = AuditService(db)
        first = await audit.record("a")
        second = await audit.record("b")
        entries = await audit.list_recent(limit=1)
        assert [entry.id for entry in entries] == [second]
        assert first != second

    async def test_latest_without_entries(self, db):
        assert await AuditService(db).latest("never") is None
