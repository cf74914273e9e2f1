"""Tests for the audit log."""

from datetime import timedelta
from unittest.mock import MagicMock

from modules.audit.interfaces import IAuditLog
from modules.audit.service import AuditLog, SupabaseAuditLog, record_safely
from tests.conftest import T0


class TestAuditLog:
    def test_satisfies_interface(self):
        assert isinstance(AuditLog(), IAuditLog)

    def test_record(self):
        log = AuditLog()
        entry = log.record("admin-1", "code.generated", target="TENURE-AAAA", details={"n": 1}, timestamp=T0)

        assert entry.actor == "admin-1"
        assert entry.timestamp == T0
        assert entry.details == {"n": 1}

    def test_newest_first_with_filters(self):
        log = AuditLog()
        log.record("admin-1", "code.generated", target="A", timestamp=T0)
        log.record("user-1", "code.redeemed", target="A", timestamp=T0 + timedelta(minutes=1))
        log.record("admin-1", "code.revoked", target="B", timestamp=T0 + timedelta(minutes=2))

        assert [e.action for e in log.list_entries()] == ["code.revoked", "code.redeemed", "code.generated"]
        assert [e.action for e in log.list_entries(actor="admin-1")] == ["code.revoked", "code.generated"]
        assert [e.actor for e in log.list_entries(target="A", action="code.redeemed")] == ["user-1"]

    def test_pagination(self):
        log = AuditLog()
        for i in range(5):
            log.record("system", f"tick.{i}")
        assert [e.action for e in log.list_entries(limit=2, offset=1)] == ["tick.3", "tick.2"]


class TestRecordSafely:
    def test_returns_entry(self):
        log = AuditLog()
        entry = record_safely(log, "user-1", "payment.created", target="pay-1")
        assert entry is not None
        assert log.list_entries()[0].id == entry.id

    def test_swallows_and_logs_write_failures(self, caplog):
        log = MagicMock()
        log.record.side_effect = RuntimeError("audit table unavailable")

        assert record_safely(log, "user-1", "payment.completed", target="pay-1") is None
        assert "Failed to write audit entry payment.completed" in caplog.text


class TestSupabaseAuditLog:
    def _db(self, data):
        db = MagicMock()
        table = db.table.return_value
        for method in ("select", "eq", "insert", "order", "range"):
            getattr(table, method).return_value = table
        table.execute.return_value.data = data
        return db, table

    def test_record_inserts_row(self):
        db, table = self._db([])
        SupabaseAuditLog(db).record("admin-1", "admin.authenticated", target="sess-1", timestamp=T0)

        db.table.assert_called_with("audit_log")
        row = table.insert.call_args[0][0]
        assert row["action"] == "admin.authenticated"
        assert row["timestamp"] == T0.isoformat()

    def test_list_entries_orders_newest_first(self):
        db, table = self._db([{
            "id": "e-1",
            "actor": "admin-1",
            "action": "code.revoked",
            "target": "X",
            "timestamp": "2025-01-15T12:00:00+00:00",
            "details": None,
        }])

        entries = SupabaseAuditLog(db).list_entries(actor="admin-1", limit=10)

        table.order.assert_called_with("timestamp", desc=True)
        table.range.assert_called_with(0, 9)
        assert entries[0].timestamp == T0
        assert entries[0].details == {}
