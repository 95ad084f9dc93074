"""Tests for the audit trail helpers and middleware."""
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from siakad.core import audit
from siakad.core.audit import (
    AuditLogMiddleware,
    describe_action,
    determine_audit_type,
    determine_status,
    determine_target,
    sanitize,
    should_audit,
)
from siakad.models.audit_log import AuditLog


class TestAuditHelpers:

    @pytest.mark.parametrize("method, path, action", [
        ("POST", "/api/v1/rombels/register", "Created rombels register"),
        ("DELETE", "/api/v1/rombels/12", "Deleted rombels"),
        ("PUT", "/api/v1/academic-years/3", "Updated academic years"),
        ("POST", "/api/v1/graduates/5", "Created graduates"),
        ("GET", "/api/v1/promotion/class-levels", "Viewed promotion class levels"),
        ("OPTIONS", "/", "OPTIONS resource"),
    ])
    def test_describe_action(self, method, path, action):
        assert describe_action(method, path) == action

    @pytest.mark.parametrize("path, audit_type", [
        ("/api/v1/scores/totals", "grades"),
        ("/api/v1/graduates/5", "students"),
        ("/api/v1/students/5/withdraw", "students"),
        ("/api/v1/rombels/5/students", "rombels"),
        ("/api/v1/promotion/promote", "rombels"),
        ("/api/v1/academic-years", "system"),
    ])
    def test_determine_audit_type(self, path, audit_type):
        assert determine_audit_type(path) == audit_type

    @pytest.mark.parametrize("method, status", [
        ("POST", "created"),
        ("PUT", "changed"),
        ("DELETE", "deleted"),
        ("GET", "viewed"),
        ("OPTIONS", "completed"),
    ])
    def test_determine_status(self, method, status):
        assert determine_status(method, "/api/v1/rombels") == status

    def test_update_paths_are_changes(self):
        assert determine_status("POST", "/api/v1/students/update") == "changed"

    def test_determine_target(self):
        assert determine_target({"student_id": 5}) == "student_id: 5"
        assert determine_target({"rombel_id": "7"}) == "rombel_id: 7"
        assert determine_target({}) is None

    def test_sanitize_redacts_secrets(self):
        assert sanitize({"password": "rahasia", "name": "Budi"}) == {"password": "[REDACTED]", "name": "Budi"}
        assert sanitize({}) == {}
        assert sanitize(None) is None


class TestShouldAudit:

    def test_successful_mutation(self):
        assert should_audit("POST", "/api/v1/promotion/promote", 200) is True

    def test_failed_mutation(self):
        assert should_audit("POST", "/api/v1/promotion/promote", 409) is False

    def test_reads_are_skipped_by_default(self, monkeypatch):
        monkeypatch.setattr(audit.settings, "audit_include_reads", False)
        assert should_audit("GET", "/api/v1/rombels", 200) is False

    def test_reads_when_enabled(self, monkeypatch):
        monkeypatch.setattr(audit.settings, "audit_include_reads", True)
        assert should_audit("GET", "/api/v1/rombels", 200) is True

    def test_health_is_never_audited(self):
        assert should_audit("POST", "/health/", 200) is False

    def test_disabled(self, monkeypatch):
        monkeypatch.setattr(audit.settings, "audit_enabled", False)
        assert should_audit("DELETE", "/api/v1/rombels/1", 200) is False


def build_app(session_factory):
    app = FastAPI()
    app.add_middleware(AuditLogMiddleware, session_factory=session_factory)

    @app.post("/api/v1/rombels/{rombel_id}/students")
    async def add_students(rombel_id: int):
        return {"rombel_id": rombel_id, "added": 2}

    @app.post("/api/v1/rombels/{rombel_id}/fail")
    async def fail(rombel_id: int):
        from fastapi import HTTPException
        raise HTTPException(status_code=400, detail="nope")

    return app


def session_factory_for(session):
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


class TestAuditLogMiddleware:

    def test_records_successful_mutation(self):
        session = MagicMock()
        session.commit = AsyncMock()
        client = TestClient(build_app(session_factory_for(session)))

        response = client.post("/api/v1/rombels/4/students", headers={"X-User-Id": "operator-1"})

        assert response.status_code == 200
        entry = session.add.call_args.args[0]
        assert isinstance(entry, AuditLog)
        assert entry.audit_type == "rombels"
        assert entry.action == "Created rombels students"
        assert entry.status == "created"
        assert entry.user_id == "operator-1"
        assert entry.target == "rombel_id: 4"
        assert entry.request_metadata["method"] == "POST"
        session.commit.assert_awaited_once()

    def test_failed_request_is_not_recorded(self):
        session = MagicMock()
        session.commit = AsyncMock()
        client = TestClient(build_app(session_factory_for(session)))

        response = client.post("/api/v1/rombels/4/fail")

        assert response.status_code == 400
        session.add.assert_not_called()

    def test_audit_failure_does_not_break_response(self):
        session = MagicMock()
        session.commit = AsyncMock(side_effect=RuntimeError("audit table missing"))
        client = TestClient(build_app(session_factory_for(session)))

        response = client.post("/api/v1/rombels/4/students")

        assert response.status_code == 200
        assert response.json() == {"rombel_id": 4, "added": 2}
