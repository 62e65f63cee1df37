from __future__ import annotations

import sqlite3
from pathlib import Path
from types import SimpleNamespace
from uuid import UUID

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from starlette.requests import Request

from stitchup.core import startup_checks
from stitchup.deps import get_current_user, require_role

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def _build_request(headers: list[tuple[bytes, bytes]] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/resource",
        "query_string": b"",
        "headers": headers or [],
        "path_params": {},
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


def test_request_id_is_returned_in_response_header(monkeypatch):
    from stitchup import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        response = client.get("/health")
        echoed = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 200
    request_id = response.headers.get("X-Request-ID")
    assert request_id
    UUID(request_id)
    assert echoed.headers.get("X-Request-ID") == "req-123"


def test_cors_allows_known_origin_and_blocks_unknown_origin(monkeypatch):
    from stitchup import main
    from stitchup.core.config import CORS_ORIGINS

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)
    if not CORS_ORIGINS:
        pytest.skip("no CORS origins configured")

    allowed_origin = CORS_ORIGINS[0]
    blocked_origin = "https://blocked-origin.example"

    with TestClient(main.app) as client:
        allowed_response = client.options(
            "/health",
            headers={"origin": allowed_origin, "access-control-request-method": "GET"},
        )
        blocked_response = client.options(
            "/health",
            headers={"origin": blocked_origin, "access-control-request-method": "GET"},
        )

    assert allowed_response.status_code == 200
    assert allowed_response.headers.get("access-control-allow-origin") == allowed_origin
    assert blocked_response.status_code == 400
    assert blocked_response.headers.get("access-control-allow-origin") is None


def test_production_environment_rejects_sqlite(monkeypatch):
    monkeypatch.setattr(startup_checks, "IS_PROD", True)
    monkeypatch.setattr(startup_checks, "DATABASE_URL", "sqlite:///./forbidden.db")

    with pytest.raises(RuntimeError, match="SQLite is forbidden"):
        startup_checks.validate_database_environment()


def test_migration_check_fails_when_pending_migration(tmp_path: Path, monkeypatch):
    db_path = tmp_path / "pending.db"
    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE alembic_version (version_num VARCHAR(32) NOT NULL)")
    conn.execute("INSERT INTO alembic_version (version_num) VALUES ('000000000000')")
    conn.commit()
    conn.close()

    from sqlalchemy import create_engine

    monkeypatch.setattr(startup_checks, "IS_TEST", False)
    monkeypatch.setattr(startup_checks, "IS_DEV", False)
    engine = create_engine(f"sqlite:///{db_path}")

    with pytest.raises(RuntimeError, match="Pending migrations"):
        startup_checks.ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_INI)


def test_auto_apply_can_be_disabled(monkeypatch):
    monkeypatch.setattr(startup_checks, "AUTO_APPLY_MIGRATIONS", "off")

    def _fail(*args, **kwargs):
        raise AssertionError("alembic must not run")

    monkeypatch.setattr(startup_checks.subprocess, "run", _fail)

    startup_checks.apply_migrations(alembic_config_path=ALEMBIC_INI)


def test_auto_apply_runs_alembic_upgrade(monkeypatch):
    monkeypatch.setattr(startup_checks, "AUTO_APPLY_MIGRATIONS", "1")
    calls = []
    monkeypatch.setattr(startup_checks.subprocess, "run", lambda args, **kwargs: calls.append(args))

    startup_checks.apply_migrations(alembic_config_path=ALEMBIC_INI)

    assert calls and calls[0][-2:] == ["upgrade", "head"]


def test_401_and_403_errors_are_standardized_messages():
    request = _build_request()

    with pytest.raises(HTTPException) as exc401:
        get_current_user(request=request, credentials=None, db=SimpleNamespace(get=lambda *_: None))

    assert exc401.value.status_code == 401
    assert exc401.value.detail == "Invalid or expired token"

    customer = SimpleNamespace(id="cust-1", role="customer")
    with pytest.raises(HTTPException) as exc403:
        require_role("tailor")(user=customer)

    assert exc403.value.status_code == 403
    assert isinstance(exc403.value.detail, str)


def test_rejected_write_after_rollback_still_logs_the_caller(api_client, session_factory, caplog):
    from tests.fixtures_data import ACCEPT_HEMMING, CUSTOMER, TAILOR, auth_headers, make_user

    db = session_factory()
    make_user(db, CUSTOMER)
    make_user(db, TAILOR)
    db.close()
    customer_headers, tailor_headers = auth_headers("cust-1"), auth_headers("tail-1")

    api_client.post("/api/enquiries/tail-1/messages", json={"type": "plain", "text": "Hi"}, headers=customer_headers)
    api_client.post("/api/enquiries/cust-1/accept", json=ACCEPT_HEMMING, headers=tailor_headers)

    caplog.set_level("INFO", logger="stitchup.middleware.observability")
    response = api_client.post(
        "/api/enquiries/cust-1/pricing",
        json={"service": "Hemming", "price": 100},
        headers=tailor_headers,
    )

    assert response.status_code == 409
    assert response.headers.get("X-Request-ID")
    completed = [r for r in caplog.records if r.getMessage() == "request completed"]
    assert completed[-1].user_id == "tail-1"
    assert completed[-1].status_code == 409
