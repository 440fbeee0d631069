"""
Tests for the health check endpoint.
"""

from fastapi.testclient import TestClient
from sqlalchemy import inspect

import group_ledger.main
from group_ledger.main import app
from group_ledger.models import Base


def test_health_check_returns_200(client):
    """If this fails, no other endpoint will work either."""
    response = client.get("/health")
    assert response.status_code == 200


def test_health_check_returns_service_name(client):
    response = client.get("/health")
    data = response.json()
    assert data["service"] == "group-ledger"


def test_health_check_reports_database_status(client):
    """
    The test database is reachable, so the service reports
    itself healthy.
    """
    response = client.get("/health")
    data = response.json()
    assert data["database"] == "healthy"
    assert data["status"] == "healthy"


def test_startup_creates_tables(client, db_session, monkeypatch):
    """Entering the client runs the app's startup, which builds the schema."""
    engine = db_session.get_bind()
    Base.metadata.drop_all(bind=engine)
    monkeypatch.setattr(group_ledger.main, "engine", engine)

    with TestClient(app) as started:
        assert started.get("/health").status_code == 200
    assert {"expenses", "expense_splits", "settlements"} <= set(
        inspect(engine).get_table_names()
    )
