"""
Shared test fixtures.

Every test runs against a throwaway SQLite file, recreated
from the models for each test, so no test sees another's
expenses or settlements.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from group_ledger.main import app
from group_ledger.models import Base
from group_ledger.models.base import get_db


TEST_DATABASE_URL = "sqlite:///./test_group_ledger.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """A session for calling services directly."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    HTTP client whose requests share db_session.

    Endpoints commit through the same session the test can
    inspect afterwards.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
