"""Shared test fixtures for the QuoteLedger backend test suite.

Tests run against a throwaway SQLite file by default; set TEST_DATABASE_URL
to run the same suite against PostgreSQL. Every test starts from empty
tables and an empty lock registry.
"""

import os
import tempfile

# Configure the app before any quoteledger import reads settings.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="quoteledger-tests-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite:///{_TEST_DB_DIR}/quoteledger_test.db",
)
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["ENVIRONMENT"] = "development"

import pytest
from fastapi.testclient import TestClient

from quoteledger.database import SessionLocal, get_db, init_db
from quoteledger.main import app
from quoteledger.models import Quote, QuoteItem, QuoteVersion
from quoteledger.services.locks import quote_locks

# Children first so foreign keys never block the cleanup.
_CLEAN_ORDER = [QuoteVersion, QuoteItem, Quote]


@pytest.fixture(scope="session", autouse=True)
def _create_tables():
    init_db()
    yield


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty all tables before each test.

    Runs before the test (not after) so a failing test leaves its data
    behind for debugging.
    """
    db = SessionLocal()
    try:
        for model in _CLEAN_ORDER:
            db.query(model).delete()
        db.commit()
    finally:
        db.close()
    quote_locks.clear()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
