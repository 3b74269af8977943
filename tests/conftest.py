"""
Shared test fixtures.

The database is replaced by FakePostgres: an in-memory products table
that understands the handful of statements the repository issues.
"""

import sys
from pathlib import Path

# Add project directory to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from contextlib import contextmanager
from unittest.mock import MagicMock, patch
from typing import Generator, Optional

import psycopg

# ===================
# FAKE POSTGRES
# ===================

class FakeCursor:
    """Result of FakeConnection.execute()."""

    def __init__(self, rows: list = None, rowcount: int = -1):
        self._rows = rows or []
        self.rowcount = rowcount

    def fetchall(self) -> list:
        return list(self._rows)

    def fetchone(self) -> Optional[dict]:
        return self._rows[0] if self._rows else None


class FakeConnection:
    """Mock psycopg connection bound to a FakePostgres."""

    def __init__(self, db: "FakePostgres"):
        self._db = db
        self.closed = False

    def execute(self, query: str, params=None) -> FakeCursor:
        return self._db.execute(query, params)

    @contextmanager
    def transaction(self):
        db = self._db
        snapshot = dict(db.rows)
        db.transactions += 1
        try:
            yield
        except BaseException:
            db.rows = snapshot
            db.rollbacks += 1
            raise
        if db.fail_commit:
            db.rows = snapshot
            db.rollbacks += 1
            raise psycopg.OperationalError("server closed the connection unexpectedly")

    def close(self):
        self.closed = True
        self._db.closed_connections += 1


class FakePostgres:
    """
    In-memory products table.

    Usage:
        def test_something(mock_db, fake_pg):
            fake_pg.seed(1, [ProductRecordFactory.create(offer_id=5)])
            fake_pg.fail_on = "DELETE"   # next DELETE raises
    """

    def __init__(self):
        self.rows: dict[tuple[int, int], dict] = {}
        self.executed: list[tuple[str, object]] = []
        self.fail_on: Optional[str] = None
        self.fail_connect = False
        self.fail_commit = False
        self.transactions = 0
        self.rollbacks = 0
        self.opened_connections = 0
        self.closed_connections = 0

    def seed(self, seller_id: int, records: list):
        """Store records for a seller."""
        for r in records:
            self.rows[(seller_id, r.offer_id)] = {
                "seller_id": seller_id,
                "offer_id": r.offer_id,
                "name": r.name,
                "price": r.price,
                "quantity": r.quantity,
            }

    def product(self, seller_id: int, offer_id: int) -> Optional[dict]:
        return self.rows.get((seller_id, offer_id))

    def statements(self, prefix: str) -> list:
        """Executed statements starting with prefix."""
        return [(q, p) for q, p in self.executed if q.startswith(prefix)]

    def connect(self) -> FakeConnection:
        if self.fail_connect:
            raise psycopg.OperationalError("connection refused")
        self.opened_connections += 1
        return FakeConnection(self)

    def execute(self, query: str, params=None) -> FakeCursor:
        q = " ".join(query.split())
        self.executed.append((q, params))

        if self.fail_on and self.fail_on in q:
            raise psycopg.errors.QueryCanceled("canceling statement due to statement timeout")

        if q.startswith("SELECT set_config"):
            return FakeCursor([{"set_config": params[0]}], 1)

        if q.startswith("CREATE TABLE"):
            return FakeCursor()

        if q.startswith("SELECT count(*)"):
            return FakeCursor([{"total": len(self.rows)}], 1)

        if q.startswith("SELECT offer_id FROM products"):
            seller_id = params[0]
            ids = sorted(o for s, o in self.rows if s == seller_id)
            return FakeCursor([{"offer_id": o} for o in ids], len(ids))

        if q.startswith("SELECT seller_id"):
            return self._select(q, list(params))

        if q.startswith("INSERT INTO products"):
            seller_id, offer_ids, names, prices, quantities = params
            for offer_id, name, price, quantity in zip(offer_ids, names, prices, quantities):
                self.rows[(seller_id, offer_id)] = {
                    "seller_id": seller_id,
                    "offer_id": offer_id,
                    "name": name,
                    "price": price,
                    "quantity": quantity,
                }
            return FakeCursor(rowcount=len(offer_ids))

        if q.startswith("DELETE FROM products"):
            seller_id, offer_ids = params
            deleted = 0
            for offer_id in offer_ids:
                if self.rows.pop((seller_id, offer_id), None) is not None:
                    deleted += 1
            return FakeCursor(rowcount=deleted)

        raise AssertionError(f"Unexpected statement: {q}")

    def _select(self, q: str, params: list) -> FakeCursor:
        limit = params.pop()
        rows = sorted(self.rows.values(), key=lambda r: (r["seller_id"], r["offer_id"]))

        if "seller_id = ANY" in q:
            seller_ids = params.pop(0)
            rows = [r for r in rows if r["seller_id"] in seller_ids]
        if "offer_id = ANY" in q:
            offer_ids = params.pop(0)
            rows = [r for r in rows if r["offer_id"] in offer_ids]
        if "name LIKE" in q:
            pattern = params.pop(0)
            rows = [r for r in rows if pattern.strip("%") in r["name"]]

        rows = rows[:limit]
        return FakeCursor(rows, len(rows))


# ===================
# FIXTURES
# ===================

@pytest.fixture
def fake_pg() -> FakePostgres:
    """Create an empty in-memory database."""
    return FakePostgres()


@pytest.fixture
def mock_db(fake_pg) -> Generator:
    """
    Patch database connections with the fake.

    Cached service singletons are reset so they pick up the patch.

    Usage:
        def test_something(mock_db, fake_pg):
            fake_pg.seed(1, [...])
            # Now any code using get_connection() gets the fake
    """
    with patch("config.database.get_connection", side_effect=fake_pg.connect):
        with patch("services.catalog_repository._catalog_repository", None):
            with patch("services.catalog_service._catalog_service", None):
                yield fake_pg


@pytest.fixture
def mock_downloader() -> Generator:
    """
    Patch the spreadsheet downloader used by the routes.

    Usage:
        def test_upload(mock_downloader):
            mock_downloader.fetch.return_value = build_catalog_sheet([...])
    """
    downloader = MagicMock()
    with patch("routes.catalog.get_table_downloader", return_value=downloader):
        yield downloader


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)


@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with the fake database.

    Usage:
        def test_endpoint(test_client_with_mock_db, fake_pg):
            fake_pg.seed(1, [...])
            response = test_client_with_mock_db.get("/api/catalog")
    """
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)
