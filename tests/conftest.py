"""Shared test fixtures for FlipLedger."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure the package is importable without installation
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from flipledger.common.config import DelistSettings
from flipledger.common.models import Marketplace
from flipledger.delist.audit_log import AuditLogWriter
from flipledger.delist.matcher import LinkMatcher
from flipledger.delist.orchestrator import DelistOrchestrator, MarketplaceCredentials
from flipledger.delist.storage import DelistLogStore, LinkStore, SaleStore
from flipledger.marketplaces.base import DelistOutcome
from flipledger.marketplaces.dispatcher import DelistDispatcher

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
USER_ID = "user-1"


# ---------------------------------------------------------------------------
# In-memory stand-in for the supabase-py query builder
# ---------------------------------------------------------------------------

class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Supports the builder calls the storage adapters make."""

    def __init__(self, db: FakeSupabase, table: str):
        self._db = db
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._filters: list[tuple[str, object]] = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None
        self._payload = None
        self._on_conflict = ""

    def select(self, columns: str = "*"):
        self._op, self._columns = "select", columns
        return self

    def insert(self, data):
        self._op, self._payload = "insert", data
        return self

    def update(self, data):
        self._op, self._payload = "update", data
        return self

    def upsert(self, data, on_conflict: str = ""):
        self._op, self._payload, self._on_conflict = "upsert", data, on_conflict
        return self

    def eq(self, column: str, value):
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False):
        self._order = (column, desc)
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(col) == val for col, val in self._filters)

    def execute(self) -> FakeResponse:
        self._db.calls.append((self._table, self._op))
        if (self._table, self._op) in self._db.failures:
            raise RuntimeError(f"simulated {self._op} failure on {self._table}")

        rows = self._db.tables.setdefault(self._table, [])
        if self._op == "select":
            result = [dict(r) for r in rows if self._matches(r)]
            if self._order:
                col, desc = self._order
                result.sort(key=lambda r: (r.get(col) is None, r.get(col)), reverse=desc)
            if self._limit is not None:
                result = result[: self._limit]
            if self._columns != "*":
                cols = [c.strip() for c in self._columns.split(",")]
                result = [{c: r.get(c) for c in cols} for r in result]
            return FakeResponse(result)

        if self._op == "insert":
            row = self._db.stamp(self._table, dict(self._payload))
            rows.append(row)
            return FakeResponse([dict(row)])

        if self._op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self._payload)
                    updated.append(dict(row))
            return FakeResponse(updated)

        # upsert
        keys = [k.strip() for k in self._on_conflict.split(",") if k.strip()] or ["id"]
        for row in rows:
            if all(row.get(k) == self._payload.get(k) for k in keys):
                row.update(self._payload)
                return FakeResponse([dict(row)])
        row = self._db.stamp(self._table, dict(self._payload))
        rows.append(row)
        return FakeResponse([dict(row)])


class FakeSupabase:
    """Tables are plain lists of dicts; `failures` holds (table, op) pairs to break."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.failures: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str]] = []
        self._next_id = 1

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def stamp(self, table: str, row: dict) -> dict:
        if "id" not in row:
            row["id"] = str(self._next_id)
        if "created_at" not in row:
            row["created_at"] = (NOW + timedelta(seconds=self._next_id)).isoformat()
        self._next_id += 1
        return row

    def seed(self, table: str, *rows: dict) -> None:
        for row in rows:
            self.tables.setdefault(table, []).append(self.stamp(table, dict(row)))

    def rows(self, table: str) -> list[dict]:
        return self.tables.get(table, [])


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def clock():
    """Settable clock; call `clock.now = ...` to move time."""
    class Clock:
        now = NOW

        def __call__(self) -> datetime:
            return self.now

    return Clock()


@pytest.fixture
def credentials() -> MarketplaceCredentials:
    return MarketplaceCredentials(ebay="ebay-token", stockx="stockx-token")


@pytest.fixture
def dispatcher() -> MagicMock:
    """Dispatcher double that reports a clean removal by default."""
    mock = MagicMock(spec=DelistDispatcher)
    mock.delist.return_value = DelistOutcome(success=True)
    return mock


@pytest.fixture
def orchestrator(supabase, dispatcher, clock) -> DelistOrchestrator:
    links = LinkStore(supabase, clock=clock)
    return DelistOrchestrator(
        matcher=LinkMatcher(links),
        dispatcher=dispatcher,
        links=links,
        sales=SaleStore(supabase),
        audit_log=AuditLogWriter(DelistLogStore(supabase)),
        config=DelistSettings(),
    )


@pytest.fixture
def sample_sale_row() -> dict:
    """eBay sale of a Dunk Low, size 10."""
    return {
        "id": "sale-1",
        "user_id": USER_ID,
        "order_id": "12-34567-89012",
        "name": "Nike Dunk Low Retro White Black Panda",
        "sku": "DD1391-100",
        "size": "10",
        "platform": "eBay",
        "delist_processed": False,
    }


@pytest.fixture
def sample_link_row() -> dict:
    """Active cross-listing of the same Dunk Low on both marketplaces."""
    return {
        "id": "link-1",
        "user_id": USER_ID,
        "sku": "DD1391 100",
        "size": "10 US",
        "ebay_offer_id": "9876543210",
        "stockx_listing_id": "L-STOCKX-1",
        "status": "active",
    }


@pytest.fixture
def marketplaces() -> list[Marketplace]:
    return [Marketplace.EBAY, Marketplace.STOCKX]
