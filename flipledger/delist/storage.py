"""Supabase storage adapters for the delist pipeline.

Each adapter wraps one table and returns a StorageResult instead of
raising, so callers decide whether a storage failure matters. The
Supabase client is passed in by the caller.

Usage:
    client = create_supabase_client()
    sales = SaleStore(client)
    result = sales.list_unprocessed(user_id)
    if result.ok:
        for sale in result.value: ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Optional, TypeVar

from ..common.config import (
    DELIST_LOG_TABLE,
    LINKS_TABLE,
    LOCKS_TABLE,
    SALES_TABLE,
    TOKENS_TABLE,
)
from ..common.models import (
    CrossListLink,
    DelistLogEntry,
    DelistStatus,
    LinkStatus,
    Lock,
    Marketplace,
    Sale,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageError(Exception):
    """A failed Supabase operation."""

    def __init__(self, operation: str, table: str, message: str) -> None:
        super().__init__(f"{operation} on {table} failed: {message}")
        self.operation = operation
        self.table = table
        self.message = message


@dataclass
class StorageResult(Generic[T]):
    """Value of a storage call, or the error that prevented it."""

    value: Optional[T] = None
    error: Optional[StorageError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok and self.value is not None else default


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _SupabaseTable:
    """Shared plumbing: run a query, capture any exception as StorageError."""

    TABLE: str

    def __init__(self, client: Any) -> None:
        self._client = client

    def _table(self):
        return self._client.table(self.TABLE)

    def _run(self, operation: str, fn: Callable[[], T]) -> StorageResult[T]:
        try:
            return StorageResult(value=fn())
        except Exception as e:
            error = StorageError(operation, self.TABLE, str(e))
            logger.warning("%s", error)
            return StorageResult(error=error)


class SaleStore(_SupabaseTable):
    """Sales awaiting delist processing (`pending_costs`)."""

    TABLE = SALES_TABLE

    def list_unprocessed(self, user_id: str) -> StorageResult[list[Sale]]:
        """Unprocessed sales for a user, oldest first."""
        def query() -> list[Sale]:
            response = (
                self._table()
                .select("*")
                .eq("user_id", user_id)
                .eq("delist_processed", False)
                .order("created_at", desc=False)
                .execute()
            )
            return [Sale(**row) for row in response.data or []]

        return self._run("list_unprocessed", query)

    def mark_processed(self, sale_id: str) -> StorageResult[None]:
        def query() -> None:
            self._table().update({"delist_processed": True}).eq("id", sale_id).execute()

        return self._run("mark_processed", query)


class LinkStore(_SupabaseTable):
    """Cross-listing links (`cross_list_links`)."""

    TABLE = LINKS_TABLE

    def __init__(self, client: Any, clock: Callable[[], datetime] = utc_now) -> None:
        super().__init__(client)
        self._clock = clock

    def list_active(self, user_id: str) -> StorageResult[list[CrossListLink]]:
        def query() -> list[CrossListLink]:
            response = (
                self._table()
                .select("*")
                .eq("user_id", user_id)
                .eq("status", LinkStatus.ACTIVE.value)
                .execute()
            )
            return [CrossListLink(**row) for row in response.data or []]

        return self._run("list_active", query)

    def mark_sold(self, link_id: str, sold_on: Marketplace) -> StorageResult[None]:
        """Transition a link from active to sold."""
        now = self._clock().isoformat()

        def query() -> None:
            self._table().update({
                "status": LinkStatus.SOLD.value,
                "sold_on": sold_on.value,
                "sold_at": now,
                "updated_at": now,
            }).eq("id", link_id).execute()

        return self._run("mark_sold", query)


class DelistLogStore(_SupabaseTable):
    """Append-only delist audit trail (`delist_log`)."""

    TABLE = DELIST_LOG_TABLE

    def append(self, entry: DelistLogEntry) -> StorageResult[None]:
        def query() -> None:
            self._table().insert(entry.to_row()).execute()

        return self._run("append", query)

    def query(
        self,
        user_id: str,
        limit: int,
        status: Optional[DelistStatus] = None,
    ) -> StorageResult[list[DelistLogEntry]]:
        """Entries for a user, newest first."""
        def run() -> list[DelistLogEntry]:
            builder = self._table().select("*").eq("user_id", user_id)
            if status is not None:
                builder = builder.eq("status", status.value)
            response = builder.order("created_at", desc=True).limit(limit).execute()
            return [DelistLogEntry(**row) for row in response.data or []]

        return self._run("query", run)


class LockStore(_SupabaseTable):
    """One lock row per user (`auto_delist_locks`)."""

    TABLE = LOCKS_TABLE

    def get(self, user_id: str) -> StorageResult[Optional[Lock]]:
        def query() -> Optional[Lock]:
            response = (
                self._table()
                .select("*")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
            rows = response.data or []
            return Lock(**rows[0]) if rows else None

        return self._run("get", query)

    def upsert(self, lock: Lock) -> StorageResult[None]:
        def query() -> None:
            self._table().upsert(
                lock.model_dump(mode="json"), on_conflict="user_id"
            ).execute()

        return self._run("upsert", query)

    def set_locked_until(self, user_id: str, locked_until: datetime) -> StorageResult[None]:
        def query() -> None:
            self._table().update(
                {"locked_until": locked_until.isoformat()}
            ).eq("user_id", user_id).execute()

        return self._run("set_locked_until", query)


class TokenStore(_SupabaseTable):
    """Stored marketplace OAuth tokens (`user_tokens`)."""

    TABLE = TOKENS_TABLE

    def get(self, user_id: str, marketplace: Marketplace) -> StorageResult[Optional[dict]]:
        def query() -> Optional[dict]:
            response = (
                self._table()
                .select("*")
                .eq("user_id", user_id)
                .eq("platform", marketplace.value)
                .limit(1)
                .execute()
            )
            rows = response.data or []
            return rows[0] if rows else None

        return self._run("get", query)

    def update_tokens(
        self, user_id: str, marketplace: Marketplace, fields: dict
    ) -> StorageResult[None]:
        """Persist a refreshed access token (and rotated refresh token)."""
        def query() -> None:
            (
                self._table()
                .update(fields)
                .eq("user_id", user_id)
                .eq("platform", marketplace.value)
                .execute()
            )

        return self._run("update_tokens", query)

    def list_user_platforms(self) -> StorageResult[list[dict]]:
        def query() -> list[dict]:
            response = (
                self._table()
                .select("user_id, platform")
                .order("user_id")
                .execute()
            )
            return list(response.data or [])

        return self._run("list_user_platforms", query)
