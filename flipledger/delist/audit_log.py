"""Delist audit trail: fire-and-forget writer and the history read path."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..common.config import DelistSettings
from ..common.models import DelistLogEntry, DelistStatus
from .storage import DelistLogStore

logger = logging.getLogger(__name__)


class AuditLogWriter:
    """Appends one DelistLogEntry per delist attempt. Never raises."""

    def __init__(self, store: DelistLogStore) -> None:
        self._store = store

    def append(self, entry: DelistLogEntry) -> bool:
        result = self._store.append(entry)
        if not result.ok:
            logger.error(
                "Delist log entry lost for order %s (%s): %s",
                entry.sale_order_id, entry.status.value, result.error,
            )
            return False
        return True


@dataclass
class HistorySummary:
    """Per-status counts over a page of history."""

    total: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0
    not_found: int = 0

    @classmethod
    def from_entries(cls, entries: list[DelistLogEntry]) -> HistorySummary:
        counts = {status: 0 for status in DelistStatus}
        for entry in entries:
            counts[entry.status] += 1
        return cls(
            total=len(entries),
            success=counts[DelistStatus.SUCCESS],
            failed=counts[DelistStatus.FAILED],
            skipped=counts[DelistStatus.SKIPPED],
            not_found=counts[DelistStatus.NOT_FOUND],
        )


@dataclass
class HistoryPage:
    logs: list[DelistLogEntry] = field(default_factory=list)
    summary: HistorySummary = field(default_factory=HistorySummary)


class DelistHistory:
    """Human-facing view of a user's delist log."""

    def __init__(self, store: DelistLogStore, config: DelistSettings | None = None) -> None:
        self._store = store
        self.config = config or DelistSettings()

    def clamp_limit(self, limit: Optional[int]) -> int:
        if not limit or limit < 1:
            return self.config.history_default_limit
        return min(limit, self.config.history_max_limit)

    def query(
        self,
        user_id: str,
        limit: Optional[int] = None,
        status: Optional[str] = None,
    ) -> HistoryPage:
        """Newest-first entries for a user, optionally filtered by status.

        Unknown status values are ignored rather than rejected.

        Raises:
            StorageError: If the log cannot be read.
        """
        status_filter = None
        if status:
            try:
                status_filter = DelistStatus(status)
            except ValueError:
                logger.debug("Ignoring unknown status filter %r", status)

        result = self._store.query(user_id, self.clamp_limit(limit), status_filter)
        if not result.ok:
            raise result.error
        entries = result.unwrap_or([])
        return HistoryPage(logs=entries, summary=HistorySummary.from_entries(entries))
