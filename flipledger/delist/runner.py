"""Scheduled delist run: lock, load sales, process one at a time, unlock.

Usage:
    runner = DelistRunner(orchestrator, locks, sales, credentials)
    summary = runner.run_all()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..common.logging import setup_logging
from ..common.models import DelistStatus, Marketplace
from .credentials import TokenCredentialProvider
from .locks import LockManager
from .orchestrator import DelistOrchestrator, MarketplaceCredentials
from .storage import SaleStore

logger = setup_logging(module_name="delist.runner")


@dataclass
class DelistCounts:
    processed: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0

    def add(self, status: DelistStatus) -> None:
        self.processed += 1
        if status is DelistStatus.SUCCESS:
            self.success += 1
        elif status in (DelistStatus.SKIPPED, DelistStatus.NOT_FOUND):
            self.skipped += 1
        else:
            self.failed += 1


@dataclass
class UserRunResult:
    user_id: str
    locked: bool = False
    missing_credentials: list[Marketplace] = field(default_factory=list)
    delists: DelistCounts = field(default_factory=DelistCounts)
    error: Optional[str] = None


@dataclass
class RunSummary:
    results: list[UserRunResult] = field(default_factory=list)

    @property
    def users_processed(self) -> int:
        return sum(1 for r in self.results if not r.locked and not r.error)

    @property
    def users_skipped(self) -> int:
        return sum(1 for r in self.results if r.locked)

    @property
    def users_errored(self) -> int:
        return sum(1 for r in self.results if r.error)

    @property
    def total_delists(self) -> int:
        return sum(r.delists.processed for r in self.results)

    @property
    def successful_delists(self) -> int:
        return sum(r.delists.success for r in self.results)

    def to_dict(self) -> dict:
        return {
            "users_processed": self.users_processed,
            "users_skipped": self.users_skipped,
            "users_errored": self.users_errored,
            "total_delists": self.total_delists,
            "successful_delists": self.successful_delists,
        }


class DelistRunner:
    """Runs the delist pipeline for each user holding marketplace tokens."""

    def __init__(
        self,
        orchestrator: DelistOrchestrator,
        locks: LockManager,
        sales: SaleStore,
        credentials: TokenCredentialProvider,
    ) -> None:
        self.orchestrator = orchestrator
        self.locks = locks
        self.sales = sales
        self.credentials = credentials

    def _load_credentials(
        self, user_id: str, marketplaces: list[Marketplace], result: UserRunResult
    ) -> MarketplaceCredentials:
        creds = MarketplaceCredentials()
        for marketplace in Marketplace:
            token = None
            if marketplace in marketplaces:
                fetched = self.credentials.get_valid_credential(user_id, marketplace)
                if fetched.success:
                    token = fetched.credential
                else:
                    logger.info("User %s: %s", user_id, fetched.error)
            if token is None:
                result.missing_credentials.append(marketplace)
            setattr(creds, marketplace.value, token)
        return creds

    def process_user(
        self, user_id: str, marketplaces: Optional[list[Marketplace]] = None
    ) -> UserRunResult:
        """Process all unprocessed sales of one user under the user lock."""
        marketplaces = list(Marketplace) if marketplaces is None else marketplaces
        result = UserRunResult(user_id=user_id)

        if not self.locks.acquire(user_id):
            result.locked = True
            return result

        try:
            creds = self._load_credentials(user_id, marketplaces, result)
            if not creds.complete:
                logger.info("User %s: both marketplaces required, skipping delists", user_id)
                return result

            pending = self.sales.list_unprocessed(user_id)
            if not pending.ok:
                result.error = str(pending.error)
                return result

            for sale in pending.unwrap_or([]):
                try:
                    outcome = self.orchestrator.process_sale(sale, creds)
                    result.delists.add(outcome.status)
                except Exception:
                    logger.exception("Sale %s failed unexpectedly", sale.id)
                    result.delists.add(DelistStatus.FAILED)
        finally:
            self.locks.release(user_id)

        logger.info(
            "User %s: %d processed, %d delisted, %d skipped, %d failed",
            user_id,
            result.delists.processed,
            result.delists.success,
            result.delists.skipped,
            result.delists.failed,
        )
        return result

    def run_all(self) -> RunSummary:
        """One scheduled pass over every user with stored tokens."""
        summary = RunSummary()
        users = self.credentials.list_users_with_tokens()
        if not users:
            logger.info("No users with tokens")
            return summary

        for user in users:
            try:
                summary.results.append(self.process_user(user.user_id, user.marketplaces))
            except Exception as e:
                logger.exception("Run failed for user %s", user.user_id)
                summary.results.append(UserRunResult(user_id=user.user_id, error=str(e)))
        return summary
