"""Delist orchestrator: remove the other marketplace's listing after a sale.

Per sale:
1. Resolve the selling marketplace (unknown platform -> skipped)
2. Find the unique active cross-listing link (LinkMatcher)
3. Delist the link's listing on the other marketplace (DelistDispatcher)
4. On success only, mark the link sold
5. Append one audit log entry
6. Mark the sale processed

Storage side effects in steps 4-6 are best effort: a failed write is
logged and the sale still moves on, so one broken row cannot stall the
rest of the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..common.config import DelistSettings
from ..common.models import DelistLogEntry, DelistStatus, Marketplace, Sale
from ..marketplaces.base import DelistOutcome
from ..marketplaces.dispatcher import DelistDispatcher
from .audit_log import AuditLogWriter
from .matcher import LinkMatch, LinkMatcher
from .storage import LinkStore, SaleStore

logger = logging.getLogger(__name__)

UNKNOWN_PLATFORM = "unknown_platform"


@dataclass
class MarketplaceCredentials:
    """Access tokens for both marketplaces, as handed out for one run."""

    ebay: Optional[str] = None
    stockx: Optional[str] = None

    def for_marketplace(self, marketplace: Marketplace) -> Optional[str]:
        return self.ebay if marketplace is Marketplace.EBAY else self.stockx

    @property
    def complete(self) -> bool:
        return bool(self.ebay and self.stockx)


@dataclass
class SaleDelistResult:
    """What happened to one sale; feeds run-level counts only."""

    status: DelistStatus
    sold_on: Optional[Marketplace] = None
    delisted_from: Optional[Marketplace] = None
    listing_id: Optional[str] = None
    error: Optional[str] = None
    reason: Optional[str] = None
    marked_processed: bool = False


def derive_status(outcome: DelistOutcome) -> DelistStatus:
    """Single log status for a dispatch outcome."""
    if outcome.success:
        return DelistStatus.SUCCESS
    if outcome.not_found or outcome.already_removed:
        return DelistStatus.NOT_FOUND
    return DelistStatus.FAILED


class DelistOrchestrator:
    """Runs the match -> dispatch -> record -> mark pipeline for one sale."""

    def __init__(
        self,
        matcher: LinkMatcher,
        dispatcher: DelistDispatcher,
        links: LinkStore,
        sales: SaleStore,
        audit_log: AuditLogWriter,
        config: DelistSettings | None = None,
    ) -> None:
        self.matcher = matcher
        self.dispatcher = dispatcher
        self.links = links
        self.sales = sales
        self.audit_log = audit_log
        self.config = config or DelistSettings()

    def process_sale(self, sale: Sale, credentials: MarketplaceCredentials) -> SaleDelistResult:
        """Delist the cross-listed duplicate of a sold item.

        Args:
            sale: Unprocessed sale row.
            credentials: Tokens for both marketplaces.

        Returns:
            SaleDelistResult describing the terminal outcome.
        """
        sold_on = sale.marketplace
        if sold_on is None:
            logger.info("Sale %s has unknown platform %r, skipping", sale.id, sale.platform)
            result = SaleDelistResult(status=DelistStatus.SKIPPED, reason=UNKNOWN_PLATFORM)
            self._record(sale, result, link_id=None)
            return result

        delist_from = sold_on.other
        match = self.matcher.find_link(sale.user_id, sale.sku, sale.size, sold_on)
        try:
            outcome, listing_id = self._dispatch(match, delist_from, credentials)
        except Exception as e:
            logger.exception("Delist dispatch for sale %s raised", sale.id)
            outcome = DelistOutcome.failed(f"{type(e).__name__}: {e}")
            listing_id = match.link.listing_id_for(delist_from) if match.link else None

        if outcome.success and match.link is not None:
            marked = self.links.mark_sold(match.link.id, sold_on)
            if not marked.ok:
                logger.warning("Link %s delisted but not marked sold", match.link.id)

        result = SaleDelistResult(
            status=derive_status(outcome),
            sold_on=sold_on,
            delisted_from=delist_from,
            listing_id=listing_id,
            error=outcome.error,
            reason=match.skipped_reason,
        )
        self._record(sale, result, link_id=match.link.id if match.link else None)
        return result

    def _dispatch(
        self,
        match: LinkMatch,
        delist_from: Marketplace,
        credentials: MarketplaceCredentials,
    ) -> tuple[DelistOutcome, Optional[str]]:
        if not match.found or match.link is None:
            return DelistOutcome(success=False, not_found=True), None

        listing_id = match.link.listing_id_for(delist_from)
        if not listing_id:
            # Matched, but never actually listed on the other marketplace
            return DelistOutcome(success=False, not_found=True), None

        outcome = self.dispatcher.delist(
            delist_from, credentials.for_marketplace(delist_from), listing_id
        )
        return outcome, listing_id

    def _record(self, sale: Sale, result: SaleDelistResult, link_id: Optional[str]) -> None:
        """Write the audit entry, then mark the sale processed."""
        self.audit_log.append(DelistLogEntry(
            user_id=sale.user_id,
            sold_on=result.sold_on,
            delisted_from=result.delisted_from,
            item_name=sale.name,
            item_sku=sale.sku,
            item_size=sale.size,
            sale_order_id=sale.order_id,
            listing_id_delisted=result.listing_id,
            cross_list_link_id=link_id,
            status=result.status,
            error_message=result.error or result.reason,
        ))

        if result.status is DelistStatus.FAILED and self.config.retry_failed:
            logger.info("Sale %s left unprocessed for retry: %s", sale.id, result.error)
            return

        marked = self.sales.mark_processed(sale.id)
        result.marked_processed = marked.ok
        if not marked.ok:
            logger.warning("Sale %s could not be marked processed", sale.id)
