"""Base class for marketplace delist clients.

Every marketplace reports its delist result in the same DelistOutcome
shape. Subclasses only send the request and classify the response; the
base class owns credential checks, transport error capture, and batching.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import requests

from ..common.models import Marketplace
from .http_client import MarketplaceHTTPClient

logger = logging.getLogger(__name__)


@dataclass
class DelistOutcome:
    """Normalized result of one delist call.

    `success` is True for a real removal and for the idempotent no-ops
    (listing already gone, listing never published).
    """

    success: bool
    already_removed: bool = False
    not_found: bool = False
    not_published: bool = False
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> DelistOutcome:
        return cls(success=False, error=error)


@dataclass
class BatchDelistResult:
    """Result of delisting several listings on one marketplace."""

    deleted: int = 0
    failed: int = 0
    errors: list[dict] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.deleted > 0 or self.failed == 0


class DelistClient(ABC):
    """Abstract base for marketplace delist clients."""

    MARKETPLACE: Marketplace

    def __init__(self, http: MarketplaceHTTPClient) -> None:
        self._http = http

    @property
    def marketplace(self) -> Marketplace:
        return self.MARKETPLACE

    @abstractmethod
    def _send_delist(self, credential: str, listing_id: str) -> requests.Response:
        """Issue the marketplace-specific withdraw/remove request."""
        ...

    @abstractmethod
    def _interpret(self, response: requests.Response) -> DelistOutcome:
        """Map the marketplace response onto a DelistOutcome."""
        ...

    def delist(self, credential: Optional[str], listing_id: str) -> DelistOutcome:
        """Remove a listing so it can no longer be purchased.

        Never raises: transport and request-building failures come back as a
        failed outcome.

        Args:
            credential: Valid OAuth access token for the marketplace.
            listing_id: Marketplace listing (eBay offer / StockX listing) id.

        Returns:
            DelistOutcome.
        """
        if not credential:
            return DelistOutcome.failed(f"No {self.marketplace.label} credential available")
        if not listing_id:
            return DelistOutcome(success=False, not_found=True, error="No listing id")

        try:
            response = self._send_delist(credential, listing_id)
            outcome = self._interpret(response)
        except requests.RequestException as e:
            logger.warning(
                "%s delist request failed for %s: %s", self.marketplace.label, listing_id, e
            )
            return DelistOutcome.failed(str(e))
        except Exception as e:
            # Bad header values (non latin-1 tokens), malformed responses
            logger.exception("%s delist errored for %s", self.marketplace.label, listing_id)
            return DelistOutcome.failed(f"{type(e).__name__}: {e}")

        if outcome.success:
            logger.info(
                "%s listing %s delisted%s",
                self.marketplace.label,
                listing_id,
                " (already removed)" if outcome.already_removed else "",
            )
        else:
            logger.warning(
                "%s delist failed for %s: %s", self.marketplace.label, listing_id, outcome.error
            )
        return outcome

    def batch_delist(self, credential: Optional[str], listing_ids: list[str]) -> BatchDelistResult:
        """Delist several listings one after another."""
        result = BatchDelistResult()
        for listing_id in listing_ids:
            outcome = self.delist(credential, listing_id)
            if outcome.success:
                result.deleted += 1
            else:
                result.failed += 1
                result.errors.append({"listing_id": listing_id, "error": outcome.error})
        return result
