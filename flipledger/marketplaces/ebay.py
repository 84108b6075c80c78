"""eBay Sell Inventory API delist client.

Delisting an eBay offer means withdrawing it: the offer and inventory
item stay on the account, but the live listing ends.
"""

from __future__ import annotations

from urllib.parse import quote

import requests

from ..common.config import MarketplaceSettings
from ..common.models import Marketplace
from .base import DelistClient, DelistOutcome
from .http_client import MarketplaceHTTPClient

# Response body fragments eBay uses for offers that have nothing to withdraw
NOT_FOUND_MARKERS = ("not found",)
NOT_PUBLISHED_MARKERS = ("cannot be withdrawn", "not published")


class EbayDelistClient(DelistClient):
    """Withdraws (and optionally deletes) eBay inventory offers."""

    MARKETPLACE = Marketplace.EBAY

    def __init__(
        self,
        http: MarketplaceHTTPClient,
        config: MarketplaceSettings | None = None,
    ) -> None:
        super().__init__(http)
        self.config = config or http.config

    def _headers(self, credential: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Content-Language": self.config.ebay_content_language,
            "X-EBAY-C-MARKETPLACE-ID": self.config.ebay_marketplace_id,
        }

    def _offer_url(self, offer_id: str) -> str:
        base = self.config.ebay_api_base.rstrip("/")
        return f"{base}/sell/inventory/v1/offer/{quote(str(offer_id), safe='')}"

    def _send_delist(self, credential: str, listing_id: str) -> requests.Response:
        return self._http.request(
            "POST",
            f"{self._offer_url(listing_id)}/withdraw",
            headers=self._headers(credential),
        )

    def _interpret(self, response: requests.Response) -> DelistOutcome:
        if response.ok:
            return DelistOutcome(success=True)

        body = (response.text or "").lower()
        if response.status_code == 404 or any(m in body for m in NOT_FOUND_MARKERS):
            return DelistOutcome(success=True, already_removed=True)
        if any(m in body for m in NOT_PUBLISHED_MARKERS):
            return DelistOutcome(success=True, not_published=True)
        return DelistOutcome.failed(f"Withdraw failed: {response.status_code}")

    def delete_offer(self, credential: str, offer_id: str) -> DelistOutcome:
        """Withdraw the offer, then delete it from the inventory."""
        withdrawn = self.delist(credential, offer_id)
        if not withdrawn.success:
            return withdrawn

        try:
            response = self._http.request(
                "DELETE", self._offer_url(offer_id), headers=self._headers(credential)
            )
        except requests.RequestException as e:
            return DelistOutcome.failed(str(e))

        if response.ok or response.status_code == 404:
            return DelistOutcome(success=True)
        return DelistOutcome.failed(f"Delete failed: {response.status_code}")
