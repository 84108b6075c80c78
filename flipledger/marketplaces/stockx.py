"""StockX Selling API delist client."""

from __future__ import annotations

from urllib.parse import quote

import requests

from ..common.config import MarketplaceSettings
from ..common.models import Marketplace
from .base import DelistClient, DelistOutcome
from .http_client import MarketplaceHTTPClient


class StockXDelistClient(DelistClient):
    """Deletes StockX asks (listings)."""

    MARKETPLACE = Marketplace.STOCKX

    def __init__(
        self,
        http: MarketplaceHTTPClient,
        config: MarketplaceSettings | None = None,
    ) -> None:
        super().__init__(http)
        self.config = config or http.config

    def _send_delist(self, credential: str, listing_id: str) -> requests.Response:
        base = self.config.stockx_api_base.rstrip("/")
        return self._http.request(
            "DELETE",
            f"{base}/v2/selling/listings/{quote(str(listing_id), safe='')}",
            headers={
                "Authorization": f"Bearer {credential}",
                "x-api-key": self.config.stockx_api_key,
            },
        )

    def _interpret(self, response: requests.Response) -> DelistOutcome:
        if response.ok:
            return DelistOutcome(success=True)
        if response.status_code == 404:
            return DelistOutcome(success=True, already_removed=True)
        return DelistOutcome.failed(f"Delete failed: {response.status_code}")
