"""Routes a delist request to the client for the target marketplace."""

from __future__ import annotations

from typing import Optional

from ..common.config import MarketplaceSettings
from ..common.models import Marketplace
from .base import DelistClient, DelistOutcome
from .ebay import EbayDelistClient
from .http_client import MarketplaceHTTPClient
from .stockx import StockXDelistClient


class DelistDispatcher:
    """Registry of delist clients keyed by marketplace."""

    def __init__(self, clients: list[DelistClient]) -> None:
        self._clients: dict[Marketplace, DelistClient] = {c.marketplace: c for c in clients}

    @classmethod
    def default(
        cls,
        config: MarketplaceSettings | None = None,
        http: MarketplaceHTTPClient | None = None,
    ) -> DelistDispatcher:
        """Dispatcher with the eBay and StockX clients sharing one transport."""
        http = http or MarketplaceHTTPClient(config)
        return cls([EbayDelistClient(http), StockXDelistClient(http)])

    def client_for(self, marketplace: Marketplace) -> DelistClient:
        try:
            return self._clients[marketplace]
        except KeyError:
            raise ValueError(f"No delist client registered for {marketplace.value}") from None

    def delist(
        self,
        marketplace: Marketplace,
        credential: Optional[str],
        listing_id: str,
    ) -> DelistOutcome:
        """Delist `listing_id` on `marketplace`. Never raises."""
        client = self._clients.get(marketplace)
        if client is None:
            return DelistOutcome.failed(f"No delist client registered for {marketplace.value}")
        return client.delist(credential, listing_id)
