# Marketplaces: eBay / StockX delist clients
"""
Marketplace API clients used by the delist pipeline.

Each client exposes `delist(credential, listing_id) -> DelistOutcome`
with the same outcome semantics; DelistDispatcher picks the client for
a marketplace.
"""

from .base import BatchDelistResult, DelistClient, DelistOutcome
from .dispatcher import DelistDispatcher
from .ebay import EbayDelistClient
from .http_client import MarketplaceHTTPClient
from .oauth import RefreshedToken, TokenRefreshError, TokenRefresher
from .stockx import StockXDelistClient

__all__ = [
    "BatchDelistResult",
    "DelistClient",
    "DelistDispatcher",
    "DelistOutcome",
    "EbayDelistClient",
    "MarketplaceHTTPClient",
    "RefreshedToken",
    "StockXDelistClient",
    "TokenRefreshError",
    "TokenRefresher",
]
