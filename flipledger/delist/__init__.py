# Delist: automatic cross-platform delisting after a sale
"""
Delist pipeline modules:
- normalizer: SKU/size canonicalization
- matcher: unique active cross-listing lookup
- orchestrator: per-sale match -> dispatch -> log -> mark processed
- locks: per-user run lock
- audit_log: delist_log writer and history view
- runner: scheduled pass over all users
"""

from .audit_log import AuditLogWriter, DelistHistory, HistoryPage, HistorySummary
from .credentials import CredentialResult, TokenCredentialProvider
from .locks import LockManager
from .matcher import LinkMatch, LinkMatcher, MISSING_SKU, MULTIPLE_MATCHES
from .normalizer import normalize_size, normalize_sku
from .orchestrator import (
    DelistOrchestrator,
    MarketplaceCredentials,
    SaleDelistResult,
    UNKNOWN_PLATFORM,
    derive_status,
)
from .runner import DelistRunner, RunSummary, UserRunResult
from .storage import (
    DelistLogStore,
    LinkStore,
    LockStore,
    SaleStore,
    StorageError,
    StorageResult,
    TokenStore,
)

__all__ = [
    "AuditLogWriter",
    "CredentialResult",
    "DelistHistory",
    "DelistLogStore",
    "DelistOrchestrator",
    "DelistRunner",
    "HistoryPage",
    "HistorySummary",
    "LinkMatch",
    "LinkMatcher",
    "LinkStore",
    "LockManager",
    "LockStore",
    "MISSING_SKU",
    "MULTIPLE_MATCHES",
    "MarketplaceCredentials",
    "RunSummary",
    "SaleDelistResult",
    "SaleStore",
    "StorageError",
    "StorageResult",
    "TokenCredentialProvider",
    "TokenStore",
    "UNKNOWN_PLATFORM",
    "UserRunResult",
    "derive_status",
    "normalize_size",
    "normalize_sku",
]
