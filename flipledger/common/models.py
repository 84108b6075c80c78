"""Shared Pydantic data models for FlipLedger.

These models define the rows exchanged with Supabase and the values
passed between the delist pipeline stages. All modules import from here.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# === Enums ===

class Marketplace(str, Enum):
    """Supported resale marketplaces."""
    EBAY = "ebay"
    STOCKX = "stockx"

    @property
    def other(self) -> Marketplace:
        """The marketplace a cross-listed duplicate lives on."""
        return Marketplace.STOCKX if self is Marketplace.EBAY else Marketplace.EBAY

    @property
    def label(self) -> str:
        return {"ebay": "eBay", "stockx": "StockX"}[self.value]

    @classmethod
    def from_platform(cls, platform: Optional[str]) -> Optional[Marketplace]:
        """Resolve a free-text platform string recorded on a sale.

        Exact aliases are checked first, then a case-insensitive substring
        match. Returns None for platforms that are neither marketplace.
        """
        if not platform:
            return None
        text = platform.strip().lower()
        if text in LEGACY_PLATFORM_ALIASES:
            return LEGACY_PLATFORM_ALIASES[text]
        if "stockx" in text:
            return cls.STOCKX
        if "ebay" in text:
            return cls.EBAY
        return None


# Platform strings written by older sales-sync versions and CSV imports
LEGACY_PLATFORM_ALIASES: dict[str, Marketplace] = {
    "ebay": Marketplace.EBAY,
    "ebay.com": Marketplace.EBAY,
    "ebay us": Marketplace.EBAY,
    "stockx": Marketplace.STOCKX,
    "stockx flex": Marketplace.STOCKX,
    "stockx direct": Marketplace.STOCKX,
    "stockx standard": Marketplace.STOCKX,
    "stock x": Marketplace.STOCKX,
}


class LinkStatus(str, Enum):
    """Lifecycle of a cross-listing link. Never moves back to active."""
    ACTIVE = "active"
    SOLD = "sold"


class DelistStatus(str, Enum):
    """Outcome recorded for one delist attempt."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    NOT_FOUND = "not_found"


# === Rows ===

def _stringify(value):
    """Supabase returns bigint ids and numeric SKUs as numbers."""
    return str(value) if value is not None else value


class Sale(BaseModel):
    """One confirmed marketplace transaction (row of `pending_costs`).

    The free-text platform is resolved to a Marketplace once, when the row
    is loaded; everything downstream works with `marketplace`.
    """
    id: str
    user_id: str
    order_id: Optional[str] = None
    name: Optional[str] = None
    sku: Optional[str] = None
    size: Optional[str] = None
    platform: Optional[str] = None
    delist_processed: bool = False
    created_at: Optional[datetime] = None
    marketplace: Optional[Marketplace] = None

    @field_validator("id", "user_id", "order_id", "sku", "size", mode="before")
    @classmethod
    def _coerce_str(cls, value):
        return _stringify(value)

    @model_validator(mode="after")
    def _resolve_marketplace(self) -> Sale:
        if self.marketplace is None:
            self.marketplace = Marketplace.from_platform(self.platform)
        return self


class CrossListLink(BaseModel):
    """One physical item listed on both marketplaces (row of `cross_list_links`)."""
    id: str
    user_id: str
    sku: Optional[str] = None
    size: Optional[str] = None
    ebay_offer_id: Optional[str] = None
    stockx_listing_id: Optional[str] = None
    status: LinkStatus = LinkStatus.ACTIVE
    sold_on: Optional[Marketplace] = None
    sold_at: Optional[datetime] = None

    @field_validator(
        "id", "user_id", "sku", "size", "ebay_offer_id", "stockx_listing_id", mode="before"
    )
    @classmethod
    def _coerce_str(cls, value):
        return _stringify(value)

    def listing_id_for(self, marketplace: Marketplace) -> Optional[str]:
        """Listing identifier on the given marketplace, if it was ever listed there."""
        if marketplace is Marketplace.EBAY:
            return self.ebay_offer_id or None
        return self.stockx_listing_id or None


class DelistLogEntry(BaseModel):
    """Immutable audit record of one delist attempt (row of `delist_log`)."""
    user_id: str
    sold_on: Optional[Marketplace] = None
    delisted_from: Optional[Marketplace] = None
    item_name: Optional[str] = None
    item_sku: Optional[str] = None
    item_size: Optional[str] = None
    sale_order_id: Optional[str] = None
    listing_id_delisted: Optional[str] = None
    cross_list_link_id: Optional[str] = None
    status: DelistStatus
    error_message: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @field_validator("id", "user_id", "cross_list_link_id", mode="before")
    @classmethod
    def _coerce_str(cls, value):
        return _stringify(value)

    def to_row(self) -> dict:
        """Insert payload; id and created_at are assigned by the database."""
        return self.model_dump(mode="json", exclude={"id", "created_at"})


class Lock(BaseModel):
    """Per-user mutual exclusion row (row of `auto_delist_locks`)."""
    user_id: str
    locked_until: datetime
    locked_by: Optional[str] = None

    @field_validator("locked_until")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # timestamp columns without a zone are written in UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_held(self, now: datetime) -> bool:
        return self.locked_until > now


class UserTokens(BaseModel):
    """A user and the marketplaces they have stored credentials for."""
    user_id: str
    marketplaces: list[Marketplace] = Field(default_factory=list)
