"""Finds the cross-listing link for a sold item."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..common.models import CrossListLink, Marketplace
from .normalizer import normalize_size, normalize_sku
from .storage import LinkStore

logger = logging.getLogger(__name__)

MULTIPLE_MATCHES = "multiple_matches"
MISSING_SKU = "missing_sku"


@dataclass
class LinkMatch:
    """Result of a link lookup."""

    found: bool
    link: Optional[CrossListLink] = None
    skipped_reason: Optional[str] = None


class LinkMatcher:
    """Exact-after-normalization lookup of a user's active links.

    More than one candidate is never resolved: an ambiguous match is
    reported as not found so the wrong listing cannot be delisted. A sale
    without a usable SKU never matches, even a link that also lacks one.
    """

    def __init__(self, links: LinkStore) -> None:
        self._links = links

    def find_link(
        self,
        user_id: str,
        sku: Optional[str],
        size: Optional[str],
        selling_marketplace: Marketplace,
    ) -> LinkMatch:
        target_sku = normalize_sku(sku)
        target_size = normalize_size(size)
        if not target_sku:
            logger.info("Sale for user %s has no SKU, not matching", user_id)
            return LinkMatch(found=False, skipped_reason=MISSING_SKU)

        result = self._links.list_active(user_id)
        if not result.ok:
            return LinkMatch(found=False)

        matches = [
            link
            for link in result.unwrap_or([])
            if normalize_sku(link.sku) == target_sku
            and normalize_size(link.size) == target_size
        ]

        if len(matches) > 1:
            logger.warning(
                "%d active links match %s / %s for user %s (sold on %s), refusing to pick one",
                len(matches), sku, size, user_id, selling_marketplace.value,
            )
            return LinkMatch(found=False, skipped_reason=MULTIPLE_MATCHES)
        if len(matches) == 1:
            return LinkMatch(found=True, link=matches[0])
        return LinkMatch(found=False)
