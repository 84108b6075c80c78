"""OAuth refresh-token grants for eBay and StockX.

Access tokens stored at account linking expire after a few hours (eBay)
or a day (StockX). Scheduled runs trade the stored refresh token for a
new access token here; persisting it is left to the caller.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from ..common.config import MarketplaceSettings
from ..common.models import Marketplace
from .http_client import MarketplaceHTTPClient

logger = logging.getLogger(__name__)

# Lifetimes assumed when the token response omits expires_in (seconds)
DEFAULT_EXPIRES_IN = {
    Marketplace.EBAY: 7200,
    Marketplace.STOCKX: 86400,
}


class TokenRefreshError(Exception):
    """The marketplace refused or could not complete a refresh grant."""


@dataclass
class RefreshedToken:
    access_token: str
    expires_in: int
    # Only set when the marketplace rotated the refresh token
    refresh_token: Optional[str] = None


class TokenRefresher:
    """Exchanges refresh tokens for access tokens."""

    def __init__(
        self,
        http: MarketplaceHTTPClient,
        config: MarketplaceSettings | None = None,
    ) -> None:
        self._http = http
        self.config = config or http.config

    def refresh(self, marketplace: Marketplace, refresh_token: str) -> RefreshedToken:
        """Run the refresh grant for one marketplace.

        Args:
            marketplace: Marketplace the token belongs to.
            refresh_token: Stored refresh token.

        Returns:
            RefreshedToken with the new access token.

        Raises:
            TokenRefreshError: Missing client credentials, transport failure,
                or an error response from the token endpoint.
        """
        if not refresh_token:
            raise TokenRefreshError("No refresh token available")

        try:
            if marketplace is Marketplace.EBAY:
                response = self._post_ebay(refresh_token)
            else:
                response = self._post_stockx(refresh_token)
        except requests.RequestException as e:
            raise TokenRefreshError(str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if data.get("error") or not response.ok or not data.get("access_token"):
            reason = (
                data.get("error_description")
                or data.get("error")
                or f"HTTP {response.status_code}"
            )
            logger.warning("%s token refresh failed: %s", marketplace.label, reason)
            raise TokenRefreshError(reason)

        logger.info("%s token refreshed", marketplace.label)
        return RefreshedToken(
            access_token=data["access_token"],
            expires_in=int(data.get("expires_in") or DEFAULT_EXPIRES_IN[marketplace]),
            refresh_token=data.get("refresh_token") or None,
        )

    def _post_ebay(self, refresh_token: str) -> requests.Response:
        cfg = self.config
        if not cfg.ebay_client_id or not cfg.ebay_client_secret:
            raise TokenRefreshError("EBAY_CLIENT_ID / EBAY_CLIENT_SECRET not configured")
        basic = base64.b64encode(
            f"{cfg.ebay_client_id}:{cfg.ebay_client_secret}".encode()
        ).decode()
        return self._http.request(
            "POST",
            cfg.ebay_oauth_url,
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Authorization": f"Basic {basic}",
            },
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "scope": " ".join(cfg.ebay_oauth_scopes),
            },
        )

    def _post_stockx(self, refresh_token: str) -> requests.Response:
        cfg = self.config
        if not cfg.stockx_client_id or not cfg.stockx_client_secret:
            raise TokenRefreshError("STOCKX_CLIENT_ID / STOCKX_CLIENT_SECRET not configured")
        return self._http.request(
            "POST",
            cfg.stockx_oauth_url,
            headers={"Content-Type": "application/json"},
            json={
                "grant_type": "refresh_token",
                "client_id": cfg.stockx_client_id,
                "client_secret": cfg.stockx_client_secret,
                "refresh_token": refresh_token,
            },
        )
