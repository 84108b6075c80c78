"""Hands out live marketplace credentials for scheduled runs.

Tokens are first stored by the OAuth callback when a user links an
account. A token that is expired, or expires within the buffer, is
refreshed with its stored refresh token and written back before use.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ..common.config import DelistSettings
from ..common.models import Marketplace, UserTokens
from ..marketplaces.oauth import TokenRefreshError, TokenRefresher
from .storage import TokenStore, utc_now

logger = logging.getLogger(__name__)


@dataclass
class CredentialResult:
    success: bool
    credential: Optional[str] = None
    error: Optional[str] = None


def _parse_timestamp(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class TokenCredentialProvider:
    """Credential provider backed by the `user_tokens` table."""

    def __init__(
        self,
        store: TokenStore,
        config: DelistSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
        refresher: Optional[TokenRefresher] = None,
    ) -> None:
        self._store = store
        self.config = config or DelistSettings()
        self._clock = clock
        self._refresher = refresher

    def get_valid_credential(self, user_id: str, marketplace: Marketplace) -> CredentialResult:
        result = self._store.get(user_id, marketplace)
        if not result.ok:
            return CredentialResult(success=False, error=result.error.message)

        row = result.value
        if not row or not row.get("access_token"):
            return CredentialResult(
                success=False, error=f"No {marketplace.value} token found for user"
            )

        expires_at = _parse_timestamp(row.get("expires_at"))
        buffer = timedelta(minutes=self.config.token_expiry_buffer_minutes)
        if expires_at is None or expires_at - buffer <= self._clock():
            logger.info("%s token for user %s is expired or expiring", marketplace.label, user_id)
            if self._refresher is None:
                return CredentialResult(
                    success=False, error=f"{marketplace.value} token expired, refresh required"
                )
            return self._refresh(user_id, marketplace, row.get("refresh_token"))

        return CredentialResult(success=True, credential=row["access_token"])

    def _refresh(
        self, user_id: str, marketplace: Marketplace, refresh_token: Optional[str]
    ) -> CredentialResult:
        try:
            token = self._refresher.refresh(marketplace, refresh_token or "")
        except TokenRefreshError as e:
            return CredentialResult(
                success=False, error=f"{marketplace.value} token refresh failed: {e}"
            )

        now = self._clock()
        fields = {
            "access_token": token.access_token,
            "expires_at": (now + timedelta(seconds=token.expires_in)).isoformat(),
            "updated_at": now.isoformat(),
        }
        if token.refresh_token:
            fields["refresh_token"] = token.refresh_token

        saved = self._store.update_tokens(user_id, marketplace, fields)
        if not saved.ok:
            # Usable for this run; the next run refreshes again
            logger.warning("Refreshed %s token for user %s not saved", marketplace.label, user_id)
        return CredentialResult(success=True, credential=token.access_token)

    def list_users_with_tokens(self) -> list[UserTokens]:
        """Users with at least one stored marketplace token."""
        result = self._store.list_user_platforms()
        if not result.ok:
            return []

        grouped: dict[str, list[Marketplace]] = {}
        for row in result.unwrap_or([]):
            user_id = str(row.get("user_id"))
            marketplace = Marketplace.from_platform(row.get("platform"))
            markets = grouped.setdefault(user_id, [])
            if marketplace is not None and marketplace not in markets:
                markets.append(marketplace)
        return [UserTokens(user_id=uid, marketplaces=m) for uid, m in grouped.items()]
