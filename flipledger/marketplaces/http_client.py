"""HTTP transport for marketplace APIs: rate limiting, timeout, retry."""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from ..common.config import MarketplaceSettings
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Statuses worth another attempt; anything else is returned to the caller as-is
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class MarketplaceHTTPClient:
    """Thin wrapper around requests.Session used by the delist clients.

    Features:
    - Rate limiting shared across both marketplaces
    - Per-request timeout
    - Retries with exponential backoff on transport errors and 429/5xx
    - A 429 carrying Retry-After pauses the shared limiter instead

    Unlike a scraper client it never raises for HTTP status: the delist
    clients need the final status code and body to classify the outcome.
    """

    BACKOFF_BASE = 2.0
    MAX_RETRY_AFTER = 60.0

    def __init__(
        self,
        config: MarketplaceSettings | None = None,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.config = config or MarketplaceSettings()
        self._session = session or requests.Session()
        self._rate_limiter = rate_limiter or RateLimiter(self.config.rate_limit_rpm)

    @property
    def max_retries(self) -> int:
        return max(self.config.max_retries, 1)

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        json: Any = None,
        data: Any = None,
    ) -> requests.Response:
        """Send a request, retrying transient failures.

        Args:
            method: HTTP verb.
            url: Absolute URL.
            headers: Request headers.
            json: Optional JSON body.
            data: Optional form body.

        Returns:
            The last requests.Response received.

        Raises:
            requests.RequestException: If every attempt failed in transport.
        """
        last_exc: requests.RequestException | None = None
        for attempt in range(self.max_retries):
            self._rate_limiter.wait()
            is_last = attempt == self.max_retries - 1
            try:
                resp = self._session.request(
                    method,
                    url,
                    headers=headers,
                    json=json,
                    data=data,
                    timeout=self.config.request_timeout,
                )
            except requests.RequestException as exc:
                last_exc = exc
                if is_last:
                    break
                self._backoff(attempt, f"{method} {url}: {exc}")
                continue

            if resp.status_code in RETRYABLE_STATUSES and not is_last:
                retry_after = self._retry_after(resp)
                if retry_after is not None:
                    logger.warning(
                        "%s %s rate limited, pausing %.1fs (Retry-After)",
                        method,
                        url,
                        retry_after,
                    )
                    self._rate_limiter.defer(retry_after)
                else:
                    self._backoff(attempt, f"{method} {url}: HTTP {resp.status_code}")
                continue
            return resp

        logger.warning("%s %s failed after %d attempts", method, url, self.max_retries)
        raise last_exc  # type: ignore[misc]

    def _retry_after(self, resp: requests.Response) -> float | None:
        """Seconds requested by a 429 Retry-After header, capped; None if absent."""
        if resp.status_code != 429:
            return None
        value = resp.headers.get("Retry-After")
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            # Missing, or the HTTP-date form
            return None
        return min(max(seconds, 0.0), self.MAX_RETRY_AFTER)

    def _backoff(self, attempt: int, reason: str) -> None:
        wait_time = self.BACKOFF_BASE ** attempt
        logger.warning(
            "Request failed (attempt %d/%d): %s, retrying in %.1fs",
            attempt + 1,
            self.max_retries,
            reason,
            wait_time,
        )
        time.sleep(wait_time)

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    def __enter__(self) -> MarketplaceHTTPClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
