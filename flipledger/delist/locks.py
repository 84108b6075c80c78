"""Per-user lock so two scheduled runs never process the same sales.

Acquisition is read-then-upsert, which leaves a narrow window where two
acquirers can both succeed. A double run only repeats delist calls, and
those are idempotent. The lock expires on its own after the configured
duration so a crashed run cannot block later ones.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..common.config import DelistSettings
from ..common.models import Lock
from .storage import LockStore, utc_now

logger = logging.getLogger(__name__)


class LockManager:
    """Acquire/release the `auto_delist_locks` row of a user."""

    def __init__(
        self,
        store: LockStore,
        config: DelistSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self.config = config or DelistSettings()
        self._clock = clock

    def _new_token(self) -> str:
        return f"{self.config.lock_holder_prefix}_{uuid.uuid4().hex}"

    def acquire(self, user_id: str, duration_minutes: Optional[int] = None) -> bool:
        """Take the lock unless another run holds it.

        Storage errors count as "not acquired".
        """
        if duration_minutes is None:
            duration_minutes = self.config.lock_duration_minutes
        now = self._clock()

        existing = self._store.get(user_id)
        if not existing.ok:
            logger.warning("Lock read failed for user %s, skipping run", user_id)
            return False
        if existing.value is not None and existing.value.is_held(now):
            logger.info(
                "User %s locked until %s by %s",
                user_id, existing.value.locked_until.isoformat(), existing.value.locked_by,
            )
            return False

        lock = Lock(
            user_id=user_id,
            locked_until=now + timedelta(minutes=duration_minutes),
            locked_by=self._new_token(),
        )
        written = self._store.upsert(lock)
        if not written.ok:
            logger.warning("Lock write failed for user %s, skipping run", user_id)
            return False

        logger.debug("Acquired lock for user %s until %s", user_id, lock.locked_until.isoformat())
        return True

    def release(self, user_id: str) -> None:
        """Expire the user's lock now."""
        result = self._store.set_locked_until(user_id, self._clock())
        if not result.ok:
            logger.warning("Lock release failed for user %s; it expires on its own", user_id)
