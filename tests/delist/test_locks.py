"""Tests for the per-user delist lock."""

from datetime import datetime, timedelta

import pytest

from flipledger.common.config import DelistSettings, LOCKS_TABLE
from flipledger.delist.locks import LockManager
from flipledger.delist.storage import LockStore


@pytest.fixture
def locks(supabase, clock) -> LockManager:
    return LockManager(LockStore(supabase), DelistSettings(), clock=clock)


class TestAcquire:
    def test_first_acquire_succeeds(self, supabase, locks, clock):
        assert locks.acquire("user-1") is True

        row = supabase.rows(LOCKS_TABLE)[0]
        assert row["user_id"] == "user-1"
        assert row["locked_by"].startswith("cron_")

    def test_second_acquire_before_expiry_fails(self, locks, clock):
        assert locks.acquire("user-1") is True
        clock.now += timedelta(minutes=5)
        assert locks.acquire("user-1") is False

    def test_acquire_after_release_succeeds(self, locks):
        assert locks.acquire("user-1") is True
        locks.release("user-1")
        assert locks.acquire("user-1") is True

    def test_expired_lock_can_be_taken(self, locks, clock):
        """A crashed run cannot block later runs past the lock duration."""
        assert locks.acquire("user-1") is True
        clock.now += timedelta(minutes=10)
        assert locks.acquire("user-1") is True

    def test_custom_duration(self, locks, clock):
        assert locks.acquire("user-1", duration_minutes=1) is True
        clock.now += timedelta(seconds=61)
        assert locks.acquire("user-1") is True

    def test_zero_duration_is_not_replaced_by_default(self, supabase, locks, clock):
        assert locks.acquire("user-1", duration_minutes=0) is True
        locked_until = supabase.rows(LOCKS_TABLE)[0]["locked_until"]
        assert datetime.fromisoformat(locked_until.replace("Z", "+00:00")) == clock.now
        assert locks.acquire("user-1") is True

    def test_locks_are_per_user(self, locks):
        assert locks.acquire("user-1") is True
        assert locks.acquire("user-2") is True

    def test_tokens_are_unique(self, supabase, locks):
        locks.acquire("user-1")
        first = supabase.rows(LOCKS_TABLE)[0]["locked_by"]
        locks.release("user-1")
        locks.acquire("user-1")
        assert supabase.rows(LOCKS_TABLE)[0]["locked_by"] != first

    def test_single_row_reused_across_runs(self, supabase, locks):
        for _ in range(3):
            locks.acquire("user-1")
            locks.release("user-1")
        assert len(supabase.rows(LOCKS_TABLE)) == 1

    @pytest.mark.parametrize("op", ["select", "upsert"])
    def test_storage_errors_fail_closed(self, supabase, locks, op):
        supabase.failures.add((LOCKS_TABLE, op))
        assert locks.acquire("user-1") is False


class TestRelease:
    def test_release_sets_locked_until_now(self, supabase, locks, clock):
        locks.acquire("user-1")
        clock.now += timedelta(minutes=2)
        locks.release("user-1")

        lock = LockStore(supabase).get("user-1").value
        assert lock.locked_until == clock.now

    def test_release_without_row_is_harmless(self, locks):
        locks.release("nobody")

    def test_release_storage_error_is_swallowed(self, supabase, locks):
        locks.acquire("user-1")
        supabase.failures.add((LOCKS_TABLE, "update"))
        locks.release("user-1")
