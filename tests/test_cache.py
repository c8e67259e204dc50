"""Tests for CacheStore TTL behaviour and the FailureLedger."""

import pytest

from helpers import FakeClock
from pricefeed.cache import CURRENT_PRICE_KEY, CacheStore, FailureLedger, historical_key


@pytest.fixture
def store(fake_clock: FakeClock) -> CacheStore:
    return CacheStore(ttl_ms=1_000, clock=fake_clock)


class TestCacheStore:
    """TTL, overwrite and clear semantics."""

    def test_get_missing_returns_none(self, store: CacheStore) -> None:
        assert store.get("absent") is None

    def test_put_then_get(self, store: CacheStore) -> None:
        store.put("k", "v")
        assert store.get("k") == "v"

    def test_entry_valid_just_before_ttl(self, store: CacheStore, fake_clock: FakeClock) -> None:
        store.put("k", "v")
        fake_clock.advance(999)
        assert store.get("k") == "v"

    def test_entry_expires_at_ttl(self, store: CacheStore, fake_clock: FakeClock) -> None:
        store.put("k", "v")
        fake_clock.advance(1_000)
        assert store.get("k") is None

    def test_put_overwrites_and_restamps(self, store: CacheStore, fake_clock: FakeClock) -> None:
        store.put("k", "old")
        fake_clock.advance(800)
        store.put("k", "new")
        fake_clock.advance(800)
        assert store.get("k") == "new"
        assert store.stored_at("k") == fake_clock() - 800

    def test_clear_removes_everything(self, store: CacheStore) -> None:
        store.put("a", 1)
        store.put("b", 2)
        store.clear()
        assert len(store) == 0
        assert store.get("a") is None

    def test_invalidate_single_key(self, store: CacheStore) -> None:
        store.put("a", 1)
        store.put("b", 2)
        store.invalidate("a")
        store.invalidate("never-stored")
        assert store.get("a") is None
        assert store.get("b") == 2

    def test_keys(self) -> None:
        assert CURRENT_PRICE_KEY == "current-price"
        assert historical_key("7d") == "historical-7d"


class TestFailureLedger:
    """Consecutive failure counting."""

    def test_unknown_key_is_zero(self) -> None:
        assert FailureLedger().get("x") == 0

    def test_failures_accumulate(self) -> None:
        ledger = FailureLedger()
        assert ledger.record_failure("x") == 1
        assert ledger.record_failure("x") == 2
        assert ledger.get("x") == 2

    def test_success_resets(self) -> None:
        ledger = FailureLedger()
        ledger.record_failure("x")
        ledger.record_success("x")
        assert ledger.get("x") == 0
        assert ledger.snapshot() == {}

    def test_keys_are_independent(self) -> None:
        ledger = FailureLedger()
        ledger.record_failure("a")
        ledger.record_failure("b")
        ledger.record_failure("b")
        assert ledger.snapshot() == {"a": 1, "b": 2}

    def test_clear(self) -> None:
        ledger = FailureLedger()
        ledger.record_failure("a")
        ledger.clear()
        assert ledger.get("a") == 0
