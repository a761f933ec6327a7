"""
Unit tests for the in-memory credential cache.
"""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from unittest.mock import Mock

import pytest

from amoria_admin.cache import CachedCredential, Token
from amoria_admin.utils.datetime import utc_now


@pytest.mark.unit
def test_token_validity_follows_expiry() -> None:
    assert Token("a").is_valid()
    assert Token("a", utc_now() + timedelta(seconds=30)).is_valid()
    assert not Token("a", utc_now() - timedelta(seconds=1)).is_valid()


@pytest.mark.unit
def test_expiring_in_subtracts_margin() -> None:
    """Test that a 3600 s token with a 60 s margin expires in about 3540 s."""
    token = Token.expiring_in("a", 3600, 60)
    remaining = (token.expires_at - utc_now()).total_seconds()

    assert 3530 < remaining <= 3540


@pytest.mark.unit
def test_get_or_refresh_reuses_valid_token() -> None:
    refresh = Mock(return_value=Token("fresh"))
    cred = CachedCredential(refresh, Token("cached"))

    assert cred.get_or_refresh() == "cached"
    refresh.assert_not_called()


@pytest.mark.unit
def test_get_or_refresh_replaces_expired_token() -> None:
    refresh = Mock(return_value=Token("fresh"))
    cred = CachedCredential(refresh, Token("old", utc_now() - timedelta(seconds=1)))

    assert cred.get_or_refresh() == "fresh"
    refresh.assert_called_once()


@pytest.mark.unit
def test_get_or_refresh_treats_stale_value_as_expired() -> None:
    """Test that a token the server just rejected is refreshed even if unexpired."""
    refresh = Mock(return_value=Token("fresh"))
    cred = CachedCredential(refresh, Token("rejected"))

    assert cred.get_or_refresh(stale="rejected") == "fresh"
    # A second caller holding the same stale value reuses the new token
    assert cred.get_or_refresh(stale="rejected") == "fresh"
    refresh.assert_called_once()


@pytest.mark.unit
def test_concurrent_callers_trigger_single_refresh() -> None:
    calls = []

    def slow_refresh() -> Token:
        calls.append(1)
        time.sleep(0.05)
        return Token(f"token-{len(calls)}")

    cred = CachedCredential(slow_refresh)
    results = []
    threads = [threading.Thread(target=lambda: results.append(cred.get_or_refresh())) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert results == ["token-1"] * 8


@pytest.mark.unit
def test_invalidate_forces_refresh() -> None:
    refresh = Mock(side_effect=[Token("one"), Token("two")])
    cred = CachedCredential(refresh)

    assert cred.get_or_refresh() == "one"
    cred.invalidate()
    assert cred.peek() is None
    assert cred.get_or_refresh() == "two"
