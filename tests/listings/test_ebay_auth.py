from __future__ import annotations

import threading

import pytest

from listings.connectors.base import PermanentError
from listings.connectors.ebay_auth import ApplicationTokenSession, TokenRefresher


class CountingProvider:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        return f"token-{self.calls}"


def test_get_token_fetches_lazily_once():
    provider = CountingProvider()
    session = ApplicationTokenSession(provider)

    assert session.token is None
    assert session.get_token() == "token-1"
    assert session.get_token() == "token-1"
    assert provider.calls == 1


def test_refresh_replaces_token():
    provider = CountingProvider()
    session = ApplicationTokenSession(provider)
    session.get_token()

    assert session.refresh() == "token-2"
    assert session.token == "token-2"


def test_refresh_with_stale_token_is_coalesced():
    provider = CountingProvider()
    session = ApplicationTokenSession(provider)
    stale = session.get_token()

    # two callers saw the same rejected token; only one round-trip happens
    first = session.refresh(stale=stale)
    second = session.refresh(stale=stale)

    assert first == second == "token-2"
    assert provider.calls == 2


def test_refresh_failure_keeps_previous_token():
    calls = {"n": 0}

    def provider() -> str:
        calls["n"] += 1
        if calls["n"] > 1:
            raise PermanentError("denied")
        return "token-1"

    session = ApplicationTokenSession(provider)
    session.get_token()

    with pytest.raises(PermanentError):
        session.refresh()
    assert session.token == "token-1"


def test_refresher_refreshes_immediately_and_stops():
    refreshed = threading.Event()

    def provider() -> str:
        refreshed.set()
        return "token"

    session = ApplicationTokenSession(provider)
    refresher = TokenRefresher(session, interval_seconds=3600)

    refresher.start()
    try:
        assert refreshed.wait(2.0)
        assert refresher.running
    finally:
        refresher.stop()
    assert not refresher.running
    assert session.token == "token"
