"""Tests for the OAuth2 token lifecycle."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from urllib.parse import parse_qs

import httpx
import pytest

from sharefile.auth import TokenManager
from sharefile.config import ShareFileConfig
from sharefile.exceptions import AuthenticationError, TokenStoreError
from sharefile.tokenstore import MemoryTokenStore
from sharefile.types import AccessToken

TOKEN_URL = "https://acme.sharefile.com/oauth/token"
NOW = 1_700_000_000.0


class FailingStore:
    """Token store whose every operation fails."""

    def load_token(self, identifier: str) -> AccessToken:
        raise TokenStoreError("store offline")

    def store_token(self, token: AccessToken, identifier: str) -> None:
        raise OSError("disk full")


def form(request: httpx.Request) -> dict[str, str]:
    """Decode a form-encoded request body."""
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def make_token(expires: float | None, refresh_token: str | None = "refresh_code") -> AccessToken:
    """Create a stored token."""
    return AccessToken(
        access_token="stored_code",
        subdomain="acme",
        refresh_token=refresh_token,
        expires=expires,
    )


@pytest.fixture
def http() -> Iterator[httpx.Client]:
    """Plain httpx client (intercepted by httpx_mock)."""
    with httpx.Client() as client:
        yield client


class TestPasswordGrant:
    """Tests for initial token acquisition."""

    def test_password_grant(self, httpx_mock, http, config: ShareFileConfig, token_data) -> None:  # type: ignore[no-untyped-def]
        """Should send the password grant with the account credentials."""
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json=token_data())
        manager = TokenManager(config, http, clock=lambda: NOW)

        token = manager.get_access_token()

        assert form(httpx_mock.get_requests()[0]) == {
            "grant_type": "password",
            "client_id": "client_id",
            "client_secret": "secret",
            "username": "user@example.com",
            "password": "password",
        }
        assert token.access_token == "access_code"
        assert token.subdomain == "acme"
        assert token.refresh_token == "refresh_code"
        assert token.expires == NOW + 28800
        assert token.extra["apicp"] == "sf-api.com"

    def test_cached_token_reused(self, httpx_mock, http, config: ShareFileConfig, token_data) -> None:  # type: ignore[no-untyped-def]
        """A valid cached token does not hit the network."""
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json=token_data())
        manager = TokenManager(config, http)

        first = manager.get_access_token()
        second = manager.get_access_token()

        assert first is second
        assert len(httpx_mock.get_requests()) == 1

    def test_failed_exchange(self, httpx_mock, http, config: ShareFileConfig) -> None:  # type: ignore[no-untyped-def]
        """HTTP failures become AuthenticationError."""
        httpx_mock.add_response(url=TOKEN_URL, method="POST", status_code=401, text="Unauthorized")
        manager = TokenManager(config, http)

        with pytest.raises(AuthenticationError) as exc_info:
            manager.get_access_token()

        assert exc_info.value.status_code == 401
        assert manager.token is None

    def test_missing_access_token(self, httpx_mock, http, config: ShareFileConfig) -> None:  # type: ignore[no-untyped-def]
        """Responses without access_token are rejected."""
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json={"subdomain": "acme"})

        with pytest.raises(AuthenticationError, match="access_token"):
            TokenManager(config, http).get_access_token()

    def test_non_json_response(self, httpx_mock, http, config: ShareFileConfig) -> None:  # type: ignore[no-untyped-def]
        """Non-JSON token responses are rejected."""
        httpx_mock.add_response(url=TOKEN_URL, method="POST", text="<html>maintenance</html>")

        with pytest.raises(AuthenticationError, match="not valid JSON"):
            TokenManager(config, http).get_access_token()


class TestRefresh:
    """Tests for refreshing expired tokens."""

    def test_expired_token_refreshed(self, httpx_mock, http, config: ShareFileConfig, token_data) -> None:  # type: ignore[no-untyped-def]
        """An expired stored token is renewed with the refresh grant."""
        store = MemoryTokenStore()
        store.store_token(make_token(expires=NOW - 1), config.token_identifier)
        httpx_mock.add_response(
            url=TOKEN_URL,
            method="POST",
            json=token_data(access_token="new_code", refresh_token="new_refresh"),
        )
        manager = TokenManager(config, http, store, clock=lambda: NOW)

        token = manager.get_access_token()

        assert form(httpx_mock.get_requests()[0]) == {
            "grant_type": "refresh_token",
            "refresh_token": "refresh_code",
            "client_id": "client_id",
            "client_secret": "secret",
        }
        assert token.access_token == "new_code"
        assert store.load_token(config.token_identifier).access_token == "new_code"

    def test_expiry_boundary(self, httpx_mock, http, config: ShareFileConfig, token_data) -> None:  # type: ignore[no-untyped-def]
        """A token is expired from its expiry time on."""
        store = MemoryTokenStore()
        store.store_token(make_token(expires=NOW), config.token_identifier)
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json=token_data())

        TokenManager(config, http, store, clock=lambda: NOW).get_access_token()

        assert form(httpx_mock.get_requests()[0])["grant_type"] == "refresh_token"

    def test_refresh_keeps_missing_claims(self, httpx_mock, http, config: ShareFileConfig) -> None:  # type: ignore[no-untyped-def]
        """Claims omitted by the refresh response are carried over."""
        store = MemoryTokenStore()
        store.store_token(make_token(expires=NOW - 1), config.token_identifier)
        httpx_mock.add_response(
            url=TOKEN_URL, method="POST", json={"access_token": "new_code", "expires_in": 60}
        )

        token = TokenManager(config, http, store, clock=lambda: NOW).get_access_token()

        assert token.subdomain == "acme"
        assert token.refresh_token == "refresh_code"
        assert token.expires == NOW + 60

    def test_refresh_after_expiry_in_memory(self, httpx_mock, http, config: ShareFileConfig, token_data) -> None:  # type: ignore[no-untyped-def]
        """A cached token is refreshed once the clock passes its expiry."""
        now = [NOW]
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json=token_data(expires_in=60))
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json=token_data(access_token="new_code"))
        manager = TokenManager(config, http, clock=lambda: now[0])

        manager.get_access_token()
        now[0] += 61
        token = manager.get_access_token()

        grants = [form(r)["grant_type"] for r in httpx_mock.get_requests()]
        assert grants == ["password", "refresh_token"]
        assert token.access_token == "new_code"

    def test_no_refresh_token_logs_in_again(self, httpx_mock, http, config: ShareFileConfig, token_data) -> None:  # type: ignore[no-untyped-def]
        """Without a refresh token the password grant is repeated."""
        store = MemoryTokenStore()
        store.store_token(make_token(expires=NOW - 1, refresh_token=None), config.token_identifier)
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json=token_data())

        TokenManager(config, http, store, clock=lambda: NOW).get_access_token()

        assert form(httpx_mock.get_requests()[0])["grant_type"] == "password"

    def test_failed_refresh(self, httpx_mock, http, config: ShareFileConfig) -> None:  # type: ignore[no-untyped-def]
        """Refresh failures surface as AuthenticationError."""
        store = MemoryTokenStore()
        store.store_token(make_token(expires=NOW - 1), config.token_identifier)
        httpx_mock.add_response(
            url=TOKEN_URL, method="POST", status_code=400, json={"error": "invalid_grant"}
        )

        with pytest.raises(AuthenticationError, match="invalid_grant"):
            TokenManager(config, http, store, clock=lambda: NOW).get_access_token()


class TestTokenStore:
    """Tests for token persistence."""

    def test_valid_stored_token_used(self, httpx_mock, http, config: ShareFileConfig) -> None:  # type: ignore[no-untyped-def]
        """A valid stored token means no network call."""
        store = MemoryTokenStore()
        store.store_token(make_token(expires=time.time() + 3600), config.token_identifier)

        token = TokenManager(config, http, store).get_access_token()

        assert token.access_token == "stored_code"
        assert httpx_mock.get_requests() == []

    def test_new_token_persisted(self, httpx_mock, http, config: ShareFileConfig, token_data) -> None:  # type: ignore[no-untyped-def]
        """A freshly acquired token is written to the store."""
        store = MemoryTokenStore()
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json=token_data())

        TokenManager(config, http, store).get_access_token()

        assert store.load_token("sf-user@example.com").access_token == "access_code"

    def test_store_failures_ignored(
        self, httpx_mock, http, config: ShareFileConfig, token_data, caplog  # type: ignore[no-untyped-def]
    ) -> None:
        """Load and store failures fall back to a fresh token."""
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json=token_data())
        manager = TokenManager(config, http, FailingStore())

        with caplog.at_level(logging.WARNING, logger="sharefile.auth"):
            token = manager.get_access_token()

        assert token.access_token == "access_code"
        assert "store offline" in caplog.text
        assert "disk full" in caplog.text

    def test_invalidate(self, httpx_mock, http, config: ShareFileConfig, token_data) -> None:  # type: ignore[no-untyped-def]
        """Invalidating forces a new acquisition."""
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json=token_data())
        httpx_mock.add_response(url=TOKEN_URL, method="POST", json=token_data(access_token="second"))
        manager = TokenManager(config, http)

        manager.get_access_token()
        manager.invalidate()

        assert manager.get_access_token().access_token == "second"

    def test_token_identifier(self, http, config: ShareFileConfig) -> None:
        """The store key is derived from the username."""
        assert TokenManager(config, http).token_identifier == "sf-user@example.com"
