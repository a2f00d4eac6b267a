"""OAuth2 token lifecycle for the ShareFile API.

This module provides:
- TokenManager: Acquires, caches, refreshes and persists the access token

Tokens are obtained with the OAuth2 "password" grant and renewed with the
"refresh_token" grant against https://{hostname}/oauth/token.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from sharefile.config import ShareFileConfig
from sharefile.exceptions import AuthenticationError, TokenNotFoundError
from sharefile.tokenstore import TokenStore
from sharefile.types import AccessToken

logger = logging.getLogger(__name__)


class TokenManager:
    """Owns the access token of one ShareFile account.

    The token is loaded from the token store when one is configured,
    acquired with the password grant otherwise, and refreshed once it
    expires. Store failures never break acquisition: load failures count
    as "no token" and store failures are logged.

    Not thread-safe: concurrent calls to get_access_token() may each hit
    the token endpoint.
    """

    def __init__(
        self,
        config: ShareFileConfig,
        http: httpx.Client,
        token_store: TokenStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the token manager.

        Args:
            config: Account credentials.
            http: HTTP client used for the token endpoint.
            token_store: Optional store for persisting tokens.
            clock: Returns the current unix time (for testing).
        """
        self._config = config
        self._http = http
        self._store = token_store
        self._clock = clock
        self._token: AccessToken | None = None

    @property
    def token_identifier(self) -> str:
        """Get the token store key for this account."""
        return self._config.token_identifier

    @property
    def token(self) -> AccessToken | None:
        """Get the cached token without acquiring one."""
        return self._token

    def invalidate(self) -> None:
        """Forget the in-memory token; the next call re-acquires it."""
        self._token = None

    def get_access_token(self) -> AccessToken:
        """Get a valid access token, acquiring or refreshing it if needed.

        Returns:
            Current access token.

        Raises:
            AuthenticationError: If the credential exchange fails.
        """
        if self._token is None:
            self._token = self._load_from_store()

        if self._token is None:
            self._token = self._password_grant()
            self._save_to_store(self._token)
        elif self._token.has_expired(self._clock()):
            self._token = self._refresh(self._token)
            self._save_to_store(self._token)

        return self._token

    def _load_from_store(self) -> AccessToken | None:
        if self._store is None:
            return None
        try:
            token = self._store.load_token(self.token_identifier)
        except TokenNotFoundError:
            logger.debug(f"No stored token for {self.token_identifier}")
            return None
        except Exception as e:
            logger.warning(f"Could not load token for {self.token_identifier}: {e}")
            return None
        logger.debug(f"Loaded stored token for {self.token_identifier}")
        return token

    def _save_to_store(self, token: AccessToken) -> None:
        if self._store is None:
            return
        try:
            self._store.store_token(token, self.token_identifier)
        except Exception as e:
            logger.warning(f"Could not store token for {self.token_identifier}: {e}")

    def _password_grant(self) -> AccessToken:
        logger.info(f"Requesting access token for {self._config.username}")
        data = self._exchange(
            {
                "grant_type": "password",
                "client_id": self._config.client_id,
                "client_secret": self._config.client_secret,
                "username": self._config.username,
                "password": self._config.password,
            }
        )
        return self._parse_token(data)

    def _refresh(self, token: AccessToken) -> AccessToken:
        if not token.refresh_token:
            logger.info("Access token expired and has no refresh token, logging in again")
            return self._password_grant()

        logger.info(f"Refreshing access token for {self._config.username}")
        data = self._exchange(
            {
                "grant_type": "refresh_token",
                "refresh_token": token.refresh_token,
                "client_id": self._config.client_id,
                "client_secret": self._config.client_secret,
            }
        )
        # Refresh responses may omit claims that do not change
        data.setdefault("subdomain", token.subdomain)
        data.setdefault("refresh_token", token.refresh_token)
        return self._parse_token(data)

    def _exchange(self, form: dict[str, str]) -> dict[str, Any]:
        """POST a grant to the token endpoint and decode the response."""
        response = self._http.post(self._config.token_url, data=form)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AuthenticationError(
                f"Authentication error: {_error_detail(response)}",
                response.status_code,
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            raise AuthenticationError(
                "Authentication response is not valid JSON", response.status_code
            ) from e
        if not isinstance(data, dict):
            raise AuthenticationError(
                "Authentication response is not a JSON object", response.status_code
            )
        return data

    def _parse_token(self, data: dict[str, Any]) -> AccessToken:
        if not data.get("access_token") or not data.get("subdomain"):
            raise AuthenticationError(
                "Incorrect response from authentication: "
                "'access_token' or 'subdomain' is missing."
            )
        token = AccessToken.from_dict(data, now=self._clock())
        logger.debug(f"Access token valid until {token.expires}")
        return token


def _error_detail(response: httpx.Response) -> str:
    """Best-effort description of a failed token response."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"
