"""Pluggable persistence for OAuth2 access tokens.

This module provides:
- TokenStore: Protocol implemented by all token stores
- MemoryTokenStore: Process-local store (useful for tests)
- FileTokenStore: One JSON file per identifier in a directory
- KeyringTokenStore: OS keyring integration
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol

import keyring
from keyring.errors import KeyringError

from sharefile.exceptions import TokenNotFoundError, TokenStoreError
from sharefile.types import AccessToken

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "sharefile"


class TokenStore(Protocol):
    """Loads and persists access tokens by identifier."""

    def load_token(self, identifier: str) -> AccessToken:
        """Load a token.

        Raises:
            TokenNotFoundError: If no token is stored under identifier.
        """
        ...

    def store_token(self, token: AccessToken, identifier: str) -> None:
        """Persist a token under identifier, replacing any previous one."""
        ...


def _token_from_json(raw: str, identifier: str) -> AccessToken:
    try:
        return AccessToken.from_dict(json.loads(raw))
    except (ValueError, KeyError, TypeError) as e:
        raise TokenStoreError(f"Stored token for {identifier} is corrupted") from e


class MemoryTokenStore:
    """Keeps tokens in a dictionary."""

    def __init__(self) -> None:
        self._tokens: dict[str, AccessToken] = {}

    def load_token(self, identifier: str) -> AccessToken:
        try:
            return self._tokens[identifier]
        except KeyError:
            raise TokenNotFoundError(f"No token stored for {identifier}") from None

    def store_token(self, token: AccessToken, identifier: str) -> None:
        self._tokens[identifier] = token


class FileTokenStore:
    """Stores each token as ``<directory>/<identifier>.json``.

    Files are created with owner-only permissions.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    def _path(self, identifier: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_.@" else "_" for c in identifier)
        return self._directory / f"{safe}.json"

    def load_token(self, identifier: str) -> AccessToken:
        path = self._path(identifier)
        if not path.exists():
            raise TokenNotFoundError(f"No token stored for {identifier}")
        return _token_from_json(path.read_text(encoding="utf-8"), identifier)

    def store_token(self, token: AccessToken, identifier: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._path(identifier)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(token.to_dict(), f, indent=2)
        logger.debug(f"Stored token for {identifier} in {path}")


class KeyringTokenStore:
    """Stores tokens as JSON in the OS keyring."""

    def __init__(self, service: str = KEYRING_SERVICE) -> None:
        self._service = service

    def load_token(self, identifier: str) -> AccessToken:
        try:
            raw = keyring.get_password(self._service, identifier)
        except KeyringError as e:
            raise TokenStoreError(f"Keyring unavailable: {e}") from e
        if raw is None:
            raise TokenNotFoundError(f"No token stored for {identifier}")
        return _token_from_json(raw, identifier)

    def store_token(self, token: AccessToken, identifier: str) -> None:
        try:
            keyring.set_password(self._service, identifier, json.dumps(token.to_dict()))
        except KeyringError as e:
            raise TokenStoreError(f"Keyring unavailable: {e}") from e
