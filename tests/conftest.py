"""Shared fixtures for ShareFile client tests."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from typing import Any

import pytest

from sharefile.client import ShareFileClient
from sharefile.config import ShareFileConfig

TOKEN_URL = "https://acme.sharefile.com/oauth/token"


def make_token_data(**overrides: Any) -> dict[str, Any]:
    """Build a token endpoint response."""
    data: dict[str, Any] = {
        "access_token": "access_code",
        "refresh_token": "refresh_code",
        "token_type": "bearer",
        "expires_in": 28800,
        "subdomain": "acme",
        "apicp": "sf-api.com",
        "appcp": "sharefile.com",
    }
    data.update(overrides)
    return data


@pytest.fixture
def config() -> ShareFileConfig:
    """Create a ShareFileConfig for testing."""
    return ShareFileConfig(
        hostname="acme.sharefile.com",
        client_id="client_id",
        client_secret="secret",
        username="user@example.com",
        password="password",
    )


@pytest.fixture
def token_data() -> Callable[..., dict[str, Any]]:
    """Factory for token endpoint responses."""
    return make_token_data


@pytest.fixture
def valid_token_data() -> dict[str, Any]:
    """Token response with an absolute expiry one hour ahead."""
    data = make_token_data(expires=time.time() + 3600)
    del data["expires_in"]
    return data


@pytest.fixture
def auth_mock(httpx_mock):  # type: ignore[no-untyped-def]
    """httpx_mock with one successful password grant registered."""
    httpx_mock.add_response(url=TOKEN_URL, method="POST", json=make_token_data())
    return httpx_mock


@pytest.fixture
def client(auth_mock, config: ShareFileConfig) -> Iterator[ShareFileClient]:  # type: ignore[no-untyped-def]
    """Authenticated client backed by httpx_mock."""
    with ShareFileClient(config) as c:
        yield c


@pytest.fixture(autouse=True)
def reset_sharefile_logger() -> Iterator[None]:
    """Undo CLI logging setup so caplog keeps working across tests."""
    yield
    sharefile_logger = logging.getLogger("sharefile")
    for handler in sharefile_logger.handlers[:]:
        sharefile_logger.removeHandler(handler)
    sharefile_logger.setLevel(logging.NOTSET)
    sharefile_logger.propagate = True
