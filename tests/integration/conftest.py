"""Pytest fixtures for tests against a real ShareFile account.

These tests run only when the SHAREFILE_TEST_* variables are set:
HOSTNAME, CLIENT_ID, CLIENT_SECRET, USERNAME and PASSWORD.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from typing import Any

import pytest

from sharefile.client import FOLDER_HOME, ShareFileClient
from sharefile.config import ShareFileConfig

ENV_KEYS = ("HOSTNAME", "CLIENT_ID", "CLIENT_SECRET", "USERNAME", "PASSWORD")


@pytest.fixture(scope="module")
def live_client() -> Generator[ShareFileClient, None, None]:
    """Client authenticated against the account in SHAREFILE_TEST_*."""
    values = {key: os.environ.get(f"SHAREFILE_TEST_{key}") for key in ENV_KEYS}
    missing = [key for key, value in values.items() if not value]
    if missing:
        pytest.skip(f"SHAREFILE_TEST_{missing[0]} is not set")

    config = ShareFileConfig(
        hostname=values["HOSTNAME"] or "",
        client_id=values["CLIENT_ID"] or "",
        client_secret=values["CLIENT_SECRET"] or "",
        username=values["USERNAME"] or "",
        password=values["PASSWORD"] or "",
    )
    with ShareFileClient(config) as client:
        yield client


@pytest.fixture
def scratch_folder(live_client: ShareFileClient) -> Generator[dict[str, Any], None, None]:
    """Temporary folder in the home folder, deleted afterwards."""
    folder = live_client.create_folder(FOLDER_HOME, f"sharefile-client-test-{uuid.uuid4().hex[:8]}")
    yield folder
    live_client.delete_item(folder["Id"])
