"""Configuration utilities for the sharefile CLI.

Non-secret settings live in ~/.sharefile/config.json. Secrets come from
SHAREFILE_CLIENT_SECRET / SHAREFILE_PASSWORD or an interactive prompt and
are never written to disk.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

import click

from sharefile.client import ShareFileClient
from sharefile.config import DEFAULT_API_HOST, ShareFileConfig
from sharefile.tokenstore import FileTokenStore, KeyringTokenStore, TokenStore

ENV_PREFIX = "SHAREFILE_"
CONFIG_KEYS = ("hostname", "client_id", "username", "api_host", "token_store")


def get_config_dir() -> Path:
    """Get the configuration directory for the sharefile CLI.

    Returns:
        Path to ~/.sharefile or equivalent.
    """
    return Path.home() / ".sharefile"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def get_setting(config: dict[str, str], key: str) -> str | None:
    """Get a setting, letting SHAREFILE_<KEY> override the config file."""
    return os.environ.get(ENV_PREFIX + key.upper()) or config.get(key)


def get_token_store(config: dict[str, str]) -> TokenStore:
    """Get the token store selected in the config ("keyring" or "file")."""
    if get_setting(config, "token_store") == "file":
        return FileTokenStore(get_config_dir() / "tokens")
    return KeyringTokenStore()


def build_config(config: dict[str, str], require_password: bool = False) -> ShareFileConfig:
    """Build client settings from the config file and environment.

    Args:
        config: Loaded config file contents.
        require_password: Prompt for the password when it is not set in
            the environment (needed to log in; later commands use the
            stored token).
    """
    missing = [key for key in ("hostname", "client_id", "username") if not get_setting(config, key)]
    if missing:
        click.echo(
            f"Error: missing setting(s) {', '.join(missing)}. Run 'sharefile login' first.",
            err=True,
        )
        sys.exit(1)

    client_secret = os.environ.get(ENV_PREFIX + "CLIENT_SECRET") or click.prompt(
        "Client secret", hide_input=True
    )
    password = os.environ.get(ENV_PREFIX + "PASSWORD", "")
    if require_password and not password:
        password = click.prompt("Password", hide_input=True)

    return ShareFileConfig(
        hostname=get_setting(config, "hostname") or "",
        client_id=get_setting(config, "client_id") or "",
        client_secret=client_secret,
        username=get_setting(config, "username") or "",
        password=password,
        api_host=get_setting(config, "api_host") or DEFAULT_API_HOST,
    )


def open_client() -> ShareFileClient:
    """Create an authenticated client from the saved configuration."""
    config = load_config()
    return ShareFileClient(build_config(config), token_store=get_token_store(config))


def setup_logging(verbose: bool) -> None:
    """Send sharefile log records to stderr.

    Args:
        verbose: Show debug output instead of warnings only.
    """
    sharefile_logger = logging.getLogger("sharefile")
    for handler in sharefile_logger.handlers[:]:
        sharefile_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    sharefile_logger.addHandler(handler)
    sharefile_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    sharefile_logger.propagate = False
