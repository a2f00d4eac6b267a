"""Account commands for the sharefile CLI.

Commands:
- login: Authenticate and remember the account settings
- whoami: Show the current user
"""

from __future__ import annotations

import sys

import click
import httpx

from sharefile.cli.config import (
    build_config,
    get_setting,
    get_token_store,
    load_config,
    open_client,
    save_config,
)
from sharefile.client import ShareFileClient
from sharefile.config import DEFAULT_API_HOST
from sharefile.exceptions import ShareFileError


@click.command()
@click.option("--hostname", default=None, help="Account hostname (e.g., acme.sharefile.com).")
@click.option("--client-id", default=None, help="OAuth2 client id.")
@click.option("--username", default=None, help="ShareFile username (email).")
@click.option("--api-host", default=None, help=f"API domain (default: {DEFAULT_API_HOST}).")
@click.option(
    "--token-store",
    type=click.Choice(["keyring", "file"]),
    default=None,
    help="Where to cache the access token (default: keyring).",
)
def login(
    hostname: str | None,
    client_id: str | None,
    username: str | None,
    api_host: str | None,
    token_store: str | None,
) -> None:
    """Log in to ShareFile and cache the access token.

    Settings not given as options are prompted for. The client secret and
    password are read from SHAREFILE_CLIENT_SECRET and SHAREFILE_PASSWORD
    when set, and prompted for otherwise.
    """
    config = load_config()
    # Environment overrides are used for this login but never saved
    for key, value, prompt in (
        ("hostname", hostname, "Hostname"),
        ("client_id", client_id, "Client id"),
        ("username", username, "Username"),
    ):
        if value:
            config[key] = value
        elif not get_setting(config, key):
            config[key] = click.prompt(prompt)
    if api_host:
        config["api_host"] = api_host
    if token_store:
        config["token_store"] = token_store

    settings = build_config(config, require_password=True)

    try:
        with ShareFileClient(settings, token_store=get_token_store(config)) as client:
            token = client.get_access_token()
    except (ShareFileError, httpx.HTTPError) as e:
        click.echo(f"Error: login failed: {e}", err=True)
        sys.exit(1)

    save_config(config)
    click.echo(f"Logged in as {settings.username} ({token.subdomain})")


@click.command()
def whoami() -> None:
    """Show the current ShareFile user."""
    try:
        with open_client() as client:
            user = client.get_user()
    except (ShareFileError, httpx.HTTPError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not isinstance(user, dict):
        click.echo(f"Error: unexpected response: {user}", err=True)
        sys.exit(1)
    click.echo(f"{user.get('FullName', '')} <{user.get('Email', '')}>")
