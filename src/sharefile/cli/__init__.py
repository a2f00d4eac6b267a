"""Command-line interface for the ShareFile client.

This module provides the main CLI entry point and assembles all commands.

Commands:
- login: Authenticate and remember the account settings
- whoami: Show the current user
- ls: List the children of a folder
- upload: Upload a file (streamed or standard)
- download-url: Print a temporary download URL
- share: Create a share link
"""

from __future__ import annotations

import click

from sharefile.cli.auth import login, whoami
from sharefile.cli.config import (
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
    setup_logging,
)
from sharefile.cli.items import download_url, list_items, share, upload


@click.group()
@click.version_option(package_name="sharefile-client")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """ShareFile - files, folders and shares from the command line."""
    setup_logging(verbose)


# Account commands
cli.add_command(login)
cli.add_command(whoami)

# Item commands
cli.add_command(list_items)
cli.add_command(upload)
cli.add_command(download_url)
cli.add_command(share)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "save_config",
]
