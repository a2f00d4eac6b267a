"""Item commands for the sharefile CLI.

Commands:
- ls: List the children of a folder
- upload: Upload a file
- download-url: Print a temporary download URL
- share: Create a share link
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

import click
import httpx

from sharefile.chunking import DEFAULT_CHUNK_SIZE
from sharefile.cli.config import open_client
from sharefile.client import FOLDER_HOME
from sharefile.exceptions import ShareFileError
from sharefile.types import UploadProgress


def _fail(error: Exception) -> NoReturn:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


@click.command(name="ls")
@click.argument("item_id", default=FOLDER_HOME)
def list_items(item_id: str) -> None:
    """List the contents of a folder (default: home)."""
    try:
        with open_client() as client:
            folder = client.get_item_by_id(item_id, get_children=True)
    except (ShareFileError, httpx.HTTPError) as e:
        _fail(e)

    children = folder.get("Children") if isinstance(folder, dict) else None
    if not children:
        click.echo("(empty)")
        return
    for child in children:
        click.echo(f"{child.get('Id', '')}\t{child.get('FileName', '')}")


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--folder", "folder_id", default=FOLDER_HOME, help="Target folder id (default: home).")
@click.option(
    "--chunk-size",
    type=click.IntRange(min=1),
    default=DEFAULT_CHUNK_SIZE,
    show_default=True,
    help="Chunk size in bytes for streamed uploads.",
)
@click.option("--standard", is_flag=True, help="Upload with a single HTTP POST.")
@click.option("--no-overwrite", is_flag=True, help="Keep existing items with the same name.")
def upload(
    file: Path,
    folder_id: str,
    chunk_size: int,
    standard: bool,
    no_overwrite: bool,
) -> None:
    """Upload FILE to a folder."""

    def show_progress(progress: UploadProgress) -> None:
        click.echo(
            f"{progress.file_name}: chunk {progress.current_chunk}, "
            f"{progress.bytes_transferred}/{progress.file_size} bytes ({progress.percent:.0f}%)",
            err=True,
        )

    try:
        with open_client() as client:
            if standard:
                result = client.upload_file_standard(
                    file, folder_id, overwrite=not no_overwrite
                )
            else:
                with file.open("rb") as stream:
                    result = client.upload_file_streamed(
                        stream,
                        folder_id,
                        overwrite=not no_overwrite,
                        chunk_size=chunk_size,
                        progress_callback=show_progress,
                    )
    except (ShareFileError, httpx.HTTPError) as e:
        _fail(e)

    click.echo(result)


@click.command(name="download-url")
@click.argument("item_id")
def download_url(item_id: str) -> None:
    """Print a temporary download URL for an item."""
    try:
        with open_client() as client:
            spec = client.get_item_download_url(item_id)
    except (ShareFileError, httpx.HTTPError) as e:
        _fail(e)

    click.echo(spec.get("DownloadUrl", "") if isinstance(spec, dict) else spec)


@click.command()
@click.argument("item_id")
@click.option("--title", default=None, help="Share title.")
@click.option("--notify", is_flag=True, help="Notify me when the item is downloaded.")
def share(item_id: str, title: str | None, notify: bool) -> None:
    """Create a share link for an item."""
    options = {
        "ShareType": "Send",
        "Title": title or item_id,
        "Items": [{"Id": item_id}],
    }
    try:
        with open_client() as client:
            created = client.create_share(options, notify=notify)
    except (ShareFileError, httpx.HTTPError) as e:
        _fail(e)

    click.echo(created.get("Uri", "") if isinstance(created, dict) else created)
