"""Streamed (chunked) uploads.

This module provides:
- StreamedUploader: Uploads a binary stream in sequential chunks

Protocol:
1. Items(folder)/Upload with method=streamed and raw=true returns a ChunkUri.
2. Each chunk is POSTed as the raw body to
   ChunkUri&index=..&byteOffset=..&hash=<md5 of chunk>; the server answers
   "true" when it accepted the chunk.
3. The final chunk also carries filehash=<md5 of the whole stream> and
   finish=true; its response body is the upload result.
"""

from __future__ import annotations

import logging
from typing import IO, TYPE_CHECKING, Any

from sharefile.chunking import DEFAULT_CHUNK_SIZE, Chunk, StreamChunker
from sharefile.encoding import build_query
from sharefile.types import (
    ProgressCallback,
    UploadFileInfo,
    UploadProgress,
    UploadSpecification,
)

if TYPE_CHECKING:
    from sharefile.client import ShareFileClient

logger = logging.getLogger(__name__)

# Response body of an accepted non-final chunk
CHUNK_ACCEPTED = "true"


def chunk_upload_url(chunk_uri: str, query: str) -> str:
    """Append query parameters to a server-issued chunk URI."""
    separator = "&" if "?" in chunk_uri else "?"
    return f"{chunk_uri}{separator}{query}"


class StreamedUploader:
    """Uploads a stream to a folder using the streamed upload method.

    Chunks are sent strictly one after the other. Nothing is retried: a
    failed request raises, a rejected chunk ends the upload and its
    response body is returned.
    """

    def __init__(
        self,
        client: ShareFileClient,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize the uploader.

        Args:
            client: Authenticated API client.
            chunk_size: Chunk size in bytes.
            progress_callback: Optional callback for progress updates.
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._client = client
        self._chunk_size = chunk_size
        self._progress_callback = progress_callback

    def upload(
        self,
        stream: IO[bytes],
        folder_id: str,
        filename: str | None = None,
        unzip: bool = False,
        overwrite: bool = True,
        notify: bool = True,
    ) -> str:
        """Upload a stream.

        Args:
            stream: Binary stream positioned at the first byte to upload.
            folder_id: Id of the parent folder.
            filename: Name of the file (defaults to the stream's name).
            unzip: Extract an uploaded zip file into the folder.
            overwrite: Replace items with the same name.
            notify: Notify users based on folder preferences.

        Returns:
            Response body of the final chunk, or of the first chunk the
            server did not accept.

        Raises:
            ValueError: If no filename is given and the stream has no name.
            StreamReadError: If reading the stream fails.
            BadRequest: If the API rejects a request.
        """
        file_info = UploadFileInfo.from_stream(stream, filename)
        logger.info(
            f"Uploading {file_info.name} ({file_info.size} bytes) to folder {folder_id}"
        )

        spec = UploadSpecification.from_dict(
            self._client.request_upload(
                folder_id,
                file_info,
                method="streamed",
                raw=True,
                unzip=unzip,
                overwrite=overwrite,
                notify=notify,
            )
        )

        chunker = StreamChunker(stream, self._chunk_size)
        bytes_transferred = 0
        result = ""
        for chunk in chunker:
            params: dict[str, Any] = {
                "index": chunk.index,
                "byteOffset": chunk.offset,
                "hash": chunk.hash,
            }
            if chunk.is_final:
                params["filehash"] = chunker.file_hash
                params["finish"] = True

            result = self._post_chunk(spec.chunk_uri, chunk, params)

            if not chunk.is_final and result != CHUNK_ACCEPTED:
                logger.warning(
                    f"Chunk {chunk.index} of {file_info.name} was not accepted: {result!r}"
                )
                return result

            bytes_transferred += chunk.size
            if self._progress_callback:
                self._progress_callback(
                    UploadProgress(
                        file_name=file_info.name,
                        file_size=file_info.size,
                        current_chunk=chunk.index + 1,
                        bytes_transferred=bytes_transferred,
                    )
                )

        logger.info(f"Uploaded {file_info.name} ({bytes_transferred} bytes)")
        return result

    def _post_chunk(self, chunk_uri: str, chunk: Chunk, params: dict[str, Any]) -> str:
        """POST one chunk as the raw request body."""
        logger.debug(
            f"Sending chunk {chunk.index} ({chunk.size} bytes at offset {chunk.offset})"
        )
        response = self._client.send(
            "POST",
            chunk_upload_url(chunk_uri, build_query(params)),
            content=chunk.data,
            headers={
                "Content-Type": "application/octet-stream",
                "Content-Length": str(chunk.size),
            },
        )
        return response.text
