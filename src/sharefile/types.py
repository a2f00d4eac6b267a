"""Shared types for the ShareFile client.

This module provides:
- AccessToken: OAuth2 token with the claims the API needs
- UploadSpecification: Server-issued upload target
- UploadFileInfo: File metadata sent when requesting an upload
- UploadProgress: Progress of a streamed upload
- Type aliases for callbacks
"""

from __future__ import annotations

import io
import os
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

from sharefile.exceptions import ShareFileError

# Claims stored as attributes; everything else ends up in AccessToken.extra
_TOKEN_FIELDS = ("access_token", "refresh_token", "expires", "expires_in", "subdomain", "token_type")


@dataclass
class AccessToken:
    """OAuth2 access token issued by the ShareFile token endpoint.

    Attributes:
        access_token: Bearer token value.
        subdomain: Account subdomain used to build API URLs.
        refresh_token: Token used for the refresh_token grant.
        expires: Expiry as a unix timestamp (None if unknown).
        token_type: Token type, normally "bearer".
        extra: Any other claims from the token response (e.g. "apicp").
    """

    access_token: str
    subdomain: str
    refresh_token: str | None = None
    expires: float | None = None
    token_type: str = "bearer"
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any], now: float | None = None) -> AccessToken:
        """Create from a token endpoint response or a stored token.

        A relative ``expires_in`` is converted to an absolute ``expires``.

        Raises:
            KeyError: If access_token or subdomain is missing.
        """
        expires = data.get("expires")
        if expires is None and data.get("expires_in") is not None:
            expires = (time.time() if now is None else now) + float(data["expires_in"])
        return cls(
            access_token=data["access_token"],
            subdomain=data["subdomain"],
            refresh_token=data.get("refresh_token"),
            expires=float(expires) if expires is not None else None,
            token_type=data.get("token_type") or "bearer",
            extra={k: v for k, v in data.items() if k not in _TOKEN_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data: dict[str, Any] = dict(self.extra)
        data.update(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expires=self.expires,
            subdomain=self.subdomain,
            token_type=self.token_type,
        )
        return data

    def has_expired(self, now: float | None = None) -> bool:
        """Check whether the token is past its expiry.

        Tokens without a known expiry are treated as valid.
        """
        if self.expires is None:
            return False
        return (time.time() if now is None else now) >= self.expires


@dataclass
class UploadSpecification:
    """Upload target returned by the Items(id)/Upload endpoint."""

    chunk_uri: str
    method: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> UploadSpecification:
        """Create from API response dictionary."""
        if not isinstance(data, dict) or not data.get("ChunkUri"):
            raise ShareFileError("Upload specification is missing 'ChunkUri'")
        return cls(
            chunk_uri=data["ChunkUri"],
            method=data.get("Method"),
            extra={k: v for k, v in data.items() if k not in ("ChunkUri", "Method")},
        )


@dataclass
class UploadFileInfo:
    """Metadata describing the file to upload.

    Timestamps are integer unix times, as expected by the
    clientCreatedDateUTC/clientModifiedDateUTC parameters.
    """

    name: str
    size: int
    created: int
    modified: int

    @classmethod
    def from_path(cls, path: str | Path) -> UploadFileInfo:
        """Read metadata from a file on disk.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        path = Path(path)
        st = path.stat()
        return cls(
            name=path.name,
            size=st.st_size,
            created=int(st.st_ctime),
            modified=int(st.st_mtime),
        )

    @classmethod
    def from_stream(cls, stream: IO[bytes], filename: str | None = None) -> UploadFileInfo:
        """Read metadata from an open binary stream.

        The name defaults to the basename of ``stream.name``. Streams
        backed by a file descriptor report its size and timestamps; other
        streams are measured by seeking and stamped with the current time.

        Raises:
            ValueError: If no filename is given and the stream has no name.
        """
        if not filename:
            stream_name = getattr(stream, "name", None)
            if not isinstance(stream_name, str) or not stream_name:
                raise ValueError(
                    "A filename is required when the stream has no name"
                )
            filename = stream_name
        name = os.path.basename(filename)

        try:
            st = os.fstat(stream.fileno())
        except (AttributeError, OSError, io.UnsupportedOperation):
            now = int(time.time())
            return cls(name=name, size=_remaining_size(stream), created=now, modified=now)

        return cls(
            name=name,
            size=max(st.st_size - _position(stream), 0),
            created=int(st.st_ctime),
            modified=int(st.st_mtime),
        )


@dataclass
class UploadProgress:
    """Progress update for a streamed upload."""

    file_name: str
    file_size: int
    current_chunk: int
    bytes_transferred: int

    @property
    def percent(self) -> float:
        """Get completion percentage."""
        if self.file_size == 0:
            return 100.0
        return min(self.bytes_transferred / self.file_size * 100, 100.0)


ProgressCallback = Callable[[UploadProgress], None]


def _position(stream: IO[bytes]) -> int:
    try:
        return stream.tell()
    except (AttributeError, OSError, io.UnsupportedOperation):
        return 0


def _remaining_size(stream: IO[bytes]) -> int:
    """Bytes between the current position and the end of a seekable stream."""
    try:
        start = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(start)
    except (AttributeError, OSError, io.UnsupportedOperation):
        return 0
    return end - start
