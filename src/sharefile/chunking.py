"""Fixed-size chunking of upload streams.

This module provides:
- Chunk: One slice of a stream with its MD5 checksum
- read_chunk: Read exactly one chunk, tolerating partial reads
- StreamChunker: Lazy, restartable sequence of chunks over a stream
"""

from __future__ import annotations

import hashlib
import io
from collections.abc import Iterator
from dataclasses import dataclass
from typing import IO

from sharefile.exceptions import StreamReadError

DEFAULT_CHUNK_SIZE = 8 * 1024 * 1024  # 8 MB


@dataclass(frozen=True)
class Chunk:
    """Represents a chunk of an upload stream.

    ``offset`` is always ``index * chunk_size``; only the final chunk may
    be shorter than chunk_size.
    """

    index: int
    offset: int
    data: bytes
    hash: str
    is_final: bool

    @property
    def size(self) -> int:
        """Return the size of this chunk in bytes."""
        return len(self.data)


def get_chunk_hash(data: bytes) -> str:
    """Compute the MD5 hex digest ShareFile expects for chunk payloads."""
    return hashlib.md5(data).hexdigest()


def read_chunk(stream: IO[bytes], size: int) -> bytes:
    """Read up to ``size`` bytes, retrying short reads until size or EOF.

    Args:
        stream: Binary stream to read from.
        size: Number of bytes wanted.

    Returns:
        The bytes read; fewer than ``size`` only at end of stream.

    Raises:
        StreamReadError: If the stream fails or does not return bytes.
    """
    buf = bytearray()
    while len(buf) < size:
        try:
            data = stream.read(size - len(buf))
        except (OSError, ValueError) as e:
            raise StreamReadError(f"Failed to read upload stream: {e}") from e
        if data is None:
            raise StreamReadError("Upload stream returned no data (non-blocking stream?)")
        if not isinstance(data, (bytes, bytearray)):
            raise StreamReadError("Upload stream must be opened in binary mode")
        if not data:
            break
        buf += data
    return bytes(buf)


class StreamChunker:
    """Splits a binary stream into fixed-size chunks.

    Iterating yields Chunk objects one at a time, reading lazily. The last
    chunk is the first one shorter than chunk_size, so a stream whose
    length is an exact multiple of chunk_size ends with an empty final
    chunk, and an empty stream yields a single empty final chunk.

    Iterating again restarts from the position the stream had when the
    chunker was created (seekable streams only). ``file_hash`` holds the
    MD5 of everything read once the final chunk has been produced.
    """

    def __init__(self, stream: IO[bytes], chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._stream = stream
        self._chunk_size = chunk_size
        self._start = _tell(stream)
        self._started = False
        self._file_hash: str | None = None

    @property
    def chunk_size(self) -> int:
        """Return the configured chunk size."""
        return self._chunk_size

    @property
    def file_hash(self) -> str | None:
        """MD5 of the whole stream, available after the final chunk."""
        return self._file_hash

    def __iter__(self) -> Iterator[Chunk]:
        if self._started:
            self._rewind()
        self._started = True
        self._file_hash = None

        hasher = hashlib.md5()
        index = 0
        while True:
            data = read_chunk(self._stream, self._chunk_size)
            hasher.update(data)
            is_final = len(data) < self._chunk_size
            if is_final:
                self._file_hash = hasher.hexdigest()
            yield Chunk(
                index=index,
                offset=index * self._chunk_size,
                data=data,
                hash=get_chunk_hash(data),
                is_final=is_final,
            )
            if is_final:
                return
            index += 1

    def _rewind(self) -> None:
        if self._start is None:
            raise StreamReadError("Stream is not seekable and cannot be re-read")
        try:
            self._stream.seek(self._start)
        except (OSError, ValueError) as e:
            raise StreamReadError(f"Failed to rewind upload stream: {e}") from e


def _tell(stream: IO[bytes]) -> int | None:
    try:
        if hasattr(stream, "seekable") and not stream.seekable():
            return None
        return stream.tell()
    except (AttributeError, OSError, io.UnsupportedOperation):
        return None
