"""ShareFile API client - folders, items, shares and chunked uploads."""

from sharefile.auth import TokenManager
from sharefile.chunking import DEFAULT_CHUNK_SIZE, Chunk, StreamChunker, read_chunk
from sharefile.client import (
    FOLDER_ALLSHARED,
    FOLDER_FAVORITES,
    FOLDER_HOME,
    FOLDER_TOP,
    THUMBNAIL_SIZE_L,
    THUMBNAIL_SIZE_M,
    ShareFileClient,
)
from sharefile.config import ShareFileConfig
from sharefile.encoding import build_query, decode_body
from sharefile.exceptions import (
    AuthenticationError,
    BadRequest,
    ShareFileError,
    StreamReadError,
    TokenNotFoundError,
    TokenStoreError,
)
from sharefile.tokenstore import (
    FileTokenStore,
    KeyringTokenStore,
    MemoryTokenStore,
    TokenStore,
)
from sharefile.types import AccessToken, UploadFileInfo, UploadProgress, UploadSpecification
from sharefile.upload import StreamedUploader

__all__ = [
    # Client
    "FOLDER_ALLSHARED",
    "FOLDER_FAVORITES",
    "FOLDER_HOME",
    "FOLDER_TOP",
    "THUMBNAIL_SIZE_L",
    "THUMBNAIL_SIZE_M",
    "ShareFileClient",
    "ShareFileConfig",
    "build_query",
    "decode_body",
    # Auth
    "AccessToken",
    "FileTokenStore",
    "KeyringTokenStore",
    "MemoryTokenStore",
    "TokenManager",
    "TokenStore",
    # Uploads
    "DEFAULT_CHUNK_SIZE",
    "Chunk",
    "StreamChunker",
    "StreamedUploader",
    "UploadFileInfo",
    "UploadProgress",
    "UploadSpecification",
    "read_chunk",
    # Errors
    "AuthenticationError",
    "BadRequest",
    "ShareFileError",
    "StreamReadError",
    "TokenNotFoundError",
    "TokenStoreError",
]
