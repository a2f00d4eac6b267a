"""HTTP client for the ShareFile v3 API.

This module provides:
- ShareFileClient: Authenticated client with one method per endpoint
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import IO, Any
from urllib.parse import quote

import httpx

from sharefile.auth import TokenManager
from sharefile.chunking import DEFAULT_CHUNK_SIZE
from sharefile.config import ShareFileConfig
from sharefile.encoding import build_query, decode_body
from sharefile.exceptions import raise_for_response
from sharefile.tokenstore import TokenStore
from sharefile.types import (
    AccessToken,
    ProgressCallback,
    UploadFileInfo,
    UploadSpecification,
)
from sharefile.upload import StreamedUploader

logger = logging.getLogger(__name__)

# Thumbnail sizes
THUMBNAIL_SIZE_M = 75
THUMBNAIL_SIZE_L = 600

# Special folder ids
FOLDER_TOP = "top"
FOLDER_HOME = "home"
FOLDER_FAVORITES = "favorites"
FOLDER_ALLSHARED = "allshared"


class ShareFileClient:
    """HTTP client for the ShareFile v3 API.

    An access token is acquired when the client is created, so invalid
    credentials fail immediately with AuthenticationError.
    """

    def __init__(
        self,
        config: ShareFileConfig,
        token_store: TokenStore | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client and authenticate.

        Args:
            config: Account credentials and connection settings.
            token_store: Optional store used to reuse tokens across runs.
            transport: Optional httpx transport (e.g. httpx.MockTransport).

        Raises:
            AuthenticationError: If the credential exchange fails.
        """
        self._config = config
        self._client = httpx.Client(
            timeout=config.timeout,
            verify=config.verify_ssl,
            transport=transport,
            follow_redirects=True,
        )
        self._auth = TokenManager(config, self._client, token_store)
        try:
            self._auth.get_access_token()
        except BaseException:
            self._client.close()
            raise

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> ShareFileClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    @property
    def config(self) -> ShareFileConfig:
        """Get the connection settings."""
        return self._config

    @property
    def auth(self) -> TokenManager:
        """Get the token manager."""
        return self._auth

    def get_access_token(self) -> AccessToken:
        """Get a valid access token, refreshing it if it expired."""
        return self._auth.get_access_token()

    # === Request building ===

    def build_uri(self, endpoint: str, token: AccessToken | None = None) -> str:
        """Build the absolute URL for an API endpoint.

        Absolute URLs (such as chunk upload targets) are returned unchanged.
        """
        if endpoint.startswith(("https://", "http://")):
            return endpoint
        if token is None:
            token = self._auth.get_access_token()
        api_host = token.extra.get("apicp") or self._config.api_host
        return f"https://{token.subdomain}.{api_host}/sf/v3/{endpoint}"

    def send(
        self,
        method: str,
        endpoint: str,
        json_body: Any = None,
        *,
        content: bytes | None = None,
        files: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Send an authenticated request.

        Args:
            method: HTTP method.
            endpoint: Endpoint relative to /sf/v3/, or an absolute URL.
            json_body: Optional JSON payload.
            content: Optional raw request body.
            files: Optional multipart files.
            headers: Extra request headers.

        Returns:
            The successful response.

        Raises:
            BadRequest: For HTTP 400/403/404/409.
            httpx.HTTPStatusError: For other failed responses.
            httpx.RequestError: For transport failures.
        """
        token = self._auth.get_access_token()
        url = self.build_uri(endpoint, token)
        request_headers = {"Authorization": f"Bearer {token.access_token}"}
        if headers:
            request_headers.update(headers)

        logger.debug(f"{method} {url}")
        response = self._client.request(
            method,
            url,
            json=json_body,
            content=content,
            files=files,
            headers=request_headers,
        )
        return raise_for_response(response)

    def request(self, method: str, endpoint: str, json_body: Any = None) -> Any:
        """Send a request and decode the response body.

        Returns:
            Decoded JSON, or the body text if it is not JSON.
        """
        return decode_body(self.send(method, endpoint, json_body).text)

    def get(self, endpoint: str) -> Any:
        """Shorthand for a GET request."""
        return self.request("GET", endpoint)

    def post(self, endpoint: str, json_body: Any = None) -> Any:
        """Shorthand for a POST request."""
        return self.request("POST", endpoint, json_body)

    def patch(self, endpoint: str, json_body: Any = None) -> Any:
        """Shorthand for a PATCH request."""
        return self.request("PATCH", endpoint, json_body)

    def delete(self, endpoint: str) -> Any:
        """Shorthand for a DELETE request."""
        return self.request("DELETE", endpoint)

    # === Users ===

    def get_user(self, user_id: str = "") -> Any:
        """Get user details (the current user when user_id is empty)."""
        return self.get(f"Users({user_id})")

    def update_user(self, user_id: str, data: dict[str, Any]) -> Any:
        """Update user details.

        Args:
            user_id: User id.
            data: Fields to update.

        Returns:
            Updated user.
        """
        return self.patch(f"Users({user_id})", data)

    # === Items ===

    def create_folder(
        self,
        parent_id: str,
        name: str,
        description: str = "",
        overwrite: bool = False,
    ) -> Any:
        """Create a folder.

        Args:
            parent_id: Id of the parent folder.
            name: Folder name.
            description: Folder description.
            overwrite: Replace an existing folder with the same name.

        Returns:
            Created folder.
        """
        parameters = build_query({"overwrite": overwrite, "passthrough": False})
        return self.post(
            f"Items({parent_id})/Folder?{parameters}",
            {"name": name, "description": description},
        )

    def get_item_by_id(self, item_id: str, get_children: bool = False) -> Any:
        """Get a folder or file by id.

        Args:
            item_id: Item id.
            get_children: Expand the item's children.
        """
        if get_children:
            return self.get(f"Items({item_id})?$expand=Children")
        return self.get(f"Items({item_id})")

    def get_item_by_path(self, path: str, item_id: str = "") -> Any:
        """Get a folder or file by path.

        Args:
            path: Item path (e.g., "/Personal Folders/picture.jpg").
            item_id: Id of the folder the path is relative to (optional).
        """
        encoded = quote(path, safe="/")
        if not item_id:
            return self.get(f"Items/ByPath?Path={encoded}")
        return self.get(f"Items({item_id})/ByPath?Path={encoded}")

    def get_item_breadcrumbs(self, item_id: str) -> Any:
        """Get the breadcrumbs (parent chain) of an item."""
        return self.get(f"Items({item_id})/Breadcrumbs")

    def copy_item(self, target_id: str, item_id: str, overwrite: bool = False) -> Any:
        """Copy an item into another folder.

        Args:
            target_id: Id of the target folder.
            item_id: Id of the item to copy.
            overwrite: Replace items with the same name.

        Returns:
            The copied item.
        """
        parameters = build_query({"targetid": target_id, "overwrite": overwrite})
        return self.post(f"Items({item_id})/Copy?{parameters}")

    def update_item(
        self,
        item_id: str,
        data: dict[str, Any],
        force_sync: bool = True,
        notify: bool = True,
    ) -> Any:
        """Update an item (rename, move, change description...).

        Args:
            item_id: Item id.
            data: Fields to update.
            force_sync: Run the operation synchronously.
            notify: Email users subscribed to upload notifications.

        Returns:
            Updated item.
        """
        parameters = build_query({"forceSync": force_sync, "notify": notify})
        return self.patch(f"Items({item_id})?{parameters}", data)

    def delete_item(
        self,
        item_id: str,
        single_version: bool = False,
        force_sync: bool = False,
    ) -> Any:
        """Delete an item.

        Args:
            item_id: Item id.
            single_version: Delete only this version instead of all
                sibling files with the same filename.
            force_sync: Block the operation from running asynchronously.
        """
        parameters = build_query({"singleversion": single_version, "forceSync": force_sync})
        return self.delete(f"Items({item_id})?{parameters}")

    def get_item_download_url(self, item_id: str, include_all_versions: bool = False) -> Any:
        """Get a temporary download URL for an item.

        Args:
            item_id: Item id.
            include_all_versions: For folders, include old file versions
                in the zip.

        Returns:
            Download specification with a DownloadUrl.
        """
        parameters = build_query(
            {"includeallversions": include_all_versions, "redirect": False}
        )
        return self.get(f"Items({item_id})/Download?{parameters}")

    def get_item_contents(self, item_id: str, include_all_versions: bool = False) -> Any:
        """Download the contents of an item.

        Intended for text content: the body is decoded as text, so binary
        files should be fetched from get_item_download_url() instead.

        Returns:
            Decoded JSON for JSON content, the text otherwise.
        """
        parameters = build_query(
            {"includeallversions": include_all_versions, "redirect": True}
        )
        return self.get(f"Items({item_id})/Download?{parameters}")

    def get_thumbnail_url(self, item_id: str, size: int = THUMBNAIL_SIZE_M) -> Any:
        """Get the thumbnail URL of an item.

        Args:
            item_id: Item id.
            size: THUMBNAIL_SIZE_M or THUMBNAIL_SIZE_L.
        """
        parameters = build_query({"size": size, "redirect": False})
        return self.get(f"Items({item_id})/Thumbnail?{parameters}")

    def get_web_app_link(self, item_id: str) -> Any:
        """Get a browser link for an item."""
        return self.post(f"Items({item_id})/WebAppLink")

    # === Shares and access controls ===

    def create_share(self, options: dict[str, Any], notify: bool = False) -> Any:
        """Create a share for external users.

        Args:
            options: Share definition (ShareType, Title, Items...).
            notify: Notify the creator when the item is downloaded.

        Returns:
            Created share.
        """
        parameters = build_query({"notify": notify, "direct": True})
        return self.post(f"Shares?{parameters}", options)

    def get_item_access_controls(self, item_id: str, user_id: str = "") -> Any:
        """Get access controls of an item, optionally for one user."""
        if user_id:
            return self.get(f"AccessControls(principalid={user_id},itemid={item_id})")
        return self.get(f"Items({item_id})/AccessControls")

    # === Uploads ===

    def request_upload(
        self,
        folder_id: str,
        file_info: UploadFileInfo,
        method: str = "standard",
        raw: bool = False,
        unzip: bool = False,
        overwrite: bool = True,
        notify: bool = True,
    ) -> Any:
        """Ask the server for an upload specification.

        Args:
            folder_id: Id of the parent folder.
            file_info: Name, size and timestamps of the file.
            method: Upload method ("standard" or "streamed").
            raw: Chunks are sent as raw request bodies.
            unzip: Extract an uploaded zip file into the folder.
            overwrite: Replace items with the same name.
            notify: Notify users based on folder preferences.

        Returns:
            Upload specification containing ChunkUri.
        """
        parameters = build_query(
            {
                "method": method,
                "raw": raw,
                "fileName": file_info.name,
                "fileSize": file_info.size,
                "canResume": False,
                "startOver": False,
                "unzip": unzip,
                "tool": "apiv3",
                "overwrite": overwrite,
                "title": file_info.name,
                "isSend": False,
                "responseFormat": "json",
                "notify": notify,
                "clientCreatedDateUTC": file_info.created,
                "clientModifiedDateUTC": file_info.modified,
            }
        )
        return self.post(f"Items({folder_id})/Upload?{parameters}")

    def get_chunk_uri(
        self,
        method: str,
        filename: str | Path,
        folder_id: str,
        unzip: bool = False,
        overwrite: bool = True,
        notify: bool = True,
    ) -> Any:
        """Get the upload specification for a file on disk.

        Args:
            method: Upload method ("standard" or "streamed").
            filename: Path of the file to upload.
            folder_id: Id of the parent folder.
            unzip: Extract an uploaded zip file into the folder.
            overwrite: Replace items with the same name.
            notify: Notify users based on folder preferences.
        """
        return self.request_upload(
            folder_id,
            UploadFileInfo.from_path(filename),
            method=method,
            unzip=unzip,
            overwrite=overwrite,
            notify=notify,
        )

    def upload_file_standard(
        self,
        filename: str | Path,
        folder_id: str,
        unzip: bool = False,
        overwrite: bool = True,
        notify: bool = True,
    ) -> str:
        """Upload a file with a single multipart POST.

        Returns:
            Response body of the upload request.
        """
        path = Path(filename)
        spec = UploadSpecification.from_dict(
            self.get_chunk_uri("standard", path, folder_id, unzip, overwrite, notify)
        )
        logger.info(f"Uploading {path.name} to folder {folder_id}")
        with path.open("rb") as f:
            response = self.send("POST", spec.chunk_uri, files={"File1": (path.name, f)})
        return response.text

    def upload_file_streamed(
        self,
        stream: IO[bytes],
        folder_id: str,
        filename: str | None = None,
        unzip: bool = False,
        overwrite: bool = True,
        notify: bool = True,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        progress_callback: ProgressCallback | None = None,
    ) -> str:
        """Upload a binary stream in sequential chunks.

        Args:
            stream: Binary stream to upload.
            folder_id: Id of the parent folder.
            filename: Name of the file (defaults to the stream's name).
            unzip: Extract an uploaded zip file into the folder.
            overwrite: Replace items with the same name.
            notify: Notify users based on folder preferences.
            chunk_size: Chunk size in bytes.
            progress_callback: Called after each accepted chunk.

        Returns:
            Response body of the final chunk, or of the first rejected chunk.
        """
        uploader = StreamedUploader(self, chunk_size, progress_callback)
        return uploader.upload(stream, folder_id, filename, unzip, overwrite, notify)
