"""Exceptions raised by the ShareFile client.

This module provides:
- ShareFileError: Base exception for all client errors
- AuthenticationError: OAuth2 credential exchange failed
- BadRequest: Service-reported error (HTTP 400/403/404/409)
- StreamReadError: Reading an upload stream failed
- TokenStoreError, TokenNotFoundError: Token persistence errors
- raise_for_response: Classify a failed HTTP response
"""

from __future__ import annotations

import json
from typing import Any

import httpx

# Status codes for which the service returns a structured error body
BAD_REQUEST_STATUS_CODES = frozenset({400, 403, 404, 409})


class ShareFileError(Exception):
    """Base exception for ShareFile client errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(ShareFileError):
    """Credential exchange with the OAuth2 token endpoint failed."""


class StreamReadError(ShareFileError):
    """Reading from an upload stream failed."""


class TokenStoreError(ShareFileError):
    """Token store could not load or persist a token."""


class TokenNotFoundError(TokenStoreError):
    """No token stored under the requested identifier."""


class BadRequest(ShareFileError):
    """Error reported by the ShareFile API.

    Attributes:
        status_code: HTTP status code of the response.
        code: Service error code (e.g. "NotFound"), if supplied.
        message: Human readable message, if supplied.
    """

    def __init__(
        self,
        status_code: int,
        code: str | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(f"[{code or ''}] {message or ''}", status_code)
        self.code = code
        self.message = message

    @classmethod
    def from_response(cls, response: httpx.Response) -> BadRequest:
        """Build from a failed API response.

        The message is taken from ``error``, then ``error_description``,
        then ``message.value``.
        """
        try:
            body: Any = json.loads(response.text)
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return cls(response.status_code)

        message = body.get("error")
        if message is None:
            message = body.get("error_description")
        if message is None and isinstance(body.get("message"), dict):
            message = body["message"].get("value")

        return cls(response.status_code, code=body.get("code"), message=message)


def raise_for_response(response: httpx.Response) -> httpx.Response:
    """Raise for a failed response, classifying service errors.

    Args:
        response: Response returned by the transport.

    Returns:
        The response, if successful.

    Raises:
        BadRequest: For HTTP 400, 403, 404 and 409.
        httpx.HTTPStatusError: For any other failed status, unchanged.
    """
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        if response.status_code in BAD_REQUEST_STATUS_CODES:
            raise BadRequest.from_response(response) from e
        raise
    return response
