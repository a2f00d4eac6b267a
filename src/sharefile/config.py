"""Connection settings for the ShareFile client.

This module defines the configuration used by the token manager and the
API client.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_API_HOST = "sf-api.com"


@dataclass
class ShareFileConfig:
    """Credentials and connection settings for a ShareFile account.

    Attributes:
        hostname: Account hostname used for authentication
            (e.g., "acme.sharefile.com").
        client_id: OAuth2 client id.
        client_secret: OAuth2 client secret.
        username: ShareFile username (email address).
        password: ShareFile password.
        api_host: API domain the subdomain claim is prefixed to.
        timeout: Request/connection timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    hostname: str
    client_id: str
    client_secret: str = field(repr=False)
    username: str
    password: str = field(repr=False)
    api_host: str = DEFAULT_API_HOST
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize hostname to a bare host."""
        hostname = self.hostname.strip()
        for scheme in ("https://", "http://"):
            if hostname.startswith(scheme):
                hostname = hostname[len(scheme):]
        self.hostname = hostname.rstrip("/")

    @property
    def token_url(self) -> str:
        """Get the OAuth2 token endpoint.

        Returns:
            Token endpoint URL on the account hostname.
        """
        return f"https://{self.hostname}/oauth/token"

    @property
    def token_identifier(self) -> str:
        """Get the key under which this account's token is stored."""
        return f"sf-{self.username}"
