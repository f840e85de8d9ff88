"""Access token providers shared by all workers of an invocation.

A provider hands out a bearer token and refreshes it when needed. Refreshes
are serialised with an asyncio.Lock so concurrent workers trigger at most one
refresh.
"""

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from google.auth import exceptions as google_exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from gworkspace_admin.auth.oauth_manager import OAuthManager
from gworkspace_admin.errors import ConfigError, TransportError

logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    async def token(self) -> str: ...


class StaticTokenProvider:
    """Always returns the same token."""

    def __init__(self, access_token: str) -> None:
        self.access_token = access_token

    async def token(self) -> str:
        return self.access_token


class DelegatedTokenProvider:
    """Service account with domain-wide delegation impersonating ``subject``.

    Args:
        credentials_file: Service account key file.
        subject: Email address of the user to impersonate.
        scopes: OAuth scopes granted to the service account in the admin console.

    Raises:
        ConfigError: If the key file cannot be loaded.
    """

    def __init__(self, credentials_file: Path, subject: str, scopes: list[str]) -> None:
        if not subject:
            raise ConfigError("delegated mode needs a subject (config 'subject' or --dwdSubject)")
        try:
            credentials = service_account.Credentials.from_service_account_file(
                str(credentials_file), scopes=scopes
            )
        except (OSError, ValueError) as e:
            raise ConfigError(f"cannot load service account key {credentials_file}: {e}") from e
        self._credentials = credentials.with_subject(subject)
        self._lock = asyncio.Lock()

    async def token(self) -> str:
        async with self._lock:
            if not self._credentials.valid:
                logger.debug(f"Refreshing delegated token for {self._credentials.signer_email}")
                loop = asyncio.get_running_loop()
                try:
                    await loop.run_in_executor(None, self._credentials.refresh, Request())
                except google_exceptions.RefreshError as e:
                    raise ConfigError(f"Token refresh failed: {e}") from e
                except google_exceptions.TransportError as e:
                    raise TransportError(f"Token refresh failed: {e}") from e
            return self._credentials.token


class UserTokenProvider:
    """Token of an interactively authorized user, refreshed through OAuthManager."""

    def __init__(self, manager: OAuthManager, client_id: str, client_secret: str) -> None:
        self.manager = manager
        self._client_id = client_id
        self._client_secret = client_secret
        self._lock = asyncio.Lock()

    async def token(self) -> str:
        async with self._lock:
            token = await self.manager.refresh_if_needed(self._client_id, self._client_secret)
            return token.access_token
