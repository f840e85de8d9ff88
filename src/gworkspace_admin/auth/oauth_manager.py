"""Interactive OAuth2 login for ``user`` mode configurations.

The client secrets file named by the configuration's ``credentials_file`` is a
Google OAuth client JSON (``installed`` or ``web``). ``auth login`` runs the
consent flow with a one-shot local HTTP listener as redirect target and stores
the resulting token beside the configuration.

Environment Variables:
    GWSADMIN_OAUTH_REDIRECT_URI: Redirect URI (default: http://127.0.0.1:8789/callback)
"""

import asyncio
import json
import logging
import os
import secrets
import webbrowser
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from urllib.parse import parse_qs, urlparse

from google.auth.exceptions import RefreshError
from google.auth.exceptions import TransportError as GoogleTransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from gworkspace_admin.auth.models import OAuthToken, StoredToken, TokenMetadata, TokenStatus
from gworkspace_admin.auth.token_storage import TokenStorage
from gworkspace_admin.errors import ConfigError, TransportError

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"

DEFAULT_OAUTH_HOST = "127.0.0.1"
DEFAULT_OAUTH_PORT = 8789
DEFAULT_REDIRECT_URI = "http://127.0.0.1:8789/callback"


def load_client_secrets(path: Path) -> tuple[str, str]:
    """Read client ID and secret from a Google OAuth client JSON file.

    Raises:
        ConfigError: If the file is missing or not a client secrets file.
    """
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot read client secrets {path}: {e}") from e
    section = data.get("installed") or data.get("web") if isinstance(data, dict) else None
    if not section or "client_id" not in section or "client_secret" not in section:
        raise ConfigError(f"{path} is not an OAuth client secrets file")
    return section["client_id"], section["client_secret"]


class _CallbackServer(HTTPServer):
    """One-shot listener remembering what the OAuth redirect carried."""

    def __init__(self, address: tuple[str, int], callback_path: str, state: str) -> None:
        super().__init__(address, _CallbackHandler)
        self.callback_path = callback_path
        self.state = state
        self.code: str | None = None
        self.error: str | None = None


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackServer

    def log_message(self, format: str, *args) -> None:
        logger.debug(f"callback: {format % args}")

    def do_GET(self) -> None:
        url = urlparse(self.path)
        if url.path != self.server.callback_path:
            self._answer(404, "Not Found")
            return
        query = {key: values[0] for key, values in parse_qs(url.query).items()}
        if "error" in query:
            self.server.error = query["error"]
        elif query.get("state") != self.server.state:
            self.server.error = "state mismatch"
        elif not query.get("code"):
            self.server.error = "no authorization code in the redirect"
        else:
            self.server.code = query["code"]
            self._answer(200, "gworkspace-admin is authorized. You can close this tab.")
            return
        self._answer(400, f"Authorization failed: {self.server.error}")

    def _answer(self, status: int, text: str) -> None:
        body = f"<!doctype html><title>gworkspace-admin</title><p>{text}</p>".encode()
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


def _wait_for_code(redirect_uri: str, state: str, open_browser: Callable[[], object], timeout: float = 300) -> str:
    """Serve the redirect URI until Google calls it once and return the code.

    Raises:
        ConfigError: If consent was denied, the state does not match or no
            request arrived within ``timeout`` seconds.
    """
    target = urlparse(redirect_uri)
    address = (target.hostname or DEFAULT_OAUTH_HOST, target.port or DEFAULT_OAUTH_PORT)
    with _CallbackServer(address, target.path or "/callback", state) as server:
        server.timeout = timeout
        open_browser()
        server.handle_request()
    if server.error:
        raise ConfigError(f"OAuth authentication failed: {server.error}")
    if server.code is None:
        raise ConfigError("No authorization code received from Google")
    return server.code


class OAuthManager:
    """OAuth flow, storage and refresh for one configuration.

    Attributes:
        storage: Token storage for the configuration.
        service_name: Name of the configuration, recorded in token metadata.

    Example:
        ```python
        manager = OAuthManager(TokenStorage(path), service_name="work")
        await manager.authenticate(scopes, client_id, client_secret)
        token = await manager.refresh_if_needed()
        ```
    """

    def __init__(self, storage: TokenStorage, service_name: str) -> None:
        self.storage = storage
        self.service_name = service_name

    @property
    def token_path(self) -> Path:
        return self.storage.token_path

    def has_valid_tokens(self) -> bool:
        return self.storage.get_status() == TokenStatus.VALID

    def _credentials_to_token(self, credentials: Credentials, scopes: list[str]) -> OAuthToken:
        if credentials.expiry:
            expires_at = credentials.expiry
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
        else:
            expires_at = datetime.now(timezone.utc) + timedelta(hours=1)

        return OAuthToken(  # nosec B106 - "Bearer" is OAuth token type, not a password
            access_token=credentials.token,
            refresh_token=credentials.refresh_token,
            expires_at=expires_at,
            scopes=scopes,
            token_type="Bearer",
        )

    def _token_to_credentials(self, token: OAuthToken, client_id: str, client_secret: str) -> Credentials:
        return Credentials(  # nosec B106 - token_uri is public Google OAuth endpoint
            token=token.access_token,
            refresh_token=token.refresh_token,
            token_uri=TOKEN_URI,
            client_id=client_id,
            client_secret=client_secret,
            scopes=token.scopes,
        )

    async def authenticate(self, scopes: list[str], client_id: str, client_secret: str) -> OAuthToken:
        """Run the consent flow and store the token.

        Args:
            scopes: OAuth scopes to request.
            client_id: OAuth client ID.
            client_secret: OAuth client secret.

        Returns:
            The new OAuthToken.

        Raises:
            ConfigError: If the user denies consent or no code comes back.
        """
        redirect_uri = os.environ.get("GWSADMIN_OAUTH_REDIRECT_URI", DEFAULT_REDIRECT_URI)
        client_config = {
            "web": {
                "client_id": client_id,
                "client_secret": client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
                "redirect_uris": [redirect_uri],
            }
        }

        loop = asyncio.get_running_loop()
        credentials = await loop.run_in_executor(
            None, self._run_oauth_flow, client_config, scopes, redirect_uri
        )

        token = self._credentials_to_token(credentials, scopes)
        self.storage.store(token, TokenMetadata(service_name=self.service_name))
        logger.info(f"Token for {self.service_name} stored at {self.token_path}")
        return token

    def _run_oauth_flow(self, client_config: dict, scopes: list[str], redirect_uri: str) -> Credentials:
        """Run the blocking browser flow and exchange the code for tokens."""
        flow = Flow.from_client_config(client_config, scopes=scopes, redirect_uri=redirect_uri)
        state = secrets.token_urlsafe(32)
        auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent", state=state)

        logger.info("Opening browser for Google authorization...")
        logger.info(f"If the browser doesn't open, visit: {auth_url}")
        code = _wait_for_code(redirect_uri, state, lambda: webbrowser.open(auth_url))

        flow.fetch_token(code=code)
        return flow.credentials

    async def refresh_if_needed(self, client_id: str, client_secret: str) -> OAuthToken:
        """Return a valid token, refreshing it first if it is about to expire.

        Raises:
            ConfigError: If there is no usable token; run ``auth login``.
            TransportError: If the refresh request fails.
        """
        stored = self.storage.retrieve()
        if stored is None:
            raise ConfigError(
                f"No token for configuration '{self.service_name}'. Run: gworkspace-admin auth login"
            )
        if not stored.token.is_expired():
            return stored.token
        if stored.token.refresh_token is None:
            raise ConfigError(
                f"Token for '{self.service_name}' expired and cannot be refreshed. Run: gworkspace-admin auth login"
            )

        credentials = self._token_to_credentials(stored.token, client_id, client_secret)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, credentials.refresh, Request())
        except RefreshError as e:
            raise ConfigError(f"Token refresh failed: {e}") from e
        except (GoogleTransportError, OSError) as e:
            raise TransportError(f"Token refresh failed: {e}") from e

        new_token = self._credentials_to_token(credentials, stored.token.scopes)
        stored.metadata.last_refreshed = datetime.now(timezone.utc)
        self.storage.store(new_token, stored.metadata)
        logger.debug(f"Refreshed token for {self.service_name}")
        return new_token

    def get_status(self) -> tuple[TokenStatus, StoredToken | None]:
        """Return the token status and the stored token, if any."""
        status = self.storage.get_status()
        stored = self.storage.retrieve() if status != TokenStatus.MISSING else None
        return status, stored
