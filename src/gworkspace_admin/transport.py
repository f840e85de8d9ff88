"""Authenticated HTTP access to the Google REST APIs.

ApiClient owns one pooled ``httpx.AsyncClient`` shared by every worker of an
invocation and translates httpx failures into the tool's error taxonomy:
HTTP error statuses become RemoteError, connection problems TransportError.
"""

import json
import logging
import uuid
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

import httpx

from gworkspace_admin.auth.providers import TokenProvider
from gworkspace_admin.errors import RemoteError, TransportError

logger = logging.getLogger(__name__)

ADMIN_DIRECTORY_API_BASE = "https://admin.googleapis.com/admin/directory/v1"
ADMIN_REPORTS_API_BASE = "https://admin.googleapis.com/admin/reports/v1"
CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
CLOUD_IDENTITY_API_BASE = "https://cloudidentity.googleapis.com/v1"
DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_BASE = "https://www.googleapis.com/upload/drive/v3"
GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"
GROUPS_SETTINGS_API_BASE = "https://www.googleapis.com/groups/v1/groups"
LICENSING_API_BASE = "https://licensing.googleapis.com/apps/licensing/v1"


def segment(value: str, safe: str = "@") -> str:
    """Quote a resource ID for use in a URL path."""
    return quote(value, safe=safe)


class ApiClient:
    """Bearer-token HTTP client for Google APIs.

    Attributes:
        tokens: Provider handing out access tokens.

    Example:
        ```python
        async with ApiClient(DelegatedTokenProvider(key, subject, scopes)) as client:
            file = await client.request("GET", f"{DRIVE_API_BASE}/files/{file_id}")
        ```
    """

    def __init__(
        self,
        tokens: TokenProvider,
        transport: httpx.AsyncBaseTransport | None = None,
        max_connections: int = 100,
    ) -> None:
        """Initialize the client.

        Args:
            tokens: Token provider.
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
            max_connections: Connection pool size.
        """
        self.tokens = tokens
        self._transport = transport
        self._max_connections = max_connections
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                http2=True,
                transport=self._transport,
                limits=httpx.Limits(
                    max_connections=self._max_connections, max_keepalive_connections=20
                ),
                timeout=httpx.Timeout(60.0, connect=10.0),
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def raw_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make an authenticated request and return the raw response.

        Raises:
            RemoteError: If the API answers with an error status.
            TransportError: If no response was received.
        """
        access_token = await self.tokens.token()
        client = await self._get_http_client()

        request_headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
        if headers:
            request_headers.update(headers)

        logger.debug(f"{method} {url} params={params}")
        try:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                content=content,
                headers=request_headers,
            )
        except httpx.TransportError as e:
            raise TransportError(f"{method} {url}: {e.__class__.__name__}: {e}") from e

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteError.from_response(e.response) from e
        return response

    async def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
    ) -> dict[str, Any]:
        """Make an authenticated JSON request.

        Args:
            method: HTTP method.
            url: Full URL.
            params: Query parameters.
            json_data: JSON body.

        Returns:
            Decoded JSON response; an empty dict for empty responses (e.g. DELETE).
        """
        response = await self.raw_request(method, url, params=params, json_data=json_data)
        if not response.content:
            return {}
        result: dict[str, Any] = response.json()
        return result

    async def paginate(
        self,
        url: str,
        items_key: str,
        params: dict[str, Any] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Iterate over all items of a paged list call.

        Args:
            url: List endpoint.
            items_key: Response key holding the items of a page (``files``, ``users``...).
            params: Query parameters for the first page.

        Yields:
            Each item of each page.
        """
        page_params = dict(params or {})
        while True:
            page = await self.request("GET", url, params=page_params)
            for item in page.get(items_key, []):
                yield item
            token = page.get("nextPageToken")
            if not token:
                return
            page_params["pageToken"] = token

    async def upload_multipart(
        self,
        url: str,
        metadata: dict[str, Any],
        content: bytes,
        mime_type: str,
        params: dict[str, Any] | None = None,
        method: str = "POST",
    ) -> dict[str, Any]:
        """Upload metadata and content in one ``multipart/related`` request."""
        boundary = f"gworkspace_admin_{uuid.uuid4().hex}"
        body = b"".join(
            [
                f"--{boundary}\r\nContent-Type: application/json; charset=UTF-8\r\n\r\n".encode(),
                json.dumps(metadata).encode("utf-8"),
                f"\r\n--{boundary}\r\nContent-Type: {mime_type}\r\n\r\n".encode(),
                content,
                f"\r\n--{boundary}--".encode(),
            ]
        )
        upload_params = {"uploadType": "multipart", **(params or {})}
        response = await self.raw_request(
            method,
            url,
            params=upload_params,
            content=body,
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
        )
        result: dict[str, Any] = response.json()
        return result
