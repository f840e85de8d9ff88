"""Shared pytest fixtures for gworkspace-admin tests.

This module provides reusable fixtures for token storage and OAuth tests, an
in-memory Google API fake served through ``httpx.MockTransport`` and a
Runtime wired to it for CLI tests.
"""

import io
import json
import logging
import re
from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from gworkspace_admin.api import DriveApi
from gworkspace_admin.api.drive import FOLDER_MIME_TYPE
from gworkspace_admin.auth import StaticTokenProvider
from gworkspace_admin.auth.models import OAuthToken, StoredToken, TokenMetadata
from gworkspace_admin.cli.logs import PACKAGE_LOGGER
from gworkspace_admin.cli.runtime import Runtime
from gworkspace_admin.transport import ApiClient

# =============================================================================
# Environment isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the configuration directory and working directory at tmp_path."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("GWSADMIN_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("GWSADMIN_CONFIG", raising=False)
    work_dir = tmp_path / "work"
    work_dir.mkdir()
    monkeypatch.chdir(work_dir)
    return config_dir


@pytest.fixture(autouse=True)
def reset_package_logger() -> Generator[None, None, None]:
    """Undo the handlers the CLI installs so caplog keeps working."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def valid_token() -> OAuthToken:
    """Create a valid, non-expired OAuth token."""
    return OAuthToken(
        access_token="test_access_token_abc123",
        refresh_token="test_refresh_token_xyz789",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        scopes=[
            "https://www.googleapis.com/auth/admin.directory.user",
            "https://www.googleapis.com/auth/drive",
        ],
        token_type="Bearer",
    )


@pytest.fixture
def expired_token() -> OAuthToken:
    """Create an expired OAuth token."""
    return OAuthToken(
        access_token="expired_access_token",
        refresh_token="test_refresh_token",
        expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
        scopes=["https://www.googleapis.com/auth/drive"],
        token_type="Bearer",
    )


@pytest.fixture
def token_metadata() -> TokenMetadata:
    """Create token metadata for testing."""
    return TokenMetadata(
        service_name="work",
        provider="google",
        created_at=datetime.now(timezone.utc) - timedelta(days=1),
    )


@pytest.fixture
def stored_token(valid_token: OAuthToken, token_metadata: TokenMetadata) -> StoredToken:
    """Create a complete stored token for testing."""
    return StoredToken(version=1, metadata=token_metadata, token=valid_token)


# =============================================================================
# Token Storage Fixtures
# =============================================================================


@pytest.fixture
def temp_token_path(tmp_path: Path) -> Path:
    """Get the path for a temporary token file."""
    return tmp_path / "tokens" / "work_token.json"


@pytest.fixture
def token_storage(temp_token_path: Path):
    """Create a TokenStorage instance with temporary storage."""
    from gworkspace_admin.auth.token_storage import TokenStorage

    return TokenStorage(token_path=temp_token_path)


@pytest.fixture
def oauth_manager(token_storage):
    """Create an OAuthManager with temporary storage."""
    from gworkspace_admin.auth.oauth_manager import OAuthManager

    return OAuthManager(storage=token_storage, service_name="work")


@pytest.fixture
def mock_google_credentials() -> MagicMock:
    """Create a mock Google OAuth2 Credentials object."""
    mock_creds = MagicMock()
    mock_creds.token = "mock_access_token"
    mock_creds.refresh_token = "mock_refresh_token"
    mock_creds.expiry = datetime.now(timezone.utc) + timedelta(hours=1)
    mock_creds.expired = False
    mock_creds.valid = True
    mock_creds.scopes = ["https://www.googleapis.com/auth/drive"]
    return mock_creds


# =============================================================================
# Mock Google API
# =============================================================================


def error_response(status: int, message: str = "error", reason: str = "backendError") -> httpx.Response:
    """A response carrying the Google JSON error envelope."""
    return httpx.Response(
        status,
        json={"error": {"code": status, "message": message, "errors": [{"reason": reason, "message": message}]}},
    )


class FakeDrive:
    """In-memory Drive v3 files endpoint.

    Supports get, list (``'<id>' in parents`` queries, paged), create, copy,
    update (including ``addParents``/``removeParents``) and delete, plus the
    permissions of each file. Statuses queued in
    ``failures[(method, file_id)]`` are returned before the real answer.
    """

    def __init__(self, page_size: int = 1000) -> None:
        self.files: dict[str, dict[str, Any]] = {}
        self.permissions: dict[str, list[dict[str, Any]]] = {}
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], list[int]] = {}
        self.page_size = page_size
        self._next_id = 0

    def add(
        self,
        file_id: str,
        parents: list[str] | None = None,
        folder: bool = False,
        size: int = 0,
        name: str | None = None,
    ) -> dict[str, Any]:
        file: dict[str, Any] = {
            "id": file_id,
            "name": name or file_id,
            "mimeType": FOLDER_MIME_TYPE if folder else "text/plain",
            "parents": list(parents or []),
        }
        if not folder:
            file["size"] = str(size)
        self.files[file_id] = file
        return file

    def calls(self, method: str, prefix: str = "") -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.startswith(prefix)]

    def _new_id(self) -> str:
        self._next_id += 1
        return f"new{self._next_id}"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.split("/")[3:]
        if not parts or parts[0] != "files":
            return error_response(404, f"unknown path {request.url.path}", "notFound")
        file_id = parts[1] if len(parts) > 1 else ""
        queued = self.failures.get((request.method, file_id))
        if queued:
            return error_response(queued.pop(0), "injected failure")

        if request.method == "GET" and not file_id:
            return self._list(request)
        if request.method == "POST" and not file_id:
            body = json.loads(request.content or b"{}")
            created = {"id": self._new_id(), "name": body.get("name"), "mimeType": body.get("mimeType"),
                       "parents": body.get("parents", [])}
            self.files[created["id"]] = created
            return httpx.Response(200, json=created)

        if file_id not in self.files:
            return error_response(404, f"File not found: {file_id}.", "notFound")
        file = self.files[file_id]

        if parts[2:3] == ["permissions"]:
            return self._permission(request, file_id, parts[3] if len(parts) > 3 else "")
        if request.method == "GET":
            return httpx.Response(200, json=file)
        if request.method == "DELETE":
            del self.files[file_id]
            return httpx.Response(204)
        if request.method == "POST" and parts[2:] == ["copy"]:
            body = json.loads(request.content or b"{}")
            copy = {**file, "id": self._new_id(), "name": body.get("name") or file["name"],
                    "parents": body.get("parents", file["parents"])}
            self.files[copy["id"]] = copy
            return httpx.Response(200, json=copy)
        if request.method == "PATCH":
            body = json.loads(request.content or b"{}")
            file.update(body)
            params = request.url.params
            if params.get("removeParents"):
                removed = params["removeParents"].split(",")
                file["parents"] = [p for p in file["parents"] if p not in removed]
            if params.get("addParents"):
                file["parents"] = [*file["parents"], *params["addParents"].split(",")]
            return httpx.Response(200, json=file)
        return error_response(400, "unsupported", "badRequest")

    def share(self, file_id: str, email: str, role: str = "reader", permission_id: str | None = None) -> None:
        self.permissions.setdefault(file_id, []).append(
            {"id": permission_id or f"perm-{email}", "type": "user", "emailAddress": email, "role": role}
        )

    def _permission(self, request: httpx.Request, file_id: str, permission_id: str) -> httpx.Response:
        permissions = self.permissions.setdefault(file_id, [])
        if request.method == "POST" and not permission_id:
            body = json.loads(request.content or b"{}")
            created = {"id": f"perm-{len(permissions) + 1}", **body}
            permissions.append(created)
            return httpx.Response(200, json=created)
        if request.method == "GET" and not permission_id:
            return httpx.Response(200, json={"permissions": permissions})
        matches = [p for p in permissions if p["id"] == permission_id]
        if not matches:
            return error_response(404, f"Permission not found: {permission_id}.", "notFound")
        if request.method == "DELETE":
            permissions.remove(matches[0])
            return httpx.Response(204)
        if request.method == "PATCH":
            matches[0].update(json.loads(request.content or b"{}"))
        return httpx.Response(200, json=matches[0])

    def _list(self, request: httpx.Request) -> httpx.Response:
        match = re.search(r"'([^']+)' in parents", request.url.params.get("q", ""))
        parent = match.group(1) if match else None
        children = [f for f in self.files.values() if parent is None or parent in f.get("parents", [])]
        offset = int(request.url.params.get("pageToken") or 0)
        page = children[offset : offset + self.page_size]
        payload: dict[str, Any] = {"files": page}
        if offset + self.page_size < len(children):
            payload["nextPageToken"] = str(offset + self.page_size)
        return httpx.Response(200, json=payload)


class RecordingApi:
    """Generic mock remote answering from a routing table.

    ``routes[(method, path)]`` is a list of responses (or callables taking the
    request) served in order; the last one repeats. Unrouted requests get 200
    with an empty JSON object.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], list[Any]] = {}

    def route(self, method: str, path: str, *responses: Any) -> None:
        self.routes[(method, path)] = list(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(200, json={})
        answer = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(answer):
            return answer(request)
        if isinstance(answer, httpx.Response):
            return httpx.Response(answer.status_code, content=answer.content, headers=answer.headers)
        return httpx.Response(200, json=answer)

    def json_bodies(self, method: str, path: str) -> list[Any]:
        return [
            json.loads(r.content or b"null")
            for r in self.requests
            if r.method == method and r.url.path == path
        ]


@pytest.fixture
def fake_drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture
def recording_api() -> RecordingApi:
    return RecordingApi()


@pytest.fixture
def drive_api(fake_drive: FakeDrive) -> Generator[DriveApi, None, None]:
    """DriveApi bound to the in-memory Drive."""
    client = ApiClient(StaticTokenProvider("test-token"), transport=httpx.MockTransport(fake_drive.handler))
    yield DriveApi(client)


async def no_sleep(seconds: float) -> None:
    """Stand-in for asyncio.sleep that returns immediately."""


@pytest.fixture
def make_runtime() -> Callable[..., Runtime]:
    """Build a Runtime whose HTTP calls go to a mock handler and whose output is captured."""

    def factory(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> Runtime:
        kwargs.setdefault("delay_ms", 0)
        kwargs.setdefault("out", io.StringIO())
        return Runtime(
            token_provider=StaticTokenProvider("test-token"),
            transport=httpx.MockTransport(handler),
            sleep=no_sleep,
            **kwargs,
        )

    return factory


def output_of(runtime: Runtime) -> Any:
    """Parse what a command wrote to the runtime's output buffer."""
    return json.loads(runtime.out.getvalue())  # type: ignore[attr-defined]


def lines_of(runtime: Runtime) -> list[Any]:
    """Parse streamed (one document per line) output."""
    return [json.loads(line) for line in runtime.out.getvalue().splitlines() if line]  # type: ignore[attr-defined]


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
