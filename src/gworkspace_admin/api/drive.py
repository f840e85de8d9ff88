"""Drive v3: files, permissions and shared drives."""

import logging
import uuid
from collections.abc import AsyncIterator
from typing import Any

from gworkspace_admin.transport import DRIVE_API_BASE, DRIVE_UPLOAD_BASE, ApiClient, segment

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

_SHARED_DRIVES = {"supportsAllDrives": "true"}


def is_folder(file: dict[str, Any]) -> bool:
    """Check whether a file resource is a folder. ``mimeType`` must have been requested."""
    return file.get("mimeType") == FOLDER_MIME_TYPE


class DriveApi:
    """Drive v3 endpoints.

    All file and permission calls send ``supportsAllDrives=true`` so shared
    drive items behave like My Drive items.
    """

    def __init__(self, client: ApiClient, base_url: str = DRIVE_API_BASE, upload_url: str = DRIVE_UPLOAD_BASE) -> None:
        self.client = client
        self.base_url = base_url
        self.upload_url = upload_url

    def _params(self, params: dict[str, Any] | None) -> dict[str, Any]:
        return {**_SHARED_DRIVES, **(params or {})}

    # Files

    async def get_file(self, file_id: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request(
            "GET", f"{self.base_url}/files/{segment(file_id)}", params=self._params(params)
        )

    def list_files(self, params: dict[str, Any] | None = None) -> AsyncIterator[dict[str, Any]]:
        """Iterate over all files matching ``params`` (``q``, ``corpora``...)."""
        page_params = {"pageSize": 1000, **self._params(params)}
        return self.client.paginate(f"{self.base_url}/files", "files", page_params)

    async def create_file(
        self,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        content_type: str = "application/octet-stream",
    ) -> dict[str, Any]:
        """Create a file; with ``content`` the data is uploaded in the same request."""
        if content is None:
            return await self.client.request(
                "POST", f"{self.base_url}/files", params=self._params(params), json_data=body
            )
        return await self.client.upload_multipart(
            f"{self.upload_url}/files", body, content, content_type, params=self._params(params)
        )

    async def copy_file(
        self, file_id: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request(
            "POST",
            f"{self.base_url}/files/{segment(file_id)}/copy",
            params=self._params(params),
            json_data=body,
        )

    async def update_file(
        self,
        file_id: str,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        content_type: str = "application/octet-stream",
    ) -> dict[str, Any]:
        """Update metadata (and optionally content). ``addParents``/``removeParents`` move the file."""
        if content is None:
            return await self.client.request(
                "PATCH",
                f"{self.base_url}/files/{segment(file_id)}",
                params=self._params(params),
                json_data=body,
            )
        return await self.client.upload_multipart(
            f"{self.upload_url}/files/{segment(file_id)}",
            body,
            content,
            content_type,
            params=self._params(params),
            method="PATCH",
        )

    async def delete_file(self, file_id: str, params: dict[str, Any] | None = None) -> None:
        await self.client.request(
            "DELETE", f"{self.base_url}/files/{segment(file_id)}", params=self._params(params)
        )

    async def download_file(self, file_id: str, params: dict[str, Any] | None = None) -> bytes:
        response = await self.client.raw_request(
            "GET",
            f"{self.base_url}/files/{segment(file_id)}",
            params={**self._params(params), "alt": "media"},
        )
        return response.content

    async def generate_ids(self, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("GET", f"{self.base_url}/files/generateIds", params=params)

    async def empty_trash(self, params: dict[str, Any] | None = None) -> None:
        await self.client.request("DELETE", f"{self.base_url}/files/trash", params=params)

    def list_labels(self, file_id: str, params: dict[str, Any] | None = None) -> AsyncIterator[dict[str, Any]]:
        return self.client.paginate(
            f"{self.base_url}/files/{segment(file_id)}/listLabels", "labels", params
        )

    async def modify_labels(
        self, file_id: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request(
            "POST",
            f"{self.base_url}/files/{segment(file_id)}/modifyLabels",
            params=params,
            json_data=body,
        )

    # Permissions

    def _permissions_url(self, file_id: str, permission_id: str | None = None) -> str:
        url = f"{self.base_url}/files/{segment(file_id)}/permissions"
        return f"{url}/{segment(permission_id)}" if permission_id else url

    async def create_permission(
        self, file_id: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request(
            "POST", self._permissions_url(file_id), params=self._params(params), json_data=body
        )

    async def get_permission(
        self, file_id: str, permission_id: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request(
            "GET", self._permissions_url(file_id, permission_id), params=self._params(params)
        )

    def list_permissions(
        self, file_id: str, params: dict[str, Any] | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        return self.client.paginate(
            self._permissions_url(file_id), "permissions", {"pageSize": 100, **self._params(params)}
        )

    async def update_permission(
        self,
        file_id: str,
        permission_id: str,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.client.request(
            "PATCH",
            self._permissions_url(file_id, permission_id),
            params=self._params(params),
            json_data=body,
        )

    async def delete_permission(
        self, file_id: str, permission_id: str, params: dict[str, Any] | None = None
    ) -> None:
        await self.client.request(
            "DELETE", self._permissions_url(file_id, permission_id), params=self._params(params)
        )

    # Shared drives

    async def create_drive(
        self, body: dict[str, Any], params: dict[str, Any] | None = None, request_id: str | None = None
    ) -> dict[str, Any]:
        """Create a shared drive. ``request_id`` makes the call idempotent across retries."""
        query = {"requestId": request_id or uuid.uuid4().hex, **(params or {})}
        return await self.client.request("POST", f"{self.base_url}/drives", params=query, json_data=body)

    async def get_drive(self, drive_id: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("GET", f"{self.base_url}/drives/{segment(drive_id)}", params=params)

    def list_drives(self, params: dict[str, Any] | None = None) -> AsyncIterator[dict[str, Any]]:
        return self.client.paginate(f"{self.base_url}/drives", "drives", {"pageSize": 100, **(params or {})})

    async def update_drive(
        self, drive_id: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request(
            "PATCH", f"{self.base_url}/drives/{segment(drive_id)}", params=params, json_data=body
        )

    async def delete_drive(self, drive_id: str, params: dict[str, Any] | None = None) -> None:
        await self.client.request("DELETE", f"{self.base_url}/drives/{segment(drive_id)}", params=params)

    async def hide_drive(self, drive_id: str) -> dict[str, Any]:
        return await self.client.request("POST", f"{self.base_url}/drives/{segment(drive_id)}/hide")

    async def unhide_drive(self, drive_id: str) -> dict[str, Any]:
        return await self.client.request("POST", f"{self.base_url}/drives/{segment(drive_id)}/unhide")
