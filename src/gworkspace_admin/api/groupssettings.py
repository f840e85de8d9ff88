"""Groups Settings API.

The API answers in Atom XML unless ``alt=json`` is requested, so every call
asks for JSON.
"""

from typing import Any

from gworkspace_admin.transport import GROUPS_SETTINGS_API_BASE, ApiClient, segment


class GroupsSettingsApi:
    def __init__(self, client: ApiClient, base_url: str = GROUPS_SETTINGS_API_BASE) -> None:
        self.client = client
        self.base_url = base_url

    @staticmethod
    def _params(params: dict[str, Any] | None) -> dict[str, Any]:
        return {**(params or {}), "alt": "json"}

    async def get(self, group_email: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request(
            "GET", f"{self.base_url}/{segment(group_email)}", params=self._params(params)
        )

    async def patch(
        self, group_email: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request(
            "PATCH", f"{self.base_url}/{segment(group_email)}", params=self._params(params), json_data=body
        )
