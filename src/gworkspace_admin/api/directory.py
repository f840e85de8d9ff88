"""Admin SDK Directory API: users, groups, members, org units, app passwords and customers."""

from collections.abc import AsyncIterator
from typing import Any

from gworkspace_admin.transport import ADMIN_DIRECTORY_API_BASE, ApiClient, segment


class DirectoryApi:
    """Directory v1 endpoints."""

    def __init__(self, client: ApiClient, base_url: str = ADMIN_DIRECTORY_API_BASE) -> None:
        self.client = client
        self.base_url = base_url

    # Users

    def _user_url(self, user_key: str | None = None) -> str:
        url = f"{self.base_url}/users"
        return f"{url}/{segment(user_key)}" if user_key else url

    async def insert_user(self, body: dict[str, Any], params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("POST", self._user_url(), params=params, json_data=body)

    async def get_user(self, user_key: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("GET", self._user_url(user_key), params=params)

    def list_users(self, params: dict[str, Any] | None = None) -> AsyncIterator[dict[str, Any]]:
        query = {"maxResults": 500, **(params or {})}
        if "domain" not in query:
            query.setdefault("customer", "my_customer")
        return self.client.paginate(self._user_url(), "users", query)

    async def update_user(
        self, user_key: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("PUT", self._user_url(user_key), params=params, json_data=body)

    async def delete_user(self, user_key: str) -> None:
        await self.client.request("DELETE", self._user_url(user_key))

    async def undelete_user(self, user_key: str, body: dict[str, Any]) -> None:
        await self.client.request("POST", f"{self._user_url(user_key)}/undelete", json_data=body)

    async def make_admin(self, user_key: str, status: bool) -> None:
        await self.client.request(
            "POST", f"{self._user_url(user_key)}/makeAdmin", json_data={"status": status}
        )

    async def sign_out_user(self, user_key: str) -> None:
        await self.client.request("POST", f"{self._user_url(user_key)}/signOut")

    # Application specific passwords

    async def get_asp(self, user_key: str, code_id: int) -> dict[str, Any]:
        return await self.client.request("GET", f"{self._user_url(user_key)}/asps/{code_id}")

    async def list_asps(self, user_key: str) -> list[dict[str, Any]]:
        result = await self.client.request("GET", f"{self._user_url(user_key)}/asps")
        items: list[dict[str, Any]] = result.get("items", [])
        return items

    async def delete_asp(self, user_key: str, code_id: int) -> None:
        await self.client.request("DELETE", f"{self._user_url(user_key)}/asps/{code_id}")

    # Customers

    async def get_customer(
        self, customer_key: str = "my_customer", params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("GET", f"{self.base_url}/customers/{segment(customer_key)}", params=params)

    # Groups

    def _group_url(self, group_key: str | None = None) -> str:
        url = f"{self.base_url}/groups"
        return f"{url}/{segment(group_key)}" if group_key else url

    async def insert_group(self, body: dict[str, Any], params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("POST", self._group_url(), params=params, json_data=body)

    async def get_group(self, group_key: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("GET", self._group_url(group_key), params=params)

    def list_groups(self, params: dict[str, Any] | None = None) -> AsyncIterator[dict[str, Any]]:
        query = {"maxResults": 200, **(params or {})}
        if "domain" not in query and "userKey" not in query:
            query.setdefault("customer", "my_customer")
        return self.client.paginate(self._group_url(), "groups", query)

    async def patch_group(
        self, group_key: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("PATCH", self._group_url(group_key), params=params, json_data=body)

    async def delete_group(self, group_key: str) -> None:
        await self.client.request("DELETE", self._group_url(group_key))

    # Members

    def _member_url(self, group_key: str, member_key: str | None = None) -> str:
        url = f"{self._group_url(group_key)}/members"
        return f"{url}/{segment(member_key)}" if member_key else url

    async def insert_member(
        self, group_key: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("POST", self._member_url(group_key), params=params, json_data=body)

    async def get_member(
        self, group_key: str, member_key: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("GET", self._member_url(group_key, member_key), params=params)

    def list_members(self, group_key: str, params: dict[str, Any] | None = None) -> AsyncIterator[dict[str, Any]]:
        return self.client.paginate(
            self._member_url(group_key), "members", {"maxResults": 200, **(params or {})}
        )

    async def patch_member(
        self,
        group_key: str,
        member_key: str,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.client.request(
            "PATCH", self._member_url(group_key, member_key), params=params, json_data=body
        )

    async def delete_member(self, group_key: str, member_key: str) -> None:
        await self.client.request("DELETE", self._member_url(group_key, member_key))

    async def has_member(self, group_key: str, member_key: str) -> dict[str, Any]:
        return await self.client.request(
            "GET", f"{self._group_url(group_key)}/hasMember/{segment(member_key)}"
        )

    # Org units

    def _orgunit_url(self, customer_id: str, org_unit_path: str | None = None) -> str:
        url = f"{self.base_url}/customer/{segment(customer_id)}/orgunits"
        if org_unit_path:
            return f"{url}/{segment(org_unit_path.lstrip('/'), safe='/@')}"
        return url

    async def insert_orgunit(
        self, customer_id: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("POST", self._orgunit_url(customer_id), params=params, json_data=body)

    async def get_orgunit(
        self, customer_id: str, org_unit_path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("GET", self._orgunit_url(customer_id, org_unit_path), params=params)

    async def list_orgunits(self, customer_id: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        result = await self.client.request("GET", self._orgunit_url(customer_id), params=params)
        units: list[dict[str, Any]] = result.get("organizationUnits", [])
        return units

    async def patch_orgunit(
        self,
        customer_id: str,
        org_unit_path: str,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.client.request(
            "PATCH", self._orgunit_url(customer_id, org_unit_path), params=params, json_data=body
        )

    async def delete_orgunit(self, customer_id: str, org_unit_path: str) -> None:
        await self.client.request("DELETE", self._orgunit_url(customer_id, org_unit_path))
