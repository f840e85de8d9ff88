"""Cloud Identity v1 groups and memberships.

Resources are addressed by name (``groups/{id}``,
``groups/{id}/memberships/{id}``). Create calls return a long-running
operation that is already done; its ``response`` is returned.
"""

from collections.abc import AsyncIterator
from typing import Any

from gworkspace_admin.transport import CLOUD_IDENTITY_API_BASE, ApiClient, segment


def _name(name: str) -> str:
    return segment(name, safe="/@")


def _operation_result(operation: dict[str, Any]) -> dict[str, Any]:
    response: dict[str, Any] = operation.get("response", operation)
    return response


class CloudIdentityApi:
    """Cloud Identity v1 group and membership endpoints."""

    def __init__(self, client: ApiClient, base_url: str = CLOUD_IDENTITY_API_BASE) -> None:
        self.client = client
        self.base_url = base_url

    # Groups

    async def create_group(self, body: dict[str, Any], params: dict[str, Any] | None = None) -> dict[str, Any]:
        operation = await self.client.request("POST", f"{self.base_url}/groups", params=params, json_data=body)
        return _operation_result(operation)

    async def get_group(self, name: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("GET", f"{self.base_url}/{_name(name)}", params=params)

    def list_groups(self, params: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        return self.client.paginate(f"{self.base_url}/groups", "groups", params)

    def search_groups(self, params: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        return self.client.paginate(f"{self.base_url}/groups:search", "groups", params)

    async def lookup_group(self, group_email: str, namespace: str = "") -> str:
        """Resolve a group email to its resource name."""
        params = {"groupKey.id": group_email}
        if namespace:
            params["groupKey.namespace"] = namespace
        result = await self.client.request("GET", f"{self.base_url}/groups:lookup", params=params)
        return str(result.get("name", ""))

    async def patch_group(
        self, name: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        operation = await self.client.request(
            "PATCH", f"{self.base_url}/{_name(name)}", params=params, json_data=body
        )
        return _operation_result(operation)

    async def delete_group(self, name: str) -> None:
        await self.client.request("DELETE", f"{self.base_url}/{_name(name)}")

    # Memberships

    async def create_membership(
        self, parent: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        operation = await self.client.request(
            "POST", f"{self.base_url}/{_name(parent)}/memberships", params=params, json_data=body
        )
        return _operation_result(operation)

    async def get_membership(self, name: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("GET", f"{self.base_url}/{_name(name)}", params=params)

    def list_memberships(self, parent: str, params: dict[str, Any] | None = None) -> AsyncIterator[dict[str, Any]]:
        return self.client.paginate(f"{self.base_url}/{_name(parent)}/memberships", "memberships", params)

    async def lookup_membership(self, parent: str, member_key_id: str, namespace: str = "") -> str:
        """Resolve a member of ``parent`` to the membership's resource name."""
        params = {"memberKey.id": member_key_id}
        if namespace:
            params["memberKey.namespace"] = namespace
        result = await self.client.request(
            "GET", f"{self.base_url}/{_name(parent)}/memberships:lookup", params=params
        )
        return str(result.get("name", ""))

    async def modify_membership_roles(
        self, name: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        result = await self.client.request(
            "POST", f"{self.base_url}/{_name(name)}:modifyMembershipRoles", params=params, json_data=body
        )
        membership: dict[str, Any] = result.get("membership", result)
        return membership

    async def check_transitive_membership(self, parent: str, query: str) -> bool:
        result = await self.client.request(
            "GET",
            f"{self.base_url}/{_name(parent)}/memberships:checkTransitiveMembership",
            params={"query": query},
        )
        return bool(result.get("hasMembership"))

    async def delete_membership(self, name: str) -> None:
        await self.client.request("DELETE", f"{self.base_url}/{_name(name)}")
