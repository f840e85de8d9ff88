"""Enterprise License Manager: license assignments per product and SKU."""

from collections.abc import AsyncIterator
from typing import Any

from gworkspace_admin.transport import LICENSING_API_BASE, ApiClient, segment


class LicensingApi:
    """License assignment endpoints of the Enterprise License Manager API."""

    def __init__(self, client: ApiClient, base_url: str = LICENSING_API_BASE) -> None:
        self.client = client
        self.base_url = base_url

    def _sku_url(self, product_id: str, sku_id: str) -> str:
        return f"{self.base_url}/product/{segment(product_id)}/sku/{segment(sku_id)}"

    async def insert_assignment(
        self, product_id: str, sku_id: str, user_id: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request(
            "POST", f"{self._sku_url(product_id, sku_id)}/user", params=params, json_data={"userId": user_id}
        )

    async def get_assignment(
        self, product_id: str, sku_id: str, user_id: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request(
            "GET", f"{self._sku_url(product_id, sku_id)}/user/{segment(user_id)}", params=params
        )

    async def patch_assignment(
        self,
        product_id: str,
        sku_id: str,
        user_id: str,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.client.request(
            "PATCH", f"{self._sku_url(product_id, sku_id)}/user/{segment(user_id)}", params=params, json_data=body
        )

    async def delete_assignment(self, product_id: str, sku_id: str, user_id: str) -> None:
        await self.client.request("DELETE", f"{self._sku_url(product_id, sku_id)}/user/{segment(user_id)}")

    def list_for_product(self, product_id: str, params: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        return self.client.paginate(f"{self.base_url}/product/{segment(product_id)}/users", "items", params)

    def list_for_product_and_sku(
        self, product_id: str, sku_id: str, params: dict[str, Any]
    ) -> AsyncIterator[dict[str, Any]]:
        return self.client.paginate(f"{self._sku_url(product_id, sku_id)}/users", "items", params)
