"""Gmail v1 labels and mailbox settings (delegates, send-as aliases)."""

from typing import Any

from gworkspace_admin.transport import GMAIL_API_BASE, ApiClient, segment


class GmailApi:
    """Gmail v1 label and settings endpoints."""

    def __init__(self, client: ApiClient, base_url: str = GMAIL_API_BASE) -> None:
        self.client = client
        self.base_url = base_url

    def _label_url(self, user_id: str, label_id: str | None = None) -> str:
        url = f"{self.base_url}/users/{segment(user_id)}/labels"
        return f"{url}/{segment(label_id)}" if label_id else url

    async def create_label(
        self, user_id: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("POST", self._label_url(user_id), params=params, json_data=body)

    async def get_label(self, user_id: str, label_id: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("GET", self._label_url(user_id, label_id), params=params)

    async def list_labels(self, user_id: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        result = await self.client.request("GET", self._label_url(user_id), params=params)
        labels: list[dict[str, Any]] = result.get("labels", [])
        return labels

    async def patch_label(
        self,
        user_id: str,
        label_id: str,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.client.request(
            "PATCH", self._label_url(user_id, label_id), params=params, json_data=body
        )

    async def delete_label(self, user_id: str, label_id: str) -> None:
        await self.client.request("DELETE", self._label_url(user_id, label_id))

    # Delegates

    def _delegate_url(self, user_id: str, delegate_email: str | None = None) -> str:
        url = f"{self.base_url}/users/{segment(user_id)}/settings/delegates"
        return f"{url}/{segment(delegate_email)}" if delegate_email else url

    async def create_delegate(
        self, user_id: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("POST", self._delegate_url(user_id), params=params, json_data=body)

    async def get_delegate(
        self, user_id: str, delegate_email: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("GET", self._delegate_url(user_id, delegate_email), params=params)

    async def list_delegates(self, user_id: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        result = await self.client.request("GET", self._delegate_url(user_id), params=params)
        delegates: list[dict[str, Any]] = result.get("delegates", [])
        return delegates

    async def delete_delegate(self, user_id: str, delegate_email: str) -> None:
        await self.client.request("DELETE", self._delegate_url(user_id, delegate_email))

    # Send-as aliases

    def _send_as_url(self, user_id: str, send_as_email: str | None = None) -> str:
        url = f"{self.base_url}/users/{segment(user_id)}/settings/sendAs"
        return f"{url}/{segment(send_as_email)}" if send_as_email else url

    async def create_send_as(
        self, user_id: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("POST", self._send_as_url(user_id), params=params, json_data=body)

    async def get_send_as(
        self, user_id: str, send_as_email: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("GET", self._send_as_url(user_id, send_as_email), params=params)

    async def list_send_as(self, user_id: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        result = await self.client.request("GET", self._send_as_url(user_id), params=params)
        aliases: list[dict[str, Any]] = result.get("sendAs", [])
        return aliases

    async def patch_send_as(
        self,
        user_id: str,
        send_as_email: str,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.client.request(
            "PATCH", self._send_as_url(user_id, send_as_email), params=params, json_data=body
        )

    async def delete_send_as(self, user_id: str, send_as_email: str) -> None:
        await self.client.request("DELETE", self._send_as_url(user_id, send_as_email))

    async def verify_send_as(self, user_id: str, send_as_email: str) -> None:
        await self.client.request("POST", f"{self._send_as_url(user_id, send_as_email)}/verify")
