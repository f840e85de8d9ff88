"""Calendar v3: calendars, access control rules and events."""

from collections.abc import AsyncIterator
from typing import Any

from gworkspace_admin.transport import CALENDAR_API_BASE, ApiClient, segment


class CalendarApi:
    """Calendar v3 endpoints."""

    def __init__(self, client: ApiClient, base_url: str = CALENDAR_API_BASE) -> None:
        self.client = client
        self.base_url = base_url

    def _calendar_url(self, calendar_id: str | None = None) -> str:
        url = f"{self.base_url}/calendars"
        return f"{url}/{segment(calendar_id)}" if calendar_id else url

    # Calendars

    async def insert_calendar(self, body: dict[str, Any], params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("POST", self._calendar_url(), params=params, json_data=body)

    async def get_calendar(self, calendar_id: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("GET", self._calendar_url(calendar_id), params=params)

    async def patch_calendar(
        self, calendar_id: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("PATCH", self._calendar_url(calendar_id), params=params, json_data=body)

    async def delete_calendar(self, calendar_id: str) -> None:
        await self.client.request("DELETE", self._calendar_url(calendar_id))

    async def clear_calendar(self, calendar_id: str) -> None:
        """Delete all events of a primary calendar."""
        await self.client.request("POST", f"{self._calendar_url(calendar_id)}/clear")

    # ACL

    def _acl_url(self, calendar_id: str, rule_id: str | None = None) -> str:
        url = f"{self._calendar_url(calendar_id)}/acl"
        return f"{url}/{segment(rule_id, safe='@:')}" if rule_id else url

    async def insert_acl(
        self, calendar_id: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("POST", self._acl_url(calendar_id), params=params, json_data=body)

    async def get_acl(self, calendar_id: str, rule_id: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.client.request("GET", self._acl_url(calendar_id, rule_id), params=params)

    def list_acl(self, calendar_id: str, params: dict[str, Any] | None = None) -> AsyncIterator[dict[str, Any]]:
        return self.client.paginate(self._acl_url(calendar_id), "items", {"maxResults": 250, **(params or {})})

    async def patch_acl(
        self,
        calendar_id: str,
        rule_id: str,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.client.request(
            "PATCH", self._acl_url(calendar_id, rule_id), params=params, json_data=body
        )

    async def delete_acl(self, calendar_id: str, rule_id: str) -> None:
        await self.client.request("DELETE", self._acl_url(calendar_id, rule_id))

    # Events

    def _event_url(self, calendar_id: str, event_id: str | None = None) -> str:
        url = f"{self._calendar_url(calendar_id)}/events"
        return f"{url}/{segment(event_id)}" if event_id else url

    def list_events(self, calendar_id: str, params: dict[str, Any] | None = None) -> AsyncIterator[dict[str, Any]]:
        return self.client.paginate(self._event_url(calendar_id), "items", {"maxResults": 2500, **(params or {})})

    async def get_event(
        self, calendar_id: str, event_id: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.client.request("GET", self._event_url(calendar_id, event_id), params=params)

    async def patch_event(
        self,
        calendar_id: str,
        event_id: str,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.client.request(
            "PATCH", self._event_url(calendar_id, event_id), params=params, json_data=body
        )

    async def delete_event(self, calendar_id: str, event_id: str, params: dict[str, Any] | None = None) -> None:
        await self.client.request("DELETE", self._event_url(calendar_id, event_id), params=params)
