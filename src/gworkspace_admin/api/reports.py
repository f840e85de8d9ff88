"""Admin SDK Reports API activities."""

from collections.abc import AsyncIterator
from typing import Any

from gworkspace_admin.transport import ADMIN_REPORTS_API_BASE, ApiClient, segment


class ReportsApi:
    """Reports v1 activity endpoint."""

    def __init__(self, client: ApiClient, base_url: str = ADMIN_REPORTS_API_BASE) -> None:
        self.client = client
        self.base_url = base_url

    def list_activities(
        self, user_key: str, application_name: str, params: dict[str, Any] | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        """Iterate over audit activities of one application for ``user_key`` (or ``all``)."""
        url = (
            f"{self.base_url}/activity/users/{segment(user_key)}"
            f"/applications/{segment(application_name)}"
        )
        return self.client.paginate(url, "items", {"maxResults": 1000, **(params or {})})
