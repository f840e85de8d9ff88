"""``activities``: admin audit reports (Reports API activities.list)."""

from collections.abc import AsyncIterator
from typing import Any

import click

from gworkspace_admin.cli.commands import noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import compose_params
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

ACTIVITY_FLAGS: dict[str, Flag] = {
    "userKey": Flag(
        available_for=["list"],
        defaults={"list": "all"},
        description="Profile ID or email of the user, or 'all' for all users.",
    ),
    "applicationName": Flag(
        available_for=["list"],
        required=["list"],
        description="Application to report on, e.g. admin, drive, login, token, groups or calendar.",
    ),
    "actorIpAddress": Flag(available_for=["list"], description="Only activities of this IP address."),
    "customerId": Flag(available_for=["list"], description="The unique ID of the customer."),
    "endTime": Flag(available_for=["list"], description="End of the time range (RFC 3339)."),
    "startTime": Flag(available_for=["list"], description="Start of the time range (RFC 3339)."),
    "eventName": Flag(available_for=["list"], description="Name of the event being queried."),
    "filters": Flag(
        available_for=["list"],
        description="Comma-separated event parameter filters, e.g. doc_id==12345,doc_type!=pdf.",
    ),
    "orgUnitID": Flag(available_for=["list"], description="ID of the organizational unit to report on."),
    "groupIdFilter": Flag(available_for=["list"], description="Comma-separated group IDs the actors must be in."),
    "maxResults": Flag(
        kind=FlagKind.INT64,
        available_for=["list"],
        description="Page size (1 to 1000).",
    ),
    "fields": Flag(available_for=["list"], description="Fields to include for each activity."),
}


async def list_activities(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    params = compose_params(
        values,
        [
            "actorIpAddress",
            "customerId",
            "endTime",
            "startTime",
            "eventName",
            "filters",
            "orgUnitID",
            "groupIdFilter",
            "maxResults",
        ],
    )
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,items({values.get_string('fields')})"
    return apis.reports.list_activities(
        values.get_string("userKey") or "all", values.get_string("applicationName"), params
    )


def register(main: click.Group) -> None:
    activities = noun(main, "activities", "Query admin and user activity reports.")
    verb(activities, "list", ACTIVITY_FLAGS, list_activities, "List activities of an application.", batch=True)
