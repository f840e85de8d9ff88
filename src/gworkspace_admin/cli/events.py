"""``events``: calendar events."""

from collections.abc import AsyncIterator
from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

_ALL = ["list", "get", "patch", "delete"]
_WITH_EVENT_ID = ["get", "patch", "delete"]

EVENT_FLAGS: dict[str, Flag] = {
    "calendarId": Flag(
        available_for=_ALL,
        defaults=dict.fromkeys(_ALL, "primary"),
        description="Calendar identifier. 'primary' selects the calendar of the user.",
    ),
    "eventId": Flag(
        available_for=_WITH_EVENT_ID,
        required=_WITH_EVENT_ID,
        exclude_from_all=_WITH_EVENT_ID,
        description="Event identifier.",
    ),
    "summary": Flag(available_for=["patch"], description="Title of the event."),
    "description": Flag(available_for=["patch"], description="Description of the event."),
    "location": Flag(available_for=["patch"], description="Geographic location of the event."),
    "status": Flag(available_for=["patch"], description="confirmed, tentative or cancelled."),
    "visibility": Flag(available_for=["patch"], description="default, public, private or confidential."),
    "transparency": Flag(available_for=["patch"], description="opaque or transparent."),
    "colorId": Flag(available_for=["patch"], description="The color of the event."),
    "startDateTime": Flag(available_for=["patch"], description="Start time (RFC 3339)."),
    "startDate": Flag(available_for=["patch"], description="Start date of an all-day event (yyyy-mm-dd)."),
    "startTimeZone": Flag(available_for=["patch"], description="Time zone of the start time."),
    "endDateTime": Flag(available_for=["patch"], description="End time (RFC 3339)."),
    "endDate": Flag(available_for=["patch"], description="End date of an all-day event (yyyy-mm-dd)."),
    "endTimeZone": Flag(available_for=["patch"], description="Time zone of the end time."),
    "guestsCanInviteOthers": Flag(
        kind=FlagKind.BOOL, available_for=["patch"], description="Whether attendees can invite others."
    ),
    "guestsCanModify": Flag(
        kind=FlagKind.BOOL, available_for=["patch"], description="Whether attendees can modify the event."
    ),
    "guestsCanSeeOtherGuests": Flag(
        kind=FlagKind.BOOL, available_for=["patch"], description="Whether attendees can see who else is invited."
    ),
    "sendUpdates": Flag(
        available_for=["patch", "delete"],
        description="Who receives notifications about the change: all, externalOnly or none.",
    ),
    "q": Flag(available_for=["list"], description="Free text search terms."),
    "timeMin": Flag(available_for=["list"], description="Lower bound (exclusive) for an event's end time (RFC 3339)."),
    "timeMax": Flag(available_for=["list"], description="Upper bound (exclusive) for an event's start time (RFC 3339)."),
    "updatedMin": Flag(available_for=["list"], description="Lower bound for an event's last modification time."),
    "orderBy": Flag(available_for=["list"], description="startTime or updated."),
    "singleEvents": Flag(
        kind=FlagKind.BOOL,
        available_for=["list"],
        description="Whether to expand recurring events into instances.",
    ),
    "showDeleted": Flag(kind=FlagKind.BOOL, available_for=["list"], description="Include cancelled events."),
    "iCalUID": Flag(available_for=["list"], description="Only list the event with this iCalendar ID."),
    "timeZone": Flag(available_for=["list", "get"], description="Time zone used in the response."),
    "fields": Flag(
        available_for=["list", "get", "patch"],
        description="Fields to include in the response (partial response selector).",
    ),
}

EVENT_BODY: FieldMap = (
    Field("summary", "summary"),
    Field("description", "description"),
    Field("location", "location"),
    Field("status", "status"),
    Field("visibility", "visibility"),
    Field("transparency", "transparency"),
    Field("colorId", "colorId"),
    Field("startDateTime", "start.dateTime"),
    Field("startDate", "start.date"),
    Field("startTimeZone", "start.timeZone"),
    Field("endDateTime", "end.dateTime"),
    Field("endDate", "end.date"),
    Field("endTimeZone", "end.timeZone"),
    Field("guestsCanInviteOthers", "guestsCanInviteOthers"),
    Field("guestsCanModify", "guestsCanModify"),
    Field("guestsCanSeeOtherGuests", "guestsCanSeeOtherGuests"),
)


def _calendar(values: ValueMap) -> str:
    return values.get_string("calendarId") or "primary"


async def list_events(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    params = compose_params(
        values, ["q", "timeMin", "timeMax", "updatedMin", "orderBy", "singleEvents", "showDeleted", "iCalUID", "timeZone"]
    )
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,items({values.get_string('fields')})"
    return apis.calendar.list_events(_calendar(values), params)


async def get_event(apis: Apis, values: ValueMap) -> dict[str, Any]:
    params = compose_params(values, ["timeZone", "fields"])
    return await apis.calendar.get_event(_calendar(values), values.get_string("eventId"), params)


async def patch_event(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, EVENT_BODY).body
    params = compose_params(values, ["sendUpdates", "fields"])
    return await apis.calendar.patch_event(_calendar(values), values.get_string("eventId"), body, params)


async def delete_event(apis: Apis, values: ValueMap) -> dict[str, Any]:
    calendar_id, event_id = _calendar(values), values.get_string("eventId")
    await apis.calendar.delete_event(calendar_id, event_id, compose_params(values, ["sendUpdates"]))
    return {"calendarId": calendar_id, "eventId": event_id, "result": True}


def register(main: click.Group) -> None:
    events = noun(main, "events", "Manage calendar events.")
    verb(events, "list", EVENT_FLAGS, list_events, "List the events of a calendar.", batch=True)
    verb(events, "get", EVENT_FLAGS, get_event, "Get an event.", batch=True)
    verb(events, "patch", EVENT_FLAGS, patch_event, "Update an event.", batch=True)
    verb(
        events,
        "delete",
        EVENT_FLAGS,
        delete_event,
        "Delete an event.",
        batch=True,
        failure=deleted("calendarId", "eventId"),
    )
