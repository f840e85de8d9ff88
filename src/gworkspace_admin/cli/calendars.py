"""``calendars``: secondary calendars (https://developers.google.com/calendar/api/v3/reference/calendars)."""

from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params
from gworkspace_admin.flags import Flag, ValueMap

_WITH_CALENDAR_ID = ["get", "patch", "delete", "clear"]

CALENDAR_FLAGS: dict[str, Flag] = {
    "calendarId": Flag(
        available_for=_WITH_CALENDAR_ID,
        required=_WITH_CALENDAR_ID,
        exclude_from_all=_WITH_CALENDAR_ID,
        description="Calendar identifier. 'primary' selects the calendar of the user.",
    ),
    "summary": Flag(available_for=["insert", "patch"], required=["insert"], description="Title of the calendar."),
    "description": Flag(available_for=["insert", "patch"], description="Description of the calendar."),
    "location": Flag(available_for=["insert", "patch"], description="Geographic location of the calendar."),
    "timeZone": Flag(
        available_for=["insert", "patch"], description="The time zone of the calendar (IANA name, e.g. Europe/Zurich)."
    ),
    "fields": Flag(
        available_for=["insert", "get", "patch"],
        description="Fields to include in the response (partial response selector).",
    ),
}

CALENDAR_BODY: FieldMap = (
    Field("summary", "summary"),
    Field("description", "description"),
    Field("location", "location"),
    Field("timeZone", "timeZone"),
)


async def insert_calendar(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.calendar.insert_calendar(compose(values, CALENDAR_BODY).body, compose_params(values, ["fields"]))


async def get_calendar(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.calendar.get_calendar(values.get_string("calendarId"), compose_params(values, ["fields"]))


async def patch_calendar(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, CALENDAR_BODY).body
    return await apis.calendar.patch_calendar(values.get_string("calendarId"), body, compose_params(values, ["fields"]))


async def delete_calendar(apis: Apis, values: ValueMap) -> dict[str, Any]:
    await apis.calendar.delete_calendar(values.get_string("calendarId"))
    return {"calendarId": values.get_string("calendarId"), "result": True}


async def clear_calendar(apis: Apis, values: ValueMap) -> dict[str, Any]:
    await apis.calendar.clear_calendar(values.get_string("calendarId"))
    return {"calendarId": values.get_string("calendarId"), "result": True}


def register(main: click.Group) -> None:
    calendars = noun(main, "calendars", "Manage calendars.")
    verb(calendars, "insert", CALENDAR_FLAGS, insert_calendar, "Create a secondary calendar.", batch=True)
    verb(calendars, "get", CALENDAR_FLAGS, get_calendar, "Get a calendar's metadata.", batch=True)
    verb(calendars, "patch", CALENDAR_FLAGS, patch_calendar, "Update a calendar's metadata.", batch=True)
    verb(
        calendars,
        "delete",
        CALENDAR_FLAGS,
        delete_calendar,
        "Delete a secondary calendar.",
        batch=True,
        failure=deleted("calendarId"),
    )
    verb(
        calendars,
        "clear",
        CALENDAR_FLAGS,
        clear_calendar,
        "Delete all events of a primary calendar.",
        batch=True,
        failure=deleted("calendarId"),
    )
