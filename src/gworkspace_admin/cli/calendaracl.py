"""``calendaracl``: access control rules of calendars."""

from collections.abc import AsyncIterator
from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

_ALL = ["insert", "get", "list", "patch", "delete"]
_WITH_RULE_ID = ["get", "patch", "delete"]

ACL_FLAGS: dict[str, Flag] = {
    "calendarId": Flag(
        available_for=_ALL,
        required=_ALL,
        description="Calendar identifier. 'primary' selects the calendar of the user.",
    ),
    "ruleId": Flag(
        available_for=_WITH_RULE_ID,
        required=_WITH_RULE_ID,
        exclude_from_all=_WITH_RULE_ID,
        description="ACL rule identifier, e.g. user:someone@example.com.",
    ),
    "role": Flag(
        available_for=["insert", "patch"],
        required=["insert"],
        description="none, freeBusyReader, reader, writer or owner.",
    ),
    "scopeType": Flag(
        available_for=["insert", "patch"],
        required=["insert"],
        description="The type of the scope: default, user, group or domain.",
    ),
    "scopeValue": Flag(
        available_for=["insert", "patch"],
        exclude_from_all=["insert", "patch"],
        description="The email address of a user or group, or the name of a domain.",
    ),
    "sendNotifications": Flag(
        kind=FlagKind.BOOL,
        available_for=["insert", "patch"],
        description="Whether to send notifications about the calendar sharing change.",
    ),
    "showDeleted": Flag(kind=FlagKind.BOOL, available_for=["list"], description="Include deleted ACLs."),
    "fields": Flag(
        available_for=["insert", "get", "list", "patch"],
        description="Fields to include in the response (partial response selector).",
    ),
}

ACL_BODY: FieldMap = (
    Field("role", "role"),
    Field("scopeType", "scope.type"),
    Field("scopeValue", "scope.value"),
)


async def insert_acl(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, ACL_BODY).body
    params = compose_params(values, ["sendNotifications", "fields"])
    return await apis.calendar.insert_acl(values.get_string("calendarId"), body, params)


async def get_acl(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.calendar.get_acl(
        values.get_string("calendarId"), values.get_string("ruleId"), compose_params(values, ["fields"])
    )


async def list_acl(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    params = compose_params(values, ["showDeleted"])
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,items({values.get_string('fields')})"
    return apis.calendar.list_acl(values.get_string("calendarId"), params)


async def patch_acl(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, ACL_BODY).body
    params = compose_params(values, ["sendNotifications", "fields"])
    return await apis.calendar.patch_acl(values.get_string("calendarId"), values.get_string("ruleId"), body, params)


async def delete_acl(apis: Apis, values: ValueMap) -> dict[str, Any]:
    calendar_id, rule_id = values.get_string("calendarId"), values.get_string("ruleId")
    await apis.calendar.delete_acl(calendar_id, rule_id)
    return {"calendarId": calendar_id, "ruleId": rule_id, "result": True}


def register(main: click.Group) -> None:
    acl = noun(main, "calendaracl", "Manage access control rules of calendars.")
    verb(acl, "insert", ACL_FLAGS, insert_acl, "Create an access control rule.", batch=True)
    verb(acl, "get", ACL_FLAGS, get_acl, "Get an access control rule.", batch=True)
    verb(acl, "list", ACL_FLAGS, list_acl, "List the access control rules of a calendar.", batch=True)
    verb(acl, "patch", ACL_FLAGS, patch_acl, "Update an access control rule.", batch=True)
    verb(
        acl,
        "delete",
        ACL_FLAGS,
        delete_acl,
        "Delete an access control rule.",
        batch=True,
        failure=deleted("calendarId", "ruleId"),
    )
