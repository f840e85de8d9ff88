"""``members``: group memberships."""

from collections.abc import AsyncIterator
from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

_ALL = ["insert", "get", "list", "patch", "delete", "hasmember"]
_WITH_MEMBER_KEY = ["get", "patch", "delete", "hasmember"]
_RECURSIVE = ["insert", "get", "patch"]

MEMBER_FLAGS: dict[str, Flag] = {
    "groupKey": Flag(
        available_for=_ALL,
        required=_ALL,
        recursive=_RECURSIVE,
        description="The group's email address, alias or unique ID.",
    ),
    "memberKey": Flag(
        available_for=_WITH_MEMBER_KEY,
        required=_WITH_MEMBER_KEY,
        exclude_from_all=_WITH_MEMBER_KEY,
        description="The member's email address or unique ID.",
    ),
    "email": Flag(
        available_for=["insert"],
        required=["insert"],
        exclude_from_all=["insert"],
        description="The member's email address.",
    ),
    "role": Flag(
        available_for=["insert", "patch"],
        recursive=["insert", "patch"],
        description="OWNER, MANAGER or MEMBER. The API assigns MEMBER when omitted.",
    ),
    "delivery_settings": Flag(
        available_for=["insert", "patch"],
        recursive=["insert", "patch"],
        description="ALL_MAIL, DAILY, DIGEST, DISABLED or NONE.",
    ),
    "roles": Flag(available_for=["list"], description="Comma-separated roles to list (OWNER, MANAGER, MEMBER)."),
    "includeDerivedMembership": Flag(
        kind=FlagKind.BOOL,
        available_for=["list"],
        description="Whether to list indirect memberships.",
    ),
    "fields": Flag(
        available_for=["insert", "get", "list", "patch"],
        recursive=_RECURSIVE,
        description="Fields to include in the response (partial response selector).",
    ),
}

MEMBER_BODY: FieldMap = (
    Field("email", "email"),
    Field("role", "role"),
    Field("delivery_settings", "delivery_settings"),
)


async def insert_member(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, MEMBER_BODY).body
    return await apis.directory.insert_member(values.get_string("groupKey"), body, compose_params(values, ["fields"]))


async def get_member(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.directory.get_member(
        values.get_string("groupKey"), values.get_string("memberKey"), compose_params(values, ["fields"])
    )


async def list_members(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    params = compose_params(values, ["roles", "includeDerivedMembership"])
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,members({values.get_string('fields')})"
    return apis.directory.list_members(values.get_string("groupKey"), params)


async def patch_member(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, MEMBER_BODY).body
    return await apis.directory.patch_member(
        values.get_string("groupKey"), values.get_string("memberKey"), body, compose_params(values, ["fields"])
    )


async def delete_member(apis: Apis, values: ValueMap) -> dict[str, Any]:
    group_key, member_key = values.get_string("groupKey"), values.get_string("memberKey")
    await apis.directory.delete_member(group_key, member_key)
    return {"groupKey": group_key, "memberKey": member_key, "result": True}


async def has_member(apis: Apis, values: ValueMap) -> dict[str, Any]:
    group_key, member_key = values.get_string("groupKey"), values.get_string("memberKey")
    result = await apis.directory.has_member(group_key, member_key)
    return {"groupKey": group_key, "memberKey": member_key, "isMember": bool(result.get("isMember"))}


def register(main: click.Group) -> None:
    members = noun(main, "members", "Manage group members.")
    verb(members, "insert", MEMBER_FLAGS, insert_member, "Add a member to a group.", batch=True, user_recursive="email")
    verb(members, "get", MEMBER_FLAGS, get_member, "Get a member of a group.", batch=True, user_recursive="memberKey")
    verb(members, "list", MEMBER_FLAGS, list_members, "List the members of a group.", batch=True)
    verb(members, "patch", MEMBER_FLAGS, patch_member, "Update a membership.", batch=True, user_recursive="memberKey")
    verb(
        members,
        "delete",
        MEMBER_FLAGS,
        delete_member,
        "Remove a member from a group.",
        batch=True,
        failure=deleted("groupKey", "memberKey"),
    )
    verb(
        members,
        "hasmember",
        MEMBER_FLAGS,
        has_member,
        "Check whether a user is a member of a group, directly or indirectly.",
        batch=True,
    )
