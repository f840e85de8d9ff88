"""``asps``: application-specific passwords of a user."""

from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

_ALL = ["get", "list", "delete"]

ASP_FLAGS: dict[str, Flag] = {
    "userKey": Flag(
        available_for=_ALL,
        required=_ALL,
        description="The user's primary email address, alias email address or unique user ID.",
    ),
    "codeId": Flag(
        kind=FlagKind.INT64,
        available_for=["get", "delete"],
        required=["get", "delete"],
        exclude_from_all=["get", "delete"],
        description="The unique ID of the ASP.",
    ),
}


async def get_asp(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.directory.get_asp(values.get_string("userKey"), values.get_int("codeId"))


async def list_asps(apis: Apis, values: ValueMap) -> dict[str, Any]:
    user_key = values.get_string("userKey")
    return {"userKey": user_key, "asps": await apis.directory.list_asps(user_key)}


async def delete_asp(apis: Apis, values: ValueMap) -> dict[str, Any]:
    user_key, code_id = values.get_string("userKey"), values.get_int("codeId")
    await apis.directory.delete_asp(user_key, code_id)
    return {"userKey": user_key, "codeId": code_id, "result": True}


def register(main: click.Group) -> None:
    asps = noun(main, "asps", "Manage application-specific passwords.")
    verb(asps, "get", ASP_FLAGS, get_asp, "Get an ASP issued by a user.", batch=True)
    verb(asps, "list", ASP_FLAGS, list_asps, "List the ASPs issued by a user.", batch=True, user_recursive="userKey")
    verb(
        asps,
        "delete",
        ASP_FLAGS,
        delete_asp,
        "Delete an ASP issued by a user.",
        batch=True,
        failure=deleted("userKey", "codeId"),
    )
