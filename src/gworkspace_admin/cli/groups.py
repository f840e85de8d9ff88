"""``groups``: Directory groups."""

from collections.abc import AsyncIterator
from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params
from gworkspace_admin.flags import Flag, ValueMap

_WITH_GROUP_KEY = ["get", "patch", "delete"]

GROUP_FLAGS: dict[str, Flag] = {
    "groupKey": Flag(
        available_for=_WITH_GROUP_KEY,
        required=_WITH_GROUP_KEY,
        exclude_from_all=_WITH_GROUP_KEY,
        description="The group's email address, alias or unique ID.",
    ),
    "email": Flag(
        available_for=["insert", "patch"],
        required=["insert"],
        exclude_from_all=["insert", "patch"],
        description="The group's email address.",
    ),
    "name": Flag(available_for=["insert", "patch"], description="The group's display name."),
    "description": Flag(available_for=["insert", "patch"], description="An extended description of the group."),
    "customer": Flag(
        available_for=["list"],
        description="Immutable ID of the Google Workspace account. Defaults to my_customer.",
    ),
    "domain": Flag(available_for=["list"], description="Only list groups of this domain."),
    "userKey": Flag(available_for=["list"], description="Only list groups the given user is a member of."),
    "query": Flag(available_for=["list"], description="Query string for searching group fields."),
    "orderBy": Flag(available_for=["list"], description="Column to sort by; only email is supported."),
    "sortOrder": Flag(available_for=["list"], description="ASCENDING or DESCENDING."),
    "fields": Flag(
        available_for=["insert", "get", "list", "patch"],
        description="Fields to include in the response (partial response selector).",
    ),
}

GROUP_BODY: FieldMap = (
    Field("email", "email"),
    Field("name", "name"),
    Field("description", "description"),
)


async def insert_group(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.directory.insert_group(compose(values, GROUP_BODY).body, compose_params(values, ["fields"]))


async def get_group(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.directory.get_group(values.get_string("groupKey"), compose_params(values, ["fields"]))


async def list_groups(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    params = compose_params(values, ["customer", "domain", "userKey", "query", "orderBy", "sortOrder"])
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,groups({values.get_string('fields')})"
    return apis.directory.list_groups(params)


async def patch_group(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, GROUP_BODY).body
    return await apis.directory.patch_group(values.get_string("groupKey"), body, compose_params(values, ["fields"]))


async def delete_group(apis: Apis, values: ValueMap) -> dict[str, Any]:
    await apis.directory.delete_group(values.get_string("groupKey"))
    return {"groupKey": values.get_string("groupKey"), "result": True}


def register(main: click.Group) -> None:
    groups = noun(main, "groups", "Manage groups.")
    verb(groups, "insert", GROUP_FLAGS, insert_group, "Create a group.", batch=True)
    verb(groups, "get", GROUP_FLAGS, get_group, "Get a group.", batch=True)
    verb(groups, "list", GROUP_FLAGS, list_groups, "List groups of a domain, an account or a user.")
    verb(groups, "patch", GROUP_FLAGS, patch_group, "Update a group.", batch=True)
    verb(groups, "delete", GROUP_FLAGS, delete_group, "Delete a group.", batch=True, failure=deleted("groupKey"))
