"""``groupsci``: groups managed through the Cloud Identity API.

Groups are addressed by resource name (``groups/{id}``). ``--email`` may be
given instead of ``--name``; it is resolved with an extra ``groups:lookup``
call. Created groups default to the caller's own customer as parent and to
the discussion forum label, which makes them ordinary Google Groups.
"""

from collections.abc import AsyncIterator
from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, require_one, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params, parse_mini_map
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

DISCUSSION_FORUM_LABEL = "cloudidentity.googleapis.com/groups.discussion_forum"

_WITH_NAME = ["get", "patch", "delete"]

GROUP_CI_FLAGS: dict[str, Flag] = {
    "initialGroupConfig": Flag(
        available_for=["create"],
        defaults={"create": "EMPTY"},
        description="WITH_INITIAL_OWNER adds the caller as owner; EMPTY creates a group without owners (admins only).",
    ),
    "labels": Flag(
        kind=FlagKind.STRING_SLICE,
        available_for=["create", "patch"],
        description=f"Label keys of the group, e.g. {DISCUSSION_FORUM_LABEL} or cloudidentity.googleapis.com/groups.security.",
    ),
    "name": Flag(
        available_for=_WITH_NAME,
        exclude_from_all=_WITH_NAME,
        description="Resource name of the group in the form groups/{group_id}.",
    ),
    "email": Flag(
        available_for=_WITH_NAME,
        exclude_from_all=_WITH_NAME,
        description="Email address of the group, looked up to find its resource name. Alternative to --name.",
    ),
    "parent": Flag(
        available_for=["create", "list"],
        description="customers/{customer_id} for Google Groups or identitysources/{id} for external groups.",
    ),
    "queries": Flag(
        kind=FlagKind.STRING_ARRAY,
        available_for=["create"],
        description=(
            "Dynamic membership query in the form \"resourceType=USER;query=...\". Repeatable; "
            "members are the union of all queries."
        ),
    ),
    "id": Flag(
        available_for=["create", "lookup"],
        required=["create", "lookup"],
        exclude_from_all=["create", "lookup"],
        description="The group's email address, or the external ID for identity-mapped groups.",
    ),
    "namespace": Flag(
        available_for=["create", "lookup"],
        description="identitysources/{identity_source_id} for external-identity-mapped groups.",
    ),
    "displayName": Flag(available_for=["create", "patch"], description="The display name of the group."),
    "description": Flag(available_for=["create", "patch"], description="An extended description of the group."),
    "view": Flag(available_for=["list", "search"], description="BASIC (default) or FULL."),
    "query": Flag(
        available_for=["search"],
        required=["search"],
        description="CEL query on parent and labels, e.g. \"parent == 'customers/C01' && 'x' in labels\".",
    ),
    "updateMask": Flag(
        available_for=["patch"],
        description="Comma separated fields to update. Derived from the given flags when unset.",
    ),
    "fields": Flag(
        available_for=["create", "get", "list", "patch", "search"],
        description="Fields to include in the response (partial response selector).",
    ),
}


def labels_map(keys: list[str]) -> dict[str, str]:
    """Turn label keys into the label map the API expects; values are always empty."""
    return dict.fromkeys(keys, "")


def dynamic_queries(entries: list[str]) -> list[dict[str, str]]:
    """Parse ``resourceType=...;query=...`` entries into dynamic group queries."""
    queries = []
    for entry in entries:
        parsed = parse_mini_map(entry)
        unknown = set(parsed) - {"resourceType", "query"}
        if unknown:
            raise ValueError(f"unknown key(s) {sorted(unknown)} in {entry!r}")
        queries.append(parsed)
    return queries


GROUP_CI_BODY: FieldMap = (
    Field("id", "groupKey.id"),
    Field("namespace", "groupKey.namespace"),
    Field("parent", "parent"),
    Field("displayName", "displayName"),
    Field("description", "description"),
    Field("labels", "labels", labels_map),
    Field("queries", "dynamicGroupMetadata.queries", dynamic_queries),
)


async def group_name(apis: Apis, values: ValueMap) -> str:
    """Resource name from ``--name``, or looked up from ``--email``."""
    if require_one(values, "name", "email") == "name":
        return values.get_string("name")
    return await apis.cloud_identity.lookup_group(values.get_string("email"))


async def create_group(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, GROUP_CI_BODY).body
    if not body.get("parent"):
        customer = await apis.directory.get_customer(params={"fields": "id"})
        body["parent"] = f"customers/{customer['id']}"
    if not body.get("labels"):
        body["labels"] = labels_map([DISCUSSION_FORUM_LABEL])
    params = compose_params(values, ["initialGroupConfig", "fields"])
    params.setdefault("initialGroupConfig", values.get_string("initialGroupConfig") or "EMPTY")
    return await apis.cloud_identity.create_group(body, params)


async def get_group(apis: Apis, values: ValueMap) -> dict[str, Any]:
    name = await group_name(apis, values)
    return await apis.cloud_identity.get_group(name, compose_params(values, ["fields"]))


async def list_groups(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    params = compose_params(values, ["parent", "view"])
    if "parent" not in params:
        customer = await apis.directory.get_customer(params={"fields": "id"})
        params["parent"] = f"customers/{customer['id']}"
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,groups({values.get_string('fields')})"
    return apis.cloud_identity.list_groups(params)


async def search_groups(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    params = compose_params(values, ["query", "view"])
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,groups({values.get_string('fields')})"
    return apis.cloud_identity.search_groups(params)


async def lookup_group(apis: Apis, values: ValueMap) -> dict[str, Any]:
    name = await apis.cloud_identity.lookup_group(values.get_string("id"), values.get_string("namespace"))
    return {"id": values.get_string("id"), "name": name}


async def patch_group(apis: Apis, values: ValueMap) -> dict[str, Any]:
    name = await group_name(apis, values)
    request = compose(values, GROUP_CI_BODY)
    params = compose_params(values, ["fields"])
    params["updateMask"] = values.get_string("updateMask") or ",".join(sorted(request.body))
    return await apis.cloud_identity.patch_group(name, request.body, params)


async def delete_group(apis: Apis, values: ValueMap) -> dict[str, Any]:
    name = await group_name(apis, values)
    await apis.cloud_identity.delete_group(name)
    return {"name": name, "result": True}


def register(main: click.Group) -> None:
    groupsci = noun(main, "groupsci", "Manage groups with the Cloud Identity API.")
    verb(groupsci, "create", GROUP_CI_FLAGS, create_group, "Create a group.", batch=True)
    verb(groupsci, "get", GROUP_CI_FLAGS, get_group, "Get a group.", batch=True)
    verb(groupsci, "list", GROUP_CI_FLAGS, list_groups, "List the groups below a customer or identity source.")
    verb(groupsci, "search", GROUP_CI_FLAGS, search_groups, "Search groups matching a query.")
    verb(groupsci, "lookup", GROUP_CI_FLAGS, lookup_group, "Look up a group's resource name.", batch=True)
    verb(groupsci, "patch", GROUP_CI_FLAGS, patch_group, "Update a group.", batch=True)
    verb(
        groupsci,
        "delete",
        GROUP_CI_FLAGS,
        delete_group,
        "Delete a group.",
        batch=True,
        failure=deleted("name", "email"),
    )
