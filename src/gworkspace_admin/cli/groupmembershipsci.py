"""``groupmembershipsci``: group memberships through the Cloud Identity API.

The group is given by ``--parent`` (``groups/{id}``) or ``--email``. A
membership is given by ``--name`` or by its group together with
``--memberKeyId``; both lookups cost an extra call.
"""

from collections.abc import AsyncIterator
from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, require_one, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params, parse_mini_map
from gworkspace_admin.errors import ArgumentError
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

_CHECK = "checktransitivemembership"
_MODIFY = "modifymembershiproles"
_BY_GROUP = ["create", "list", "lookup", _CHECK]
_BY_MEMBERSHIP = ["get", "delete", _MODIFY]

GROUP_MEMBERSHIP_CI_FLAGS: dict[str, Flag] = {
    "parent": Flag(
        available_for=_BY_GROUP + _BY_MEMBERSHIP,
        recursive=["create"],
        description="Resource name of the group in the form groups/{group_id}.",
    ),
    "email": Flag(
        available_for=_BY_GROUP + _BY_MEMBERSHIP,
        recursive=["create"],
        description="Email address of the group, looked up to find its resource name. Alternative to --parent.",
    ),
    "name": Flag(
        available_for=_BY_MEMBERSHIP,
        exclude_from_all=_BY_MEMBERSHIP,
        description="Resource name of the membership in the form groups/{group_id}/memberships/{membership_id}.",
    ),
    "memberKeyId": Flag(
        available_for=["create", "lookup"] + _BY_MEMBERSHIP,
        required=["create", "lookup"],
        exclude_from_all=["create", "lookup"] + _BY_MEMBERSHIP,
        description="Email address of the member, or its external ID for identity-mapped entities.",
    ),
    "memberKeyNamespace": Flag(
        available_for=["create", "lookup"] + _BY_MEMBERSHIP,
        description="identitysources/{identity_source_id} for external-identity-mapped members.",
    ),
    "roles": Flag(
        kind=FlagKind.STRING_ARRAY,
        available_for=["create"],
        recursive=["create"],
        description=(
            "Role of the membership in the form \"name=MEMBER;expireTime=2030-01-01T00:00:00Z\". "
            "Repeatable. Name is OWNER, MANAGER or MEMBER; the API defaults to MEMBER."
        ),
    ),
    "view": Flag(available_for=["list"], description="BASIC (default) or FULL."),
    "query": Flag(
        available_for=[_CHECK],
        required=[_CHECK],
        description="CEL expression naming the member, e.g. \"member_key_id == 'user@example.com'\".",
    ),
    "addRoles": Flag(
        kind=FlagKind.STRING_ARRAY,
        available_for=[_MODIFY],
        description="Role to add in the form \"name=MANAGER;expireTime=...\". Repeatable.",
    ),
    "removeRoles": Flag(
        kind=FlagKind.STRING_SLICE,
        available_for=[_MODIFY],
        description="Names of roles to remove. MEMBER cannot be removed; delete the membership instead.",
    ),
    "updateRolesParams": Flag(
        kind=FlagKind.STRING_ARRAY,
        available_for=[_MODIFY],
        description=(
            "Role to update in the form \"name=MEMBER;expireTime=...;fieldMask=...\". Repeatable. "
            "Cannot be combined with --addRoles or --removeRoles."
        ),
    ),
    "fields": Flag(
        available_for=["create", "get", "list", _MODIFY],
        recursive=["create"],
        description="Fields to include in the response (partial response selector).",
    ),
}


def _role(parsed: dict[str, str]) -> dict[str, Any]:
    unknown = set(parsed) - {"name", "expireTime"}
    if unknown:
        raise ValueError(f"unknown key(s) {sorted(unknown)}")
    role: dict[str, Any] = {"name": parsed.get("name", "")}
    if parsed.get("expireTime"):
        role["expiryDetail"] = {"expireTime": parsed["expireTime"]}
    return role


def membership_role(entry: str) -> dict[str, Any]:
    """Parse ``name=...;expireTime=...`` into a MembershipRole."""
    return _role(parse_mini_map(entry))


def membership_roles(entries: list[str]) -> list[dict[str, Any]]:
    return [membership_role(entry) for entry in entries]


def update_roles_params(entries: list[str]) -> list[dict[str, Any]]:
    params = []
    for entry in entries:
        parsed = parse_mini_map(entry)
        field_mask = parsed.pop("fieldMask", "") or "expiryDetail.expireTime"
        params.append({"fieldMask": field_mask, "membershipRole": _role(parsed)})
    return params


MEMBERSHIP_BODY: FieldMap = (
    Field("memberKeyId", "preferredMemberKey.id"),
    Field("memberKeyNamespace", "preferredMemberKey.namespace"),
    Field("roles", "roles", membership_roles),
)

MODIFY_ROLES_BODY: FieldMap = (
    Field("addRoles", "addRoles", membership_roles),
    Field("removeRoles", "removeRoles"),
    Field("updateRolesParams", "updateRolesParams", update_roles_params),
)


async def group_parent(apis: Apis, values: ValueMap) -> str:
    """Group resource name from ``--parent``, or looked up from ``--email``."""
    if require_one(values, "parent", "email") == "parent":
        return values.get_string("parent")
    return await apis.cloud_identity.lookup_group(values.get_string("email"))


async def membership_name(apis: Apis, values: ValueMap) -> str:
    if values.get_string("name"):
        return values.get_string("name")
    if not values.get_string("memberKeyId"):
        raise ArgumentError("either --name or --memberKeyId together with --parent or --email must be set")
    parent = await group_parent(apis, values)
    return await apis.cloud_identity.lookup_membership(
        parent, values.get_string("memberKeyId"), values.get_string("memberKeyNamespace")
    )


async def create_membership(apis: Apis, values: ValueMap) -> dict[str, Any]:
    parent = await group_parent(apis, values)
    body = compose(values, MEMBERSHIP_BODY).body
    return await apis.cloud_identity.create_membership(parent, body, compose_params(values, ["fields"]))


async def get_membership(apis: Apis, values: ValueMap) -> dict[str, Any]:
    name = await membership_name(apis, values)
    return await apis.cloud_identity.get_membership(name, compose_params(values, ["fields"]))


async def list_memberships(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    parent = await group_parent(apis, values)
    params = compose_params(values, ["view"])
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,memberships({values.get_string('fields')})"
    return apis.cloud_identity.list_memberships(parent, params)


async def lookup_membership(apis: Apis, values: ValueMap) -> dict[str, Any]:
    parent = await group_parent(apis, values)
    name = await apis.cloud_identity.lookup_membership(
        parent, values.get_string("memberKeyId"), values.get_string("memberKeyNamespace")
    )
    return {"parent": parent, "memberKeyId": values.get_string("memberKeyId"), "name": name}


async def modify_membership_roles(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, MODIFY_ROLES_BODY).body
    if "updateRolesParams" in body and ("addRoles" in body or "removeRoles" in body):
        raise ArgumentError("--updateRolesParams cannot be combined with --addRoles or --removeRoles")
    name = await membership_name(apis, values)
    return await apis.cloud_identity.modify_membership_roles(name, body, compose_params(values, ["fields"]))


async def check_transitive_membership(apis: Apis, values: ValueMap) -> dict[str, Any]:
    parent = await group_parent(apis, values)
    query = values.get_string("query")
    has_membership = await apis.cloud_identity.check_transitive_membership(parent, query)
    return {"parent": parent, "query": query, "hasMembership": has_membership}


async def delete_membership(apis: Apis, values: ValueMap) -> dict[str, Any]:
    name = await membership_name(apis, values)
    await apis.cloud_identity.delete_membership(name)
    return {"name": name, "result": True}


def register(main: click.Group) -> None:
    memberships = noun(main, "groupmembershipsci", "Manage group memberships with the Cloud Identity API.")
    verb(
        memberships,
        "create",
        GROUP_MEMBERSHIP_CI_FLAGS,
        create_membership,
        "Add a member to a group.",
        batch=True,
        user_recursive="memberKeyId",
    )
    verb(memberships, "get", GROUP_MEMBERSHIP_CI_FLAGS, get_membership, "Get a membership.", batch=True)
    verb(memberships, "list", GROUP_MEMBERSHIP_CI_FLAGS, list_memberships, "List the memberships of a group.")
    verb(
        memberships,
        "lookup",
        GROUP_MEMBERSHIP_CI_FLAGS,
        lookup_membership,
        "Look up a membership's resource name.",
        batch=True,
    )
    verb(
        memberships,
        _MODIFY,
        GROUP_MEMBERSHIP_CI_FLAGS,
        modify_membership_roles,
        "Add, remove or update the roles of a membership.",
        batch=True,
    )
    verb(
        memberships,
        _CHECK,
        GROUP_MEMBERSHIP_CI_FLAGS,
        check_transitive_membership,
        "Check whether a member belongs to a group, directly or through nested groups.",
        batch=True,
    )
    verb(
        memberships,
        "delete",
        GROUP_MEMBERSHIP_CI_FLAGS,
        delete_membership,
        "Remove a member from a group.",
        batch=True,
        failure=deleted("name", "memberKeyId"),
    )
