"""``permissions``: sharing of Drive files (https://developers.google.com/drive/api/v3/reference/permissions)."""

from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, require_one, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params
from gworkspace_admin.errors import ArgumentError
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

_ALL = ["create", "get", "list", "update", "delete"]
_BY_TRUSTEE = ["get", "update", "delete"]
_RECURSIVE = ["create", "list", "update", "delete"]

PERMISSION_FLAGS: dict[str, Flag] = {
    "fileId": Flag(
        available_for=_ALL,
        required=_ALL,
        exclude_from_all=_ALL,
        description="The ID of the file or shared drive.",
    ),
    "permissionId": Flag(
        available_for=_BY_TRUSTEE,
        exclude_from_all=_BY_TRUSTEE,
        description="The ID of the permission. Alternatively use --emailAddress or --domain.",
    ),
    "emailAddress": Flag(
        available_for=["create", *_BY_TRUSTEE],
        recursive=["create", "update", "delete"],
        description="Email address of the user or group the permission refers to.",
    ),
    "domain": Flag(
        available_for=["create", *_BY_TRUSTEE],
        recursive=["create", "update", "delete"],
        description="The domain the permission refers to.",
    ),
    "role": Flag(
        available_for=["create", "update"],
        required=["create"],
        recursive=["create", "update"],
        description="owner, organizer, fileOrganizer, writer, commenter or reader.",
    ),
    "type": Flag(
        available_for=["create"],
        required=["create"],
        recursive=["create"],
        description="user, group, domain or anyone.",
    ),
    "allowFileDiscovery": Flag(
        kind=FlagKind.BOOL,
        available_for=["create"],
        recursive=["create"],
        description="Whether the permission allows the file to be discovered through search.",
    ),
    "expirationTime": Flag(
        available_for=["create", "update"],
        recursive=["create", "update"],
        description="The time at which this permission will expire (RFC 3339).",
    ),
    "view": Flag(
        available_for=["create"],
        recursive=["create"],
        description="Whether the permission applies to a view; only 'published' is supported.",
    ),
    "pendingOwner": Flag(
        kind=FlagKind.BOOL,
        available_for=["create", "update"],
        recursive=["create", "update"],
        description="Whether the account of the permission is a pending owner.",
    ),
    "emailMessage": Flag(
        available_for=["create"],
        recursive=["create"],
        description="A plain text custom message to include in the notification email.",
    ),
    "sendNotificationEmail": Flag(
        kind=FlagKind.BOOL,
        available_for=["create"],
        recursive=["create"],
        description="Whether to send a notification email when sharing to users or groups.",
    ),
    "transferOwnership": Flag(
        kind=FlagKind.BOOL,
        available_for=["create", "update"],
        description="Whether to transfer ownership to the specified user.",
    ),
    "moveToNewOwnersRoot": Flag(
        kind=FlagKind.BOOL,
        available_for=["create"],
        description="Move the file to the new owner's My Drive root when transferring ownership.",
    ),
    "removeExpiration": Flag(
        kind=FlagKind.BOOL,
        available_for=["update"],
        recursive=["update"],
        description="Whether to remove the expiration date.",
    ),
    "useDomainAdminAccess": Flag(
        kind=FlagKind.BOOL,
        available_for=_ALL,
        recursive=_RECURSIVE,
        description="Issue the request as a domain administrator.",
    ),
    "fields": Flag(
        available_for=_ALL,
        recursive=_RECURSIVE,
        description="Fields to include in the response (partial response selector).",
    ),
}

PERMISSION_BODY: FieldMap = (
    Field("role", "role"),
    Field("type", "type"),
    Field("emailAddress", "emailAddress"),
    Field("domain", "domain"),
    Field("allowFileDiscovery", "allowFileDiscovery"),
    Field("expirationTime", "expirationTime"),
    Field("view", "view"),
    Field("pendingOwner", "pendingOwner"),
)

PERMISSION_UPDATE_BODY: FieldMap = (
    Field("role", "role"),
    Field("expirationTime", "expirationTime"),
    Field("pendingOwner", "pendingOwner"),
)


async def resolve_permission_id(apis: Apis, values: ValueMap) -> str:
    """Find the permission named by ``--permissionId``, ``--emailAddress`` or ``--domain``.

    Raises:
        ArgumentError: If not exactly one is set or no permission matches.
    """
    chosen = require_one(values, "permissionId", "emailAddress", "domain")
    if chosen == "permissionId":
        return values.get_string("permissionId")
    file_id = values.get_string("fileId")
    wanted = values.get_string(chosen).lower()
    params = compose_params(values, ["useDomainAdminAccess"])
    params["fields"] = "nextPageToken,permissions(id,emailAddress,domain)"
    async for permission in apis.drive.list_permissions(file_id, params):
        if str(permission.get(chosen, "")).lower() == wanted:
            return permission["id"]
    raise ArgumentError(f"no permission for {wanted} on {file_id}")


async def create_permission(apis: Apis, values: ValueMap) -> dict[str, Any]:
    file_id = values.get_string("fileId")
    body = compose(values, PERMISSION_BODY).body
    params = compose_params(
        values,
        [
            "emailMessage",
            "sendNotificationEmail",
            "transferOwnership",
            "moveToNewOwnersRoot",
            "useDomainAdminAccess",
            "fields",
        ],
    )
    result = await apis.drive.create_permission(file_id, body, params)
    return {"fileId": file_id, **result}


async def get_permission(apis: Apis, values: ValueMap) -> dict[str, Any]:
    file_id = values.get_string("fileId")
    permission_id = await resolve_permission_id(apis, values)
    params = compose_params(values, ["useDomainAdminAccess", "fields"])
    result = await apis.drive.get_permission(file_id, permission_id, params)
    return {"fileId": file_id, **result}


async def list_permissions(apis: Apis, values: ValueMap) -> dict[str, Any]:
    file_id = values.get_string("fileId")
    params = compose_params(values, ["useDomainAdminAccess"])
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,permissions({values.get_string('fields')})"
    permissions = [p async for p in apis.drive.list_permissions(file_id, params)]
    return {"fileId": file_id, "permissions": permissions}


async def update_permission(apis: Apis, values: ValueMap) -> dict[str, Any]:
    file_id = values.get_string("fileId")
    permission_id = await resolve_permission_id(apis, values)
    body = compose(values, PERMISSION_UPDATE_BODY).body
    params = compose_params(values, ["removeExpiration", "transferOwnership", "useDomainAdminAccess", "fields"])
    result = await apis.drive.update_permission(file_id, permission_id, body, params)
    return {"fileId": file_id, **result}


async def delete_permission(apis: Apis, values: ValueMap) -> dict[str, Any]:
    file_id = values.get_string("fileId")
    permission_id = await resolve_permission_id(apis, values)
    await apis.drive.delete_permission(file_id, permission_id, compose_params(values, ["useDomainAdminAccess"]))
    return {"fileId": file_id, "permissionId": permission_id, "result": True}


def register(main: click.Group) -> None:
    permissions = noun(main, "permissions", "Manage sharing permissions of Drive files and shared drives.")
    verb(permissions, "create", PERMISSION_FLAGS, create_permission, "Create a permission.", batch=True, recursive=True)
    verb(permissions, "get", PERMISSION_FLAGS, get_permission, "Get a permission.", batch=True)
    verb(permissions, "list", PERMISSION_FLAGS, list_permissions, "List the permissions of a file.", batch=True, recursive=True)
    verb(permissions, "update", PERMISSION_FLAGS, update_permission, "Update a permission.", batch=True, recursive=True)
    verb(
        permissions,
        "delete",
        PERMISSION_FLAGS,
        delete_permission,
        "Delete a permission.",
        batch=True,
        recursive=True,
        failure=deleted("fileId", "permissionId", "emailAddress", "domain"),
    )
