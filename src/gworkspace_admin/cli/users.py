"""``users``: Directory users (https://developers.google.com/admin-sdk/directory/reference/rest/v1/users)."""

from collections.abc import AsyncIterator
from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params, parse_mini_map
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

_WITH_USER_KEY = ["get", "update", "delete", "undelete", "makeadmin", "signout"]
_METADATA = ["insert", "update"]

USER_FLAGS: dict[str, Flag] = {
    "userKey": Flag(
        available_for=_WITH_USER_KEY,
        required=_WITH_USER_KEY,
        exclude_from_all=_WITH_USER_KEY,
        description="The user's primary email address, alias email address or unique user ID.",
    ),
    "primaryEmail": Flag(
        available_for=_METADATA,
        required=["insert"],
        exclude_from_all=_METADATA,
        description="The user's primary email address.",
    ),
    "firstName": Flag(available_for=_METADATA, required=["insert"], description="The user's first name."),
    "lastName": Flag(available_for=_METADATA, required=["insert"], description="The user's last name."),
    "password": Flag(
        available_for=_METADATA,
        required=["insert"],
        description="The user's password. Hashed values require --hashFunction.",
    ),
    "hashFunction": Flag(
        available_for=_METADATA, description="Hash format of the password: MD5, SHA-1 or crypt."
    ),
    "changePasswordAtNextLogin": Flag(
        kind=FlagKind.BOOL,
        available_for=_METADATA,
        description="Whether the user is forced to change the password at next login.",
    ),
    "includeInGlobalAddressList": Flag(
        kind=FlagKind.BOOL,
        available_for=_METADATA,
        description="Whether the user's profile is visible in the global address list.",
    ),
    "ipWhitelisted": Flag(
        kind=FlagKind.BOOL,
        available_for=_METADATA,
        description="Whether the user's IP address is subject to a deprecated allowlist configuration.",
    ),
    "orgUnitPath": Flag(
        available_for=["insert", "update", "undelete"],
        description="The full path of the parent organization of the user.",
    ),
    "suspended": Flag(kind=FlagKind.BOOL, available_for=_METADATA, description="Whether the user is suspended."),
    "archived": Flag(kind=FlagKind.BOOL, available_for=_METADATA, description="Whether the user is archived."),
    "recoveryEmail": Flag(available_for=_METADATA, description="Recovery email of the user."),
    "recoveryPhone": Flag(available_for=_METADATA, description="Recovery phone of the user (E.164)."),
    "customSchemas": Flag(
        available_for=_METADATA,
        description='Custom schema values as "schema.field=value;schema.field2=value2".',
    ),
    "status": Flag(
        kind=FlagKind.BOOL,
        available_for=["makeadmin"],
        defaults={"makeadmin": True},
        description="Whether the user gets super administrator privileges.",
    ),
    "customer": Flag(
        available_for=["list"],
        description="Immutable ID of the Google Workspace account. Defaults to my_customer.",
    ),
    "domain": Flag(available_for=["list"], description="Only list users of this domain."),
    "query": Flag(available_for=["list"], description="Query string for searching user fields."),
    "orderBy": Flag(available_for=["list"], description="Property to sort by: email, familyName or givenName."),
    "sortOrder": Flag(available_for=["list"], description="ASCENDING or DESCENDING."),
    "showDeleted": Flag(
        kind=FlagKind.BOOL,
        available_for=["list"],
        description="List deleted users instead of active ones.",
    ),
    "projection": Flag(
        available_for=["get", "list"],
        recursive=["get"],
        description="What subset of fields to fetch: basic, custom or full.",
    ),
    "customFieldMask": Flag(
        available_for=["get", "list"],
        recursive=["get"],
        description="Comma-separated list of schema names; only with --projection=custom.",
    ),
    "viewType": Flag(
        available_for=["get", "list"],
        recursive=["get"],
        description="admin_view or domain_public.",
    ),
    "fields": Flag(
        available_for=["insert", "get", "list", "update"],
        recursive=["get"],
        description="Fields to include in the response (partial response selector).",
    ),
}


def _custom_schemas(text: str) -> dict[str, dict[str, str]]:
    """Parse ``schema.field=value;...`` into the nested customSchemas shape."""
    schemas: dict[str, dict[str, str]] = {}
    for key, value in parse_mini_map(text).items():
        schema, dot, field = key.partition(".")
        if not dot or not schema or not field:
            raise ValueError(f"malformed key {key!r}, expected schema.field")
        schemas.setdefault(schema, {})[field] = value
    return schemas


USER_BODY: FieldMap = (
    Field("primaryEmail", "primaryEmail"),
    Field("firstName", "name.givenName"),
    Field("lastName", "name.familyName"),
    Field("password", "password"),
    Field("hashFunction", "hashFunction"),
    Field("changePasswordAtNextLogin", "changePasswordAtNextLogin"),
    Field("includeInGlobalAddressList", "includeInGlobalAddressList"),
    Field("ipWhitelisted", "ipWhitelisted"),
    Field("orgUnitPath", "orgUnitPath"),
    Field("suspended", "suspended"),
    Field("archived", "archived"),
    Field("recoveryEmail", "recoveryEmail"),
    Field("recoveryPhone", "recoveryPhone"),
    Field("customSchemas", "customSchemas", _custom_schemas),
)

_READ_PARAMS = ["projection", "customFieldMask", "viewType", "fields"]


async def insert_user(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, USER_BODY).body
    return await apis.directory.insert_user(body, compose_params(values, ["fields"]))


async def get_user(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.directory.get_user(values.get_string("userKey"), compose_params(values, _READ_PARAMS))


async def list_users(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    params = compose_params(
        values,
        ["customer", "domain", "query", "orderBy", "sortOrder", "showDeleted", "projection", "customFieldMask", "viewType"],
    )
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,users({values.get_string('fields')})"
    return apis.directory.list_users(params)


async def update_user(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, USER_BODY).body
    return await apis.directory.update_user(values.get_string("userKey"), body, compose_params(values, ["fields"]))


async def delete_user(apis: Apis, values: ValueMap) -> dict[str, Any]:
    await apis.directory.delete_user(values.get_string("userKey"))
    return {"userKey": values.get_string("userKey"), "result": True}


async def undelete_user(apis: Apis, values: ValueMap) -> dict[str, Any]:
    user_key = values.get_string("userKey")
    await apis.directory.undelete_user(user_key, {"orgUnitPath": values.get_string("orgUnitPath") or "/"})
    return {"userKey": user_key, "result": True}


async def sign_out(apis: Apis, values: ValueMap) -> dict[str, Any]:
    user_key = values.get_string("userKey")
    await apis.directory.sign_out_user(user_key)
    return {"userKey": user_key, "result": True}


async def make_admin(apis: Apis, values: ValueMap) -> dict[str, Any]:
    user_key = values.get_string("userKey")
    status = values.get_bool("status")
    await apis.directory.make_admin(user_key, status)
    return {"userKey": user_key, "status": status, "result": True}


def register(main: click.Group) -> None:
    users = noun(main, "users", "Manage Google Workspace users.")
    verb(users, "insert", USER_FLAGS, insert_user, "Create a user.", batch=True)
    verb(users, "get", USER_FLAGS, get_user, "Get a user.", batch=True, user_recursive="userKey")
    verb(users, "list", USER_FLAGS, list_users, "List users.")
    verb(users, "update", USER_FLAGS, update_user, "Update a user.", batch=True)
    verb(users, "delete", USER_FLAGS, delete_user, "Delete a user.", batch=True, failure=deleted("userKey"))
    verb(users, "undelete", USER_FLAGS, undelete_user, "Restore a deleted user.", batch=True)
    verb(users, "makeadmin", USER_FLAGS, make_admin, "Grant or revoke super administrator privileges.", batch=True)
    verb(
        users,
        "signout",
        USER_FLAGS,
        sign_out,
        "Sign a user out of all web and device sessions and reset their sign-in cookies.",
        batch=True,
        failure=deleted("userKey"),
        user_recursive="userKey",
    )
