"""``drives``: shared drives (https://developers.google.com/drive/api/v3/reference/drives)."""

from collections.abc import AsyncIterator
from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

_WITH_DRIVE_ID = ["get", "update", "delete", "hide", "unhide"]
_METADATA = ["create", "update"]

DRIVE_FLAGS: dict[str, Flag] = {
    "driveId": Flag(
        available_for=_WITH_DRIVE_ID,
        required=_WITH_DRIVE_ID,
        exclude_from_all=_WITH_DRIVE_ID,
        description="The ID of the shared drive.",
    ),
    "name": Flag(available_for=_METADATA, required=["create"], description="The name of the shared drive."),
    "requestId": Flag(
        available_for=["create"],
        exclude_from_all=["create"],
        description="Idempotency key for the create request. Generated when empty.",
    ),
    "themeId": Flag(available_for=_METADATA, description="The ID of the theme to apply."),
    "colorRgb": Flag(available_for=["update"], description="The color of the shared drive as an RGB hex string."),
    "backgroundImageFileId": Flag(
        available_for=["update"], description="The ID of an image file in Drive to use as background."
    ),
    "backgroundImageWidth": Flag(available_for=["update"], description="Width of the cropped background image."),
    "backgroundImageXCoordinate": Flag(
        available_for=["update"], description="X coordinate of the upper left corner of the cropping area."
    ),
    "backgroundImageYCoordinate": Flag(
        available_for=["update"], description="Y coordinate of the upper left corner of the cropping area."
    ),
    "adminManagedRestrictions": Flag(
        kind=FlagKind.BOOL,
        available_for=_METADATA,
        description="Whether administrative privileges are required to modify restrictions.",
    ),
    "copyRequiresWriterPermission": Flag(
        kind=FlagKind.BOOL,
        available_for=_METADATA,
        description="Whether copy, print and download are disabled for readers and commenters.",
    ),
    "domainUsersOnly": Flag(
        kind=FlagKind.BOOL,
        available_for=_METADATA,
        description="Whether access is restricted to users of the owning domain.",
    ),
    "driveMembersOnly": Flag(
        kind=FlagKind.BOOL,
        available_for=_METADATA,
        description="Whether access to items is restricted to members of the shared drive.",
    ),
    "allowItemDeletion": Flag(
        kind=FlagKind.BOOL,
        available_for=["delete"],
        description="Delete the items of the shared drive as well (requires --useDomainAdminAccess).",
    ),
    "q": Flag(available_for=["list"], description="Query string for searching shared drives."),
    "useDomainAdminAccess": Flag(
        kind=FlagKind.BOOL,
        available_for=["get", "list", "update", "delete"],
        description="Issue the request as a domain administrator.",
    ),
    "fields": Flag(
        available_for=["create", "get", "list", "update", "hide", "unhide"],
        description="Fields to include in the response (partial response selector).",
    ),
}

DRIVE_BODY: FieldMap = (
    Field("name", "name"),
    Field("themeId", "themeId"),
    Field("colorRgb", "colorRgb"),
    Field("backgroundImageFileId", "backgroundImageFile.id"),
    Field("backgroundImageWidth", "backgroundImageFile.width", float),
    Field("backgroundImageXCoordinate", "backgroundImageFile.xCoordinate", float),
    Field("backgroundImageYCoordinate", "backgroundImageFile.yCoordinate", float),
    Field("adminManagedRestrictions", "restrictions.adminManagedRestrictions"),
    Field("copyRequiresWriterPermission", "restrictions.copyRequiresWriterPermission"),
    Field("domainUsersOnly", "restrictions.domainUsersOnly"),
    Field("driveMembersOnly", "restrictions.driveMembersOnly"),
)


async def create_drive(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, DRIVE_BODY).body
    params = compose_params(values, ["fields"])
    return await apis.drive.create_drive(body, params, values.get_string("requestId") or None)


async def get_drive(apis: Apis, values: ValueMap) -> dict[str, Any]:
    params = compose_params(values, ["useDomainAdminAccess", "fields"])
    return await apis.drive.get_drive(values.get_string("driveId"), params)


async def list_drives(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    params = compose_params(values, ["q", "useDomainAdminAccess"])
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,drives({values.get_string('fields')})"
    return apis.drive.list_drives(params)


async def update_drive(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, DRIVE_BODY).body
    params = compose_params(values, ["useDomainAdminAccess", "fields"])
    return await apis.drive.update_drive(values.get_string("driveId"), body, params)


async def delete_drive(apis: Apis, values: ValueMap) -> dict[str, Any]:
    drive_id = values.get_string("driveId")
    await apis.drive.delete_drive(drive_id, compose_params(values, ["allowItemDeletion", "useDomainAdminAccess"]))
    return {"driveId": drive_id, "result": True}


async def hide_drive(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.drive.hide_drive(values.get_string("driveId"))


async def unhide_drive(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.drive.unhide_drive(values.get_string("driveId"))


def register(main: click.Group) -> None:
    drives = noun(main, "drives", "Manage shared drives.")
    verb(drives, "create", DRIVE_FLAGS, create_drive, "Create a shared drive.", batch=True)
    verb(drives, "get", DRIVE_FLAGS, get_drive, "Get a shared drive's metadata.", batch=True)
    verb(drives, "list", DRIVE_FLAGS, list_drives, "List shared drives.")
    verb(drives, "update", DRIVE_FLAGS, update_drive, "Update a shared drive's metadata.", batch=True)
    verb(
        drives,
        "delete",
        DRIVE_FLAGS,
        delete_drive,
        "Delete a shared drive.",
        batch=True,
        failure=deleted("driveId"),
    )
    verb(drives, "hide", DRIVE_FLAGS, hide_drive, "Hide a shared drive from the default view.", batch=True)
    verb(drives, "unhide", DRIVE_FLAGS, unhide_drive, "Restore a shared drive to the default view.", batch=True)
