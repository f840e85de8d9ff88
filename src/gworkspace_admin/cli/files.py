"""``files``: Drive files (https://developers.google.com/drive/api/v3/reference/files)."""

import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import click

from gworkspace_admin.api.drive import is_folder
from gworkspace_admin.cli.commands import RecursiveRun, deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params, parse_mini_map, single_parent
from gworkspace_admin.dispatcher import max_threads
from gworkspace_admin.errors import ArgumentError
from gworkspace_admin.flags import Flag, FlagKind, ValueMap
from gworkspace_admin.traverser import (
    copy_folders_and_return_files_with_new_parents,
    count_files_and_folders,
    list_recursive,
)

logger = logging.getLogger(__name__)

_WITH_FILE_ID = ["copy", "delete", "get", "move", "update", "download", "listlabels", "modifylabels"]
_METADATA = ["copy", "create", "update"]

FILE_FLAGS: dict[str, Flag] = {
    "fileId": Flag(
        available_for=_WITH_FILE_ID,
        required=_WITH_FILE_ID,
        exclude_from_all=_WITH_FILE_ID,
        description="The ID of the file.",
    ),
    "name": Flag(available_for=_METADATA, description="The name of the file."),
    "description": Flag(available_for=_METADATA, description="A short description of the file."),
    "mimeType": Flag(
        available_for=_METADATA,
        description="The MIME type of the file. Use application/vnd.google-apps.folder to create a folder.",
    ),
    "parent": Flag(
        available_for=["copy", "create", "move", "update"],
        required=["move"],
        recursive=["copy", "move"],
        description="The single parent of the file. In recursive mode the destination folder.",
    ),
    "appProperties": Flag(
        available_for=_METADATA,
        description='Key-value pairs private to the requesting app, as "key=value;key2=value2".',
    ),
    "properties": Flag(
        available_for=_METADATA,
        description='Key-value pairs visible to all apps, as "key=value;key2=value2".',
    ),
    "thumbnailImage": Flag(
        available_for=_METADATA, description="Thumbnail data encoded with URL-safe Base64."
    ),
    "thumbnailMimeType": Flag(available_for=_METADATA, description="The MIME type of the thumbnail."),
    "indexableText": Flag(
        available_for=["create", "update"], description="Text to be indexed for fullText queries."
    ),
    "readOnly": Flag(
        kind=FlagKind.BOOL, available_for=_METADATA, description="Whether the content of the file is read-only."
    ),
    "readOnlyReason": Flag(
        available_for=_METADATA, description="Reason for why the content of the file is restricted."
    ),
    "copyRequiresWriterPermission": Flag(
        kind=FlagKind.BOOL,
        available_for=_METADATA,
        description="Whether copy, print and download are disabled for readers and commenters.",
    ),
    "writersCanShare": Flag(
        kind=FlagKind.BOOL,
        available_for=_METADATA,
        description="Whether users with only writer permission can modify the file's permissions.",
    ),
    "starred": Flag(kind=FlagKind.BOOL, available_for=_METADATA, description="Whether the user has starred the file."),
    "modifiedTime": Flag(available_for=_METADATA, description="Last modification time (RFC 3339)."),
    "viewedByMeTime": Flag(available_for=_METADATA, description="Last time the file was viewed by the user (RFC 3339)."),
    "createdTime": Flag(available_for=["create"], description="Creation time (RFC 3339)."),
    "folderColorRgb": Flag(available_for=["create", "update"], description="Folder color as an RGB hex string."),
    "id": Flag(
        available_for=["copy", "create"],
        exclude_from_all=["copy", "create"],
        description="Pre-generated ID for the new file (see files generateids).",
    ),
    "originalFilename": Flag(available_for=["create", "update"], description="Original filename of uploaded content."),
    "targetId": Flag(available_for=["create"], description="ID of the file a shortcut points to."),
    "trashed": Flag(kind=FlagKind.BOOL, available_for=["update"], description="Whether the file is trashed."),
    "keepRevisionForever": Flag(
        kind=FlagKind.BOOL,
        available_for=_METADATA,
        description="Whether to set keepForever on the new head revision.",
    ),
    "ignoreDefaultVisibility": Flag(
        kind=FlagKind.BOOL,
        available_for=["copy", "create"],
        description="Ignore the domain's default visibility settings for the created file.",
    ),
    "ocrLanguage": Flag(available_for=_METADATA, description="Language hint for OCR (ISO 639-1)."),
    "useContentAsIndexableText": Flag(
        kind=FlagKind.BOOL,
        available_for=["create", "update"],
        description="Whether to use the uploaded content as indexable text.",
    ),
    "includePermissionsForView": Flag(
        available_for=["copy", "create", "get", "list", "update"],
        description="Additional view's permissions to include in the response. Only 'published' is supported.",
    ),
    "localFilePath": Flag(
        available_for=["create", "update", "download"],
        required=["download"],
        description="Path to a file on the local disk. For download, a directory or target file.",
    ),
    "acknowledgeAbuse": Flag(
        kind=FlagKind.BOOL,
        available_for=["download"],
        description="Acknowledge the risk of downloading known malware or other abusive files.",
    ),
    "folderId": Flag(available_for=["count"], required=["count"], description="ID of the folder."),
    "batchThreads": Flag(
        kind=FlagKind.INT64,
        available_for=["count"],
        description="Number of parallel listings (max 16).",
    ),
    "count": Flag(
        kind=FlagKind.INT64,
        available_for=["generateids"],
        defaults={"generateids": 10},
        description="The number of IDs to return (1 to 1000).",
    ),
    "space": Flag(
        available_for=["generateids"],
        description="Space in which the IDs can be used: 'drive' or 'appDataFolder'.",
    ),
    "type": Flag(available_for=["generateids"], description="Type of items the IDs can be used for: 'files' or 'shortcuts'."),
    "corpora": Flag(available_for=["list"], description="Groupings of files: user, drive, domain or allDrives."),
    "driveId": Flag(available_for=["list", "emptytrash"], description="ID of the shared drive."),
    "includeItemsFromAllDrives": Flag(
        kind=FlagKind.BOOL,
        available_for=["list"],
        description="Whether both My Drive and shared drive items should be included.",
    ),
    "orderBy": Flag(available_for=["list"], description="Comma-separated list of sort keys."),
    "q": Flag(available_for=["list"], description="A query for filtering the file results."),
    "spaces": Flag(available_for=["list"], description="Comma-separated list of spaces to query."),
    "addLabels": Flag(
        kind=FlagKind.STRING_SLICE,
        available_for=["modifylabels"],
        recursive=["modifylabels"],
        description="IDs of labels to apply to the file.",
    ),
    "removeLabels": Flag(
        kind=FlagKind.STRING_SLICE,
        available_for=["modifylabels"],
        recursive=["modifylabels"],
        description="IDs of labels to remove from the file.",
    ),
    "fields": Flag(
        available_for=["copy", "create", "get", "list", "move", "update", "listlabels", "modifylabels"],
        recursive=["copy", "list", "move", "listlabels", "modifylabels"],
        description="Fields to include in the response (partial response selector).",
    ),
}

FILE_BODY: FieldMap = (
    Field("appProperties", "appProperties", parse_mini_map),
    Field("properties", "properties", parse_mini_map),
    Field("thumbnailImage", "contentHints.thumbnail.image"),
    Field("thumbnailMimeType", "contentHints.thumbnail.mimeType"),
    Field("indexableText", "contentHints.indexableText"),
    Field("readOnly", "contentRestrictions[0].readOnly"),
    Field("readOnlyReason", "contentRestrictions[0].reason"),
    Field("copyRequiresWriterPermission", "copyRequiresWriterPermission"),
    Field("description", "description"),
    Field("mimeType", "mimeType"),
    Field("modifiedTime", "modifiedTime"),
    Field("name", "name"),
    Field("starred", "starred"),
    Field("viewedByMeTime", "viewedByMeTime"),
    Field("writersCanShare", "writersCanShare"),
    Field("createdTime", "createdTime"),
    Field("folderColorRgb", "folderColorRgb"),
    Field("id", "id"),
    Field("originalFilename", "originalFilename"),
    Field("targetId", "shortcutDetails.targetId"),
    Field("trashed", "trashed"),
    Field("parent", "parents", single_parent),
)

_WRITE_PARAMS = [
    "ignoreDefaultVisibility",
    "keepRevisionForever",
    "ocrLanguage",
    "useContentAsIndexableText",
    "includePermissionsForView",
    "fields",
]


def _read_upload(values: ValueMap) -> bytes | None:
    if not values.get_string("localFilePath"):
        return None
    path = Path(values.get_string("localFilePath")).expanduser()
    try:
        return path.read_bytes()
    except OSError as e:
        raise ArgumentError(f"--localFilePath: cannot read {path}: {e}") from e


async def get_file(apis: Apis, values: ValueMap) -> dict[str, Any]:
    params = compose_params(values, ["fields", "includePermissionsForView"])
    return await apis.drive.get_file(values.get_string("fileId"), params)


async def list_files(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    params = compose_params(
        values,
        ["corpora", "driveId", "includeItemsFromAllDrives", "orderBy", "q", "spaces", "includePermissionsForView"],
    )
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,files({values.get_string('fields')})"
    return apis.drive.list_files(params)


async def list_files_recursive(run: RecursiveRun) -> None:
    sink = run.runtime.make_sink()
    try:
        async for item in run.files(run.options.get_string("fields")):
            sink.write(item)
    finally:
        sink.close()


async def create_file(apis: Apis, values: ValueMap) -> dict[str, Any]:
    request = compose(values, FILE_BODY)
    params = compose_params(values, _WRITE_PARAMS)
    content = _read_upload(values)
    mime_type = request.body.get("mimeType") or "application/octet-stream"
    return await apis.drive.create_file(request.body, params, content, mime_type)


async def copy_file(apis: Apis, values: ValueMap) -> dict[str, Any]:
    request = compose(values, FILE_BODY)
    params = compose_params(values, _WRITE_PARAMS)
    return await apis.drive.copy_file(values.get_string("fileId"), request.body, params)


async def _move_params(apis: Apis, file_id: str, new_parent: str, params: dict[str, Any]) -> dict[str, Any]:
    """Add the query parameters moving ``file_id`` from its current parents to ``new_parent``."""
    current = await apis.drive.get_file(file_id, {"fields": "parents"})
    params = {**params, "addParents": new_parent}
    if current.get("parents"):
        params["removeParents"] = ",".join(current["parents"])
    return params


async def update_file(apis: Apis, values: ValueMap) -> dict[str, Any]:
    request = compose(values, FILE_BODY)
    body = dict(request.body)
    body.pop("parents", None)
    params = compose_params(values, _WRITE_PARAMS)
    file_id = values.get_string("fileId")
    content = _read_upload(values)
    if values.get_string("parent"):
        params = await _move_params(apis, file_id, values.get_string("parent"), params)
    return await apis.drive.update_file(
        file_id, body, params, content, body.get("mimeType") or "application/octet-stream"
    )


async def delete_file(apis: Apis, values: ValueMap) -> dict[str, Any]:
    await apis.drive.delete_file(values.get_string("fileId"))
    return {"fileId": values.get_string("fileId"), "result": True}


async def move_file(apis: Apis, values: ValueMap) -> dict[str, Any]:
    file_id = values.get_string("fileId")
    params = await _move_params(apis, file_id, values.get_string("parent"), compose_params(values, ["fields"]))
    return await apis.drive.update_file(file_id, {}, params)


async def _mirror(run: RecursiveRun, transfer) -> None:
    run.options.require(["parent"])
    created: list[dict[str, Any]] = []
    fields = run.options.get_string("fields") or "id,name,mimeType,parents"
    pairs = copy_folders_and_return_files_with_new_parents(
        run.apis.drive,
        run.options.get_string("folderId"),
        run.options.get_string("parent"),
        run.options.get_list("excludeFolders"),
        run.threads,
        created,
    )
    dispatcher = run.dispatcher()
    try:
        await dispatcher.run(
            pairs,
            lambda pair: transfer(run.apis, pair[0], pair[1], fields),
            key=lambda pair: pair[0]["id"],
        )
        for folder in created:
            dispatcher.sink.write(folder)
    finally:
        dispatcher.sink.close()


async def _copy_into(apis: Apis, file: dict[str, Any], parent: str, fields: str) -> dict[str, Any]:
    body = {"parents": [parent], "name": file.get("name")}
    return await apis.drive.copy_file(file["id"], body, {"fields": fields})


async def _move_into(apis: Apis, file: dict[str, Any], parent: str, fields: str) -> dict[str, Any]:
    params = {"fields": fields, "addParents": parent}
    if file.get("parents"):
        params["removeParents"] = file["parents"][0]
    return await apis.drive.update_file(file["id"], {}, params)


async def copy_recursive(run: RecursiveRun) -> None:
    """Copy the folder tree to ``--parent``: folders are recreated, files copied."""
    await _mirror(run, _copy_into)


async def move_recursive(run: RecursiveRun) -> None:
    """Move every file of the tree into a recreated folder tree below ``--parent``.

    The source folders stay where they are.
    """
    await _mirror(run, _move_into)


async def count_files(apis: Apis, values: ValueMap) -> dict[str, int]:
    threads = max_threads(values.get_int("batchThreads"), default=apis.default_threads)
    files = list_recursive(apis.drive, values.get_string("folderId"), "id,mimeType,parents,size", threads=threads)
    try:
        totals = await count_files_and_folders(files)
    finally:
        await files.aclose()
    return totals.to_dict()


async def download_file(apis: Apis, values: ValueMap) -> dict[str, Any]:
    file_id = values.get_string("fileId")
    metadata = await apis.drive.get_file(file_id, {"fields": "id,name,mimeType,size"})
    if is_folder(metadata):
        raise ArgumentError(f"{file_id} is a folder and cannot be downloaded")
    params = compose_params(values, ["acknowledgeAbuse"])
    content = await apis.drive.download_file(file_id, params)
    target = Path(values.get_string("localFilePath")).expanduser()
    if target.is_dir():
        target = target / metadata.get("name", file_id)
    target.write_bytes(content)
    return {"fileId": file_id, "name": metadata.get("name"), "path": str(target), "size": len(content)}


async def generate_ids(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.drive.generate_ids(compose_params(values, ["count", "space", "type"]))


async def empty_trash(apis: Apis, values: ValueMap) -> dict[str, Any]:
    await apis.drive.empty_trash(compose_params(values, ["driveId"]))
    return {"result": True}


async def list_labels(apis: Apis, values: ValueMap) -> dict[str, Any]:
    file_id = values.get_string("fileId")
    params = compose_params(values, ["fields"])
    labels = [label async for label in apis.drive.list_labels(file_id, params)]
    return {"fileId": file_id, "labels": labels}


async def modify_labels(apis: Apis, values: ValueMap) -> dict[str, Any]:
    file_id = values.get_string("fileId")
    modifications = [{"labelId": label} for label in values.get_list("addLabels") if label]
    modifications += [{"labelId": label, "removeLabel": True} for label in values.get_list("removeLabels") if label]
    if not modifications:
        raise ArgumentError("set at least one of --addLabels, --removeLabels")
    body = {"kind": "drive#modifyLabelsRequest", "labelModifications": modifications}
    result = await apis.drive.modify_labels(file_id, body, compose_params(values, ["fields"]))
    return {"fileId": file_id, "modifiedLabels": result.get("modifiedLabels", [])}


def register(main: click.Group) -> None:
    files = noun(main, "files", "Manage Drive files.")
    verb(files, "get", FILE_FLAGS, get_file, "Get a file's metadata.", batch=True)
    verb(files, "list", FILE_FLAGS, list_files, "List files.", recursive=list_files_recursive)
    verb(files, "create", FILE_FLAGS, create_file, "Create a file or folder, optionally uploading content.", batch=True)
    verb(
        files,
        "copy",
        FILE_FLAGS,
        copy_file,
        "Copy a file.",
        batch=True,
        recursive=copy_recursive,
    )
    verb(files, "update", FILE_FLAGS, update_file, "Update a file's metadata and/or content.", batch=True)
    verb(
        files,
        "delete",
        FILE_FLAGS,
        delete_file,
        "Permanently delete a file, skipping the trash.",
        batch=True,
        failure=deleted("fileId"),
    )
    verb(files, "move", FILE_FLAGS, move_file, "Move a file to a new parent.", batch=True, recursive=move_recursive)
    verb(files, "count", FILE_FLAGS, count_files, "Count files and folders below a folder and sum their size.")
    verb(files, "download", FILE_FLAGS, download_file, "Download a file's content.", batch=True)
    verb(files, "listlabels", FILE_FLAGS, list_labels, "List the labels on a file.", batch=True, recursive=True)
    verb(files, "modifylabels", FILE_FLAGS, modify_labels, "Apply or remove labels on a file.", batch=True, recursive=True)
    verb(files, "generateids", FILE_FLAGS, generate_ids, "Generate file IDs for create or copy requests.")
    verb(files, "emptytrash", FILE_FLAGS, empty_trash, "Permanently delete all trashed files of the user.")
