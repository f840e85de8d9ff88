"""Recursive listing, copying and counting of Drive folder trees.

``list_recursive`` is an async generator backed by a pool of expander tasks.
Each expander takes a folder ID from an unbounded work queue, lists its
children page by page and puts them on a bounded output queue. A subfolder is
put on the output queue before it is queued for expansion, so every folder is
emitted before its descendants. A pending counter (folders queued but not yet
fully listed) decides when the stream ends.

Drive allows multiple parents; the tree is expanded through the first parent
only, so a child whose ``parents[0]`` is not the folder being listed is
skipped.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from dataclasses import asdict, dataclass
from typing import Any

from gworkspace_admin.api.drive import FOLDER_MIME_TYPE, DriveApi, is_folder
from gworkspace_admin.errors import AdminError, ArgumentError

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("id", "mimeType", "parents")
_DEFAULT_FIELDS = "id,name,mimeType,parents"

_DONE = object()


class _Failure:
    def __init__(self, error: BaseException) -> None:
        self.error = error


@dataclass
class FolderSize:
    """Totals of a folder tree."""

    files: int = 0
    folders: int = 0
    size: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def item_fields(fields: str = "") -> str:
    """Per-file field selector that always includes id, mimeType and parents."""
    if not fields:
        return _DEFAULT_FIELDS
    parts = [f.strip() for f in fields.split(",") if f.strip()]
    for required in _REQUIRED_FIELDS:
        if required not in parts:
            parts.append(required)
    return ",".join(parts)


def children_query(folder_id: str) -> str:
    return f"'{folder_id}' in parents and trashed = false"


async def get_folder(drive: DriveApi, folder_id: str, fields: str = _DEFAULT_FIELDS) -> dict[str, Any]:
    """Fetch a file and make sure it is a folder.

    Raises:
        ArgumentError: If the file is not a folder.
    """
    folder = await drive.get_file(folder_id, {"fields": item_fields(fields)})
    if not is_folder(folder):
        raise ArgumentError(f"{folder_id} is not a folder")
    return folder


async def list_recursive(
    drive: DriveApi,
    root_id: str,
    fields: str = "",
    exclude: Iterable[str] = (),
    include_root: bool = False,
    threads: int = 4,
) -> AsyncIterator[dict[str, Any]]:
    """Yield every file and folder below ``root_id``.

    Args:
        drive: Drive adapter.
        root_id: Folder to start from.
        fields: Comma separated file fields to request for every item.
        exclude: Folder IDs that are neither emitted nor descended into.
        include_root: Emit the root folder itself first.
        threads: Number of expander tasks.

    Yields:
        File resources.

    Raises:
        ArgumentError: If the root is not a folder.
    """
    excluded = set(exclude)
    if root_id in excluded:
        logger.info(f"{root_id} is excluded, nothing to do")
        return
    per_item = item_fields(fields)
    root = await get_folder(drive, root_id, per_item)
    if include_root:
        yield root

    list_fields = f"nextPageToken,files({per_item})"
    folders: asyncio.Queue[str] = asyncio.Queue()
    out: asyncio.Queue[Any] = asyncio.Queue(maxsize=max(threads, 1))
    pending = 1
    folders.put_nowait(root_id)

    async def expand_folder(folder_id: str) -> None:
        nonlocal pending
        params = {
            "q": children_query(folder_id),
            "fields": list_fields,
            "corpora": "allDrives",
            "includeItemsFromAllDrives": "true",
        }
        async for child in drive.list_files(params):
            parents = child.get("parents") or []
            if parents and parents[0] != folder_id:
                logger.debug(f"{child.get('id')}: first parent is {parents[0]}, skipping under {folder_id}")
                continue
            if is_folder(child):
                if child["id"] in excluded:
                    logger.debug(f"{child['id']}: excluded")
                    continue
                await out.put(child)
                pending += 1
                folders.put_nowait(child["id"])
            else:
                await out.put(child)

    async def expander() -> None:
        nonlocal pending
        try:
            while True:
                folder_id = await folders.get()
                try:
                    await expand_folder(folder_id)
                except AdminError as e:
                    logger.error(f"{folder_id}: cannot list folder, skipping its contents: {e}")
                pending -= 1
                if pending == 0:
                    await out.put(_DONE)
        except Exception as e:
            await out.put(_Failure(e))

    tasks = [asyncio.create_task(expander()) for _ in range(max(threads, 1))]
    try:
        while True:
            item = await out.get()
            if item is _DONE:
                return
            if isinstance(item, _Failure):
                raise item.error
            yield item
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


async def create_folder(drive: DriveApi, parent_id: str, name: str) -> dict[str, Any]:
    return await drive.create_file(
        {"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
        {"fields": "id,name,mimeType,parents"},
    )


async def copy_folders_and_return_files_with_new_parents(
    drive: DriveApi,
    root_id: str,
    destination: str,
    exclude: Iterable[str] = (),
    threads: int = 4,
    created: list[dict[str, Any]] | None = None,
) -> AsyncIterator[tuple[dict[str, Any], str]]:
    """Mirror the folder skeleton of ``root_id`` below ``destination``.

    A new root with the same name is created in ``destination``; every folder
    below the source root gets a copy under the copy of its parent. Files are
    not copied here: each one is yielded with the ID of the folder it should be
    copied into.

    Args:
        drive: Drive adapter.
        root_id: Source folder.
        destination: Folder that receives the copy of the root.
        exclude: Folder IDs to leave out.
        threads: Number of expander tasks.
        created: If given, every created folder resource is appended to it.

    Yields:
        ``(file, new_parent_id)`` pairs.
    """
    root = await get_folder(drive, root_id)
    new_root = await create_folder(drive, destination, root.get("name", root_id))
    if created is not None:
        created.append(new_root)
    mapping = {root_id: new_root["id"]}

    items = list_recursive(drive, root_id, "id,name,mimeType,parents", exclude, False, threads)
    try:
        async for item in items:
            parent = (item.get("parents") or [root_id])[0]
            new_parent = mapping.get(parent)
            if new_parent is None:
                logger.error(f"{item['id']}: parent folder {parent} was not copied, skipping")
                continue
            if not is_folder(item):
                yield item, new_parent
                continue
            try:
                new_folder = await create_folder(drive, new_parent, item.get("name", item["id"]))
            except AdminError as e:
                logger.error(f"{item['id']}: cannot create folder copy: {e}")
                continue
            mapping[item["id"]] = new_folder["id"]
            if created is not None:
                created.append(new_folder)
    finally:
        await items.aclose()


async def count_files_and_folders(files: AsyncIterator[dict[str, Any]]) -> FolderSize:
    """Count files and folders and sum the size of the files."""
    totals = FolderSize()
    async for file in files:
        if is_folder(file):
            totals.folders += 1
        else:
            totals.files += 1
            totals.size += int(file.get("size") or 0)
    return totals
