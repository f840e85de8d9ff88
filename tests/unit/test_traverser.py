"""Unit tests for recursive Drive traversal against the in-memory Drive."""

import pytest

from gworkspace_admin.api import DriveApi
from gworkspace_admin.errors import ArgumentError, RemoteError
from gworkspace_admin.traverser import (
    children_query,
    copy_folders_and_return_files_with_new_parents,
    count_files_and_folders,
    item_fields,
    list_recursive,
)

from conftest import FakeDrive


def build_tree(drive: FakeDrive) -> None:
    """root -> f1, A; A -> f2, B; B -> f3."""
    drive.add("root", folder=True, name="Root")
    drive.add("f1", ["root"], size=10)
    drive.add("A", ["root"], folder=True)
    drive.add("f2", ["A"], size=20)
    drive.add("B", ["A"], folder=True)
    drive.add("f3", ["B"], size=30)


async def collect(files) -> list[dict]:
    return [f async for f in files]


@pytest.mark.unit
class TestHelpers:
    """Tests for field selection and queries."""

    def test_should_add_required_fields(self) -> None:
        """Verify id, mimeType and parents are always requested."""
        assert item_fields("") == "id,name,mimeType,parents"
        assert item_fields("name, size") == "name,size,id,mimeType,parents"
        assert item_fields("id,parents,mimeType") == "id,parents,mimeType"

    def test_should_query_untrashed_children(self) -> None:
        """Verify the children query excludes trashed files."""
        assert children_query("abc") == "'abc' in parents and trashed = false"


@pytest.mark.unit
class TestListRecursive:
    """Tests for list_recursive()."""

    @pytest.mark.asyncio
    async def test_should_emit_every_descendant_once(self, fake_drive: FakeDrive, drive_api: DriveApi) -> None:
        """Verify all files and folders below the root are emitted exactly once."""
        build_tree(fake_drive)

        items = await collect(list_recursive(drive_api, "root", threads=3))

        assert sorted(i["id"] for i in items) == ["A", "B", "f1", "f2", "f3"]

    @pytest.mark.asyncio
    async def test_should_emit_folders_before_descendants(
        self, fake_drive: FakeDrive, drive_api: DriveApi
    ) -> None:
        """Verify a folder always precedes its contents."""
        build_tree(fake_drive)

        items = await collect(list_recursive(drive_api, "root", threads=2))

        order = [i["id"] for i in items]
        assert order.index("A") < order.index("f2")
        assert order.index("A") < order.index("B") < order.index("f3")

    @pytest.mark.asyncio
    async def test_should_include_root_first(self, fake_drive: FakeDrive, drive_api: DriveApi) -> None:
        """Verify includeRoot adds the root as the first item."""
        build_tree(fake_drive)

        without = await collect(list_recursive(drive_api, "root"))
        with_root = await collect(list_recursive(drive_api, "root", include_root=True))

        assert len(with_root) == len(without) + 1
        assert with_root[0]["id"] == "root"

    @pytest.mark.asyncio
    async def test_should_return_nothing_for_excluded_root(
        self, fake_drive: FakeDrive, drive_api: DriveApi
    ) -> None:
        """Verify an excluded root issues no request."""
        build_tree(fake_drive)

        items = await collect(list_recursive(drive_api, "root", exclude=["root"], include_root=True))

        assert items == []
        assert fake_drive.requests == []

    @pytest.mark.asyncio
    async def test_should_prune_excluded_folders(self, fake_drive: FakeDrive, drive_api: DriveApi) -> None:
        """Verify an excluded folder and its subtree are skipped."""
        build_tree(fake_drive)

        items = await collect(list_recursive(drive_api, "root", exclude=["A"]))

        assert [i["id"] for i in items] == ["f1"]

    @pytest.mark.asyncio
    async def test_should_follow_first_parent_only(self, fake_drive: FakeDrive, drive_api: DriveApi) -> None:
        """Verify a multi-parent file is only emitted below its first parent."""
        build_tree(fake_drive)
        fake_drive.add("shared", ["B", "A"], size=1)

        items = await collect(list_recursive(drive_api, "root"))

        assert [i["id"] for i in items].count("shared") == 1

    @pytest.mark.asyncio
    async def test_should_follow_pages(self, drive_api: DriveApi, fake_drive: FakeDrive) -> None:
        """Verify every page of a large folder is listed."""
        fake_drive.page_size = 2
        fake_drive.add("root", folder=True)
        for i in range(7):
            fake_drive.add(f"f{i}", ["root"])

        items = await collect(list_recursive(drive_api, "root"))

        assert len(items) == 7
        assert len(fake_drive.calls("GET", "/drive/v3/files")) >= 5

    @pytest.mark.asyncio
    async def test_should_reject_non_folder_root(self, fake_drive: FakeDrive, drive_api: DriveApi) -> None:
        """Verify the root must be a folder."""
        fake_drive.add("plain", [])

        with pytest.raises(ArgumentError, match="not a folder"):
            await collect(list_recursive(drive_api, "plain"))

    @pytest.mark.asyncio
    async def test_should_raise_for_missing_root(self, drive_api: DriveApi) -> None:
        """Verify a missing root surfaces the 404."""
        with pytest.raises(RemoteError) as excinfo:
            await collect(list_recursive(drive_api, "nope"))
        assert excinfo.value.status == 404

    @pytest.mark.asyncio
    async def test_should_skip_folder_that_cannot_be_listed(
        self, fake_drive: FakeDrive, drive_api: DriveApi, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Verify a listing failure is logged and ends that branch only."""
        build_tree(fake_drive)
        fake_drive.failures[("GET", "")] = [404]

        items = await collect(list_recursive(drive_api, "root"))

        assert items == []
        assert "cannot list folder" in caplog.text


@pytest.mark.unit
class TestCountFilesAndFolders:
    """Tests for count_files_and_folders()."""

    @pytest.mark.asyncio
    async def test_should_count_three_level_tree(self, fake_drive: FakeDrive, drive_api: DriveApi) -> None:
        """Verify 3 files, 2 folders and the summed size."""
        build_tree(fake_drive)

        totals = await count_files_and_folders(list_recursive(drive_api, "root", "id,mimeType,parents,size"))

        assert totals.to_dict() == {"files": 3, "folders": 2, "size": 60}

    @pytest.mark.asyncio
    async def test_should_count_empty_folder(self, fake_drive: FakeDrive, drive_api: DriveApi) -> None:
        """Verify an empty folder counts as zero."""
        fake_drive.add("empty", folder=True)

        totals = await count_files_and_folders(list_recursive(drive_api, "empty"))

        assert totals.to_dict() == {"files": 0, "folders": 0, "size": 0}


@pytest.mark.unit
class TestCopyFolders:
    """Tests for copy_folders_and_return_files_with_new_parents()."""

    @pytest.mark.asyncio
    async def test_should_mirror_folders_and_pair_files(
        self, fake_drive: FakeDrive, drive_api: DriveApi
    ) -> None:
        """Verify folders are recreated and each file is paired with its new parent."""
        build_tree(fake_drive)
        fake_drive.add("dest", folder=True)
        created: list[dict] = []

        pairs = [
            (file["id"], parent)
            async for file, parent in copy_folders_and_return_files_with_new_parents(
                drive_api, "root", "dest", created=created
            )
        ]

        by_name = {folder["name"]: folder for folder in created}
        assert set(by_name) == {"Root", "A", "B"}
        assert by_name["Root"]["parents"] == ["dest"]
        assert by_name["A"]["parents"] == [by_name["Root"]["id"]]
        assert by_name["B"]["parents"] == [by_name["A"]["id"]]
        assert sorted(pairs) == sorted(
            [("f1", by_name["Root"]["id"]), ("f2", by_name["A"]["id"]), ("f3", by_name["B"]["id"])]
        )

    @pytest.mark.asyncio
    async def test_should_leave_out_excluded_subtree(self, fake_drive: FakeDrive, drive_api: DriveApi) -> None:
        """Verify excluded folders are neither created nor their files paired."""
        build_tree(fake_drive)
        created: list[dict] = []

        pairs = [
            file["id"]
            async for file, _ in copy_folders_and_return_files_with_new_parents(
                drive_api, "root", "dest", exclude=["B"], created=created
            )
        ]

        assert sorted(pairs) == ["f1", "f2"]
        assert {folder["name"] for folder in created} == {"Root", "A"}
