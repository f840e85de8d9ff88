"""Unit tests for the flag registry.

Tests cover value kinds, the ValueMap accessors, click option generation for
single, batch and recursive commands, and CSV row binding.
"""

import click
import pytest
from click.testing import CliRunner

from gworkspace_admin.errors import ArgumentError
from gworkspace_admin.flags import (
    BATCH_FLAGS,
    RECURSIVE_FILE_FLAGS,
    Flag,
    FlagCommand,
    FlagGroup,
    FlagKind,
    FlagOption,
    Value,
    ValueMap,
    batch_flags_to_map,
    check_batch_columns,
    flags_to_map,
    get_all_flags,
    init_batch_command,
    init_command,
    init_recursive_command,
)

FLAGS = {
    "fileId": Flag(
        available_for=["update", "delete"],
        required=["update", "delete"],
        exclude_from_all=["update", "delete"],
        description="The ID of the file.",
    ),
    "name": Flag(available_for=["update"], description="The name of the file."),
    "starred": Flag(kind=FlagKind.BOOL, available_for=["update"], description="Starred."),
    "count": Flag(kind=FlagKind.INT64, available_for=["update"], defaults={"update": 10}),
    "labels": Flag(
        kind=FlagKind.STRING_SLICE,
        available_for=["update"],
        recursive=["update"],
        description="Labels.",
    ),
}


def parse(command: click.Command, args: list[str]) -> ValueMap:
    """Run a command through click and return the ValueMap it saw."""
    seen: list[ValueMap] = []

    @click.pass_context
    def callback(ctx: click.Context, **_: object) -> None:
        seen.append(flags_to_map(ctx))

    command.callback = callback
    result = CliRunner().invoke(command, args)
    assert result.exit_code == 0, result.output
    return seen[0]


@pytest.mark.unit
class TestFlagKind:
    """Tests for FlagKind parsing and zero values."""

    @pytest.mark.parametrize(
        ("kind", "text", "expected"),
        [
            (FlagKind.STRING, "abc", "abc"),
            (FlagKind.BOOL, "TRUE", True),
            (FlagKind.BOOL, "no", False),
            (FlagKind.INT64, " -5 ", -5),
            (FlagKind.UINT64, "7", 7),
            (FlagKind.STRING_SLICE, "a,b", ["a", "b"]),
            (FlagKind.STRING_SLICE, "", []),
            (FlagKind.STRING_ARRAY, "a,b", ["a,b"]),
        ],
    )
    def test_should_parse_text(self, kind: FlagKind, text: str, expected: object) -> None:
        """Verify textual values are parsed per kind."""
        assert kind.parse(text) == expected

    @pytest.mark.parametrize(
        ("kind", "text"),
        [(FlagKind.BOOL, "maybe"), (FlagKind.INT64, "x"), (FlagKind.UINT64, "-1")],
    )
    def test_should_reject_invalid_text(self, kind: FlagKind, text: str) -> None:
        """Verify invalid values raise ValueError."""
        with pytest.raises(ValueError):
            kind.parse(text)

    def test_should_recognize_zero_values(self) -> None:
        """Verify every kind knows its zero value."""
        assert FlagKind.STRING.is_zero("")
        assert FlagKind.BOOL.is_zero(False)
        assert not FlagKind.BOOL.is_zero(True)
        assert FlagKind.INT64.is_zero(0)
        assert FlagKind.STRING_SLICE.is_zero([])
        assert FlagKind.STRING.is_zero(None)

    def test_should_format_like_command_line(self) -> None:
        """Verify format renders lists comma separated and bools lowercase."""
        assert FlagKind.STRING_SLICE.format(["a", "b"]) == "a,b"
        assert FlagKind.BOOL.format(True) == "true"
        assert FlagKind.INT64.format(3) == "3"


@pytest.mark.unit
class TestFlagModel:
    """Tests for Flag validation."""

    def test_should_reject_required_verb_not_available(self) -> None:
        """Verify required verbs must be a subset of available_for."""
        with pytest.raises(ValueError, match="not in available_for"):
            Flag(available_for=["get"], required=["delete"])

    def test_should_be_immutable(self) -> None:
        """Verify flags are frozen."""
        flag = Flag(available_for=["get"])
        with pytest.raises(ValueError):
            flag.description = "changed"  # type: ignore[misc]


@pytest.mark.unit
class TestValueMap:
    """Tests for ValueMap accessors."""

    def test_should_return_zero_values_for_unknown_flags(self) -> None:
        """Verify accessors on missing flags return zero values."""
        values = ValueMap()
        assert values.get_string("x") == ""
        assert values.get_int("x") == 0
        assert values.get_bool("x") is False
        assert values.get_list("x") == []
        assert values.is_set("x") is False

    def test_should_require_set_values(self) -> None:
        """Verify require names every missing flag."""
        values = ValueMap(
            a=Value(FlagKind.STRING, "x", True),
            b=Value(FlagKind.STRING, "", True),
            c=Value(FlagKind.STRING, "default", False),
        )
        with pytest.raises(ArgumentError, match="--b, --c"):
            values.require(["a", "b", "c"])
        values.require(["a"])

    def test_should_accept_explicit_false_as_set(self) -> None:
        """Verify a required bool given as false satisfies require."""
        values = ValueMap(flag=Value(FlagKind.BOOL, False, True))
        values.require(["flag"])

    def test_should_bind_without_mutating(self) -> None:
        """Verify bind returns a copy with the flag set."""
        values = ValueMap(fields=Value(FlagKind.STRING, "id", True))
        bound = values.bind("fileId", "abc")

        assert bound.get_string("fileId") == "abc"
        assert bound.is_set("fileId")
        assert "fileId" not in values
        assert bound.get_string("fields") == "id"


@pytest.mark.unit
class TestSingleCommand:
    """Tests for init_command and flags_to_map."""

    def make(self) -> click.Command:
        group = click.Group("files")
        command = FlagCommand("update")
        init_command(group, command, FLAGS)
        return command

    def test_should_add_options_for_available_flags(self) -> None:
        """Verify only flags available for the verb become options."""
        group = click.Group("files")
        command = FlagCommand("delete")
        init_command(group, command, FLAGS)

        assert {p.name for p in command.params} == {"fileId"}
        assert command.required_flags == ["fileId"]
        assert group.commands["delete"] is command

    def test_should_mark_given_flags_as_set(self) -> None:
        """Verify is_set follows the command line, not the value."""
        values = parse(self.make(), ["--fileId", "abc", "--name", ""])

        assert values.is_set("fileId")
        assert values.is_set("name")
        assert values.get_string("name") == ""
        assert not values.is_set("starred")

    def test_should_not_mark_defaults_as_set(self) -> None:
        """Verify a default value is visible but not set."""
        values = parse(self.make(), [])

        assert values.get_int("count") == 10
        assert not values.is_set("count")

    def test_should_parse_bool_forms(self) -> None:
        """Verify --flag alone is true and --flag=false is an explicit false."""
        assert parse(self.make(), ["--starred"]).get_bool("starred") is True
        values = parse(self.make(), ["--starred=false"])
        assert values.get_bool("starred") is False
        assert values.is_set("starred")

    def test_should_split_and_repeat_slices(self) -> None:
        """Verify slice flags accept repetition and commas."""
        values = parse(self.make(), ["--labels", "a,b", "--labels", "c"])
        assert values.get_list("labels") == ["a", "b", "c"]


@pytest.mark.unit
class TestBatchCommand:
    """Tests for batch option generation and row binding."""

    def test_should_derive_all_flags(self) -> None:
        """Verify _ALL options skip per-row identifiers."""
        all_flags = get_all_flags(FLAGS)

        assert "fileId_ALL" not in all_flags
        assert all_flags["name_ALL"].available_for == ["update"]
        assert all_flags["starred_ALL"].kind is FlagKind.BOOL

    def test_should_create_column_and_all_options(self) -> None:
        """Verify a batch child gets int column options plus _ALL and batch flags."""
        parent = FlagGroup("update")
        init_command(click.Group("files"), parent, FLAGS)
        batch = FlagCommand("batch")
        init_batch_command(parent, batch, FLAGS, get_all_flags(FLAGS), BATCH_FLAGS)

        options = {p.name: p for p in batch.params}
        assert isinstance(options["fileId"], FlagOption)
        assert options["fileId"].kind is FlagKind.INT64
        assert options["name_ALL"].kind is FlagKind.STRING
        assert {"path", "delimiter", "skipHeader", "batchThreads"} <= set(options)
        assert batch.required_flags == ["path"]
        assert parent.commands["batch"] is batch

    def test_should_refuse_plain_command_parent(self) -> None:
        """Verify a batch child needs a group parent."""
        parent = FlagCommand("update")
        with pytest.raises(TypeError):
            init_batch_command(parent, FlagCommand("batch"), FLAGS, {}, BATCH_FLAGS)

    def test_should_create_recursive_options(self) -> None:
        """Verify recursive children get traversal flags and recursive-enabled verb flags."""
        parent = FlagGroup("update")
        init_command(click.Group("files"), parent, FLAGS)
        recursive = FlagCommand("recursive")
        init_recursive_command(parent, recursive, FLAGS, RECURSIVE_FILE_FLAGS)

        names = {p.name for p in recursive.params}
        assert {"folderId", "excludeFolders", "includeRoot", "batchThreads", "labels"} <= names
        assert "fileId" not in names
        assert recursive.required_flags == ["folderId"]

    def test_should_bind_row_columns(self) -> None:
        """Verify columns, _ALL values and defaults are merged per row."""
        options = ValueMap(
            fileId=Value(FlagKind.INT64, 1, True),
            starred=Value(FlagKind.INT64, 2, True),
            name_ALL=Value(FlagKind.STRING, "renamed", True),
        )

        values = batch_flags_to_map(options, FLAGS, ["abc", "yes"], "update")

        assert values.get_string("fileId") == "abc"
        assert values.get_bool("starred") is True
        assert values.get_string("name") == "renamed"
        assert values.is_set("name")
        assert values.get_int("count") == 10
        assert not values.is_set("count")

    def test_should_prefer_column_over_all(self) -> None:
        """Verify a bound column wins over the _ALL value."""
        options = ValueMap(
            fileId=Value(FlagKind.INT64, 1, True),
            name=Value(FlagKind.INT64, 2, True),
            name_ALL=Value(FlagKind.STRING, "everyone", True),
        )

        values = batch_flags_to_map(options, FLAGS, ["abc", "mine"], "update")

        assert values.get_string("name") == "mine"

    def test_should_keep_empty_string_cell_as_clear(self) -> None:
        """Verify an empty cell bound to a string flag is an explicit empty string."""
        options = ValueMap(fileId=Value(FlagKind.INT64, 1, True), name=Value(FlagKind.INT64, 2, True))

        values = batch_flags_to_map(options, FLAGS, ["abc", ""], "update")

        assert values.is_set("name")
        assert values.get_string("name") == ""

    def test_should_leave_empty_non_string_cell_unset(self) -> None:
        """Verify an empty cell bound to a bool flag leaves it unset."""
        options = ValueMap(fileId=Value(FlagKind.INT64, 1, True), starred=Value(FlagKind.INT64, 2, True))

        values = batch_flags_to_map(options, FLAGS, ["abc", ""], "update")

        assert not values.is_set("starred")

    def test_should_reject_out_of_range_column(self) -> None:
        """Verify a column beyond the row is an ArgumentError."""
        options = ValueMap(fileId=Value(FlagKind.INT64, 3, True))

        with pytest.raises(ArgumentError, match="column 3 does not exist"):
            batch_flags_to_map(options, FLAGS, ["abc"], "update")

    def test_should_reject_unparsable_cell(self) -> None:
        """Verify a bad cell names the flag and column."""
        options = ValueMap(fileId=Value(FlagKind.INT64, 1, True), count=Value(FlagKind.INT64, 2, True))

        with pytest.raises(ArgumentError, match="--count: invalid int64 value 'many' in column 2"):
            batch_flags_to_map(options, FLAGS, ["abc", "many"], "update")

    def test_should_check_columns_before_rows(self) -> None:
        """Verify zero-based columns and unbound required flags are rejected upfront."""
        with pytest.raises(ArgumentError, match="1-indexed"):
            check_batch_columns(ValueMap(fileId=Value(FlagKind.INT64, 0, True)), FLAGS, "update")
        with pytest.raises(ArgumentError, match="--fileId must reference a column"):
            check_batch_columns(ValueMap(), FLAGS, "update")
        check_batch_columns(ValueMap(fileId=Value(FlagKind.INT64, 1, True)), FLAGS, "update")
