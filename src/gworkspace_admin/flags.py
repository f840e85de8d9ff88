"""Declarative flag registry shared by single, batch and recursive commands.

Every noun module declares one ``dict[str, Flag]`` describing all options of
all its verbs. The ``init_*`` functions turn that metadata into click options
for the three invocation shapes, and ``flags_to_map`` / ``batch_flags_to_map``
turn a parse (or a CSV row) into the same ``ValueMap`` shape, so the verb body
never needs to know how it was invoked.

Example:
    ```python
    FLAGS = {
        "fileId": Flag(
            available_for=["delete"],
            required=["delete"],
            exclude_from_all=["delete"],
            description="The ID of the file",
        ),
    }
    init_command(files_group, delete_command, FLAGS)
    init_batch_command(delete_command, batch_command, FLAGS, get_all_flags(FLAGS), BATCH_FLAGS)
    ```
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

import click
from click.core import ParameterSource
from pydantic import BaseModel, Field, model_validator

from gworkspace_admin.errors import ArgumentError

logger = logging.getLogger(__name__)

_TRUE = {"1", "t", "true", "y", "yes", "on"}
_FALSE = {"0", "f", "false", "n", "no", "off"}


class FlagKind(str, Enum):
    """Closed set of value kinds a flag can carry."""

    STRING = "string"
    INT64 = "int64"
    UINT64 = "uint64"
    BOOL = "bool"
    STRING_SLICE = "stringSlice"
    STRING_ARRAY = "stringArray"

    @property
    def is_list(self) -> bool:
        return self in (FlagKind.STRING_SLICE, FlagKind.STRING_ARRAY)

    def zero(self) -> Any:
        """Return the zero value of this kind."""
        if self.is_list:
            return []
        if self is FlagKind.BOOL:
            return False
        if self in (FlagKind.INT64, FlagKind.UINT64):
            return 0
        return ""

    def is_zero(self, value: Any) -> bool:
        """Check whether value is the zero value of this kind."""
        if value is None:
            return True
        if self.is_list:
            return len(value) == 0
        if self is FlagKind.BOOL:
            return value is False
        return value == self.zero()

    def parse(self, text: str) -> Any:
        """Parse a textual value (CSV cell, ``_ALL`` value) into this kind.

        Raises:
            ValueError: If the text is not a valid value of this kind.
        """
        if self is FlagKind.STRING:
            return text
        if self is FlagKind.BOOL:
            lowered = text.strip().lower()
            if lowered in _TRUE:
                return True
            if lowered in _FALSE:
                return False
            raise ValueError(f"{text!r} is not a valid boolean")
        if self in (FlagKind.INT64, FlagKind.UINT64):
            number = int(text.strip())
            if self is FlagKind.UINT64 and number < 0:
                raise ValueError(f"{text!r} must not be negative")
            return number
        if self is FlagKind.STRING_SLICE:
            return text.split(",") if text else []
        return [text]

    def format(self, value: Any) -> str:
        """Render a value the way it would be typed on the command line."""
        if value is None:
            return ""
        if self.is_list:
            return ",".join(value)
        if self is FlagKind.BOOL:
            return "true" if value else "false"
        return str(value)

    def normalize(self, raw: Any) -> Any:
        """Bring a click-parsed or default value into canonical form."""
        if raw is None:
            return [] if self.is_list else None
        if self is FlagKind.STRING_SLICE:
            items: list[str] = []
            for entry in raw if isinstance(raw, (list, tuple)) else [raw]:
                items.extend(str(entry).split(","))
            return items
        if self is FlagKind.STRING_ARRAY:
            return list(raw) if isinstance(raw, (list, tuple)) else [raw]
        return raw


class Flag(BaseModel):
    """Metadata for one option.

    Attributes:
        kind: Value kind.
        description: Help text.
        available_for: Verbs that accept the flag.
        required: Verbs for which the flag must be set.
        defaults: Per-verb default values.
        recursive: Verbs whose recursive mode also accepts the flag.
        exclude_from_all: Verbs for which no ``--<flag>_ALL`` batch option is created.
    """

    kind: FlagKind = FlagKind.STRING
    description: str = ""
    available_for: list[str] = Field(default_factory=list)
    required: list[str] = Field(default_factory=list)
    defaults: dict[str, Any] = Field(default_factory=dict)
    recursive: list[str] = Field(default_factory=list)
    exclude_from_all: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_verbs(self) -> "Flag":
        available = set(self.available_for)
        for attribute in ("required", "defaults", "recursive", "exclude_from_all"):
            unknown = set(getattr(self, attribute)) - available
            if unknown:
                raise ValueError(
                    f"{attribute} names {sorted(unknown)} which are not in available_for"
                )
        return self


FlagSet = Mapping[str, Flag]


@dataclass(frozen=True)
class Value:
    """A resolved flag value with its is-set bit."""

    kind: FlagKind
    value: Any = None
    is_set: bool = False

    def is_zero(self) -> bool:
        return self.kind.is_zero(self.value)


_UNSET = Value(FlagKind.STRING)


class ValueMap(dict[str, Value]):
    """Per-invocation mapping of flag name to Value."""

    def value(self, name: str) -> Value:
        return self.get(name, _UNSET)

    def is_set(self, name: str) -> bool:
        return self.value(name).is_set

    def get_string(self, name: str) -> str:
        v = self.value(name).value
        return "" if v is None else str(v)

    def get_int(self, name: str) -> int:
        v = self.value(name).value
        return 0 if v is None else int(v)

    def get_bool(self, name: str) -> bool:
        return bool(self.value(name).value)

    def get_list(self, name: str) -> list[str]:
        v = self.value(name).value
        return list(v) if v else []

    def require(self, names: Iterable[str]) -> None:
        """Raise ArgumentError unless every named flag was given a non-empty value."""
        missing = []
        for name in names:
            v = self.value(name)
            if not v.is_set or (v.kind is FlagKind.STRING and v.value in (None, "")):
                missing.append(name)
        if missing:
            flags = ", ".join(f"--{n}" for n in missing)
            raise ArgumentError(f"required flag(s) not set: {flags}")

    def bind(self, name: str, value: Any, kind: FlagKind = FlagKind.STRING) -> "ValueMap":
        """Return a copy with ``name`` explicitly set to ``value``."""
        copy = ValueMap(self)
        existing = self.get(name)
        copy[name] = Value(existing.kind if existing else kind, value, True)
        return copy


class FlagOption(click.Option):
    """A click option that remembers the FlagKind it was built from."""

    def __init__(self, name: str, kind: FlagKind, default: Any = None, help: str = "") -> None:
        attrs: dict[str, Any] = {"help": help, "show_default": default not in (None, "", False)}
        if kind is FlagKind.BOOL:
            # --flag alone means true, --flag=false is an explicit false
            attrs.update(
                type=click.BOOL, is_flag=False, flag_value=True, default=bool(default)
            )
        elif kind is FlagKind.INT64:
            attrs.update(type=int, default=default)
        elif kind is FlagKind.UINT64:
            attrs.update(type=click.IntRange(min=0), default=default)
        elif kind.is_list:
            attrs.update(type=str, multiple=True, default=tuple(default or ()))
        else:
            attrs.update(type=str, default=default)
        super().__init__([f"--{name}", name], **attrs)
        self.kind = kind


class _RequiredFlags:
    required_flags: list[str] = []


class FlagCommand(_RequiredFlags, click.Command):
    """Command built from a flag registry."""


class FlagGroup(_RequiredFlags, click.Group):
    """Verb that runs itself when no ``batch``/``recursive`` child is named."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("invoke_without_command", True)
        super().__init__(*args, **kwargs)


def _param_names(command: click.Command) -> set[str]:
    return {p.name for p in command.params if p.name}


def _add_option(command: click.Command, name: str, kind: FlagKind, default: Any, help: str) -> None:
    if name in _param_names(command):
        return
    command.params.append(FlagOption(name, kind, default, help))


def init_command(parent: click.Group, command: click.Command, flags: FlagSet) -> None:
    """Register ``command`` under ``parent`` with every flag available for it."""
    verb = command.name or ""
    for name, flag in sorted(flags.items()):
        if verb in flag.available_for:
            _add_option(command, name, flag.kind, flag.defaults.get(verb), flag.description)
    command.required_flags = sorted(n for n, f in flags.items() if verb in f.required)  # type: ignore[attr-defined]
    parent.add_command(command)


def get_all_flags(flags: FlagSet) -> dict[str, Flag]:
    """Derive the ``--<flag>_ALL`` batch options from a registry.

    An ``_ALL`` option applies one value to every row. Verbs listed in
    ``exclude_from_all`` (usually per-row identifiers) do not get one.
    """
    all_flags: dict[str, Flag] = {}
    for name, flag in flags.items():
        verbs = [v for v in flag.available_for if v not in flag.exclude_from_all]
        if not verbs:
            continue
        all_flags[f"{name}_ALL"] = Flag(
            kind=flag.kind,
            description=f"Same as --{name} but sets the value for all lines.",
            available_for=verbs,
        )
    return all_flags


def init_batch_command(
    parent: click.Command,
    command: click.Command,
    flags: FlagSet,
    all_flags: FlagSet,
    batch_flags: FlagSet,
) -> None:
    """Attach a CSV-driven ``batch`` child to a verb.

    For every flag of the parent verb the batch command accepts an integer
    option naming the (1-based) CSV column that holds the value.
    """
    verb = parent.name or ""
    for name, flag in sorted(flags.items()):
        if verb in flag.available_for:
            _add_option(
                command,
                name,
                FlagKind.INT64,
                None,
                f"Column (1-based) holding the value for --{name}. {flag.description}",
            )
    for name, flag in sorted(all_flags.items()):
        if verb in flag.available_for:
            _add_option(command, name, flag.kind, None, flag.description)
    for name, flag in sorted(batch_flags.items()):
        if command.name in flag.available_for:
            _add_option(command, name, flag.kind, flag.defaults.get(command.name), flag.description)
    command.required_flags = sorted(  # type: ignore[attr-defined]
        n for n, f in batch_flags.items() if command.name in f.required
    )
    if not isinstance(parent, click.Group):
        raise TypeError(f"{verb} must be a group to accept a batch command")
    parent.add_command(command)


def init_recursive_command(
    parent: click.Command,
    command: click.Command,
    flags: FlagSet,
    recursive_flags: FlagSet,
) -> None:
    """Attach a folder-traversal ``recursive`` child to a verb."""
    verb = parent.name or ""
    required = []
    for name, flag in sorted(recursive_flags.items()):
        if command.name in flag.available_for:
            _add_option(command, name, flag.kind, flag.defaults.get(command.name), flag.description)
            if command.name in flag.required:
                required.append(name)
    for name, flag in sorted(flags.items()):
        if verb in flag.recursive:
            _add_option(command, name, flag.kind, flag.defaults.get(verb), flag.description)
            if verb in flag.required:
                required.append(name)
    command.required_flags = sorted(required)  # type: ignore[attr-defined]
    if not isinstance(parent, click.Group):
        raise TypeError(f"{verb} must be a group to accept a recursive command")
    parent.add_command(command)


_UNSET_SOURCES = (None, ParameterSource.DEFAULT, ParameterSource.DEFAULT_MAP)


def flags_to_map(ctx: click.Context) -> ValueMap:
    """Snapshot what click parsed for the current command, keeping the is-set bit."""
    values = ValueMap()
    for param in ctx.command.params:
        if not isinstance(param, FlagOption) or param.name is None:
            continue
        source = ctx.get_parameter_source(param.name)
        values[param.name] = Value(
            param.kind,
            param.kind.normalize(ctx.params.get(param.name)),
            source not in _UNSET_SOURCES,
        )
    return values


def check_batch_columns(options: ValueMap, flags: FlagSet, verb: str) -> None:
    """Validate column options once, before any row is read.

    Raises:
        ArgumentError: If a column index is not 1-based or a required flag has
            neither a column nor an ``_ALL`` value.
    """
    for name, flag in flags.items():
        if verb not in flag.available_for:
            continue
        column = options.value(name)
        if column.is_set and column.value < 1:
            raise ArgumentError(
                f"--{name}: columns are 1-indexed (got {column.value})"
            )
        if verb in flag.required and not column.is_set and not options.is_set(f"{name}_ALL"):
            raise ArgumentError(f"--{name} must reference a column or be set with --{name}_ALL")


def batch_flags_to_map(
    options: ValueMap, flags: FlagSet, row: list[str], verb: str
) -> ValueMap:
    """Bind one CSV row into the ValueMap single mode would have produced.

    A bound column wins over an ``_ALL`` value, which wins over the default.
    An empty cell bound to a string flag is an explicit empty string; an empty
    cell bound to any other kind leaves the flag unset.

    Raises:
        ArgumentError: If a column is out of range or a cell does not parse.
    """
    values = ValueMap()
    for name, flag in flags.items():
        if verb not in flag.available_for:
            continue
        kind = flag.kind
        column = options.value(name)
        if column.is_set:
            index = column.value
            if index > len(row):
                raise ArgumentError(
                    f"--{name}: column {index} does not exist (row has {len(row)} columns)"
                )
            cell = row[index - 1]
            if cell == "" and kind is not FlagKind.STRING:
                values[name] = Value(kind, kind.normalize(flag.defaults.get(verb)), False)
                continue
            try:
                values[name] = Value(kind, kind.parse(cell), True)
            except ValueError as e:
                raise ArgumentError(
                    f"--{name}: invalid {kind.value} value {cell!r} in column {index}: {e}"
                ) from e
            continue
        all_value = options.value(f"{name}_ALL")
        if all_value.is_set:
            values[name] = replace(all_value)
            continue
        values[name] = Value(kind, kind.normalize(flag.defaults.get(verb)), False)
    return values


# Options shared by every batch command.
BATCH_FLAGS: dict[str, Flag] = {
    "path": Flag(
        available_for=["batch"],
        required=["batch"],
        description="Path of the import file (CSV).",
    ),
    "delimiter": Flag(
        available_for=["batch"],
        defaults={"batch": ";"},
        description="Delimiter to use for CSV columns. Must be exactly one character.",
    ),
    "skipHeader": Flag(
        kind=FlagKind.BOOL,
        available_for=["batch"],
        description="Whether to skip the first row (header).",
    ),
    "batchThreads": Flag(
        kind=FlagKind.INT64,
        available_for=["batch"],
        description="Number of parallel workers (overrides the config file, max 16).",
    ),
}

# Options shared by every recursive Drive command.
RECURSIVE_FILE_FLAGS: dict[str, Flag] = {
    "folderId": Flag(
        available_for=["recursive"],
        required=["recursive"],
        description="File ID of the folder to start from.",
    ),
    "excludeFolders": Flag(
        kind=FlagKind.STRING_SLICE,
        available_for=["recursive"],
        description=(
            "IDs of folders to exclude. Excluded folders and everything below them are skipped."
        ),
    ),
    "includeRoot": Flag(
        kind=FlagKind.BOOL,
        available_for=["recursive"],
        description="Also apply the operation to the folder given by --folderId.",
    ),
    "batchThreads": Flag(
        kind=FlagKind.INT64,
        available_for=["recursive"],
        description="Number of parallel workers (overrides the config file, max 16).",
    ),
}

# Options shared by every recursive Directory command.
RECURSIVE_USER_FLAGS: dict[str, Flag] = {
    "orgUnit": Flag(
        kind=FlagKind.STRING_SLICE,
        available_for=["recursive"],
        description="Paths of organizational units whose users (including child units) are included.",
    ),
    "groupEmail": Flag(
        kind=FlagKind.STRING_SLICE,
        available_for=["recursive"],
        description="Email addresses of groups whose users (including nested groups) are included.",
    ),
    "batchThreads": Flag(
        kind=FlagKind.INT64,
        available_for=["recursive"],
        description="Number of parallel workers (overrides the config file, max 16).",
    ),
}
