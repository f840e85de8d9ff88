"""Map a flat ValueMap to nested request bodies.

A body is described by a FieldMap, a tuple of ``Field(flag, path, convert)``.
For each field:

- flag not set: the path is omitted.
- flag set to a non-zero value: the value is placed at the path.
- flag set to the zero value: the zero value is placed at the path and the
  path is added to the force-send set, so the remote clears the field.

Intermediate records are only allocated when one of their children is set.
A path segment such as ``contentRestrictions[0]`` allocates a repeated record
with one element.

Adapters send ``body`` as JSON, which keeps zero values, so nothing reads
``force_send`` to build the request; ``compose`` logs it at debug level.
"""

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from gworkspace_admin.errors import ComposerError
from gworkspace_admin.flags import FlagKind, ValueMap

logger = logging.getLogger(__name__)

_SEGMENT = re.compile(r"^(?P<name>[A-Za-z0-9_]+)(?:\[(?P<index>\d+)\])?$")


@dataclass(frozen=True)
class Field:
    """Binding of one flag to one (dotted) body path."""

    flag: str
    path: str
    convert: Callable[[Any], Any] | None = None


FieldMap = tuple[Field, ...]


@dataclass
class ComposedRequest:
    """A request body together with the paths that must be sent even if empty."""

    body: dict[str, Any] = field(default_factory=dict)
    force_send: set[str] = field(default_factory=set)


def parse_mini_map(text: str) -> dict[str, str]:
    """Parse ``k=v;k2=v2`` into a dict.

    Entries are separated by ``;`` and split on the first ``=``. An empty
    string is the empty map.

    Raises:
        ComposerError: If an entry is empty, has no ``=`` or has an empty key.
    """
    if text == "":
        return {}
    result: dict[str, str] = {}
    for entry in text.split(";"):
        key, sep, value = entry.partition("=")
        if not sep or not key:
            raise ComposerError(f"malformed entry {entry!r} in {text!r} (expected key=value)")
        result[key] = value
    return result


def single_parent(value: str) -> list[str]:
    """Convert a single parent ID into a ``parents`` list; empty clears it."""
    return [value] if value else []


def _set_path(body: dict[str, Any], path: str, value: Any) -> None:
    segments = path.split(".")
    node: Any = body
    for position, segment in enumerate(segments):
        match = _SEGMENT.match(segment)
        if match is None:
            raise ValueError(f"invalid body path {path!r}")
        name, index = match.group("name"), match.group("index")
        last = position == len(segments) - 1
        if index is None:
            if last:
                node[name] = value
            else:
                node = node.setdefault(name, {})
            continue
        items = node.setdefault(name, [])
        slot = int(index)
        while len(items) <= slot:
            items.append({})
        if last:
            items[slot] = value
        else:
            node = items[slot]


def compose(values: ValueMap, fields: FieldMap) -> ComposedRequest:
    """Build a ComposedRequest from a ValueMap.

    Raises:
        ComposerError: If a converter rejects a value. The message names the flag.
    """
    request = ComposedRequest()
    for binding in fields:
        v = values.get(binding.flag)
        if v is None or not v.is_set:
            continue
        raw = v.value if v.value is not None else v.kind.zero()
        try:
            converted = binding.convert(raw) if binding.convert else raw
        except (ValueError, ComposerError) as e:
            raise ComposerError(f"--{binding.flag}: {e}") from e
        _set_path(request.body, binding.path, converted)
        if v.kind.is_zero(raw):
            request.force_send.add(binding.path)
    if request.force_send:
        logger.debug(f"Clearing {sorted(request.force_send)}")
    return request


def compose_params(
    values: ValueMap, names: Iterable[str] | Mapping[str, str]
) -> dict[str, Any]:
    """Collect query parameters from a ValueMap.

    ``names`` is either a list of flag names (used verbatim as parameter
    names) or a mapping of flag name to parameter name. Empty values are
    dropped; a boolean is only sent when it was given explicitly or is true.
    """
    mapping = names if isinstance(names, Mapping) else {n: n for n in names}
    params: dict[str, Any] = {}
    for flag, param in mapping.items():
        v = values.get(flag)
        if v is None:
            continue
        if v.kind is FlagKind.BOOL:
            if v.is_set or v.value:
                params[param] = "true" if v.value else "false"
            continue
        if v.is_zero():
            continue
        params[param] = ",".join(v.value) if v.kind.is_list else v.value
    return params
