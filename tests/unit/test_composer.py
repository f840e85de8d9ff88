"""Unit tests for request composition.

Tests cover nested paths, force-send of explicit clears, omission of unset
flags, mini-map parsing and query parameter collection.
"""

import logging

import pytest

from gworkspace_admin.composer import (
    Field,
    compose,
    compose_params,
    parse_mini_map,
    single_parent,
)
from gworkspace_admin.errors import ArgumentError, ComposerError
from gworkspace_admin.flags import FlagKind, Value, ValueMap

BODY = (
    Field("name", "name"),
    Field("readOnly", "contentRestrictions[0].readOnly"),
    Field("reason", "contentRestrictions[0].reason"),
    Field("thumbnail", "contentHints.thumbnail.image"),
    Field("properties", "properties", parse_mini_map),
    Field("parent", "parents", single_parent),
    Field("labels", "labels"),
)


def given(**values: Value) -> ValueMap:
    return ValueMap(values)


def string(value: str) -> Value:
    return Value(FlagKind.STRING, value, True)


@pytest.mark.unit
class TestCompose:
    """Tests for compose()."""

    def test_should_omit_unset_flags(self) -> None:
        """Verify an unset flag leaves no trace in the body."""
        values = given(name=Value(FlagKind.STRING, "default", False))

        request = compose(values, BODY)

        assert request.body == {}
        assert request.force_send == set()

    def test_should_place_values_at_nested_paths(self) -> None:
        """Verify dotted paths allocate intermediate records."""
        request = compose(given(name=string("report"), thumbnail=string("aGk=")), BODY)

        assert request.body == {"name": "report", "contentHints": {"thumbnail": {"image": "aGk="}}}
        assert request.force_send == set()

    def test_should_allocate_repeated_record(self) -> None:
        """Verify an indexed segment creates a list holding one record."""
        values = given(
            readOnly=Value(FlagKind.BOOL, True, True),
            reason=string("legal hold"),
        )

        request = compose(values, BODY)

        assert request.body == {"contentRestrictions": [{"readOnly": True, "reason": "legal hold"}]}

    def test_should_force_send_explicit_false(self) -> None:
        """Verify an explicit false is sent and tracked in force_send."""
        request = compose(given(readOnly=Value(FlagKind.BOOL, False, True)), BODY)

        assert request.body == {"contentRestrictions": [{"readOnly": False}]}
        assert request.force_send == {"contentRestrictions[0].readOnly"}

    def test_should_log_cleared_paths(self, caplog: pytest.LogCaptureFixture) -> None:
        """Verify the force-send paths are logged at debug level."""
        with caplog.at_level(logging.DEBUG, logger="gworkspace_admin.composer"):
            compose(given(readOnly=Value(FlagKind.BOOL, False, True), name=string("kept")), BODY)

        assert "contentRestrictions[0].readOnly" in caplog.text
        assert "kept" not in caplog.text

    def test_should_force_send_explicit_empty_string(self) -> None:
        """Verify an explicit empty string clears the field."""
        request = compose(given(name=string("")), BODY)

        assert request.body == {"name": ""}
        assert "name" in request.force_send

    def test_should_clear_parents_with_empty_parent(self) -> None:
        """Verify the single parent converter maps empty to an empty list."""
        assert compose(given(parent=string("")), BODY).body == {"parents": []}
        assert compose(given(parent=string("p1")), BODY).body == {"parents": ["p1"]}

    def test_should_send_empty_list_for_explicit_empty_slice(self) -> None:
        """Verify an explicitly set empty list is force-sent."""
        request = compose(given(labels=Value(FlagKind.STRING_SLICE, [], True)), BODY)

        assert request.body == {"labels": []}
        assert request.force_send == {"labels"}

    def test_should_parse_mini_map_fields(self) -> None:
        """Verify converters run on set values."""
        request = compose(given(properties=string("k1=v1;k2=a=b")), BODY)

        assert request.body == {"properties": {"k1": "v1", "k2": "a=b"}}

    def test_should_name_flag_in_converter_errors(self) -> None:
        """Verify a malformed mini map is a ComposerError naming the flag."""
        with pytest.raises(ComposerError, match="--properties: malformed entry 'oops'"):
            compose(given(properties=string("k1=v1;oops")), BODY)

    def test_should_be_an_argument_error(self) -> None:
        """Verify composer errors are treated as bad input."""
        assert issubclass(ComposerError, ArgumentError)


@pytest.mark.unit
class TestMiniMap:
    """Tests for parse_mini_map()."""

    def test_should_parse_empty_string_as_empty_map(self) -> None:
        """Verify the empty string is the empty map."""
        assert parse_mini_map("") == {}

    def test_should_allow_empty_value(self) -> None:
        """Verify k= yields an empty value."""
        assert parse_mini_map("k=") == {"k": ""}

    @pytest.mark.parametrize("text", ["=v", "k1=v1;", "novalue", "a=1;;b=2"])
    def test_should_reject_malformed_entries(self, text: str) -> None:
        """Verify entries without key or separator are rejected."""
        with pytest.raises(ComposerError):
            parse_mini_map(text)


@pytest.mark.unit
class TestComposeParams:
    """Tests for compose_params()."""

    def test_should_drop_empty_values(self) -> None:
        """Verify zero values are not sent."""
        values = given(fields=string(""), q=string("name = 'x'"))

        assert compose_params(values, ["fields", "q", "missing"]) == {"q": "name = 'x'"}

    def test_should_send_bools_only_when_given_or_true(self) -> None:
        """Verify an unset false is dropped but an explicit false is sent."""
        values = given(
            unsetFalse=Value(FlagKind.BOOL, False, False),
            explicitFalse=Value(FlagKind.BOOL, False, True),
            defaultTrue=Value(FlagKind.BOOL, True, False),
        )

        assert compose_params(values, ["unsetFalse", "explicitFalse", "defaultTrue"]) == {
            "explicitFalse": "false",
            "defaultTrue": "true",
        }

    def test_should_join_lists_and_rename(self) -> None:
        """Verify lists are comma joined and mappings rename parameters."""
        values = given(
            events=Value(FlagKind.STRING_SLICE, ["a", "b"], True),
            count=Value(FlagKind.INT64, 5, True),
        )

        assert compose_params(values, {"events": "eventName", "count": "maxResults"}) == {
            "eventName": "a,b",
            "maxResults": 5,
        }
