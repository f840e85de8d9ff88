"""``labels``: Gmail labels of a mailbox."""

from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params
from gworkspace_admin.flags import Flag, ValueMap

_ALL = ["create", "get", "list", "patch", "delete"]
_WITH_ID = ["get", "patch", "delete"]

LABEL_FLAGS: dict[str, Flag] = {
    "userId": Flag(
        available_for=_ALL,
        defaults=dict.fromkeys(_ALL, "me"),
        description="The user's email address. 'me' is the authenticated (or impersonated) user.",
    ),
    "id": Flag(
        available_for=_WITH_ID,
        required=_WITH_ID,
        exclude_from_all=_WITH_ID,
        description="The ID of the label.",
    ),
    "name": Flag(
        available_for=["create", "patch"],
        required=["create"],
        exclude_from_all=["create", "patch"],
        description="The display name of the label.",
    ),
    "messageListVisibility": Flag(
        available_for=["create", "patch"],
        description="Visibility of messages with this label in the message list: show or hide.",
    ),
    "labelListVisibility": Flag(
        available_for=["create", "patch"],
        description="labelShow, labelShowIfUnread or labelHide.",
    ),
    "textColor": Flag(available_for=["create", "patch"], description="Text color of the label as hex string."),
    "backgroundColor": Flag(
        available_for=["create", "patch"], description="Background color of the label as hex string."
    ),
    "fields": Flag(
        available_for=["create", "get", "list", "patch"],
        description="Fields to include in the response (partial response selector).",
    ),
}

LABEL_BODY: FieldMap = (
    Field("name", "name"),
    Field("messageListVisibility", "messageListVisibility"),
    Field("labelListVisibility", "labelListVisibility"),
    Field("textColor", "color.textColor"),
    Field("backgroundColor", "color.backgroundColor"),
)


def _user(values: ValueMap) -> str:
    return values.get_string("userId") or "me"


async def create_label(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, LABEL_BODY).body
    return await apis.gmail.create_label(_user(values), body, compose_params(values, ["fields"]))


async def get_label(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.gmail.get_label(_user(values), values.get_string("id"), compose_params(values, ["fields"]))


async def list_labels(apis: Apis, values: ValueMap) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if values.get_string("fields"):
        params["fields"] = f"labels({values.get_string('fields')})"
    user_id = _user(values)
    return {"userId": user_id, "labels": await apis.gmail.list_labels(user_id, params)}


async def patch_label(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, LABEL_BODY).body
    return await apis.gmail.patch_label(
        _user(values), values.get_string("id"), body, compose_params(values, ["fields"])
    )


async def delete_label(apis: Apis, values: ValueMap) -> dict[str, Any]:
    user_id, label_id = _user(values), values.get_string("id")
    await apis.gmail.delete_label(user_id, label_id)
    return {"userId": user_id, "id": label_id, "result": True}


def register(main: click.Group) -> None:
    labels = noun(main, "labels", "Manage Gmail labels.")
    verb(labels, "create", LABEL_FLAGS, create_label, "Create a label.", batch=True)
    verb(labels, "get", LABEL_FLAGS, get_label, "Get a label.", batch=True)
    verb(labels, "list", LABEL_FLAGS, list_labels, "List the labels of a mailbox.", batch=True)
    verb(labels, "patch", LABEL_FLAGS, patch_label, "Update a label.", batch=True)
    verb(labels, "delete", LABEL_FLAGS, delete_label, "Delete a label.", batch=True, failure=deleted("userId", "id"))
