"""``delegates``: Gmail delegates, users who may read and send from a mailbox."""

from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import compose_params
from gworkspace_admin.flags import Flag, ValueMap

_ALL = ["create", "get", "list", "delete"]
_WITH_DELEGATE = ["create", "get", "delete"]

DELEGATE_FLAGS: dict[str, Flag] = {
    "userId": Flag(
        available_for=_ALL,
        defaults=dict.fromkeys(_ALL, "me"),
        description="The mailbox owner's email address. 'me' is the authenticated (or impersonated) user.",
    ),
    "delegateEmail": Flag(
        available_for=_WITH_DELEGATE,
        required=_WITH_DELEGATE,
        exclude_from_all=_WITH_DELEGATE,
        description="The email address of the delegate.",
    ),
    "fields": Flag(
        available_for=["create", "get", "list"],
        recursive=["list"],
        description="Fields to include in the response (partial response selector).",
    ),
}


def _user(values: ValueMap) -> str:
    return values.get_string("userId") or "me"


async def create_delegate(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = {"delegateEmail": values.get_string("delegateEmail")}
    return await apis.gmail.create_delegate(_user(values), body, compose_params(values, ["fields"]))


async def get_delegate(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.gmail.get_delegate(
        _user(values), values.get_string("delegateEmail"), compose_params(values, ["fields"])
    )


async def list_delegates(apis: Apis, values: ValueMap) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if values.get_string("fields"):
        params["fields"] = f"delegates({values.get_string('fields')})"
    user_id = _user(values)
    return {"userId": user_id, "delegates": await apis.gmail.list_delegates(user_id, params)}


async def delete_delegate(apis: Apis, values: ValueMap) -> dict[str, Any]:
    user_id, delegate = _user(values), values.get_string("delegateEmail")
    await apis.gmail.delete_delegate(user_id, delegate)
    return {"userId": user_id, "delegateEmail": delegate, "result": True}


def register(main: click.Group) -> None:
    delegates = noun(main, "delegates", "Manage Gmail delegates.")
    verb(delegates, "create", DELEGATE_FLAGS, create_delegate, "Add a delegate to a mailbox.", batch=True)
    verb(delegates, "get", DELEGATE_FLAGS, get_delegate, "Get a delegate of a mailbox.", batch=True)
    verb(
        delegates,
        "list",
        DELEGATE_FLAGS,
        list_delegates,
        "List the delegates of a mailbox.",
        batch=True,
        user_recursive="userId",
    )
    verb(
        delegates,
        "delete",
        DELEGATE_FLAGS,
        delete_delegate,
        "Remove a delegate from a mailbox.",
        batch=True,
        failure=deleted("userId", "delegateEmail"),
    )
