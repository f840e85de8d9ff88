"""``sendas``: Gmail send-as aliases of a mailbox.

An alias with ``--smtpHost`` set relays through that SMTP server; the
other ``--smtp*`` flags only apply together with it. The security mode
defaults to NONE when a host is given.
"""

from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

_ALL = ["create", "get", "list", "patch", "delete", "verify"]
_WITH_ALIAS = ["create", "get", "patch", "delete", "verify"]
_WRITE = ["create", "patch"]

SEND_AS_FLAGS: dict[str, Flag] = {
    "userId": Flag(
        available_for=_ALL,
        defaults=dict.fromkeys(_ALL, "me"),
        description="The mailbox owner's email address. 'me' is the authenticated (or impersonated) user.",
    ),
    "sendAsEmail": Flag(
        available_for=_WITH_ALIAS,
        required=_WITH_ALIAS,
        exclude_from_all=_WITH_ALIAS,
        description="The email address that appears in the From: header of mail sent using this alias.",
    ),
    "displayName": Flag(available_for=_WRITE, description="Name that appears in the From: header."),
    "replyToAddress": Flag(
        available_for=_WRITE, description="Email address put in the Reply-To: header. Empty omits the header."
    ),
    "signature": Flag(available_for=_WRITE, description="HTML signature appended to new messages."),
    "isDefault": Flag(
        kind=FlagKind.BOOL,
        available_for=_WRITE,
        description="Make this alias the default From: address. Only true is accepted by the API.",
    ),
    "treatAsAlias": Flag(
        kind=FlagKind.BOOL,
        available_for=_WRITE,
        description="Whether Gmail treats this address as an alias for the user's primary address.",
    ),
    "smtpHost": Flag(available_for=_WRITE, description="Hostname of the SMTP service."),
    "smtpPort": Flag(kind=FlagKind.INT64, available_for=_WRITE, description="Port of the SMTP service."),
    "smtpUsername": Flag(available_for=_WRITE, description="Username for SMTP authentication."),
    "smtpPassword": Flag(
        available_for=_WRITE, description="Password for SMTP authentication. Write-only, never returned."
    ),
    "smtpSecurityMode": Flag(
        available_for=_WRITE,
        defaults={"create": "NONE"},
        description="Protocol used to secure the SMTP connection: NONE, SSL or STARTTLS.",
    ),
    "fields": Flag(
        available_for=["create", "get", "list", "patch"],
        recursive=["list"],
        description="Fields to include in the response (partial response selector).",
    ),
}

SEND_AS_BODY: FieldMap = (
    Field("sendAsEmail", "sendAsEmail"),
    Field("displayName", "displayName"),
    Field("replyToAddress", "replyToAddress"),
    Field("signature", "signature"),
    Field("isDefault", "isDefault"),
    Field("treatAsAlias", "treatAsAlias"),
    Field("smtpHost", "smtpMsa.host"),
    Field("smtpPort", "smtpMsa.port"),
    Field("smtpUsername", "smtpMsa.username"),
    Field("smtpPassword", "smtpMsa.password"),
    Field("smtpSecurityMode", "smtpMsa.securityMode"),
)


def _user(values: ValueMap) -> str:
    return values.get_string("userId") or "me"


def _body(values: ValueMap) -> dict[str, Any]:
    body = compose(values, SEND_AS_BODY).body
    smtp = body.get("smtpMsa")
    if smtp and smtp.get("host"):
        smtp.setdefault("securityMode", values.get_string("smtpSecurityMode") or "NONE")
    return body


async def create_send_as(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.gmail.create_send_as(_user(values), _body(values), compose_params(values, ["fields"]))


async def get_send_as(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.gmail.get_send_as(
        _user(values), values.get_string("sendAsEmail"), compose_params(values, ["fields"])
    )


async def list_send_as(apis: Apis, values: ValueMap) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if values.get_string("fields"):
        params["fields"] = f"sendAs({values.get_string('fields')})"
    user_id = _user(values)
    return {"userId": user_id, "sendAs": await apis.gmail.list_send_as(user_id, params)}


async def patch_send_as(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = _body(values)
    body.pop("sendAsEmail", None)
    return await apis.gmail.patch_send_as(
        _user(values), values.get_string("sendAsEmail"), body, compose_params(values, ["fields"])
    )


async def delete_send_as(apis: Apis, values: ValueMap) -> dict[str, Any]:
    user_id, alias = _user(values), values.get_string("sendAsEmail")
    await apis.gmail.delete_send_as(user_id, alias)
    return {"userId": user_id, "sendAsEmail": alias, "result": True}


async def verify_send_as(apis: Apis, values: ValueMap) -> dict[str, Any]:
    user_id, alias = _user(values), values.get_string("sendAsEmail")
    await apis.gmail.verify_send_as(user_id, alias)
    return {"userId": user_id, "sendAsEmail": alias, "result": True}


def register(main: click.Group) -> None:
    sendas = noun(main, "sendas", "Manage Gmail send-as aliases.")
    verb(sendas, "create", SEND_AS_FLAGS, create_send_as, "Create a send-as alias.", batch=True)
    verb(sendas, "get", SEND_AS_FLAGS, get_send_as, "Get a send-as alias.", batch=True)
    verb(
        sendas,
        "list",
        SEND_AS_FLAGS,
        list_send_as,
        "List the send-as aliases of a mailbox.",
        batch=True,
        user_recursive="userId",
    )
    verb(sendas, "patch", SEND_AS_FLAGS, patch_send_as, "Update a send-as alias.", batch=True)
    verb(
        sendas,
        "delete",
        SEND_AS_FLAGS,
        delete_send_as,
        "Delete a send-as alias.",
        batch=True,
        failure=deleted("userId", "sendAsEmail"),
    )
    verb(
        sendas,
        "verify",
        SEND_AS_FLAGS,
        verify_send_as,
        "Send a verification email to the alias address.",
        batch=True,
        failure=deleted("userId", "sendAsEmail"),
    )
