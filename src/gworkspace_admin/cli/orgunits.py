"""``orgunits``: organizational units."""

from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

_ALL = ["insert", "get", "list", "patch", "delete"]
_WITH_PATH = ["get", "patch", "delete"]

ORGUNIT_FLAGS: dict[str, Flag] = {
    "customerId": Flag(
        available_for=_ALL,
        defaults=dict.fromkeys(_ALL, "my_customer"),
        description="The unique ID of the customer's Google Workspace account.",
    ),
    "orgUnitPath": Flag(
        available_for=_WITH_PATH + ["list"],
        required=_WITH_PATH,
        exclude_from_all=_WITH_PATH,
        description="The full path of the organizational unit or its unique ID. For list, the unit to start from.",
    ),
    "name": Flag(
        available_for=["insert", "patch"],
        required=["insert"],
        exclude_from_all=["insert", "patch"],
        description="The organizational unit's path name.",
    ),
    "description": Flag(available_for=["insert", "patch"], description="Description of the organizational unit."),
    "parentOrgUnitPath": Flag(
        available_for=["insert", "patch"],
        required=["insert"],
        description="The organizational unit's parent path, e.g. /corp/sales.",
    ),
    "parentOrgUnitId": Flag(available_for=["insert", "patch"], description="The unique ID of the parent."),
    "blockInheritance": Flag(
        kind=FlagKind.BOOL,
        available_for=["insert", "patch"],
        description="Whether the unit blocks inheritance of settings from its parents.",
    ),
    "type": Flag(available_for=["list"], description="all, children or allIncludingParent."),
    "fields": Flag(
        available_for=["insert", "get", "list", "patch"],
        description="Fields to include in the response (partial response selector).",
    ),
}

ORGUNIT_BODY: FieldMap = (
    Field("name", "name"),
    Field("description", "description"),
    Field("parentOrgUnitPath", "parentOrgUnitPath"),
    Field("parentOrgUnitId", "parentOrgUnitId"),
    Field("blockInheritance", "blockInheritance"),
)


def _customer(values: ValueMap) -> str:
    return values.get_string("customerId") or "my_customer"


async def insert_orgunit(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, ORGUNIT_BODY).body
    return await apis.directory.insert_orgunit(_customer(values), body, compose_params(values, ["fields"]))


async def get_orgunit(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.directory.get_orgunit(
        _customer(values), values.get_string("orgUnitPath"), compose_params(values, ["fields"])
    )


async def list_orgunits(apis: Apis, values: ValueMap) -> list[dict[str, Any]]:
    params = compose_params(values, ["orgUnitPath", "type"])
    if values.get_string("fields"):
        params["fields"] = f"organizationUnits({values.get_string('fields')})"
    return await apis.directory.list_orgunits(_customer(values), params)


async def patch_orgunit(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, ORGUNIT_BODY).body
    return await apis.directory.patch_orgunit(
        _customer(values), values.get_string("orgUnitPath"), body, compose_params(values, ["fields"])
    )


async def delete_orgunit(apis: Apis, values: ValueMap) -> dict[str, Any]:
    await apis.directory.delete_orgunit(_customer(values), values.get_string("orgUnitPath"))
    return {"orgUnitPath": values.get_string("orgUnitPath"), "result": True}


def register(main: click.Group) -> None:
    orgunits = noun(main, "orgunits", "Manage organizational units.")
    verb(orgunits, "insert", ORGUNIT_FLAGS, insert_orgunit, "Create an organizational unit.", batch=True)
    verb(orgunits, "get", ORGUNIT_FLAGS, get_orgunit, "Get an organizational unit.", batch=True)
    verb(orgunits, "list", ORGUNIT_FLAGS, list_orgunits, "List organizational units.")
    verb(orgunits, "patch", ORGUNIT_FLAGS, patch_orgunit, "Update an organizational unit.", batch=True)
    verb(
        orgunits,
        "delete",
        ORGUNIT_FLAGS,
        delete_orgunit,
        "Remove an organizational unit.",
        batch=True,
        failure=deleted("orgUnitPath"),
    )
