"""``licenseassignments``: user licenses of the Enterprise License Manager."""

from collections.abc import AsyncIterator
from typing import Any

import click

from gworkspace_admin.cli.commands import deleted, noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import compose_params
from gworkspace_admin.flags import Flag, ValueMap

_BY_PRODUCT = "listforproduct"
_BY_SKU = "listforproductandsku"
_WITH_USER = ["insert", "get", "patch", "delete"]
_ALL = _WITH_USER + [_BY_PRODUCT, _BY_SKU]

LICENSE_ASSIGNMENT_FLAGS: dict[str, Flag] = {
    "productId": Flag(
        available_for=_ALL,
        defaults=dict.fromkeys(_ALL, "Google-Apps"),
        recursive=_WITH_USER,
        description="The product's unique identifier, e.g. Google-Apps.",
    ),
    "skuId": Flag(
        available_for=_WITH_USER + [_BY_SKU],
        required=_WITH_USER + [_BY_SKU],
        recursive=_WITH_USER,
        description="The SKU's unique identifier, e.g. 1010020020 for Google Workspace Enterprise Plus.",
    ),
    "skuIdNew": Flag(
        available_for=["patch"],
        required=["patch"],
        recursive=["patch"],
        description="The SKU the user is moved to.",
    ),
    "userId": Flag(
        available_for=_WITH_USER,
        required=_WITH_USER,
        exclude_from_all=_WITH_USER,
        description="The user's primary email address.",
    ),
    "customerId": Flag(
        available_for=[_BY_PRODUCT, _BY_SKU],
        required=[_BY_PRODUCT, _BY_SKU],
        description="The customer's primary domain name or unique ID.",
    ),
    "fields": Flag(
        available_for=["insert", "get", "patch", _BY_PRODUCT, _BY_SKU],
        recursive=["insert", "get", "patch"],
        description="Fields to include in the response (partial response selector).",
    ),
}


def _sku(values: ValueMap) -> tuple[str, str]:
    return values.get_string("productId") or "Google-Apps", values.get_string("skuId")


async def insert_assignment(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.licensing.insert_assignment(
        *_sku(values), values.get_string("userId"), compose_params(values, ["fields"])
    )


async def get_assignment(apis: Apis, values: ValueMap) -> dict[str, Any]:
    return await apis.licensing.get_assignment(
        *_sku(values), values.get_string("userId"), compose_params(values, ["fields"])
    )


async def patch_assignment(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = {"skuId": values.get_string("skuIdNew")}
    return await apis.licensing.patch_assignment(
        *_sku(values), values.get_string("userId"), body, compose_params(values, ["fields"])
    )


async def delete_assignment(apis: Apis, values: ValueMap) -> dict[str, Any]:
    product_id, sku_id = _sku(values)
    user_id = values.get_string("userId")
    await apis.licensing.delete_assignment(product_id, sku_id, user_id)
    return {"productId": product_id, "skuId": sku_id, "userId": user_id, "result": True}


def _list_params(values: ValueMap) -> dict[str, Any]:
    params = compose_params(values, ["customerId"])
    if values.get_string("fields"):
        params["fields"] = f"nextPageToken,items({values.get_string('fields')})"
    return params


async def list_for_product(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    return apis.licensing.list_for_product(_sku(values)[0], _list_params(values))


async def list_for_product_and_sku(apis: Apis, values: ValueMap) -> AsyncIterator[dict[str, Any]]:
    return apis.licensing.list_for_product_and_sku(*_sku(values), _list_params(values))


def register(main: click.Group) -> None:
    licenses = noun(main, "licenseassignments", "Manage user license assignments.")
    verb(
        licenses,
        "insert",
        LICENSE_ASSIGNMENT_FLAGS,
        insert_assignment,
        "Assign a license to a user.",
        batch=True,
        user_recursive="userId",
    )
    verb(
        licenses,
        "get",
        LICENSE_ASSIGNMENT_FLAGS,
        get_assignment,
        "Get a user's license of a SKU.",
        batch=True,
        user_recursive="userId",
    )
    verb(
        licenses,
        "patch",
        LICENSE_ASSIGNMENT_FLAGS,
        patch_assignment,
        "Move a user's license to another SKU of the same product.",
        batch=True,
        user_recursive="userId",
    )
    verb(
        licenses,
        "delete",
        LICENSE_ASSIGNMENT_FLAGS,
        delete_assignment,
        "Revoke a user's license.",
        batch=True,
        failure=deleted("productId", "skuId", "userId"),
        user_recursive="userId",
    )
    verb(licenses, _BY_PRODUCT, LICENSE_ASSIGNMENT_FLAGS, list_for_product, "List all licenses of a product.")
    verb(licenses, _BY_SKU, LICENSE_ASSIGNMENT_FLAGS, list_for_product_and_sku, "List all licenses of a SKU.")
