"""Expand organizational units and groups into a stream of unique users.

Org units are searched with a Directory ``orgUnitPath`` query, which also
matches users in child units. Groups are listed with derived membership so
members of nested groups are included; only members of type ``USER`` count.
Every address is yielded once, compared case-insensitively, in the order it
was first seen: org units first, then groups.

A source that cannot be listed is logged and skipped; the remaining sources
are still expanded.
"""

import logging
from collections.abc import AsyncIterator, Iterable

from gworkspace_admin.api.directory import DirectoryApi
from gworkspace_admin.errors import AdminError

logger = logging.getLogger(__name__)


def org_unit_query(path: str) -> str:
    """Directory search query matching every user at or below ``path``."""
    escaped = path.replace("\\", "\\\\").replace("'", "\\'")
    return f"orgUnitPath='{escaped}'"


async def _org_unit_users(directory: DirectoryApi, path: str) -> AsyncIterator[str]:
    params = {"query": org_unit_query(path), "fields": "nextPageToken,users(primaryEmail)"}
    async for user in directory.list_users(params):
        if user.get("primaryEmail"):
            yield user["primaryEmail"]


async def _group_users(directory: DirectoryApi, group_email: str) -> AsyncIterator[str]:
    params = {"includeDerivedMembership": "true", "fields": "nextPageToken,members(email,type)"}
    async for member in directory.list_members(group_email, params):
        if member.get("type") == "USER" and member.get("email"):
            yield member["email"]


async def unique_users_recursive(
    directory: DirectoryApi,
    org_units: Iterable[str] = (),
    group_emails: Iterable[str] = (),
) -> AsyncIterator[str]:
    """Yield the primary email of every user in the given org units and groups.

    Args:
        directory: Directory adapter used for listing.
        org_units: Org unit paths such as ``/Sales``.
        group_emails: Group email addresses, aliases or IDs.

    Yields:
        Email addresses, each at most once.
    """
    seen: set[str] = set()
    sources = [(f"org unit {path}", _org_unit_users(directory, path)) for path in org_units]
    sources += [(f"group {email}", _group_users(directory, email)) for email in group_emails]

    for name, users in sources:
        found = 0
        try:
            async for email in users:
                folded = email.lower()
                if folded in seen:
                    continue
                seen.add(folded)
                found += 1
                yield email
        except AdminError as e:
            logger.error(f"cannot list users of {name}, skipping it: {e}")
            continue
        finally:
            await users.aclose()
        logger.debug(f"{name}: {found} new user(s)")
