"""Thin async adapters over the Google REST endpoints used by the commands.

Each adapter maps one resource method to one HTTP call through ApiClient.
Request bodies come from the composer as plain dicts; responses are returned
as decoded JSON.
"""

from gworkspace_admin.api.calendar import CalendarApi
from gworkspace_admin.api.cloudidentity import CloudIdentityApi
from gworkspace_admin.api.directory import DirectoryApi
from gworkspace_admin.api.drive import FOLDER_MIME_TYPE, DriveApi
from gworkspace_admin.api.gmail import GmailApi
from gworkspace_admin.api.groupssettings import GroupsSettingsApi
from gworkspace_admin.api.licensing import LicensingApi
from gworkspace_admin.api.reports import ReportsApi

__all__ = [
    "FOLDER_MIME_TYPE",
    "CalendarApi",
    "CloudIdentityApi",
    "DirectoryApi",
    "DriveApi",
    "GmailApi",
    "GroupsSettingsApi",
    "LicensingApi",
    "ReportsApi",
]
