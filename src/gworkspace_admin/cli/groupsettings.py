"""``groupsettings``: Groups Settings API (access, moderation, posting).

Every setting is a string in the API, including the yes/no ones, which take
``true`` or ``false``.
"""

from typing import Any

import click

from gworkspace_admin.cli.commands import noun, verb
from gworkspace_admin.cli.runtime import Apis
from gworkspace_admin.composer import Field, FieldMap, compose, compose_params
from gworkspace_admin.flags import Flag, FlagKind, ValueMap

_SETTINGS: dict[str, str] = {
    "whoCanJoin": "Who can join: ANYONE_CAN_JOIN, ALL_IN_DOMAIN_CAN_JOIN, INVITED_CAN_JOIN or CAN_REQUEST_TO_JOIN.",
    "whoCanViewMembership": "Who can view members: ALL_IN_DOMAIN_CAN_VIEW, ALL_MEMBERS_CAN_VIEW, ALL_MANAGERS_CAN_VIEW.",
    "whoCanViewGroup": "Who can view messages: ANYONE_CAN_VIEW, ALL_IN_DOMAIN_CAN_VIEW, ALL_MEMBERS_CAN_VIEW, ...",
    "whoCanPostMessage": "Who can post: NONE_CAN_POST, ALL_MANAGERS_CAN_POST, ALL_MEMBERS_CAN_POST, ...",
    "whoCanLeaveGroup": "Who can leave: ALL_MANAGERS_CAN_LEAVE, ALL_MEMBERS_CAN_LEAVE or NONE_CAN_LEAVE.",
    "whoCanContactOwner": "Who can contact the owner: ANYONE_CAN_CONTACT, ALL_IN_DOMAIN_CAN_CONTACT, ...",
    "whoCanModerateMembers": "Who can manage members: ALL_MEMBERS, OWNERS_AND_MANAGERS, OWNERS_ONLY or NONE.",
    "whoCanModerateContent": "Who can moderate content: ALL_MEMBERS, OWNERS_AND_MANAGERS, OWNERS_ONLY or NONE.",
    "whoCanAssistContent": "Who can moderate metadata: ALL_MEMBERS, OWNERS_AND_MANAGERS, MANAGERS_ONLY, ...",
    "whoCanDiscoverGroup": "Who can find the group: ANYONE_CAN_DISCOVER, ALL_IN_DOMAIN_CAN_DISCOVER, ...",
    "whoCanApproveMembers": "Who can approve join requests: ALL_OWNERS_ALLOWED, ALL_MANAGERS_ALLOWED, ...",
    "whoCanBanUsers": "Who can deny membership: OWNERS_ONLY, OWNERS_AND_MANAGERS or NONE.",
    "allowExternalMembers": "Whether members outside the domain can join: true or false.",
    "allowWebPosting": "Whether posting from the web is allowed: true or false.",
    "primaryLanguage": "The group's primary language, e.g. en.",
    "isArchived": "Whether messages are archived: true or false.",
    "archiveOnly": "Whether the group is archive-only (inactive): true or false.",
    "messageModerationLevel": "MODERATE_ALL_MESSAGES, MODERATE_NON_MEMBERS, MODERATE_NEW_MEMBERS or MODERATE_NONE.",
    "spamModerationLevel": "ALLOW, MODERATE, SILENTLY_MODERATE or REJECT.",
    "replyTo": "Default reply target: REPLY_TO_CUSTOM, REPLY_TO_SENDER, REPLY_TO_LIST, ...",
    "customReplyTo": "Reply address when replyTo is REPLY_TO_CUSTOM.",
    "includeCustomFooter": "Whether to append the custom footer: true or false.",
    "customFooterText": "Footer text appended to messages.",
    "sendMessageDenyNotification": "Whether to notify the author of a rejected message: true or false.",
    "defaultMessageDenyNotificationText": "Text of the rejection notice.",
    "membersCanPostAsTheGroup": "Whether members can post using the group address: true or false.",
    "includeInGlobalAddressList": "Whether the group is in the Global Address List: true or false.",
    "favoriteRepliesOnTop": "Whether favorite replies show above other replies: true or false.",
    "enableCollaborativeInbox": "Whether the collaborative inbox is on: true or false.",
    "defaultSender": "Default sender for members who can post as the group: DEFAULT_SELF or GROUP.",
}

# Settings the API still returns but no longer applies.
DEPRECATED_SETTINGS = (
    "whoCanInvite",
    "whoCanAdd",
    "maxMessageBytes",
    "showInGroupDirectory",
    "allowGoogleCommunication",
    "messageDisplayFont",
    "whoCanAddReferences",
    "whoCanAssignTopics",
    "whoCanUnassignTopic",
    "whoCanTakeTopics",
    "whoCanMarkDuplicate",
    "whoCanMarkNoResponseNeeded",
    "whoCanMarkFavoriteReplyOnAnyTopic",
    "whoCanMarkFavoriteReplyOnOwnTopic",
    "whoCanUnmarkFavoriteReplyOnAnyTopic",
    "whoCanEnterFreeFormTags",
    "whoCanModifyTagsAndCategories",
    "whoCanModifyMembers",
    "whoCanApproveMessages",
    "whoCanDeleteAnyPost",
    "whoCanDeleteTopics",
    "whoCanLockTopics",
    "whoCanMoveTopicsIn",
    "whoCanMoveTopicsOut",
    "whoCanPostAnnouncements",
    "whoCanHideAbuse",
    "whoCanMakeTopicsSticky",
)

GROUP_SETTING_FLAGS: dict[str, Flag] = {
    "groupUniqueId": Flag(
        available_for=["get", "patch"],
        required=["get", "patch"],
        exclude_from_all=["get", "patch"],
        description="The group's email address.",
    ),
    **{name: Flag(available_for=["patch"], description=text) for name, text in _SETTINGS.items()},
    "ignoreDeprecated": Flag(
        kind=FlagKind.BOOL,
        available_for=["get", "patch"],
        defaults={"get": True, "patch": True},
        description="Leave settings the API no longer applies out of the output.",
    ),
    "fields": Flag(
        available_for=["get", "patch"],
        description="Fields to include in the response (partial response selector).",
    ),
}

GROUP_SETTINGS_BODY: FieldMap = tuple(Field(name, name) for name in _SETTINGS)


def without_deprecated(settings: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in settings.items() if key not in DEPRECATED_SETTINGS}


def _output(values: ValueMap, settings: dict[str, Any]) -> dict[str, Any]:
    return without_deprecated(settings) if values.get_bool("ignoreDeprecated") else settings


async def get_settings(apis: Apis, values: ValueMap) -> dict[str, Any]:
    settings = await apis.groups_settings.get(
        values.get_string("groupUniqueId"), compose_params(values, ["fields"])
    )
    return _output(values, settings)


async def patch_settings(apis: Apis, values: ValueMap) -> dict[str, Any]:
    body = compose(values, GROUP_SETTINGS_BODY).body
    settings = await apis.groups_settings.patch(
        values.get_string("groupUniqueId"), body, compose_params(values, ["fields"])
    )
    return _output(values, settings)


def register(main: click.Group) -> None:
    groupsettings = noun(main, "groupsettings", "Manage group settings.")
    verb(groupsettings, "get", GROUP_SETTING_FLAGS, get_settings, "Get a group's settings.", batch=True)
    verb(groupsettings, "patch", GROUP_SETTING_FLAGS, patch_settings, "Update a group's settings.", batch=True)
