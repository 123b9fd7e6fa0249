"""Role gating for group mutations.

Every privileged operation is checked through ``is_allowed`` against the
actor's current membership row, so the whole rule set lives here and can be
tested without a database.
"""

import enum

from app.core.errors import ForbiddenError
from app.models.membership import GroupMember, MemberRole


class GroupAction(str, enum.Enum):
    APPROVE_JOIN_REQUEST = "approve_join_request"
    REJECT_JOIN_REQUEST = "reject_join_request"
    LIST_JOIN_REQUESTS = "list_join_requests"
    ADD_MEMBER = "add_member"
    UPDATE_MEMBER_ROLE = "update_member_role"
    REMOVE_OTHER_MEMBER = "remove_other_member"


# role -> actions it may perform
ROLE_PERMISSIONS: dict[MemberRole, frozenset[GroupAction]] = {
    MemberRole.ADMIN: frozenset(GroupAction),
    MemberRole.MEMBER: frozenset(),
}

_DENIED_MESSAGES = {
    GroupAction.APPROVE_JOIN_REQUEST: "Only admins can approve join requests",
    GroupAction.REJECT_JOIN_REQUEST: "Only admins can reject join requests",
    GroupAction.LIST_JOIN_REQUESTS: "Only admins can view join requests",
    GroupAction.ADD_MEMBER: "Only admins can add members to a private group",
    GroupAction.UPDATE_MEMBER_ROLE: "Only admins can update member roles",
    GroupAction.REMOVE_OTHER_MEMBER: "Only admins can remove other members",
}


def is_allowed(actor: GroupMember | None, action: GroupAction) -> bool:
    """Non-members are never allowed anything."""
    if actor is None:
        return False
    return action in ROLE_PERMISSIONS.get(actor.role, frozenset())


def ensure_allowed(actor: GroupMember | None, action: GroupAction) -> None:
    if not is_allowed(actor, action):
        raise ForbiddenError(_DENIED_MESSAGES[action])
