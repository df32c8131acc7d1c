"""
Membership verification service.

Answers whether a user is effectively a member of a group. Unlike the
authorization guard, a live invitation counts: invitees may probe a
group before deciding to join. Read-only.
"""

from uuid import UUID

from apps.accounts.services import get_user_email
from apps.groups.models import GroupMembership, PendingInvite

from .authorization import parse_group_id
from .exceptions import InvalidGroupIdError


def is_member(*, group_id: UUID, user_id: UUID) -> bool:
    """
    Return True if the user has a membership row in the group, or an
    unexpired invite to it addressed to their registered email.

    Raises:
        InvalidGroupIdError: If group_id is not a valid UUID
    """
    parsed_id = parse_group_id(group_id)
    if parsed_id is None:
        raise InvalidGroupIdError("Invalid group ID")

    if GroupMembership.objects.filter(group_id=parsed_id, user_id=user_id).exists():
        return True

    email = get_user_email(user_id=user_id)
    if not email:
        return False

    return (
        PendingInvite.objects
        .valid()
        .filter(group_id=parsed_id)
        .for_email(email)
        .exists()
    )
