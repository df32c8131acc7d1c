"""
Membership management service.

Handles listing members and voluntary departure.
"""

from uuid import UUID

import structlog
from django.db.models import Case, IntegerField, QuerySet, Value, When

from apps.accounts.models import User
from apps.groups.models import GroupMembership, GroupRole

from .authorization import require_role
from .exceptions import LastAdminCannotLeaveError, NotMemberError
from .transactions import scoped_transaction

logger = structlog.get_logger(__name__)


def get_group_members(*, group_id: UUID, user: User) -> QuerySet[GroupMembership]:
    """
    Get all members of a group, admins first, then by join date.

    Args:
        group_id: UUID of the group
        user: User requesting the list (must be a member)

    Returns:
        QuerySet of GroupMembership instances

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    require_role(group_id=group_id, user_id=user.id, required_role=GroupRole.MEMBER)

    return (
        GroupMembership.objects
        .filter(group_id=group_id)
        .select_related('user')
        .annotate(
            role_rank=Case(
                When(role=GroupRole.ADMIN, then=Value(0)),
                default=Value(1),
                output_field=IntegerField(),
            )
        )
        .order_by('role_rank', 'joined_at')
    )


def leave_group(*, group_id: UUID, user: User) -> None:
    """
    Leave a group.

    The only admin of a group cannot leave; they must promote someone
    else first or delete the group.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
        LastAdminCannotLeaveError: If user is the group's only admin
    """
    require_role(group_id=group_id, user_id=user.id, required_role=GroupRole.MEMBER)

    with scoped_transaction('leave_group'):
        try:
            membership = (
                GroupMembership.objects
                .select_for_update()
                .get(group_id=group_id, user=user)
            )
        except GroupMembership.DoesNotExist:
            raise NotMemberError("You are not a member of this group")

        if membership.role == GroupRole.ADMIN and is_last_admin(group_id=group_id):
            raise LastAdminCannotLeaveError(
                "The only admin cannot leave. Promote another member or delete the group."
            )

        membership.delete()

    logger.info('member_left', group_id=str(group_id), user_id=str(user.id))


def is_last_admin(*, group_id: UUID) -> bool:
    """Return True if the group has exactly one admin. Locks the admin rows."""
    # Aggregates cannot be combined with FOR UPDATE, so count locked rows
    admin_ids = list(
        GroupMembership.objects
        .select_for_update()
        .filter(group_id=group_id, role=GroupRole.ADMIN)
        .values_list('id', flat=True)
    )
    return len(admin_ids) <= 1
