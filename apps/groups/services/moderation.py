"""
Moderation service.

Admins block and unblock members. A (group, user) pair is either a
member or blocked, never both: blocking removes the membership and
records the block in one transaction. Unblocking only clears the block;
the user needs a fresh invite to come back.
"""

from uuid import UUID

import structlog
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.groups.models import BlockedMember, GroupMembership, GroupRole, PendingInvite

from .authorization import require_role
from .exceptions import (
    CannotBlockAdminError,
    NotBlockedError,
    NotMemberError,
    SelfBlockError,
)
from .transactions import scoped_transaction

logger = structlog.get_logger(__name__)


def block_member(*, group_id: UUID, member_id: UUID, admin: User) -> BlockedMember:
    """
    Block a member of a group (admin only).

    Args:
        group_id: UUID of the group
        member_id: UUID of the user to block
        admin: Admin performing the block

    Returns:
        Created BlockedMember instance

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If admin or target is not a member
        InsufficientPermissionsError: If admin is not a group admin
        SelfBlockError: If admin tries to block themselves
        CannotBlockAdminError: If target is an admin
        StoreError: If the database fails; nothing is changed
    """
    require_role(group_id=group_id, user_id=admin.id, required_role=GroupRole.ADMIN)

    if str(member_id) == str(admin.id):
        raise SelfBlockError("You cannot block yourself")

    with scoped_transaction('block_member'):
        try:
            membership = (
                GroupMembership.objects
                .select_for_update()
                .select_related('user')
                .get(group_id=group_id, user_id=member_id)
            )
        except GroupMembership.DoesNotExist:
            raise NotMemberError("User is not a member of this group")

        if membership.role == GroupRole.ADMIN:
            raise CannotBlockAdminError("Group admins cannot be blocked")

        member = membership.user
        membership.delete()

        # Outstanding invites would otherwise let the user back in
        (
            PendingInvite.objects
            .filter(group_id=group_id)
            .for_email(member.email)
            .outstanding()
            .delete()
        )

        blocked = BlockedMember.objects.create(
            group_id=group_id,
            user=member,
            blocked_by=admin,
            blocked_at=timezone.now(),
        )

    logger.info(
        'member_blocked',
        group_id=str(group_id),
        user_id=str(member_id),
        blocked_by=str(admin.id),
    )
    return blocked


def unblock_member(*, group_id: UUID, member_id: UUID, admin: User) -> None:
    """
    Lift a block (admin only). Does not restore membership.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If admin is not a member
        InsufficientPermissionsError: If admin is not a group admin
        NotBlockedError: If the user is not blocked
    """
    require_role(group_id=group_id, user_id=admin.id, required_role=GroupRole.ADMIN)

    with scoped_transaction('unblock_member'):
        deleted, _ = (
            BlockedMember.objects
            .filter(group_id=group_id, user_id=member_id)
            .delete()
        )
        if not deleted:
            raise NotBlockedError("User is not blocked in this group")

    logger.info(
        'member_unblocked',
        group_id=str(group_id),
        user_id=str(member_id),
        unblocked_by=str(admin.id),
    )


def list_blocked_members(*, group_id: UUID, admin: User) -> QuerySet[BlockedMember]:
    """
    List blocked users with who blocked them, most recent first.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If admin is not a member
        InsufficientPermissionsError: If admin is not a group admin
    """
    require_role(group_id=group_id, user_id=admin.id, required_role=GroupRole.ADMIN)

    return (
        BlockedMember.objects
        .filter(group_id=group_id)
        .select_related('user', 'blocked_by')
        .order_by('-blocked_at')
    )
