"""
Role management service.

Handles member role updates with concurrency protection.
"""

from uuid import UUID

import structlog

from apps.accounts.models import User
from apps.groups.models import GroupMembership, GroupRole

from .authorization import require_role
from .exceptions import LastAdminCannotLeaveError, NotMemberError
from .membership_management import is_last_admin
from .transactions import scoped_transaction

logger = structlog.get_logger(__name__)


def update_member_role(
    *,
    group_id: UUID,
    user_id: UUID,
    new_role: str,
    updated_by: User
) -> GroupMembership:
    """
    Update a member's role (admin only).

    Uses select_for_update to prevent concurrent role changes.
    The group's only admin cannot be demoted.

    Args:
        group_id: UUID of the group
        user_id: UUID of the user whose role to update
        new_role: New role ('admin' or 'member')
        updated_by: User performing the update (must be admin)

    Returns:
        Updated GroupMembership instance

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If target user is not a member
        InsufficientPermissionsError: If updated_by is not admin
        LastAdminCannotLeaveError: If demoting the only admin
        ValueError: If new_role is invalid
    """
    if new_role not in GroupRole.values:
        raise ValueError(f"Invalid role. Must be one of: {GroupRole.values}")

    require_role(group_id=group_id, user_id=updated_by.id, required_role=GroupRole.ADMIN)

    with scoped_transaction('update_member_role'):
        try:
            membership = (
                GroupMembership.objects
                .select_for_update()
                .get(group_id=group_id, user_id=user_id)
            )
        except GroupMembership.DoesNotExist:
            raise NotMemberError("User is not a member of this group")

        demoting_admin = membership.role == GroupRole.ADMIN and new_role == GroupRole.MEMBER
        if demoting_admin and is_last_admin(group_id=group_id):
            raise LastAdminCannotLeaveError("Cannot demote the group's only admin")

        membership.role = new_role
        membership.save(update_fields=['role'])

    logger.info(
        'member_role_updated',
        group_id=str(group_id),
        user_id=str(user_id),
        role=new_role,
        updated_by=str(updated_by.id),
    )
    return membership
