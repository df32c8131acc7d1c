"""
Group management service.

Handles group lifecycle operations with proper transaction safety.
"""

from typing import Optional
from uuid import UUID

import structlog
from django.db.models import Count, Prefetch, QuerySet

from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership, GroupRole

from .authorization import parse_group_id, require_role
from .exceptions import GroupNotFoundError, InvalidGroupIdError
from .transactions import scoped_transaction

logger = structlog.get_logger(__name__)


def create_group(
    *,
    name: str,
    creator: User,
    description: str = '',
) -> Group:
    """
    Create a new group and add the creator as admin.

    Both inserts run in one transaction: a group never exists without
    its creator recorded as admin.

    Args:
        name: Group name
        creator: User creating the group
        description: Optional group description

    Returns:
        Created Group instance

    Raises:
        StoreError: If the database fails; nothing is persisted
    """
    with scoped_transaction('create_group'):
        group = Group.objects.create(
            name=name,
            description=description,
            created_by=creator,
        )
        GroupMembership.objects.create(
            user=creator,
            group=group,
            role=GroupRole.ADMIN,
        )

    logger.info('group_created', group_id=str(group.id), creator_id=str(creator.id))
    return group


def get_group_by_id(*, group_id: UUID) -> Group:
    """
    Get a group by ID with optimized queries.

    Raises:
        InvalidGroupIdError: If group_id is not a valid UUID
        GroupNotFoundError: If group doesn't exist
    """
    parsed_id = parse_group_id(group_id)
    if parsed_id is None:
        raise InvalidGroupIdError("Invalid group ID")

    try:
        return (
            Group.objects
            .select_related('created_by')
            .prefetch_related(
                Prefetch(
                    'memberships',
                    queryset=GroupMembership.objects.select_related('user')
                )
            )
            .get(id=parsed_id)
        )
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


def get_group_info(*, group_id: UUID, user: User) -> Group:
    """
    Get group details for one of its members.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    require_role(group_id=group_id, user_id=user.id, required_role=GroupRole.MEMBER)
    return get_group_by_id(group_id=group_id)


def get_user_groups(*, user: User) -> QuerySet[Group]:
    """Return every group where the user holds a membership, any role."""
    # Subquery keeps the member count over all memberships, not just the user's
    return (
        Group.objects
        .filter(id__in=GroupMembership.objects.filter(user=user).values('group_id'))
        .select_related('created_by')
        .annotate(member_count=Count('memberships'))
    )


def update_group(
    *,
    group_id: UUID,
    user: User,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Group:
    """
    Update group details (admin only).

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
        InsufficientPermissionsError: If user is not admin
    """
    require_role(group_id=group_id, user_id=user.id, required_role=GroupRole.ADMIN)

    with scoped_transaction('update_group'):
        group = Group.objects.select_for_update().get(id=group_id)

        update_fields = ['updated_at']

        if name is not None:
            group.name = name
            update_fields.append('name')

        if description is not None:
            group.description = description
            update_fields.append('description')

        group.save(update_fields=update_fields)

    return group


def delete_group(*, group_id: UUID, user: User) -> None:
    """
    Delete a group (admin only).

    Cascading deletes will automatically remove:
    - All memberships
    - All pending invites
    - All blocked member records

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
        InsufficientPermissionsError: If user is not admin
    """
    require_role(group_id=group_id, user_id=user.id, required_role=GroupRole.ADMIN)

    with scoped_transaction('delete_group'):
        deleted, _ = Group.objects.filter(id=group_id).delete()

    if not deleted:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    logger.info('group_deleted', group_id=str(group_id), deleted_by=str(user.id))
