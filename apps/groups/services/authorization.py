"""
Membership authorization guard.

Decides whether a user may act on a group given the role an action
requires. Roles form a closed two-level enumeration, so the check is a
pure comparison over (role, required_role).
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from apps.groups.models import Group, GroupMembership, GroupRole

from .exceptions import (
    GroupNotFoundError,
    InsufficientPermissionsError,
    InvalidGroupIdError,
    NotMemberError,
)

# Denial reasons
INVALID_GROUP_ID = 'invalid-group-id'
GROUP_NOT_FOUND = 'group-not-found'
NOT_A_MEMBER = 'not-a-member'
INSUFFICIENT_ROLE = 'insufficient-role'

_DENIAL_ERRORS = {
    INVALID_GROUP_ID: (InvalidGroupIdError, "Invalid group ID"),
    GROUP_NOT_FOUND: (GroupNotFoundError, "Group not found"),
    NOT_A_MEMBER: (NotMemberError, "You are not a member of this group"),
    INSUFFICIENT_ROLE: (InsufficientPermissionsError, "Only group admins can perform this action"),
}


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: Optional[str] = None
    role: Optional[str] = None

    def __bool__(self):
        return self.allowed


def role_satisfies(role: str, required_role: str) -> bool:
    """Return True if ``role`` is enough for an action requiring ``required_role``."""
    if required_role == GroupRole.MEMBER:
        return role in (GroupRole.MEMBER, GroupRole.ADMIN)
    if required_role == GroupRole.ADMIN:
        return role == GroupRole.ADMIN
    raise ValueError(f"Unknown group role: {required_role}")


def parse_group_id(group_id) -> Optional[UUID]:
    """Return ``group_id`` as a UUID, or None if it is malformed."""
    if isinstance(group_id, UUID):
        return group_id
    try:
        return UUID(str(group_id))
    except (TypeError, ValueError):
        return None


def authorize(*, group_id, user_id, required_role: str = GroupRole.MEMBER) -> AuthorizationDecision:
    """
    Decide whether a user may perform an action on a group.

    Args:
        group_id: Group identifier (UUID or string)
        user_id: Identifier of the calling user
        required_role: Role the action requires ('member' or 'admin')

    Returns:
        AuthorizationDecision; when denied, ``reason`` is one of
        invalid-group-id, group-not-found, not-a-member, insufficient-role
    """
    parsed_id = parse_group_id(group_id)
    if parsed_id is None:
        return AuthorizationDecision(False, INVALID_GROUP_ID)

    role = (
        GroupMembership.objects
        .filter(group_id=parsed_id, user_id=user_id)
        .values_list('role', flat=True)
        .first()
    )

    if role is None:
        if not Group.objects.filter(id=parsed_id).exists():
            return AuthorizationDecision(False, GROUP_NOT_FOUND)
        return AuthorizationDecision(False, NOT_A_MEMBER)

    if not role_satisfies(role, required_role):
        return AuthorizationDecision(False, INSUFFICIENT_ROLE, role)

    return AuthorizationDecision(True, role=role)


def require_role(*, group_id, user_id, required_role: str = GroupRole.MEMBER) -> AuthorizationDecision:
    """
    Like authorize(), but raise the matching domain error when denied.

    Raises:
        InvalidGroupIdError, GroupNotFoundError, NotMemberError,
        InsufficientPermissionsError
    """
    decision = authorize(group_id=group_id, user_id=user_id, required_role=required_role)
    if not decision.allowed:
        error_class, message = _DENIAL_ERRORS[decision.reason]
        raise error_class(message)
    return decision
