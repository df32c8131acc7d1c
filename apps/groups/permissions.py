"""
Custom permission classes for group-scoped routes.

Both classes read the group ID from the ``pk`` URL kwarg and ask the
authorization guard. A malformed ID is a bad request, a missing group is
a 404, and any other denial is a 403; the view never runs.

Usage:
    @action(detail=True, methods=['get'], permission_classes=[IsAuthenticated, IsGroupMember])
    def members(self, request, pk=None):
        ...
"""

from rest_framework import permissions
from rest_framework.exceptions import NotFound, ValidationError

from apps.groups.models import GroupRole
from apps.groups.services.authorization import (
    GROUP_NOT_FOUND,
    INVALID_GROUP_ID,
    authorize,
)


class GroupRolePermission(permissions.BasePermission):
    """Base permission: user must hold ``required_role`` in the group."""

    required_role = GroupRole.MEMBER
    message = 'You must be a member of this group.'
    code = 'not-a-member'

    def has_permission(self, request, view):
        group_id = view.kwargs.get('pk')
        if group_id is None:
            return True

        decision = authorize(
            group_id=group_id,
            user_id=request.user.id,
            required_role=self.required_role,
        )
        if decision.allowed:
            return True

        if decision.reason == INVALID_GROUP_ID:
            raise ValidationError({'group_id': 'Invalid group ID'}, code=INVALID_GROUP_ID)
        if decision.reason == GROUP_NOT_FOUND:
            raise NotFound('Group not found', code=GROUP_NOT_FOUND)

        self.code = decision.reason
        return False


class IsGroupMember(GroupRolePermission):
    """
    Permission: User must be a member of the group (any role).
    """

    required_role = GroupRole.MEMBER
    message = 'You must be a member of this group.'


class IsGroupAdmin(GroupRolePermission):
    """
    Permission: User must be a group admin.
    """

    required_role = GroupRole.ADMIN
    message = 'Only group admins can perform this action.'
