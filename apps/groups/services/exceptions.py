"""
Domain-specific exceptions for groups app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses. Each one
carries a short ``code`` that is returned to API clients as the reason.
"""


class GroupsServiceError(Exception):
    """Base exception for all groups service errors."""
    code = 'groups-error'


class InvalidGroupIdError(GroupsServiceError):
    """Raised when a group identifier is not a valid UUID."""
    code = 'invalid-group-id'


class GroupNotFoundError(GroupsServiceError):
    """Raised when a group does not exist or is inaccessible."""
    code = 'group-not-found'


class NotMemberError(GroupsServiceError):
    """Raised when a user has no membership row in the group."""
    code = 'not-a-member'


class InsufficientPermissionsError(GroupsServiceError):
    """Raised when a member's role is too low for an action."""
    code = 'insufficient-role'


class AlreadyMemberError(GroupsServiceError):
    """Raised when inviting someone who is already a member."""
    code = 'already-a-member'


class InviteNotFoundError(GroupsServiceError):
    """Raised when an invite reference does not resolve to an invite for the caller."""
    code = 'invite-not-found'


class InviteExpiredError(GroupsServiceError):
    """Raised when an invite exists but its expiration has passed."""
    code = 'invite-expired'


class UserBlockedError(GroupsServiceError):
    """Raised when a blocked user is invited to or tries to join a group."""
    code = 'user-blocked'


class SelfBlockError(GroupsServiceError):
    """Raised when an admin tries to block themselves."""
    code = 'self-block-forbidden'


class CannotBlockAdminError(GroupsServiceError):
    """Raised when the block target is a group admin."""
    code = 'cannot-block-admin'


class NotBlockedError(GroupsServiceError):
    """Raised when unblocking a user who is not blocked."""
    code = 'not-blocked'


class LastAdminCannotLeaveError(GroupsServiceError):
    """Raised when the only admin of a group would stop being admin."""
    code = 'last-admin'


class StoreError(GroupsServiceError):
    """Raised when the database fails inside a scoped transaction."""
    code = 'store-error'
