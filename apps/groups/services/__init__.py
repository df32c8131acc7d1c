"""
Groups app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and concurrency protection.
"""

from .exceptions import (
    GroupsServiceError,
    InvalidGroupIdError,
    GroupNotFoundError,
    NotMemberError,
    InsufficientPermissionsError,
    AlreadyMemberError,
    InviteNotFoundError,
    InviteExpiredError,
    UserBlockedError,
    SelfBlockError,
    CannotBlockAdminError,
    NotBlockedError,
    LastAdminCannotLeaveError,
    StoreError,
)

from .transactions import scoped_transaction

from .authorization import (
    AuthorizationDecision,
    authorize,
    require_role,
    role_satisfies,
)

from .group_management import (
    create_group,
    get_group_by_id,
    get_group_info,
    get_user_groups,
    update_group,
    delete_group,
)

from .membership_management import (
    get_group_members,
    leave_group,
)

from .role_management import (
    update_member_role,
)

from .invite_management import (
    invite_member,
    accept_invite,
    join_group,
    get_pending_invites,
    purge_expired_invites,
)

from .membership_verification import (
    is_member,
)

from .moderation import (
    block_member,
    unblock_member,
    list_blocked_members,
)


__all__ = [
    # Exceptions
    'GroupsServiceError',
    'InvalidGroupIdError',
    'GroupNotFoundError',
    'NotMemberError',
    'InsufficientPermissionsError',
    'AlreadyMemberError',
    'InviteNotFoundError',
    'InviteExpiredError',
    'UserBlockedError',
    'SelfBlockError',
    'CannotBlockAdminError',
    'NotBlockedError',
    'LastAdminCannotLeaveError',
    'StoreError',

    # Transactions
    'scoped_transaction',

    # Authorization
    'AuthorizationDecision',
    'authorize',
    'require_role',
    'role_satisfies',

    # Group Management
    'create_group',
    'get_group_by_id',
    'get_group_info',
    'get_user_groups',
    'update_group',
    'delete_group',

    # Membership Management
    'get_group_members',
    'leave_group',

    # Role Management
    'update_member_role',

    # Invite Management
    'invite_member',
    'accept_invite',
    'join_group',
    'get_pending_invites',
    'purge_expired_invites',

    # Membership Verification
    'is_member',

    # Moderation
    'block_member',
    'unblock_member',
    'list_blocked_members',
]
