"""
Invite management service.

Issues time-limited email invitations and turns them into memberships.

An invite is identified out-of-band by its token. Several invites for the
same (group, email) may coexist; accepting consumes the earliest-created
valid one and discards the other outstanding duplicates. Expired invites
are never deleted at query time, ``purge_expired_invites`` removes them.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.accounts.services import get_user_by_email
from apps.groups.models import BlockedMember, GroupMembership, GroupRole, PendingInvite

from .authorization import parse_group_id, require_role
from .exceptions import (
    AlreadyMemberError,
    InvalidGroupIdError,
    InviteExpiredError,
    InviteNotFoundError,
    UserBlockedError,
)
from .transactions import scoped_transaction

logger = structlog.get_logger(__name__)


def get_invite_expiry() -> timedelta:
    """Lifetime of a newly issued invite."""
    return timedelta(days=settings.GROUP_INVITE_EXPIRY_DAYS)


def invite_member(*, group_id: UUID, user: User, email: str) -> PendingInvite:
    """
    Invite an email address to a group.

    Any member may invite unless GROUP_INVITE_REQUIRED_ROLE is 'admin'.
    Re-inviting the same email creates an additional invite.

    Args:
        group_id: UUID of the group
        user: User sending the invite
        email: Address of the invitee

    Returns:
        Created PendingInvite instance

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
        InsufficientPermissionsError: If user's role is too low
        AlreadyMemberError: If the email belongs to a current member
        UserBlockedError: If the email belongs to a user blocked from the group
    """
    require_role(
        group_id=group_id,
        user_id=user.id,
        required_role=settings.GROUP_INVITE_REQUIRED_ROLE,
    )

    email = email.strip().lower()
    invitee = get_user_by_email(email=email)
    if invitee is not None:
        if GroupMembership.objects.filter(group_id=group_id, user=invitee).exists():
            raise AlreadyMemberError(f"{email} is already a member of this group")
        if BlockedMember.objects.filter(group_id=group_id, user=invitee).exists():
            raise UserBlockedError(f"{email} is blocked from this group")

    now = timezone.now()
    invite = PendingInvite.objects.create(
        group_id=group_id,
        email=email,
        invited_by=user,
        created_at=now,
        expires_at=now + get_invite_expiry(),
    )

    logger.info(
        'invite_created',
        group_id=str(group_id),
        invite_id=str(invite.id),
        invited_by=str(user.id),
        expires_at=invite.expires_at.isoformat(),
    )
    return invite


def accept_invite(*, token: str, user: Optional[User] = None) -> GroupMembership:
    """
    Accept an invite identified by its token.

    The invitee is the registered user whose email the invite was sent
    to. When a caller is given, their email must match the invite.

    Args:
        token: Invite token delivered to the invitee
        user: Authenticated caller, if any

    Returns:
        The invitee's GroupMembership (existing one if already a member)

    Raises:
        InviteNotFoundError: If the token is unknown, addressed to someone
            else, or already used by a user who is no longer a member
        InviteExpiredError: If the invite has expired
        UserBlockedError: If the invitee is blocked from the group
    """
    if not token:
        raise InviteNotFoundError("Invite not found")

    with scoped_transaction('accept_invite'):
        try:
            invite = (
                PendingInvite.objects
                .select_for_update()
                .select_related('group')
                .get(token=token)
            )
        except PendingInvite.DoesNotExist:
            raise InviteNotFoundError("Invite not found")

        invitee = _resolve_invitee(invite, user)
        membership = _consume_invite(invite, invitee)

    return membership


def join_group(*, group_id: UUID, user: User) -> GroupMembership:
    """
    Join a group using an invite sent to the caller's email.

    Uses the earliest-created valid invite for (group, email).

    Raises:
        InvalidGroupIdError: If group_id is not a valid UUID
        InviteNotFoundError: If no invite was ever sent to the caller
        InviteExpiredError: If every invite for the caller has expired
        UserBlockedError: If the caller is blocked from the group
    """
    parsed_id = parse_group_id(group_id)
    if parsed_id is None:
        raise InvalidGroupIdError("Invalid group ID")

    with scoped_transaction('join_group'):
        invites = (
            PendingInvite.objects
            .select_for_update()
            .filter(group_id=parsed_id)
            .for_email(user.email)
            .outstanding()
            .order_by('created_at')
        )
        invite = invites.valid().first()

        if invite is None:
            membership = GroupMembership.objects.filter(group_id=parsed_id, user=user).first()
            if membership is not None:
                return membership
            if invites.exists():
                raise InviteExpiredError("Your invitation to this group has expired")
            raise InviteNotFoundError("No invitation found for this group")

        membership = _consume_invite(invite, user)

    return membership


def get_pending_invites(*, user: User) -> QuerySet[PendingInvite]:
    """Return unexpired invites addressed to the user's email, newest first."""
    return (
        PendingInvite.objects
        .valid()
        .for_email(user.email)
        .select_related('group', 'invited_by')
        .order_by('-created_at')
    )


def purge_expired_invites(*, now: Optional[datetime] = None) -> int:
    """
    Delete every expired invite that was never accepted.

    Accepted invites are kept as a record of how members joined.

    Returns:
        Number of invites deleted
    """
    deleted, _ = PendingInvite.objects.outstanding().expired(now).delete()
    logger.info('expired_invites_purged', count=deleted)
    return deleted


def _resolve_invitee(invite: PendingInvite, user: Optional[User]) -> User:
    if user is not None:
        if user.email.strip().lower() != invite.email:
            raise InviteNotFoundError("Invite not found")
        return user

    invitee = get_user_by_email(email=invite.email)
    if invitee is None:
        raise InviteNotFoundError("No registered account matches this invite")
    return invitee


def _consume_invite(invite: PendingInvite, invitee: User) -> GroupMembership:
    """Turn a locked invite into a membership. Caller owns the transaction."""
    now = timezone.now()

    if invite.accepted_at is not None:
        # Replaying a used invite only succeeds while the membership it created exists
        try:
            return GroupMembership.objects.get(group_id=invite.group_id, user=invitee)
        except GroupMembership.DoesNotExist:
            raise InviteNotFoundError("This invite has already been used")

    if invite.is_expired(now):
        raise InviteExpiredError("This invite has expired")

    if BlockedMember.objects.filter(group_id=invite.group_id, user=invitee).exists():
        raise UserBlockedError("You are blocked from this group")

    # Unique (group, user) makes a concurrent second acceptance return the existing row
    membership, created = GroupMembership.objects.get_or_create(
        group_id=invite.group_id,
        user=invitee,
        defaults={'role': GroupRole.MEMBER},
    )

    invite.accepted_at = now
    invite.save(update_fields=['accepted_at'])

    (
        PendingInvite.objects
        .filter(group_id=invite.group_id, email=invite.email)
        .outstanding()
        .exclude(id=invite.id)
        .delete()
    )

    logger.info(
        'invite_accepted',
        group_id=str(invite.group_id),
        invite_id=str(invite.id),
        user_id=str(invitee.id),
        already_member=not created,
    )
    return membership
