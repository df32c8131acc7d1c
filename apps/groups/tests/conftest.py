import pytest
from datetime import timedelta
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership, GroupRole, PendingInvite


def client_for(user):
    """Return an API client authenticated as ``user`` with a JWT."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def group_admin(db):
    """Create and return the user who creates the test group."""
    return User.objects.create_user(
        email='admin@example.com',
        password='TestPass123!',
        username='group_admin',
    )


@pytest.fixture
def co_admin(db):
    """Create and return a second admin user."""
    return User.objects.create_user(
        email='coadmin@example.com',
        password='TestPass123!',
        username='co_admin',
    )


@pytest.fixture
def member_user(db):
    """Create and return a member user."""
    return User.objects.create_user(
        email='member@example.com',
        password='TestPass123!',
        username='member',
    )


@pytest.fixture
def invitee(db):
    """Create and return a registered user who has not joined yet."""
    return User.objects.create_user(
        email='b@example.com',
        password='TestPass123!',
        username='invitee',
    )


@pytest.fixture
def outsider(db):
    """Create and return a user not in any group."""
    return User.objects.create_user(
        email='other@example.com',
        password='TestPass123!',
        username='outsider',
    )


@pytest.fixture
def admin_client(group_admin):
    """Return API client authenticated as the group admin."""
    return client_for(group_admin)


@pytest.fixture
def member_client(member_user):
    """Return API client authenticated as a regular member."""
    return client_for(member_user)


@pytest.fixture
def invitee_client(invitee):
    """Return API client authenticated as the invitee."""
    return client_for(invitee)


@pytest.fixture
def outsider_client(outsider):
    """Return API client authenticated as a non-member."""
    return client_for(outsider)


@pytest.fixture
def group(db, group_admin):
    """Create and return a test group with its creator as admin."""
    group = Group.objects.create(
        name='Test Reading Club',
        description='A group for testing',
        created_by=group_admin,
    )
    GroupMembership.objects.create(
        user=group_admin,
        group=group,
        role=GroupRole.ADMIN,
    )
    return group


@pytest.fixture
def group_with_members(group, co_admin, member_user):
    """Group with creator admin, second admin and a member."""
    GroupMembership.objects.create(
        user=co_admin,
        group=group,
        role=GroupRole.ADMIN,
    )
    GroupMembership.objects.create(
        user=member_user,
        group=group,
        role=GroupRole.MEMBER,
    )
    return group


@pytest.fixture
def make_invite(db, group_admin):
    """Factory for invites; ``days`` may be negative for expired ones."""

    def _make_invite(group, email, days=7, invited_by=None, created_at=None):
        created_at = created_at or timezone.now()
        return PendingInvite.objects.create(
            group=group,
            email=email,
            invited_by=invited_by or group_admin,
            created_at=created_at,
            expires_at=timezone.now() + timedelta(days=days),
        )

    return _make_invite


@pytest.fixture
def invite(group, invitee, make_invite):
    """Valid invite for the invitee to the test group."""
    return make_invite(group, invitee.email)


@pytest.fixture
def expired_invite(group, invitee, make_invite):
    """Expired invite for the invitee to the test group."""
    return make_invite(group, invitee.email, days=-1)
