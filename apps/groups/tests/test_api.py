import pytest
from uuid import uuid4
from unittest.mock import patch
from django.db import DatabaseError
from django.urls import reverse
from rest_framework import status
from apps.groups.models import BlockedMember, Group, GroupMembership, GroupRole, PendingInvite


# =============================================================================
# Group CRUD Tests
# =============================================================================

@pytest.mark.django_db
class TestGroupList:
    """Tests for GET /api/groups/"""

    def test_list_groups_returns_user_groups(self, admin_client, group):
        """List returns only groups where user is a member."""
        url = reverse('groups:group-list')
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] == 1
        assert len(response.data['groups']) == 1
        assert response.data['groups'][0]['name'] == group.name
        assert response.data['groups'][0]['member_count'] == 1

    def test_list_groups_excludes_non_member_groups(self, outsider_client, group):
        """Non-members don't see group in list."""
        url = reverse('groups:group-list')
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['groups'] == []

    def test_list_groups_unauthenticated(self, api_client):
        """Unauthenticated users cannot list groups."""
        url = reverse('groups:group-list')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['success'] == 0


@pytest.mark.django_db
class TestGroupCreate:
    """Tests for POST /api/groups/"""

    def test_create_group(self, admin_client, group_admin):
        """Creator becomes the group's admin."""
        url = reverse('groups:group-list')
        data = {
            'name': 'New Reading Club',
            'description': 'A new group for testing',
        }
        response = admin_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['success'] == 1
        assert response.data['group']['user_role'] == GroupRole.ADMIN

        group = Group.objects.get(name='New Reading Club')
        assert group.created_by == group_admin
        assert GroupMembership.objects.filter(
            group=group,
            user=group_admin,
            role=GroupRole.ADMIN
        ).exists()

    def test_create_group_without_name(self, admin_client):
        url = reverse('groups:group-list')
        response = admin_client.post(url, {'description': 'Nameless'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['success'] == 0
        assert 'name' in response.data['errors']

    def test_create_group_store_failure(self, admin_client):
        """A failed write surfaces as a generic 500 envelope."""
        url = reverse('groups:group-list')
        with patch(
            'apps.groups.services.group_management.GroupMembership.objects.create',
            side_effect=DatabaseError('connection lost'),
        ):
            response = admin_client.post(url, {'name': 'Broken'}, format='json')

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data == {
            'success': 0,
            'message': 'Internal server error',
            'code': 'store-error',
        }
        assert not Group.objects.filter(name='Broken').exists()

    def test_create_group_unauthenticated(self, api_client):
        url = reverse('groups:group-list')
        response = api_client.post(url, {'name': 'Test'}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestGroupRetrieve:
    """Tests for GET /api/groups/{id}/"""

    def test_retrieve_group_as_member(self, member_client, group_with_members):
        url = reverse('groups:group-detail', kwargs={'pk': group_with_members.id})
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['group']['name'] == group_with_members.name
        assert response.data['group']['member_count'] == 3
        assert response.data['group']['user_role'] == GroupRole.MEMBER

    def test_retrieve_group_as_non_member(self, outsider_client, group):
        url = reverse('groups:group-detail', kwargs={'pk': group.id})
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['success'] == 0
        assert response.data['code'] == 'not-a-member'
        assert 'group' not in response.data

    def test_retrieve_missing_group(self, admin_client):
        url = reverse('groups:group-detail', kwargs={'pk': uuid4()})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['success'] == 0

    def test_retrieve_malformed_group_id(self, admin_client):
        url = reverse('groups:group-detail', kwargs={'pk': 'not-a-uuid'})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['success'] == 0


@pytest.mark.django_db
class TestGroupUpdate:
    """Tests for PATCH /api/groups/{id}/"""

    def test_update_group_as_admin(self, admin_client, group):
        url = reverse('groups:group-detail', kwargs={'pk': group.id})
        response = admin_client.patch(url, {'name': 'Updated Name'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        group.refresh_from_db()
        assert group.name == 'Updated Name'

    def test_update_group_as_member_forbidden(self, member_client, group_with_members):
        url = reverse('groups:group-detail', kwargs={'pk': group_with_members.id})
        response = member_client.patch(url, {'name': 'Hacked'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'insufficient-role'
        group_with_members.refresh_from_db()
        assert group_with_members.name == 'Test Reading Club'


@pytest.mark.django_db
class TestGroupDelete:
    """Tests for DELETE /api/groups/{id}/"""

    def test_delete_group_as_admin(self, admin_client, group):
        url = reverse('groups:group-detail', kwargs={'pk': group.id})
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] == 1
        assert not Group.objects.filter(id=group.id).exists()

    def test_delete_group_as_member_forbidden(self, member_client, group_with_members):
        url = reverse('groups:group-detail', kwargs={'pk': group_with_members.id})
        response = member_client.delete(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Group.objects.filter(id=group_with_members.id).exists()


# =============================================================================
# Membership Tests
# =============================================================================

@pytest.mark.django_db
class TestGroupMembers:
    """Tests for GET /api/groups/{id}/members/"""

    def test_list_members(self, member_client, group_with_members):
        url = reverse('groups:group-members', kwargs={'pk': group_with_members.id})
        response = member_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] == 1
        assert len(response.data['members']) == 3
        assert response.data['members'][0]['role'] == GroupRole.ADMIN

    def test_non_member_gets_no_member_data(self, outsider_client, group_with_members):
        url = reverse('groups:group-members', kwargs={'pk': group_with_members.id})
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['success'] == 0
        assert 'members' not in response.data

    def test_members_of_missing_group(self, member_client):
        url = reverse('groups:group-members', kwargs={'pk': uuid4()})
        response = member_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestGroupLeave:
    """Tests for POST /api/groups/{id}/leave/"""

    def test_leave_group_as_member(self, member_client, group_with_members, member_user):
        url = reverse('groups:group-leave', kwargs={'pk': group_with_members.id})
        response = member_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert not group_with_members.has_member(member_user)

    def test_last_admin_cannot_leave(self, admin_client, group):
        url = reverse('groups:group-leave', kwargs={'pk': group.id})
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'last-admin'


@pytest.mark.django_db
class TestUpdateMemberRole:
    """Tests for POST /api/groups/{id}/update-member-role/"""

    def test_promote_member(self, admin_client, group_with_members, member_user):
        url = reverse('groups:group-update-member-role', kwargs={'pk': group_with_members.id})
        response = admin_client.post(
            url,
            {'user_id': str(member_user.id), 'role': GroupRole.ADMIN},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['membership']['role'] == GroupRole.ADMIN

    def test_invalid_role(self, admin_client, group_with_members, member_user):
        url = reverse('groups:group-update-member-role', kwargs={'pk': group_with_members.id})
        response = admin_client.post(
            url,
            {'user_id': str(member_user.id), 'role': 'owner'},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_member_cannot_update_roles(self, member_client, group_with_members, co_admin):
        url = reverse('groups:group-update-member-role', kwargs={'pk': group_with_members.id})
        response = member_client.post(
            url,
            {'user_id': str(co_admin.id), 'role': GroupRole.MEMBER},
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Invite Tests
# =============================================================================

@pytest.mark.django_db
class TestInvite:
    """Tests for POST /api/groups/{id}/invite/"""

    def test_member_invites_email(self, member_client, group_with_members, member_user):
        url = reverse('groups:group-invite', kwargs={'pk': group_with_members.id})
        response = member_client.post(url, {'email': 'new@example.com'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['invite']['email'] == 'new@example.com'
        assert 'token' not in response.data['invite']
        assert PendingInvite.objects.filter(
            group=group_with_members,
            email='new@example.com',
            invited_by=member_user
        ).exists()

    def test_inviter_cannot_accept_on_behalf_of_invitee(self, member_client, group_with_members, outsider):
        """Only the recipient ever sees the token, so nobody is enrolled without acting."""
        url = reverse('groups:group-invite', kwargs={'pk': group_with_members.id})
        response = member_client.post(url, {'email': outsider.email}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert 'token' not in response.data['invite']
        assert not group_with_members.has_member(outsider)

    def test_recipient_accepts_with_token_from_pending_list(self, admin_client, outsider_client, group, outsider):
        invite_url = reverse('groups:group-invite', kwargs={'pk': group.id})
        admin_client.post(invite_url, {'email': outsider.email}, format='json')

        pending = outsider_client.get(reverse('groups:pending-invites'))
        token = pending.data['invites'][0]['token']
        response = outsider_client.post(reverse('groups:accept-invite'), {'token': token}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert group.has_member(outsider)

    def test_invalid_email(self, admin_client, group):
        url = reverse('groups:group-invite', kwargs={'pk': group.id})
        response = admin_client.post(url, {'email': 'not-an-email'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not PendingInvite.objects.exists()

    def test_invite_existing_member(self, admin_client, group_with_members, member_user):
        url = reverse('groups:group-invite', kwargs={'pk': group_with_members.id})
        response = admin_client.post(url, {'email': member_user.email}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'already-a-member'

    def test_non_member_cannot_invite(self, outsider_client, group):
        url = reverse('groups:group-invite', kwargs={'pk': group.id})
        response = outsider_client.post(url, {'email': 'new@example.com'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not PendingInvite.objects.exists()


@pytest.mark.django_db
class TestAcceptInvite:
    """Tests for POST /api/groups/invites/accept/"""

    def test_accept_anonymously(self, api_client, invite, invitee, group):
        url = reverse('groups:accept-invite')
        response = api_client.post(url, {'token': invite.token}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['membership']['user']['id'] == str(invitee.id)
        assert group.has_member(invitee)

    def test_accept_as_invitee(self, invitee_client, invite, invitee, group):
        url = reverse('groups:accept-invite')
        response = invitee_client.post(url, {'token': invite.token}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert group.get_user_role(invitee) == GroupRole.MEMBER

    def test_accept_unknown_token(self, api_client, db):
        url = reverse('groups:accept-invite')
        response = api_client.post(url, {'token': 'nope'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'invite-not-found'

    def test_accept_expired(self, api_client, expired_invite, invitee, group):
        url = reverse('groups:accept-invite')
        response = api_client.post(url, {'token': expired_invite.token}, format='json')

        assert response.status_code == status.HTTP_410_GONE
        assert response.data['code'] == 'invite-expired'
        assert not group.has_member(invitee)

    def test_accept_missing_token(self, api_client, db):
        url = reverse('groups:accept-invite')
        response = api_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['success'] == 0


@pytest.mark.django_db
class TestGroupJoin:
    """Tests for POST /api/groups/{id}/join/"""

    def test_join_with_invite(self, invitee_client, group, invite, invitee):
        url = reverse('groups:group-join', kwargs={'pk': group.id})
        response = invitee_client.post(url)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['membership']['role'] == GroupRole.MEMBER
        assert group.has_member(invitee)

    def test_join_without_invite(self, outsider_client, group):
        url = reverse('groups:group-join', kwargs={'pk': group.id})
        response = outsider_client.post(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_join_with_expired_invite(self, invitee_client, group, expired_invite):
        url = reverse('groups:group-join', kwargs={'pk': group.id})
        response = invitee_client.post(url)

        assert response.status_code == status.HTTP_410_GONE

    def test_join_malformed_group_id(self, invitee_client):
        url = reverse('groups:group-join', kwargs={'pk': 'bad-id'})
        response = invitee_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestPendingInvites:
    """Tests for GET /api/groups/invites/pending/"""

    def test_lists_callers_invites(self, invitee_client, invite, expired_invite, group):
        url = reverse('groups:pending-invites')
        response = invitee_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['invites']) == 1
        assert response.data['invites'][0]['group_name'] == group.name

    def test_requires_authentication(self, api_client):
        url = reverse('groups:pending-invites')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Membership Verification Tests
# =============================================================================

@pytest.mark.django_db
class TestVerifyMembership:
    """Tests for GET /api/groups/{id}/verify-membership/"""

    def test_member(self, admin_client, group):
        url = reverse('groups:group-verify-membership', kwargs={'pk': group.id})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'success': 1, 'isMember': True}

    def test_invited_user(self, invitee_client, group, invite):
        url = reverse('groups:group-verify-membership', kwargs={'pk': group.id})
        response = invitee_client.get(url)

        assert response.data['isMember'] is True

    def test_expired_invite(self, invitee_client, group, expired_invite):
        url = reverse('groups:group-verify-membership', kwargs={'pk': group.id})
        response = invitee_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['isMember'] is False

    def test_outsider(self, outsider_client, group):
        url = reverse('groups:group-verify-membership', kwargs={'pk': group.id})
        response = outsider_client.get(url)

        assert response.data['isMember'] is False

    def test_malformed_group_id(self, outsider_client):
        url = reverse('groups:group-verify-membership', kwargs={'pk': 'xyz'})
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'invalid-group-id'


# =============================================================================
# Moderation Tests
# =============================================================================

@pytest.mark.django_db
class TestBlock:
    """Tests for POST /api/groups/{id}/block/"""

    def test_block_member(self, admin_client, group_with_members, member_user):
        url = reverse('groups:group-block', kwargs={'pk': group_with_members.id})
        response = admin_client.post(url, {'member_id': str(member_user.id)}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['success'] == 1
        assert not group_with_members.has_member(member_user)
        assert BlockedMember.objects.filter(group=group_with_members, user=member_user).exists()

    def test_block_self(self, admin_client, group, group_admin):
        url = reverse('groups:group-block', kwargs={'pk': group.id})
        response = admin_client.post(url, {'member_id': str(group_admin.id)}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'self-block-forbidden'

    def test_block_admin(self, admin_client, group_with_members, co_admin):
        url = reverse('groups:group-block', kwargs={'pk': group_with_members.id})
        response = admin_client.post(url, {'member_id': str(co_admin.id)}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'cannot-block-admin'

    def test_block_non_member(self, admin_client, group, outsider):
        url = reverse('groups:group-block', kwargs={'pk': group.id})
        response = admin_client.post(url, {'member_id': str(outsider.id)}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'not-a-member'

    def test_block_as_member_forbidden(self, member_client, group_with_members, co_admin):
        url = reverse('groups:group-block', kwargs={'pk': group_with_members.id})
        response = member_client.post(url, {'member_id': str(co_admin.id)}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not BlockedMember.objects.exists()

    def test_block_malformed_member_id(self, admin_client, group):
        url = reverse('groups:group-block', kwargs={'pk': group.id})
        response = admin_client.post(url, {'member_id': 'abc'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'member_id' in response.data['errors']


@pytest.mark.django_db
class TestUnblockAndList:
    """Tests for POST /api/groups/{id}/unblock/ and GET /api/groups/{id}/blocked/"""

    def test_blocked_list_and_unblock(self, admin_client, group_with_members, member_user):
        block_url = reverse('groups:group-block', kwargs={'pk': group_with_members.id})
        admin_client.post(block_url, {'member_id': str(member_user.id)}, format='json')

        list_url = reverse('groups:group-blocked', kwargs={'pk': group_with_members.id})
        response = admin_client.get(list_url)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['blockedMembers']) == 1
        assert response.data['blockedMembers'][0]['user']['email'] == member_user.email

        unblock_url = reverse('groups:group-unblock', kwargs={'pk': group_with_members.id})
        response = admin_client.post(unblock_url, {'member_id': str(member_user.id)}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert not BlockedMember.objects.exists()
        assert not group_with_members.has_member(member_user)

    def test_unblock_not_blocked(self, admin_client, group_with_members, member_user):
        url = reverse('groups:group-unblock', kwargs={'pk': group_with_members.id})
        response = admin_client.post(url, {'member_id': str(member_user.id)}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'not-blocked'

    def test_blocked_list_as_member_forbidden(self, member_client, group_with_members):
        url = reverse('groups:group-blocked', kwargs={'pk': group_with_members.id})
        response = member_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert 'blockedMembers' not in response.data
