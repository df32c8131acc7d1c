from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import (
    GroupSerializer,
    GroupCreateSerializer,
    GroupUpdateSerializer,
    GroupListSerializer,
    GroupMemberSerializer,
    PendingInviteSerializer,
    ReceivedInviteSerializer,
    BlockedMemberSerializer,
    InviteMemberSerializer,
    AcceptInviteSerializer,
    MemberActionSerializer,
    UpdateMemberRoleSerializer,
)
from .permissions import IsGroupAdmin, IsGroupMember

from apps.groups.services import (
    create_group,
    get_group_info,
    get_user_groups,
    update_group,
    delete_group,
    get_group_members,
    leave_group,
    update_member_role,
    invite_member,
    accept_invite,
    join_group,
    get_pending_invites,
    is_member,
    block_member,
    unblock_member,
    list_blocked_members,
    # Exceptions
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
)


def error_response(exc: GroupsServiceError, status_code: int) -> Response:
    """Failure envelope for a domain error."""
    return Response(
        {'success': 0, 'message': str(exc), 'code': exc.code},
        status=status_code,
    )


# Status codes for errors raised by the authorization guard inside services
ACCESS_ERROR_STATUS = (
    (InvalidGroupIdError, status.HTTP_400_BAD_REQUEST),
    (GroupNotFoundError, status.HTTP_404_NOT_FOUND),
    (NotMemberError, status.HTTP_403_FORBIDDEN),
    (InsufficientPermissionsError, status.HTTP_403_FORBIDDEN),
)


def access_error_response(exc: GroupsServiceError) -> Response:
    for error_class, status_code in ACCESS_ERROR_STATUS:
        if isinstance(exc, error_class):
            return error_response(exc, status_code)
    raise exc


class GroupViewSet(viewsets.GenericViewSet):
    """
    ViewSet for groups, their members, invites and moderation.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get all groups the user is a member of
    create: Create a new group (creator becomes admin)
    retrieve: Get a specific group (member only)
    partial_update: Update a group (admin only)
    destroy: Delete a group (admin only)
    """

    serializer_class = GroupSerializer
    permission_classes = [IsAuthenticated]

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return GroupListSerializer
        elif self.action == 'create':
            return GroupCreateSerializer
        elif self.action == 'partial_update':
            return GroupUpdateSerializer
        return GroupSerializer

    def get_permissions(self):
        """Set permissions based on action."""
        if self.action in ['partial_update', 'destroy', 'block', 'unblock', 'blocked', 'update_member_role']:
            return [IsAuthenticated(), IsGroupAdmin()]
        if self.action in ['retrieve', 'members', 'invite', 'leave']:
            return [IsAuthenticated(), IsGroupMember()]
        return [IsAuthenticated()]

    def list(self, request):
        """Get all groups where user is a member."""
        groups = get_user_groups(user=request.user)
        serializer = GroupListSerializer(groups, many=True, context={'request': request})
        return Response({'success': 1, 'groups': serializer.data})

    def create(self, request):
        """Create a new group."""
        serializer = GroupCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        group = create_group(
            name=serializer.validated_data['name'],
            creator=request.user,
            description=serializer.validated_data.get('description', ''),
        )

        output_serializer = GroupSerializer(group, context={'request': request})
        return Response(
            {'success': 1, 'group': output_serializer.data},
            status=status.HTTP_201_CREATED
        )

    def retrieve(self, request, pk=None):
        """Get group details."""
        try:
            group = get_group_info(group_id=pk, user=request.user)
        except GroupsServiceError as e:
            return access_error_response(e)

        serializer = GroupSerializer(group, context={'request': request})
        return Response({'success': 1, 'group': serializer.data})

    def partial_update(self, request, pk=None):
        """Update group name or description (admin only)."""
        serializer = GroupUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            group = update_group(group_id=pk, user=request.user, **serializer.validated_data)
        except GroupsServiceError as e:
            return access_error_response(e)

        output_serializer = GroupSerializer(group, context={'request': request})
        return Response({'success': 1, 'group': output_serializer.data})

    def destroy(self, request, pk=None):
        """Delete a group (admin only)."""
        try:
            delete_group(group_id=pk, user=request.user)
        except GroupsServiceError as e:
            return access_error_response(e)

        return Response({'success': 1, 'message': 'Group deleted successfully'})

    @action(detail=True, methods=['get'])
    def members(self, request, pk=None):
        """Get all members of the group."""
        try:
            memberships = get_group_members(group_id=pk, user=request.user)
        except GroupsServiceError as e:
            return access_error_response(e)

        serializer = GroupMemberSerializer(memberships, many=True)
        return Response({'success': 1, 'members': serializer.data})

    @action(detail=True, methods=['post'])
    def invite(self, request, pk=None):
        """Invite an email address to the group."""
        serializer = InviteMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            invite = invite_member(
                group_id=pk,
                user=request.user,
                email=serializer.validated_data['email'],
            )
        except AlreadyMemberError as e:
            return error_response(e, status.HTTP_409_CONFLICT)
        except UserBlockedError as e:
            return error_response(e, status.HTTP_403_FORBIDDEN)
        except GroupsServiceError as e:
            return access_error_response(e)

        output_serializer = PendingInviteSerializer(invite)
        return Response(
            {'success': 1, 'invite': output_serializer.data},
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'])
    def join(self, request, pk=None):
        """Join a group using an invite sent to the caller's email."""
        try:
            membership = join_group(group_id=pk, user=request.user)
        except InvalidGroupIdError as e:
            return error_response(e, status.HTTP_400_BAD_REQUEST)
        except InviteNotFoundError as e:
            return error_response(e, status.HTTP_404_NOT_FOUND)
        except InviteExpiredError as e:
            return error_response(e, status.HTTP_410_GONE)
        except UserBlockedError as e:
            return error_response(e, status.HTTP_403_FORBIDDEN)

        output_serializer = GroupMemberSerializer(membership)
        return Response(
            {'success': 1, 'membership': output_serializer.data},
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'])
    def leave(self, request, pk=None):
        """Leave a group."""
        try:
            leave_group(group_id=pk, user=request.user)
        except LastAdminCannotLeaveError as e:
            return error_response(e, status.HTTP_400_BAD_REQUEST)
        except GroupsServiceError as e:
            return access_error_response(e)

        return Response({'success': 1, 'message': 'Successfully left the group'})

    @action(detail=True, methods=['get'], url_path='verify-membership')
    def verify_membership(self, request, pk=None):
        """Check whether the caller is a member or holds a live invite."""
        try:
            result = is_member(group_id=pk, user_id=request.user.id)
        except InvalidGroupIdError as e:
            return error_response(e, status.HTTP_400_BAD_REQUEST)

        return Response({'success': 1, 'isMember': result})

    @action(detail=True, methods=['post'])
    def block(self, request, pk=None):
        """Block a member (admin only)."""
        serializer = MemberActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            block_member(
                group_id=pk,
                member_id=serializer.validated_data['member_id'],
                admin=request.user,
            )
        except (SelfBlockError, CannotBlockAdminError) as e:
            return error_response(e, status.HTTP_400_BAD_REQUEST)
        except NotMemberError as e:
            return error_response(e, status.HTTP_404_NOT_FOUND)
        except GroupsServiceError as e:
            return access_error_response(e)

        return Response({'success': 1, 'message': 'Member blocked successfully'})

    @action(detail=True, methods=['post'])
    def unblock(self, request, pk=None):
        """Unblock a member (admin only). Membership is not restored."""
        serializer = MemberActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            unblock_member(
                group_id=pk,
                member_id=serializer.validated_data['member_id'],
                admin=request.user,
            )
        except NotBlockedError as e:
            return error_response(e, status.HTTP_400_BAD_REQUEST)
        except GroupsServiceError as e:
            return access_error_response(e)

        return Response({'success': 1, 'message': 'Member unblocked successfully'})

    @action(detail=True, methods=['get'])
    def blocked(self, request, pk=None):
        """List blocked members (admin only)."""
        try:
            blocked = list_blocked_members(group_id=pk, admin=request.user)
        except GroupsServiceError as e:
            return access_error_response(e)

        serializer = BlockedMemberSerializer(blocked, many=True)
        return Response({'success': 1, 'blockedMembers': serializer.data})

    @action(detail=True, methods=['post'], url_path='update-member-role')
    def update_member_role(self, request, pk=None):
        """Update member's role (admin only)."""
        serializer = UpdateMemberRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            membership = update_member_role(
                group_id=pk,
                user_id=serializer.validated_data['user_id'],
                new_role=serializer.validated_data['role'],
                updated_by=request.user
            )
        except LastAdminCannotLeaveError as e:
            return error_response(e, status.HTTP_400_BAD_REQUEST)
        except NotMemberError as e:
            return error_response(e, status.HTTP_404_NOT_FOUND)
        except GroupsServiceError as e:
            return access_error_response(e)

        output_serializer = GroupMemberSerializer(membership)
        return Response({'success': 1, 'membership': output_serializer.data})


@extend_schema(
    request=AcceptInviteSerializer,
    responses={201: GroupMemberSerializer},
    description="Accept a group invite by its token. Authentication is optional.",
    tags=['groups'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def accept_invite_view(request):
    """Accept an invite using the token delivered to the invitee."""
    serializer = AcceptInviteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    caller = request.user if request.user.is_authenticated else None

    try:
        membership = accept_invite(token=serializer.validated_data['token'], user=caller)
    except InviteNotFoundError as e:
        return error_response(e, status.HTTP_404_NOT_FOUND)
    except InviteExpiredError as e:
        return error_response(e, status.HTTP_410_GONE)
    except UserBlockedError as e:
        return error_response(e, status.HTTP_403_FORBIDDEN)

    output_serializer = GroupMemberSerializer(membership)
    return Response(
        {'success': 1, 'membership': output_serializer.data},
        status=status.HTTP_201_CREATED
    )


@extend_schema(
    responses={200: ReceivedInviteSerializer(many=True)},
    description="Get unexpired invites addressed to the current user's email.",
    tags=['groups'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pending_invites(request):
    """Get the caller's pending invites."""
    invites = get_pending_invites(user=request.user)
    serializer = ReceivedInviteSerializer(invites, many=True)
    return Response({'success': 1, 'invites': serializer.data})
