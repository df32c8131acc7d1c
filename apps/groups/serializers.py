from rest_framework import serializers
from .models import Group, GroupMembership, GroupRole, PendingInvite, BlockedMember
from apps.accounts.models import User


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    class Meta:
        model = User
        fields = ['id', 'email', 'username']
        read_only_fields = fields


class GroupSerializer(serializers.ModelSerializer):
    """Main serializer for groups."""

    created_by = UserMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()
    user_role = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'description',
            'created_by',
            'member_count',
            'user_role',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_by', 'created_at', 'updated_at']

    def get_member_count(self, obj):
        """Get number of members in the group."""
        return obj.memberships.count()

    def get_user_role(self, obj):
        """Get current user's role in the group."""
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return obj.get_user_role(request.user)
        return None


class GroupCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating groups."""

    class Meta:
        model = Group
        fields = ['name', 'description']


class GroupUpdateSerializer(serializers.Serializer):
    """Serializer for partial group updates."""

    name = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)


class GroupListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    created_by = UserMinimalSerializer(read_only=True)
    member_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'description',
            'created_by',
            'member_count',
            'created_at',
        ]
        read_only_fields = fields


class GroupMemberSerializer(serializers.ModelSerializer):
    """Detailed member information."""

    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = GroupMembership
        fields = ['id', 'user', 'group', 'role', 'joined_at']
        read_only_fields = fields


class PendingInviteSerializer(serializers.ModelSerializer):
    """Invite as returned to the inviter. The token is only shown to the recipient."""

    invited_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = PendingInvite
        fields = ['id', 'group', 'email', 'invited_by', 'created_at', 'expires_at']
        read_only_fields = fields


class ReceivedInviteSerializer(serializers.ModelSerializer):
    """Invite as listed for its recipient."""

    group_name = serializers.CharField(source='group.name', read_only=True)
    invited_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = PendingInvite
        fields = ['id', 'group', 'group_name', 'email', 'token', 'invited_by', 'created_at', 'expires_at']
        read_only_fields = fields


class BlockedMemberSerializer(serializers.ModelSerializer):
    """Blocked user with the admin who blocked them."""

    user = UserMinimalSerializer(read_only=True)
    blocked_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = BlockedMember
        fields = ['id', 'group', 'user', 'blocked_by', 'blocked_at']
        read_only_fields = fields


class InviteMemberSerializer(serializers.Serializer):
    """Serializer for inviting an email address."""

    email = serializers.EmailField(max_length=255, required=True)


class AcceptInviteSerializer(serializers.Serializer):
    """Serializer for accepting an invite by token."""

    token = serializers.CharField(max_length=64, required=True)


class MemberActionSerializer(serializers.Serializer):
    """Serializer for moderation actions targeting one member."""

    member_id = serializers.UUIDField(required=True)


class UpdateMemberRoleSerializer(serializers.Serializer):
    """Serializer for updating member role."""

    user_id = serializers.UUIDField(required=True)
    role = serializers.ChoiceField(choices=GroupRole.choices, required=True)
