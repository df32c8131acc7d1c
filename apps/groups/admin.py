# ==========================================
# apps/groups/admin.py
# ==========================================

from django.contrib import admin
from django.utils import timezone
from apps.groups.models import Group, GroupMembership, PendingInvite, BlockedMember


class GroupMembershipInline(admin.TabularInline):
    """Inline admin for group memberships."""
    model = GroupMembership
    extra = 0
    fields = ['user', 'role', 'joined_at']
    readonly_fields = ['joined_at']


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """Admin interface for Groups."""

    list_display = [
        'name',
        'created_by',
        'member_count',
        'created_at'
    ]
    list_filter = ['created_at']
    search_fields = ['name', 'description', 'created_by__email']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [GroupMembershipInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'description', 'created_by')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    @admin.display(description='Members')
    def member_count(self, obj):
        """Show number of members."""
        return obj.memberships.count()


@admin.register(GroupMembership)
class GroupMembershipAdmin(admin.ModelAdmin):
    """Admin interface for Group Memberships."""

    list_display = ['user', 'group', 'role', 'joined_at']
    list_filter = ['role', 'joined_at']
    search_fields = ['user__email', 'group__name']
    readonly_fields = ['joined_at']
    date_hierarchy = 'joined_at'
    ordering = ['-joined_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('user', 'group')


@admin.register(PendingInvite)
class PendingInviteAdmin(admin.ModelAdmin):
    """Admin interface for Pending Invites."""

    list_display = ['email', 'group', 'invited_by', 'created_at', 'expires_at', 'is_valid']
    list_filter = ['created_at', 'expires_at']
    search_fields = ['email', 'group__name']
    readonly_fields = ['token', 'created_at', 'accepted_at']
    ordering = ['-created_at']

    actions = ['expire_now']

    @admin.display(boolean=True, description='Valid')
    def is_valid(self, obj):
        return obj.accepted_at is None and not obj.is_expired()

    @admin.action(description='Expire selected invites now')
    def expire_now(self, request, queryset):
        """Cut the lifetime of selected invites short."""
        count = queryset.update(expires_at=timezone.now())
        self.message_user(request, f"Expired {count} invite(s)")

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('group', 'invited_by')


@admin.register(BlockedMember)
class BlockedMemberAdmin(admin.ModelAdmin):
    """Admin interface for Blocked Members."""

    list_display = ['user', 'group', 'blocked_by', 'blocked_at']
    list_filter = ['blocked_at']
    search_fields = ['user__email', 'group__name', 'blocked_by__email']
    readonly_fields = ['blocked_at']
    date_hierarchy = 'blocked_at'
    ordering = ['-blocked_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('user', 'group', 'blocked_by')
