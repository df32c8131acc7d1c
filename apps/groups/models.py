# ==========================================
# apps/groups/models.py
# ==========================================

from django.db import models
from django.utils import timezone
import uuid
import secrets


class GroupRole(models.TextChoices):
    MEMBER = 'member', 'Member'
    ADMIN = 'admin', 'Admin'


def generate_invite_token():
    return secrets.token_urlsafe(32)


class Group(models.Model):
    """Collaborative group of users."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_groups',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'groups'
        indexes = [
            models.Index(fields=['created_by', 'created_at'], name='groups_creator_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def has_member(self, user):
        return self.memberships.filter(user=user).exists()

    def get_user_role(self, user):
        try:
            return self.memberships.get(user=user).role
        except GroupMembership.DoesNotExist:
            return None

    def is_admin(self, user):
        return self.get_user_role(user) == GroupRole.ADMIN


class GroupMembership(models.Model):
    """User membership in a group with role."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='group_memberships')
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=20, choices=GroupRole.choices, default=GroupRole.MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'group_members'
        constraints = [
            models.UniqueConstraint(fields=['group', 'user'], name='unique_group_member'),
        ]
        indexes = [
            models.Index(fields=['group', 'role'], name='group_members_role_idx'),
            models.Index(fields=['user', 'joined_at'], name='group_members_user_idx'),
        ]
        ordering = ['joined_at']

    def __str__(self):
        return f"{self.user.get_display_name()} in {self.group.name} ({self.role})"


class PendingInviteQuerySet(models.QuerySet):

    def outstanding(self):
        return self.filter(accepted_at__isnull=True)

    def valid(self, now=None):
        return self.outstanding().filter(expires_at__gt=now or timezone.now())

    def expired(self, now=None):
        return self.filter(expires_at__lte=now or timezone.now())

    def for_email(self, email):
        return self.filter(email=email.strip().lower())


class PendingInvite(models.Model):
    """Time-limited email invitation to a group."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='pending_invites')
    email = models.EmailField(max_length=255)
    token = models.CharField(
        max_length=64,
        unique=True,
        editable=False,
        default=generate_invite_token,
    )
    invited_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='sent_group_invites',
    )
    created_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    accepted_at = models.DateTimeField(null=True, blank=True)

    objects = PendingInviteQuerySet.as_manager()

    class Meta:
        db_table = 'pending_invites'
        indexes = [
            models.Index(fields=['group', 'email', 'expires_at'], name='pending_invites_lookup_idx'),
            models.Index(fields=['email', 'expires_at'], name='pending_invites_email_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"Invite for {self.email} to {self.group.name}"

    def save(self, *args, **kwargs):
        self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def is_expired(self, now=None):
        return self.expires_at <= (now or timezone.now())


class BlockedMember(models.Model):
    """User barred from a group by one of its admins."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='blocked_members')
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='group_blocks')
    blocked_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='issued_group_blocks',
    )
    blocked_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'blocked_members'
        constraints = [
            models.UniqueConstraint(fields=['group', 'user'], name='unique_blocked_member'),
        ]
        indexes = [
            models.Index(fields=['group', 'blocked_at'], name='blocked_members_group_idx'),
        ]
        ordering = ['-blocked_at']

    def __str__(self):
        return f"{self.user.get_display_name()} blocked from {self.group.name}"
