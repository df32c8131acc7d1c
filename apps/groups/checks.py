"""
System checks for the groups settings.

Run by ``manage.py check`` and on every management command, so a bad
value stops the process at startup instead of failing each invite.
"""

from django.conf import settings
from django.core.checks import Error, register

from apps.groups.models import GroupRole


@register()
def check_invite_settings(app_configs, **kwargs):
    errors = []

    required_role = getattr(settings, 'GROUP_INVITE_REQUIRED_ROLE', GroupRole.MEMBER)
    if required_role not in GroupRole.values:
        errors.append(Error(
            f"GROUP_INVITE_REQUIRED_ROLE must be one of {GroupRole.values}, got {required_role!r}",
            id='groups.E001',
        ))

    expiry_days = getattr(settings, 'GROUP_INVITE_EXPIRY_DAYS', 7)
    if not isinstance(expiry_days, int) or expiry_days <= 0:
        errors.append(Error(
            f"GROUP_INVITE_EXPIRY_DAYS must be a positive integer, got {expiry_days!r}",
            id='groups.E002',
        ))

    return errors
