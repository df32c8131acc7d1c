"""
Identity lookups used by other apps.

Groups never touch the user table directly; they resolve identities and
registered emails through these helpers.
"""

from typing import Optional
from uuid import UUID

from django.contrib.auth import get_user_model

User = get_user_model()


def get_user_email(*, user_id: UUID) -> Optional[str]:
    """Return the registered email of a user, or None if unknown."""
    return (
        User.objects
        .filter(id=user_id)
        .values_list('email', flat=True)
        .first()
    )


def get_user_by_email(*, email: str) -> Optional[User]:
    """Return the active user registered with this email (case-insensitive)."""
    return User.objects.filter(email__iexact=email.strip(), is_active=True).first()
