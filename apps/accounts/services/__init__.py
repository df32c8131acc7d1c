"""Services for accounts business logic."""

from .identity import get_user_email, get_user_by_email

__all__ = [
    'get_user_email',
    'get_user_by_email',
]
