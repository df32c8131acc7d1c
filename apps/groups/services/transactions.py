"""
Scoped transaction helper.

Every multi-statement mutation in the groups app runs inside
``scoped_transaction`` so that it either commits as a whole or leaves
the database exactly as it was.
"""

from contextlib import contextmanager

import structlog
from django.db import DatabaseError, transaction

from .exceptions import StoreError

logger = structlog.get_logger(__name__)


@contextmanager
def scoped_transaction(operation: str):
    """
    Run the enclosed block in one atomic transaction.

    Commits on normal exit. Any exception rolls the transaction back and
    propagates; database errors are logged and re-raised as StoreError.

    Args:
        operation: Name of the operation, used in log events
    """
    try:
        with transaction.atomic():
            yield
    except DatabaseError as e:
        logger.error(
            'store_transaction_failed',
            operation=operation,
            error_type=type(e).__name__,
            error=str(e),
        )
        raise StoreError(f"Database error during {operation}") from e
