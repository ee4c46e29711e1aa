from contextlib import contextmanager

import structlog
from django.db import DatabaseError, transaction

from ..domain.errors import PersistenceError

logger = structlog.get_logger()


@contextmanager
def atomic_operation(operation):
    """
    Run one scheduling update as a single transaction. Storage failures roll
    everything back and surface as PersistenceError.
    """
    try:
        with transaction.atomic():
            yield
    except DatabaseError as exc:
        logger.error("persistence_failed", operation=operation, error=str(exc))
        raise PersistenceError(operation) from exc
