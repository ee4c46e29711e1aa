import structlog

from ..data.repos import get_or_create_schedule, save_schedule
from ..domain.logic import validate_intervals
from .authz import require_caller
from .tx import atomic_operation

logger = structlog.get_logger()


def get_schedule(user):
    """The caller's review schedule row, created with defaults on first access."""
    user_id = require_caller(user)
    with atomic_operation("fetch review schedule"):
        schedule, created = get_or_create_schedule(user_id)
    if created:
        logger.info("review_schedule_created",
            user_id=str(user_id),
            intervals=schedule.intervals,
        )
    return schedule


def get_or_create_interval_table(user):
    return list(get_schedule(user).intervals)


def update_interval_table(user, intervals, name=None, description=None):
    user_id = require_caller(user)
    intervals = validate_intervals(intervals)

    with atomic_operation("update review schedule"):
        schedule = save_schedule(user_id, intervals, name=name, description=description)

    logger.info("review_schedule_updated",
        user_id=str(user_id),
        intervals=list(intervals),
        name=schedule.name,
    )
    return schedule
