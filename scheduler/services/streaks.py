import structlog
from django.utils import timezone

from ..data.repos import get_user, get_user_for_update, save_streak_state, streak_state
from ..domain.errors import NotFound
from ..domain.logic import record_activity
from .authz import require_caller
from .tx import atomic_operation

logger = structlog.get_logger()


def get_streak(user):
    user_id = require_caller(user)
    row = get_user(user_id)
    if row is None:
        raise NotFound("User", user_id)
    return streak_state(row)


def record_streak_activity(user, now=None):
    """
    Count a scored review or test towards the caller's streak. Repeated calls
    on the same calendar day leave the streak as it is.
    """
    user_id = require_caller(user)
    now = now or timezone.now()

    with atomic_operation("update streak"):
        row = get_user_for_update(user_id)
        if row is None:
            raise NotFound("User", user_id)
        before = streak_state(row)
        after = record_activity(before, now, tz=timezone.get_current_timezone())
        save_streak_state(row, after, now)

    logger.info("streak_updated",
        user_id=str(user_id),
        previous_streak=before.current_streak,
        current_streak=after.current_streak,
        longest_streak=after.longest_streak,
    )
    return after
