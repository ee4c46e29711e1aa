from django.utils import timezone
import structlog
from ..data.repos import (
    card_state,
    create_review_log,
    delete_reviews_between,
    get_card,
    get_card_for_update,
    increment_test_counters,
    save_card_state,
    touch_last_test_date,
)
from ..domain.errors import NotFound, SchedulingError
from ..domain.logic import apply_outcome, purge_window, reactivate
from ..utils.time import start_of_day, to_local_iso
from .authz import ensure_card_access, require_caller
from .schedules import get_or_create_interval_table
from .streaks import record_streak_activity
from .tx import atomic_operation

logger = structlog.get_logger()


def submit_review_outcome(user, card_id, is_success: bool, now=None):
    user_id = require_caller(user)
    logger.info("review_received",
        user_id=str(user_id),
        card_id=str(card_id),
        is_success=is_success,
    )
    ensure_card_access(user_id, card_id)

    now = now or timezone.now()
    intervals = get_or_create_interval_table(user)

    # Card fields and the log entry commit together or not at all
    with atomic_operation("update review"):
        card = get_card_for_update(card_id)
        if card is None:
            raise NotFound("Card", card_id)
        state, entry = apply_outcome(card_state(card), intervals, is_success, now, card_id=card.pk)
        save_card_state(card, state)
        create_review_log(card, entry)

    logger.info("review_scheduled",
        user_id=str(user_id),
        card_id=str(card_id),
        review_step=state.review_step,
        review_status=state.review_status.value,
        next_review_utc=state.next_review.isoformat(),
        next_review_local=to_local_iso(state.next_review),
    )

    _count_towards_streak(user, now)
    return get_card(card_id)


def reactivate_card(user, card_id, now=None):
    """
    Put a card back at the first step, due today. Today's log entries for the
    card are dropped so it can be reviewed again without double counting.
    """
    user_id = require_caller(user)
    ensure_card_access(user_id, card_id)
    today_start = start_of_day(now)

    with atomic_operation("add to review"):
        card = get_card_for_update(card_id)
        if card is None:
            raise NotFound("Card", card_id)
        save_card_state(card, reactivate(card_state(card), today_start))
        start, end = purge_window(today_start)
        purged = delete_reviews_between(card, start, end)

    logger.info("card_reactivated",
        user_id=str(user_id),
        card_id=str(card_id),
        next_review_local=to_local_iso(today_start),
        purged_reviews=purged,
    )
    return get_card(card_id)


def record_test_result(user, card_id, is_correct: bool, now=None):
    """Score a flashcard or multiple-choice answer. The schedule is left alone."""
    user_id = require_caller(user)
    ensure_card_access(user_id, card_id)
    now = now or timezone.now()

    with atomic_operation("submit word result"):
        if not increment_test_counters(card_id, is_correct, now):
            raise NotFound("Card", card_id)
        touch_last_test_date(user_id, now)

    logger.info("test_result_recorded",
        user_id=str(user_id),
        card_id=str(card_id),
        is_correct=is_correct,
    )

    _count_towards_streak(user, now)
    return get_card(card_id)


def _count_towards_streak(user, now):
    # the card change is already committed here; a streak failure is logged, not raised
    try:
        record_streak_activity(user, now)
    except SchedulingError as exc:
        logger.warning("streak_update_failed",
            user_id=str(user.pk),
            error=str(exc),
        )
