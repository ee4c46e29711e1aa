from collections import defaultdict
from datetime import timedelta

import structlog
from django.utils import timezone

from ..config import (
    DEFAULT_FORECAST_DAYS,
    DEFAULT_HISTORY_DAYS,
    MAX_FORECAST_DAYS,
    MAX_HISTORY_DAYS,
)
from ..data.repos import (
    active_cards,
    all_cards,
    cards_reviewed_between,
    count_reviews_between,
    review_timestamps,
    reviewed_card_ids_between,
)
from ..domain.errors import ValidationError
from ..domain.logic import due_today, forecast, group_upcoming, review_history, summarize
from ..utils.time import end_of_day, local_date, start_of_date, start_of_day
from .authz import require_caller
from .schedules import get_or_create_interval_table, get_schedule

logger = structlog.get_logger()


def _check_days(days, upper):
    if isinstance(days, bool) or not isinstance(days, int) or not 0 < days <= upper:
        raise ValidationError(f"days must be between 1 and {upper}")


def get_upcoming_reviews(user, now=None, until=None):
    """
    Due cards grouped by word list. ``until`` widens the window into the
    future; it never narrows it below ``now``.
    """
    user_id = require_caller(user)
    now = now or timezone.now()
    if until is None or until < now:
        until = now

    groups = group_upcoming(
        active_cards(user_id), now, until=until, tz=timezone.get_current_timezone()
    )

    logger.info("upcoming_reviews_built",
        user_id=str(user_id),
        group_count=len(groups),
        card_count=sum(g.total for g in groups.values()),
    )
    return groups


def get_review_forecast(user, days=DEFAULT_FORECAST_DAYS, now=None):
    user_id = require_caller(user)
    _check_days(days, MAX_FORECAST_DAYS)

    now = now or timezone.now()
    intervals = get_or_create_interval_table(user)

    reviewed_dates = defaultdict(set)
    for card_id, created_at in review_timestamps(user_id, start_of_day(now)):
        reviewed_dates[card_id].add(local_date(created_at))

    buckets = forecast(
        active_cards(user_id),
        intervals,
        local_date(now),
        days,
        reviewed_dates=reviewed_dates,
        tz=timezone.get_current_timezone(),
    )
    return buckets, intervals


def get_todays_reviews(user, now=None):
    """Cards whose current interval ends today and that have not been reviewed yet today."""
    user_id = require_caller(user)
    now = now or timezone.now()
    schedule = get_schedule(user)

    reviewed = reviewed_card_ids_between(user_id, start_of_day(now), end_of_day(now))
    groups = due_today(
        active_cards(user_id),
        schedule.intervals,
        local_date(now),
        reviewed_today=reviewed,
        tz=timezone.get_current_timezone(),
    )

    logger.info("todays_reviews_built",
        user_id=str(user_id),
        card_count=sum(len(cards) for cards in groups.values()),
        already_reviewed=len(reviewed),
    )
    return groups, schedule


def get_review_history(user, days=DEFAULT_HISTORY_DAYS, start_date=None, end_date=None, now=None):
    """
    Cards last reviewed inside a window. ``start_date``/``end_date`` are
    inclusive calendar dates and must be given together; otherwise the window
    is the last ``days`` days up to the end of today.
    """
    user_id = require_caller(user)
    now = now or timezone.now()

    if (start_date is None) != (end_date is None):
        raise ValidationError("start_date and end_date must be given together")
    if start_date is not None:
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date")
        start = start_of_date(start_date)
        end = start_of_date(end_date + timedelta(days=1))
    else:
        _check_days(days, MAX_HISTORY_DAYS)
        start, end = now - timedelta(days=days), end_of_day(now)

    history = review_history(
        cards_reviewed_between(user_id, start, end), tz=timezone.get_current_timezone()
    )

    logger.info("review_history_built",
        user_id=str(user_id),
        start_utc=start.isoformat(),
        end_utc=end.isoformat(),
        card_count=len(history.cards),
    )
    return history


def get_card_stats(user, now=None):
    user_id = require_caller(user)
    now = now or timezone.now()
    reviews_today = count_reviews_between(user_id, start_of_day(now), end_of_day(now))
    return summarize(all_cards(user_id), reviews_today=reviews_today)
