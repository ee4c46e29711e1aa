from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import F

from ..config import (
    CUSTOM_SCHEDULE_NAME,
    DEFAULT_INTERVALS,
    DEFAULT_SCHEDULE_DESCRIPTION,
    DEFAULT_SCHEDULE_NAME,
)
from ..domain.enums import ReviewStatus
from ..domain.state import CardState, StreakState
from .models import Card, ReviewLog, ReviewSchedule

CARD_STATE_FIELDS = [
    "review_step",
    "review_status",
    "last_reviewed",
    "next_review",
    "success_count",
    "failure_count",
    "view_count",
]


def card_owned_by(user_id, card_id):
    return Card.objects.filter(pk=card_id, user_id=user_id).exists()


def get_card_for_update(card_id):
    """
    Fetch a card and lock it for the rest of the enclosing transaction.
    Returns None if it no longer exists.
    """
    return (Card.objects
            .select_for_update()
            .filter(pk=card_id)
            .first())


def get_card(card_id):
    return (Card.objects
            .select_related("word_list")
            .filter(pk=card_id)
            .first())


def card_state(card):
    return CardState(
        review_step=card.review_step,
        review_status=ReviewStatus(card.review_status),
        last_reviewed=card.last_reviewed,
        next_review=card.next_review,
        success_count=card.success_count,
        failure_count=card.failure_count,
        view_count=card.view_count,
    )


def save_card_state(card, state):
    for name in CARD_STATE_FIELDS:
        value = getattr(state, name)
        if name == "review_status":
            value = ReviewStatus(value).value
        setattr(card, name, value)
    card.save(update_fields=CARD_STATE_FIELDS + ["updated_at"])
    return card


def create_review_log(card, entry):
    return ReviewLog.objects.create(
        card=card, is_success=entry.is_success, created_at=entry.created_at
    )


def delete_reviews_between(card, start, end):
    deleted, _ = ReviewLog.objects.filter(
        card=card, created_at__gte=start, created_at__lt=end
    ).delete()
    return deleted


def increment_test_counters(card_id, is_correct, now):
    """
    Bump view and success/failure counters in the database. Returns the
    number of rows touched.
    """
    counter = "success_count" if is_correct else "failure_count"
    return Card.objects.filter(pk=card_id).update(
        view_count=F("view_count") + 1,
        last_reviewed=now,
        **{counter: F(counter) + 1},
    )


def active_cards(user_id):
    return (Card.objects
            .select_related("word_list")
            .filter(user_id=user_id, review_status=ReviewStatus.ACTIVE.value)
            .order_by("next_review", "id"))


def all_cards(user_id):
    return Card.objects.filter(user_id=user_id)


def cards_reviewed_between(user_id, start, end):
    """Cards last reviewed in [start, end), newest first."""
    return (Card.objects
            .select_related("word_list")
            .filter(user_id=user_id, last_reviewed__gte=start, last_reviewed__lt=end)
            .order_by("-last_reviewed", "id"))


def reviewed_card_ids_between(user_id, start, end):
    return set(
        ReviewLog.objects
        .filter(card__user_id=user_id, created_at__gte=start, created_at__lt=end)
        .values_list("card_id", flat=True)
    )


def review_timestamps(user_id, since):
    return list(
        ReviewLog.objects
        .filter(card__user_id=user_id, created_at__gte=since)
        .values_list("card_id", "created_at")
    )


def count_reviews_between(user_id, start, end):
    return ReviewLog.objects.filter(
        card__user_id=user_id, created_at__gte=start, created_at__lt=end
    ).count()


def get_user(user_id):
    return get_user_model().objects.filter(pk=user_id).first()


def get_user_for_update(user_id):
    return get_user_model().objects.select_for_update().filter(pk=user_id).first()


def streak_state(user):
    return StreakState(
        current_streak=user.current_streak,
        longest_streak=user.longest_streak,
        last_review_date=user.last_review_date,
    )


def save_streak_state(user, state, now):
    user.current_streak = state.current_streak
    user.longest_streak = state.longest_streak
    user.last_review_date = state.last_review_date
    user.streak_updated_at = now
    user.save(update_fields=[
        "current_streak", "longest_streak", "last_review_date", "streak_updated_at",
    ])
    return user


def touch_last_test_date(user_id, now):
    return get_user_model().objects.filter(pk=user_id).update(last_test_date=now)


def get_or_create_schedule(user_id):
    """
    Upsert the user's review schedule. A concurrent insert for the same user
    loses the race on the unique key; the winner's row is returned.
    """
    existing = ReviewSchedule.objects.filter(user_id=user_id).first()
    if existing:
        return existing, False
    try:
        with transaction.atomic():
            return ReviewSchedule.objects.create(
                user_id=user_id,
                intervals=list(DEFAULT_INTERVALS),
                name=DEFAULT_SCHEDULE_NAME,
                description=DEFAULT_SCHEDULE_DESCRIPTION,
                is_default=True,
            ), True
    except IntegrityError:
        return ReviewSchedule.objects.get(user_id=user_id), False


def save_schedule(user_id, intervals, name=None, description=None):
    schedule, _ = ReviewSchedule.objects.select_for_update().get_or_create(
        user_id=user_id,
        defaults={"intervals": list(intervals), "name": name or CUSTOM_SCHEDULE_NAME},
    )
    schedule.intervals = list(intervals)
    schedule.name = name or CUSTOM_SCHEDULE_NAME
    schedule.description = description or ""
    schedule.is_default = False
    schedule.save()
    return schedule
