from dataclasses import replace
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Collection, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .enums import ReviewStatus
from .errors import ValidationError
from .state import (
    CardState,
    CardStats,
    ForecastBucket,
    ForecastEntry,
    HistoryStats,
    ReviewEntry,
    ReviewGroup,
    ReviewHistory,
    StreakState,
)
from ..config import MAX_INTERVAL_DAYS, UNGROUPED_KEY

PURGE_WINDOW = timedelta(hours=24)


def validate_intervals(intervals) -> Tuple[int, ...]:
    if intervals is None or isinstance(intervals, (str, bytes)):
        raise ValidationError("intervals must be a list of positive integers")
    try:
        values = tuple(intervals)
    except TypeError:
        raise ValidationError("intervals must be a list of positive integers") from None
    if not values:
        raise ValidationError("intervals must not be empty")
    for value in values:
        # bool is an int subclass, reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationError(f"invalid interval {value!r}: expected a positive integer")
        if value > MAX_INTERVAL_DAYS:
            raise ValidationError(
                f"invalid interval {value!r}: at most {MAX_INTERVAL_DAYS} days"
            )
    return values


def clamp_step(step: int, intervals: Sequence[int]) -> int:
    """Pull a stored step back into range of the current table."""
    last = len(intervals) - 1
    if step < 0:
        return 0
    return min(step, last)


def apply_outcome(
    state: CardState,
    intervals: Sequence[int],
    is_success: bool,
    now: datetime,
    card_id: Any = None,
) -> Tuple[CardState, ReviewEntry]:
    """
    Advance a card one step on success, hold it on failure, and schedule the
    next review from the interval at the resulting step.
    """
    intervals = validate_intervals(intervals)
    last = len(intervals) - 1
    current = clamp_step(state.review_step, intervals)

    if is_success and current < last:
        new_step = current + 1
    else:
        new_step = current

    status = state.review_status
    if is_success and new_step == last:
        status = ReviewStatus.COMPLETED

    new_state = replace(
        state,
        review_step=new_step,
        review_status=status,
        last_reviewed=now,
        next_review=now + timedelta(days=intervals[new_step]),
        view_count=state.view_count + 1,
        success_count=state.success_count + (1 if is_success else 0),
        failure_count=state.failure_count + (0 if is_success else 1),
    )
    return new_state, ReviewEntry(card_id=card_id, is_success=is_success, created_at=now)


def reactivate(state: CardState, today_start: datetime) -> CardState:
    return replace(
        state,
        review_step=0,
        review_status=ReviewStatus.ACTIVE,
        last_reviewed=None,
        next_review=today_start,
    )


def purge_window(today_start: datetime) -> Tuple[datetime, datetime]:
    """Half-open [start, end) range of log entries dropped on reactivation."""
    return today_start, today_start + PURGE_WINDOW


def local_date(dt: datetime, tz: Optional[tzinfo] = None) -> date:
    if tz is not None and dt.tzinfo is not None:
        dt = dt.astimezone(tz)
    return dt.date()


def calendar_day_distance(a: datetime, b: datetime, tz: Optional[tzinfo] = None) -> int:
    return abs((local_date(b, tz) - local_date(a, tz)).days)


def record_activity(
    streak: StreakState, now: datetime, tz: Optional[tzinfo] = None
) -> StreakState:
    current = streak.current_streak
    if streak.last_review_date is None:
        current = 1
    else:
        gap = calendar_day_distance(streak.last_review_date, now, tz)
        if gap > 1:
            current = 1
        elif gap == 1:
            current += 1
        # same day: unchanged

    return StreakState(
        current_streak=current,
        longest_streak=max(streak.longest_streak, current),
        last_review_date=now,
    )


def _is_active(card) -> bool:
    return card.review_status == ReviewStatus.ACTIVE


def group_upcoming(
    cards: Iterable[Any],
    now: datetime,
    until: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Dict[str, ReviewGroup]:
    """
    Group due cards by word list.

    A card is due when it is ACTIVE and its next review falls at or before
    ``until`` (``now`` unless a wider window is asked for). Groups appear in
    the order their first card is seen.
    """
    until = now if until is None else until
    today = local_date(now, tz)
    groups: Dict[str, ReviewGroup] = {}

    for card in cards:
        if not _is_active(card) or card.next_review > until:
            continue
        key = str(card.word_list_id) if card.word_list_id is not None else UNGROUPED_KEY
        group = groups.get(key)
        if group is None:
            group = groups[key] = ReviewGroup(key=key)

        group.cards.append(card)
        group.total += 1
        if card.last_reviewed is not None and local_date(card.last_reviewed, tz) == today:
            group.reviewed += 1
        group.not_reviewed = group.total - group.reviewed

    return groups


def forecast(
    cards: Iterable[Any],
    intervals: Sequence[int],
    today: date,
    days: int,
    reviewed_dates: Optional[Mapping[Any, Set[date]]] = None,
    tz: Optional[tzinfo] = None,
) -> Dict[str, ForecastBucket]:
    """
    Project the review calendar ``days`` ahead of ``today``.

    Every ACTIVE card contributes its immediate review, computed from its
    last review (or creation) plus the interval at its current step, and a
    projected review for each later step of the table.
    """
    intervals = validate_intervals(intervals)
    reviewed_dates = reviewed_dates or {}
    end = today + timedelta(days=days)
    buckets: Dict[str, ForecastBucket] = {}

    def bucket_for(day: date) -> ForecastBucket:
        key = day.isoformat()
        if key not in buckets:
            buckets[key] = ForecastBucket()
        return buckets[key]

    for card in cards:
        if not _is_active(card):
            continue
        base = card.last_reviewed or card.created_at
        step = clamp_step(card.review_step, intervals)
        from_failure = card.failure_count > 0

        due = local_date(base + timedelta(days=intervals[step]), tz)
        if today <= due < end:
            bucket = bucket_for(due)
            bucket.entries.append(
                ForecastEntry(card=card, review_step=step, is_from_failure=from_failure)
            )
            bucket.total += 1
            if due in reviewed_dates.get(card.id, ()):
                bucket.reviewed += 1
            else:
                bucket.not_reviewed += 1
                if from_failure:
                    bucket.from_failure += 1

        for future_step in range(step + 1, len(intervals)):
            projected = local_date(base + timedelta(days=intervals[future_step]), tz)
            if not today <= projected < end:
                continue
            bucket = bucket_for(projected)
            bucket.entries.append(
                ForecastEntry(card=card, review_step=future_step, is_future_review=True)
            )
            bucket.total += 1
            bucket.not_reviewed += 1

    return buckets


def due_today(
    cards: Iterable[Any],
    intervals: Sequence[int],
    today: date,
    reviewed_today: Collection[Any] = (),
    tz: Optional[tzinfo] = None,
) -> Dict[int, List[Any]]:
    """
    ACTIVE cards whose interval at the current step, counted from the last
    review (or creation), lands on ``today``. Cards that already have a log
    entry today are left out. Keyed by review step in first-seen order.
    """
    intervals = validate_intervals(intervals)
    groups: Dict[int, List[Any]] = {}

    for card in cards:
        if not _is_active(card) or card.id in reviewed_today:
            continue
        step = clamp_step(card.review_step, intervals)
        base = card.last_reviewed or card.created_at
        if local_date(base + timedelta(days=intervals[step]), tz) != today:
            continue
        groups.setdefault(step, []).append(card)

    return groups


def review_history(cards: Iterable[Any], tz: Optional[tzinfo] = None) -> ReviewHistory:
    cards = list(cards)
    total_success = sum(c.success_count for c in cards)
    total_failures = sum(c.failure_count for c in cards)
    total_reviews = total_success + total_failures

    by_date: Dict[str, List[Any]] = {}
    for card in cards:
        if card.last_reviewed is None:
            continue
        by_date.setdefault(local_date(card.last_reviewed, tz).isoformat(), []).append(card)

    return ReviewHistory(
        statistics=HistoryStats(
            total_reviews=total_reviews,
            total_success=total_success,
            total_failures=total_failures,
            average_success_rate=(
                total_success / total_reviews * 100 if total_reviews else 0.0
            ),
        ),
        cards=cards,
        reviews_by_date=by_date,
    )


def summarize(cards: Iterable[Any], reviews_today: int = 0) -> CardStats:
    cards = list(cards)
    total_success = sum(c.success_count for c in cards)
    total_failures = sum(c.failure_count for c in cards)
    total_reviews = total_success + total_failures
    # halves round up, round() would go to the even neighbour
    success_rate = int(total_success * 100 / total_reviews + 0.5) if total_reviews else 0

    return CardStats(
        total_cards=len(cards),
        active_cards=sum(1 for c in cards if c.review_status == ReviewStatus.ACTIVE),
        completed_cards=sum(1 for c in cards if c.review_status == ReviewStatus.COMPLETED),
        total_reviews=total_reviews,
        total_success=total_success,
        total_failures=total_failures,
        success_rate=success_rate,
        challenging_cards=sum(
            1
            for c in cards
            if c.review_status == ReviewStatus.ACTIVE and c.failure_count > c.success_count
        ),
        reviews_today=reviews_today,
    )
