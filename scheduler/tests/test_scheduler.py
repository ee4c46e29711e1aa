import pytest
import logging
from django.db import DatabaseError
from django.urls import reverse
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from datetime import timedelta
import uuid

from scheduler.data.models import ReviewLog, ReviewSchedule
from scheduler.domain.errors import PersistenceError
from scheduler.utils.time import start_of_day

logger = logging.getLogger(__name__)

# Helpers

def make_review(client, username, card_id, is_success):
    url = reverse("review")
    payload = {"card_id": str(card_id), "is_success": is_success}
    resp = client.post(
        url, data=payload, content_type="application/json", HTTP_X_USER_NAME=username
    )
    data = resp.json()
    logger.info(
        "POST /api/cards/review success=%s → status=%s step=%s next=%s",
        is_success,
        resp.status_code,
        data.get("review_step"),
        data.get("next_review"),
    )
    return resp


def add_to_review(client, username, card_id):
    url = reverse("add-to-review")
    return client.post(
        url,
        data={"card_id": str(card_id)},
        content_type="application/json",
        HTTP_X_USER_NAME=username,
    )


def submit_word_result(client, username, card_id, is_correct):
    url = reverse("word-result")
    return client.post(
        url,
        data={"card_id": str(card_id), "is_correct": is_correct},
        content_type="application/json",
        HTTP_X_USER_NAME=username,
    )


def get_upcoming(client, username, until=None):
    url = reverse("upcoming-reviews")
    params = {"until": until.isoformat()} if until else {}
    resp = client.get(url, params, HTTP_X_USER_NAME=username)
    data = resp.json()
    logger.info(
        "GET /api/reviews/upcoming until=%s → status=%s total=%s",
        until.isoformat() if until else None,
        resp.status_code,
        data.get("total"),
    )
    return resp


def assert_close(iso_value, expected, tolerance=timedelta(minutes=1)):
    actual = parse_datetime(iso_value)
    assert abs(actual - expected) < tolerance, (actual, expected)


# Review outcomes

@pytest.mark.django_db
def test_success_moves_to_next_interval(client, user, make_card):
    card = make_card()

    resp = make_review(client, user.username, card.id, True)
    data = resp.json()

    assert resp.status_code == 200
    assert data["review_step"] == 1
    assert data["review_status"] == "ACTIVE"
    assert data["success_count"] == 1
    assert data["view_count"] == 1
    assert_close(data["next_review"], timezone.now() + timedelta(days=7))
    assert ReviewLog.objects.filter(card=card, is_success=True).count() == 1
    logger.info("✓ Passed: success at step 0 scheduled 7 days out")


@pytest.mark.django_db
def test_failure_keeps_progress(client, user, make_card):
    card = make_card(review_step=2)

    data = make_review(client, user.username, card.id, False).json()

    assert data["review_step"] == 2
    assert data["failure_count"] == 1
    assert data["review_status"] == "ACTIVE"
    assert_close(data["next_review"], timezone.now() + timedelta(days=30))


@pytest.mark.django_db
def test_repeated_success_completes_card(client, user, make_card):
    card = make_card()

    statuses = [
        make_review(client, user.username, card.id, True).json()["review_status"]
        for _ in range(3)
    ]

    assert statuses == ["ACTIVE", "ACTIVE", "COMPLETED"]
    card.refresh_from_db()
    assert card.review_step == 3
    assert card.success_count == 3
    assert ReviewLog.objects.filter(card=card).count() == 3


@pytest.mark.django_db
def test_review_uses_custom_interval_table(client, user, make_card):
    ReviewSchedule.objects.create(user=user, intervals=[2, 4], is_default=False)
    card = make_card()

    data = make_review(client, user.username, card.id, True).json()

    assert data["review_step"] == 1
    assert data["review_status"] == "COMPLETED"
    assert_close(data["next_review"], timezone.now() + timedelta(days=4))


@pytest.mark.django_db
def test_review_against_oversized_stored_table_is_rejected(client, user, make_card):
    ReviewSchedule.objects.create(user=user, intervals=[1, 3000000], is_default=False)
    card = make_card()

    resp = make_review(client, user.username, card.id, True)

    assert resp.status_code == 400
    card.refresh_from_db()
    assert card.review_step == 0
    assert card.view_count == 0


@pytest.mark.django_db
def test_review_of_someone_elses_card_is_not_found(client, user, other_user, make_card):
    card = make_card(owner=other_user)

    resp = make_review(client, user.username, card.id, True)

    assert resp.status_code == 404
    assert resp.json() == {"error": "Card not found"}
    card.refresh_from_db()
    assert card.view_count == 0


@pytest.mark.django_db
def test_review_of_unknown_card_is_not_found(client, user):
    resp = make_review(client, user.username, uuid.uuid4(), True)
    assert resp.status_code == 404


@pytest.mark.django_db
def test_review_without_login_is_unauthorized(client, make_card):
    card = make_card()

    resp = client.post(
        reverse("review"),
        data={"card_id": str(card.id), "is_success": True},
        content_type="application/json",
    )

    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}


@pytest.mark.django_db
def test_malformed_review_payload_is_rejected(client, user):
    resp = client.post(
        reverse("review"),
        data={"card_id": "not-a-uuid"},
        content_type="application/json",
        HTTP_X_USER_NAME=user.username,
    )
    assert resp.status_code == 400


@pytest.mark.django_db
def test_failed_log_write_rolls_back_card(client, user, make_card, monkeypatch):
    card = make_card()

    def broken_log(*args, **kwargs):
        raise DatabaseError("disk full")

    monkeypatch.setattr("scheduler.services.reviews.create_review_log", broken_log)
    resp = make_review(client, user.username, card.id, True)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to update review"}
    card.refresh_from_db()
    assert card.review_step == 0
    assert card.view_count == 0
    assert card.last_reviewed is None


@pytest.mark.django_db
def test_review_counts_towards_streak(client, user, make_card):
    card = make_card()

    make_review(client, user.username, card.id, False)
    make_review(client, user.username, card.id, True)

    user.refresh_from_db()
    assert user.current_streak == 1
    assert user.longest_streak == 1
    assert user.last_review_date is not None


@pytest.mark.django_db
def test_streak_failure_does_not_fail_a_saved_review(client, user, make_card, monkeypatch):
    card = make_card()

    def broken_streak(*args, **kwargs):
        raise PersistenceError("update streak")

    monkeypatch.setattr("scheduler.services.reviews.record_streak_activity", broken_streak)
    resp = make_review(client, user.username, card.id, True)

    assert resp.status_code == 200
    assert resp.json()["review_step"] == 1
    card.refresh_from_db()
    assert card.review_step == 1
    assert ReviewLog.objects.filter(card=card).count() == 1
    user.refresh_from_db()
    assert user.current_streak == 0


# Reactivation

@pytest.mark.django_db
def test_add_to_review_resets_card_and_purges_todays_logs(client, user, make_card):
    now = timezone.now()
    card = make_card(
        review_step=3,
        review_status="COMPLETED",
        last_reviewed=now,
        next_review=now + timedelta(days=365),
        success_count=4,
    )
    today_log = ReviewLog.objects.create(card=card, is_success=True, created_at=now)
    old_log = ReviewLog.objects.create(
        card=card, is_success=True, created_at=start_of_day(now) - timedelta(hours=1)
    )

    resp = add_to_review(client, user.username, card.id)
    data = resp.json()

    assert resp.status_code == 200
    assert data["review_step"] == 0
    assert data["review_status"] == "ACTIVE"
    assert data["last_reviewed"] is None
    assert parse_datetime(data["next_review"]) == start_of_day(now)
    assert data["success_count"] == 4
    assert not ReviewLog.objects.filter(pk=today_log.pk).exists()
    assert ReviewLog.objects.filter(pk=old_log.pk).exists()
    logger.info("✓ Passed: reactivation purged today's log only")


@pytest.mark.django_db
def test_add_to_review_for_foreign_card_is_not_found(client, user, other_user, make_card):
    card = make_card(owner=other_user, review_step=2)

    resp = add_to_review(client, user.username, card.id)

    assert resp.status_code == 404
    card.refresh_from_db()
    assert card.review_step == 2


@pytest.mark.django_db
def test_reactivated_card_is_due_again(client, user, make_card):
    card = make_card(review_step=3, review_status="COMPLETED",
                     next_review=timezone.now() + timedelta(days=365))

    add_to_review(client, user.username, card.id)
    data = get_upcoming(client, user.username).json()

    assert data["total"] == 1
    assert data["groups"]["ungrouped"]["cards"][0]["id"] == str(card.id)


# Test results

@pytest.mark.django_db
def test_word_result_updates_counters_only(client, user, make_card):
    card = make_card(review_step=1)
    before = card.next_review

    resp = submit_word_result(client, user.username, card.id, False)
    data = resp.json()

    assert resp.status_code == 200
    assert data["view_count"] == 1
    assert data["failure_count"] == 1
    assert data["success_count"] == 0
    assert data["review_step"] == 1
    assert parse_datetime(data["next_review"]) == before
    assert data["last_reviewed"] is not None
    assert not ReviewLog.objects.filter(card=card).exists()

    user.refresh_from_db()
    assert user.last_test_date is not None
    assert user.current_streak == 1


@pytest.mark.django_db
def test_word_result_for_foreign_card_is_not_found(client, user, other_user, make_card):
    card = make_card(owner=other_user)
    assert submit_word_result(client, user.username, card.id, True).status_code == 404


# Upcoming reviews

@pytest.mark.django_db
def test_upcoming_groups_due_cards_by_list(client, user, word_list, make_card):
    now = timezone.now()
    in_list = make_card(word_list=word_list, next_review=now - timedelta(days=1))
    make_card(word_list=word_list, next_review=now - timedelta(hours=1),
              last_reviewed=now)
    loose = make_card(next_review=now - timedelta(days=2))
    make_card(next_review=now + timedelta(days=3))
    make_card(next_review=now - timedelta(days=1), review_status="PAUSED")

    data = get_upcoming(client, user.username).json()
    groups = data["groups"]

    assert data["total"] == 3
    assert list(groups) == ["ungrouped", str(word_list.id)]
    assert groups[str(word_list.id)]["total"] == 2
    assert groups[str(word_list.id)]["reviewed"] == 1
    assert groups[str(word_list.id)]["not_reviewed"] == 1
    assert groups[str(word_list.id)]["cards"][0]["id"] == str(in_list.id)
    assert groups["ungrouped"]["cards"][0]["id"] == str(loose.id)


@pytest.mark.django_db
def test_upcoming_window_can_extend_into_future(client, user, make_card):
    make_card(next_review=timezone.now() + timedelta(days=3))

    assert get_upcoming(client, user.username).json()["total"] == 0
    widened = get_upcoming(client, user.username, until=timezone.now() + timedelta(days=4))
    assert widened.json()["total"] == 1


@pytest.mark.django_db
def test_upcoming_is_repeatable(client, user, word_list, make_card):
    make_card(word_list=word_list, next_review=timezone.now() - timedelta(days=1))
    make_card(next_review=timezone.now() - timedelta(days=1))

    first = get_upcoming(client, user.username).json()
    second = get_upcoming(client, user.username).json()

    assert first == second


@pytest.mark.django_db
def test_upcoming_excludes_other_users_cards(client, user, other_user, make_card):
    make_card(owner=other_user, next_review=timezone.now() - timedelta(days=1))
    assert get_upcoming(client, user.username).json()["total"] == 0


# Forecast and stats

@pytest.mark.django_db
def test_forecast_lists_todays_reviews(client, user, make_card):
    now = timezone.now()
    card = make_card(created_at=now - timedelta(days=1), failure_count=1)

    resp = client.get(reverse("review-forecast"), {"days": 7}, HTTP_X_USER_NAME=user.username)
    data = resp.json()
    today = timezone.localtime(now).date().isoformat()

    assert resp.status_code == 200
    assert data["intervals"] == [1, 7, 30, 365]
    bucket = data["cards"][today]
    assert bucket["total"] == 1
    assert bucket["from_failure"] == 1
    assert bucket["entries"][0]["card"]["id"] == str(card.id)
    assert bucket["entries"][0]["is_future_review"] is False


@pytest.mark.django_db
def test_forecast_rejects_bad_window(client, user):
    resp = client.get(reverse("review-forecast"), {"days": 0}, HTTP_X_USER_NAME=user.username)
    assert resp.status_code == 400


@pytest.mark.django_db
def test_card_stats(client, user, make_card):
    make_card(success_count=3, failure_count=1)
    make_card(success_count=0, failure_count=2)
    make_card(success_count=4, review_status="COMPLETED")
    reviewed = make_card()
    make_review(client, user.username, reviewed.id, True)

    data = client.get(reverse("card-stats"), HTTP_X_USER_NAME=user.username).json()

    assert data["total_cards"] == 4
    assert data["completed_cards"] == 1
    assert data["active_cards"] == 3
    assert data["total_reviews"] == 11
    assert data["success_rate"] == 73
    assert data["challenging_cards"] == 1
    assert data["reviews_today"] == 1


@pytest.mark.django_db
def test_card_stats_rounds_half_up(client, user, make_card):
    make_card(success_count=1, failure_count=7)

    data = client.get(reverse("card-stats"), HTTP_X_USER_NAME=user.username).json()

    assert data["success_rate"] == 13


# Today's reviews and history

@pytest.mark.django_db
def test_todays_reviews_grouped_by_step(client, user, make_card):
    now = timezone.now()
    new = make_card(created_at=now - timedelta(days=1))
    second = make_card(review_step=1, last_reviewed=now - timedelta(days=7))
    done = make_card(created_at=now - timedelta(days=1))
    ReviewLog.objects.create(card=done, is_success=True, created_at=now)
    make_card(created_at=now)
    make_card(created_at=now - timedelta(days=1), review_status="PAUSED")

    resp = client.get(reverse("todays-reviews"), HTTP_X_USER_NAME=user.username)
    data = resp.json()

    assert resp.status_code == 200
    assert data["total"] == 2
    assert [c["id"] for c in data["cards"]["0"]] == [str(new.id)]
    assert [c["id"] for c in data["cards"]["1"]] == [str(second.id)]
    assert data["schedule"]["intervals"] == [1, 7, 30, 365]


@pytest.mark.django_db
def test_todays_reviews_requires_login(client):
    assert client.get(reverse("todays-reviews")).status_code == 401


@pytest.mark.django_db
def test_review_history_defaults_to_last_thirty_days(client, user, other_user, make_card):
    now = timezone.now()
    recent = make_card(success_count=3, failure_count=1, last_reviewed=now - timedelta(hours=2))
    make_card(success_count=5, last_reviewed=now - timedelta(days=40))
    make_card()
    make_card(owner=other_user, success_count=2, last_reviewed=now)

    resp = client.get(reverse("review-history"), HTTP_X_USER_NAME=user.username)
    data = resp.json()

    assert resp.status_code == 200
    assert [c["id"] for c in data["cards"]] == [str(recent.id)]
    assert data["statistics"] == {
        "total_reviews": 4,
        "total_success": 3,
        "total_failures": 1,
        "average_success_rate": 75.0,
    }
    day = timezone.localtime(recent.last_reviewed).date().isoformat()
    assert [c["id"] for c in data["reviews_by_date"][day]] == [str(recent.id)]


@pytest.mark.django_db
def test_review_history_date_range_is_inclusive(client, user, make_card):
    now = timezone.now()
    old = make_card(success_count=5, last_reviewed=now - timedelta(days=40))
    make_card(success_count=1, last_reviewed=now)
    day = timezone.localtime(old.last_reviewed).date().isoformat()

    data = client.get(
        reverse("review-history"),
        {"start_date": day, "end_date": day},
        HTTP_X_USER_NAME=user.username,
    ).json()

    assert [c["id"] for c in data["cards"]] == [str(old.id)]
    assert data["statistics"]["average_success_rate"] == 100.0


@pytest.mark.django_db
@pytest.mark.parametrize(
    "params",
    [
        {"start_date": "2024-03-10"},
        {"start_date": "2024-03-10", "end_date": "2024-03-01"},
        {"days": 0},
    ],
)
def test_review_history_rejects_bad_windows(client, user, params):
    resp = client.get(reverse("review-history"), params, HTTP_X_USER_NAME=user.username)
    assert resp.status_code == 400
