import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from ..config import DEFAULT_INTERVALS, DEFAULT_SCHEDULE_NAME
from ..domain.enums import REVIEW_STATUS_LABELS, ReviewStatus


def default_intervals():
    return list(DEFAULT_INTERVALS)


class WordList(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="word_lists"
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    is_public = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "scheduler"

    def __str__(self):
        return self.name


class Card(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="cards"
    )
    word_list = models.ForeignKey(
        WordList, on_delete=models.SET_NULL, null=True, blank=True, related_name="cards"
    )
    word = models.CharField(max_length=255)
    definition = models.TextField(blank=True, default="")

    view_count = models.PositiveIntegerField(default=0)
    success_count = models.PositiveIntegerField(default=0)
    failure_count = models.PositiveIntegerField(default=0)

    review_step = models.PositiveIntegerField(default=0)
    review_status = models.CharField(
        max_length=16,
        choices=[(s.value, label) for s, label in REVIEW_STATUS_LABELS.items()],
        default=ReviewStatus.ACTIVE.value,
    )
    last_reviewed = models.DateTimeField(null=True, blank=True)
    next_review = models.DateTimeField(default=timezone.now)  # UTC

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "scheduler"
        indexes = [
            models.Index(fields=["user", "review_status", "next_review"], name="card_user_status_due_idx"),
        ]

    def __str__(self):
        return self.word


class ReviewLog(models.Model):
    card = models.ForeignKey(Card, on_delete=models.CASCADE, related_name="reviews")
    is_success = models.BooleanField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        app_label = "scheduler"
        indexes = [
            models.Index(fields=["card", "created_at"], name="reviewlog_card_created_idx"),
        ]


class ReviewSchedule(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="review_schedule"
    )
    intervals = models.JSONField(default=default_intervals)  # days
    name = models.CharField(max_length=100, default=DEFAULT_SCHEDULE_NAME)
    description = models.TextField(blank=True, default="")
    is_default = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "scheduler"
