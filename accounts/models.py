from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Custom User model that extends the default Django User model with the
    review streak the scheduler keeps per user.
    """

    current_streak = models.PositiveIntegerField(default=0)
    longest_streak = models.PositiveIntegerField(default=0)
    last_review_date = models.DateTimeField(null=True, blank=True)
    last_test_date = models.DateTimeField(null=True, blank=True)
    streak_updated_at = models.DateTimeField(null=True, blank=True)
