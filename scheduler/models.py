# Django discovers models through <app>.models
from .data.models import Card, ReviewLog, ReviewSchedule, WordList  # noqa: F401
