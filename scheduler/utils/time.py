from datetime import datetime, time, timedelta

from django.utils import timezone


def to_local_iso(dt):
    if dt is None:
        return None
    return timezone.localtime(dt).isoformat()


def local_date(dt):
    return timezone.localtime(dt).date()


def start_of_day(dt=None):
    """Midnight of ``dt``'s calendar day in the active time zone."""
    dt = timezone.localtime(dt or timezone.now())
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(dt=None):
    return start_of_day(dt) + timedelta(days=1)


def start_of_date(d):
    return timezone.make_aware(datetime.combine(d, time.min))
