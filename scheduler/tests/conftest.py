import pytest
from django.contrib.auth import get_user_model

from scheduler.data.models import Card, WordList

User = get_user_model()


@pytest.fixture
def user(db):
    return User.objects.create_user(username="learner")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="someone-else")


@pytest.fixture
def word_list(user):
    return WordList.objects.create(user=user, name="GRE")


@pytest.fixture
def make_card(user):
    def _make(owner=None, **fields):
        fields.setdefault("word", "ephemeral")
        fields.setdefault("definition", "lasting for a very short time")
        return Card.objects.create(user=owner or user, **fields)
    return _make
