from ..data.repos import card_owned_by
from ..domain.errors import NotFound, Unauthorized


def require_caller(user):
    """Return the caller's id, or raise Unauthorized for anonymous callers."""
    if user is None or not getattr(user, "is_authenticated", False):
        raise Unauthorized("Unauthorized")
    return user.pk


def can_access_card(user_id, card_id) -> bool:
    return card_owned_by(user_id, card_id)


def ensure_card_access(user_id, card_id):
    if not can_access_card(user_id, card_id):
        raise NotFound("Card", card_id)
