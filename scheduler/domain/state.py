from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .enums import ReviewStatus


@dataclass(frozen=True)
class CardState:
    """Scheduling-relevant slice of a card."""
    next_review: datetime
    review_step: int = 0
    review_status: ReviewStatus = ReviewStatus.ACTIVE
    last_reviewed: Optional[datetime] = None
    success_count: int = 0
    failure_count: int = 0
    view_count: int = 0


@dataclass(frozen=True)
class ReviewEntry:
    card_id: Any
    is_success: bool
    created_at: datetime


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    last_review_date: Optional[datetime] = None


@dataclass
class ReviewGroup:
    key: str
    total: int = 0
    reviewed: int = 0
    not_reviewed: int = 0
    cards: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class ForecastEntry:
    card: Any
    review_step: int
    is_from_failure: bool = False
    is_future_review: bool = False


@dataclass
class ForecastBucket:
    total: int = 0
    reviewed: int = 0
    not_reviewed: int = 0
    from_failure: int = 0
    entries: List[ForecastEntry] = field(default_factory=list)


@dataclass(frozen=True)
class CardStats:
    total_cards: int
    active_cards: int
    completed_cards: int
    total_reviews: int
    total_success: int
    total_failures: int
    success_rate: int
    challenging_cards: int
    reviews_today: int


@dataclass(frozen=True)
class HistoryStats:
    total_reviews: int
    total_success: int
    total_failures: int
    average_success_rate: float


@dataclass
class ReviewHistory:
    statistics: HistoryStats
    cards: List[Any] = field(default_factory=list)
    reviews_by_date: Dict[str, List[Any]] = field(default_factory=dict)
