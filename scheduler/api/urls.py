from django.urls import path
from .views import (
    AddToReviewView,
    CardStatsView,
    ReviewForecastView,
    ReviewHistoryView,
    ReviewScheduleView,
    ReviewView,
    StreakView,
    TodaysReviewsView,
    UpcomingReviewsView,
    WordResultView,
)

urlpatterns = [
    path("cards/review", ReviewView.as_view(), name="review"),
    path("cards/add-to-review", AddToReviewView.as_view(), name="add-to-review"),
    path("cards/upcoming", ReviewForecastView.as_view(), name="review-forecast"),
    path("cards/today", TodaysReviewsView.as_view(), name="todays-reviews"),
    path("cards/history", ReviewHistoryView.as_view(), name="review-history"),
    path("cards/stats", CardStatsView.as_view(), name="card-stats"),
    path("reviews/upcoming", UpcomingReviewsView.as_view(), name="upcoming-reviews"),
    path("word-result", WordResultView.as_view(), name="word-result"),
    path("streak", StreakView.as_view(), name="streak"),
    path("review-schedule", ReviewScheduleView.as_view(), name="review-schedule"),
]
