from rest_framework import views, status
from rest_framework.response import Response
import structlog
import uuid
from ..services.reviews import reactivate_card, record_test_result, submit_review_outcome
from ..services.schedules import get_schedule, update_interval_table
from ..services.streaks import get_streak, record_streak_activity
from ..services.upcoming import (
    get_card_stats,
    get_review_forecast,
    get_review_history,
    get_todays_reviews,
    get_upcoming_reviews,
)
from ..utils.time import to_local_iso
from .serializers import (
    CardRefSerializer,
    CardSerializer,
    CardStatsSerializer,
    ForecastBucketSerializer,
    ForecastQuerySerializer,
    HistoryQuerySerializer,
    IntervalTableInSerializer,
    ReviewGroupSerializer,
    ReviewHistorySerializer,
    ReviewInSerializer,
    ReviewScheduleSerializer,
    StreakSerializer,
    UpcomingQuerySerializer,
    WordResultInSerializer,
)

base_logger = structlog.get_logger()


def request_logger():
    # Create a unique request_id
    return base_logger.bind(request_id=str(uuid.uuid4()))


class ReviewView(views.APIView):
    def post(self, request):
        logger = request_logger()

        s = ReviewInSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        card_id = s.validated_data["card_id"]
        is_success = s.validated_data["is_success"]

        card = submit_review_outcome(request.user, card_id, is_success)

        logger.info(
            "review_api_response",
            user_id=str(request.user.pk),
            card_id=str(card_id),
            is_success=is_success,
            review_step=card.review_step,
            review_status=card.review_status,
            next_review_utc=card.next_review.isoformat(),
            next_review_local=to_local_iso(card.next_review),
        )

        return Response(CardSerializer(card).data, status=status.HTTP_200_OK)


class AddToReviewView(views.APIView):
    def post(self, request):
        logger = request_logger()

        s = CardRefSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        card_id = s.validated_data["card_id"]

        card = reactivate_card(request.user, card_id)

        logger.info(
            "add_to_review_api_response",
            user_id=str(request.user.pk),
            card_id=str(card_id),
            next_review_utc=card.next_review.isoformat(),
        )

        return Response(CardSerializer(card).data)


class WordResultView(views.APIView):
    def post(self, request):
        logger = request_logger()

        s = WordResultInSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        card_id = s.validated_data["card_id"]
        is_correct = s.validated_data["is_correct"]

        card = record_test_result(request.user, card_id, is_correct)

        logger.info(
            "word_result_api_response",
            user_id=str(request.user.pk),
            card_id=str(card_id),
            is_correct=is_correct,
            view_count=card.view_count,
        )

        return Response(CardSerializer(card).data)


class UpcomingReviewsView(views.APIView):
    def get(self, request):
        logger = request_logger()

        qs = UpcomingQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)
        until = qs.validated_data.get("until")

        groups = get_upcoming_reviews(request.user, until=until)

        logger.info(
            "upcoming_reviews_api_response",
            user_id=str(request.user.pk),
            until_utc=until.isoformat() if until else None,
            group_count=len(groups),
        )

        return Response(
            {
                "groups": {
                    key: ReviewGroupSerializer(group).data
                    for key, group in groups.items()
                },
                "total": sum(group.total for group in groups.values()),
            }
        )


class ReviewForecastView(views.APIView):
    def get(self, request):
        logger = request_logger()

        qs = ForecastQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)
        days = qs.validated_data["days"]

        buckets, intervals = get_review_forecast(request.user, days=days)

        logger.info(
            "review_forecast_api_response",
            user_id=str(request.user.pk),
            days=days,
            bucket_count=len(buckets),
        )

        return Response(
            {
                "cards": {
                    day: ForecastBucketSerializer(bucket).data
                    for day, bucket in buckets.items()
                },
                "total": sum(bucket.total for bucket in buckets.values()),
                "intervals": intervals,
            }
        )


class TodaysReviewsView(views.APIView):
    def get(self, request):
        logger = request_logger()

        groups, schedule = get_todays_reviews(request.user)
        total = sum(len(cards) for cards in groups.values())

        logger.info(
            "todays_reviews_api_response",
            user_id=str(request.user.pk),
            total=total,
        )

        return Response(
            {
                "cards": {
                    str(step): CardSerializer(cards, many=True).data
                    for step, cards in groups.items()
                },
                "total": total,
                "schedule": ReviewScheduleSerializer(schedule).data,
            }
        )


class ReviewHistoryView(views.APIView):
    def get(self, request):
        logger = request_logger()

        qs = HistoryQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)

        history = get_review_history(
            request.user,
            days=qs.validated_data["days"],
            start_date=qs.validated_data.get("start_date"),
            end_date=qs.validated_data.get("end_date"),
        )

        logger.info(
            "review_history_api_response",
            user_id=str(request.user.pk),
            card_count=len(history.cards),
            total_reviews=history.statistics.total_reviews,
        )

        return Response(ReviewHistorySerializer(history).data)


class CardStatsView(views.APIView):
    def get(self, request):
        stats = get_card_stats(request.user)
        return Response(CardStatsSerializer(stats).data)


class StreakView(views.APIView):
    def get(self, request):
        return Response(StreakSerializer(get_streak(request.user)).data)

    def post(self, request):
        logger = request_logger()

        streak = record_streak_activity(request.user)

        logger.info(
            "streak_api_response",
            user_id=str(request.user.pk),
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
        )

        return Response(StreakSerializer(streak).data)


class ReviewScheduleView(views.APIView):
    def get(self, request):
        return Response(ReviewScheduleSerializer(get_schedule(request.user)).data)

    def post(self, request):
        logger = request_logger()

        s = IntervalTableInSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        schedule = update_interval_table(
            request.user,
            s.validated_data["intervals"],
            name=s.validated_data.get("name"),
            description=s.validated_data.get("description"),
        )

        logger.info(
            "review_schedule_api_response",
            user_id=str(request.user.pk),
            intervals=schedule.intervals,
        )

        return Response(ReviewScheduleSerializer(schedule).data)
