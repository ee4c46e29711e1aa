from rest_framework import serializers

from ..config import (
    DEFAULT_FORECAST_DAYS,
    DEFAULT_HISTORY_DAYS,
    MAX_FORECAST_DAYS,
    MAX_HISTORY_DAYS,
    MAX_INTERVAL_DAYS,
)
from ..data.models import Card, ReviewSchedule, WordList


class ReviewInSerializer(serializers.Serializer):
    card_id = serializers.UUIDField()
    is_success = serializers.BooleanField()


class CardRefSerializer(serializers.Serializer):
    card_id = serializers.UUIDField()


class WordResultInSerializer(serializers.Serializer):
    card_id = serializers.UUIDField()
    is_correct = serializers.BooleanField()


class UpcomingQuerySerializer(serializers.Serializer):
    until = serializers.DateTimeField(required=False)  # ISO-8601


class ForecastQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(
        min_value=1, max_value=MAX_FORECAST_DAYS, default=DEFAULT_FORECAST_DAYS
    )


class IntervalTableInSerializer(serializers.Serializer):
    intervals = serializers.ListField(
        child=serializers.IntegerField(min_value=1, max_value=MAX_INTERVAL_DAYS),
        allow_empty=False,
    )
    name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)


class WordListRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = WordList
        fields = ["id", "name"]


class CardSerializer(serializers.ModelSerializer):
    word_list = WordListRefSerializer(read_only=True)

    class Meta:
        model = Card
        fields = [
            "id",
            "word",
            "definition",
            "word_list",
            "view_count",
            "success_count",
            "failure_count",
            "review_step",
            "review_status",
            "last_reviewed",
            "next_review",
            "created_at",
        ]
        read_only_fields = fields


class ReviewScheduleSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReviewSchedule
        fields = ["intervals", "name", "description", "is_default", "created_at", "updated_at"]
        read_only_fields = fields


class StreakSerializer(serializers.Serializer):
    current_streak = serializers.IntegerField()
    longest_streak = serializers.IntegerField()
    last_review_date = serializers.DateTimeField(allow_null=True)


class ReviewGroupSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    reviewed = serializers.IntegerField()
    not_reviewed = serializers.IntegerField()
    cards = CardSerializer(many=True)


class ForecastEntrySerializer(serializers.Serializer):
    card = CardSerializer()
    review_step = serializers.IntegerField()
    is_from_failure = serializers.BooleanField()
    is_future_review = serializers.BooleanField()


class ForecastBucketSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    reviewed = serializers.IntegerField()
    not_reviewed = serializers.IntegerField()
    from_failure = serializers.IntegerField()
    entries = ForecastEntrySerializer(many=True)


class CardStatsSerializer(serializers.Serializer):
    total_cards = serializers.IntegerField()
    active_cards = serializers.IntegerField()
    completed_cards = serializers.IntegerField()
    total_reviews = serializers.IntegerField()
    total_success = serializers.IntegerField()
    total_failures = serializers.IntegerField()
    success_rate = serializers.IntegerField()
    challenging_cards = serializers.IntegerField()
    reviews_today = serializers.IntegerField()


class HistoryQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(
        min_value=1, max_value=MAX_HISTORY_DAYS, default=DEFAULT_HISTORY_DAYS
    )
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        if ("start_date" in attrs) != ("end_date" in attrs):
            raise serializers.ValidationError("start_date and end_date must be given together")
        if "start_date" in attrs and attrs["start_date"] > attrs["end_date"]:
            raise serializers.ValidationError("start_date must not be after end_date")
        return attrs


class HistoryStatsSerializer(serializers.Serializer):
    total_reviews = serializers.IntegerField()
    total_success = serializers.IntegerField()
    total_failures = serializers.IntegerField()
    average_success_rate = serializers.FloatField()


class ReviewHistorySerializer(serializers.Serializer):
    cards = CardSerializer(many=True)
    statistics = HistoryStatsSerializer()
    reviews_by_date = serializers.SerializerMethodField()

    def get_reviews_by_date(self, history):
        return {
            day: CardSerializer(cards, many=True).data
            for day, cards in history.reviews_by_date.items()
        }
