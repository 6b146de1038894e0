from rest_framework import serializers
from .models import Artist, Rating, Studio

PROVIDER_FIELDS = [
    "id",
    "user",
    "name",
    "hourly_rate",
    "is_available_for_hire",
    "average_rating",
    "review_count",
    "created_at",
]


class ArtistSerializer(serializers.ModelSerializer):
    class Meta:
        model = Artist
        fields = PROVIDER_FIELDS + ["instruments", "genres"]
        read_only_fields = ["user", "average_rating", "review_count", "created_at"]


class StudioSerializer(serializers.ModelSerializer):
    class Meta:
        model = Studio
        fields = PROVIDER_FIELDS + ["city", "address"]
        read_only_fields = ["user", "average_rating", "review_count", "created_at"]


class RatingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Rating
        fields = ["id", "user", "rating", "review", "date"]
        read_only_fields = fields


class RatingInputSerializer(serializers.Serializer):
    rating = serializers.IntegerField()
    review = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class WindowSerializer(serializers.Serializer):
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    is_available = serializers.BooleanField(required=False, default=True)


class AvailabilityDaySerializer(serializers.Serializer):
    day = serializers.CharField()
    slots = WindowSerializer(many=True)
