from django.utils import timezone
from rest_framework import serializers

from providers.models import PROVIDER_MODELS
from .models import Booking, BookingStatus, PaymentMethod, PaymentStatus


class BookingSerializer(serializers.ModelSerializer):
    """Read-only view of a booking, price snapshot included."""
    booking_type = serializers.CharField(read_only=True)
    provider_id = serializers.SerializerMethodField()
    provider_name = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "client",
            "booking_type",
            "provider_id",
            "provider_name",
            "date",
            "start_time",
            "end_time",
            "duration_hours",
            "hourly_rate",
            "service_fee_percent",
            "base_cost",
            "service_fee",
            "total_cost",
            "notes",
            "status",
            "cancellation_reason",
            "cancellation_date",
            "completed_at",
            "payment_status",
            "payment_method",
            "payment_id",
            "paid_at",
            "refunded_at",
            "rating_score",
            "rating_review",
            "rating_date",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_provider_id(self, obj):
        return obj.artist_id or obj.studio_id

    def get_provider_name(self, obj):
        provider = obj.provider
        return provider.name if provider else None


class BookingCreateSerializer(serializers.Serializer):
    provider_type = serializers.ChoiceField(choices=sorted(PROVIDER_MODELS))
    provider_id = serializers.IntegerField(min_value=1)
    date = serializers.DateField()
    start_time = serializers.CharField(max_length=5)
    end_time = serializers.CharField(max_length=5)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")

    def validate_date(self, value):
        # prevent past dates
        if value < timezone.localdate():
            raise serializers.ValidationError("Booking date cannot be in the past.")
        return value


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BookingStatus.choices)
    cancellation_reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class PaymentSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False)
    payment_id = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")


class QuoteSerializer(serializers.Serializer):
    provider_type = serializers.ChoiceField(choices=sorted(PROVIDER_MODELS))
    provider_id = serializers.IntegerField(min_value=1)
    start_time = serializers.CharField(max_length=5)
    end_time = serializers.CharField(max_length=5)
