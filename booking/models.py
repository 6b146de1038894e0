# booking/models.py
#
# Purpose:
# - The Booking record: a client's reservation of an artist's or a studio's time.
#
# Design highlights:
# - Exactly one of artist/studio is set (check constraint).
# - status and payment_status are two independent state machines, both closed
#   TextChoices; the allowed transitions live in services/booking_manager.py.
# - Price fields are a snapshot taken once at creation (PricingCalculator).
#   A later change to the provider's hourly_rate never touches them.
# - The booking-level rating is only filled once status is COMPLETED.
#
# Notes for developers:
# - Never write status/payment_status directly; go through BookingManager so
#   authorization and the transition table are enforced.
# - start_time/end_time are zero-padded "HH:MM" strings on the same day, so
#   overlap checks are plain string comparisons.
#
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q

from providers.models import Artist, Studio


class BookingStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    REFUNDED = "refunded", "Refunded"


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Cash"
    CARD = "card", "Card"
    ONLINE = "online", "Online"


# -------------------------
# Booking record
# -------------------------
class Booking(models.Model):
    """
    A reservation of a provider's time on one date.
    """
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    artist = models.ForeignKey(
        Artist, on_delete=models.PROTECT, null=True, blank=True, related_name="bookings"
    )
    studio = models.ForeignKey(
        Studio, on_delete=models.PROTECT, null=True, blank=True, related_name="bookings"
    )

    date = models.DateField()
    start_time = models.CharField(max_length=5)
    end_time = models.CharField(max_length=5)
    duration_hours = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
    )

    # Price snapshot (never recomputed)
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2)
    service_fee_percent = models.DecimalField(max_digits=5, decimal_places=2)
    base_cost = models.DecimalField(max_digits=12, decimal_places=2)
    service_fee = models.DecimalField(max_digits=12, decimal_places=2)
    total_cost = models.DecimalField(max_digits=12, decimal_places=2)

    notes = models.TextField(max_length=1000, blank=True)

    status = models.CharField(
        max_length=10,
        choices=BookingStatus.choices,
        default=BookingStatus.PENDING,
        help_text="Booking lifecycle status",
    )
    cancellation_reason = models.TextField(blank=True)
    cancellation_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the booking was cancelled (if applicable).",
    )
    completed_at = models.DateTimeField(null=True, blank=True)

    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_method = models.CharField(
        max_length=10,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
    )
    payment_id = models.CharField(max_length=200, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    rating_score = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    rating_review = models.TextField(max_length=1000, blank=True)
    rating_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "-start_time"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(artist__isnull=False, studio__isnull=True)
                    | Q(artist__isnull=True, studio__isnull=False)
                ),
                name="booking_exactly_one_provider",
            ),
        ]
        indexes = [
            models.Index(fields=["artist", "date"]),
            models.Index(fields=["studio", "date"]),
            models.Index(fields=["client"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self):
        return f"{self.client} → {self.provider} on {self.date} {self.start_time}-{self.end_time}"

    @property
    def provider(self):
        return self.artist or self.studio

    @property
    def booking_type(self):
        return "artist" if self.artist_id else "studio"
