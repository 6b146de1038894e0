# providers/models.py
#
# Purpose:
# - Bookable providers (Artist, Studio), their weekly availability template,
#   and the ratings clients leave for them.
#
# Design highlights:
# - Artist and Studio share an abstract ProviderBase (owner, hourly rate,
#   derived rating aggregate).
# - average_rating / review_count are derived. Only
#   providers.services.rating_aggregator writes them.
# - Availability and ratings are their own tables keyed by provider instead of
#   lists embedded in the provider row. Each row points at exactly one of
#   artist/studio (check constraint), same as booking.Booking.
# - Times of day are stored as zero-padded "HH:MM" strings, so plain string
#   comparison orders them correctly.
#
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone


class Weekday(models.TextChoices):
    MONDAY = "Monday", "Monday"
    TUESDAY = "Tuesday", "Tuesday"
    WEDNESDAY = "Wednesday", "Wednesday"
    THURSDAY = "Thursday", "Thursday"
    FRIDAY = "Friday", "Friday"
    SATURDAY = "Saturday", "Saturday"
    SUNDAY = "Sunday", "Sunday"


# date.weekday() index -> day name (0 = Monday)
WEEKDAY_ORDER = [day.value for day in Weekday]


# -------------------------
# Providers
# -------------------------
class ProviderBase(models.Model):
    """
    Fields shared by everything a client can book.
    """
    provider_type = None

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="%(class)ss",
    )
    name = models.CharField(max_length=200)
    hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    is_available_for_hire = models.BooleanField(default=True)
    average_rating = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=0,
        editable=False,
        help_text="Derived: mean of ratings, one decimal place.",
    )
    review_count = models.PositiveIntegerField(
        default=0,
        editable=False,
        help_text="Derived: number of ratings.",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True

    def __str__(self):
        return f"{self.name} ({self.provider_type})"

    def provider_filter(self):
        """Lookup kwargs selecting rows that belong to this provider."""
        return {self.provider_type: self}


class Artist(ProviderBase):
    """
    A musician offering bookable time.
    """
    provider_type = "artist"

    instruments = models.CharField(max_length=300, blank=True)
    genres = models.CharField(max_length=300, blank=True)


class Studio(ProviderBase):
    """
    A recording studio offering bookable time.
    """
    provider_type = "studio"

    city = models.CharField(max_length=120, blank=True)
    address = models.CharField(max_length=300, blank=True)


PROVIDER_MODELS = {
    Artist.provider_type: Artist,
    Studio.provider_type: Studio,
}


def get_provider_model(provider_type):
    """
    Map "artist"/"studio" to its model class.
    Raises KeyError for anything else.
    """
    return PROVIDER_MODELS[(provider_type or "").strip().lower()]


def _exactly_one_provider():
    return (
        Q(artist__isnull=False, studio__isnull=True)
        | Q(artist__isnull=True, studio__isnull=False)
    )


# -------------------------
# Weekly availability
# -------------------------
class AvailabilityDay(models.Model):
    """
    One weekday of a provider's recurring schedule.
    A provider has at most one row per day name.
    """
    artist = models.ForeignKey(
        Artist, on_delete=models.CASCADE, null=True, blank=True, related_name="availability_days"
    )
    studio = models.ForeignKey(
        Studio, on_delete=models.CASCADE, null=True, blank=True, related_name="availability_days"
    )
    day = models.CharField(max_length=9, choices=Weekday.choices)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=_exactly_one_provider(),
                name="availabilityday_exactly_one_provider",
            ),
            models.UniqueConstraint(fields=["artist", "day"], name="uniq_availabilityday_artist_day"),
            models.UniqueConstraint(fields=["studio", "day"], name="uniq_availabilityday_studio_day"),
        ]

    def __str__(self):
        return f"{self.artist or self.studio}: {self.day}"


class AvailabilityWindow(models.Model):
    """
    An open interval within a day, e.g. 09:00-12:00.
    Overlapping windows on the same day are allowed.
    """
    day = models.ForeignKey(AvailabilityDay, on_delete=models.CASCADE, related_name="windows")
    position = models.PositiveSmallIntegerField(default=0)
    start_time = models.CharField(max_length=5)
    end_time = models.CharField(max_length=5)
    is_available = models.BooleanField(default=True)

    class Meta:
        ordering = ["position", "id"]

    def __str__(self):
        flag = "" if self.is_available else " (blocked)"
        return f"{self.start_time}-{self.end_time}{flag}"


# -------------------------
# Ratings
# -------------------------
class Rating(models.Model):
    """
    A user's 1..5 rating of a provider. One per (provider, user).
    """
    artist = models.ForeignKey(
        Artist, on_delete=models.CASCADE, null=True, blank=True, related_name="ratings"
    )
    studio = models.ForeignKey(
        Studio, on_delete=models.CASCADE, null=True, blank=True, related_name="ratings"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="provider_ratings"
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    review = models.TextField(max_length=1000, blank=True)
    date = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-date", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=_exactly_one_provider(),
                name="rating_exactly_one_provider",
            ),
            models.UniqueConstraint(fields=["artist", "user"], name="uniq_rating_artist_user"),
            models.UniqueConstraint(fields=["studio", "user"], name="uniq_rating_studio_user"),
        ]

    def __str__(self):
        return f"{self.user} rated {self.artist or self.studio}: {self.rating}"

    @property
    def provider(self):
        return self.artist or self.studio
