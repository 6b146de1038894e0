"""
rating_aggregator.py
--------------------
Keeps a provider's average_rating / review_count in step with its ratings.

Invariant after every add/remove:
    average_rating == mean(ratings) rounded half-up to one decimal (0 if none)
    review_count   == number of ratings

Each mutation locks the provider row (select_for_update) and recomputes the
aggregate inside the same transaction, so concurrent raters are serialized
and no half-updated aggregate is ever committed.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.db import transaction
from django.db.models import Count, Sum

from booking.exceptions import DuplicateRating, InvalidScore, NotFound
from ..models import Rating

logger = logging.getLogger(__name__)

MIN_SCORE = 1
MAX_SCORE = 5
ONE_DECIMAL = Decimal("0.1")


def validate_score(rating) -> int:
    """
    Return the score as an int in 1..5. Raises InvalidScore.
    Accepts ints and integral strings/decimals ("4", Decimal("4")); rejects 4.5 and bools.
    """
    if isinstance(rating, bool):
        raise InvalidScore(f"Rating must be a whole number from 1 to 5. Received: {rating!r}")
    try:
        value = Decimal(str(rating).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidScore(f"Rating must be a whole number from 1 to 5. Received: {rating!r}") from None
    if value != value.to_integral_value() or not MIN_SCORE <= value <= MAX_SCORE:
        raise InvalidScore(f"Rating must be a whole number from 1 to 5. Received: {rating!r}")
    return int(value)


def rounded_mean(total, count: int) -> Decimal:
    """Mean rounded half-up to one decimal place; Decimal('0.0') for no ratings."""
    if not count:
        return Decimal("0.0")
    return (Decimal(total) / Decimal(count)).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


class RatingAggregator:
    """
    The only writer of Provider.average_rating / Provider.review_count.
    """

    @staticmethod
    def _lock(provider):
        return type(provider).objects.select_for_update().get(pk=provider.pk)

    @staticmethod
    def _apply(locked, provider):
        stats = Rating.objects.filter(**locked.provider_filter()).aggregate(
            total=Sum("rating"), count=Count("id")
        )
        locked.average_rating = rounded_mean(stats["total"] or 0, stats["count"])
        locked.review_count = stats["count"]
        locked.save(update_fields=["average_rating", "review_count"])

        # Keep the caller's instance in sync with what was committed.
        provider.average_rating = locked.average_rating
        provider.review_count = locked.review_count

    @classmethod
    def recompute(cls, provider):
        """
        Rebuild the aggregate from the stored ratings.
        """
        with transaction.atomic():
            locked = cls._lock(provider)
            cls._apply(locked, provider)
        return provider

    @classmethod
    def add_rating(cls, provider, user, rating, review=""):
        """
        Add `user`'s rating of `provider` and refresh the aggregate.

        Raises:
            InvalidScore: rating not a whole number in 1..5
            DuplicateRating: user already rated this provider
        """
        score = validate_score(rating)
        with transaction.atomic():
            locked = cls._lock(provider)
            already = Rating.objects.filter(user=user, **locked.provider_filter()).exists()
            if already:
                raise DuplicateRating(
                    f"You have already rated this {locked.provider_type}.",
                    provider_type=locked.provider_type,
                    provider_id=locked.pk,
                )
            entry = Rating.objects.create(
                user=user,
                rating=score,
                review=review or "",
                **locked.provider_filter(),
            )
            cls._apply(locked, provider)

        logger.info(
            "Rating %s added to %s by user %s; average=%s count=%s",
            score, provider, getattr(user, "pk", user), provider.average_rating, provider.review_count,
        )
        return entry

    @classmethod
    def remove_rating(cls, provider, rating_id):
        """
        Remove one rating from `provider` and refresh the aggregate.

        Raises:
            NotFound: no such rating on this provider
        """
        with transaction.atomic():
            locked = cls._lock(provider)
            deleted, _ = Rating.objects.filter(pk=rating_id, **locked.provider_filter()).delete()
            if not deleted:
                raise NotFound(
                    f"Rating {rating_id} not found for this {locked.provider_type}.",
                    rating_id=rating_id,
                )
            cls._apply(locked, provider)

        logger.info(
            "Rating %s removed from %s; average=%s count=%s",
            rating_id, provider, provider.average_rating, provider.review_count,
        )
