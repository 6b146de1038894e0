# providers/views.py
#
# Purpose:
# - Read-only artist/studio listing.
# - Per-provider endpoints: bookable slots for a date, the weekly availability
#   template, and ratings.
#
# Permissions:
# - Any authenticated user can read.
# - Availability writes: the provider's owner or an admin.
# - Rating delete: the rating's author or an admin.
#
import logging

from django.shortcuts import get_object_or_404

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from booking.exceptions import BookingEngineError, InvalidSlotDuration, MalformedTime, Unauthorized
from booking.services.actors import Role
from booking.services.availability_engine import AvailabilityEngine
from booking.views import ActorMixin, engine_error_response
from .models import Artist, Rating, Studio
from .serializers import (
    ArtistSerializer,
    AvailabilityDaySerializer,
    RatingInputSerializer,
    RatingSerializer,
    StudioSerializer,
)
from .services.availability_template import AvailabilityTemplate
from .services.rating_aggregator import RatingAggregator

logger = logging.getLogger(__name__)

TRUTHY = ("1", "true", "yes", "on")


class ProviderViewSet(ActorMixin, viewsets.ReadOnlyModelViewSet):
    """
    Shared endpoints for Artist and Studio:
    - GET  /{id}/slots/?date=YYYY-MM-DD[&duration=60][&hide_booked=1]
    - GET  /{id}/availability/
    - PUT  /{id}/availability/   {"availability": [{"day", "slots": [...]}, ...]}
                                 or {"day", "slots"} for a single day
    - GET  /{id}/ratings/
    - POST /{id}/ratings/        {"rating", "review"}
    - DELETE /{id}/ratings/{rating_id}/
    """
    engine = AvailabilityEngine()

    def _require_owner(self, provider):
        if self.actor.role != Role.ADMIN and provider.user_id != self.actor.user_id:
            raise Unauthorized(f"Only the owner of this {provider.provider_type} can change its availability.")

    @action(detail=True, methods=["get"])
    def slots(self, request, pk=None):
        provider = self.get_object()
        date_raw = (request.query_params.get("date") or "").strip()
        duration_raw = (request.query_params.get("duration") or "").strip()
        hide_booked = (request.query_params.get("hide_booked") or "").strip().lower() in TRUTHY

        try:
            if not date_raw:
                raise MalformedTime("Missing 'date'. Use YYYY-MM-DD.")
            duration = None
            if duration_raw:
                try:
                    duration = int(duration_raw)
                except ValueError:
                    raise InvalidSlotDuration(
                        f"Slot duration must be a whole number of minutes. Received: {duration_raw!r}"
                    ) from None
            data = self.engine.find_available_slots(provider, date_raw, duration, hide_booked=hide_booked)
        except BookingEngineError as e:
            return engine_error_response(e)
        return Response(data)

    @action(detail=True, methods=["get", "put"])
    def availability(self, request, pk=None):
        provider = self.get_object()
        template = AvailabilityTemplate(provider)
        if request.method == "GET":
            return Response({"availability": template.as_list()})

        try:
            self._require_owner(provider)
            if isinstance(request.data, dict) and "day" in request.data:
                entry = AvailabilityDaySerializer(data=request.data)
                entry.is_valid(raise_exception=True)
                template.set_day(entry.validated_data["day"], entry.validated_data["slots"])
            else:
                entries = request.data.get("availability") if isinstance(request.data, dict) else request.data
                days = AvailabilityDaySerializer(data=entries or [], many=True)
                days.is_valid(raise_exception=True)
                template.replace_all(days.validated_data)
        except BookingEngineError as e:
            return engine_error_response(e)
        return Response({"availability": template.as_list()})

    @action(detail=True, methods=["get", "post"])
    def ratings(self, request, pk=None):
        provider = self.get_object()
        if request.method == "GET":
            entries = Rating.objects.filter(**provider.provider_filter())
            return Response(RatingSerializer(entries, many=True).data)

        serializer = RatingInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            entry = RatingAggregator.add_rating(provider, request.user, data["rating"], data.get("review", ""))
        except BookingEngineError as e:
            return engine_error_response(e)
        return Response(
            {
                "rating": RatingSerializer(entry).data,
                "average_rating": str(provider.average_rating),
                "review_count": provider.review_count,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["delete"], url_path=r"ratings/(?P<rating_id>\d+)")
    def remove_rating(self, request, pk=None, rating_id=None):
        provider = self.get_object()
        entry = get_object_or_404(Rating, pk=rating_id, **provider.provider_filter())
        try:
            if self.actor.role != Role.ADMIN and entry.user_id != self.actor.user_id:
                raise Unauthorized("Only the author or an admin can remove a rating.")
            RatingAggregator.remove_rating(provider, entry.pk)
        except BookingEngineError as e:
            return engine_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ArtistViewSet(ProviderViewSet):
    queryset = Artist.objects.all().order_by("id")
    serializer_class = ArtistSerializer


class StudioViewSet(ProviderViewSet):
    queryset = Studio.objects.all().order_by("id")
    serializer_class = StudioSerializer
