# booking/views.py
#
# Purpose:
# - Booking API: create, list, retrieve, status / payment changes, the
#   post-completion rating, admin deletion, and a price quote.
#
# Notes for developers:
# - Every rule lives in BookingManager; views only parse input, resolve the
#   caller to an Actor, and turn BookingEngineError into a JSON response.
# - Missing objects are 404 via get_object_or_404. A booking that exists but
#   belongs to someone else is 403 (Unauthorized), not 404.
#
import logging

from django.shortcuts import get_object_or_404

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from providers.models import PROVIDER_MODELS
from providers.serializers import RatingInputSerializer
from .exceptions import BookingEngineError
from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusSerializer,
    PaymentSerializer,
    QuoteSerializer,
)
from .services.actors import actor_for_user
from .services.booking_manager import BookingManager

logger = logging.getLogger(__name__)


def engine_error_response(exc):
    """BookingEngineError -> {"detail", "code", ...} with the error's HTTP status."""
    return Response(exc.detail(), status=exc.status_code)


class ActorMixin:
    """Resolves request.user to an Actor once per request."""

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.actor = actor_for_user(request.user)


class BookingViewSet(ActorMixin, mixins.CreateModelMixin, mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    Endpoints:
    - GET    /api/bookings/                  bookings visible to the caller (?status= filter)
    - POST   /api/bookings/                  create (pending, price snapshot taken)
    - GET    /api/bookings/{id}/             one booking (parties and admins)
    - DELETE /api/bookings/{id}/             hard delete (admin, unpaid only)
    - PUT    /api/bookings/{id}/status/      confirm / cancel / complete
    - PUT    /api/bookings/{id}/payment/     paid / refunded
    - POST   /api/bookings/{id}/rating/      client rating after completion
    - GET    /api/bookings/quote/            price breakdown, nothing stored
    """
    serializer_class = BookingSerializer
    manager = BookingManager()

    def get_queryset(self):
        qs = self.manager.visible_bookings(self.actor)
        wanted = (self.request.query_params.get("status") or "").strip().lower()
        if wanted:
            qs = qs.filter(status=wanted)
        return qs

    def _get_booking(self, pk):
        return get_object_or_404(Booking.objects.select_related("client", "artist", "studio"), pk=pk)

    def retrieve(self, request, pk=None):
        booking = self._get_booking(pk)
        try:
            self.manager.require_party(booking, self.actor)
        except BookingEngineError as e:
            return engine_error_response(e)
        return Response(BookingSerializer(booking).data)

    def create(self, request, *args, **kwargs):
        """
        Body: {provider_type, provider_id, date, start_time, end_time, notes?}
        201 with the booking, 409 on overlap or outside availability.
        """
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        provider = get_object_or_404(PROVIDER_MODELS[data["provider_type"]], pk=data["provider_id"])

        try:
            booking = self.manager.create_booking(
                self.actor,
                provider,
                data["date"],
                data["start_time"],
                data["end_time"],
                notes=data.get("notes", ""),
            )
        except BookingEngineError as e:
            logger.info("Booking rejected for user %s: %s", self.actor.user_id, e)
            return engine_error_response(e)

        out = BookingSerializer(booking)
        headers = self.get_success_headers(out.data)
        return Response(out.data, status=status.HTTP_201_CREATED, headers=headers)

    def destroy(self, request, pk=None):
        booking = self._get_booking(pk)
        try:
            self.manager.delete_booking(booking, self.actor)
        except BookingEngineError as e:
            return engine_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request, pk=None):
        """
        Body: {status, cancellation_reason?}
        """
        booking = self._get_booking(pk)
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = self.manager.transition_status(
                booking,
                self.actor,
                data["status"],
                reason=data.get("cancellation_reason", ""),
            )
        except BookingEngineError as e:
            return engine_error_response(e)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["put"], url_path="payment")
    def set_payment(self, request, pk=None):
        """
        Body: {payment_status, payment_method?, payment_id?}
        """
        booking = self._get_booking(pk)
        serializer = PaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = self.manager.record_payment(
                booking,
                self.actor,
                data["payment_status"],
                payment_method=data.get("payment_method"),
                payment_id=data.get("payment_id", ""),
            )
        except BookingEngineError as e:
            return engine_error_response(e)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"], url_path="rating")
    def rate(self, request, pk=None):
        """
        Body: {rating, review?}. Completed bookings only, once, by the client.
        """
        booking = self._get_booking(pk)
        serializer = RatingInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = self.manager.rate_booking(booking, self.actor, data["rating"], data.get("review", ""))
        except BookingEngineError as e:
            return engine_error_response(e)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path="quote")
    def quote(self, request):
        """
        GET /api/bookings/quote/?provider_type=artist&provider_id=1&start_time=10:00&end_time=12:00
        """
        serializer = QuoteSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        provider = get_object_or_404(PROVIDER_MODELS[data["provider_type"]], pk=data["provider_id"])
        try:
            breakdown = self.manager.quote(provider, data["start_time"], data["end_time"])
        except BookingEngineError as e:
            return engine_error_response(e)

        payload = {key: f"{value:.2f}" for key, value in breakdown.items()}
        payload.update(provider_type=provider.provider_type, provider_id=provider.pk)
        return Response(payload)
