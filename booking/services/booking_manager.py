"""
booking_manager.py
------------------
Coordinates the booking lifecycle: creation, status changes, payment, the
post-completion rating, and deletion.

Status machine (status):
    pending   -> confirmed   provider, admin
    pending   -> cancelled   client, provider, admin (admin must give a reason)
    confirmed -> cancelled   client, provider, admin (admin must give a reason)
    confirmed -> completed   provider, admin
    anything else            InvalidTransition (completed/cancelled are terminal)

Payment machine (payment_status), independent of status:
    pending -> paid          client, admin
    paid    -> refunded      admin
    anything else            InvalidTransition

Authorization comes first: only the booking's client, the provider's owner,
or an admin may act on a booking at all (Unauthorized otherwise).

Double-booking prevention: creation locks the provider row
(select_for_update) and checks for overlapping active bookings inside the
same transaction, so two clients racing for one slot cannot both win.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from providers.services.availability_template import to_minutes, validate_window
from providers.services.rating_aggregator import RatingAggregator, validate_score
from ..exceptions import (
    CancellationReasonRequired,
    DuplicateRating,
    InvalidTransition,
    SlotConflict,
    SlotUnavailable,
    Unauthorized,
)
from ..models import Booking, BookingStatus, PaymentMethod, PaymentStatus
from .actors import Role
from .availability_engine import AvailabilityEngine
from .pricing import PricingCalculator
from .slot_utils import get_service_fee_percent, parse_date

logger = logging.getLogger(__name__)

# Capacities an actor can hold towards one booking
CLIENT = "client"
PROVIDER = "provider"
ADMIN = "admin"

STATUS_TRANSITIONS = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED): {PROVIDER, ADMIN},
    (BookingStatus.PENDING, BookingStatus.CANCELLED): {CLIENT, PROVIDER, ADMIN},
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED): {CLIENT, PROVIDER, ADMIN},
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED): {PROVIDER, ADMIN},
}

PAYMENT_TRANSITIONS = {
    (PaymentStatus.PENDING, PaymentStatus.PAID): {CLIENT, ADMIN},
    (PaymentStatus.PAID, PaymentStatus.REFUNDED): {ADMIN},
}

HUNDREDTH = Decimal("0.01")


def allowed_status_targets(current):
    """Statuses reachable in one step from `current`."""
    return {target for (source, target) in STATUS_TRANSITIONS if source == current}


def _coerce_choice(value, choices, field):
    try:
        return choices(value)
    except ValueError:
        valid = ", ".join(choices.values)
        raise InvalidTransition(
            f"Invalid {field} value: {value!r}. Use one of: {valid}.",
            attempted_status=value,
        ) from None


class BookingManager:
    def __init__(self):
        self.availability = AvailabilityEngine()

    # -------------------------
    # Authorization
    # -------------------------
    @staticmethod
    def capacities(booking, actor):
        """
        The roles `actor` holds towards `booking` (subset of client/provider/admin).
        """
        held = set()
        if actor.role == Role.ADMIN:
            held.add(ADMIN)
        if booking.client_id == actor.user_id:
            held.add(CLIENT)
        provider = booking.provider
        if provider is not None and provider.user_id == actor.user_id:
            held.add(PROVIDER)
        return held

    def require_party(self, booking, actor):
        held = self.capacities(booking, actor)
        if not held:
            raise Unauthorized("Not authorized to access this booking.", booking_id=booking.pk)
        return held

    @staticmethod
    def _require_capacity(held, allowed, action):
        if not held & allowed:
            raise Unauthorized(
                f"Not authorized to {action} this booking.",
                allowed=sorted(allowed),
            )

    def visible_bookings(self, actor):
        """
        Bookings `actor` may see: all for admins, otherwise the ones they made
        or the ones made against a provider they own.
        """
        qs = Booking.objects.select_related("client", "artist", "studio")
        if actor.role == Role.ADMIN:
            return qs
        return qs.filter(
            Q(client_id=actor.user_id)
            | Q(artist__user_id=actor.user_id)
            | Q(studio__user_id=actor.user_id)
        )

    # -------------------------
    # Pricing
    # -------------------------
    @staticmethod
    def duration_hours(start_time: str, end_time: str) -> Decimal:
        """
        Hours between two "HH:MM" strings, to two decimals.
        Raises MalformedTime / InvalidInterval.
        """
        spec = validate_window({"start_time": start_time, "end_time": end_time})
        minutes = to_minutes(spec.end_time) - to_minutes(spec.start_time)
        return (Decimal(minutes) / Decimal(60)).quantize(HUNDREDTH, rounding=ROUND_HALF_UP)

    def quote(self, provider, start_time, end_time):
        """
        Price a prospective booking without creating it.

        Returns:
            dict with duration_hours, hourly_rate, service_fee_percent,
            base_cost, service_fee, total_cost (Decimals)
        """
        hours = self.duration_hours(start_time, end_time)
        percent = get_service_fee_percent()
        cost = PricingCalculator.compute_cost(provider.hourly_rate, hours, percent)
        return {
            "duration_hours": hours,
            "hourly_rate": Decimal(provider.hourly_rate),
            "service_fee_percent": percent,
            "base_cost": cost.base_cost,
            "service_fee": cost.service_fee,
            "total_cost": cost.total,
        }

    # -------------------------
    # Creation
    # -------------------------
    def create_booking(self, actor, provider, date, start_time, end_time, notes=""):
        """
        Create a pending booking after checking availability and overlap.

        Args:
            actor: Actor making the booking (becomes the client)
            provider: Artist or Studio instance
            date: date or 'YYYY-MM-DD'
            start_time, end_time: "HH:MM" strings on the same day
            notes: optional string

        Raises:
            Unauthorized: actor is not a client, or owns the provider
            MalformedTime / InvalidInterval: bad date or times
            SlotUnavailable: provider not for hire, or range outside its availability
            SlotConflict: range overlaps an active booking for this provider
        """
        if actor.role != Role.CLIENT or actor.user_id == provider.user_id:
            raise Unauthorized(
                "Only clients can create bookings.",
                role=actor.role,
            )

        day_date = parse_date(date)
        start_time, end_time, _ = validate_window({"start_time": start_time, "end_time": end_time})
        hours = self.duration_hours(start_time, end_time)

        if not provider.is_available_for_hire:
            raise SlotUnavailable(f"This {provider.provider_type} is not currently available for hire.")

        if not self.availability.fits_availability(provider, day_date, start_time, end_time):
            raise SlotUnavailable(
                f"{start_time}-{end_time} on {day_date.isoformat()} is outside this "
                f"{provider.provider_type}'s availability.",
                date=day_date.isoformat(),
                start_time=start_time,
                end_time=end_time,
            )

        with transaction.atomic():
            # Per-provider lock: serializes check-then-insert for this provider.
            locked = type(provider).objects.select_for_update().get(pk=provider.pk)

            clashes = list(
                self.availability.overlapping_bookings(locked, day_date, start_time, end_time)
                .values_list("pk", flat=True)
            )
            if clashes:
                logger.warning(
                    "Slot conflict for %s %s on %s %s-%s with booking(s) %s",
                    locked.provider_type, locked.pk, day_date, start_time, end_time, clashes,
                )
                raise SlotConflict(
                    "Selected time overlaps with an existing booking for this "
                    f"{locked.provider_type}.",
                    conflicting_booking_ids=clashes,
                )

            percent = get_service_fee_percent()
            cost = PricingCalculator.compute_cost(locked.hourly_rate, hours, percent)

            booking = Booking.objects.create(
                client_id=actor.user_id,
                date=day_date,
                start_time=start_time,
                end_time=end_time,
                duration_hours=hours,
                hourly_rate=locked.hourly_rate,
                service_fee_percent=percent,
                base_cost=cost.base_cost,
                service_fee=cost.service_fee,
                total_cost=cost.total,
                notes=notes or "",
                **locked.provider_filter(),
            )

        logger.info(
            "Booking %s created: client=%s %s=%s %s %s-%s total=%s",
            booking.pk, actor.user_id, provider.provider_type, provider.pk,
            day_date, start_time, end_time, cost.total,
        )
        return booking

    # -------------------------
    # Status
    # -------------------------
    @staticmethod
    def _booking_end(booking):
        end = datetime.combine(booking.date, datetime.min.time()) + timedelta(minutes=to_minutes(booking.end_time))
        return timezone.make_aware(end, timezone.get_current_timezone())

    def transition_status(self, booking, actor, new_status, reason=""):
        """
        Move `booking` to `new_status`.

        Raises:
            Unauthorized: actor is not a party to this booking, or lacks the
                capacity this transition needs
            InvalidTransition: the transition is not in the table (including
                same-status requests)
            CancellationReasonRequired: admin cancellation without a reason
        """
        new_status = _coerce_choice(new_status, BookingStatus, "status")
        reason = (reason or "").strip()

        with transaction.atomic():
            booking = Booking.objects.select_for_update().get(pk=booking.pk)
            held = self.require_party(booking, actor)
            current = BookingStatus(booking.status)

            allowed = STATUS_TRANSITIONS.get((current, new_status))
            if allowed is None:
                raise InvalidTransition(
                    current_status=current.value,
                    attempted_status=new_status.value,
                    booking_id=booking.pk,
                )
            self._require_capacity(held, allowed, f"mark as {new_status.value}")

            update_fields = ["status", "updated_at"]
            if new_status == BookingStatus.CANCELLED:
                if actor.role == Role.ADMIN and not reason:
                    raise CancellationReasonRequired(
                        "A cancellation reason is required when an admin cancels a booking.",
                        current_status=current.value,
                        attempted_status=new_status.value,
                    )
                booking.cancellation_reason = reason
                booking.cancellation_date = timezone.now()
                update_fields += ["cancellation_reason", "cancellation_date"]

            if new_status == BookingStatus.COMPLETED:
                if timezone.now() < self._booking_end(booking):
                    if getattr(settings, "TUNELINK_ENFORCE_COMPLETION_AFTER_END", False):
                        raise InvalidTransition(
                            "Booking cannot be completed before it has ended.",
                            current_status=current.value,
                            attempted_status=new_status.value,
                        )
                    logger.warning("Booking %s marked completed before its end time", booking.pk)
                booking.completed_at = timezone.now()
                update_fields.append("completed_at")

            booking.status = new_status
            booking.save(update_fields=update_fields)

        logger.info(
            "Booking %s status %s -> %s by user %s (%s)",
            booking.pk, current.value, new_status.value, actor.user_id, actor.role,
        )
        return booking

    def confirm(self, booking, actor):
        return self.transition_status(booking, actor, BookingStatus.CONFIRMED)

    def cancel(self, booking, actor, reason=""):
        return self.transition_status(booking, actor, BookingStatus.CANCELLED, reason=reason)

    def complete(self, booking, actor):
        return self.transition_status(booking, actor, BookingStatus.COMPLETED)

    # -------------------------
    # Payment
    # -------------------------
    def record_payment(self, booking, actor, payment_status, payment_method=None, payment_id=""):
        """
        Record a payment status reported by the payment collaborator.
        total_cost is never changed, including on refund.

        Raises:
            Unauthorized / InvalidTransition
        """
        new_status = _coerce_choice(payment_status, PaymentStatus, "payment status")
        method = _coerce_choice(payment_method, PaymentMethod, "payment method") if payment_method else None
        payment_id = (payment_id or "").strip()

        with transaction.atomic():
            booking = Booking.objects.select_for_update().get(pk=booking.pk)
            held = self.require_party(booking, actor)
            current = PaymentStatus(booking.payment_status)

            allowed = PAYMENT_TRANSITIONS.get((current, new_status))
            if allowed is None:
                raise InvalidTransition(
                    f"Cannot change payment status from '{current.value}' to '{new_status.value}'.",
                    current_status=current.value,
                    attempted_status=new_status.value,
                    booking_id=booking.pk,
                )
            self._require_capacity(held, allowed, f"mark as {new_status.value}")

            update_fields = ["payment_status", "updated_at"]
            if new_status == PaymentStatus.PAID:
                if booking.status == BookingStatus.CANCELLED:
                    raise InvalidTransition(
                        "A cancelled booking cannot be paid.",
                        current_status=current.value,
                        attempted_status=new_status.value,
                    )
                method = method or PaymentMethod(booking.payment_method)
                if method != PaymentMethod.CASH and not payment_id:
                    raise InvalidTransition(
                        f"payment_id is required for {method.value} payments.",
                        current_status=current.value,
                        attempted_status=new_status.value,
                    )
                booking.payment_method = method
                booking.payment_id = payment_id
                booking.paid_at = timezone.now()
                update_fields += ["payment_method", "payment_id", "paid_at"]
            else:
                booking.refunded_at = timezone.now()
                update_fields.append("refunded_at")

            booking.payment_status = new_status
            booking.save(update_fields=update_fields)

        logger.info(
            "Booking %s payment %s -> %s by user %s (%s)",
            booking.pk, current.value, new_status.value, actor.user_id, actor.role,
        )
        return booking

    def refund(self, booking, actor):
        return self.record_payment(booking, actor, PaymentStatus.REFUNDED)

    # -------------------------
    # Rating
    # -------------------------
    def rate_booking(self, booking, actor, rating, review=""):
        """
        Attach the client's rating to a completed booking and add it to the
        provider's aggregate, in one transaction.

        Raises:
            Unauthorized: actor is not the booking's client
            InvalidTransition: booking is not completed
            InvalidScore / DuplicateRating
        """
        score = validate_score(rating)
        with transaction.atomic():
            booking = Booking.objects.select_for_update().get(pk=booking.pk)
            held = self.require_party(booking, actor)
            self._require_capacity(held, {CLIENT}, "rate")

            if booking.status != BookingStatus.COMPLETED:
                raise InvalidTransition(
                    "Only completed bookings can be rated.",
                    current_status=booking.status,
                    booking_id=booking.pk,
                )
            if booking.rating_score is not None:
                raise DuplicateRating("This booking has already been rated.", booking_id=booking.pk)

            RatingAggregator.add_rating(booking.provider, booking.client, score, review)

            booking.rating_score = score
            booking.rating_review = review or ""
            booking.rating_date = timezone.now()
            booking.save(update_fields=["rating_score", "rating_review", "rating_date", "updated_at"])

        logger.info("Booking %s rated %s by user %s", booking.pk, score, actor.user_id)
        return booking

    # -------------------------
    # Deletion
    # -------------------------
    @transaction.atomic
    def delete_booking(self, booking, actor) -> bool:
        """
        Hard-delete a booking. Admin only, and only while unpaid; paid or
        refunded bookings are kept for the record.
        """
        booking = Booking.objects.select_for_update().get(pk=booking.pk)
        held = self.require_party(booking, actor)
        self._require_capacity(held, {ADMIN}, "delete")
        if booking.payment_status != PaymentStatus.PENDING:
            raise InvalidTransition(
                "Only unpaid bookings can be deleted; cancel this booking instead.",
                current_status=booking.payment_status,
                booking_id=booking.pk,
            )
        pk = booking.pk
        booking.delete()
        logger.info("Booking %s deleted by user %s", pk, actor.user_id)
        return True
