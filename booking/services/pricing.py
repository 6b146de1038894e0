# booking/services/pricing.py
#
# Purpose:
# - Compute what a booking costs: base (hourly rate x hours) plus the
#   platform service fee.
#
# Rules:
# - base_cost   = hourly_rate * duration_hours (not rounded)
# - service_fee = base_cost * fee_percent / 100, rounded half-up to a whole unit
# - total       = base_cost + service_fee
# - hourly_rate < 0 or duration_hours <= 0 -> InvalidRate
#
# Called exactly once when a booking is created; the result is stored on the
# booking and never recomputed, even if the provider later changes its rate.

from collections import namedtuple
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from ..exceptions import InvalidRate

CostBreakdown = namedtuple("CostBreakdown", ["base_cost", "service_fee", "total"])

WHOLE_UNIT = Decimal("1")


class PricingCalculator:
    """
    Pure pricing helpers. No database access, no side effects.
    """

    @staticmethod
    def to_decimal(value, field):
        """
        Convert int/str/float/Decimal to Decimal (via str to avoid float noise).

        Raises:
            InvalidRate: value is missing or not a finite number
        """
        try:
            number = Decimal(str(value).strip())
        except (ValueError, TypeError, InvalidOperation):
            raise InvalidRate(f"{field} must be a number. Received: {value!r}", field=field) from None
        if not number.is_finite():
            raise InvalidRate(f"{field} must be a finite number. Received: {value!r}", field=field)
        return number

    @staticmethod
    def compute_cost(hourly_rate, duration_hours, service_fee_percent):
        """
        Returns:
            CostBreakdown(base_cost, service_fee, total) as Decimals

        Example:
            >>> PricingCalculator.compute_cost(2000, 2, 5)
            CostBreakdown(base_cost=Decimal('4000'), service_fee=Decimal('200'), total=Decimal('4200'))
        """
        rate = PricingCalculator.to_decimal(hourly_rate, "hourly_rate")
        hours = PricingCalculator.to_decimal(duration_hours, "duration_hours")
        percent = PricingCalculator.to_decimal(service_fee_percent, "service_fee_percent")

        if rate < 0:
            raise InvalidRate(f"hourly_rate cannot be negative. Received: {rate}", field="hourly_rate")
        if hours <= 0:
            raise InvalidRate(
                f"duration_hours must be greater than zero. Received: {hours}",
                field="duration_hours",
            )
        if percent < 0:
            raise InvalidRate(
                f"service_fee_percent cannot be negative. Received: {percent}",
                field="service_fee_percent",
            )

        base_cost = rate * hours
        service_fee = (base_cost * percent / 100).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)
        return CostBreakdown(base_cost, service_fee, base_cost + service_fee)
