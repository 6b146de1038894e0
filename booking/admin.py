from django.contrib import admin
from .models import Booking

@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "client", "booking_type", "artist", "studio", "date", "start_time", "end_time", "status", "payment_status", "total_cost")
    list_filter = ("status", "payment_status", "date")
    search_fields = ("client__username", "artist__name", "studio__name")
    date_hierarchy = "date"
    # Price snapshot and lifecycle fields change only through BookingManager.
    readonly_fields = (
        "duration_hours",
        "hourly_rate",
        "service_fee_percent",
        "base_cost",
        "service_fee",
        "total_cost",
        "status",
        "cancellation_date",
        "completed_at",
        "payment_status",
        "paid_at",
        "refunded_at",
        "rating_score",
        "rating_review",
        "rating_date",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        # Bookings are created through the API so availability and overlap are checked.
        return False
