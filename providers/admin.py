# providers/admin.py
from django.contrib import admin
from .models import Artist, AvailabilityDay, AvailabilityWindow, Rating, Studio

# average_rating / review_count are derived by RatingAggregator (editable=False),
# so they only show up read-only.
DERIVED = ("average_rating", "review_count", "created_at")


@admin.register(Artist)
class ArtistAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "user", "hourly_rate", "is_available_for_hire", "average_rating", "review_count")
    list_filter = ("is_available_for_hire",)
    search_fields = ("name", "user__username", "genres", "instruments")
    readonly_fields = DERIVED


@admin.register(Studio)
class StudioAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "user", "city", "hourly_rate", "is_available_for_hire", "average_rating", "review_count")
    list_filter = ("is_available_for_hire", "city")
    search_fields = ("name", "user__username", "city")
    readonly_fields = DERIVED


class AvailabilityWindowInline(admin.TabularInline):
    model = AvailabilityWindow
    extra = 0


@admin.register(AvailabilityDay)
class AvailabilityDayAdmin(admin.ModelAdmin):
    list_display = ("id", "artist", "studio", "day")
    list_filter = ("day",)
    inlines = [AvailabilityWindowInline]


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    list_display = ("id", "artist", "studio", "user", "rating", "date")
    list_filter = ("rating",)
    search_fields = ("user__username", "artist__name", "studio__name")

    readonly_fields = ("artist", "studio", "user", "rating", "date")

    # Adding or deleting here would bypass the aggregate; use the API.
    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
