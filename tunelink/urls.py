# tunelink/urls.py
#
# Purpose:
# - Project URL router.
# - All JSON APIs live under /api/ (DRF routers in each app).
#
from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    # Django admin
    path("admin/", admin.site.urls),

    # =====
    # API's
    # =====
    path("api/", include("providers.urls")),
    path("api/", include("booking.urls")),
]
