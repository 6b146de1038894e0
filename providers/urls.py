from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import ArtistViewSet, StudioViewSet

router = SimpleRouter()
router.register(r"artists", ArtistViewSet, basename="artist")
router.register(r"studios", StudioViewSet, basename="studio")

urlpatterns = [path("", include(router.urls))]
