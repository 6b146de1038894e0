# providers/tests/test_seed.py

from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from providers.models import Artist, Studio
from providers.services.availability_template import AvailabilityTemplate, WindowSpec


class SeedProvidersTests(TestCase):
    def test_seed_is_idempotent(self):
        out = StringIO()
        call_command("seed_providers", stdout=out)
        self.assertIn("Created=3", out.getvalue())

        out = StringIO()
        call_command("seed_providers", stdout=out)
        self.assertIn("Created=0, Updated=3", out.getvalue())

        self.assertEqual(Artist.objects.count(), 2)
        self.assertEqual(Studio.objects.count(), 1)

    def test_seeded_availability(self):
        call_command("seed_providers", stdout=StringIO())
        sarah = Artist.objects.get(name="Sarah Wilson")
        self.assertEqual(sarah.hourly_rate, Decimal("2500.00"))
        self.assertEqual(
            AvailabilityTemplate(sarah).get_day("Monday"),
            [WindowSpec("09:00", "12:00", True), WindowSpec("14:00", "18:00", True)],
        )
        studio = Studio.objects.get()
        self.assertEqual(AvailabilityTemplate(studio).get_day("Tuesday"), [WindowSpec("09:00", "18:00", True)])
        self.assertEqual(AvailabilityTemplate(studio).get_day("Sunday"), [])
