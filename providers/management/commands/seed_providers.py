"""
seed_providers.py
-----------------
Seeds (creates or updates) demo users, artists and a studio, each with a
weekly availability template. Safe to run any time; it upserts by username
and provider name.

Usage:
    python manage.py seed_providers
    python manage.py seed_providers --password secret123
"""

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from providers.models import Artist, Studio
from providers.services.availability_template import AvailabilityTemplate


USERS = [
    # username, email, first/last name, is_staff
    ("admin", "admin@tunelink.com", "Admin", "User", True),
    ("john", "john@example.com", "John", "Doe", False),
    ("sarah", "sarah@example.com", "Sarah", "Wilson", False),
    ("mike", "mike@example.com", "Mike", "Johnson", False),
    ("studio1", "studio1@example.com", "Studio", "One", False),
]

ARTISTS = [
    {
        "owner": "sarah",
        "name": "Sarah Wilson",
        "hourly_rate": Decimal("2500.00"),
        "instruments": "Guitar, Vocals, Piano",
        "genres": "Rock, Pop, Folk",
        "availability": [
            {"day": "Monday", "slots": [{"start_time": "09:00", "end_time": "12:00"}, {"start_time": "14:00", "end_time": "18:00"}]},
            {"day": "Tuesday", "slots": [{"start_time": "09:00", "end_time": "12:00"}, {"start_time": "14:00", "end_time": "18:00"}]},
        ],
    },
    {
        "owner": "mike",
        "name": "Mike Johnson",
        "hourly_rate": Decimal("3000.00"),
        "instruments": "Drums, Percussion, Djembe",
        "genres": "Jazz, Fusion, World Music",
        "availability": [
            {"day": "Wednesday", "slots": [{"start_time": "10:00", "end_time": "14:00"}, {"start_time": "16:00", "end_time": "20:00"}]},
            {"day": "Thursday", "slots": [{"start_time": "10:00", "end_time": "14:00"}, {"start_time": "16:00", "end_time": "20:00"}]},
        ],
    },
]

STUDIOS = [
    {
        "owner": "studio1",
        "name": "Studio One Recording",
        "hourly_rate": Decimal("5000.00"),
        "city": "Colombo",
        "address": "321 Studio Street, Colombo 03",
        "availability": [
            {"day": "Monday", "slots": [{"start_time": "09:00", "end_time": "18:00"}]},
            {"day": "Tuesday", "slots": [{"start_time": "09:00", "end_time": "18:00"}]},
        ],
    },
]


class Command(BaseCommand):
    help = "Seed or update demo artists and studios with weekly availability."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default="password123",
            help="Password for newly created demo users (existing users keep theirs).",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        User = get_user_model()
        users = {}
        for username, email, first, last, is_staff in USERS:
            user, is_created = User.objects.get_or_create(
                username=username,
                defaults={"email": email, "first_name": first, "last_name": last, "is_staff": is_staff},
            )
            if is_created:
                user.set_password(options["password"])
                user.save(update_fields=["password"])
            users[username] = user

        created = 0
        updated = 0
        for model, catalog in ((Artist, ARTISTS), (Studio, STUDIOS)):
            for item in catalog:
                fields = {k: v for k, v in item.items() if k not in ("owner", "name", "availability")}
                provider, is_created = model.objects.update_or_create(
                    name=item["name"],
                    user=users[item["owner"]],
                    defaults=fields,
                )
                AvailabilityTemplate(provider).replace_all(item["availability"])
                if is_created:
                    created += 1
                else:
                    updated += 1

        self.stdout.write(self.style.SUCCESS(f"Seed complete. Created={created}, Updated={updated}"))
