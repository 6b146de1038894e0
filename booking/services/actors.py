"""
actors.py
---------
Who is calling. The engine receives an Actor(user_id, role) resolved by the
HTTP layer and trusts it.
"""

from collections import namedtuple

from django.db import models


class Role(models.TextChoices):
    CLIENT = "client", "Client"
    ARTIST = "artist", "Artist"
    STUDIO = "studio", "Studio"
    ADMIN = "admin", "Admin"


Actor = namedtuple("Actor", ["user_id", "role"])


def actor_for_user(user):
    """
    Resolve an auth user to an Actor:
    staff -> admin, owns an Artist -> artist, owns a Studio -> studio, else client.
    """
    if user.is_staff:
        role = Role.ADMIN
    elif user.artists.exists():
        role = Role.ARTIST
    elif user.studios.exists():
        role = Role.STUDIO
    else:
        role = Role.CLIENT
    return Actor(user.pk, role)
