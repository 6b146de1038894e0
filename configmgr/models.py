from django.db import models

class SystemSetting(models.Model):
    """
    Simple key/value settings store, read at request time so changes apply
    without a redeploy.
    Known keys (see booking.services.slot_utils):
      - SERVICE_FEE_PERCENT (e.g., '5')
      - SLOT_DURATION_MINUTES (e.g., '60')
    Invalid values are ignored with a warning and the settings.py default is used.
    """
    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=200)

    def __str__(self):
        return f"{self.key}={self.value}"
